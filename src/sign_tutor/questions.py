"""Multiple-choice question generation."""
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sign_tutor.models import Sign

IMAGE_TO_TEXT = "image-to-text"
TEXT_TO_IMAGE = "text-to-image"
MIXED = "mixed"
QUESTION_TYPES = (IMAGE_TO_TEXT, TEXT_TO_IMAGE, MIXED)

OPTION_COUNT = 4


@dataclass
class Option:
    id: str
    name: str
    img: str
    is_correct: bool


@dataclass
class Question:
    type: str
    sign: Sign
    prompt: str
    options: list[Option] = field(default_factory=list)
    is_hard: bool = False
    started_at: Optional[datetime] = None

    @property
    def correct_option(self) -> Option:
        return next(o for o in self.options if o.is_correct)


def similar_signs(sign: Sign, all_signs: list[Sign]) -> list[Sign]:
    """Same-category signs when there are enough to fill the options."""
    same_category = [s for s in all_signs if s.category_id == sign.category_id and s.id != sign.id]
    if len(same_category) >= OPTION_COUNT - 1:
        return same_category
    return [s for s in all_signs if s.id != sign.id]


def _resolve_type(question_type: str, rng) -> str:
    if question_type == MIXED:
        return IMAGE_TO_TEXT if rng.random() < 0.5 else TEXT_TO_IMAGE
    if question_type == TEXT_TO_IMAGE:
        return TEXT_TO_IMAGE
    return IMAGE_TO_TEXT


def generate_question(
    sign: Sign,
    all_signs: list[Sign],
    question_type: str = MIXED,
    shuffle_options: bool = True,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    hard: bool = False,
) -> Question:
    """Build a question for `sign` with up to three distractors.

    Hard questions draw distractors from the sign's own category.
    """
    rng = rng or random.Random()
    distractor_pool = similar_signs(sign, all_signs) if hard else [s for s in all_signs if s.id != sign.id]
    wrong = list(distractor_pool)
    rng.shuffle(wrong)
    choices = wrong[: OPTION_COUNT - 1] + [sign]
    if shuffle_options:
        rng.shuffle(choices)

    kind = _resolve_type(question_type, rng)
    if kind == TEXT_TO_IMAGE:
        prompt = f'Which sign shows "{sign.name}"?'
    else:
        prompt = "What does this sign mean?"
    return Question(
        type=kind,
        sign=sign,
        prompt=prompt,
        options=[Option(c.id, c.name, c.img, c.id == sign.id) for c in choices],
        is_hard=hard,
        started_at=now or datetime.now(),
    )
