"""Persisted quiz preferences."""
from dataclasses import dataclass

from loguru import logger

from sign_tutor.catalog import DIFFICULTY_BANDS
from sign_tutor.questions import QUESTION_TYPES
from sign_tutor.selection import MODES
from sign_tutor.store import PersistenceError, ProgressStore

DIFFICULTIES = tuple(DIFFICULTY_BANDS) + ("adaptive",)


@dataclass
class QuizSettings:
    questions_per_quiz: int = 15
    shuffle_options: bool = True
    question_type: str = "mixed"
    mode: str = "standard"
    difficulty: str = "adaptive"
    best_streak: int = 0


def _choice(value, allowed, default):
    return value if value in allowed else default


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def load_settings(store: ProgressStore) -> QuizSettings:
    """Stored settings, with defaults for anything missing or invalid."""
    defaults = QuizSettings()
    try:
        stored = {key: store.get_setting(key) for key in vars(defaults)}
    except PersistenceError as e:
        logger.warning(f"Could not load settings, using defaults: {e}")
        return defaults
    return QuizSettings(
        questions_per_quiz=_positive_int(stored["questions_per_quiz"], defaults.questions_per_quiz),
        shuffle_options=stored["shuffle_options"] != "0" if stored["shuffle_options"] is not None else True,
        question_type=_choice(stored["question_type"], QUESTION_TYPES, defaults.question_type),
        mode=_choice(stored["mode"], MODES, defaults.mode),
        difficulty=_choice(stored["difficulty"], DIFFICULTIES, defaults.difficulty),
        best_streak=_positive_int(stored["best_streak"], 0),
    )


def save_settings(store: ProgressStore, settings: QuizSettings) -> None:
    for key, value in vars(settings).items():
        if isinstance(value, bool):
            value = int(value)
        store.set_setting(key, str(value))
