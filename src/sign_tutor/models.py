"""Data classes for the sign tutor domain model."""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

DEFAULT_EASE_FACTOR = 2.5
DEFAULT_RESPONSE_TIME_MS = 3000.0


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Sign:
    id: str
    name: str
    category_id: str
    img: str = ""
    difficulty: Optional[int] = None
    category_name: str = ""


@dataclass
class Category:
    id: str
    name: str
    code: str = ""
    color: str = ""
    icon: str = ""
    signs: list[Sign] = field(default_factory=list)


@dataclass
class LearningRecord:
    """SM-2 state and attempt history for one sign."""

    item_id: str
    category_id: str
    total_attempts: int = 0
    correct_attempts: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: Optional[datetime] = None
    last_attempt_date: Optional[datetime] = None
    average_response_time_ms: float = DEFAULT_RESPONSE_TIME_MS
    last_quality: Optional[int] = None

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts

    def to_row(self) -> dict:
        return {
            "item_id": self.item_id,
            "category_id": self.category_id,
            "total_attempts": self.total_attempts,
            "correct_attempts": self.correct_attempts,
            "ease_factor": self.ease_factor,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "next_review_date": _to_iso(self.next_review_date),
            "last_attempt_date": _to_iso(self.last_attempt_date),
            "average_response_time_ms": self.average_response_time_ms,
            "last_quality": self.last_quality,
        }

    @classmethod
    def from_row(cls, row) -> "LearningRecord":
        return cls(
            item_id=row["item_id"],
            category_id=row["category_id"],
            total_attempts=row["total_attempts"],
            correct_attempts=row["correct_attempts"],
            ease_factor=row["ease_factor"],
            interval=row["interval"],
            repetitions=row["repetitions"],
            next_review_date=_from_iso(row["next_review_date"]),
            last_attempt_date=_from_iso(row["last_attempt_date"]),
            average_response_time_ms=row["average_response_time_ms"],
            last_quality=row["last_quality"],
        )


@dataclass
class CategoryStat:
    category_id: str
    total_attempts: int = 0
    correct_attempts: int = 0
    last_practiced_date: Optional[datetime] = None

    def to_row(self) -> dict:
        return {
            "category_id": self.category_id,
            "total_attempts": self.total_attempts,
            "correct_attempts": self.correct_attempts,
            "last_practiced_date": _to_iso(self.last_practiced_date),
        }

    @classmethod
    def from_row(cls, row) -> "CategoryStat":
        return cls(
            category_id=row["category_id"],
            total_attempts=row["total_attempts"],
            correct_attempts=row["correct_attempts"],
            last_practiced_date=_from_iso(row["last_practiced_date"]),
        )


@dataclass(frozen=True)
class MissedItem:
    item_id: str
    display_name: str


@dataclass(frozen=True)
class QuizSession:
    """One completed quiz. Written once, never updated."""

    date: datetime
    categories: tuple[str, ...]
    mode: str
    difficulty: str
    question_type: str
    total_questions: int
    correct_answers: int
    wrong_answers: tuple[MissedItem, ...]
    percentage: int
    duration_ms: int
    best_streak: int
    id: Optional[int] = None

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "categories": json.dumps(list(self.categories)),
            "mode": self.mode,
            "difficulty": self.difficulty,
            "question_type": self.question_type,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "wrong_answers": json.dumps(
                [{"item_id": m.item_id, "display_name": m.display_name} for m in self.wrong_answers]
            ),
            "percentage": self.percentage,
            "duration_ms": self.duration_ms,
            "best_streak": self.best_streak,
        }

    @classmethod
    def from_row(cls, row) -> "QuizSession":
        return cls(
            id=row["id"],
            date=datetime.fromisoformat(row["date"]),
            categories=tuple(json.loads(row["categories"])),
            mode=row["mode"],
            difficulty=row["difficulty"],
            question_type=row["question_type"],
            total_questions=row["total_questions"],
            correct_answers=row["correct_answers"],
            wrong_answers=tuple(
                MissedItem(m["item_id"], m["display_name"]) for m in json.loads(row["wrong_answers"])
            ),
            percentage=row["percentage"],
            duration_ms=row["duration_ms"],
            best_streak=row["best_streak"],
        )


@dataclass(frozen=True)
class MasteryLevel:
    tier: str
    label: str
    color: str


@dataclass
class Recommendation:
    type: str
    priority: str  # high | medium | low
    title: str
    reason: str
    action: str  # suggested follow-up mode
    category_id: Optional[str] = None
