"""SM-2 spaced repetition algorithm and retention scoring."""
import math
from datetime import datetime
from typing import Optional

from sign_tutor.models import DEFAULT_RESPONSE_TIME_MS, LearningRecord, MasteryLevel

MIN_EASE_FACTOR = 1.3
MAX_NORMALIZED_EASE = 2.5
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

# Incorrect answers faster than this suggest partial recall.
PARTIAL_RECALL_MS = 3000

# Quality ratings
COMPLETE_BLACKOUT = 0
INCORRECT = 1
CORRECT_DIFFICULTY = 3
CORRECT = 4
PERFECT = 5

MASTERY_LEVELS = [
    (90, MasteryLevel("master", "Master", "#FFD700")),
    (70, MasteryLevel("proficient", "Proficient", "#00FF88")),
    (50, MasteryLevel("learning", "Learning", "#00D4AA")),
    (25, MasteryLevel("beginner", "Beginner", "#4682B4")),
]
NEW_LEVEL = MasteryLevel("new", "New", "#808080")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero for positive values."""
    return int(math.floor(value + 0.5))


def quality_from_outcome(
    is_correct: bool,
    response_time_ms: float,
    average_response_time_ms: Optional[float] = None,
) -> int:
    """Map a quiz answer to an SM-2 quality rating (0-5)."""
    if not is_correct:
        return INCORRECT if response_time_ms < PARTIAL_RECALL_MS else COMPLETE_BLACKOUT

    ratio = response_time_ms / (average_response_time_ms or DEFAULT_RESPONSE_TIME_MS)
    if ratio < 0.5:
        return PERFECT
    if ratio < 1.0:
        return CORRECT
    return CORRECT_DIFFICULTY


def sm2_update(
    quality: int,
    ease_factor: float,
    interval: int,
    repetitions: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days
        repetitions: Number of consecutive correct reviews

    Returns:
        Dict with updated ease_factor, interval, repetitions.
    """
    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    if quality >= 3:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = FIRST_INTERVAL
        elif new_repetitions == 2:
            new_interval = SECOND_INTERVAL
        else:
            new_interval = round_half_up(interval * new_ef)
    else:
        # Incorrect: reset
        new_repetitions = 0
        new_interval = FIRST_INTERVAL

    return {
        "ease_factor": new_ef,
        "interval": new_interval,
        "repetitions": new_repetitions,
    }


def retention_score(record: Optional[LearningRecord]) -> int:
    """Composite 0-100 confidence for one sign.

    Weighted: accuracy 50%, normalized ease factor 30%, repetitions 20%
    (saturating at five consecutive correct reviews).
    """
    if record is None or record.total_attempts == 0:
        return 0
    accuracy = record.correct_attempts / record.total_attempts
    ef_norm = (record.ease_factor - MIN_EASE_FACTOR) / (MAX_NORMALIZED_EASE - MIN_EASE_FACTOR)
    reps = min(1.0, record.repetitions / 5)
    # ease factor has no ceiling
    return min(100, round_half_up(100 * (accuracy * 0.5 + ef_norm * 0.3 + reps * 0.2)))


def mastery_level(record: Optional[LearningRecord]) -> MasteryLevel:
    score = retention_score(record)
    for threshold, level in MASTERY_LEVELS:
        if score >= threshold:
            return level
    return NEW_LEVEL


def is_due(record: Optional[LearningRecord], now: Optional[datetime] = None) -> bool:
    """A sign is due if it has never been scheduled or its review date has passed."""
    if record is None or record.next_review_date is None:
        return True
    return record.next_review_date <= (now or datetime.now())
