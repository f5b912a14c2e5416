"""Per-sign learning progress with SM-2 scheduling.

`record_answer` is the only code path that mutates a LearningRecord.
"""
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger

from sign_tutor.models import DEFAULT_EASE_FACTOR, DEFAULT_RESPONSE_TIME_MS, LearningRecord
from sign_tutor.sm2 import mastery_level, quality_from_outcome, retention_score, sm2_update
from sign_tutor.store import RECORDS, ProgressStore


def new_record(item_id: str, category_id: str, now: Optional[datetime] = None) -> LearningRecord:
    """Default state for a sign that has never been answered."""
    return LearningRecord(
        item_id=item_id,
        category_id=category_id,
        total_attempts=0,
        correct_attempts=0,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        next_review_date=now or datetime.now(),
        last_attempt_date=None,
        average_response_time_ms=DEFAULT_RESPONSE_TIME_MS,
    )


def get_or_create_record(store: ProgressStore, item_id: str, category_id: str,
                         now: Optional[datetime] = None) -> LearningRecord:
    """Stored record for a sign, or a fresh unsaved one with default values."""
    record = store.get(RECORDS, item_id)
    if record is None:
        record = new_record(item_id, category_id, now)
    return record


def record_answer(
    store: ProgressStore,
    item_id: str,
    category_id: str,
    is_correct: bool,
    response_time_ms: float,
    now: Optional[datetime] = None,
) -> LearningRecord:
    """Apply one answer to a sign's record, persist it and return it.

    Raises PersistenceError if the record can't be read or written.
    """
    now = now or datetime.now()
    record = get_or_create_record(store, item_id, category_id, now)

    # Quality is judged against the average before this answer is folded in.
    quality = quality_from_outcome(is_correct, response_time_ms, record.average_response_time_ms)
    updated = sm2_update(
        quality=quality,
        ease_factor=record.ease_factor,
        interval=record.interval,
        repetitions=record.repetitions,
    )

    record.total_attempts += 1
    if is_correct:
        record.correct_attempts += 1
    prev_total = record.average_response_time_ms * (record.total_attempts - 1)
    record.average_response_time_ms = (prev_total + response_time_ms) / record.total_attempts
    record.last_attempt_date = now
    record.ease_factor = updated["ease_factor"]
    record.interval = updated["interval"]
    record.repetitions = updated["repetitions"]
    record.next_review_date = now + timedelta(days=updated["interval"])
    record.last_quality = quality

    store.put(RECORDS, record)
    logger.debug(
        f"Recorded {item_id}: quality={quality} interval={record.interval} "
        f"ef={record.ease_factor:.2f} reps={record.repetitions}"
    )
    return record


def get_sign_progress(store: ProgressStore, item_id: str) -> dict:
    """Display summary of one sign's progress."""
    record = store.get(RECORDS, item_id)
    if record is None or record.total_attempts == 0:
        return {"studied": False, "mastery": mastery_level(None), "retention": 0}
    return {
        "studied": True,
        "mastery": mastery_level(record),
        "retention": retention_score(record),
        "accuracy": record.accuracy,
        "total_attempts": record.total_attempts,
        "last_practiced": record.last_attempt_date,
        "next_review": record.next_review_date,
    }
