"""Failure-probability predictor seam.

The engine treats the predictor as an optional advisory scorer. Any
predictor that is missing, unready or failing resolves to a neutral 0.5.
"""
import math
from datetime import datetime
from typing import Optional, Protocol

from loguru import logger

from sign_tutor.catalog import SignCatalog
from sign_tutor.models import CategoryStat, LearningRecord, Sign
from sign_tutor.sm2 import MAX_NORMALIZED_EASE, MIN_EASE_FACTOR
from sign_tutor.store import CATEGORY_STATS, RECORDS, PersistenceError, ProgressStore

NEUTRAL_PROBABILITY = 0.5
FEATURE_COUNT = 8


class FailurePredictor(Protocol):
    def predict(self, features: list[float]) -> float:
        ...


class NeutralPredictor:
    """Predictor used when no trained model is available."""

    def predict(self, features: list[float]) -> float:
        return NEUTRAL_PROBABILITY


def extract_features(
    record: LearningRecord,
    sign: Sign,
    category_stats: dict[str, CategoryStat],
    now: Optional[datetime] = None,
) -> list[float]:
    """Eight model inputs, each normalized to roughly 0-1.

    accuracy, days since last practice, sign difficulty, attempts, ease factor,
    interval, category familiarity, time of day.
    """
    now = now or datetime.now()
    accuracy = record.accuracy if record.total_attempts > 0 else 0.5

    if record.last_attempt_date:
        days_since = (now - record.last_attempt_date).total_seconds() / 86400
    else:
        days_since = 30
    days_since_norm = min(1.0, days_since / 30)

    difficulty = sign.difficulty or 3
    difficulty_norm = (difficulty - 1) / 4

    attempts_norm = min(1.0, math.log(record.total_attempts + 1) / math.log(100))
    ef_norm = (record.ease_factor - MIN_EASE_FACTOR) / (MAX_NORMALIZED_EASE - MIN_EASE_FACTOR)
    interval_norm = min(1.0, math.log(record.interval + 1) / math.log(365))

    stat = category_stats.get(record.category_id)
    familiarity = stat.correct_attempts / max(1, stat.total_attempts) if stat else 0.5

    # Afternoon peak
    time_of_day = 1 - abs(now.hour - 14) / 12

    return [
        accuracy,
        days_since_norm,
        difficulty_norm,
        attempts_norm,
        ef_norm,
        interval_norm,
        familiarity,
        time_of_day,
    ]


def safe_predict(predictor: Optional[FailurePredictor], features: list[float]) -> float:
    """Predicted failure probability clamped to [0, 1], or 0.5 on any problem."""
    if predictor is None or len(features) != FEATURE_COUNT:
        return NEUTRAL_PROBABILITY
    try:
        probability = float(predictor.predict(features))
    except Exception as e:
        logger.debug(f"Predictor unavailable, using neutral probability: {e}")
        return NEUTRAL_PROBABILITY
    if math.isnan(probability):
        return NEUTRAL_PROBABILITY
    return min(1.0, max(0.0, probability))


def most_likely_to_fail(
    store: ProgressStore,
    catalog: SignCatalog,
    predictor: Optional[FailurePredictor] = None,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> list[dict]:
    """Studied signs ranked by predicted failure probability, highest first."""
    try:
        records = store.get_all(RECORDS)
        stats = {s.category_id: s for s in store.get_all(CATEGORY_STATS)}
    except PersistenceError as e:
        logger.warning(f"Could not read progress for failure prediction: {e}")
        return []

    predictions = []
    for record in records:
        sign = catalog.get(record.item_id)
        if sign is None or record.total_attempts == 0:
            continue
        features = extract_features(record, sign, stats, now)
        predictions.append({
            "item_id": sign.id,
            "name": sign.name,
            "category_id": sign.category_id,
            "category_name": sign.category_name,
            "fail_probability": safe_predict(predictor, features),
            "accuracy": record.accuracy,
        })
    predictions.sort(key=lambda p: p["fail_probability"], reverse=True)
    return predictions[:limit]
