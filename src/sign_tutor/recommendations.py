"""Study recommendations derived from stored progress and quiz history."""
from datetime import datetime
from typing import Optional

from loguru import logger

from sign_tutor.catalog import SignCatalog
from sign_tutor.models import Recommendation
from sign_tutor.sm2 import is_due, mastery_level, retention_score, round_half_up
from sign_tutor.store import QUIZ_SESSIONS, RECORDS, PersistenceError, ProgressStore

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

WEAK_CATEGORY_MIN_ATTEMPTS = 5
WEAK_CATEGORY_ACCURACY = 0.7
CHALLENGE_ACCURACY = 0.8
CHALLENGE_MIN_STUDIED = 20


def _weakest_category(records) -> Optional[tuple[str, float]]:
    totals: dict[str, list[int]] = {}
    for r in records:
        correct_total = totals.setdefault(r.category_id, [0, 0])
        correct_total[0] += r.correct_attempts
        correct_total[1] += r.total_attempts
    weak = [
        (category_id, correct / total)
        for category_id, (correct, total) in totals.items()
        if total >= WEAK_CATEGORY_MIN_ATTEMPTS and correct / total < WEAK_CATEGORY_ACCURACY
    ]
    if not weak:
        return None
    return min(weak, key=lambda c: c[1])


def get_recommendations(store: ProgressStore, catalog: SignCatalog,
                        now: Optional[datetime] = None) -> list[Recommendation]:
    """Suggested next actions, high priority first.

    Returns an empty list if progress can't be read.
    """
    now = now or datetime.now()
    try:
        records = store.get_all(RECORDS)
        due = store.get_due(RECORDS, now)
        sessions = store.get_all(QUIZ_SESSIONS)
    except PersistenceError as e:
        logger.warning(f"Could not read progress for recommendations: {e}")
        return []

    recommendations = []
    studied = sum(1 for r in records if r.item_id in catalog)
    unstudied = len(catalog) - studied

    if due:
        recommendations.append(Recommendation(
            type="review",
            priority="high",
            title="Time to review",
            reason=f"{len(due)} signs are ready for review",
            action="spaced",
        ))

    weakest = _weakest_category(records)
    if weakest:
        category_id, accuracy = weakest
        category = catalog.category(category_id)
        name = category.name if category else category_id
        recommendations.append(Recommendation(
            type="weak_category",
            priority="medium",
            title="Focus on your weakest category",
            reason=f"{name} is at {round_half_up(accuracy * 100)}% accuracy",
            action="category",
            category_id=category_id,
        ))

    if unstudied > 0 and len(due) < 10:
        recommendations.append(Recommendation(
            type="new_signs",
            priority="medium" if unstudied > 50 else "low",
            title="Learn new signs",
            reason=f"{unstudied} signs are waiting to be discovered",
            action="standard",
        ))

    if not any(s.date.date() == now.date() for s in sessions):
        recommendations.append(Recommendation(
            type="streak",
            priority="low",
            title="Keep your streak going",
            reason="You haven't practised today yet",
            action="standard",
        ))

    attempted = [r for r in records if r.total_attempts > 0]
    mean_accuracy = sum(r.accuracy for r in attempted) / len(attempted) if attempted else 0.0
    if mean_accuracy > CHALLENGE_ACCURACY and studied > CHALLENGE_MIN_STUDIED:
        recommendations.append(Recommendation(
            type="challenge",
            priority="low",
            title="Challenge yourself",
            reason="You're doing well! Try a harder quiz",
            action="hard",
        ))

    # sort() is stable, so insertion order holds within a priority tier
    recommendations.sort(key=lambda r: PRIORITY_ORDER[r.priority])
    return recommendations


def next_best_signs(store: ProgressStore, catalog: SignCatalog, count: int = 10,
                    now: Optional[datetime] = None) -> list[dict]:
    """Signs most worth studying right now, most urgent first."""
    now = now or datetime.now()
    try:
        records = {r.item_id: r for r in store.get_all(RECORDS)}
    except PersistenceError as e:
        logger.warning(f"Could not read progress for next signs: {e}")
        return []

    scored = []
    for sign in catalog.all_signs():
        record = records.get(sign.id)
        score = 50.0
        if record:
            retention = retention_score(record)
            if record.last_attempt_date:
                days_since = (now - record.last_attempt_date).total_seconds() / 86400
            else:
                days_since = 100
            if is_due(record, now):
                score = 100 - retention + days_since * 2
            else:
                score = 10 - retention * 0.1
        scored.append((score, sign, record))

    scored.sort(key=lambda s: s[0], reverse=True)
    return [
        {
            "item_id": sign.id,
            "name": sign.name,
            "category_id": sign.category_id,
            "category_name": sign.category_name,
            "score": score,
            "mastery": mastery_level(record),
        }
        for score, sign, record in scored[:count]
    ]
