"""Dashboard statistics: totals, category progress and practice streak."""
from datetime import date, datetime, timedelta
from typing import Optional

from loguru import logger

from sign_tutor.catalog import SignCatalog
from sign_tutor.sm2 import retention_score, round_half_up
from sign_tutor.store import QUIZ_SESSIONS, RECORDS, PersistenceError, ProgressStore

MASTERED_RETENTION = 80


def get_accuracy_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def calc_streak(session_dates: list[datetime], today: Optional[date] = None) -> int:
    """Consecutive practice days ending today, or yesterday if not yet today."""
    today = today or date.today()
    days = sorted({d.date() for d in session_dates}, reverse=True)
    if not days or days[0] < today - timedelta(days=1):
        return 0
    streak = 0
    expected = days[0]
    for day in days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


def get_learning_stats(store: ProgressStore, catalog: SignCatalog) -> dict:
    """Sign counts and accuracy, overall and per category."""
    try:
        records = {r.item_id: r for r in store.get_all(RECORDS)}
    except PersistenceError as e:
        logger.warning(f"Could not read progress for learning stats: {e}")
        records = {}

    total_attempts = total_correct = studied = mastered = 0
    category_stats = {}
    for category in catalog.categories():
        cat = {
            "name": category.name,
            "code": category.code,
            "total": len(category.signs),
            "studied": 0,
            "mastered": 0,
            "total_attempts": 0,
            "correct_attempts": 0,
        }
        for sign in category.signs:
            record = records.get(sign.id)
            if not record or record.total_attempts == 0:
                continue
            cat["studied"] += 1
            cat["total_attempts"] += record.total_attempts
            cat["correct_attempts"] += record.correct_attempts
            if retention_score(record) >= MASTERED_RETENTION:
                cat["mastered"] += 1
        cat["accuracy"] = cat["correct_attempts"] / cat["total_attempts"] if cat["total_attempts"] else 0.0
        studied += cat["studied"]
        mastered += cat["mastered"]
        total_attempts += cat["total_attempts"]
        total_correct += cat["correct_attempts"]
        category_stats[category.id] = cat

    return {
        "total_signs": len(catalog),
        "studied_signs": studied,
        "mastered_signs": mastered,
        "new_signs": len(catalog) - studied,
        "overall_accuracy": total_correct / total_attempts if total_attempts else 0.0,
        "total_attempts": total_attempts,
        "category_stats": category_stats,
    }


def get_category_progress(store: ProgressStore, catalog: SignCatalog) -> list[dict]:
    """Per-category progress, least studied first."""
    stats = get_learning_stats(store, catalog)
    categories = []
    for key, cat in stats["category_stats"].items():
        categories.append({
            "key": key,
            **cat,
            "progress": cat["studied"] / cat["total"] if cat["total"] else 0.0,
            "mastery_progress": cat["mastered"] / cat["total"] if cat["total"] else 0.0,
        })
    return sorted(categories, key=lambda c: c["progress"])


def get_dashboard_summary(store: ProgressStore, catalog: SignCatalog,
                          today: Optional[date] = None) -> dict:
    stats = get_learning_stats(store, catalog)
    try:
        sessions = store.get_all(QUIZ_SESSIONS)
    except PersistenceError as e:
        logger.warning(f"Could not read quiz sessions for dashboard: {e}")
        sessions = []
    best = max((s.percentage for s in sessions), default=0)
    return {
        "total_signs": stats["total_signs"],
        "studied_signs": stats["studied_signs"],
        "mastered_signs": stats["mastered_signs"],
        "accuracy": round_half_up(stats["overall_accuracy"] * 100),
        "streak": calc_streak([s.date for s in sessions], today),
        "total_quizzes": len(sessions),
        "best_score": best,
    }
