"""Question selection policies for a quiz session.

Every mode returns at most `target_count` signs from the candidate pool with
no repeats. Fallback fills append to the primary selection; they never replace
it. Sorting is stable, so equal keys keep candidate pool order.
"""
import random
from datetime import datetime
from typing import Optional

from loguru import logger

from sign_tutor.models import LearningRecord, Sign
from sign_tutor.sm2 import is_due, retention_score
from sign_tutor.store import RECORDS, ProgressStore

STANDARD = "standard"
MISSED = "missed"
WEAKEST = "weakest"
SPACED = "spaced"
ADAPTIVE = "adaptive"
MODES = (STANDARD, MISSED, WEAKEST, SPACED, ADAPTIVE)

NEW_SIGN_PRIORITY = 50


def shuffled(items: list, rng) -> list:
    """Shuffled copy of `items`."""
    copy = list(items)
    rng.shuffle(copy)
    return copy


def _unique(pool: list[Sign]) -> list[Sign]:
    seen = set()
    result = []
    for sign in pool:
        if sign.id not in seen:
            seen.add(sign.id)
            result.append(sign)
    return result


def _fill_random(selected: list[Sign], pool: list[Sign], target_count: int, rng) -> list[Sign]:
    if len(selected) >= target_count:
        return selected
    chosen = {s.id for s in selected}
    remaining = [s for s in pool if s.id not in chosen]
    return selected + shuffled(remaining, rng)[: target_count - len(selected)]


def adaptive_priority(record: Optional[LearningRecord], now: datetime) -> float:
    """Study urgency: due signs first, then new signs, then known signs."""
    if record is None:
        return NEW_SIGN_PRIORITY
    retention = retention_score(record)
    if is_due(record, now):
        return 100 - retention
    return 20 - retention * 0.2


def _select_standard(pool, target_count, store, rng, now):
    return shuffled(pool, rng)[:target_count]


def _select_missed(pool, target_count, store, rng, now):
    latest = store.latest_session()
    missed_ids = {m.item_id for m in latest.wrong_answers} if latest else set()
    selected = [s for s in pool if s.id in missed_ids][:target_count]
    logger.debug(f"missed: {len(selected)} signs from last session's wrong answers")
    return _fill_random(selected, pool, target_count, rng)


def _select_weakest(pool, target_count, store, rng, now):
    accuracy = {r.item_id: r.accuracy for r in store.get_weakest(RECORDS)}
    weak = [s for s in pool if s.id in accuracy]
    weak.sort(key=lambda s: accuracy[s.id])
    selected = weak[:target_count]
    logger.debug(f"weakest: {len(selected)} signs with two or more attempts")
    return _fill_random(selected, pool, target_count, rng)


def _select_spaced(pool, target_count, store, rng, now):
    due = store.get_due(RECORDS, now, target_count * 2)
    due_rank = {r.item_id: i for i, r in enumerate(due)}
    selected = [s for s in pool if s.id in due_rank]
    selected.sort(key=lambda s: due_rank[s.id])
    selected = selected[:target_count]
    logger.debug(f"spaced: {len(selected)} signs due for review")

    if len(selected) < target_count:
        studied = {r.item_id for r in store.get_all(RECORDS)}
        new_signs = [s for s in pool if s.id not in studied and s.id not in due_rank]
        selected += shuffled(new_signs, rng)[: target_count - len(selected)]
    return _fill_random(selected, pool, target_count, rng)


def _select_adaptive(pool, target_count, store, rng, now):
    records = {r.item_id: r for r in store.get_all(RECORDS)}
    scored = [(adaptive_priority(records.get(s.id), now), s) for s in pool]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [s for _, s in scored[:target_count]]


SELECTORS = {
    STANDARD: _select_standard,
    MISSED: _select_missed,
    WEAKEST: _select_weakest,
    SPACED: _select_spaced,
    ADAPTIVE: _select_adaptive,
}


def select_session_items(
    mode: str,
    pool: list[Sign],
    target_count: int,
    store: ProgressStore,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> list[Sign]:
    """Ordered signs to quiz on for one session.

    Pass a seeded `rng` for reproducible output; `adaptive` is deterministic
    without one. Unknown modes fall back to `standard`.
    """
    pool = _unique(pool)
    if target_count <= 0 or not pool:
        return []
    rng = rng or random.Random()
    now = now or datetime.now()
    selector = SELECTORS.get(mode)
    if selector is None:
        logger.warning(f"Unknown quiz mode {mode!r}, using {STANDARD}")
        selector = _select_standard
    return selector(pool, target_count, store, rng, now)
