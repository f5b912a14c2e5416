# tests/test_sm2.py
from datetime import datetime, timedelta

import pytest

from sign_tutor.models import LearningRecord
from sign_tutor.sm2 import (
    is_due, mastery_level, quality_from_outcome, retention_score, round_half_up, sm2_update,
)


def make_record(**kwargs):
    values = {"item_id": "x1", "category_id": "x"}
    values.update(kwargs)
    return LearningRecord(**values)


def test_quality_incorrect_fast_is_partial_recall():
    assert quality_from_outcome(False, 2999, 3000) == 1


def test_quality_incorrect_slow_is_blackout():
    assert quality_from_outcome(False, 3000, 3000) == 0
    assert quality_from_outcome(False, 5000, 3000) == 0


def test_quality_correct_by_time_ratio():
    assert quality_from_outcome(True, 1000, 3000) == 5
    assert quality_from_outcome(True, 2000, 3000) == 4
    assert quality_from_outcome(True, 3000, 3000) == 3
    assert quality_from_outcome(True, 4500, 3000) == 3


def test_quality_defaults_average_to_3000():
    assert quality_from_outcome(True, 1400, None) == 5
    assert quality_from_outcome(True, 1400, 0) == 5
    assert quality_from_outcome(True, 2900, None) == 4


def test_sm2_first_review_correct():
    """First correct answer: interval=1, repetitions=1."""
    result = sm2_update(quality=4, ease_factor=2.5, interval=0, repetitions=0)
    assert result["interval"] == 1
    assert result["repetitions"] == 1
    assert result["ease_factor"] == pytest.approx(2.5)


def test_sm2_second_review_correct():
    """Second correct answer: interval=6."""
    result = sm2_update(quality=4, ease_factor=2.5, interval=1, repetitions=1)
    assert result["interval"] == 6
    assert result["repetitions"] == 2


def test_sm2_third_review_uses_updated_ease():
    """Third+ correct: interval = old_interval * new ease factor."""
    result = sm2_update(quality=5, ease_factor=2.5, interval=6, repetitions=2)
    assert result["ease_factor"] == pytest.approx(2.6)
    assert result["interval"] == 16  # round(6 * 2.6)
    assert result["repetitions"] == 3


def test_sm2_incorrect_resets():
    """Quality < 3 resets repetitions and interval."""
    result = sm2_update(quality=1, ease_factor=2.5, interval=30, repetitions=5)
    assert result["repetitions"] == 0
    assert result["interval"] == 1


def test_sm2_ease_factor_minimum():
    """Ease factor never drops below 1.3."""
    for quality in range(6):
        result = sm2_update(quality=quality, ease_factor=1.3, interval=10, repetitions=3)
        assert result["ease_factor"] >= 1.3


def test_sm2_blackout_from_default_ease():
    result = sm2_update(quality=0, ease_factor=2.5, interval=0, repetitions=0)
    assert result["ease_factor"] == pytest.approx(1.7)
    assert result["interval"] == 1
    assert result["repetitions"] == 0


def test_sm2_hesitant_correct_lowers_ease():
    result = sm2_update(quality=3, ease_factor=2.5, interval=0, repetitions=0)
    assert result["ease_factor"] == pytest.approx(2.36)


def test_retention_score_zero_without_attempts():
    assert retention_score(make_record()) == 0
    assert retention_score(None) == 0


def test_retention_score_weights():
    # accuracy 0.5 -> 25, ease at floor -> 0, reps 1/5 -> 4
    record = make_record(total_attempts=4, correct_attempts=2, ease_factor=1.3, repetitions=1)
    assert retention_score(record) == 29
    # accuracy 1 -> 50, ease 2.5 -> 30, reps saturate -> 20
    record = make_record(total_attempts=7, correct_attempts=7, ease_factor=2.5, repetitions=7)
    assert retention_score(record) == 100
    # only the ease term: 0.3 * (1.9 - 1.3) / 1.2 = 0.15
    record = make_record(total_attempts=3, correct_attempts=0, ease_factor=1.9, repetitions=0)
    assert retention_score(record) == 15


def test_retention_score_monotonic_in_accuracy():
    scores = [
        retention_score(make_record(total_attempts=10, correct_attempts=c, ease_factor=2.1, repetitions=2))
        for c in range(11)
    ]
    assert scores == sorted(scores)


def test_mastery_level_tiers():
    assert mastery_level(make_record(total_attempts=7, correct_attempts=7, ease_factor=2.5, repetitions=5)).tier == "master"
    assert mastery_level(make_record(total_attempts=4, correct_attempts=2, ease_factor=1.3, repetitions=1)).tier == "beginner"
    assert mastery_level(make_record(total_attempts=3, correct_attempts=0, ease_factor=1.9)).tier == "new"
    # 0.5*0.8 + 0.3*0.5 + 0.2*0.4 = 0.63
    assert mastery_level(make_record(total_attempts=5, correct_attempts=4, ease_factor=1.9, repetitions=2)).tier == "learning"
    # 0.5*1 + 0.3*0.5 + 0.2*0.4 = 0.73
    assert mastery_level(make_record(total_attempts=5, correct_attempts=5, ease_factor=1.9, repetitions=2)).tier == "proficient"


def test_mastery_level_new_record():
    level = mastery_level(make_record())
    assert level.tier == "new"
    assert level.label == "New"


def test_mastery_level_is_pure():
    record = make_record(total_attempts=5, correct_attempts=4, ease_factor=1.9, repetitions=2)
    assert mastery_level(record) == mastery_level(record)


def test_is_due():
    now = datetime(2026, 3, 10, 12, 0)
    assert is_due(None, now)
    assert is_due(make_record(next_review_date=now), now)
    assert is_due(make_record(next_review_date=now - timedelta(days=1)), now)
    assert not is_due(make_record(next_review_date=now + timedelta(seconds=1)), now)


def test_retention_score_capped_at_100():
    record = make_record(total_attempts=9, correct_attempts=9, ease_factor=3.1, repetitions=9)
    assert retention_score(record) == 100


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(16.5) == 17
    assert round_half_up(0.5) == 1
    assert round_half_up(12.49) == 12
    assert round_half_up(7.0) == 7


def test_sm2_interval_rounds_half_up():
    # ease stays at 1.5 for quality 4, so 11 * 1.5 = 16.5
    result = sm2_update(quality=4, ease_factor=1.5, interval=11, repetitions=2)
    assert result["ease_factor"] == 1.5
    assert result["interval"] == 17


def test_retention_score_rounds_half_up():
    # accuracy 0.25 -> 12.5, ease at floor, no repetitions
    record = make_record(total_attempts=4, correct_attempts=1, ease_factor=1.3, repetitions=0)
    assert retention_score(record) == 13
