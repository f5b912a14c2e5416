"""Tests for data model classes."""
import json
from datetime import datetime

from sign_tutor.models import CategoryStat, LearningRecord, MissedItem, QuizSession, Sign


def test_learning_record_defaults():
    r = LearningRecord(item_id="x1", category_id="x")
    assert r.ease_factor == 2.5
    assert r.interval == 0
    assert r.repetitions == 0
    assert r.average_response_time_ms == 3000
    assert r.last_attempt_date is None
    assert r.last_quality is None


def test_learning_record_accuracy():
    assert LearningRecord("x1", "x").accuracy == 0.0
    assert LearningRecord("x1", "x", total_attempts=4, correct_attempts=3).accuracy == 0.75


def test_learning_record_row_is_flat():
    now = datetime(2026, 3, 10, 12, 0)
    row = LearningRecord("x1", "x", next_review_date=now).to_row()
    assert row["next_review_date"] == "2026-03-10T12:00:00"
    assert row["last_attempt_date"] is None
    assert LearningRecord.from_row(row) == LearningRecord("x1", "x", next_review_date=now)


def test_category_stat_row():
    row = CategoryStat("x", 3, 2).to_row()
    assert row == {"category_id": "x", "total_attempts": 3, "correct_attempts": 2, "last_practiced_date": None}


def test_quiz_session_encodes_lists_as_json():
    session = QuizSession(
        date=datetime(2026, 3, 10), categories=("x", "y"), mode="missed", difficulty="easy",
        question_type="mixed", total_questions=2, correct_answers=1,
        wrong_answers=(MissedItem("x1", "Bend"),), percentage=50, duration_ms=4000, best_streak=1,
    )
    row = session.to_row()
    assert json.loads(row["categories"]) == ["x", "y"]
    assert json.loads(row["wrong_answers"]) == [{"item_id": "x1", "display_name": "Bend"}]


def test_sign_defaults():
    s = Sign(id="x1", name="Bend", category_id="x")
    assert s.difficulty is None
    assert s.img == ""
