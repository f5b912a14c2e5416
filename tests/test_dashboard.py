# tests/test_dashboard.py
from datetime import date, datetime, timedelta

from sign_tutor.dashboard import (
    calc_streak, get_accuracy_color, get_category_progress, get_dashboard_summary,
    get_learning_stats,
)
from sign_tutor.models import LearningRecord, QuizSession
from sign_tutor.store import QUIZ_SESSIONS, RECORDS

TODAY = date(2026, 3, 10)


def at(days_ago, hour=10):
    return datetime(2026, 3, 10, hour) - timedelta(days=days_ago)


def save_session(store, when, percentage):
    store.put(QUIZ_SESSIONS, QuizSession(
        date=when, categories=("x",), mode="standard", difficulty="adaptive",
        question_type="mixed", total_questions=10, correct_answers=percentage // 10,
        wrong_answers=(), percentage=percentage, duration_ms=1000, best_streak=1,
    ))


def test_accuracy_color():
    assert get_accuracy_color(85) == "green"
    assert get_accuracy_color(70) == "yellow"
    assert get_accuracy_color(55) == "dark_orange"
    assert get_accuracy_color(10) == "red"


def test_calc_streak():
    assert calc_streak([], TODAY) == 0
    assert calc_streak([at(0), at(0, 18), at(1), at(2), at(4)], TODAY) == 3
    assert calc_streak([at(1), at(2)], TODAY) == 2
    assert calc_streak([at(2), at(3)], TODAY) == 0


def test_learning_stats_empty(store, catalog):
    stats = get_learning_stats(store, catalog)
    assert stats["total_signs"] == 17
    assert stats["studied_signs"] == 0
    assert stats["new_signs"] == 17
    assert stats["overall_accuracy"] == 0.0


def test_learning_stats_counts(store, catalog):
    store.put(RECORDS, LearningRecord("x1", "x", total_attempts=5, correct_attempts=5, repetitions=5))
    store.put(RECORDS, LearningRecord("x2", "x", total_attempts=3, correct_attempts=1))
    store.put(RECORDS, LearningRecord("y1", "y"))
    stats = get_learning_stats(store, catalog)
    assert stats["studied_signs"] == 2
    assert stats["mastered_signs"] == 1
    assert stats["overall_accuracy"] == 0.75
    assert stats["category_stats"]["x"]["studied"] == 2
    assert stats["category_stats"]["y"]["studied"] == 0


def test_category_progress_least_studied_first(store, catalog):
    store.put(RECORDS, LearningRecord("x1", "x", total_attempts=1, correct_attempts=1))
    progress = get_category_progress(store, catalog)
    assert [c["key"] for c in progress] == ["y", "x"]
    assert progress[1]["progress"] == 0.2


def test_dashboard_summary(store, catalog):
    store.put(RECORDS, LearningRecord("x1", "x", total_attempts=4, correct_attempts=3))
    save_session(store, at(0), 70)
    save_session(store, at(1), 90)
    summary = get_dashboard_summary(store, catalog, TODAY)
    assert summary["studied_signs"] == 1
    assert summary["accuracy"] == 75
    assert summary["streak"] == 2
    assert summary["total_quizzes"] == 2
    assert summary["best_score"] == 90


def test_dashboard_summary_empty(store, catalog):
    summary = get_dashboard_summary(store, catalog, TODAY)
    assert summary["best_score"] == 0
    assert summary["streak"] == 0
