"""SQLite-backed progress store.

Every call opens its own connection. Driver errors surface as PersistenceError.
"""
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from loguru import logger

from sign_tutor.db import DEFAULT_DB_PATH, get_connection, init_db
from sign_tutor.models import CategoryStat, LearningRecord, QuizSession

RECORDS = "sign_progress"
CATEGORY_STATS = "category_stats"
QUIZ_SESSIONS = "quiz_sessions"

# kind -> (table, key column, row model)
TABLES = {
    RECORDS: ("learning_records", "item_id", LearningRecord),
    CATEGORY_STATS: ("category_stats", "category_id", CategoryStat),
    QUIZ_SESSIONS: ("quiz_sessions", "id", QuizSession),
}


class PersistenceError(Exception):
    """A store operation failed."""


class ProgressStore:
    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        with self._wrap_errors("init"):
            init_db(db_path)

    @contextmanager
    def _wrap_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.debug(f"Store operation {operation!r} failed on {self.db_path}: {e}")
            raise PersistenceError(f"{operation} failed: {e}") from e

    @contextmanager
    def _connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._wrap_errors(operation):
            conn = get_connection(self.db_path)
            try:
                yield conn
                conn.commit()
            finally:
                conn.close()

    def _table(self, kind: str) -> tuple:
        if kind not in TABLES:
            raise ValueError(f"Unknown record kind: {kind}")
        return TABLES[kind]

    def get(self, kind: str, key):
        table, key_column, model = self._table(kind)
        with self._connection(f"get {kind}") as conn:
            row = conn.execute(
                f"SELECT * FROM {table} WHERE {key_column} = ?", (key,)
            ).fetchone()
        return model.from_row(row) if row else None

    def put(self, kind: str, record):
        """Insert or replace a record. Returns its key."""
        table, key_column, _ = self._table(kind)
        row = record.to_row()
        if kind == QUIZ_SESSIONS and row["id"] is None:
            del row["id"]
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        with self._connection(f"put {kind}") as conn:
            cursor = conn.execute(
                f"INSERT OR REPLACE INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(row.values()),
            )
        return row.get(key_column, cursor.lastrowid)

    def get_all(self, kind: str) -> list:
        table, key_column, model = self._table(kind)
        with self._connection(f"get_all {kind}") as conn:
            rows = conn.execute(f"SELECT * FROM {table} ORDER BY rowid").fetchall()
        return [model.from_row(r) for r in rows]

    def get_due(self, kind: str = RECORDS, before: Optional[datetime] = None,
                limit: Optional[int] = None) -> list[LearningRecord]:
        """Records whose next review date is at or before `before`, oldest first.

        Records that were never scheduled sort first.
        """
        if kind != RECORDS:
            raise ValueError(f"get_due is only defined for {RECORDS}")
        before = before or datetime.now()
        with self._connection("get_due") as conn:
            rows = conn.execute(
                """SELECT * FROM learning_records
                WHERE next_review_date IS NULL OR next_review_date <= ?
                ORDER BY next_review_date ASC, rowid ASC
                LIMIT ?""",
                (before.isoformat(), -1 if limit is None else limit),
            ).fetchall()
        return [LearningRecord.from_row(r) for r in rows]

    def get_weakest(self, kind: str = RECORDS, limit: Optional[int] = None) -> list[LearningRecord]:
        """Records with at least two attempts, lowest accuracy first."""
        if kind != RECORDS:
            raise ValueError(f"get_weakest is only defined for {RECORDS}")
        with self._connection("get_weakest") as conn:
            rows = conn.execute(
                """SELECT * FROM learning_records
                WHERE total_attempts >= 2
                ORDER BY CAST(correct_attempts AS REAL) / total_attempts ASC, rowid ASC
                LIMIT ?""",
                (-1 if limit is None else limit,),
            ).fetchall()
        return [LearningRecord.from_row(r) for r in rows]

    def latest_session(self) -> Optional[QuizSession]:
        with self._connection("latest_session") as conn:
            row = conn.execute(
                "SELECT * FROM quiz_sessions ORDER BY date DESC, id DESC LIMIT 1"
            ).fetchone()
        return QuizSession.from_row(row) if row else None

    def accumulate_category_stat(self, category_id: str, correct: int, total: int,
                                 when: Optional[datetime] = None) -> CategoryStat:
        """Add one session's results to a category's running totals."""
        stat = self.get(CATEGORY_STATS, category_id) or CategoryStat(category_id=category_id)
        stat.total_attempts += total
        stat.correct_attempts += correct
        stat.last_practiced_date = when or datetime.now()
        self.put(CATEGORY_STATS, stat)
        return stat

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._connection("get_setting") as conn:
            row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str) -> None:
        with self._connection("set_setting") as conn:
            conn.execute(
                "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
                (key, value, value),
            )
