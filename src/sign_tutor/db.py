"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".sign_tutor" / "tutor.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS learning_records (
    item_id TEXT PRIMARY KEY,
    category_id TEXT NOT NULL,
    total_attempts INTEGER NOT NULL DEFAULT 0,
    correct_attempts INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval INTEGER NOT NULL DEFAULT 0,
    repetitions INTEGER NOT NULL DEFAULT 0,
    next_review_date TEXT,
    last_attempt_date TEXT,
    average_response_time_ms REAL NOT NULL DEFAULT 3000,
    last_quality INTEGER
);

CREATE INDEX IF NOT EXISTS idx_learning_records_next_review
    ON learning_records (next_review_date);

CREATE INDEX IF NOT EXISTS idx_learning_records_category
    ON learning_records (category_id);

CREATE TABLE IF NOT EXISTS category_stats (
    category_id TEXT PRIMARY KEY,
    total_attempts INTEGER NOT NULL DEFAULT 0,
    correct_attempts INTEGER NOT NULL DEFAULT 0,
    last_practiced_date TEXT
);

CREATE TABLE IF NOT EXISTS quiz_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    categories TEXT NOT NULL DEFAULT '[]',  -- JSON
    mode TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    question_type TEXT NOT NULL,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    wrong_answers TEXT NOT NULL DEFAULT '[]',  -- JSON
    percentage INTEGER NOT NULL,
    duration_ms INTEGER NOT NULL,
    best_streak INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_quiz_sessions_date ON quiz_sessions (date);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
