# pulse/models.py
from contextlib import closing
from typing import Literal

from pulse.db import connect
from pulse.log import get_logger

log = get_logger("db")

Sentiment = Literal["positive", "negative", "neutral"]
Mood = Literal["very-low", "low", "moderate", "high", "very-high"]
Category = Literal["mindfulness", "health", "reflection", "exercise", "learning", "general"]
LinkType = Literal["temporal", "semantic", "mood", "category"]
DateRange = Literal["all", "today", "week", "month"]
DialPart = Literal["hour", "minute"]


def init_db():
    with closing(connect()) as conn:
        cur = conn.cursor()

        # ---- users ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT,
            created_at TEXT,
            updated_at TEXT
        )
        """)

        # ---- habits ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS habits (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'health',
            is_permanent INTEGER NOT NULL DEFAULT 0,
            streak INTEGER NOT NULL DEFAULT 0,
            best_streak INTEGER NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS habit_completions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            habit_id INTEGER NOT NULL,
            user_id TEXT NOT NULL,
            day TEXT NOT NULL,
            completed_at TEXT,
            UNIQUE (habit_id, day),
            FOREIGN KEY(habit_id) REFERENCES habits(id) ON DELETE CASCADE
        )
        """)

        # ---- todos ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS todos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'health',
            completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        # ---- journal ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS journal_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            mood TEXT,
            day TEXT NOT NULL,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        # ---- check-ins ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS stress_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            stress_level INTEGER NOT NULL,
            note TEXT NOT NULL DEFAULT '',
            created_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS sleep_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            sleep_duration REAL NOT NULL,
            sleep_quality INTEGER NOT NULL,
            bed_time TEXT NOT NULL,
            wake_time TEXT NOT NULL,
            notes TEXT NOT NULL DEFAULT '',
            created_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        # ---- chat ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS chat_messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            message TEXT NOT NULL,
            is_user INTEGER NOT NULL,
            created_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS chat_suggestions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'health',
            completed INTEGER NOT NULL DEFAULT 0,
            streak INTEGER NOT NULL DEFAULT 0,
            source TEXT NOT NULL DEFAULT 'chatbot',
            created_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        # ---- settings ----
        cur.execute("""
        CREATE TABLE IF NOT EXISTS user_settings (
            user_id TEXT PRIMARY KEY,
            notifications INTEGER,
            sound INTEGER,
            reminder_time TEXT,
            updated_at TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        )
        """)

        conn.commit()


def migrate_db():
    """
    Adds columns introduced after the first release (idempotent).
    """
    with closing(connect()) as conn:
        cur = conn.cursor()
        cur.execute("PRAGMA table_info(habits)")
        cols = {row["name"] for row in cur.fetchall()}

        if "best_streak" not in cols:
            log.info("Adding habits.best_streak column")
            cur.execute("ALTER TABLE habits ADD COLUMN best_streak INTEGER NOT NULL DEFAULT 0")

        conn.commit()
