import sqlite3
from datetime import date, datetime, timezone
from typing import Optional

from pulse.config import DATA_DIR, DB_NAME, DEFAULT_USER_ID

DB_PATH = DATA_DIR / DB_NAME


def connect():
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(DB_PATH),
        timeout=10,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA busy_timeout=5000;")

    return conn


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def today() -> date:
    return date.fromisoformat(today_iso())


def normalize_user(raw: Optional[str]) -> str:
    s = (raw or "").strip()
    return s if s else DEFAULT_USER_ID


def ensure_user(conn, user_id: str):
    conn.execute(
        "INSERT OR IGNORE INTO users(id, created_at, updated_at) VALUES(?,?,?)",
        (user_id, now_iso(), now_iso()),
    )
