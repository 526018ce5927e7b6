# pulse/chat_store.py
from contextlib import closing
from typing import Any, Dict, List

from pulse.db import connect, ensure_user, now_iso


def add_message(user_id: str, message: str, is_user: bool):
    message = (message or "").strip()
    if not message:
        return None

    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        cur = conn.execute(
            "INSERT INTO chat_messages(user_id, message, is_user, created_at) VALUES(?,?,?,?)",
            (user_id, message, 1 if is_user else 0, now_iso()),
        )
        return str(cur.lastrowid)


def get_messages(user_id: str, limit: int = 2000) -> List[Dict[str, Any]]:
    """Oldest first, keeping the newest `limit` messages."""
    with closing(connect()) as conn:
        rows = conn.execute(
            """
            SELECT id, message, is_user, created_at FROM (
                SELECT id, message, is_user, created_at
                FROM chat_messages
                WHERE user_id = ?
                ORDER BY id DESC
                LIMIT ?
            ) ORDER BY id ASC
            """,
            (user_id, limit),
        ).fetchall()

    return [
        {
            "id": str(r["id"]),
            "message": r["message"],
            "is_user": bool(r["is_user"]),
            "created_at": r["created_at"],
        }
        for r in rows
    ]


def clear_messages(user_id: str):
    with closing(connect()) as conn:
        conn.execute("DELETE FROM chat_messages WHERE user_id = ?", (user_id,))
