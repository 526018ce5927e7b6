# pulse/suggestions.py
"""Tasks proposed by the coach, kept apart until the user adopts them."""
import re
from contextlib import closing
from typing import Any, Dict, Iterable, List

from pulse.db import connect, ensure_user, now_iso

DEFAULT_CATEGORY = "health"
_NON_WORD = re.compile(r"[^a-z0-9\s]")


def normalize_title(title: str) -> str:
    return _NON_WORD.sub("", (title or "").lower().strip())


def _suggestion_dict(r) -> Dict[str, Any]:
    return {
        "id": str(r["id"]),
        "name": r["name"],
        "category": r["category"],
        "completed": bool(r["completed"]),
        "streak": int(r["streak"] or 0),
        "source": r["source"],
        "timestamp": r["created_at"],
    }


def list_chat_suggestions(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM chat_suggestions WHERE user_id = ? ORDER BY id ASC",
            (user_id,),
        ).fetchall()
    return [_suggestion_dict(r) for r in rows]


def register_chat_suggestions(user_id: str, tasks: Iterable[Dict[str, Any]]) -> List[str]:
    """
    Store coach-proposed tasks the user does not already have.

    A task is skipped when its normalized title matches an existing suggestion,
    habit or todo. Returns the titles that were added.
    """
    added: List[str] = []
    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        known = set()
        for sql in (
            "SELECT name AS t FROM chat_suggestions WHERE user_id = ?",
            "SELECT name AS t FROM habits WHERE user_id = ?",
            "SELECT title AS t FROM todos WHERE user_id = ?",
        ):
            known.update(normalize_title(r["t"]) for r in conn.execute(sql, (user_id,)).fetchall())

        for task in tasks:
            title = (task.get("title") or "").strip()
            key = normalize_title(title)
            if not title or key in known:
                continue
            category = (task.get("category") or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY
            conn.execute(
                """
                INSERT INTO chat_suggestions(user_id, name, category, completed, streak, source, created_at)
                VALUES(?,?,?,0,0,'chatbot',?)
                """,
                (user_id, title, category, now_iso()),
            )
            known.add(key)
            added.append(title)
    return added


def remove_chat_suggestion(user_id: str, suggestion_id):
    with closing(connect()) as conn:
        cur = conn.execute(
            "DELETE FROM chat_suggestions WHERE id = ? AND user_id = ?",
            (int(suggestion_id), user_id),
        )
        if cur.rowcount == 0:
            raise LookupError(f"suggestion {suggestion_id} not found")


def clear_chat_suggestions(user_id: str):
    with closing(connect()) as conn:
        conn.execute("DELETE FROM chat_suggestions WHERE user_id = ?", (user_id,))
