# pulse/todos.py
from contextlib import closing
from typing import Any, Dict, Iterable, List

from pulse.db import connect, ensure_user, now_iso

DEFAULT_CATEGORY = "health"


def _todo_dict(r) -> Dict[str, Any]:
    return {
        "id": str(r["id"]),
        "title": r["title"],
        "category": r["category"],
        "completed": bool(r["completed"]),
        "created_at": r["created_at"],
        "updated_at": r["updated_at"],
    }


def _key(title: str) -> str:
    return (title or "").lower().strip()


def _get_row(conn, user_id: str, todo_id):
    r = conn.execute(
        "SELECT * FROM todos WHERE id = ? AND user_id = ?", (int(todo_id), user_id)
    ).fetchone()
    if not r:
        raise LookupError(f"todo {todo_id} not found")
    return r


def list_todos(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM todos WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
    return [_todo_dict(r) for r in rows]


def add_todos(user_id: str, items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insert todos whose title is not already on the list. Returns the new rows."""
    added = []
    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        rows = conn.execute("SELECT title FROM todos WHERE user_id = ?", (user_id,)).fetchall()
        seen = {_key(r["title"]) for r in rows}

        for item in items:
            title = (item.get("title") or "").strip()
            if not title or _key(title) in seen:
                continue
            category = (item.get("category") or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY
            cur = conn.execute(
                """
                INSERT INTO todos(user_id, title, category, completed, created_at, updated_at)
                VALUES(?,?,?,0,?,?)
                """,
                (user_id, title, category, now_iso(), now_iso()),
            )
            seen.add(_key(title))
            added.append(_todo_dict(_get_row(conn, user_id, cur.lastrowid)))
    return added


def toggle_todo(user_id: str, todo_id) -> Dict[str, Any]:
    with closing(connect()) as conn:
        r = _get_row(conn, user_id, todo_id)
        conn.execute(
            "UPDATE todos SET completed = ?, updated_at = ? WHERE id = ?",
            (0 if r["completed"] else 1, now_iso(), r["id"]),
        )
        return _todo_dict(_get_row(conn, user_id, todo_id))


def delete_todo(user_id: str, todo_id):
    with closing(connect()) as conn:
        _get_row(conn, user_id, todo_id)
        conn.execute("DELETE FROM todos WHERE id = ? AND user_id = ?", (int(todo_id), user_id))
