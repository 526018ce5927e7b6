# pulse/journal.py
from contextlib import closing
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from pulse.analysis import analyze_entry
from pulse.db import connect, ensure_user, now_iso, today
from pulse.log import get_logger

log = get_logger("journal")

PROMPTS = [
    "What am I grateful for today?",
    "How did I grow today?",
    "What challenged me and how did I handle it?",
    "What brought me joy today?",
    "What would I tell my younger self?",
]

TITLE_FROM_CONTENT_CHARS = 40
RANGE_DAYS = {"week": 7, "month": 30}


def _entry_dict(r) -> Dict[str, Any]:
    return {
        "id": str(r["id"]),
        "title": r["title"],
        "content": r["content"],
        "mood": r["mood"],
        "date": r["day"],
        "created_at": r["created_at"],
        "updated_at": r["updated_at"],
    }


def _get_row(conn, user_id: str, entry_id):
    r = conn.execute(
        "SELECT * FROM journal_entries WHERE id = ? AND user_id = ?",
        (int(entry_id), user_id),
    ).fetchone()
    if not r:
        raise LookupError(f"journal entry {entry_id} not found")
    return r


def default_title(title: Optional[str], content: str) -> str:
    return ((title or "").strip() or content[:TITLE_FROM_CONTENT_CHARS] or "Untitled").strip()


def list_entries(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM journal_entries WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
    return [_entry_dict(r) for r in rows]


def get_entry(user_id: str, entry_id) -> Dict[str, Any]:
    with closing(connect()) as conn:
        return _entry_dict(_get_row(conn, user_id, entry_id))


def add_entry(user_id: str, title: Optional[str], content: str) -> Dict[str, Any]:
    content = (content or "").strip()
    if not content:
        raise ValueError("content required")
    title = default_title(title, content)
    mood = analyze_entry(content, title).mood

    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        cur = conn.execute(
            """
            INSERT INTO journal_entries(user_id, title, content, mood, day, created_at, updated_at)
            VALUES(?,?,?,?,?,?,?)
            """,
            (user_id, title, content, mood, today().isoformat(), now_iso(), now_iso()),
        )
        entry = _entry_dict(_get_row(conn, user_id, cur.lastrowid))
    log.info("Saved journal entry %s for %s", entry["id"], user_id)
    return entry


def update_entry(user_id: str, entry_id, title: str, content: str) -> Dict[str, Any]:
    title = (title or "").strip()
    content = (content or "").strip()
    if not title or not content:
        raise ValueError("title and content required")
    mood = analyze_entry(content, title).mood

    with closing(connect()) as conn:
        _get_row(conn, user_id, entry_id)
        conn.execute(
            """
            UPDATE journal_entries
            SET title = ?, content = ?, mood = ?, updated_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (title, content, mood, now_iso(), int(entry_id), user_id),
        )
        return _entry_dict(_get_row(conn, user_id, entry_id))


def delete_entry(user_id: str, entry_id):
    with closing(connect()) as conn:
        _get_row(conn, user_id, entry_id)
        conn.execute("DELETE FROM journal_entries WHERE id = ? AND user_id = ?", (int(entry_id), user_id))


def in_date_range(entry_date: str, date_range: str, on: Optional[date] = None) -> bool:
    if date_range == "all":
        return True
    on = on or today()
    try:
        d = date.fromisoformat(entry_date)
    except (TypeError, ValueError):
        return False
    if date_range == "today":
        return d == on
    days = RANGE_DAYS.get(date_range)
    if days is None:
        raise ValueError(f"unknown date range: {date_range}")
    return d > on - timedelta(days=days)


def filter_entries(
    entries: Iterable[Dict[str, Any]],
    search_term: str = "",
    date_range: str = "all",
    category: str = "all",
    sentiment: str = "all",
    mood: str = "all",
    on: Optional[date] = None,
) -> List[Dict[str, Any]]:
    term = (search_term or "").lower()
    out = []
    for entry in entries:
        title = entry.get("title") or ""
        content = entry.get("content") or ""
        if term and term not in title.lower() and term not in content.lower():
            continue
        if not in_date_range(entry.get("date") or "", date_range, on):
            continue
        if (category, sentiment, mood) != ("all", "all", "all"):
            tags = analyze_entry(content, title)
            if category != "all" and tags.category != category:
                continue
            if sentiment != "all" and tags.sentiment != sentiment:
                continue
            if mood != "all" and tags.mood != mood:
                continue
        out.append(entry)
    return out
