# pulse/habits.py
import math
from contextlib import closing
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set

from pulse.db import connect, ensure_user, now_iso, today
from pulse.log import get_logger

log = get_logger("habits")

DEFAULT_CATEGORY = "health"
CATEGORY_COLORS = {
    "mindfulness": "accent",
    "health": "primary",
    "reflection": "secondary",
    "exercise": "stress-low",
    "learning": "stress-very-low",
}


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("habit name required")
    return name


def _habit_dict(conn, r) -> Dict[str, Any]:
    day = today()
    days = _completion_days(conn, r["id"])
    return {
        "id": str(r["id"]),
        "name": r["name"],
        "category": r["category"],
        "color": CATEGORY_COLORS.get(r["category"]),
        "completed": day in days,
        "is_permanent": bool(r["is_permanent"]),
        # a missed day breaks the stored streak without any write
        "streak": compute_streak(days, day),
        "best_streak": int(r["best_streak"] or 0),
        "created_at": r["created_at"],
        "updated_at": r["updated_at"],
    }


def compute_streak(days: Set[date], on: date) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open."""
    cursor = on if on in days else on - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _completion_days(conn, habit_id: int) -> Set[date]:
    rows = conn.execute("SELECT day FROM habit_completions WHERE habit_id = ?", (habit_id,)).fetchall()
    return {date.fromisoformat(r["day"]) for r in rows}


def _get_row(conn, user_id: str, habit_id):
    r = conn.execute(
        "SELECT * FROM habits WHERE id = ? AND user_id = ?",
        (int(habit_id), user_id),
    ).fetchone()
    if not r:
        raise LookupError(f"habit {habit_id} not found")
    return r


def _done_today(conn, habit_id: int) -> bool:
    r = conn.execute(
        "SELECT 1 FROM habit_completions WHERE habit_id = ? AND day = ?",
        (habit_id, today().isoformat()),
    ).fetchone()
    return r is not None


def list_habits(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM habits WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
        return [_habit_dict(conn, r) for r in rows]


def get_habit(user_id: str, habit_id) -> Dict[str, Any]:
    with closing(connect()) as conn:
        r = _get_row(conn, user_id, habit_id)
        return _habit_dict(conn, r)


def add_habit(user_id: str, name: str, category: str = DEFAULT_CATEGORY, is_permanent: bool = False) -> Dict[str, Any]:
    name = _clean_name(name)
    category = (category or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY
    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        cur = conn.execute(
            """
            INSERT INTO habits(user_id, name, category, is_permanent, streak, best_streak, created_at, updated_at)
            VALUES(?,?,?,?,0,0,?,?)
            """,
            (user_id, name, category, 1 if is_permanent else 0, now_iso(), now_iso()),
        )
        habit = _habit_dict(conn, _get_row(conn, user_id, cur.lastrowid))
    log.info("Added habit %s for %s", habit["id"], user_id)
    return habit


def add_pinned_task(user_id: str, name: str) -> Dict[str, Any]:
    return add_habit(user_id, name, DEFAULT_CATEGORY, is_permanent=True)


def delete_habit(user_id: str, habit_id):
    with closing(connect()) as conn:
        _get_row(conn, user_id, habit_id)
        conn.execute("DELETE FROM habits WHERE id = ? AND user_id = ?", (int(habit_id), user_id))


def _update(user_id: str, habit_id, sql: str, params: tuple) -> Dict[str, Any]:
    with closing(connect()) as conn:
        _get_row(conn, user_id, habit_id)
        conn.execute(sql, params + (now_iso(), int(habit_id), user_id))
        r = _get_row(conn, user_id, habit_id)
        return _habit_dict(conn, r)


def rename_habit(user_id: str, habit_id, name: str) -> Dict[str, Any]:
    name = _clean_name(name)
    return _update(user_id, habit_id, "UPDATE habits SET name = ?, updated_at = ? WHERE id = ? AND user_id = ?", (name,))


def pin_habit(user_id: str, habit_id) -> Dict[str, Any]:
    return _update(user_id, habit_id, "UPDATE habits SET is_permanent = ?, updated_at = ? WHERE id = ? AND user_id = ?", (1,))


def unpin_habit(user_id: str, habit_id) -> Dict[str, Any]:
    return _update(user_id, habit_id, "UPDATE habits SET is_permanent = ?, updated_at = ? WHERE id = ? AND user_id = ?", (0,))


def toggle_habit(user_id: str, habit_id) -> Dict[str, Any]:
    day = today()
    with closing(connect()) as conn:
        r = _get_row(conn, user_id, habit_id)
        hid = r["id"]

        if _done_today(conn, hid):
            conn.execute("DELETE FROM habit_completions WHERE habit_id = ? AND day = ?", (hid, day.isoformat()))
        else:
            conn.execute(
                "INSERT INTO habit_completions(habit_id, user_id, day, completed_at) VALUES(?,?,?,?)",
                (hid, user_id, day.isoformat(), now_iso()),
            )

        streak = compute_streak(_completion_days(conn, hid), day)
        best = max(int(r["best_streak"] or 0), streak)
        conn.execute(
            "UPDATE habits SET streak = ?, best_streak = ?, updated_at = ? WHERE id = ?",
            (streak, best, now_iso(), hid),
        )
        r = _get_row(conn, user_id, hid)
        return _habit_dict(conn, r)


def pinned_tasks(habits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [h for h in habits if h["is_permanent"]]


def progress(habits: List[Dict[str, Any]]) -> Dict[str, int]:
    total = len(habits)
    completed = sum(1 for h in habits if h["completed"])
    percentage = math.floor(completed * 100 / total + 0.5) if total else 0
    return {"completed": completed, "total": total, "percentage": percentage}


def streak_summary(habits: List[Dict[str, Any]]) -> Dict[str, int]:
    if not habits:
        return {"current": 0, "best": 0}
    current = max(h["streak"] for h in habits)
    best = max(max(h["best_streak"] for h in habits), current)
    return {"current": current, "best": best}


def completion_level(rate: float, is_today: bool) -> str:
    if rate == 1:
        return "all"
    if rate >= 0.5:
        return "most"
    if rate > 0:
        return "some"
    if is_today:
        return "today"
    return "none"


def daily_completions(user_id: str, days: int = 30) -> List[Dict[str, Any]]:
    days = max(1, int(days))
    end = today()
    start = end - timedelta(days=days - 1)

    with closing(connect()) as conn:
        total = conn.execute(
            "SELECT COUNT(*) AS c FROM habits WHERE user_id = ?", (user_id,)
        ).fetchone()["c"]
        rows = conn.execute(
            """
            SELECT c.day, c.habit_id
            FROM habit_completions c
            JOIN habits h ON h.id = c.habit_id
            WHERE c.user_id = ? AND c.day BETWEEN ? AND ?
            ORDER BY c.day ASC, c.habit_id ASC
            """,
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchall()

    by_day: Dict[str, List[str]] = {}
    for r in rows:
        by_day.setdefault(r["day"], []).append(str(r["habit_id"]))

    out = []
    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        habit_ids = by_day.get(day, [])
        rate = len(habit_ids) / total if total else 0
        out.append({
            "date": day,
            "habit_ids": habit_ids,
            "total_habits": int(total),
            "completion_rate": rate,
            "level": completion_level(rate, offset == days - 1),
        })
    return out
