# pulse/checkins.py
from contextlib import closing
from typing import Any, Dict, List, Optional

from pulse.db import connect, ensure_user, now_iso
from pulse.timepicker import normalize_time, parse_time

STRESS_MIN, STRESS_MAX = 1, 10
QUALITY_MIN, QUALITY_MAX = 1, 5


def _stress_dict(r) -> Dict[str, Any]:
    return {
        "id": str(r["id"]),
        "stress_level": int(r["stress_level"]),
        "note": r["note"] or "",
        "created_at": r["created_at"],
    }


def _sleep_dict(r) -> Dict[str, Any]:
    return {
        "id": str(r["id"]),
        "sleep_duration": float(r["sleep_duration"]),
        "sleep_quality": int(r["sleep_quality"]),
        "bed_time": r["bed_time"],
        "wake_time": r["wake_time"],
        "notes": r["notes"] or "",
        "created_at": r["created_at"],
    }


def add_stress_entry(user_id: str, level: int, note: str = "") -> Dict[str, Any]:
    level = int(level)
    if level < STRESS_MIN or level > STRESS_MAX:
        raise ValueError(f"stress_level must be {STRESS_MIN}..{STRESS_MAX}")

    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        cur = conn.execute(
            "INSERT INTO stress_entries(user_id, stress_level, note, created_at) VALUES(?,?,?,?)",
            (user_id, level, (note or "").strip(), now_iso()),
        )
        r = conn.execute("SELECT * FROM stress_entries WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _stress_dict(r)


def list_stress_entries(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM stress_entries WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
    return [_stress_dict(r) for r in rows]


def hours_between(bed_time: str, wake_time: str) -> float:
    """Hours slept from bed time to wake time, wrapping past midnight."""
    bed_h, bed_m = parse_time(bed_time)
    wake_h, wake_m = parse_time(wake_time)
    minutes = (wake_h * 60 + wake_m) - (bed_h * 60 + bed_m)
    if minutes <= 0:
        minutes += 24 * 60
    return round(minutes / 60, 2)


def add_sleep_entry(
    user_id: str,
    bed_time: str,
    wake_time: str,
    quality: int,
    duration: Optional[float] = None,
    notes: str = "",
) -> Dict[str, Any]:
    bed_time = normalize_time(bed_time)
    wake_time = normalize_time(wake_time)
    quality = int(quality)
    if quality < QUALITY_MIN or quality > QUALITY_MAX:
        raise ValueError(f"sleep_quality must be {QUALITY_MIN}..{QUALITY_MAX}")
    if duration is None:
        duration = hours_between(bed_time, wake_time)
    elif duration < 0 or duration > 24:
        raise ValueError("sleep_duration must be 0..24 hours")

    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        cur = conn.execute(
            """
            INSERT INTO sleep_entries(user_id, sleep_duration, sleep_quality, bed_time, wake_time, notes, created_at)
            VALUES(?,?,?,?,?,?,?)
            """,
            (user_id, float(duration), quality, bed_time, wake_time, (notes or "").strip(), now_iso()),
        )
        r = conn.execute("SELECT * FROM sleep_entries WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _sleep_dict(r)


def list_sleep_entries(user_id: str) -> List[Dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute(
            "SELECT * FROM sleep_entries WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
    return [_sleep_dict(r) for r in rows]
