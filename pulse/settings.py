# pulse/settings.py
from contextlib import closing
from typing import Any, Dict, Optional

from pulse.config import APP_NAME, APP_VERSION
from pulse.db import connect, ensure_user, now_iso
from pulse.timepicker import normalize_time

DEFAULTS = {
    "notifications": True,
    "sound": False,
    "reminder_time": "21:00",
}


def get_settings(user_id: str) -> Dict[str, Any]:
    with closing(connect()) as conn:
        r = conn.execute(
            "SELECT notifications, sound, reminder_time FROM user_settings WHERE user_id = ?",
            (user_id,),
        ).fetchone()

    out = dict(DEFAULTS)
    if r:
        if r["notifications"] is not None:
            out["notifications"] = bool(r["notifications"])
        if r["sound"] is not None:
            out["sound"] = bool(r["sound"])
        if r["reminder_time"]:
            out["reminder_time"] = r["reminder_time"]
    out["app"] = {"name": APP_NAME, "version": APP_VERSION}
    return out


def update_settings(
    user_id: str,
    notifications: Optional[bool] = None,
    sound: Optional[bool] = None,
    reminder_time: Optional[str] = None,
) -> Dict[str, Any]:
    if reminder_time is not None:
        reminder_time = normalize_time(reminder_time)

    current = get_settings(user_id)
    values = (
        int(current["notifications"] if notifications is None else notifications),
        int(current["sound"] if sound is None else sound),
        current["reminder_time"] if reminder_time is None else reminder_time,
    )

    with closing(connect()) as conn:
        ensure_user(conn, user_id)
        conn.execute(
            """
            INSERT INTO user_settings(user_id, notifications, sound, reminder_time, updated_at)
            VALUES(?,?,?,?,?)
            ON CONFLICT(user_id) DO UPDATE SET
              notifications=excluded.notifications,
              sound=excluded.sound,
              reminder_time=excluded.reminder_time,
              updated_at=excluded.updated_at
            """,
            (user_id,) + values + (now_iso(),),
        )
    return get_settings(user_id)
