# pulse/timepicker.py
"""Time-of-day dial: parsing, stepping and dial geometry for HH:MM values."""
import math
from typing import Dict, List, Optional, Tuple

from pulse.models import DialPart

DIAL_RADIUS = 85
DIAL_CENTER = 110
MINUTE_STEP = 5

FALLBACK_HOUR = 12
FALLBACK_MINUTE = 0


def _to_int(part: str) -> Optional[int]:
    try:
        return int(part)
    except (TypeError, ValueError):
        return None


def parse_time(value: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    parts = (value or "").split(":")
    hour = _to_int(parts[0].strip()) if parts else None
    minute = _to_int(parts[1].strip()) if len(parts) > 1 else None
    return hour, minute


def format_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def normalize_time(value: Optional[str]) -> str:
    """Strict HH:MM check used by stored fields (bed time, reminder time)."""
    hour, minute = parse_time(value)
    if hour is None or minute is None or not 0 <= hour < 24 or not 0 <= minute < 60:
        raise ValueError(f"invalid time of day: {value!r}")
    return format_time(hour, minute)


def set_part(value: Optional[str], part: DialPart, n: int) -> str:
    hour, minute = parse_time(value)
    hour = FALLBACK_HOUR if hour is None else hour
    minute = FALLBACK_MINUTE if minute is None else minute
    if part == "hour":
        hour = n
    else:
        minute = n
    return format_time(hour, minute)


def increment(value: Optional[str], part: DialPart) -> str:
    hour, minute = parse_time(value)
    if part == "hour":
        return set_part(value, "hour", 0 if hour is None else (hour + 1) % 24)
    return set_part(value, "minute", 0 if minute is None else (minute + MINUTE_STEP) % 60)


def decrement(value: Optional[str], part: DialPart) -> str:
    hour, minute = parse_time(value)
    if part == "hour":
        if hour is None:
            return set_part(value, "hour", 23)
        return set_part(value, "hour", 23 if hour == 0 else hour - 1)
    if minute is None:
        return set_part(value, "minute", 60 - MINUTE_STEP)
    return set_part(value, "minute", 60 - MINUTE_STEP if minute == 0 else minute - MINUTE_STEP)


def dial(part: DialPart, value: Optional[str] = None, active: Optional[DialPart] = None) -> Dict:
    count, step = (24, 1) if part == "hour" else (60, MINUTE_STEP)
    hour, minute = parse_time(value)
    current = hour if part == "hour" else minute

    items: List[Dict] = []
    for i in range(0, count, step):
        angle = (i / count) * 2 * math.pi - math.pi / 2
        items.append({
            "value": i,
            "label": f"{i:02d}",
            "x": DIAL_CENTER + DIAL_RADIUS * math.cos(angle),
            "y": DIAL_CENTER + DIAL_RADIUS * math.sin(angle),
            "selected": i == current,
        })

    return {
        "part": part,
        "active": (active or "hour") == part,
        "center": {"x": DIAL_CENTER, "y": DIAL_CENTER},
        "radius": DIAL_RADIUS,
        "value": value,
        "items": items,
    }
