from __future__ import annotations

import pytest

from pulse.checkins import add_sleep_entry, add_stress_entry, hours_between, list_sleep_entries, list_stress_entries
from pulse.settings import get_settings, update_settings


def test_stress_entries(user: str) -> None:
    first = add_stress_entry(user, 3, " calm morning ")
    second = add_stress_entry(user, 8)
    assert first["note"] == "calm morning"
    assert [e["id"] for e in list_stress_entries(user)] == [second["id"], first["id"]]


@pytest.mark.parametrize("level", [0, 11])
def test_stress_level_range(user: str, level: int) -> None:
    with pytest.raises(ValueError):
        add_stress_entry(user, level)


def test_hours_between() -> None:
    assert hours_between("23:00", "07:00") == 8.0
    assert hours_between("22:30", "06:15") == 7.75
    assert hours_between("01:00", "09:30") == 8.5


def test_sleep_entry_derives_duration(user: str) -> None:
    entry = add_sleep_entry(user, "23:15", "7:00", quality=4, notes="woke once")
    assert entry["bed_time"] == "23:15"
    assert entry["wake_time"] == "07:00"
    assert entry["sleep_duration"] == 7.75
    assert list_sleep_entries(user)[0]["id"] == entry["id"]


def test_sleep_entry_explicit_duration(user: str) -> None:
    entry = add_sleep_entry(user, "23:00", "07:00", quality=3, duration=6.5)
    assert entry["sleep_duration"] == 6.5


def test_sleep_entry_validation(user: str) -> None:
    with pytest.raises(ValueError):
        add_sleep_entry(user, "late", "07:00", quality=3)
    with pytest.raises(ValueError):
        add_sleep_entry(user, "23:00", "07:00", quality=6)


def test_settings_defaults(user: str) -> None:
    s = get_settings(user)
    assert (s["notifications"], s["sound"], s["reminder_time"]) == (True, False, "21:00")
    assert s["app"] == {"name": "Peace Pulse Journal", "version": "1.0.0"}


def test_settings_partial_update(user: str) -> None:
    update_settings(user, sound=True)
    s = update_settings(user, reminder_time="7:30")
    assert (s["notifications"], s["sound"], s["reminder_time"]) == (True, True, "07:30")

    s = update_settings(user, notifications=False)
    assert s["notifications"] is False
    assert s["sound"] is True


def test_settings_reject_bad_time(user: str) -> None:
    with pytest.raises(ValueError):
        update_settings(user, reminder_time="24:00")
    assert get_settings(user)["reminder_time"] == "21:00"
