from __future__ import annotations

import pytest

from pulse.timepicker import decrement, dial, increment, normalize_time, parse_time, set_part


def test_parse_time() -> None:
    assert parse_time("07:30") == (7, 30)
    assert parse_time("") == (None, None)
    assert parse_time("ab:15") == (None, 15)


def test_set_part_falls_back_to_noon() -> None:
    assert set_part("", "hour", 5) == "05:00"
    assert set_part("", "minute", 15) == "12:15"
    assert set_part("07:30", "minute", 45) == "07:45"


@pytest.mark.parametrize(
    "value, part, expected",
    [
        ("23:55", "hour", "00:55"),
        ("23:55", "minute", "23:00"),
        ("08:10", "minute", "08:15"),
        ("", "hour", "00:00"),
        ("", "minute", "12:00"),
    ],
)
def test_increment(value: str, part: str, expected: str) -> None:
    assert increment(value, part) == expected


@pytest.mark.parametrize(
    "value, part, expected",
    [
        ("00:00", "hour", "23:00"),
        ("00:00", "minute", "00:55"),
        ("09:20", "minute", "09:15"),
        ("", "hour", "23:00"),
        ("", "minute", "12:55"),
    ],
)
def test_decrement(value: str, part: str, expected: str) -> None:
    assert decrement(value, part) == expected


def test_normalize_time() -> None:
    assert normalize_time("7:5") == "07:05"
    with pytest.raises(ValueError):
        normalize_time("25:00")
    with pytest.raises(ValueError):
        normalize_time("noon")


def test_hour_dial() -> None:
    d = dial("hour", "07:30")
    assert len(d["items"]) == 24
    assert [i["value"] for i in d["items"] if i["selected"]] == [7]
    top = d["items"][0]
    assert top["x"] == pytest.approx(110)
    assert top["y"] == pytest.approx(25)
    assert d["active"] is True


def test_minute_dial() -> None:
    d = dial("minute", "07:30", active="hour")
    assert [i["value"] for i in d["items"]] == list(range(0, 60, 5))
    bottom = next(i for i in d["items"] if i["selected"])
    assert bottom["value"] == 30
    assert bottom["label"] == "30"
    assert (bottom["x"], bottom["y"]) == (pytest.approx(110), pytest.approx(195))
    assert d["active"] is False
