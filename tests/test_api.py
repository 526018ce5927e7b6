from __future__ import annotations

import pytest

import main
from pulse import coach

ME = {"X-User-Id": "alice"}
OTHER = {"X-User-Id": "bob"}


def test_root_and_health(client) -> None:
    assert client.get("/").json()["ok"] is True
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/health/full").json() == {"ok": True, "db": "ok"}
    assert client.get("/debug/version").json()["version"] == "1.0.0"


def test_habit_flow(client) -> None:
    r = client.post("/habits", json={"name": "Meditate", "category": "mindfulness"}, headers=ME)
    habit = r.json()["habit"]

    r = client.post(f"/habits/{habit['id']}/toggle", headers=ME)
    assert r.json()["habit"]["completed"] is True

    overview = client.get("/habits", headers=ME).json()
    assert overview["progress"] == {"completed": 1, "total": 1, "percentage": 100}
    assert overview["streak"]["current"] == 1
    assert overview["pinned_tasks"] == []

    client.post(f"/habits/{habit['id']}/pin", headers=ME)
    assert len(client.get("/habits", headers=ME).json()["pinned_tasks"]) == 1

    days = client.get("/habits/completions", params={"days": 7}, headers=ME).json()["days"]
    assert len(days) == 7
    assert days[-1]["level"] == "all"


def test_blank_habit_is_rejected(client) -> None:
    r = client.post("/habits", json={"name": "  "}, headers=ME)
    assert r.status_code == 200
    assert r.json()["ok"] is False


def test_missing_habit_is_404(client) -> None:
    assert client.post("/habits/999/toggle", headers=ME).status_code == 404
    assert client.delete("/habits/999", headers=ME).status_code == 404


def test_users_are_isolated(client) -> None:
    habit = client.post("/habits", json={"name": "Read"}, headers=ME).json()["habit"]
    assert client.get("/habits", headers=OTHER).json()["habits"] == []
    assert client.post(f"/habits/{habit['id']}/toggle", headers=OTHER).status_code == 404


def test_todos(client) -> None:
    r = client.post("/todos", json={"todos": [{"title": "Water plants"}, {"title": "water plants"}]}, headers=ME)
    (todo,) = r.json()["added"]
    assert client.post(f"/todos/{todo['id']}/toggle", headers=ME).json()["todo"]["completed"] is True
    assert client.delete(f"/todos/{todo['id']}", headers=ME).json()["ok"] is True
    assert client.get("/todos", headers=ME).json() == {"todos": []}


def test_journal_crud_and_filters(client) -> None:
    r = client.post("/journal", json={"content": "Went to the gym and felt great"}, headers=ME)
    entry = r.json()["entry"]
    assert entry["sentiment"] == "positive"
    assert entry["category"] == "exercise"

    r = client.post(
        "/journal",
        json={"content": "Worried about the deadline", "prompt": "What's on your mind?"},
        headers=ME,
    )
    assert r.json()["entry"]["title"] == "What's on your mind?"

    found = client.get("/journal", params={"search": "gym"}, headers=ME).json()["entries"]
    assert [e["id"] for e in found] == [entry["id"]]
    assert len(client.get("/journal", params={"sentiment": "negative"}, headers=ME).json()["entries"]) == 1

    r = client.put(f"/journal/{entry['id']}", json={"title": "Gym", "content": "Leg day"}, headers=ME)
    assert r.json()["entry"]["title"] == "Gym"

    assert client.delete(f"/journal/{entry['id']}", headers=ME).json()["ok"] is True
    assert client.get(f"/journal/{entry['id']}", headers=ME).status_code == 404


def test_journal_rejects_empty_content(client) -> None:
    assert client.post("/journal", json={"content": "  "}, headers=ME).json()["ok"] is False


def test_journal_unknown_range_is_422(client) -> None:
    assert client.get("/journal", params={"date_range": "year"}, headers=ME).status_code == 422


def test_journal_graph_and_layout(client) -> None:
    for text in ("Walked in the park feeling calm", "Walked in the rain feeling calm", "Studied for exam"):
        client.post("/journal", json={"content": text}, headers=ME)

    graph = client.get("/journal/graph", headers=ME).json()
    assert len(graph["nodes"]) == 3
    assert {l["type"] for l in graph["links"]} >= {"temporal"}

    bare = client.get("/journal/graph", params={"show_links": False}, headers=ME).json()
    assert bare["links"] == []

    first = graph["nodes"][0]["id"]
    r = client.post(
        "/journal/graph/layout",
        json={"width": 400, "height": 300, "pinned": {first: [10, 20]}, "settings": {"node_size": 8}},
        headers=ME,
    )
    out = r.json()
    assert out["ok"] is True
    nodes = {n["id"]: n for n in out["nodes"]}
    assert (nodes[first]["x"], nodes[first]["y"]) == (10, 20)
    assert all(n["radius"] == 8 for n in out["nodes"])
    assert out["settings"]["link_distance"] == 80


def test_layout_rejects_bad_settings(client) -> None:
    r = client.post("/journal/graph/layout", json={"settings": {"link_distance": 500}}, headers=ME)
    assert r.status_code == 422


def test_layout_unknown_pin(client) -> None:
    client.post("/journal", json={"content": "Only one"}, headers=ME)
    r = client.post("/journal/graph/layout", json={"pinned": {"nope": [1, 2]}}, headers=ME)
    assert r.json()["ok"] is False


def test_chat_registers_suggested_tasks(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        coach,
        "call_llm",
        lambda prompt: 'A short walk helps.\nTASKS: {"tasks": [{"title": "Walk 10 minutes", "category": "exercise"}]}',
    )
    r = client.post("/chat", json={"message": "I feel restless"}, headers=ME)
    body = r.json()
    assert body["assistant_message"] == "A short walk helps."
    assert body["suggested"] == ["Walk 10 minutes"]
    assert [m["is_user"] for m in body["messages"]] == [True, False]

    (s,) = client.get("/suggestions", headers=ME).json()["suggestions"]
    assert s["name"] == "Walk 10 minutes"

    # same reply again adds nothing new
    assert client.post("/chat", json={"message": "Again?"}, headers=ME).json()["suggested"] == []

    client.delete(f"/suggestions/{s['id']}", headers=ME)
    assert client.get("/suggestions", headers=ME).json()["suggestions"] == []

    client.post("/chat/clear", headers=ME)
    assert client.get("/chat", headers=ME).json()["messages"] == []


def test_chat_requires_message(client) -> None:
    assert client.post("/chat", json={"message": " "}, headers=ME).json()["ok"] is False


def test_checkins_and_settings(client) -> None:
    assert client.post("/stress", json={"stress_level": 4}, headers=ME).json()["ok"] is True
    assert client.post("/stress", json={"stress_level": 12}, headers=ME).json()["ok"] is False

    r = client.post("/sleep", json={"bed_time": "23:00", "wake_time": "06:30", "sleep_quality": 4}, headers=ME)
    assert r.json()["entry"]["sleep_duration"] == 7.5

    r = client.post("/settings", json={"reminder_time": "20:15"}, headers=ME)
    assert r.json()["settings"]["reminder_time"] == "20:15"
    assert client.get("/settings", headers=OTHER).json()["settings"]["reminder_time"] == "21:00"

    everything = client.get("/wellness", headers=ME).json()
    assert len(everything["stress_entries"]) == 1
    assert len(everything["sleep_entries"]) == 1


def test_time_adjust(client) -> None:
    post = lambda **body: client.post("/time/adjust", json=body).json()
    assert post(value="23:55", part="hour", action="increment") == {"value": "00:55", "mode": "hour"}
    assert post(value="07:00", part="minute", action="decrement") == {"value": "07:55", "mode": "minute"}
    assert post(value="", part="hour", action="set", n=9) == {"value": "09:00", "mode": "minute"}
    assert post(value="09:00", part="minute", action="set", n=60)["ok"] is False


def test_time_dial(client) -> None:
    d = client.get("/time/dial", params={"part": "minute", "value": "10:15", "active": "minute"}).json()
    assert len(d["items"]) == 12
    assert [i["value"] for i in d["items"] if i["selected"]] == [15]
    assert d["active"] is True


@pytest.mark.parametrize("body", [
    '{"pinned": {"1": [NaN, 0]}}',
    '{"pinned": {"1": [0, Infinity]}}',
    '{"width": 1e999}',
    '{"pinned": {"1": [1e300, 0]}}',
    '{"pinned": {"1": [1, 2, 3]}}',
    '{"settings": {"charge_strength": NaN}}',
])
def test_layout_rejects_non_finite_numbers(client, body: str) -> None:
    client.post("/journal", json={"content": "Only one"}, headers=ME)
    r = client.post(
        "/journal/graph/layout",
        content=body,
        headers={**ME, "Content-Type": "application/json"},
    )
    assert r.status_code == 422
    assert r.json()["detail"]


def test_chat_survives_malformed_tasks(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        coach,
        "call_llm",
        lambda prompt: 'Rest a little.\nTASKS: {"tasks": [{"title": "Nap", "category": 3}, {"title": 5}]}',
    )
    body = client.post("/chat", json={"message": "So tired"}, headers=ME).json()
    assert body["ok"] is True
    assert body["assistant_message"] == "Rest a little."
    assert body["suggested"] == ["Nap"]

    monkeypatch.setattr(coach, "call_llm", lambda prompt: 'Okay.\nTASKS: {"tasks": 5}')
    body = client.post("/chat", json={"message": "Still tired"}, headers=ME).json()
    assert (body["ok"], body["suggested"]) == (True, [])
    assert [m["is_user"] for m in body["messages"]] == [True, False, True, False]


def test_chat_stores_fallback_when_coach_fails(client, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(user_id, text):
        raise RuntimeError("context failed")

    monkeypatch.setattr(main, "coach_reply", broken)
    body = client.post("/chat", json={"message": "Hi there friend"}, headers=ME).json()
    assert body["assistant_message"] == coach.FALLBACK_REPLY
    assert [m["is_user"] for m in body["messages"]] == [True, False]


def test_time_set_minute_keeps_minute_mode(client) -> None:
    r = client.post("/time/adjust", json={"value": "09:00", "part": "minute", "action": "set", "n": 30})
    assert r.json() == {"value": "09:30", "mode": "minute"}
    r = client.post("/time/adjust", json={"value": "09:00", "part": "hour", "action": "set", "n": 14})
    assert r.json() == {"value": "14:00", "mode": "minute"}