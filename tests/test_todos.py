from __future__ import annotations

import pytest

from pulse.habits import add_habit
from pulse.suggestions import (
    clear_chat_suggestions,
    list_chat_suggestions,
    normalize_title,
    register_chat_suggestions,
    remove_chat_suggestion,
)
from pulse.todos import add_todos, delete_todo, list_todos, toggle_todo


def test_add_todos_dedupes(user: str) -> None:
    added = add_todos(user, [
        {"title": "Drink water"},
        {"title": " drink water "},
        {"title": "Stretch", "category": "exercise"},
    ])
    assert [t["title"] for t in added] == ["Drink water", "Stretch"]
    assert [t["category"] for t in added] == ["health", "exercise"]

    assert add_todos(user, [{"title": "DRINK WATER"}]) == []
    assert len(list_todos(user)) == 2


def test_blank_titles_are_skipped(user: str) -> None:
    assert add_todos(user, [{"title": "  "}, {}]) == []


def test_toggle_and_delete(user: str) -> None:
    (todo,) = add_todos(user, [{"title": "Call mom"}])
    assert toggle_todo(user, todo["id"])["completed"] is True
    assert toggle_todo(user, todo["id"])["completed"] is False

    delete_todo(user, todo["id"])
    assert list_todos(user) == []
    with pytest.raises(LookupError):
        delete_todo(user, todo["id"])


def test_normalize_title() -> None:
    assert normalize_title("  Go for a Walk! ") == "go for a walk"
    assert normalize_title("10-min stretch") == "10min stretch"


def test_register_suggestions_skips_known_titles(user: str) -> None:
    add_habit(user, "Meditate")
    add_todos(user, [{"title": "Drink water"}])

    added = register_chat_suggestions(user, [
        {"title": "meditate."},
        {"title": "Drink Water!"},
        {"title": "Walk 10 min", "category": "exercise"},
        {"title": "walk 10 min"},
    ])
    assert added == ["Walk 10 min"]

    (s,) = list_chat_suggestions(user)
    assert (s["name"], s["category"], s["source"]) == ("Walk 10 min", "exercise", "chatbot")

    # already suggested
    assert register_chat_suggestions(user, [{"title": "Walk 10 min"}]) == []


def test_remove_and_clear_suggestions(user: str) -> None:
    register_chat_suggestions(user, [{"title": "One"}, {"title": "Two"}])
    first = list_chat_suggestions(user)[0]
    remove_chat_suggestion(user, first["id"])
    assert [s["name"] for s in list_chat_suggestions(user)] == ["Two"]

    with pytest.raises(LookupError):
        remove_chat_suggestion(user, first["id"])

    clear_chat_suggestions(user)
    assert list_chat_suggestions(user) == []
