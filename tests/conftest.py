from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pulse import coach, db
from pulse.models import init_db


@pytest.fixture(autouse=True)
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Every test gets its own on-disk SQLite file with the schema in place.
    """
    path = tmp_path / "data" / "pulse-test.db"
    monkeypatch.setattr(db, "DB_PATH", path)
    init_db()
    return path


@pytest.fixture(autouse=True)
def no_llm(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """
    Never talk to a real model provider. Prompts sent to the coach are recorded.
    """
    prompts: list[str] = []

    def fake_call_llm(prompt: str) -> str:
        prompts.append(prompt)
        return "Try a slow breathing break."

    monkeypatch.setattr(coach, "call_llm", fake_call_llm)
    return prompts


@pytest.fixture
def client(db_path: Path):
    import main

    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def user() -> str:
    return "tester"
