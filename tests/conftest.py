from __future__ import annotations

import json
import os
import socket
import tempfile
from typing import Any

import pytest

# Point the app at a throwaway SQLite file before any backend module is imported.
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="quiz-tests-"), "quiz.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class OutboundConnectionRefused(OSError):
    """Raised instead of opening a socket to a remote host."""


def _refuse(*args: Any, **kwargs: Any) -> Any:
    target = args[0] if args else kwargs.get("address") or kwargs.get("host")
    raise OutboundConnectionRefused(f"tests may not connect to {target!r}; run with ALLOW_NETWORK=1 or mark the test")


@pytest.fixture(autouse=True)
def _no_outbound_connections(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    # Gemini and hosted Postgres are never reached from unit tests
    allowed = os.getenv("ALLOW_NETWORK") == "1" or any(
        request.node.get_closest_marker(name) for name in ("integration", "network")
    )
    if not allowed:
        for name in ("create_connection", "getaddrinfo"):
            monkeypatch.setattr(socket, name, _refuse)


class FakeClient:
    """Stands in for GeminiClient: returns ``text`` or raises ``error``."""

    model_name = "fake-model"

    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


def make_question(text: str = "What is 2 + 2?", correct: int | None = 1, count: int = 4) -> dict:
    return {
        "question": text,
        "options": [{"text": f"Option {i}", "isCorrect": i == correct} for i in range(count)],
    }


def make_payload(title: str = "Math Quiz", questions: list[dict] | None = None) -> dict:
    return {"title": title, "questions": questions if questions is not None else [make_question()]}


@pytest.fixture
def fake_client():
    return FakeClient(json.dumps(make_payload()))
