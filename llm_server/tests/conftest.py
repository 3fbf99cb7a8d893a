"""Pytest configuration and fixtures for the RealMap chat server tests."""

from __future__ import annotations

from typing import List, Sequence, Union

import pytest
from fastapi.testclient import TestClient

from mapchat.core.config import Settings
from mapchat.core.orchestrator import TurnOrchestrator
from mapchat.core.types import SessionTurn
from mapchat.main import create_app
from mapchat.providers.completion import ProviderError
from mapchat.runtime_state import SessionStore

INSTRUCTION = "You control a map."


class FakeGateway:
    """In-memory stand-in for CompletionGateway.

    Each call pops the next scripted reply; a ProviderError in the script is
    raised instead of returned. Every outbound turn list is recorded.
    """

    model = "fake-model"

    def __init__(self, replies: Sequence[Union[str, Exception]] = ()) -> None:
        self.replies: List[Union[str, Exception]] = list(replies)
        self.calls: List[List[SessionTurn]] = []

    def complete(self, turns: Sequence[SessionTurn]) -> str:
        self.calls.append(list(turns))
        if not self.replies:
            return "Okay."
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        provider_api_key="test-key",
        model_name="gpt-test",
    )


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(instruction=INSTRUCTION, max_turns=21)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def orchestrator(store: SessionStore, gateway: FakeGateway) -> TurnOrchestrator:
    return TurnOrchestrator(store, gateway)


@pytest.fixture
def client(test_settings: Settings, gateway: FakeGateway) -> TestClient:
    """TestClient over a fresh app wired to the fake gateway."""
    app = create_app(settings=test_settings, gateway=gateway)
    return TestClient(app)


def provider_failure(detail: str = "Provider HTTP 503: overloaded") -> ProviderError:
    return ProviderError(detail, status_code=503)
