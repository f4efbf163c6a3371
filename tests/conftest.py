"""Shared pytest fixtures for the email agent client test suite."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from emailagent.config import Settings
from emailagent.events import EventChannel, MessageEvent, StorageBus
from emailagent.session.window import ScreenGeometry
from emailagent.state.schema import init_kv_table
from emailagent.state.store import KeyValueStore

API_BASE_URL = "http://localhost:8000"
API_ORIGIN = "http://localhost:8000"


class FakePopup:
    """Popup handle that records focus calls."""

    def __init__(self) -> None:
        self.focused = 0

    def focus(self) -> None:
        self.focused += 1


class FakeWindowHost:
    """WindowHost that records open calls and can simulate a popup blocker."""

    def __init__(self, blocked: bool = False) -> None:
        self.blocked = blocked
        self.opened: list[tuple[str, str, str]] = []
        self.popup = FakePopup()

    def geometry(self) -> ScreenGeometry:
        return ScreenGeometry(screen_x=100, screen_y=50, outer_width=1440, outer_height=900)

    def open(self, url: str, name: str, features: str) -> FakePopup | None:
        self.opened.append((url, name, features))
        if self.blocked:
            return None
        return self.popup


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the local development service."""
    return Settings(_env_file=None, api_base_url=API_BASE_URL)  # type: ignore[call-arg]


@pytest.fixture
def conn() -> sqlite3.Connection:
    """In-memory SQLite connection with the kv_store table."""
    connection = sqlite3.connect(":memory:")
    init_kv_table(connection)
    return connection


@pytest.fixture
def bus() -> StorageBus:
    return StorageBus()


@pytest.fixture
def messages() -> EventChannel[MessageEvent]:
    return EventChannel(name="message")


@pytest.fixture
def store(conn: sqlite3.Connection, bus: StorageBus) -> KeyValueStore:
    """Key-value store of tab ``tab-a`` for the service origin."""
    return KeyValueStore(conn, API_ORIGIN, bus=bus, tab_id="tab-a")


@pytest.fixture
def window_host() -> FakeWindowHost:
    return FakeWindowHost()


@pytest.fixture
def sample_auth() -> dict[str, Any]:
    """A representative payload delivered by the login flow."""
    return {
        "email": "jane@example.com",
        "name": "Jane Doe",
        "picture": "https://example.com/jane.png",
        "id_token": "id-token",
        "access_token": "access-token",
        "refresh_token": None,
        "expires_in": "3599",
    }


@pytest.fixture
def blocked_window_host() -> FakeWindowHost:
    """WindowHost whose popups are blocked."""
    return FakeWindowHost(blocked=True)


@pytest.fixture
def completed_body() -> dict[str, Any]:
    """Service answer for a fully completed run."""
    return {
        "status": "completed",
        "message": "Email sent.",
        "steps": [
            {"name": "Input", "status": "completed"},
            {"name": "Processing", "status": "completed"},
            {"name": "Sending", "status": "completed"},
            {"name": "Completed", "status": "completed"},
        ],
        "generated_email": {
            "recipient_email": "john@example.com",
            "subject": "Welcome!",
            "body": "Hi John\nWelcome aboard.",
        },
    }


class RecordingTransport:
    """Answers every request with a fixed JSON body and records the requests."""

    def __init__(self, body: Any, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, bytes):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, content=json.dumps(self.body).encode())

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for ``RecordingTransport`` instances."""
    return RecordingTransport
