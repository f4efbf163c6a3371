"""Tests for AuthSessionSync: restore, popup messages, other tabs, and login."""

from __future__ import annotations

import json
import sqlite3
from typing import Any

import pytest
from pydantic import ValidationError

from emailagent.config import Settings
from emailagent.domain.models import AuthPayload
from emailagent.events import EventChannel, MessageEvent, StorageBus
from emailagent.session.auth_sync import POPUP_BLOCKED_MESSAGE, AuthSessionSync, parse_auth_payload
from emailagent.state.store import KeyValueStore

ORIGIN = "http://localhost:8000"
KEY = "email-agent-auth"


@pytest.fixture
def make_sync(
    settings: Settings,
    store: KeyValueStore,
    messages: EventChannel[MessageEvent],
    bus: StorageBus,
    window_host: Any,
):
    """Factory building an AuthSessionSync over the shared fixtures."""

    def factory(host: Any = None) -> AuthSessionSync:
        return AuthSessionSync(settings, store, messages, bus, host or window_host)

    return factory


# ---------------------------------------------------------------------------
# parse_auth_payload()
# ---------------------------------------------------------------------------


class TestParseAuthPayload:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_value_is_none(self, raw: str | None) -> None:
        assert parse_auth_payload(raw) is None

    def test_payload_without_email_is_none(self) -> None:
        assert parse_auth_payload('{"name": "No Email"}') is None

    def test_integer_expires_in_is_kept(self) -> None:
        payload = parse_auth_payload('{"email": "a@example.com", "expires_in": 3599}')
        assert payload is not None
        assert payload.expires_in == 3599

    def test_malformed_json_raises(self) -> None:
        with pytest.raises(ValidationError):
            parse_auth_payload("{not json")


# ---------------------------------------------------------------------------
# restore()
# ---------------------------------------------------------------------------


class TestRestore:
    """Start-up restore from the key-value store."""

    def test_restores_valid_payload(
        self, make_sync: Any, store: KeyValueStore, sample_auth: dict[str, Any]
    ) -> None:
        store.set(KEY, json.dumps(sample_auth))
        sync = make_sync()

        sync.restore()

        assert sync.user is not None
        assert sync.user.email == "jane@example.com"
        assert sync.connect_label == "Connected as Jane Doe"

    def test_empty_store_leaves_state(self, make_sync: Any) -> None:
        sync = make_sync()
        sync.restore()
        assert sync.user is None
        assert sync.connect_label == "Connect with Google"

    @pytest.mark.parametrize(
        "raw",
        ["{not json", "[1, 2]", "null", '{"name": "No Email"}', '{"email": ""}'],
        ids=["malformed", "array", "null", "no-email", "empty-email"],
    )
    def test_invalid_payload_is_ignored(
        self, make_sync: Any, store: KeyValueStore, raw: str
    ) -> None:
        store.set(KEY, raw)
        sync = make_sync()

        sync.restore()

        assert sync.user is None


# ---------------------------------------------------------------------------
# on_external_message()
# ---------------------------------------------------------------------------


class TestExternalMessage:
    """Payloads posted back by the login popup."""

    def test_accepts_matching_origin_and_persists(
        self, make_sync: Any, store: KeyValueStore, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync()
        sync.auth_error = POPUP_BLOCKED_MESSAGE

        accepted = sync.on_external_message(ORIGIN, sample_auth)

        assert accepted is True
        assert sync.user is not None and sync.user.email == "jane@example.com"
        assert sync.auth_error is None
        stored = json.loads(store.get(KEY) or "{}")
        assert stored["email"] == "jane@example.com"
        assert stored["refresh_token"] is None

    def test_rejects_other_origin(
        self, make_sync: Any, store: KeyValueStore, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync()
        sync.on_external_message(ORIGIN, {"email": "first@example.com"})

        accepted = sync.on_external_message("https://evil.example.com", sample_auth)

        assert accepted is False
        assert sync.user is not None and sync.user.email == "first@example.com"
        assert json.loads(store.get(KEY) or "{}")["email"] == "first@example.com"

    def test_origin_must_match_exactly(self, make_sync: Any, sample_auth: dict[str, Any]) -> None:
        sync = make_sync()
        assert sync.on_external_message("http://localhost:8000/", sample_auth) is False
        assert sync.on_external_message("https://localhost:8000", sample_auth) is False
        assert sync.user is None

    @pytest.mark.parametrize("data", [{"name": "x"}, {"email": ""}, None, "jane@example.com"])
    def test_rejects_payload_without_email(
        self, make_sync: Any, store: KeyValueStore, data: Any
    ) -> None:
        sync = make_sync()

        assert sync.on_external_message(ORIGIN, data) is False
        assert sync.user is None
        assert store.get(KEY) is None

    def test_message_channel_delivers_after_start(
        self,
        make_sync: Any,
        messages: EventChannel[MessageEvent],
        sample_auth: dict[str, Any],
    ) -> None:
        sync = make_sync()
        sync.start()

        messages.emit(MessageEvent(origin=ORIGIN, data=sample_auth))

        assert sync.user is not None and sync.user.name == "Jane Doe"

    def test_identity_changes_emitted(self, make_sync: Any, sample_auth: dict[str, Any]) -> None:
        sync = make_sync()
        seen: list[AuthPayload] = []
        sync.identity_changes.subscribe(seen.append)

        sync.on_external_message(ORIGIN, sample_auth)

        assert [p.email for p in seen] == ["jane@example.com"]


# ---------------------------------------------------------------------------
# on_cross_tab_change()
# ---------------------------------------------------------------------------


class TestCrossTabChange:
    """Identity written to the store by another tab."""

    def test_accepts_valid_value_without_repersisting(
        self, make_sync: Any, store: KeyValueStore, bus: StorageBus, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync()
        writes: list[Any] = []
        bus.subscribe(writes.append)

        accepted = sync.on_cross_tab_change(KEY, json.dumps(sample_auth))

        assert accepted is True
        assert sync.user is not None and sync.user.email == "jane@example.com"
        assert writes == []
        assert store.get(KEY) is None

    @pytest.mark.parametrize(
        ("key", "raw"),
        [
            ("other-key", '{"email": "jane@example.com"}'),
            (KEY, None),
            (KEY, "{broken"),
            (KEY, '{"email": ""}'),
        ],
        ids=["other-key", "removed", "malformed", "empty-email"],
    )
    def test_ignored_changes(self, make_sync: Any, key: str, raw: str | None) -> None:
        sync = make_sync()
        assert sync.on_cross_tab_change(key, raw) is False
        assert sync.user is None

    def test_write_from_other_tab_reaches_started_sync(
        self,
        make_sync: Any,
        conn: sqlite3.Connection,
        bus: StorageBus,
        sample_auth: dict[str, Any],
    ) -> None:
        sync = make_sync()
        sync.start()
        other_tab = KeyValueStore(conn, ORIGIN, bus=bus, tab_id="tab-b")

        other_tab.set(KEY, json.dumps(sample_auth))

        assert sync.user is not None and sync.user.email == "jane@example.com"

    def test_own_write_is_not_redelivered(
        self, make_sync: Any, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync()
        sync.start()
        seen: list[AuthPayload] = []
        sync.identity_changes.subscribe(seen.append)

        sync.on_external_message(ORIGIN, sample_auth)

        assert len(seen) == 1


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_start_restores(
        self, make_sync: Any, store: KeyValueStore, sample_auth: dict[str, Any]
    ) -> None:
        store.set(KEY, json.dumps(sample_auth))
        sync = make_sync()

        sync.start()

        assert sync.user is not None

    def test_close_unsubscribes_both_channels(
        self, make_sync: Any, messages: EventChannel[MessageEvent], bus: StorageBus
    ) -> None:
        sync = make_sync()
        sync.start()
        assert len(messages) == 1
        assert len(bus) == 1

        sync.close()

        assert len(messages) == 0
        assert len(bus) == 0

    def test_start_twice_subscribes_once(
        self, make_sync: Any, messages: EventChannel[MessageEvent]
    ) -> None:
        sync = make_sync()
        sync.start()
        sync.start()
        assert len(messages) == 1


# ---------------------------------------------------------------------------
# initiate_connect()
# ---------------------------------------------------------------------------


class TestInitiateConnect:
    """Opening the login popup."""

    def test_opens_centered_popup_and_focuses(self, make_sync: Any, window_host: Any) -> None:
        sync = make_sync()

        opened = sync.initiate_connect()

        assert opened is True
        assert window_host.opened == [
            (
                "http://localhost:8000/auth/google/login",
                "google-oauth",
                "width=520,height=640,left=560,top=180",
            )
        ]
        assert window_host.popup.focused == 1
        assert sync.auth_error is None

    def test_blocked_popup_sets_error_and_keeps_identity(
        self, make_sync: Any, blocked_window_host: Any, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync(blocked_window_host)
        sync.on_external_message(ORIGIN, sample_auth)

        opened = sync.initiate_connect()

        assert opened is False
        assert sync.auth_error == POPUP_BLOCKED_MESSAGE
        assert sync.user is not None and sync.user.email == "jane@example.com"

    def test_blocked_error_cleared_by_next_identity(
        self, make_sync: Any, blocked_window_host: Any, sample_auth: dict[str, Any]
    ) -> None:
        sync = make_sync(blocked_window_host)
        sync.initiate_connect()

        sync.on_cross_tab_change(KEY, json.dumps(sample_auth))

        assert sync.auth_error is None
