"""Authenticated-identity synchronization across windows and tabs.

``AuthSessionSync`` owns the single ``AuthPayload`` visible to the rest of
the client.  The payload can arrive from three places:

1. ``restore()`` -- the value persisted in the key-value store, read once
   during start-up.
2. ``on_external_message()`` -- the login popup posting the payload back.
   Only messages from the remote service's origin are accepted; an accepted
   payload is persisted so later sessions and other tabs see it.
3. ``on_cross_tab_change()`` -- another tab wrote a new payload to the
   store.  The store already holds it, so nothing is re-persisted.

Malformed data from the store or from other tabs is logged and ignored.
The only user-visible authentication error is a blocked popup, and it is
cleared by the next accepted identity.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from emailagent.config import Settings
from emailagent.domain.models import AuthPayload
from emailagent.events import EventChannel, MessageEvent, StorageBus, StorageChange, Subscription
from emailagent.session.window import WindowHost, centered_popup_features
from emailagent.state.store import KeyValueStore

logger = structlog.get_logger()

POPUP_BLOCKED_MESSAGE = "Please allow pop-ups to connect your Google account."
LOGIN_PATH = "/auth/google/login"
POPUP_NAME = "google-oauth"


def parse_auth_payload(raw: str | None) -> AuthPayload | None:
    """Parse a serialized payload, returning ``None`` unless it carries an email.

    Raises:
        ValidationError: If *raw* is not JSON or not a payload object.
    """
    if not raw:
        return None
    payload = AuthPayload.model_validate_json(raw)
    return payload if payload.is_authenticated else None


class AuthSessionSync:
    """Maintain the current identity from storage, popup messages and other tabs.

    Usage::

        sync = AuthSessionSync(settings, store, messages, bus, window_host)
        sync.start()              # restore + subscribe
        sync.initiate_connect()   # opens the login popup
        ...
        sync.close()              # release both subscriptions
    """

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        messages: EventChannel[MessageEvent],
        storage_bus: StorageBus,
        window_host: WindowHost,
    ) -> None:
        self._settings = settings
        self._store = store
        self._messages = messages
        self._storage_bus = storage_bus
        self._window_host = window_host
        self._api_origin = settings.api_origin
        self._subscriptions: list[Subscription] = []

        self.user: AuthPayload | None = None
        self.auth_error: str | None = None
        self.identity_changes: EventChannel[AuthPayload] = EventChannel(name="identity")

    @property
    def storage_key(self) -> str:
        return self._settings.auth_storage_key

    @property
    def connect_label(self) -> str:
        """Text of the connect button."""
        if self.user is not None and self.user.is_authenticated:
            return f"Connected as {self.user.display_name}"
        return "Connect with Google"

    def snapshot(self) -> AuthPayload | None:
        """Return a copy of the current identity for request annotation."""
        return self.user.model_copy() if self.user is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Restore the persisted identity and start listening to both channels."""
        if self._subscriptions:
            return
        self.restore()
        self._subscriptions = [
            self._messages.subscribe(self._handle_message),
            self._storage_bus.subscribe_tab(
                self._store.origin, self._store.tab_id, self._handle_storage_change
            ),
        ]

    def close(self) -> None:
        """Release both channel subscriptions."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    # ------------------------------------------------------------------
    # Identity sources
    # ------------------------------------------------------------------

    def restore(self) -> None:
        """Publish the persisted identity, if the store holds a valid one."""
        raw = self._store.get(self.storage_key)
        try:
            payload = parse_auth_payload(raw)
        except ValidationError as exc:
            logger.warning("Failed to parse stored auth", errors=exc.error_count())
            return
        if payload is None:
            return
        self._publish(payload, source="restore")

    def on_external_message(self, origin: str, data: Any) -> bool:
        """Accept an identity posted by the login popup.

        Args:
            origin: Origin of the posting context; must equal the service origin.
            data: The posted payload (mapping or ``AuthPayload``).

        Returns:
            True if the payload was accepted.
        """
        if origin != self._api_origin:
            logger.info("Ignoring auth message", reason="origin_mismatch", origin=origin)
            return False
        try:
            payload = AuthPayload.model_validate(data)
        except ValidationError:
            logger.info("Ignoring auth message", reason="malformed")
            return False
        if not payload.is_authenticated:
            logger.info("Ignoring auth message", reason="missing_email")
            return False

        self._publish(payload, source="message")
        self._store.set(self.storage_key, payload.model_dump_json(exclude_unset=True))
        return True

    def on_cross_tab_change(self, key: str | None, raw_value: str | None) -> bool:
        """Accept an identity another tab wrote to the store.

        Returns:
            True if the new value was accepted.
        """
        if key != self.storage_key or not raw_value:
            return False
        try:
            payload = parse_auth_payload(raw_value)
        except ValidationError as exc:
            logger.warning(
                "Failed to parse auth payload from another tab", errors=exc.error_count()
            )
            return False
        if payload is None:
            return False
        self._publish(payload, source="storage")
        return True

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def initiate_connect(self) -> bool:
        """Open the login popup; the result arrives later as a message.

        Returns:
            True if the popup opened, False if the host blocked it.
        """
        features = centered_popup_features(
            self._window_host.geometry(),
            self._settings.popup_width,
            self._settings.popup_height,
        )
        popup = self._window_host.open(self._settings.api_url(LOGIN_PATH), POPUP_NAME, features)
        if popup is None:
            logger.warning("Login popup was blocked")
            self.auth_error = POPUP_BLOCKED_MESSAGE
            return False
        popup.focus()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_message(self, event: MessageEvent) -> None:
        self.on_external_message(event.origin, event.data)

    def _handle_storage_change(self, change: StorageChange) -> None:
        self.on_cross_tab_change(change.key, change.new_value)

    def _publish(self, payload: AuthPayload, source: str) -> None:
        self.user = payload
        self.auth_error = None
        logger.info("Identity updated", source=source, email=payload.email)
        self.identity_changes.emit(payload.model_copy())
