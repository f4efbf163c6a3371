"""In-process event channels standing in for the browser's window events.

Two host notifications feed the identity state:

- **message** -- a payload posted by another browsing context (the login
  popup), tagged with the sender's origin.  Modelled as
  ``EventChannel[MessageEvent]``.
- **storage** -- a change to the origin-scoped key-value store made by a
  *different* tab.  Modelled as ``StorageBus``.

Every subscription returns a ``Subscription`` handle that must be released
on teardown; handlers are never held implicitly.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class MessageEvent:
    """A cross-context message and the origin it was posted from."""

    origin: str
    data: Any


@dataclass(frozen=True)
class StorageChange:
    """A key-value store write, as seen by the other tabs of the origin."""

    origin: str
    key: str
    old_value: str | None
    new_value: str | None
    source_tab: str | None = None


class Subscription:
    """Handle returned by ``EventChannel.subscribe``.

    ``unsubscribe()`` is idempotent.
    """

    def __init__(self, channel: EventChannel[Any], handler: Callable[[Any], None]) -> None:
        self._channel: EventChannel[Any] | None = channel
        self._handler = handler

    @property
    def active(self) -> bool:
        """Return True until ``unsubscribe()`` has been called."""
        return self._channel is not None

    def unsubscribe(self) -> None:
        """Detach the handler from its channel."""
        if self._channel is None:
            return
        self._channel._remove(self._handler)
        self._channel = None


class EventChannel(Generic[T]):
    """Synchronous fan-out of events to subscribed handlers.

    Handlers run in registration order on the caller's thread.  A handler
    that raises is logged and skipped so the remaining handlers still see
    the event.
    """

    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._handlers: list[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Callable[[T], None]) -> Subscription:
        """Register *handler* and return its subscription handle."""
        self._handlers.append(handler)
        return Subscription(self, handler)

    def emit(self, event: T) -> None:
        """Deliver *event* to every handler subscribed at the time of the call."""
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed", channel=self.name)

    def _remove(self, handler: Callable[[T], None]) -> None:
        with contextlib.suppress(ValueError):
            self._handlers.remove(handler)


class StorageBus(EventChannel[StorageChange]):
    """Broadcasts key-value store writes to the other tabs of an origin."""

    def __init__(self) -> None:
        super().__init__(name="storage")

    def subscribe_tab(
        self,
        origin: str,
        tab_id: str | None,
        handler: Callable[[StorageChange], None],
    ) -> Subscription:
        """Subscribe *handler* on behalf of one tab.

        Only changes written under the same *origin* by a different tab are
        delivered; a tab never hears about its own writes.

        Args:
            origin: The origin the tab belongs to.
            tab_id: The listening tab's identifier.
            handler: Callback receiving each matching ``StorageChange``.

        Returns:
            The subscription handle.
        """

        def deliver(change: StorageChange) -> None:
            if change.origin != origin:
                return
            if tab_id is not None and change.source_tab == tab_id:
                return
            handler(change)

        return self.subscribe(deliver)
