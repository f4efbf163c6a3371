"""Root context wiring the client together.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Key-value store** on SQLite, shared by every tab of the origin through a
  ``StorageBus``
- **AuthSessionSync** listening to the message channel and the bus
- **SubmissionController** talking to the automation service

``AppContext`` is the single owner of identity and submission state; the
components receive what they need from it instead of reaching for
module-level globals.
"""

from __future__ import annotations

import logging
import sqlite3
import sys
import uuid
from types import TracebackType

import httpx
import structlog

from emailagent.config import Settings, get_settings
from emailagent.events import EventChannel, MessageEvent, StorageBus
from emailagent.session.auth_sync import AuthSessionSync
from emailagent.session.window import BrowserWindowHost, WindowHost
from emailagent.state.schema import open_store_connection
from emailagent.state.store import KeyValueStore
from emailagent.submission.client import AgentClient
from emailagent.submission.controller import SubmissionController
from emailagent.workflow.view import render_page

logger = structlog.get_logger()


def configure_logging(production: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="email-agent")


class AppContext:
    """Owns the store, the channels, and both stateful components of one tab.

    Usage::

        async with AppContext(settings) as ctx:
            await ctx.submission.submit("Send a welcome email to john@example.com")
            print(ctx.render())

    Args:
        settings: Client settings.  If ``None``, ``get_settings()`` is used.
        conn: Open SQLite connection; opened from ``settings.session_db_path``
              when omitted.
        bus: Storage bus shared with other tabs of the same origin.
        window_host: Host used to open the login popup.
        http_client: Optional ``httpx.AsyncClient`` for the agent client.
        tab_id: Identifier of this tab; generated when omitted.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        conn: sqlite3.Connection | None = None,
        bus: StorageBus | None = None,
        window_host: WindowHost | None = None,
        http_client: httpx.AsyncClient | None = None,
        tab_id: str | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_conn = conn is None
        if conn is None:
            conn = open_store_connection(self.settings.session_db_path)
        self.conn = conn
        self.tab_id = tab_id or uuid.uuid4().hex
        self.bus = bus if bus is not None else StorageBus()
        self.messages: EventChannel[MessageEvent] = EventChannel(name="message")
        self.store = KeyValueStore(
            self.conn, self.settings.api_origin, bus=self.bus, tab_id=self.tab_id
        )
        self.auth = AuthSessionSync(
            self.settings,
            self.store,
            self.messages,
            self.bus,
            window_host or BrowserWindowHost(),
        )
        self.client = AgentClient(self.settings, http_client=http_client)
        self.submission = SubmissionController(self.client, self.auth.snapshot)

    def start(self) -> None:
        """Restore identity and begin listening for identity updates."""
        self.auth.start()
        logger.debug("App context started", tab_id=self.tab_id)

    async def close(self) -> None:
        """Release subscriptions, the HTTP client, and an owned connection."""
        self.auth.close()
        await self.client.aclose()
        if self._owns_conn:
            self.conn.close()

    def post_message(self, origin: str, data: object) -> None:
        """Deliver a cross-context message to this tab."""
        self.messages.emit(MessageEvent(origin=origin, data=data))

    def render(self) -> str:
        """Render the page for the current state."""
        return render_page(
            self.submission.state,
            self.submission.render_steps,
            self.auth.connect_label,
            self.auth.auth_error,
        )

    async def __aenter__(self) -> AppContext:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
