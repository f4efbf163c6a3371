"""Completion step of the login flow when it returns through a redirect.

The login service can finish either by posting the payload to the opener
window, or by redirecting to the client's callback route with the payload
JSON in the ``payload`` query parameter.  In the redirect case the payload
is written to the key-value store; the write reaches the original tab as a
storage change, where ``AuthSessionSync.on_cross_tab_change`` picks it up.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from emailagent.domain.models import AuthPayload
from emailagent.session.auth_sync import parse_auth_payload
from emailagent.state.store import KeyValueStore

logger = structlog.get_logger()


def complete_login_callback(
    store: KeyValueStore,
    storage_key: str,
    raw_payload: str | None,
) -> AuthPayload | None:
    """Persist the payload handed to the callback route.

    Args:
        store: The origin's key-value store.
        storage_key: Key under which the identity is persisted.
        raw_payload: Value of the ``payload`` query parameter, if any.

    Returns:
        The accepted payload, or ``None`` when it was absent, malformed, or
        carried no email.
    """
    try:
        payload = parse_auth_payload(raw_payload)
    except ValidationError as exc:
        logger.warning("Failed to parse login callback payload", errors=exc.error_count())
        return None
    if payload is None:
        return None

    store.set(storage_key, payload.model_dump_json(exclude_unset=True))
    logger.info("Login callback payload stored", email=payload.email)
    return payload
