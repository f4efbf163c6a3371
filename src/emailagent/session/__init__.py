"""Identity synchronization across the login popup, storage and other tabs."""

from emailagent.session.auth_sync import POPUP_BLOCKED_MESSAGE, AuthSessionSync, parse_auth_payload
from emailagent.session.callback import complete_login_callback
from emailagent.session.window import (
    BrowserWindowHost,
    Popup,
    ScreenGeometry,
    WindowHost,
    centered_popup_features,
)

__all__ = [
    "POPUP_BLOCKED_MESSAGE",
    "AuthSessionSync",
    "BrowserWindowHost",
    "Popup",
    "ScreenGeometry",
    "WindowHost",
    "centered_popup_features",
    "complete_login_callback",
    "parse_auth_payload",
]
