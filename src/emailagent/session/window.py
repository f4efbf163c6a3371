"""Host window abstraction used to open the login popup."""

from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ScreenGeometry:
    """Position and outer size of the window that opens the popup."""

    screen_x: int
    screen_y: int
    outer_width: int
    outer_height: int


class Popup(Protocol):
    """A window handle returned by a successful ``WindowHost.open``."""

    def focus(self) -> None: ...


class WindowHost(Protocol):
    """The environment able to open secondary windows.

    ``open`` returns ``None`` when the environment blocks window creation.
    """

    def geometry(self) -> ScreenGeometry: ...

    def open(self, url: str, name: str, features: str) -> Popup | None: ...


def centered_popup_features(geometry: ScreenGeometry, width: int, height: int) -> str:
    """Build the window feature string for a popup centered on *geometry*.

    Args:
        geometry: The opener's position and outer size.
        width: Popup width in pixels.
        height: Popup height in pixels.

    Returns:
        A ``width=..,height=..,left=..,top=..`` feature string.
    """
    left = geometry.screen_x + (geometry.outer_width - width) // 2
    top = geometry.screen_y + (geometry.outer_height - height) // 2
    return f"width={width},height={height},left={left},top={top}"


class _BrowserTab:
    """Popup handle for a page opened in the system browser."""

    def __init__(self, url: str) -> None:
        self.url = url

    def focus(self) -> None:
        # The system browser raises the new tab itself.
        return None


class BrowserWindowHost:
    """``WindowHost`` that opens URLs in the user's default web browser."""

    def __init__(self, geometry: ScreenGeometry | None = None) -> None:
        self._geometry = geometry or ScreenGeometry(0, 0, 1280, 800)

    def geometry(self) -> ScreenGeometry:
        return self._geometry

    def open(self, url: str, name: str, features: str) -> Popup | None:
        if not webbrowser.open_new(url):
            return None
        return _BrowserTab(url)
