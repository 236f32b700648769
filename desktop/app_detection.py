"""Name der App im Vordergrund für den %ActiveApp-Platzhalter.

Ein Lookup pro Prompt; jeder Fehler ergibt None und der PromptComposer
setzt "Unknown" ein.
"""

import logging
import sys
from typing import Callable

logger = logging.getLogger("voxpaste.desktop.app_detection")


def _frontmost_macos() -> str | None:
    from AppKit import NSWorkspace  # type: ignore[import-not-found]

    app = NSWorkspace.sharedWorkspace().frontmostApplication()
    return app.localizedName() if app else None


def _frontmost_windows() -> str | None:
    import psutil
    import win32gui  # type: ignore[import-not-found]
    import win32process  # type: ignore[import-not-found]

    hwnd = win32gui.GetForegroundWindow()
    if not hwnd:
        return None
    _, pid = win32process.GetWindowThreadProcessId(hwnd)
    name = psutil.Process(pid).name()
    return name[:-4] if name.lower().endswith(".exe") else name


class FrontmostAppDetector:
    """Ermittelt die aktive App (macOS: NSWorkspace, Windows: win32gui + psutil).

    Auf Linux gibt es keinen Lookup, das Ergebnis ist immer None.
    """

    def __init__(self, platform: str | None = None) -> None:
        platform = platform or sys.platform
        self._lookup: Callable[[], str | None] | None = {
            "darwin": _frontmost_macos,
            "win32": _frontmost_windows,
        }.get(platform)

    def get_frontmost_app(self) -> str | None:
        if self._lookup is None:
            return None
        try:
            name = self._lookup()
        except ImportError as e:
            logger.debug(f"App-Detection nicht verfügbar: {e}")
            return None
        except Exception as e:
            logger.debug(f"App-Detection fehlgeschlagen: {e}")
            return None
        return name or None


__all__ = ["FrontmostAppDetector"]
