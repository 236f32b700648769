"""Platform-Abstraktion für VoxPaste.

Dieses Modul stellt plattformunabhängige Interfaces für die externen
Collaborators der Session-Engine bereit und lädt automatisch die richtige
Implementierung für das aktuelle OS.

Usage:
    from desktop import get_app_detector, get_text_delivery, get_feedback_player

    # Aktive App ermitteln
    app_name = get_app_detector().get_frontmost_app()

    # Text an die aktive App übergeben (Zwischenablage)
    get_text_delivery().deliver("Hello World")
"""

import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .app_detection import FrontmostAppDetector
    from .clipboard import ClipboardDelivery
    from .keyboard import KeyboardLanguageDetector
    from .sound import SoundFeedback


def get_platform() -> str:
    """Ermittelt die aktuelle Plattform.

    Returns:
        'macos', 'windows' oder 'linux'

    Raises:
        RuntimeError: Bei nicht unterstützter Plattform
    """
    if sys.platform == "darwin":
        return "macos"
    elif sys.platform == "win32":
        return "windows"
    elif sys.platform.startswith("linux"):
        return "linux"
    raise RuntimeError(f"Nicht unterstützte Plattform: {sys.platform}")


def get_app_detector() -> "FrontmostAppDetector":
    """Factory für plattformspezifischen App-Detector.

    Linux hat keine Implementierung, dort liefert der Detector immer None.
    """
    from .app_detection import FrontmostAppDetector

    return FrontmostAppDetector()


def get_keyboard_language_source() -> "KeyboardLanguageDetector":
    """Factory für die Erkennung der Tastatursprache."""
    from .keyboard import KeyboardLanguageDetector

    return KeyboardLanguageDetector()


def get_text_delivery() -> "ClipboardDelivery":
    """Factory für die Text-Übergabe an die aktive App."""
    from .clipboard import ClipboardDelivery

    return ClipboardDelivery()


def get_feedback_player() -> "SoundFeedback":
    """Factory für akustisches Feedback."""
    from .sound import SoundFeedback

    return SoundFeedback()


__all__ = [
    "get_platform",
    "get_app_detector",
    "get_keyboard_language_source",
    "get_text_delivery",
    "get_feedback_player",
]
