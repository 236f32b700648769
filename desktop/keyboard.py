"""Tastatursprache für OutputLanguage.auto.

Liefert den Sprachcode des aktiven Eingabe-Layouts (z.B. "de-DE").
macOS: Text Input Sources (Carbon) via ctypes
Windows: GetKeyboardLayout() via ctypes
Linux: Locale aus der Umgebung (LC_ALL / LC_MESSAGES / LANG)

VOXPASTE_KEYBOARD_LANGUAGE überschreibt die Erkennung auf allen Plattformen.
"""

import locale
import logging
import os
import sys

logger = logging.getLogger("voxpaste.desktop.keyboard")

# kCFStringEncodingUTF8
_CF_UTF8 = 0x08000100


def _normalize_locale(value: str | None) -> str | None:
    """'de_DE.UTF-8' → 'de-DE', 'C'/'POSIX' → None."""
    if not value:
        return None
    value = value.split(".")[0].split("@")[0].strip()
    if not value or value in ("C", "POSIX"):
        return None
    return value.replace("_", "-")


class MacOSKeyboardLanguage:
    """Liest kTISPropertyInputSourceLanguages der aktuellen Input-Source.

    Gleiche ctypes-Technik wie der CoreAudio Sound-Player: Frameworks direkt
    laden statt PyObjC-Bridge (Carbon/HIToolbox ist dort nicht gewrappt).
    """

    def __init__(self) -> None:
        self._carbon = None
        self._core_foundation = None
        self._ctypes = None
        self._languages_key = None

        try:
            import ctypes

            self._ctypes = ctypes
            self._carbon = ctypes.CDLL(
                "/System/Library/Frameworks/Carbon.framework/Carbon"
            )
            self._core_foundation = ctypes.CDLL(
                "/System/Library/Frameworks/CoreFoundation.framework/CoreFoundation"
            )

            self._carbon.TISCopyCurrentKeyboardInputSource.restype = ctypes.c_void_p
            self._carbon.TISCopyCurrentKeyboardInputSource.argtypes = []
            self._carbon.TISGetInputSourceProperty.restype = ctypes.c_void_p
            self._carbon.TISGetInputSourceProperty.argtypes = [
                ctypes.c_void_p,
                ctypes.c_void_p,
            ]
            self._languages_key = ctypes.c_void_p.in_dll(
                self._carbon, "kTISPropertyInputSourceLanguages"
            ).value

            self._core_foundation.CFArrayGetCount.restype = ctypes.c_long
            self._core_foundation.CFArrayGetCount.argtypes = [ctypes.c_void_p]
            self._core_foundation.CFArrayGetValueAtIndex.restype = ctypes.c_void_p
            self._core_foundation.CFArrayGetValueAtIndex.argtypes = [
                ctypes.c_void_p,
                ctypes.c_long,
            ]
            self._core_foundation.CFStringGetCString.restype = ctypes.c_bool
            self._core_foundation.CFStringGetCString.argtypes = [
                ctypes.c_void_p,
                ctypes.c_char_p,
                ctypes.c_long,
                ctypes.c_uint32,
            ]
            self._core_foundation.CFRelease.restype = None
            self._core_foundation.CFRelease.argtypes = [ctypes.c_void_p]
        except (OSError, AttributeError, ValueError) as e:
            logger.debug(f"Carbon/TIS nicht verfügbar: {e}")
            self._carbon = None

    def get_keyboard_language(self) -> str | None:
        if self._carbon is None or self._core_foundation is None or self._ctypes is None:
            return None

        source = self._carbon.TISCopyCurrentKeyboardInputSource()
        if not source:
            return None
        try:
            languages = self._carbon.TISGetInputSourceProperty(source, self._languages_key)
            if not languages or self._core_foundation.CFArrayGetCount(languages) < 1:
                return None
            primary = self._core_foundation.CFArrayGetValueAtIndex(languages, 0)
            buffer = self._ctypes.create_string_buffer(64)
            if not self._core_foundation.CFStringGetCString(primary, buffer, 64, _CF_UTF8):
                return None
            return buffer.value.decode("utf-8") or None
        finally:
            # Copy-Funktion → wir besitzen die Referenz
            self._core_foundation.CFRelease(source)


class WindowsKeyboardLanguage:
    """Keyboard-Layout des Vordergrund-Fensters via user32."""

    def get_keyboard_language(self) -> str | None:
        try:
            import ctypes

            user32 = ctypes.WinDLL("user32", use_last_error=True)  # type: ignore[attr-defined]
            hwnd = user32.GetForegroundWindow()
            thread_id = user32.GetWindowThreadProcessId(hwnd, None)
            layout = user32.GetKeyboardLayout(thread_id)
        except (OSError, AttributeError) as e:
            logger.debug(f"GetKeyboardLayout fehlgeschlagen: {e}")
            return None

        lang_id = layout & 0xFFFF
        return _normalize_locale(locale.windows_locale.get(lang_id))


class EnvironmentKeyboardLanguage:
    """Fallback: Locale aus der Umgebung."""

    def get_keyboard_language(self) -> str | None:
        for name in ("LC_ALL", "LC_MESSAGES", "LANG"):
            code = _normalize_locale(os.getenv(name))
            if code:
                return code
        return None


class KeyboardLanguageDetector:
    """Plattform-Dispatch mit ENV-Override."""

    def __init__(self) -> None:
        if sys.platform == "darwin":
            self._impl = MacOSKeyboardLanguage()
        elif sys.platform == "win32":
            self._impl = WindowsKeyboardLanguage()
        else:
            self._impl = EnvironmentKeyboardLanguage()

    def get_keyboard_language(self) -> str | None:
        override = (os.getenv("VOXPASTE_KEYBOARD_LANGUAGE") or "").strip()
        if override:
            return override
        return self._impl.get_keyboard_language()


__all__ = [
    "KeyboardLanguageDetector",
    "MacOSKeyboardLanguage",
    "WindowsKeyboardLanguage",
    "EnvironmentKeyboardLanguage",
]
