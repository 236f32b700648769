"""Text-Übergabe an die aktive Anwendung.

Das Transkript wird in die Zwischenablage gelegt; das Einfügen per
simuliertem Tastendruck übernimmt die Desktop-App.
macOS: pbcopy via subprocess
Windows/Linux: pyperclip
"""

import logging
import os
import subprocess
import sys

logger = logging.getLogger("voxpaste.desktop.clipboard")


def _get_utf8_env() -> dict:
    """Erstellt Environment mit UTF-8 Locale für pbcopy.

    Wichtig für PyInstaller Bundles, die keine Shell-Locale erben.
    Ohne dies werden Umlaute (ü → √º) falsch kodiert.
    """
    env = os.environ.copy()
    env["LANG"] = "en_US.UTF-8"
    env["LC_ALL"] = "en_US.UTF-8"
    return env


def _copy_macos(text: str) -> bool:
    try:
        process = subprocess.run(
            ["pbcopy"],
            input=text.encode("utf-8"),
            timeout=2,
            capture_output=True,
            env=_get_utf8_env(),
        )
    except subprocess.TimeoutExpired:
        logger.error("pbcopy Timeout")
        return False
    except OSError as e:
        logger.error(f"Clipboard-Fehler: {e}")
        return False
    if process.returncode != 0:
        logger.error(f"pbcopy fehlgeschlagen: {process.stderr.decode()}")
        return False
    return True


def _copy_pyperclip(text: str) -> bool:
    import pyperclip

    try:
        pyperclip.copy(text)
        return True
    except pyperclip.PyperclipException as e:
        logger.error(f"Clipboard-Fehler: {e}")
        return False


class ClipboardDelivery:
    """Text-Delivery Collaborator: wirft nie, meldet Erfolg als bool."""

    def copy(self, text: str) -> bool:
        """Kopiert Text in die Zwischenablage. Gibt True bei Erfolg zurück."""
        if sys.platform == "darwin":
            ok = _copy_macos(text)
        else:
            ok = _copy_pyperclip(text)
        if ok:
            logger.debug(f"Zwischenablage: {len(text)} Zeichen kopiert")
        return ok

    def deliver(self, text: str) -> bool:
        if not self.copy(text):
            logger.warning("Transkript konnte nicht übergeben werden")
            return False
        return True


__all__ = ["ClipboardDelivery"]
