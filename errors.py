"""Fehlertypen für VoxPaste.

Alle Fehler sind terminal für die aktuelle Session bzw. den aktuellen Request:
Es gibt keine automatischen Retries, der User muss neu starten.
"""

from pathlib import Path


class VoxPasteError(Exception):
    """Basisklasse aller VoxPaste-Fehler."""


class ConfigurationError(VoxPasteError):
    """API-Key fehlt oder ist leer (wird vor Aufnahmestart erkannt)."""


class CaptureError(VoxPasteError):
    """Audio-Aufnahme konnte nicht starten oder hat keine Datei erzeugt."""


class ProcessLaunchFailure(VoxPasteError):
    """Lokales Whisper-Binary konnte nicht ausgeführt werden."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NoSpeechDetected(VoxPasteError):
    """Transkript ist leer oder [BLANK_AUDIO]."""

    def __init__(self, message: str = "Keine Sprache erkannt") -> None:
        super().__init__(message)


class NetworkError(VoxPasteError):
    """Transport-Fehler (Verbindung, Timeout, keine Daten)."""


class APIError(VoxPasteError):
    """Provider hat einen strukturierten Fehler zurückgegeben."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"API-Fehler: {self.message}"


class InvalidResponseFormat(VoxPasteError):
    """Antwort des Providers ist nicht im erwarteten Format."""

    def __init__(self, message: str = "Ungültiges Antwortformat") -> None:
        super().__init__(message)


class AudioFileMissing(VoxPasteError):
    """Gespeicherte Audiodatei existiert nicht mehr."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Audiodatei nicht gefunden: {path}")
        self.path = path


__all__ = [
    "VoxPasteError",
    "ConfigurationError",
    "CaptureError",
    "ProcessLaunchFailure",
    "NoSpeechDetected",
    "NetworkError",
    "APIError",
    "InvalidResponseFormat",
    "AudioFileMissing",
]
