"""Shared type definitions for VoxPaste.

Enums used by the CLI, the session engine and the persisted preferences.
"""

from enum import Enum


class SpeechProvider(str, Enum):
    """Transkriptions-Provider."""

    local = "local"
    openai = "openai"
    groq = "groq"

    @property
    def requires_api_key(self) -> bool:
        return self is not SpeechProvider.local

    @property
    def display_name(self) -> str:
        return _PROVIDER_DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> "SpeechProvider":
        """Parst Provider-Namen, akzeptiert auch die Anzeigenamen ("Local Whisper").

        Raises:
            ValueError: Bei unbekanntem Provider
        """
        normalized = (value or "").strip().lower()
        for provider in cls:
            if normalized in (provider.value, provider.display_name.lower()):
                return provider
        raise ValueError(f"Unbekannter Provider: {value}")


_PROVIDER_DISPLAY_NAMES = {
    SpeechProvider.local: "Local Whisper",
    SpeechProvider.openai: "OpenAI",
    SpeechProvider.groq: "Groq",
}


class OutputLanguage(str, Enum):
    """Ausgabesprache. 'auto' wird zur Laufzeit über das Tastaturlayout aufgelöst."""

    auto = "auto"
    english = "english"
    russian = "russian"
    spanish = "spanish"
    french = "french"
    german = "german"
    chinese = "chinese"
    japanese = "japanese"
    korean = "korean"
    portuguese = "portuguese"
    italian = "italian"
    ukrainian = "ukrainian"

    @property
    def display_name(self) -> str | None:
        """Anzeigename, None für auto."""
        if self is OutputLanguage.auto:
            return None
        return self.value.capitalize()

    @property
    def language_code(self) -> str | None:
        """ISO-639-1 Code, None für auto."""
        return _LANGUAGE_CODES.get(self)

    @classmethod
    def parse(cls, value: str) -> "OutputLanguage":
        """Parst Sprachnamen oder ISO-Code ("German", "de", "auto").

        Raises:
            ValueError: Bei unbekannter Sprache
        """
        normalized = (value or "").strip().lower()
        for language in cls:
            if normalized in (language.value, language.language_code):
                return language
        raise ValueError(f"Unbekannte Sprache: {value}")


_LANGUAGE_CODES = {
    OutputLanguage.english: "en",
    OutputLanguage.russian: "ru",
    OutputLanguage.spanish: "es",
    OutputLanguage.french: "fr",
    OutputLanguage.german: "de",
    OutputLanguage.chinese: "zh",
    OutputLanguage.japanese: "ja",
    OutputLanguage.korean: "ko",
    OutputLanguage.portuguese: "pt",
    OutputLanguage.italian: "it",
    OutputLanguage.ukrainian: "uk",
}
