"""Prompt-Templates und Sprachauflösung für VoxPaste.

Die Cloud-Provider (OpenAI, Groq) akzeptieren einen `prompt`, der die
Formatierung der Transkription steuert. Templates enthalten Platzhalter:

    %ActiveApp  → Name der aktiven Anwendung (Fallback: "Unknown")
    %Language   → Aufgelöste Ausgabesprache (z.B. "German")

Bei OutputLanguage.auto wird die Sprache aus dem aktuellen Tastaturlayout
abgeleitet.
"""

import logging
from enum import Enum
from typing import Protocol

from cli.types import OutputLanguage

logger = logging.getLogger("voxpaste.prompts")

ACTIVE_APP_PLACEHOLDER = "%ActiveApp"
LANGUAGE_PLACEHOLDER = "%Language"

UNKNOWN_APP = "Unknown"
SAME_AS_INPUT = "the same language as the input"


class PromptTemplate(str, Enum):
    """Prompt-Vorlagen für die Cloud-Transkription."""

    none = "none"
    professional = "professional"
    casual = "casual"
    structured = "structured"
    technical = "technical"
    creative = "creative"
    custom = "custom"

    @property
    def text(self) -> str:
        """Template-Text mit Platzhaltern (leer für custom)."""
        return TEMPLATE_TEXTS[self]

    @property
    def description(self) -> str:
        return TEMPLATE_DESCRIPTIONS[self]


TEMPLATE_TEXTS = {
    PromptTemplate.none: "Output in %Language.",
    PromptTemplate.professional: (
        "Professional business communication for %ActiveApp. "
        "Use proper grammar, formal tone, and clear structure. Output in %Language."
    ),
    PromptTemplate.casual: (
        "Casual, conversational tone for %ActiveApp. "
        "Natural speech with common contractions and informal language. Output in %Language."
    ),
    PromptTemplate.structured: (
        "Well-structured content for %ActiveApp. "
        "Organize thoughts with clear points, proper punctuation, and logical flow. "
        "Output in %Language."
    ),
    PromptTemplate.technical: (
        "Technical discussion for %ActiveApp. "
        "Accurate terminology, precise language, and technical accuracy. "
        "Common terms: API, database, server, function, variable, configuration. "
        "Output in %Language."
    ),
    PromptTemplate.creative: (
        "Creative and expressive writing for %ActiveApp. "
        "Vivid language, descriptive phrases, and engaging narrative. Output in %Language."
    ),
    PromptTemplate.custom: "",  # User liefert eigenen Text
}

TEMPLATE_DESCRIPTIONS = {
    PromptTemplate.none: "No prompt guidance",
    PromptTemplate.professional: "Formal business tone",
    PromptTemplate.casual: "Relaxed, conversational",
    PromptTemplate.structured: "Organized with clear points",
    PromptTemplate.technical: "Technical terms & precision",
    PromptTemplate.creative: "Expressive & descriptive",
    PromptTemplate.custom: "Write your own prompt",
}

# Tastatur-Sprachcode (Basis, ohne Region) → Sprachname für den Prompt
KEYBOARD_LANGUAGE_NAMES = {
    "en": "English",
    "ru": "Russian",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "pt": "Portuguese",
    "it": "Italian",
    "uk": "Ukrainian",
    "pl": "Polish",
    "nl": "Dutch",
    "ar": "Arabic",
    "he": "Hebrew",
    "tr": "Turkish",
    "vi": "Vietnamese",
    "th": "Thai",
    "cs": "Czech",
    "sv": "Swedish",
    "da": "Danish",
    "fi": "Finnish",
    "no": "Norwegian",
    "hu": "Hungarian",
    "el": "Greek",
    "ro": "Romanian",
    "bg": "Bulgarian",
    "hr": "Croatian",
    "sk": "Slovak",
    "sl": "Slovenian",
}


class AppDetector(Protocol):
    def get_frontmost_app(self) -> str | None: ...


class KeyboardLanguageSource(Protocol):
    def get_keyboard_language(self) -> str | None: ...


def base_language_code(code: str) -> str:
    """'de-DE' → 'de' (auch 'de_DE')."""
    return code.replace("_", "-").split("-")[0]


def language_name_for_code(code: str) -> str:
    """Mappt Sprachcode auf Namen, unbekannte Codes werden groß geschrieben."""
    return KEYBOARD_LANGUAGE_NAMES.get(base_language_code(code), code.upper())


class PromptComposer:
    """Baut den Prompt für Cloud-Provider aus Template und Live-Kontext.

    Args:
        app_detector: Liefert den Namen der aktiven App (None → "Unknown")
        keyboard: Liefert den Sprachcode des aktiven Tastaturlayouts ("de-DE")

    Ohne explizite Collaborators werden die Plattform-Detektoren aus
    `desktop` genutzt.
    """

    def __init__(
        self,
        app_detector: AppDetector | None = None,
        keyboard: KeyboardLanguageSource | None = None,
    ) -> None:
        if app_detector is None:
            from desktop import get_app_detector

            app_detector = get_app_detector()
        if keyboard is None:
            from desktop import get_keyboard_language_source

            keyboard = get_keyboard_language_source()
        self._app_detector = app_detector
        self._keyboard = keyboard

    def compose(
        self,
        template: PromptTemplate,
        custom_text: str = "",
        language: OutputLanguage = OutputLanguage.auto,
    ) -> str:
        """Erzeugt den Prompt mit ersetzten Platzhaltern."""
        if template is PromptTemplate.custom:
            base = custom_text
        else:
            base = template.text

        processed = base.replace(ACTIVE_APP_PLACEHOLDER, self.active_app_name())
        processed = processed.replace(LANGUAGE_PLACEHOLDER, self.resolve_language(language))
        return processed

    def active_app_name(self) -> str:
        try:
            name = self._app_detector.get_frontmost_app()
        except Exception as e:
            logger.debug(f"App-Detection fehlgeschlagen: {e}")
            name = None
        return name or UNKNOWN_APP

    def _keyboard_language(self) -> str | None:
        try:
            code = self._keyboard.get_keyboard_language()
        except Exception as e:
            logger.debug(f"Tastatursprache nicht ermittelbar: {e}")
            return None
        return code.strip() if code and code.strip() else None

    def resolve_language(self, language: OutputLanguage) -> str:
        """Sprachbeschreibung für den %Language-Platzhalter."""
        if language is not OutputLanguage.auto:
            return language.display_name or SAME_AS_INPUT

        code = self._keyboard_language()
        if code is None:
            return SAME_AS_INPUT
        return language_name_for_code(code)

    def resolve_language_code(self, language: OutputLanguage) -> str | None:
        """ISO-Code für das `language`-Feld der API (None wenn nicht auflösbar)."""
        if language is not OutputLanguage.auto:
            return language.language_code

        code = self._keyboard_language()
        if code is None:
            return None
        return base_language_code(code)


__all__ = [
    "PromptTemplate",
    "PromptComposer",
    "KEYBOARD_LANGUAGE_NAMES",
    "TEMPLATE_TEXTS",
    "SAME_AS_INPUT",
    "UNKNOWN_APP",
    "base_language_code",
    "language_name_for_code",
]
