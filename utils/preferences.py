"""Persistente Einstellungen für VoxPaste.

Speichert User-Preferences in ~/.voxpaste/preferences.json.
API-Keys werden in ~/.voxpaste/.env gespeichert und über die Umgebung gelesen.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from cli.types import OutputLanguage, SpeechProvider
from prompts import PromptTemplate

logger = logging.getLogger("voxpaste.preferences")

API_KEY_ENV_NAMES = {
    SpeechProvider.openai: "OPENAI_API_KEY",
    SpeechProvider.groq: "GROQ_API_KEY",
}

# Erlaubte Keys in preferences.json
PREFERENCE_KEYS = (
    "provider",
    "prompt_template",
    "custom_prompt",
    "output_language",
    "preferred_device_id",
)


@dataclass(frozen=True)
class ProviderConfiguration:
    """Snapshot der Einstellungen, gelesen beim Start einer Session."""

    provider: SpeechProvider = SpeechProvider.local
    openai_api_key: str | None = None
    groq_api_key: str | None = None
    prompt_template: PromptTemplate = PromptTemplate.none
    custom_prompt: str = ""
    output_language: OutputLanguage = OutputLanguage.auto
    preferred_device_id: int | None = None

    def api_key_for(self, provider: SpeechProvider) -> str | None:
        """API-Key für den Provider, None wenn nicht gesetzt oder leer."""
        if provider is SpeechProvider.openai:
            key = self.openai_api_key
        elif provider is SpeechProvider.groq:
            key = self.groq_api_key
        else:
            return None
        key = (key or "").strip()
        return key or None

    def is_provider_configured(self, provider: SpeechProvider) -> bool:
        if not provider.requires_api_key:
            return True
        return self.api_key_for(provider) is not None


def _prefs_file() -> Path:
    from config import PREFS_FILE

    return PREFS_FILE


def load_preferences(path: Path | None = None) -> dict:
    """Lädt Preferences aus JSON."""
    path = path or _prefs_file()
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Preferences nicht lesbar ({path}): {e}")
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def save_preferences(prefs: dict, path: Path | None = None) -> None:
    """Speichert Preferences als JSON."""
    path = path or _prefs_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(prefs, indent=2), encoding="utf-8")


def _parse_device_id(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ungültige preferred_device_id={value!r}, ignoriere")
        return None


def _parse_choice(parser, value, default, label: str):
    if value is None or value == "":
        return default
    try:
        return parser(str(value))
    except ValueError:
        logger.warning(f"Ungültiger Wert für {label}: {value!r}, nutze {default.value}")
        return default


def _parse_template(value: str) -> PromptTemplate:
    return PromptTemplate(value.strip().lower())


def load_provider_configuration(prefs_path: Path | None = None) -> ProviderConfiguration:
    """Baut die ProviderConfiguration aus preferences.json + Umgebung.

    Priorität: ENV (VOXPASTE_PROVIDER, VOXPASTE_LANGUAGE) > preferences.json > Defaults.
    API-Keys kommen ausschließlich aus der Umgebung (inkl. geladener .env).
    """
    prefs = load_preferences(prefs_path)

    provider = _parse_choice(
        SpeechProvider.parse,
        os.getenv("VOXPASTE_PROVIDER") or prefs.get("provider"),
        SpeechProvider.local,
        "provider",
    )
    language = _parse_choice(
        OutputLanguage.parse,
        os.getenv("VOXPASTE_LANGUAGE") or prefs.get("output_language"),
        OutputLanguage.auto,
        "output_language",
    )
    template = _parse_choice(
        _parse_template,
        prefs.get("prompt_template"),
        PromptTemplate.none,
        "prompt_template",
    )

    return ProviderConfiguration(
        provider=provider,
        openai_api_key=os.getenv(API_KEY_ENV_NAMES[SpeechProvider.openai]),
        groq_api_key=os.getenv(API_KEY_ENV_NAMES[SpeechProvider.groq]),
        prompt_template=template,
        custom_prompt=str(prefs.get("custom_prompt") or ""),
        output_language=language,
        preferred_device_id=_parse_device_id(prefs.get("preferred_device_id")),
    )


def set_preference(key: str, value: str, path: Path | None = None) -> None:
    """Validiert und speichert eine einzelne Preference.

    Raises:
        KeyError: Unbekannter Key
        ValueError: Ungültiger Wert
    """
    if key not in PREFERENCE_KEYS:
        raise KeyError(key)

    stored: str | int | None
    if key == "provider":
        stored = SpeechProvider.parse(value).value
    elif key == "output_language":
        stored = OutputLanguage.parse(value).value
    elif key == "prompt_template":
        stored = _parse_template(value).value
    elif key == "preferred_device_id":
        stored = int(value) if value.strip() else None
    else:
        stored = value

    prefs = load_preferences(path)
    prefs[key] = stored
    save_preferences(prefs, path)


def save_api_key(provider: SpeechProvider, value: str, env_path: Path | None = None) -> None:
    """Speichert/aktualisiert den API-Key eines Providers in der .env Datei.

    Raises:
        ValueError: Provider braucht keinen API-Key
    """
    if not provider.requires_api_key:
        raise ValueError(f"{provider.display_name} braucht keinen API-Key")

    if env_path is None:
        from config import ENV_FILE

        env_path = ENV_FILE

    key_name = API_KEY_ENV_NAMES[provider]
    lines = []
    if env_path.exists():
        lines = env_path.read_text(encoding="utf-8").splitlines()

    # Key aktualisieren oder hinzufügen
    found = False
    for i, line in enumerate(lines):
        if line.startswith(f"{key_name}="):
            lines[i] = f"{key_name}={value}"
            found = True
            break
    if not found:
        lines.append(f"{key_name}={value}")

    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    os.environ[key_name] = value


__all__ = [
    "ProviderConfiguration",
    "API_KEY_ENV_NAMES",
    "PREFERENCE_KEYS",
    "load_preferences",
    "save_preferences",
    "load_provider_configuration",
    "set_preference",
    "save_api_key",
]
