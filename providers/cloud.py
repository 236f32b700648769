"""Cloud-Transkription über OpenAI-kompatible REST-Endpunkte.

OpenAI und Groq teilen sich dasselbe Protokoll:

    POST <endpoint>
    Authorization: Bearer <api_key>
    multipart/form-data: model, file (audio.wav), [prompt], [language]

Antwort ist JSON: {"text": "..."} bei Erfolg, {"error": {"message": "..."}}
bei API-Fehlern.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import httpx

from config import (
    DEFAULT_GROQ_MODEL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_OPENAI_MODEL,
    GROQ_TRANSCRIPTION_URL,
    OPENAI_TRANSCRIPTION_URL,
)
from errors import APIError, AudioFileMissing, InvalidResponseFormat, NetworkError
from utils.env import get_env_float
from utils.timing import log_preview, timed_operation

logger = logging.getLogger("voxpaste.providers.cloud")

AUDIO_UPLOAD_FILENAME = "audio.wav"
AUDIO_CONTENT_TYPE = "audio/wav"


@dataclass(frozen=True)
class CloudEndpoint:
    """Provider-spezifischer Endpunkt + Modell."""

    name: str
    url: str
    model: str


def openai_endpoint() -> CloudEndpoint:
    model = os.getenv("VOXPASTE_OPENAI_MODEL") or DEFAULT_OPENAI_MODEL
    return CloudEndpoint("openai", OPENAI_TRANSCRIPTION_URL, model)


def groq_endpoint() -> CloudEndpoint:
    model = os.getenv("VOXPASTE_GROQ_MODEL") or DEFAULT_GROQ_MODEL
    return CloudEndpoint("groq", GROQ_TRANSCRIPTION_URL, model)


def parse_transcription_response(content: bytes) -> str:
    """Wertet die JSON-Antwort aus (unabhängig vom HTTP-Status).

    Raises:
        NetworkError: Keine Daten empfangen
        APIError: {"error": {"message": ...}}
        InvalidResponseFormat: Kein JSON-Objekt bzw. kein "text"
    """
    if not content:
        raise NetworkError("Keine Daten empfangen")

    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidResponseFormat(f"JSON-Antwort nicht parsebar: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidResponseFormat("JSON-Antwort ist kein Objekt")

    error_obj = payload.get("error")
    if isinstance(error_obj, dict) and isinstance(error_obj.get("message"), str):
        raise APIError(error_obj["message"])

    text = payload.get("text")
    if isinstance(text, str):
        return text

    raise InvalidResponseFormat()


class CloudBackend:
    """Cloud-Provider (eine Instanz pro Endpunkt).

    Args:
        endpoint: URL + Modell des Providers
        transport: Optionaler httpx-Transport (Tests: httpx.MockTransport)
        timeout: Request-Timeout in Sekunden (default: VOXPASTE_HTTP_TIMEOUT / 60s)
    """

    def __init__(
        self,
        endpoint: CloudEndpoint,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.name = endpoint.name
        self.timeout = timeout or get_env_float("VOXPASTE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Gibt httpx-Client zurück (Lazy Init)."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, transport=self._transport)
            logger.debug(f"{self.name}: httpx-Client initialisiert")
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def build_request(
        self,
        audio: bytes,
        api_key: str,
        prompt: str | None = None,
        language: str | None = None,
    ) -> httpx.Request:
        # Textfelder als (None, wert)-Parts, damit die Reihenfolge erhalten bleibt
        files = [
            ("model", (None, self.endpoint.model)),
            ("file", (AUDIO_UPLOAD_FILENAME, audio, AUDIO_CONTENT_TYPE)),
        ]
        if prompt:
            files.append(("prompt", (None, prompt)))
        if language:
            files.append(("language", (None, language)))

        return self._get_client().build_request(
            "POST",
            self.endpoint.url,
            files=files,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def transcribe(
        self,
        audio_path: Path,
        api_key: str,
        prompt: str | None = None,
        language: str | None = None,
    ) -> str:
        """Lädt die Audiodatei hoch und gibt das Transkript zurück.

        Genau ein Request, keine Retries.
        """
        try:
            audio = audio_path.read_bytes()
        except FileNotFoundError as e:
            raise AudioFileMissing(audio_path) from e

        logger.info(
            f"{self.name}: {self.endpoint.model}, {len(audio) // 1024}KB, "
            f"lang={language or 'auto'}, prompt={'ja' if prompt else 'nein'}"
        )

        request = self.build_request(audio, api_key, prompt=prompt, language=language)
        try:
            with timed_operation(f"{self.name}-Transkription", logger=logger, include_session=False):
                response = self._get_client().send(request)
        except httpx.TransportError as e:
            raise NetworkError(f"{self.name}: {e}") from e

        logger.debug(f"{self.name}: HTTP {response.status_code}")
        result = parse_transcription_response(response.content)
        logger.debug(f"Ergebnis: {log_preview(result)}")
        return result


__all__ = [
    "CloudBackend",
    "CloudEndpoint",
    "openai_endpoint",
    "groq_endpoint",
    "parse_transcription_response",
]
