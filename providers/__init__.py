"""Transkriptions-Backends für VoxPaste.

Dieses Modul stellt ein einheitliches "Audio rein, Text raus" Interface
für alle Provider bereit.

Usage:
    from providers import get_backend

    backend = get_backend(SpeechProvider.groq)
    text = backend.transcribe(audio_path, api_key, prompt=None, language="de")

Unterstützte Provider:
    - local: whisper.cpp CLI als externer Prozess
    - openai: OpenAI Transcription API (whisper-1)
    - groq: Groq Whisper auf LPU (whisper-large-v3)
"""

from typing import TYPE_CHECKING

from cli.types import SpeechProvider

if TYPE_CHECKING:
    from .cloud import CloudBackend
    from .local import LocalBackend


def get_backend(provider: SpeechProvider) -> "LocalBackend | CloudBackend":
    """Factory für Transkriptions-Backends.

    Raises:
        ValueError: Bei unbekanntem Provider
    """
    if provider is SpeechProvider.local:
        from .local import LocalBackend

        return LocalBackend()
    elif provider is SpeechProvider.openai:
        from .cloud import CloudBackend, openai_endpoint

        return CloudBackend(openai_endpoint())
    elif provider is SpeechProvider.groq:
        from .cloud import CloudBackend, groq_endpoint

        return CloudBackend(groq_endpoint())
    raise ValueError(f"Unbekannter Provider: {provider}")


__all__ = ["get_backend"]
