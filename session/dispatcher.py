"""Backend-Auswahl und Aufnahme-Steuerung.

Der Dispatcher kapselt Recorder, PromptComposer und die Transkriptions-Backends.
Er entscheidet anhand der ProviderConfiguration, welches Backend mit welchen
Parametern aufgerufen wird. Alle Aufrufe blockieren; der SessionController
führt `transcribe` auf einem Worker-Thread aus.
"""

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable

from audio.recording import AudioCapture
from cli.types import SpeechProvider
from errors import CaptureError, ConfigurationError
from prompts import PromptComposer
from providers import get_backend
from utils.preferences import ProviderConfiguration, load_provider_configuration

logger = logging.getLogger("voxpaste.session.dispatcher")


class BackendDispatcher:
    """Verbindet Recorder, Prompt-Aufbau und Backends.

    Args:
        recorder: AudioCapture-Implementierung (z.B. audio.AudioRecorder)
        composer: PromptComposer (default: mit Plattform-Detektoren)
        settings_loader: Liefert die aktuelle ProviderConfiguration
        backend_factory: Erzeugt ein Backend pro Provider (Tests: Fakes)
    """

    def __init__(
        self,
        recorder: AudioCapture,
        composer: PromptComposer | None = None,
        *,
        settings_loader: Callable[[], ProviderConfiguration] = load_provider_configuration,
        backend_factory: Callable[[SpeechProvider], object] = get_backend,
    ) -> None:
        self._recorder = recorder
        self._composer = composer or PromptComposer()
        self._settings_loader = settings_loader
        self._backend_factory = backend_factory
        self._backends: dict[SpeechProvider, object] = {}
        self._capturing = False
        self._lock = threading.Lock()

    @property
    def is_capturing(self) -> bool:
        return self._capturing

    def load_configuration(self) -> ProviderConfiguration:
        return self._settings_loader()

    def check_configuration(self, config: ProviderConfiguration) -> None:
        """Raises ConfigurationError wenn der Cloud-Provider keinen API-Key hat."""
        if not config.is_provider_configured(config.provider):
            raise ConfigurationError(
                f"{config.provider.display_name}: API-Key fehlt"
            )

    def backend_for(self, provider: SpeechProvider):
        """Gibt das (gecachte) Backend für den Provider zurück."""
        with self._lock:
            backend = self._backends.get(provider)
            if backend is None:
                backend = self._backend_factory(provider)
                self._backends[provider] = backend
            return backend

    # -------------------------------------------------------------------------
    # Aufnahme
    # -------------------------------------------------------------------------

    def begin_capture(self, config: ProviderConfiguration) -> None:
        """Prüft die Konfiguration und startet die Aufnahme.

        Raises:
            ConfigurationError: API-Key fehlt (vor dem Öffnen des Mikrofons)
            CaptureError: Recorder konnte nicht starten
        """
        self.check_configuration(config)
        if self._capturing:
            raise CaptureError("Aufnahme läuft bereits")

        try:
            self._recorder.start_capture(config.preferred_device_id)
        except CaptureError:
            raise
        except (OSError, RuntimeError, ValueError) as e:
            raise CaptureError(f"Aufnahme konnte nicht starten: {e}") from e
        self._capturing = True

    def finish_capture(self) -> Path:
        """Stoppt die Aufnahme und gibt den Pfad der WAV-Datei zurück.

        Raises:
            CaptureError: Keine laufende Aufnahme oder keine Datei erzeugt
        """
        if not self._capturing:
            raise CaptureError("Keine laufende Aufnahme")

        try:
            path = Path(self._recorder.stop_capture())
        except CaptureError:
            raise
        except (OSError, RuntimeError, ValueError) as e:
            raise CaptureError(f"Aufnahme konnte nicht gespeichert werden: {e}") from e
        finally:
            self._capturing = False

        if not path.exists():
            raise CaptureError(f"Aufnahme-Datei fehlt: {path}")
        return path

    def abort_capture(self) -> None:
        """Verwirft die laufende Aufnahme."""
        try:
            self._recorder.abort_capture()
        finally:
            self._capturing = False

    # -------------------------------------------------------------------------
    # Transkription
    # -------------------------------------------------------------------------

    def transcribe(
        self,
        audio_path: Path,
        config: ProviderConfiguration,
        *,
        compose_prompt: bool = True,
    ) -> str:
        """Ruft das Backend des konfigurierten Providers auf (blockierend).

        Raises:
            ConfigurationError: Cloud-Provider ohne API-Key
            VoxPasteError: Backend-Fehler (siehe errors.py)
        """
        provider = config.provider
        backend = self.backend_for(provider)
        language = self._composer.resolve_language_code(config.output_language)

        if provider is SpeechProvider.local:
            logger.info(f"Transkribiere lokal (lang={language or 'default'})")
            return backend.transcribe(audio_path, language)

        api_key = config.api_key_for(provider)
        if api_key is None:
            raise ConfigurationError(f"{provider.display_name}: API-Key fehlt")

        prompt = None
        if compose_prompt:
            prompt = self._composer.compose(
                config.prompt_template, config.custom_prompt, config.output_language
            ) or None

        logger.info(f"Transkribiere via {provider.display_name} (lang={language or 'auto'})")
        return backend.transcribe(audio_path, api_key, prompt=prompt, language=language)

    def retranscribe_file(self, audio_path: Path, provider: SpeechProvider) -> str:
        """Transkribiert eine gespeicherte Aufnahme mit einem anderen Provider.

        Nutzt die aktuelle Konfiguration, aber ohne Prompt.
        """
        config = replace(self.load_configuration(), provider=provider)
        return self.transcribe(audio_path, config, compose_prompt=False)

    def close(self) -> None:
        with self._lock:
            backends = list(self._backends.values())
            self._backends.clear()
        for backend in backends:
            close = getattr(backend, "close", None)
            if close is not None:
                close()


__all__ = ["BackendDispatcher"]
