"""Lokaler Whisper Provider.

Ruft das whisper.cpp CLI (`whisper-cli`) als externen Prozess auf und parst
dessen stdout. stderr enthält nur Diagnose-Output und wird ausschließlich
geloggt.

Binary und Modell sind über `VOXPASTE_WHISPER_CLI` bzw. `VOXPASTE_WHISPER_MODEL`
konfigurierbar (Default: ~/.voxpaste/whisper/).
"""

import logging
import subprocess
from pathlib import Path

from config import (
    BLANK_AUDIO_SENTINEL,
    DEFAULT_LOCAL_LANGUAGE,
    DEFAULT_LOCAL_TIMEOUT,
    DEFAULT_WHISPER_CLI,
    DEFAULT_WHISPER_MODEL,
)
from errors import NoSpeechDetected, ProcessLaunchFailure
from utils.env import get_env_float, get_env_path
from utils.timing import log_preview, timed_operation

logger = logging.getLogger("voxpaste.providers.local")

# Zeilen mit diesen Markern sind Debug/System-Output von whisper.cpp
NOISE_MARKERS = (
    "whisper_",
    "ggml_",
    "system_info",
    "main:",
    "GPU",
    "Metal",
    "MB",
)


def parse_whisper_output(output: str) -> str:
    """Extrahiert die Transkription aus dem stdout von whisper-cli.

    Mit `-nt` druckt whisper-cli nur den Text, je nach Build mischen sich aber
    Init-/Backend-Meldungen dazu. Diese werden zeilenweise verworfen.
    """
    lines = []
    for line in output.splitlines():
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.startswith("[") or any(marker in trimmed for marker in NOISE_MARKERS):
            continue
        lines.append(trimmed)
    return " ".join(lines)


class LocalBackend:
    """Lokaler whisper.cpp Provider.

    Der Aufruf blockiert bis der Prozess fertig ist und muss daher auf einem
    Worker-Thread laufen (siehe session.controller).
    """

    name = "local"

    def __init__(
        self,
        executable: Path | None = None,
        model_path: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self.executable = executable or get_env_path(
            "VOXPASTE_WHISPER_CLI", DEFAULT_WHISPER_CLI
        )
        self.model_path = model_path or get_env_path(
            "VOXPASTE_WHISPER_MODEL", DEFAULT_WHISPER_MODEL
        )
        self.timeout = timeout or get_env_float(
            "VOXPASTE_LOCAL_TIMEOUT", DEFAULT_LOCAL_TIMEOUT
        )

    def build_command(self, audio_path: Path, language: str | None = None) -> list[str]:
        return [
            str(self.executable),
            "-m", str(self.model_path),
            "-f", str(audio_path),
            "-nt",  # Keine Timestamps
            "-l", language or DEFAULT_LOCAL_LANGUAGE,
            "-np",  # Kein Progress-Output
        ]

    def transcribe(self, audio_path: Path, language: str | None = None) -> str:
        """Transkribiert eine WAV-Datei mit whisper-cli.

        Args:
            audio_path: Pfad zur WAV-Datei
            language: ISO-Sprachcode (default: en)

        Returns:
            Transkribierter Text

        Raises:
            ProcessLaunchFailure: Binary/Modell fehlt, Exit-Code != 0, Timeout
            NoSpeechDetected: Leeres Ergebnis oder [BLANK_AUDIO]
        """
        if not self.model_path.exists():
            raise ProcessLaunchFailure(
                f"Whisper-Modell nicht gefunden: {self.model_path}",
                FileNotFoundError(str(self.model_path)),
            )

        language = language or DEFAULT_LOCAL_LANGUAGE
        command = self.build_command(audio_path, language)
        logger.info(f"whisper-cli: {self.model_path.name}, lang={language}")

        try:
            with timed_operation("Whisper-CLI", logger=logger, include_session=False):
                process = subprocess.run(
                    command,
                    capture_output=True,
                    timeout=self.timeout,
                    check=False,
                )
        except FileNotFoundError as e:
            raise ProcessLaunchFailure(
                f"whisper-cli nicht gefunden: {self.executable}", e
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ProcessLaunchFailure(
                f"whisper-cli Timeout nach {self.timeout:.0f}s", e
            ) from e
        except OSError as e:
            raise ProcessLaunchFailure(f"whisper-cli konnte nicht starten: {e}", e) from e

        stderr = (process.stderr or b"").decode("utf-8", errors="replace")
        if stderr.strip():
            logger.debug(f"whisper-cli stderr:\n{stderr}")

        if process.returncode != 0:
            err = subprocess.CalledProcessError(
                process.returncode, command, process.stdout, process.stderr
            )
            raise ProcessLaunchFailure(
                f"whisper-cli beendet mit Exit-Code {process.returncode}", err
            ) from err

        stdout = (process.stdout or b"").decode("utf-8", errors="replace")
        transcription = parse_whisper_output(stdout)

        if not transcription or transcription == BLANK_AUDIO_SENTINEL:
            logger.info("Keine Sprache erkannt")
            raise NoSpeechDetected()

        logger.debug(f"Ergebnis: {log_preview(transcription)}")
        return transcription


__all__ = ["LocalBackend", "parse_whisper_output", "NOISE_MARKERS"]
