"""Audio-Aufnahme für VoxPaste.

Referenz-Implementierung des AudioCapture-Protokolls mit sounddevice.
Die Aufnahme landet als 16kHz Mono-WAV in einer temporären Datei.
"""

import logging
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Protocol

from config import (
    LEVEL_SAMPLE_INTERVAL,
    TEMP_RECORDING_FILENAME,
    WHISPER_BLOCKSIZE,
    WHISPER_CHANNELS,
    WHISPER_SAMPLE_RATE,
)
from errors import CaptureError
from utils.logging import get_session_id

logger = logging.getLogger("voxpaste.audio")


class AudioCapture(Protocol):
    """Minimales Interface, das der BackendDispatcher von einem Recorder erwartet."""

    def start_capture(self, device_id: int | None = None) -> None: ...

    def stop_capture(self) -> Path: ...

    def abort_capture(self) -> None: ...


class AudioRecorder:
    """Wiederverwendbare Audio-Aufnahme Klasse.

    Usage:
        recorder = AudioRecorder()
        recorder.start_capture()
        # ... später ...
        path = recorder.stop_capture()

    Args:
        output_path: Ziel-WAV (default: Temp-Verzeichnis)
        on_level: Optionaler Callback mit RMS-Pegel (0..1), alle
            LEVEL_SAMPLE_INTERVAL Blöcke aufgerufen
    """

    def __init__(
        self,
        sample_rate: int = WHISPER_SAMPLE_RATE,
        channels: int = WHISPER_CHANNELS,
        blocksize: int = WHISPER_BLOCKSIZE,
        output_path: Path | None = None,
        on_level: Callable[[float], None] | None = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.blocksize = blocksize
        self.output_path = output_path or Path(tempfile.gettempdir()) / TEMP_RECORDING_FILENAME
        self.on_level = on_level

        self._recorded_chunks: list = []
        self._stream = None
        self._recording_start: float = 0
        self._block_count = 0
        self._lock = threading.Lock()

    def _audio_callback(self, indata, _frames, _time_info, _status):
        """Callback: Sammelt Audio-Chunks während der Aufnahme."""
        with self._lock:
            self._recorded_chunks.append(indata.copy())
        self._block_count += 1
        if self.on_level is not None and self._block_count % LEVEL_SAMPLE_INTERVAL == 0:
            import numpy as np

            rms = float(np.sqrt(np.mean(np.square(indata))))
            try:
                self.on_level(min(rms, 1.0))
            except Exception as e:
                logger.debug(f"Level-Callback fehlgeschlagen: {e}")

    def start_capture(self, device_id: int | None = None) -> None:
        """Startet die Aufnahme.

        Raises:
            CaptureError: Stream konnte nicht geöffnet werden
        """
        import sounddevice as sd

        with self._lock:
            self._recorded_chunks = []
        self._block_count = 0
        self._recording_start = time.perf_counter()

        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                blocksize=self.blocksize,
                dtype="float32",
                device=device_id,
                callback=self._audio_callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._stream = None
            raise CaptureError(f"Mikrofon konnte nicht geöffnet werden: {e}") from e

        logger.info(f"[{get_session_id()}] Aufnahme gestartet (device={device_id})")

    def _close_stream(self) -> None:
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def stop_capture(self) -> Path:
        """Stoppt die Aufnahme und speichert die Audiodatei.

        Returns:
            Pfad zur gespeicherten WAV-Datei

        Raises:
            CaptureError: Wenn keine Audiodaten aufgenommen wurden
        """
        import numpy as np
        import soundfile as sf

        self._close_stream()

        recording_duration = time.perf_counter() - self._recording_start
        logger.info(f"[{get_session_id()}] Aufnahme: {recording_duration:.1f}s")

        with self._lock:
            chunks = self._recorded_chunks
            self._recorded_chunks = []

        if not chunks:
            logger.error(f"[{get_session_id()}] Keine Audiodaten aufgenommen")
            raise CaptureError("Keine Audiodaten aufgenommen.")

        audio_data = np.concatenate(chunks)
        sf.write(self.output_path, audio_data, self.sample_rate)
        return self.output_path

    def abort_capture(self) -> None:
        """Verwirft die laufende Aufnahme ohne Datei zu schreiben."""
        self._close_stream()
        with self._lock:
            self._recorded_chunks = []
        logger.info(f"[{get_session_id()}] Aufnahme verworfen")

    @property
    def is_recording(self) -> bool:
        """True wenn aktuell aufgenommen wird."""
        return self._stream is not None and self._stream.active
