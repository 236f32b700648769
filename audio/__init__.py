"""Audio-Modul für VoxPaste.

Bietet die Mikrofon-Aufnahme für Diktier-Sessions.

Usage:
    from audio import AudioRecorder

    recorder = AudioRecorder()
    recorder.start_capture()
    # ... später ...
    path = recorder.stop_capture()
"""

from .recording import AudioCapture, AudioRecorder

__all__ = [
    "AudioCapture",
    "AudioRecorder",
]
