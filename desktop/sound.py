"""Akustisches Feedback für Session-Events.

macOS: System-Sounds via afplay (non-blocking)
Windows: winsound mit System-Sound-Aliases
Linux: kein Sound, nur Debug-Log
"""

import logging
import subprocess
import sys

from utils.state import FeedbackEvent

logger = logging.getLogger("voxpaste.desktop.sound")

# Event → System-Sound (macOS)
MACOS_SYSTEM_SOUNDS = {
    FeedbackEvent.RECORDING_STARTED: "/System/Library/Sounds/Tink.aiff",
    FeedbackEvent.RECORDING_STOPPED: "/System/Library/Sounds/Pop.aiff",
    FeedbackEvent.TRANSCRIBING: "/System/Library/Sounds/Morse.aiff",
    FeedbackEvent.COMPLETED: "/System/Library/Sounds/Glass.aiff",
    FeedbackEvent.ERROR: "/System/Library/Sounds/Basso.aiff",
    FeedbackEvent.CANCELLED: "/System/Library/Sounds/Funk.aiff",
}

# Windows System-Sound Aliases
WINDOWS_SYSTEM_SOUNDS = {
    FeedbackEvent.RECORDING_STARTED: "SystemAsterisk",
    FeedbackEvent.RECORDING_STOPPED: "SystemExclamation",
    FeedbackEvent.COMPLETED: "SystemAsterisk",
    FeedbackEvent.ERROR: "SystemHand",
    FeedbackEvent.CANCELLED: "SystemExclamation",
}


class SoundFeedback:
    """Feedback-Collaborator: spielt pro FeedbackEvent einen System-Sound."""

    def __init__(self) -> None:
        self._winsound = None
        if sys.platform == "win32":
            try:
                import winsound

                self._winsound = winsound
            except ImportError:
                logger.warning("winsound nicht verfügbar")

    def play(self, event: FeedbackEvent) -> None:
        logger.debug(f"Feedback: {event.value}")
        if sys.platform == "darwin":
            self._play_macos(event)
        elif self._winsound is not None:
            self._play_windows(event)

    def _play_macos(self, event: FeedbackEvent) -> None:
        sound_path = MACOS_SYSTEM_SOUNDS.get(event)
        if not sound_path:
            return
        try:
            subprocess.Popen(
                ["afplay", sound_path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug(f"afplay fehlgeschlagen: {e}")

    def _play_windows(self, event: FeedbackEvent) -> None:
        sound_alias = WINDOWS_SYSTEM_SOUNDS.get(event)
        if not sound_alias:
            return
        try:
            # SND_ALIAS | SND_ASYNC für non-blocking Playback
            self._winsound.PlaySound(
                sound_alias, self._winsound.SND_ALIAS | self._winsound.SND_ASYNC
            )
        except RuntimeError as e:
            logger.debug(f"Sound-Playback fehlgeschlagen: {e}")


__all__ = ["SoundFeedback", "MACOS_SYSTEM_SOUNDS", "WINDOWS_SYSTEM_SOUNDS"]
