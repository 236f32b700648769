"""Zustandsmaschine einer Diktier-Session.

    IDLE ──start()──▶ RECORDING ──stop()──▶ TRANSCRIBING ──▶ IDLE
                          │
                          └──cancel()──▶ IDLE

Es gibt immer nur eine Session. Ungültige Aufrufe (z.B. start() während einer
Transkription) werden ignoriert und nicht gepuffert. Die Transkription läuft
auf einem Worker-Thread; das Ergebnis wird über ein Future genau einmal
geliefert.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Protocol

from errors import ConfigurationError, VoxPasteError
from session.dispatcher import BackendDispatcher
from utils.history import HistoryStore
from utils.logging import get_session_id, new_session_id
from utils.state import FeedbackEvent, RecordingState
from utils.timing import log_preview

logger = logging.getLogger("voxpaste.session")


class TextDelivery(Protocol):
    def deliver(self, text: str) -> bool: ...


class FeedbackPlayer(Protocol):
    def play(self, event: FeedbackEvent) -> None: ...


StateListener = Callable[[RecordingState, RecordingState], None]


class SessionController:
    """Steuert Aufnahme → Transkription → Historie → Text-Übergabe.

    Args:
        dispatcher: BackendDispatcher (Recorder + Backends)
        history: Optionaler HistoryStore für erfolgreiche Transkripte
        delivery: Optionaler Text-Delivery Collaborator
        feedback: Optionaler Feedback Collaborator (Sounds)
        on_state_change: Listener (old, new); wird unter dem State-Lock aufgerufen
            und darf daher nicht blockieren
    """

    def __init__(
        self,
        dispatcher: BackendDispatcher,
        history: HistoryStore | None = None,
        delivery: TextDelivery | None = None,
        feedback: FeedbackPlayer | None = None,
        on_state_change: StateListener | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._history = history
        self._delivery = delivery
        self._feedback = feedback
        self.on_state_change = on_state_change

        self._lock = threading.RLock()
        self._state = RecordingState.IDLE
        self._config = None
        self._worker_thread: threading.Thread | None = None
        # Ergebnis der letzten Text-Übergabe (None: keine Übergabe erfolgt)
        self.last_delivered: bool | None = None

    @property
    def state(self) -> RecordingState:
        with self._lock:
            return self._state

    def _set_state(self, new_state: RecordingState) -> None:
        """Setzt den Zustand (Aufrufer hält den Lock)."""
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        logger.debug(f"[{get_session_id()}] State: {old_state.value} → {new_state.value}")
        if self.on_state_change is not None:
            try:
                self.on_state_change(old_state, new_state)
            except Exception:
                logger.exception("State-Listener fehlgeschlagen")

    def _fire(self, event: FeedbackEvent) -> None:
        if self._feedback is None:
            return
        try:
            self._feedback.play(event)
        except Exception as e:
            logger.debug(f"Feedback {event.value} fehlgeschlagen: {e}")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """Startet eine Aufnahme. Nur in IDLE gültig.

        Returns:
            True wenn die Aufnahme läuft
        """
        with self._lock:
            if self._state is not RecordingState.IDLE:
                logger.debug(f"start() ignoriert (State: {self._state.value})")
                return False

            new_session_id()
            try:
                config = self._dispatcher.load_configuration()
                self._dispatcher.check_configuration(config)
            except ConfigurationError as e:
                logger.warning(f"[{get_session_id()}] {e}")
                self._fire(FeedbackEvent.ERROR)
                return False

            self._config = config
            self._set_state(RecordingState.RECORDING)
            try:
                self._dispatcher.begin_capture(config)
            except VoxPasteError as e:
                logger.error(f"[{get_session_id()}] Aufnahme-Start fehlgeschlagen: {e}")
                self._set_state(RecordingState.IDLE)
                self._config = None
                self._fire(FeedbackEvent.ERROR)
                return False

        logger.info(f"[{get_session_id()}] Aufnahme läuft ({config.provider.display_name})")
        self._fire(FeedbackEvent.RECORDING_STARTED)
        return True

    def stop(self, on_complete: Callable[[Future], None] | None = None) -> "Future[str] | None":
        """Beendet die Aufnahme und startet die Transkription.

        Args:
            on_complete: Done-Callback, wird genau einmal mit dem Future aufgerufen

        Returns:
            Future mit dem Transkript (oder der Exception), None wenn nicht RECORDING
        """
        with self._lock:
            if self._state is not RecordingState.RECORDING:
                logger.debug(f"stop() ignoriert (State: {self._state.value})")
                return None
            self._set_state(RecordingState.TRANSCRIBING)
            config = self._config
            self._config = None
            self.last_delivered = None

        future: Future[str] = Future()
        if on_complete is not None:
            future.add_done_callback(on_complete)

        self._fire(FeedbackEvent.RECORDING_STOPPED)
        self._fire(FeedbackEvent.TRANSCRIBING)

        self._worker_thread = threading.Thread(
            target=self._transcription_worker,
            args=(config, future),
            daemon=True,
            name="TranscriptionWorker",
        )
        self._worker_thread.start()
        return future

    def cancel(self) -> bool:
        """Verwirft die laufende Aufnahme ohne Transkription. Nur in RECORDING gültig."""
        with self._lock:
            if self._state is not RecordingState.RECORDING:
                logger.debug(f"cancel() ignoriert (State: {self._state.value})")
                return False
            try:
                self._dispatcher.abort_capture()
            except Exception:
                logger.exception(f"[{get_session_id()}] Abbruch der Aufnahme fehlgeschlagen")
            finally:
                self._config = None
                self._set_state(RecordingState.IDLE)

        logger.info(f"[{get_session_id()}] Aufnahme abgebrochen")
        self._fire(FeedbackEvent.CANCELLED)
        return True

    def toggle(self) -> "bool | Future[str] | None":
        """Hotkey-Komfort: IDLE → start(), RECORDING → stop(), sonst ignoriert."""
        state = self.state
        if state is RecordingState.IDLE:
            return self.start()
        if state is RecordingState.RECORDING:
            return self.stop()
        logger.debug("toggle() während Transkription ignoriert")
        return None

    def join(self, timeout: float | None = None) -> None:
        """Wartet auf den aktuellen Worker-Thread (CLI/Tests)."""
        worker = self._worker_thread
        if worker is not None:
            worker.join(timeout=timeout)

    # -------------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------------

    def _finish(self, event: FeedbackEvent) -> None:
        self._fire(event)
        with self._lock:
            self._set_state(RecordingState.IDLE)

    def _transcription_worker(self, config, future: Future) -> None:
        session_id = get_session_id()
        try:
            audio_path = self._dispatcher.finish_capture()
            text = self._dispatcher.transcribe(audio_path, config)
        except VoxPasteError as e:
            logger.warning(f"[{session_id}] Transkription fehlgeschlagen: {e}")
            self._finish(FeedbackEvent.ERROR)
            future.set_exception(e)
            return
        except Exception as e:
            logger.exception(f"[{session_id}] Unerwarteter Fehler im Worker")
            self._finish(FeedbackEvent.ERROR)
            future.set_exception(e)
            return

        logger.info(f"[{session_id}] Ergebnis: {log_preview(text)}")

        try:
            if self._history is not None:
                try:
                    self._history.save(text, config.provider, audio_path)
                except Exception:
                    logger.exception(f"[{session_id}] History konnte nicht gespeichert werden")

            if self._delivery is not None:
                self.last_delivered = False
                try:
                    self.last_delivered = bool(self._delivery.deliver(text))
                except Exception:
                    logger.exception(f"[{session_id}] Text-Übergabe fehlgeschlagen")
        finally:
            self._finish(FeedbackEvent.COMPLETED)
            future.set_result(text)


__all__ = ["SessionController", "TextDelivery", "FeedbackPlayer"]
