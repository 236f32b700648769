"""Session-Engine für VoxPaste.

Usage:
    from session import build_session

    session = build_session()
    session.controller.start()
    # ... später ...
    text = session.controller.stop().result()
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .controller import SessionController
from .dispatcher import BackendDispatcher

if TYPE_CHECKING:
    from utils.history import HistoryStore


@dataclass
class Session:
    """Einmal pro Prozess gebaute Services."""

    controller: SessionController
    dispatcher: BackendDispatcher
    history: "HistoryStore"

    def close(self) -> None:
        self.history.close()
        self.dispatcher.close()


def build_session(
    *,
    recorder=None,
    composer=None,
    history=None,
    delivery=None,
    feedback=None,
    settings_loader=None,
    on_state_change=None,
) -> Session:
    """Baut Recorder, Dispatcher, Historie und Controller mit Defaults zusammen."""
    from utils.history import HistoryStore, eviction_policy_from_env
    from utils.preferences import load_provider_configuration

    if recorder is None:
        from audio import AudioRecorder

        recorder = AudioRecorder()
    if delivery is None:
        from desktop import get_text_delivery

        delivery = get_text_delivery()
    if feedback is None:
        from desktop import get_feedback_player

        feedback = get_feedback_player()

    dispatcher = BackendDispatcher(
        recorder,
        composer,
        settings_loader=settings_loader or load_provider_configuration,
    )
    if history is None:
        history = HistoryStore(eviction_policy=eviction_policy_from_env())
    history.transcriber = dispatcher

    controller = SessionController(
        dispatcher,
        history=history,
        delivery=delivery,
        feedback=feedback,
        on_state_change=on_state_change,
    )
    return Session(controller=controller, dispatcher=dispatcher, history=history)


__all__ = ["BackendDispatcher", "Session", "SessionController", "build_session"]
