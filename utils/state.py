from enum import Enum


class RecordingState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class FeedbackEvent(Enum):
    RECORDING_STARTED = "recording_started"
    RECORDING_STOPPED = "recording_stopped"
    TRANSCRIBING = "transcribing"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"
