"""
Gemeinsame Test-Fixtures für VoxPaste.

Diese Fixtures isolieren Tests von externen Abhängigkeiten:
- Umgebungsvariablen (API-Keys, VOXPASTE_*)
- Dateisystem (History, Preferences)
- Plattform-Detektoren (aktive App, Tastatursprache)

Shared Fakes für die Session-Engine:
- FakeRecorder: AudioCapture ohne Mikrofon
- StaticAppDetector / StaticKeyboard: feste Werte für den PromptComposer
"""

import sys
from pathlib import Path

import pytest

# Projekt-Root zum Python-Path hinzufügen
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Fakes
# =============================================================================


class FakeRecorder:
    """AudioCapture-Fake: schreibt beim Stop eine (fast leere) WAV-Datei."""

    def __init__(self, output_path: Path, *, fail_on_start: Exception | None = None):
        self.output_path = output_path
        self.fail_on_start = fail_on_start
        self.started_with: list = []
        self.stopped = 0
        self.aborted = 0
        self.write_file = True

    def start_capture(self, device_id=None):
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.started_with.append(device_id)

    def stop_capture(self) -> Path:
        self.stopped += 1
        if self.write_file:
            self.output_path.write_bytes(b"RIFF----WAVEfmt ")
        return self.output_path

    def abort_capture(self):
        self.aborted += 1


class StaticAppDetector:
    def __init__(self, name: str | None = "Slack"):
        self.name = name

    def get_frontmost_app(self) -> str | None:
        return self.name


class StaticKeyboard:
    def __init__(self, code: str | None = "de-DE"):
        self.code = code

    def get_keyboard_language(self) -> str | None:
        return self.code


# =============================================================================
# Environment & Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Entfernt alle VOXPASTE_* Variablen und API-Keys für saubere Tests."""
    import os

    for key in list(os.environ.keys()):
        if key.startswith("VOXPASTE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)


@pytest.fixture
def mock_env(monkeypatch):
    """Setzt Test-API-Keys für isolierte Tests."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key-openai")
    monkeypatch.setenv("GROQ_API_KEY", "test-key-groq")


@pytest.fixture
def wav_file(tmp_path) -> Path:
    """Minimale WAV-Datei (Inhalt ist für Fakes egal)."""
    path = tmp_path / "input.wav"
    path.write_bytes(b"RIFF----WAVEfmt ")
    return path


@pytest.fixture
def fake_recorder(tmp_path) -> FakeRecorder:
    return FakeRecorder(tmp_path / "recording.wav")


@pytest.fixture
def composer():
    """PromptComposer mit festen Collaborators (Slack, de-DE)."""
    from prompts import PromptComposer

    return PromptComposer(app_detector=StaticAppDetector(), keyboard=StaticKeyboard())


@pytest.fixture
def history_store(tmp_path):
    """HistoryStore in tmp_path, wird nach dem Test geschlossen."""
    from utils.history import HistoryStore

    store = HistoryStore(tmp_path / "history.json", tmp_path / "transcripts")
    yield store
    store.close()
