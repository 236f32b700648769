"""Zentrale Konfiguration für VoxPaste.

Gemeinsame Konstanten für Audio, Provider-Endpunkte, Historie und Pfade.
Vermeidet Duplikation zwischen Modulen.
"""

from pathlib import Path

# =============================================================================
# Audio-Konfiguration
# =============================================================================

# Whisper erwartet Audio mit 16kHz – andere Sampleraten führen zu schlechteren Ergebnissen
WHISPER_SAMPLE_RATE = 16000
WHISPER_CHANNELS = 1
WHISPER_BLOCKSIZE = 1024

# Level-Samples nur alle N Blöcke an den Callback melden
LEVEL_SAMPLE_INTERVAL = 50

TEMP_RECORDING_FILENAME = "voxpaste_recording.wav"

# =============================================================================
# Lokales Whisper (whisper.cpp CLI)
# =============================================================================

DEFAULT_LOCAL_LANGUAGE = "en"
DEFAULT_LOCAL_TIMEOUT = 300.0  # Sekunden
BLANK_AUDIO_SENTINEL = "[BLANK_AUDIO]"

# =============================================================================
# Cloud-Endpunkte & Default-Modelle
# =============================================================================

OPENAI_TRANSCRIPTION_URL = "https://api.openai.com/v1/audio/transcriptions"
GROQ_TRANSCRIPTION_URL = "https://api.groq.com/openai/v1/audio/transcriptions"

DEFAULT_OPENAI_MODEL = "whisper-1"
DEFAULT_GROQ_MODEL = "whisper-large-v3"

DEFAULT_HTTP_TIMEOUT = 60.0  # Sekunden

# =============================================================================
# Historie
# =============================================================================

MAX_HISTORY_RECORDS = 50

# =============================================================================
# Lokale Pfade
# =============================================================================

# User-Verzeichnis für Konfiguration, Historie und Logs
USER_CONFIG_DIR = Path.home() / ".voxpaste"
USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

# Logs im User-Verzeichnis speichern
LOG_DIR = USER_CONFIG_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "voxpaste.log"

PREFS_FILE = USER_CONFIG_DIR / "preferences.json"
ENV_FILE = USER_CONFIG_DIR / ".env"

HISTORY_FILE = USER_CONFIG_DIR / "history.json"
HISTORY_AUDIO_DIR = USER_CONFIG_DIR / "transcripts"

# whisper.cpp Binary + Modell (überschreibbar via VOXPASTE_WHISPER_CLI / VOXPASTE_WHISPER_MODEL)
WHISPER_DIR = USER_CONFIG_DIR / "whisper"
DEFAULT_WHISPER_CLI = WHISPER_DIR / "whisper-cli"
DEFAULT_WHISPER_MODEL = WHISPER_DIR / "ggml-base.en.bin"


__all__ = [
    # Audio
    "WHISPER_SAMPLE_RATE",
    "WHISPER_CHANNELS",
    "WHISPER_BLOCKSIZE",
    "LEVEL_SAMPLE_INTERVAL",
    "TEMP_RECORDING_FILENAME",
    # Local
    "DEFAULT_LOCAL_LANGUAGE",
    "DEFAULT_LOCAL_TIMEOUT",
    "BLANK_AUDIO_SENTINEL",
    # Cloud
    "OPENAI_TRANSCRIPTION_URL",
    "GROQ_TRANSCRIPTION_URL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_GROQ_MODEL",
    "DEFAULT_HTTP_TIMEOUT",
    # History
    "MAX_HISTORY_RECORDS",
    # Paths
    "USER_CONFIG_DIR",
    "LOG_DIR",
    "LOG_FILE",
    "PREFS_FILE",
    "ENV_FILE",
    "HISTORY_FILE",
    "HISTORY_AUDIO_DIR",
    "WHISPER_DIR",
    "DEFAULT_WHISPER_CLI",
    "DEFAULT_WHISPER_MODEL",
]
