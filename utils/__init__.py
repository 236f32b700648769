"""Utility-Module für VoxPaste.

Gemeinsame Hilfsfunktionen für Logging und Zeitmessung.

Usage:
    from utils import setup_logging, log, error, timed_operation

    setup_logging(debug=True)
    with timed_operation("API-Call"):
        do_something()
"""

# NOTE:
# Keep this package-level re-export module intentionally small.
# Module wie history/preferences importieren `config` und `cli.types`; hier nicht
# re-exportieren, sonst entstehen zirkuläre Imports beim Start.

from .logging import setup_logging, log, error, get_logger, get_session_id
from .timing import timed_operation, format_duration, log_preview

__all__ = [
    "setup_logging",
    "log",
    "error",
    "get_logger",
    "get_session_id",
    "timed_operation",
    "log_preview",
    "format_duration",
]
