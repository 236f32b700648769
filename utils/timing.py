"""Zeitmessung für VoxPaste.

Backend-Aufrufe (whisper-cli, Cloud-Requests) werden mit `timed_operation`
gemessen; Dauer und Ergebnis landen im Log der jeweiligen Session.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass

from .logging import get_logger, get_session_id


def format_duration(milliseconds: float) -> str:
    """Formatiert Dauer menschenlesbar: ms, s oder m/s für lange lokale Läufe."""
    if milliseconds >= 60_000:
        minutes, seconds = divmod(milliseconds / 1000, 60)
        return f"{int(minutes)}m {seconds:02.0f}s"
    if milliseconds >= 1000:
        return f"{milliseconds / 1000:.2f}s"
    return f"{milliseconds:.0f}ms"


def log_preview(text: str, max_length: int = 100) -> str:
    """Einzeilige, gekürzte Vorschau eines Transkripts fürs Log."""
    flat = " ".join(text.split())
    if len(flat) <= max_length:
        return flat
    return f"{flat[:max_length]}…"


@dataclass
class Timing:
    """Ergebnis einer Messung; elapsed_ms ist erst nach dem Block gesetzt."""

    name: str
    elapsed_ms: float = 0.0
    failed: bool = False


@contextmanager
def timed_operation(
    name: str,
    *,
    logger=None,
    include_session: bool = True,
):
    """Misst einen Block und loggt Dauer bzw. Abbruch.

    Exceptions werden nicht abgefangen, nur mit Dauer als Warning geloggt.

    Usage:
        with timed_operation("Whisper-CLI", logger=provider_logger) as timing:
            ...
        timing.elapsed_ms
    """
    op_logger = logger or get_logger()
    prefix = f"[{get_session_id()}] " if include_session else ""
    timing = Timing(name)
    start = time.perf_counter()
    try:
        yield timing
    except BaseException:
        timing.failed = True
        raise
    finally:
        timing.elapsed_ms = (time.perf_counter() - start) * 1000
        duration = format_duration(timing.elapsed_ms)
        if timing.failed:
            op_logger.warning(f"{prefix}{name}: abgebrochen nach {duration}")
        else:
            op_logger.info(f"{prefix}{name}: {duration}")
