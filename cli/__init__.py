"""CLI module for VoxPaste."""

from .types import (
    SpeechProvider,
    OutputLanguage,
)

__all__ = [
    "SpeechProvider",
    "OutputLanguage",
]
