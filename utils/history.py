"""Transkript-Historie für VoxPaste.

Speichert die letzten Transkripte in ~/.voxpaste/history.json (JSON-Liste)
und die zugehörige Aufnahme als WAV in ~/.voxpaste/transcripts/.
Die Audiodatei ist deterministisch nach der Record-ID benannt, damit
Einträge später mit einem anderen Provider neu transkribiert werden können.

Dateioperationen (Audio kopieren/löschen) laufen seriell auf einem eigenen
I/O-Thread; die Record-Liste wird unter einem Lock geschrieben.
"""

import json
import logging
import os
import shutil
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from cli.types import SpeechProvider
from errors import AudioFileMissing
from utils.timing import log_preview

logger = logging.getLogger("voxpaste.history")


class EvictionPolicy(str, Enum):
    """Welcher Eintrag bei voller Historie verworfen wird.

    EVICT_MOST_RECENT entspricht dem bisherigen Verhalten der App (erstes
    Element der neueste-zuerst Liste). Ob das gewollt ist, ist offen.
    """

    EVICT_MOST_RECENT = "evict-most-recent"
    EVICT_OLDEST = "evict-oldest"


def eviction_policy_from_env(default: EvictionPolicy = EvictionPolicy.EVICT_MOST_RECENT) -> EvictionPolicy:
    """Liest VOXPASTE_HISTORY_EVICTION (evict-most-recent | evict-oldest)."""
    raw = os.getenv("VOXPASTE_HISTORY_EVICTION")
    if not raw or not raw.strip():
        return default
    try:
        return EvictionPolicy(raw.strip().lower())
    except ValueError:
        logger.warning(f"Ungültiger VOXPASTE_HISTORY_EVICTION={raw!r}, nutze {default.value}")
        return default


def audio_file_name_for(record_id: str) -> str:
    return f"transcript_{record_id}.wav"


@dataclass(frozen=True)
class TranscriptRecord:
    id: str
    timestamp: datetime
    text: str
    provider: SpeechProvider
    audio_file_name: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "text": self.text,
            "provider": self.provider.value,
            "audio_file_name": self.audio_file_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptRecord":
        """Raises KeyError/ValueError bei ungültigen Einträgen."""
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        record_id = str(data["id"])
        return cls(
            id=record_id,
            timestamp=timestamp,
            text=str(data["text"]),
            provider=SpeechProvider.parse(data["provider"]),
            audio_file_name=data.get("audio_file_name") or audio_file_name_for(record_id),
        )


class Transcriber(Protocol):
    def retranscribe_file(self, audio_path: Path, provider: SpeechProvider) -> str: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryStore:
    """Begrenzte Historie (default 50 Einträge) inkl. Audiodateien.

    Args:
        history_file: JSON-Datei für die Record-Liste
        audio_dir: Verzeichnis für die WAV-Kopien
        capacity: Maximale Anzahl Einträge
        eviction_policy: Welcher Eintrag bei Überlauf verworfen wird
        transcriber: Führt Retranscriptions aus (BackendDispatcher)
        clock: Zeitquelle (Tests)
    """

    def __init__(
        self,
        history_file: Path | None = None,
        audio_dir: Path | None = None,
        *,
        capacity: int | None = None,
        eviction_policy: EvictionPolicy = EvictionPolicy.EVICT_MOST_RECENT,
        transcriber: Transcriber | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        from config import HISTORY_AUDIO_DIR, HISTORY_FILE, MAX_HISTORY_RECORDS

        self.history_file = history_file or HISTORY_FILE
        self.audio_dir = audio_dir or HISTORY_AUDIO_DIR
        self.capacity = capacity if capacity is not None else MAX_HISTORY_RECORDS
        if self.capacity < 1:
            raise ValueError("capacity muss >= 1 sein")
        self.eviction_policy = eviction_policy
        self.transcriber = transcriber
        self._clock = clock

        self._lock = threading.RLock()
        self._io = ThreadPoolExecutor(max_workers=1, thread_name_prefix="HistoryIO")
        self._records: list[TranscriptRecord] = self._load()
        self._io.submit(self.audio_dir.mkdir, parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Persistenz
    # -------------------------------------------------------------------------

    def _load(self) -> list[TranscriptRecord]:
        if not self.history_file.exists():
            return []
        try:
            raw = json.loads(self.history_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"History nicht lesbar, starte leer: {e}")
            return []
        if not isinstance(raw, list):
            logger.warning("History hat unerwartetes Format, starte leer")
            return []

        records = []
        for entry in raw:
            try:
                records.append(TranscriptRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ungültiger History-Eintrag übersprungen: {e}")
        return records

    def _persist(self) -> None:
        """Schreibt die komplette Liste (Aufrufer hält den Lock)."""
        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            [record.to_dict() for record in self._records], ensure_ascii=False, indent=2
        )
        tmp_path = self.history_file.with_suffix(".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(self.history_file)

    def _copy_audio(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
            logger.debug(f"Audio gespeichert: {destination}")
        except OSError as e:
            logger.warning(f"Audio konnte nicht gespeichert werden ({source}): {e}")

    def _delete_audio(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Audio konnte nicht gelöscht werden ({path}): {e}")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def audio_path(self, record: TranscriptRecord) -> Path:
        return self.audio_dir / record.audio_file_name

    def _sorted(self) -> list[TranscriptRecord]:
        # Bei gleichem Timestamp gilt der später eingefügte Eintrag als neuer
        indexed = sorted(
            enumerate(self._records),
            key=lambda pair: (pair[1].timestamp, pair[0]),
            reverse=True,
        )
        return [record for _, record in indexed]

    def save(self, text: str, provider: SpeechProvider, audio_source: Path) -> TranscriptRecord:
        """Legt einen neuen Eintrag an und kopiert die Aufnahme asynchron.

        Ist die Historie voll, wird genau ein Eintrag gemäß eviction_policy verworfen.
        """
        record_id = str(uuid.uuid4())
        record = TranscriptRecord(
            id=record_id,
            timestamp=self._clock(),
            text=text,
            provider=provider,
            audio_file_name=audio_file_name_for(record_id),
        )

        with self._lock:
            self._io.submit(self._copy_audio, Path(audio_source), self.audio_path(record))

            if len(self._records) >= self.capacity:
                ordered = self._sorted()
                if self.eviction_policy is EvictionPolicy.EVICT_MOST_RECENT:
                    evicted = ordered[0]
                else:
                    evicted = ordered[-1]
                self._records.remove(evicted)
                self._io.submit(self._delete_audio, self.audio_path(evicted))
                logger.info(f"History voll ({self.capacity}), verwerfe {evicted.id}")

            self._records.append(record)
            self._persist()

        logger.debug(f"Transkript gespeichert: {log_preview(text, 50)}")
        return record

    def get_all(self) -> list[TranscriptRecord]:
        """Alle Einträge, neueste zuerst."""
        with self._lock:
            return self._sorted()

    def get_recent(self, limit: int) -> list[TranscriptRecord]:
        return self.get_all()[: max(limit, 0)]

    def get(self, record_id: str) -> TranscriptRecord | None:
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def find(self, prefix: str) -> TranscriptRecord | None:
        """Eindeutiger ID-Prefix → Record (für die CLI, IDs sind lang)."""
        with self._lock:
            matches = [record for record in self._records if record.id.startswith(prefix)]
        return matches[0] if len(matches) == 1 else None

    def delete(self, record_id: str) -> bool:
        """Entfernt einen Eintrag; unbekannte IDs sind ein No-op."""
        with self._lock:
            record = self.get(record_id)
            if record is None:
                return False
            self._records.remove(record)
            self._io.submit(self._delete_audio, self.audio_path(record))
            self._persist()
        logger.info(f"History-Eintrag gelöscht: {record_id}")
        return True

    def clear(self) -> int:
        """Löscht alle Einträge inkl. Audio. Gibt die Anzahl zurück."""
        with self._lock:
            removed = list(self._records)
            self._records.clear()
            for record in removed:
                self._io.submit(self._delete_audio, self.audio_path(record))
            self._persist()
        logger.info(f"History geleert: {len(removed)} Einträge")
        return len(removed)

    def retranscribe(self, record: TranscriptRecord, provider: SpeechProvider) -> "Future[str]":
        """Transkribiert die gespeicherte Aufnahme erneut.

        Der ursprüngliche Eintrag bleibt unverändert, der neue Text wird nur
        über das Future zurückgegeben.

        Raises (via Future):
            AudioFileMissing: Audiodatei existiert nicht mehr
        """
        path = self.audio_path(record)
        result: Future[str] = Future()
        # Existenz-Check auf dem I/O-Thread, damit laufende Kopien/Löschungen vorher abgeschlossen sind
        exists = self._io.submit(path.exists)

        def run() -> None:
            try:
                if not exists.result():
                    raise AudioFileMissing(path)
                if self.transcriber is None:
                    raise RuntimeError("Kein Transcriber konfiguriert")
                text = self.transcriber.retranscribe_file(path, provider)
            except Exception as e:
                logger.warning(f"Retranscription fehlgeschlagen ({record.id}): {e}")
                result.set_exception(e)
            else:
                result.set_result(text)

        threading.Thread(target=run, daemon=True, name="RetranscribeWorker").start()
        return result

    def flush(self) -> None:
        """Wartet bis alle ausstehenden Dateioperationen erledigt sind."""
        self._io.submit(lambda: None).result()

    def close(self) -> None:
        self._io.shutdown(wait=True)


__all__ = [
    "EvictionPolicy",
    "HistoryStore",
    "TranscriptRecord",
    "audio_file_name_for",
    "eviction_policy_from_env",
]
