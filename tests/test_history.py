"""Tests für die Transkript-Historie (HistoryStore)."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from cli.types import SpeechProvider
from errors import AudioFileMissing
from utils.history import (
    EvictionPolicy,
    HistoryStore,
    TranscriptRecord,
    eviction_policy_from_env,
)


class TickingClock:
    """Liefert streng monoton steigende Zeitstempel."""

    def __init__(self):
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def make_store(tmp_path):
    stores = []

    def _create(**kwargs):
        kwargs.setdefault("clock", TickingClock())
        store = HistoryStore(tmp_path / "history.json", tmp_path / "transcripts", **kwargs)
        stores.append(store)
        return store

    yield _create
    for store in stores:
        store.close()


class FakeTranscriber:
    def __init__(self, text="neu", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def retranscribe_file(self, audio_path, provider):
        self.calls.append((audio_path, provider))
        if self.error is not None:
            raise self.error
        return self.text


class TestSave:
    """Tests für HistoryStore.save()."""

    def test_save_creates_record_and_copies_audio(self, make_store, wav_file):
        store = make_store()
        record = store.save("Hallo Welt", SpeechProvider.groq, wav_file)
        store.flush()

        assert record.text == "Hallo Welt"
        assert record.provider is SpeechProvider.groq
        assert record.audio_file_name == f"transcript_{record.id}.wav"
        assert store.audio_path(record).read_bytes() == wav_file.read_bytes()

    def test_persisted_as_json_list(self, make_store, wav_file, tmp_path):
        store = make_store()
        record = store.save("Eins", SpeechProvider.local, wav_file)

        data = json.loads((tmp_path / "history.json").read_text())
        assert data == [record.to_dict()]

    def test_reload_from_disk(self, make_store, wav_file):
        store = make_store()
        first = store.save("Eins", SpeechProvider.local, wav_file)
        second = store.save("Zwei", SpeechProvider.openai, wav_file)
        store.flush()

        reloaded = make_store()
        assert [r.id for r in reloaded.get_all()] == [second.id, first.id]
        assert reloaded.get(first.id) == first

    def test_missing_source_audio_is_logged_not_raised(self, make_store, tmp_path):
        """Fehlgeschlagene Audio-Kopie bricht save() nicht ab."""
        store = make_store()
        record = store.save("Text", SpeechProvider.local, tmp_path / "missing.wav")
        store.flush()

        assert store.get(record.id) is not None
        assert not store.audio_path(record).exists()

    def test_corrupt_file_loads_empty(self, tmp_path):
        (tmp_path / "history.json").write_text("{not json")
        store = HistoryStore(tmp_path / "history.json", tmp_path / "transcripts")
        try:
            assert store.get_all() == []
        finally:
            store.close()


class TestQueries:
    """Tests für get_all() / get_recent() / get()."""

    def test_newest_first(self, make_store, wav_file):
        store = make_store()
        ids = [store.save(f"T{i}", SpeechProvider.local, wav_file).id for i in range(3)]
        assert [r.id for r in store.get_all()] == list(reversed(ids))

    def test_get_recent_is_prefix(self, make_store, wav_file):
        store = make_store()
        for i in range(5):
            store.save(f"T{i}", SpeechProvider.local, wav_file)
        assert store.get_recent(2) == store.get_all()[:2]
        assert store.get_recent(0) == []

    def test_get_unknown(self, make_store):
        assert make_store().get("nope") is None

    def test_find_by_prefix(self, make_store, wav_file):
        store = make_store()
        record = store.save("T", SpeechProvider.local, wav_file)
        assert store.find(record.id[:8]) == record


class TestCapacity:
    """Tests für die Kapazitätsgrenze.

    Welcher Eintrag bei voller Historie verworfen wird, ist noch nicht final
    entschieden. Beide Varianten sind hier festgehalten.
    """

    def _fill(self, store, wav_file, count):
        return [store.save(f"T{i}", SpeechProvider.local, wav_file) for i in range(count)]

    def test_default_policy_is_most_recent(self, make_store):
        assert make_store().eviction_policy is EvictionPolicy.EVICT_MOST_RECENT

    def test_fifty_first_save_evicts_most_recent_by_default(self, make_store, wav_file):
        """Bisheriges Verhalten: beim 51. Save fliegt der bis dahin neueste Eintrag."""
        store = make_store()
        records = self._fill(store, wav_file, 50)

        new = store.save("T50", SpeechProvider.local, wav_file)
        store.flush()

        all_ids = [r.id for r in store.get_all()]
        assert len(all_ids) == 50
        assert all_ids[0] == new.id
        assert records[-1].id not in all_ids
        assert records[0].id in all_ids
        assert not store.audio_path(records[-1]).exists()

    def test_fifty_first_save_evicts_oldest(self, make_store, wav_file):
        store = make_store(eviction_policy=EvictionPolicy.EVICT_OLDEST)
        records = self._fill(store, wav_file, 50)

        store.save("T50", SpeechProvider.local, wav_file)
        store.flush()

        all_ids = [r.id for r in store.get_all()]
        assert len(all_ids) == 50
        assert records[0].id not in all_ids
        assert records[-1].id in all_ids
        assert not store.audio_path(records[0]).exists()

    def test_custom_capacity(self, make_store, wav_file):
        store = make_store(capacity=2, eviction_policy=EvictionPolicy.EVICT_OLDEST)
        self._fill(store, wav_file, 5)
        assert [r.text for r in store.get_all()] == ["T4", "T3"]

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("evict-oldest", EvictionPolicy.EVICT_OLDEST),
            ("EVICT-MOST-RECENT", EvictionPolicy.EVICT_MOST_RECENT),
            ("bogus", EvictionPolicy.EVICT_MOST_RECENT),
        ],
    )
    def test_policy_from_env(self, monkeypatch, raw, expected):
        monkeypatch.setenv("VOXPASTE_HISTORY_EVICTION", raw)
        assert eviction_policy_from_env() is expected


class TestDelete:
    """Tests für delete() / clear()."""

    def test_delete_removes_record_and_audio(self, make_store, wav_file):
        store = make_store()
        record = store.save("T", SpeechProvider.local, wav_file)
        store.flush()

        assert store.delete(record.id) is True
        store.flush()

        assert store.get(record.id) is None
        assert not store.audio_path(record).exists()

    def test_delete_unknown_is_noop(self, make_store, wav_file):
        store = make_store()
        store.save("T", SpeechProvider.local, wav_file)
        assert store.delete("unknown") is False
        assert len(store.get_all()) == 1

    def test_clear(self, make_store, wav_file):
        store = make_store()
        records = [store.save(f"T{i}", SpeechProvider.local, wav_file) for i in range(3)]
        assert store.clear() == 3
        store.flush()

        assert store.get_all() == []
        assert all(not store.audio_path(r).exists() for r in records)


class TestRetranscribe:
    """Tests für retranscribe()."""

    def test_success_does_not_modify_record(self, make_store, wav_file):
        transcriber = FakeTranscriber("Neuer Text")
        store = make_store(transcriber=transcriber)
        record = store.save("Alter Text", SpeechProvider.local, wav_file)

        text = store.retranscribe(record, SpeechProvider.groq).result(timeout=5)

        assert text == "Neuer Text"
        assert transcriber.calls == [(store.audio_path(record), SpeechProvider.groq)]
        assert store.get(record.id).text == "Alter Text"

    def test_missing_audio(self, make_store, wav_file):
        """Gelöschte Audiodatei → AudioFileMissing, Backend wird nicht aufgerufen."""
        transcriber = FakeTranscriber()
        store = make_store(transcriber=transcriber)
        record = store.save("T", SpeechProvider.local, wav_file)
        store.flush()
        store.audio_path(record).unlink()

        with pytest.raises(AudioFileMissing):
            store.retranscribe(record, SpeechProvider.openai).result(timeout=5)
        assert transcriber.calls == []
        assert store.get(record.id) == record

    def test_backend_error_propagates(self, make_store, wav_file):
        from errors import NetworkError

        store = make_store(transcriber=FakeTranscriber(error=NetworkError("offline")))
        record = store.save("T", SpeechProvider.local, wav_file)

        with pytest.raises(NetworkError):
            store.retranscribe(record, SpeechProvider.openai).result(timeout=5)


class TestTranscriptRecord:
    """Tests für die JSON-Darstellung."""

    def test_from_dict_accepts_display_name(self):
        record = TranscriptRecord.from_dict(
            {
                "id": "abc",
                "timestamp": "2025-01-01T10:00:00",
                "text": "Hi",
                "provider": "Local Whisper",
            }
        )
        assert record.provider is SpeechProvider.local
        assert record.audio_file_name == "transcript_abc.wav"
        assert record.timestamp.tzinfo is not None
