"""Tests für die Cloud-Provider (OpenAI / Groq) mit httpx.MockTransport."""

import json

import httpx
import pytest

from errors import APIError, AudioFileMissing, InvalidResponseFormat, NetworkError
from providers.cloud import (
    CloudBackend,
    groq_endpoint,
    openai_endpoint,
    parse_transcription_response,
)


def _backend(handler, endpoint=None) -> CloudBackend:
    return CloudBackend(endpoint or openai_endpoint(), transport=httpx.MockTransport(handler))


def _json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


class TestEndpoints:
    """Tests für die Provider-Endpunkte."""

    def test_openai_defaults(self):
        endpoint = openai_endpoint()
        assert endpoint.url == "https://api.openai.com/v1/audio/transcriptions"
        assert endpoint.model == "whisper-1"

    def test_groq_defaults(self):
        endpoint = groq_endpoint()
        assert endpoint.url == "https://api.groq.com/openai/v1/audio/transcriptions"
        assert endpoint.model == "whisper-large-v3"

    def test_model_env_override(self, monkeypatch):
        """VOXPASTE_GROQ_MODEL überschreibt das Default-Modell."""
        monkeypatch.setenv("VOXPASTE_GROQ_MODEL", "whisper-large-v3-turbo")
        assert groq_endpoint().model == "whisper-large-v3-turbo"


class TestParseResponse:
    """Tests für parse_transcription_response()."""

    def test_text(self):
        assert parse_transcription_response(b'{"text": "Hallo"}') == "Hallo"

    def test_empty_text_is_success(self):
        """Leerer Text ist eine gültige Antwort (kein Fehler)."""
        assert parse_transcription_response(b'{"text": ""}') == ""

    def test_error_message(self):
        """{"error": {"message": ...}} → APIError."""
        with pytest.raises(APIError) as exc_info:
            parse_transcription_response(b'{"error": {"message": "Invalid API key"}}')
        assert exc_info.value.message == "Invalid API key"

    def test_error_beats_text(self):
        """Fehlerobjekt hat Vorrang vor text."""
        with pytest.raises(APIError):
            parse_transcription_response(b'{"text": "x", "error": {"message": "boom"}}')

    def test_missing_text(self):
        with pytest.raises(InvalidResponseFormat):
            parse_transcription_response(b'{"foo": "bar"}')

    def test_non_object(self):
        with pytest.raises(InvalidResponseFormat):
            parse_transcription_response(b'["text"]')

    def test_malformed_json(self):
        with pytest.raises(InvalidResponseFormat):
            parse_transcription_response(b"<html>Bad Gateway</html>")

    def test_empty_body(self):
        """Keine Daten → NetworkError."""
        with pytest.raises(NetworkError):
            parse_transcription_response(b"")


class TestBuildRequest:
    """Tests für CloudBackend.build_request()."""

    def test_file_part_and_order(self):
        backend = _backend(lambda request: _json_response({"text": ""}))
        request = backend.build_request(b"RIFF", "sk-test", language="de")
        body = request.read().decode("latin-1")

        assert body.index('name="model"') < body.index('name="file"') < body.index('name="language"')
        assert 'filename="audio.wav"' in body
        assert "Content-Type: audio/wav" in body
        assert 'name="prompt"' not in body


class TestCloudTranscribe:
    """Tests für CloudBackend.transcribe()."""

    def test_request_shape(self, wav_file):
        """POST mit Bearer-Auth und Parts model → file → prompt → language."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return _json_response({"text": "Hallo Welt"})

        backend = _backend(handler)
        text = backend.transcribe(wav_file, "sk-test", prompt="Output in German.", language="de")

        assert text == "Hallo Welt"
        request = captured["request"]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/audio/transcriptions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")

        body = request.content.decode("latin-1")
        positions = [body.index(f'name="{name}"') for name in ("model", "file", "prompt", "language")]
        assert positions == sorted(positions)
        assert "whisper-1" in body
        assert "Output in German." in body

    def test_optional_parts_omitted(self, wav_file):
        """Leerer Prompt / keine Sprache → keine Parts."""
        captured = {}

        def handler(request):
            captured["body"] = request.content.decode("latin-1")
            return _json_response({"text": "ok"})

        _backend(handler, groq_endpoint()).transcribe(wav_file, "gsk", prompt="", language=None)

        assert 'name="prompt"' not in captured["body"]
        assert 'name="language"' not in captured["body"]
        assert "whisper-large-v3" in captured["body"]

    def test_api_error_independent_of_status(self, wav_file):
        """Fehler-JSON wird auch bei HTTP 401 als APIError gemeldet."""
        backend = _backend(lambda request: _json_response({"error": {"message": "Unauthorized"}}, 401))
        with pytest.raises(APIError, match="Unauthorized"):
            backend.transcribe(wav_file, "bad")

    def test_transport_error(self, wav_file):
        """Verbindungsfehler → NetworkError."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError):
            _backend(handler).transcribe(wav_file, "sk")

    def test_timeout(self, wav_file):
        """Timeout → NetworkError."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            _backend(handler).transcribe(wav_file, "sk")

    def test_missing_audio_file(self, tmp_path):
        """Nicht lesbare Audiodatei → AudioFileMissing, kein Request."""
        calls = []

        def handler(request):
            calls.append(request)
            return _json_response({"text": "x"})

        with pytest.raises(AudioFileMissing):
            _backend(handler).transcribe(tmp_path / "gone.wav", "sk")
        assert calls == []

    def test_single_request_no_retry(self, wav_file):
        """Genau ein Request, auch bei Fehlern."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, content=b"")

        with pytest.raises(NetworkError):
            _backend(handler).transcribe(wav_file, "sk")
        assert len(calls) == 1
