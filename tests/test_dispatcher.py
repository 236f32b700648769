"""Tests für den BackendDispatcher."""

from unittest.mock import Mock

import pytest

from cli.types import OutputLanguage, SpeechProvider
from errors import CaptureError, ConfigurationError
from prompts import PromptTemplate
from session.dispatcher import BackendDispatcher
from tests.conftest import FakeRecorder
from utils.preferences import ProviderConfiguration


@pytest.fixture
def backends():
    return {provider: Mock(name=provider.value) for provider in SpeechProvider}


@pytest.fixture
def dispatcher(fake_recorder, composer, backends):
    return BackendDispatcher(
        fake_recorder,
        composer,
        settings_loader=lambda: ProviderConfiguration(groq_api_key="gsk"),
        backend_factory=backends.__getitem__,
    )


class TestConfiguration:
    """Tests für check_configuration()."""

    def test_local_needs_no_key(self, dispatcher):
        dispatcher.check_configuration(ProviderConfiguration(provider=SpeechProvider.local))

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_cloud_without_key(self, dispatcher, key):
        config = ProviderConfiguration(provider=SpeechProvider.openai, openai_api_key=key)
        with pytest.raises(ConfigurationError):
            dispatcher.check_configuration(config)

    def test_cloud_with_key(self, dispatcher):
        dispatcher.check_configuration(
            ProviderConfiguration(provider=SpeechProvider.groq, groq_api_key="gsk")
        )


class TestCapture:
    """Tests für begin_capture() / finish_capture() / abort_capture()."""

    def test_begin_uses_preferred_device(self, dispatcher, fake_recorder):
        dispatcher.begin_capture(ProviderConfiguration(preferred_device_id=3))
        assert fake_recorder.started_with == [3]
        assert dispatcher.is_capturing

    def test_missing_key_checked_before_recorder(self, dispatcher, fake_recorder):
        """Fehlender API-Key wird vor dem Öffnen des Mikrofons erkannt."""
        with pytest.raises(ConfigurationError):
            dispatcher.begin_capture(ProviderConfiguration(provider=SpeechProvider.openai))
        assert fake_recorder.started_with == []

    def test_recorder_failure_becomes_capture_error(self, tmp_path, composer):
        recorder = FakeRecorder(tmp_path / "r.wav", fail_on_start=OSError("no device"))
        dispatcher = BackendDispatcher(recorder, composer)
        with pytest.raises(CaptureError):
            dispatcher.begin_capture(ProviderConfiguration())
        assert not dispatcher.is_capturing

    def test_finish_returns_path(self, dispatcher, fake_recorder):
        dispatcher.begin_capture(ProviderConfiguration())
        path = dispatcher.finish_capture()
        assert path == fake_recorder.output_path
        assert not dispatcher.is_capturing

    def test_finish_without_capture(self, dispatcher):
        with pytest.raises(CaptureError):
            dispatcher.finish_capture()

    def test_finish_without_file(self, dispatcher, fake_recorder):
        fake_recorder.write_file = False
        dispatcher.begin_capture(ProviderConfiguration())
        with pytest.raises(CaptureError):
            dispatcher.finish_capture()
        assert not dispatcher.is_capturing

    def test_abort(self, dispatcher, fake_recorder):
        dispatcher.begin_capture(ProviderConfiguration())
        dispatcher.abort_capture()
        assert fake_recorder.aborted == 1
        assert not dispatcher.is_capturing


class TestTranscribe:
    """Tests für transcribe()."""

    def test_local_uses_language_code(self, dispatcher, backends, wav_file):
        backends[SpeechProvider.local].transcribe.return_value = "lokal"
        config = ProviderConfiguration(output_language=OutputLanguage.french)

        assert dispatcher.transcribe(wav_file, config) == "lokal"
        backends[SpeechProvider.local].transcribe.assert_called_once_with(wav_file, "fr")

    def test_local_auto_language_from_keyboard(self, dispatcher, backends, wav_file):
        dispatcher.transcribe(wav_file, ProviderConfiguration())
        backends[SpeechProvider.local].transcribe.assert_called_once_with(wav_file, "de")

    def test_cloud_with_prompt_and_language(self, dispatcher, backends, wav_file):
        backends[SpeechProvider.openai].transcribe.return_value = "cloud"
        config = ProviderConfiguration(
            provider=SpeechProvider.openai,
            openai_api_key="sk-1",
            prompt_template=PromptTemplate.professional,
            output_language=OutputLanguage.german,
        )

        assert dispatcher.transcribe(wav_file, config) == "cloud"
        backends[SpeechProvider.openai].transcribe.assert_called_once_with(
            wav_file,
            "sk-1",
            prompt=(
                "Professional business communication for Slack. Use proper grammar, "
                "formal tone, and clear structure. Output in German."
            ),
            language="de",
        )

    def test_empty_custom_prompt_omitted(self, dispatcher, backends, wav_file):
        config = ProviderConfiguration(
            provider=SpeechProvider.groq,
            groq_api_key="gsk",
            prompt_template=PromptTemplate.custom,
            custom_prompt="",
        )
        dispatcher.transcribe(wav_file, config)
        _, kwargs = backends[SpeechProvider.groq].transcribe.call_args
        assert kwargs["prompt"] is None

    def test_cloud_without_key(self, dispatcher, backends, wav_file):
        with pytest.raises(ConfigurationError):
            dispatcher.transcribe(wav_file, ProviderConfiguration(provider=SpeechProvider.groq))
        backends[SpeechProvider.groq].transcribe.assert_not_called()

    def test_retranscribe_without_prompt(self, dispatcher, backends, wav_file):
        """Retranscription nutzt den gewählten Provider, aber keinen Prompt."""
        backends[SpeechProvider.groq].transcribe.return_value = "neu"

        assert dispatcher.retranscribe_file(wav_file, SpeechProvider.groq) == "neu"
        backends[SpeechProvider.groq].transcribe.assert_called_once_with(
            wav_file, "gsk", prompt=None, language="de"
        )

    def test_backend_cached(self, dispatcher):
        assert dispatcher.backend_for(SpeechProvider.openai) is dispatcher.backend_for(
            SpeechProvider.openai
        )
