#!/usr/bin/env python3
"""
Hauptmodul und CLI-Einstiegspunkt für VoxPaste.

Dieses Modul verdrahtet die Session-Engine mit der Kommandozeile:
- session/: Zustandsmaschine und Backend-Auswahl
- providers/: Transkriptions-Backends (lokal, OpenAI, Groq)
- utils/: Logging, Einstellungen, Historie

Transkripte werden auf stdout ausgegeben, Status auf stderr.

Usage:
    python transcribe.py transcribe audio.wav --provider groq
    python transcribe.py dictate
    python transcribe.py history list
"""

# Startup-Timing: Zeit erfassen BEVOR andere Imports laden
import time as _time_module  # noqa: E402 - muss vor anderen Imports sein

_PROCESS_START = _time_module.perf_counter()

import logging  # noqa: E402
from dataclasses import replace  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Annotated  # noqa: E402

import typer  # noqa: E402

from cli.types import OutputLanguage, SpeechProvider  # noqa: E402
from errors import VoxPasteError  # noqa: E402
from prompts import PromptTemplate  # noqa: E402
from session import Session, build_session  # noqa: E402
from utils.env import load_environment  # noqa: E402
from utils.history import HistoryStore, TranscriptRecord  # noqa: E402
from utils.logging import error, get_session_id, log, setup_logging  # noqa: E402
from utils.preferences import (  # noqa: E402
    API_KEY_ENV_NAMES,
    PREFERENCE_KEYS,
    load_provider_configuration,
    save_api_key,
    set_preference,
)
from utils.timing import format_duration  # noqa: E402

time = _time_module  # Alias für restlichen Code

logger = logging.getLogger("voxpaste")

# Typer-App
app = typer.Typer(
    help="Sprache aufnehmen und transkribieren (lokal, OpenAI oder Groq)",
    add_completion=False,
)
history_app = typer.Typer(help="Transkript-Historie verwalten", add_completion=False)
config_app = typer.Typer(help="Einstellungen anzeigen und ändern", add_completion=False)
app.add_typer(history_app, name="history")
app.add_typer(config_app, name="config")


def _init(debug: bool = False) -> None:
    load_environment()
    setup_logging(debug=debug)


def _fail(message: str) -> None:
    error(message)
    raise typer.Exit(1)


def _copy_to_clipboard(text: str) -> bool:
    from desktop import get_text_delivery

    return get_text_delivery().copy(text)


# =============================================================================
# transcribe / dictate
# =============================================================================


@app.command("transcribe")
def transcribe_file(
    audio: Annotated[Path, typer.Argument(help="Pfad zur WAV-Datei")],
    provider: Annotated[
        SpeechProvider | None,
        typer.Option(help="Provider (default: Einstellungen / VOXPASTE_PROVIDER)"),
    ] = None,
    language: Annotated[
        OutputLanguage | None,
        typer.Option(help="Ausgabesprache (auto = Tastaturlayout)"),
    ] = None,
    template: Annotated[
        PromptTemplate | None,
        typer.Option(help="Prompt-Vorlage (nur Cloud-Provider)"),
    ] = None,
    prompt: Annotated[
        str | None,
        typer.Option(help="Eigener Prompt (setzt Vorlage auf custom)"),
    ] = None,
    copy: Annotated[
        bool,
        typer.Option("-c", "--copy", help="Ergebnis in Zwischenablage"),
    ] = False,
    debug: Annotated[bool, typer.Option(help="Debug-Logging aktivieren")] = False,
) -> None:
    """Transkribiert eine vorhandene Audiodatei.

    Beispiele:
        transcribe.py transcribe audio.wav
        transcribe.py transcribe audio.wav --provider groq --language german
    """
    _init(debug)

    if not audio.exists():
        _fail(f"Datei nicht gefunden: {audio}")

    session = build_session()
    try:
        config = session.dispatcher.load_configuration()
        if provider is not None:
            config = replace(config, provider=provider)
        if language is not None:
            config = replace(config, output_language=language)
        if prompt is not None:
            config = replace(config, prompt_template=PromptTemplate.custom, custom_prompt=prompt)
        elif template is not None:
            config = replace(config, prompt_template=template)

        logger.debug(
            f"[{get_session_id()}] Args: provider={config.provider.value}, "
            f"language={config.output_language.value}, template={config.prompt_template.value}"
        )
        transcript = session.dispatcher.transcribe(audio, config)
    except VoxPasteError as e:
        _fail(str(e))
    finally:
        session.close()

    print(transcript)

    if copy:
        if _copy_to_clipboard(transcript):
            log("📋 In Zwischenablage kopiert!")
        else:
            log("⚠️  Zwischenablage nicht verfügbar")

    total_ms = (time.perf_counter() - _PROCESS_START) * 1000
    logger.info(
        f"[{get_session_id()}] ✓ Pipeline: {format_duration(total_ms)}, "
        f"{len(transcript)} Zeichen"
    )


@app.command()
def dictate(
    provider: Annotated[
        SpeechProvider | None,
        typer.Option(help="Provider für diese Session (sonst aus den Einstellungen)"),
    ] = None,
    debug: Annotated[bool, typer.Option(help="Debug-Logging aktivieren")] = False,
) -> None:
    """Interaktive Diktier-Session: ENTER startet, ENTER stoppt, Ctrl+C bricht ab.

    Das Ergebnis landet in der Zwischenablage und in der Historie.
    """
    _init(debug)

    def settings_loader():
        config = load_provider_configuration()
        return replace(config, provider=provider) if provider is not None else config

    session = build_session(settings_loader=settings_loader)
    controller = session.controller
    try:
        log("🎤 Drücke ENTER um die Aufnahme zu starten...")
        input()

        if not controller.start():
            _fail("Aufnahme konnte nicht gestartet werden (API-Key / Mikrofon prüfen)")

        log("🔴 Aufnahme läuft... ENTER beendet, Ctrl+C bricht ab.")
        try:
            input()
        except (KeyboardInterrupt, EOFError):
            controller.cancel()
            log("✖ Aufnahme abgebrochen.")
            raise typer.Exit(130)

        future = controller.stop()
        if future is None:
            _fail("Keine laufende Aufnahme")
        log("⏳ Transkribiere...")
        try:
            transcript = future.result()
        except VoxPasteError as e:
            _fail(str(e))
    finally:
        session.close()

    print(transcript)
    if controller.last_delivered:
        log("📋 In Zwischenablage kopiert!")
    else:
        log("⚠️ Zwischenablage nicht verfügbar, Text nur ausgegeben.")


# =============================================================================
# history
# =============================================================================


def _open_history() -> HistoryStore:
    from utils.history import eviction_policy_from_env

    return HistoryStore(eviction_policy=eviction_policy_from_env())


def _find_record(store: HistoryStore, record_id: str) -> TranscriptRecord:
    record = store.get(record_id) or store.find(record_id)
    if record is None:
        _fail(f"Kein Eintrag mit ID {record_id}")
    return record


def _format_record(record: TranscriptRecord, width: int = 60) -> str:
    text = record.text.replace("\n", " ")
    if len(text) > width:
        text = text[: width - 1] + "…"
    stamp = record.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{record.id[:8]}  {stamp}  {record.provider.display_name:<13}  {text}"


@history_app.command("list")
def history_list(
    limit: Annotated[int, typer.Option(help="Maximale Anzahl Einträge")] = 20,
) -> None:
    """Zeigt die letzten Transkripte (neueste zuerst)."""
    _init()
    store = _open_history()
    try:
        records = store.get_recent(limit)
    finally:
        store.close()

    if not records:
        log("Keine Einträge.")
        return
    for record in records:
        print(_format_record(record))


@history_app.command("show")
def history_show(record_id: Annotated[str, typer.Argument(help="ID oder ID-Prefix")]) -> None:
    """Gibt den vollständigen Text eines Eintrags aus."""
    _init()
    store = _open_history()
    try:
        record = _find_record(store, record_id)
        log(f"{record.id} · {record.provider.display_name} · {record.timestamp.isoformat()}")
        log(f"Audio: {store.audio_path(record)}")
    finally:
        store.close()
    print(record.text)


@history_app.command("delete")
def history_delete(record_id: Annotated[str, typer.Argument(help="ID oder ID-Prefix")]) -> None:
    """Löscht einen Eintrag inkl. Audiodatei."""
    _init()
    store = _open_history()
    try:
        record = _find_record(store, record_id)
        store.delete(record.id)
    finally:
        store.close()
    log(f"🗑  Gelöscht: {record.id}")


@history_app.command("clear")
def history_clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Ohne Rückfrage löschen")] = False,
) -> None:
    """Löscht die komplette Historie."""
    _init()
    if not yes:
        typer.confirm("Alle Einträge löschen?", abort=True)
    store = _open_history()
    try:
        removed = store.clear()
    finally:
        store.close()
    log(f"🗑  {removed} Einträge gelöscht")


@history_app.command("retranscribe")
def history_retranscribe(
    record_id: Annotated[str, typer.Argument(help="ID oder ID-Prefix")],
    provider: Annotated[SpeechProvider, typer.Option(help="Provider für die neue Transkription")],
) -> None:
    """Transkribiert die gespeicherte Aufnahme erneut (Eintrag bleibt unverändert)."""
    _init()
    session: Session = build_session(history=_open_history())
    try:
        record = _find_record(session.history, record_id)
        log(f"⏳ Transkribiere {record.id[:8]} mit {provider.display_name}...")
        try:
            transcript = session.history.retranscribe(record, provider).result()
        except VoxPasteError as e:
            _fail(str(e))
    finally:
        session.close()
    print(transcript)


# =============================================================================
# config
# =============================================================================


def _mask(key: str | None) -> str:
    if not key:
        return "(nicht gesetzt)"
    if len(key) <= 8:
        return "***"
    return f"{key[:3]}…{key[-4:]}"


@config_app.command("show")
def config_show() -> None:
    """Zeigt die aktuell wirksame Konfiguration."""
    _init()
    config = load_provider_configuration()
    print(f"provider:            {config.provider.value}")
    print(f"output_language:     {config.output_language.value}")
    print(f"prompt_template:     {config.prompt_template.value}")
    print(f"custom_prompt:       {config.custom_prompt or '-'}")
    print(f"preferred_device_id: {config.preferred_device_id if config.preferred_device_id is not None else '-'}")
    for speech_provider, env_name in API_KEY_ENV_NAMES.items():
        print(f"{env_name + ':':<21}{_mask(config.api_key_for(speech_provider))}")


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help=f"Einer von: {', '.join(PREFERENCE_KEYS)}")],
    value: Annotated[str, typer.Argument(help="Neuer Wert")],
) -> None:
    """Speichert eine Einstellung in preferences.json."""
    _init()
    try:
        set_preference(key, value)
    except KeyError:
        _fail(f"Unbekannter Key '{key}'. Erlaubt: {', '.join(PREFERENCE_KEYS)}")
    except ValueError as e:
        _fail(f"Ungültiger Wert für {key}: {e}")
    log(f"✓ {key} = {value}")


@config_app.command("set-key")
def config_set_key(
    provider: Annotated[SpeechProvider, typer.Argument(help="openai oder groq")],
    api_key: Annotated[str, typer.Argument(help="API-Key")],
) -> None:
    """Speichert den API-Key eines Cloud-Providers in ~/.voxpaste/.env."""
    _init()
    try:
        save_api_key(provider, api_key.strip())
    except ValueError as e:
        _fail(str(e))
    log(f"✓ API-Key für {provider.display_name} gespeichert")


if __name__ == "__main__":
    app()
