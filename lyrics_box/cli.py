from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from lyrics_box.app import play as play_loop
from lyrics_box.app import run_generation
from lyrics_box.config import AppConfig, load_config, mask_key, save_api_key, save_target_language
from lyrics_box.generation.gemini import GeminiGenerator
from lyrics_box.generation.types import TargetLanguage
from lyrics_box.logging_setup import setup_logging
from lyrics_box.lrc.export import export_json, export_srt, lrc_filename, write_lrc
from lyrics_box.lrc.parse import parse_generated, parse_lrc_with_stats
from lyrics_box.playback.clock import PlaybackClock
from lyrics_box.render.ansi import AnsiRenderer
from lyrics_box.session import LyricsSession, MissingApiKey, ProcessingStatus, describe_status


app = typer.Typer(no_args_is_help=True, add_completion=False)

_LANG_HELP = "Translate to: " + ", ".join(lang.value for lang in TargetLanguage)


def _parse_language(value: str | None, default: TargetLanguage) -> TargetLanguage:
    if value is None:
        return default
    try:
        return TargetLanguage.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _read_lrc(path: Path) -> str:
    # no newline translation: the text is exported byte for byte
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError:
        typer.echo(f"Error: {path} is not valid UTF-8 text", err=True)
        raise typer.Exit(code=1)


def _make_session(cfg: AppConfig, api_key: str | None, language: TargetLanguage) -> LyricsSession:
    def make_generator(key: str) -> GeminiGenerator:
        return GeminiGenerator(
            api_key=key,
            model=cfg.model,
            base_url=cfg.api_base_url,
            timeout_s=cfg.request_timeout_s,
        )

    def on_status(status: ProcessingStatus) -> None:
        if status in (ProcessingStatus.UPLOADING, ProcessingStatus.GENERATING, ProcessingStatus.COMPLETE):
            typer.echo(describe_status(status, language))

    return LyricsSession(make_generator, api_key=api_key, on_status=on_status)


@app.command()
def generate(
    audio_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    lang: str | None = typer.Option(None, "--lang", help=_LANG_HELP),
    out: Path | None = typer.Option(None, "--out", help="Output .lrc file or directory"),
    api_key: str | None = typer.Option(None, "--api-key", help="Use this API key instead of the stored one"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Generate synced lyrics for an audio file and save them as .lrc.
    """
    setup_logging(debug)
    cfg = load_config()
    language = _parse_language(lang, cfg.target_language)

    session = _make_session(cfg, api_key or cfg.api_key, language)
    session.select_file(audio_path)
    try:
        lyrics = run_generation(session, language)
    except MissingApiKey:
        typer.echo("Error: no API key set. Run `lyrics-box config --api-key KEY` first.", err=True)
        raise typer.Exit(code=1)

    if session.status is ProcessingStatus.ERROR:
        typer.echo(f"Error: {session.error_message}", err=True)
        raise typer.Exit(code=1)
    if lyrics is None:
        typer.echo("Generation stopped", err=True)
        raise typer.Exit(code=130)

    if out is None:
        out = cfg.export_dir
        out.mkdir(parents=True, exist_ok=True)
    path = session.export(out)
    typer.echo(f"lines={len(lyrics.lines)}")
    typer.echo(f"saved={path}")


@app.command()
def parse(lrc_path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """Parse LRC and print stats."""
    _lines, stats = parse_lrc_with_stats(_read_lrc(lrc_path))
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_with_timestamps={stats.lines_with_timestamps}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"records_total={stats.records_total}")
    typer.echo(f"translations_merged={stats.translations_merged}")
    typer.echo(f"records_dropped={stats.records_dropped}")
    typer.echo(f"lines_out={stats.lines_out}")


@app.command()
def export(
    lrc_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    fmt: str = typer.Option("lrc", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export lyrics as LRC (verbatim), SRT or JSON."""
    lyrics = parse_generated(_read_lrc(lrc_path))
    fmt_l = fmt.lower()
    if fmt_l == "lrc":
        if out:
            if out.is_dir():
                out = out / lrc_filename(lrc_path.name)
            write_lrc(lyrics, out)
        else:
            typer.echo(lyrics.raw_lrc, nl=False)
        return

    if fmt_l == "json":
        data = export_json(lyrics.lines)
    elif fmt_l == "srt":
        data = export_srt(lyrics.lines)
    else:
        raise typer.BadParameter("format must be one of: lrc, srt, json")

    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


@app.command()
def play(
    lrc_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    duration: float | None = typer.Option(None, "--duration", help="Track length in seconds"),
    start: float = typer.Option(0.0, "--start", help="Start position in seconds"),
    context_lines: int | None = typer.Option(None, "--context", help="Lines above/below current line"),
    refresh_hz: float | None = typer.Option(None, "--refresh-hz", help="Update frequency (Hz)"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Show synced lyrics in the terminal against a playback clock.
    """
    setup_logging(debug)
    cfg = load_config()
    if refresh_hz is not None:
        cfg = replace(cfg, refresh_hz=refresh_hz)
    if context_lines is not None:
        cfg = replace(cfg, context_lines=context_lines)
    if no_alt_screen:
        cfg = replace(cfg, use_alt_screen=False)

    lyrics = parse_generated(_read_lrc(lrc_path))
    if duration is None and lyrics.lines:
        # keep the last line up for a moment
        duration = lyrics.lines[-1].time + 5.0

    clock = PlaybackClock(duration_s=duration)
    clock.seek(start)
    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen)
    raise typer.Exit(code=play_loop(cfg, lyrics.lines, title=lrc_path.stem, clock=clock, renderer=renderer))


@app.command()
def config(
    api_key: str | None = typer.Option(None, "--api-key", help="Store the generation API key"),
    lang: str | None = typer.Option(None, "--lang", help=_LANG_HELP),
    show: bool = typer.Option(False, "--show", help="Print current settings"),
):
    """Manage stored settings."""
    if api_key is None and lang is None and not show:
        typer.echo("Use --api-key, --lang or --show")
        return

    if api_key is not None:
        if not api_key.strip():
            raise typer.BadParameter("API key must not be empty")
        path = save_api_key(api_key)
        typer.echo(f"API key saved: {path}")
    if lang is not None:
        language = _parse_language(lang, TargetLanguage.NONE)
        save_target_language(language)
        typer.echo(f"Target language saved: {language.label}")

    if show:
        cfg = load_config()
        typer.echo(f"api_key={mask_key(cfg.api_key)}")
        typer.echo(f"target_language={cfg.target_language.value}")
        typer.echo(f"model={cfg.model}")
        typer.echo(f"config_dir={cfg.config_dir}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
