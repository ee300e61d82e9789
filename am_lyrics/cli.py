from __future__ import annotations

import json
from dataclasses import asdict
from enum import Enum
from pathlib import Path

import typer

from am_lyrics.applemusic.errors import AppleMusicError
from am_lyrics.cache.sqlite import TtmlCache
from am_lyrics.config import load_config, save_config_value
from am_lyrics.logging_setup import setup_logging
from am_lyrics.lyrics.export import EXPORTERS
from am_lyrics.lyrics.model import Lyrics
from am_lyrics.lyrics.validate import validate_lyrics
from am_lyrics.service import LyricsService
from am_lyrics.ttml.errors import TtmlParseError
from am_lyrics.ttml.extract import parse_ttml


app = typer.Typer(no_args_is_help=True, add_completion=False)


class ExportFormat(str, Enum):
    lrc = "lrc"
    elrc = "elrc"
    txt = "txt"
    srt = "srt"
    json = "json"


def _fail(msg: str) -> typer.Exit:
    typer.echo(f"Error: {msg}", err=True)
    return typer.Exit(code=1)


def _read_ttml(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise _fail(f"{path}: {e}")


def _emit(lyrics: Lyrics, fmt: ExportFormat, out: Path | None) -> None:
    data = EXPORTERS[fmt.value](lyrics)
    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


def _report_issues(lyrics: Lyrics) -> int:
    issues = validate_lyrics(lyrics)
    for issue in issues:
        typer.echo(f"warning: {issue}", err=True)
    return len(issues)


def _service() -> LyricsService:
    cfg = load_config()
    if not cfg.media_user_token:
        raise typer.BadParameter(
            "no media user token configured; run `am-lyrics config --token ...` "
            "or set AM_LYRICS_MEDIA_USER_TOKEN"
        )
    return LyricsService(cfg)


@app.command()
def lyrics(
    song_id: str,
    fmt: ExportFormat = typer.Option(ExportFormat.lrc, "--format", case_sensitive=False, help="Output format"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
    validate: bool = typer.Option(False, "--validate", help="Warn about inconsistent timestamps"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Fetch lyrics of an Apple Music song and export them."""
    setup_logging(debug)
    svc = _service()
    try:
        doc = svc.get_lyrics(song_id)
    except (AppleMusicError, TtmlParseError) as e:
        raise _fail(str(e))
    if validate:
        _report_issues(doc)
    _emit(doc, fmt, out)


@app.command()
def convert(
    ttml_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    language: str | None = typer.Option(None, "--language", help="Language tag (default: from config)"),
    fmt: ExportFormat = typer.Option(ExportFormat.lrc, "--format", case_sensitive=False, help="Output format"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Convert a local TTML file."""
    try:
        doc = parse_ttml(_read_ttml(ttml_path), language or load_config().language)
    except TtmlParseError as e:
        raise _fail(f"{ttml_path}: {e}")
    _emit(doc, fmt, out)


@app.command()
def validate(
    ttml_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    strict: bool = typer.Option(False, "--strict", help="Also report timestamps going backwards"),
):
    """Parse a TTML file and report timing problems."""
    try:
        doc = parse_ttml(_read_ttml(ttml_path), load_config().language)
    except TtmlParseError as e:
        raise _fail(f"{ttml_path}: {e}")

    issues = validate_lyrics(doc, strict=strict)
    lines = list(doc.lines())
    typer.echo(f"paragraphs={len(doc.paragraphs)}")
    typer.echo(f"lines={len(lines)}")
    typer.echo(f"parts={sum(len(line.parts) for line in lines)}")
    typer.echo(f"synced={doc.is_synced}")
    for issue in issues:
        typer.echo(str(issue))
    if issues:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str,
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum results to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Search the Apple Music catalog."""
    svc = _service()
    try:
        songs = svc.search(query, limit=limit)
    except AppleMusicError as e:
        raise _fail(str(e))

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "id": s.id,
                        "name": s.name,
                        "artist_name": s.artist_name,
                        "album_name": s.album_name,
                        "duration_ms": s.duration_ms,
                        "has_lyrics": s.has_lyrics,
                        "has_time_synced_lyrics": s.has_time_synced_lyrics,
                    }
                    for s in songs
                ],
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    if not songs:
        typer.echo("No results found")
        return

    for i, s in enumerate(songs, 1):
        secs = s.duration_ms // 1000
        lyr = "synced" if s.has_time_synced_lyrics else ("plain" if s.has_lyrics else "none")
        typer.echo(f"{i}. {s.artist_name} - {s.name} ({secs // 60}:{secs % 60:02d})")
        if s.album_name:
            typer.echo(f"   Album: {s.album_name}")
        typer.echo(f"   Lyrics: {lyr}")
        typer.echo(f"   ID: {s.id}")
        typer.echo()


@app.command()
def match(
    artist: str,
    title: str,
    no_lyrics: bool = typer.Option(False, "--no-lyrics", help="Skip fetching lyrics"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Find the best Apple Music match for a track."""
    setup_logging(debug)
    svc = _service()
    try:
        res = svc.match_track(artist, title, with_lyrics=not no_lyrics)
    except AppleMusicError as e:
        raise _fail(str(e))
    if res is None:
        typer.echo("No match found")
        raise typer.Exit(code=1)

    track = res.track
    if json_output:
        data = asdict(track)
        data["release_date"] = track.release_date.isoformat() if track.release_date else None
        data["lyrics"] = json.loads(EXPORTERS["json"](track.lyrics)) if track.lyrics else None
        data["score"] = res.score
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    typer.echo(f"{', '.join(track.artists)} - {track.title} [score {res.score}]")
    if track.album:
        typer.echo(f"Album: {track.album}")
    if track.isrc:
        typer.echo(f"ISRC: {track.isrc}")
    typer.echo(f"ID: {track.track_id}")
    if track.lyrics is not None:
        typer.echo()
        typer.echo(EXPORTERS["lrc" if track.lyrics.is_synced else "txt"](track.lyrics), nl=False)


@app.command()
def config(
    token: str | None = typer.Option(None, "--token", help="Apple Music media user token"),
    language: str | None = typer.Option(None, "--language", help="Lyrics language, e.g. en-GB"),
):
    """Show or change saved settings."""
    if token:
        save_config_value("media_user_token", token)
    if language:
        save_config_value("language", language)

    cfg = load_config()
    typer.echo(f"config_dir={cfg.config_dir}")
    typer.echo(f"language={cfg.language}")
    typer.echo(f"media_user_token={'set' if cfg.media_user_token else 'not set'}")


@app.command()
def cache(
    clear: bool = typer.Option(False, "--clear", help="Clear TTML cache"),
):
    """Manage TTML cache."""
    cfg = load_config()
    cache_db = TtmlCache(cfg.cache_db_path)

    if clear:
        cache_db.clear()
        typer.echo(f"Cache cleared: {cfg.cache_db_path}")
    else:
        typer.echo("Use --clear to clear the cache")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
