"""
Main CLI interface for lyricsync

Command-line access to the lyrics engine for inspecting what it would show
for a track, debugging fallback matches and managing configuration.

Command groups:
- lyrics: resolve lyrics for one track, optionally following along in time
- match: run only the LRCLIB fallback search and print ranked candidates
- parse-lrc: parse an LRC transcript file
- fallback: show or toggle the LRCLIB fallback (status, enable, disable)
- config: show and validate configuration
- doctor: configuration and environment diagnostics
"""

import asyncio
import functools
import json
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .cache.backends import create_backend_from_settings
from .config.auth import get_auth
from .config.settings import get_settings, reload_settings
from .engine import create_engine_from_settings
from .exceptions import LyricSyncError
from .lyrics.lrc import parse_lrc
from .lyrics.lrclib import LrclibProvider
from .lyrics.matching import MatchQuery
from .lyrics.models import ProviderLyrics, display_lines
from .lyrics.processor import FALLBACK_ENABLED_KEY, create_fallback_settings_store
from .spotify.models import StreamedSong
from .sync.position import ManualPositionSource
from .utils.helpers import format_clock
from .utils.http import AsyncHttpClient
from .utils.logger import configure_from_settings, get_current_log_file, get_logger

# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                           lyricsync                           ║
║                                                               ║
║     Fetch, match and time-align lyrics for Spotify tracks     ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='green', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Known lyricsync errors are reported without a traceback; anything else is
    logged with one. Exit codes: 130 on Ctrl+C, 1 otherwise.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except LyricSyncError as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
        except Exception as e:
            logger.exception(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def format_lyrics(lyrics: ProviderLyrics, pad_minutes: bool = False) -> str:
    """Render lyrics as text, one line per vocal, timed lines prefixed with [m:ss]"""
    rendered = []
    for start_time, text in display_lines(lyrics):
        if start_time is None:
            rendered.append(text)
        else:
            rendered.append(f"[{format_clock(start_time, pad_minutes)}] {text}")
    return "\n".join(rendered)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    lyricsync - lyrics for the currently playing Spotify track

    Resolves lyrics from the primary lyrics service with an LRCLIB fallback,
    caches every outcome and keeps a playback clock aligned with the player.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"lyricsync {__version__}")
        return

    if config:
        reload_settings(config)
        configure_from_settings()
        click.echo(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        get_settings().logging.level = "DEBUG"
        configure_from_settings()
        logger.info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


async def _resolve_track_duration(engine, song: StreamedSong) -> float:
    information = await engine.track_information.get_track_information(song)
    return float(information.get('duration', 0)) / 1000


async def _follow_lyrics(engine, source: ManualPositionSource, lyrics: ProviderLyrics, start: float) -> None:
    """Print each timed line when the playback clock reaches it"""
    lines = [(time, text) for time, text in display_lines(lyrics) if time is not None and time >= start]
    duration = engine.state.song.duration
    finished = asyncio.Event()
    position = 0

    def on_time_stepped(delta_time: float, is_resync: bool) -> None:
        nonlocal position
        timestamp = engine.state.clock.current_timestamp
        while position < len(lines) and lines[position][0] <= timestamp:
            click.echo(f"[{engine.get_timestamp_string()}] {lines[position][1]}")
            position += 1
        if position >= len(lines) or (duration and timestamp >= duration):
            finished.set()

    disconnect = engine.events.time_stepped.connect(on_time_stepped)
    try:
        source.seek(start * 1000)
        source.play()
        engine.on_play_pause(True)
        engine.notify_seeked()
        await finished.wait()
    finally:
        disconnect()
        source.pause()
        engine.on_play_pause(False)


async def _run_lyrics(track: str, duration: Optional[float], refresh: bool, follow: bool,
                      start: float, as_json: bool) -> int:
    source = ManualPositionSource(position_ms=start * 1000)
    engine = create_engine_from_settings(source)

    async with engine:
        song = StreamedSong.from_uri(track, duration=duration or 0.0)
        if not duration:
            song = StreamedSong.from_uri(track, duration=await _resolve_track_duration(engine, song))

        logger.console_info(f"Resolving lyrics for {song.uri}")
        engine.on_song_change(song, force_refresh=refresh)
        await engine.wait_idle()

        transformed = engine.state.song_lyrics
        if transformed is None:
            click.echo(click.style("No lyrics available for this track", fg='yellow'))
            return 1

        if as_json:
            click.echo(json.dumps(transformed.to_dict(), indent=2, ensure_ascii=False))
            return 0

        details = engine.state.song_details
        if details is not None:
            click.echo(click.style(f"{details.name} - {details.primary_artist_name}", bold=True))
        click.echo(f"{transformed.type.value} lyrics, duration {engine.get_duration_string()}\n")

        if follow and transformed.type.rank > 0:
            await _follow_lyrics(engine, source, transformed.lyrics, start)
        else:
            click.echo(format_lyrics(transformed.lyrics, pad_minutes=song.duration >= 600))

    return 0


@cli.command()
@click.argument('track')
@click.option('--duration', type=float, help='Track length in seconds (looked up when omitted)')
@click.option('--refresh', is_flag=True, help='Resolve lyrics without reading the lyrics caches')
@click.option('--follow', is_flag=True, help='Print timed lines as playback reaches them')
@click.option('--start', type=float, default=0.0, show_default=True, help='Playback position to follow from, in seconds')
@click.option('--json', 'as_json', is_flag=True, help='Print the lyrics document as JSON')
@handle_error
def lyrics(track, duration, refresh, follow, start, as_json):
    """
    Resolve and print lyrics for TRACK

    TRACK is a spotify:track: URI or an open.spotify.com track link.
    """
    exit_code = asyncio.run(_run_lyrics(track, duration, refresh, follow, start, as_json))
    sys.exit(exit_code)


async def _run_match(query: MatchQuery, limit: int) -> None:
    settings = get_settings()
    async with AsyncHttpClient(settings.network.request_timeout, settings.network.user_agent) as http:
        provider = LrclibProvider(http)
        results = await provider.search(query)
        if not results:
            click.echo(click.style("LRCLIB returned no results", fg='yellow'))
            return

        candidates = provider.score(query, results)
        click.echo(f"{len(results)} unique results, top {min(limit, len(candidates))}:\n")
        for index, candidate in enumerate(candidates[:limit], 1):
            result = candidate.result
            mark = click.style("accept", fg='green') if candidate.is_acceptable() else click.style("reject", fg='red')
            click.echo(f"{index:2d}. [{mark}] {result.track_name} - {result.artist_name} ({result.album_name})")
            click.echo(f"      {candidate.describe()}")


@cli.command()
@click.option('--track', '-t', required=True, help='Track name')
@click.option('--artist', '-a', required=True, help='Primary artist name')
@click.option('--album', default="", help='Album name')
@click.option('--duration', '-d', type=float, required=True, help='Track length in seconds')
@click.option('--limit', type=int, default=5, show_default=True, help='Candidates to show')
@handle_error
def match(track, artist, album, duration, limit):
    """Run the LRCLIB fallback search and show ranked candidates"""
    query = MatchQuery(track_name=track, artist_name=artist, album_name=album, duration=duration)
    asyncio.run(_run_match(query, limit))


@cli.command(name='parse-lrc')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print the parsed document as JSON')
@handle_error
def parse_lrc_command(path, as_json):
    """Parse an LRC transcript file and print the result"""
    parsed = parse_lrc(path.read_text(encoding='utf-8'))
    if parsed is None:
        click.echo(click.style("No usable lyrics in transcript", fg='yellow'))
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(f"{parsed.type.value} lyrics, {len(display_lines(parsed))} lines\n")
        click.echo(format_lyrics(parsed))


# LRCLIB fallback flag
@cli.group()
def fallback():
    """Show or change whether the LRCLIB fallback is used"""
    pass


async def _fallback_flag(enabled: Optional[bool]) -> bool:
    store = create_fallback_settings_store(create_backend_from_settings())
    await store.load()
    if enabled is not None:
        store.items[FALLBACK_ENABLED_KEY] = enabled
        await store.save_changes()
    return bool(store.items[FALLBACK_ENABLED_KEY])


def _echo_fallback_state(enabled: bool) -> None:
    state = click.style("enabled", fg='green') if enabled else click.style("disabled", fg='yellow')
    click.echo(f"LRCLIB fallback: {state}")


@fallback.command()
@handle_error
def status():
    """Show whether the fallback is enabled"""
    _echo_fallback_state(asyncio.run(_fallback_flag(None)))


@fallback.command()
@handle_error
def enable():
    """Enable the fallback"""
    _echo_fallback_state(asyncio.run(_fallback_flag(True)))


@fallback.command()
@handle_error
def disable():
    """Disable the fallback"""
    _echo_fallback_state(asyncio.run(_fallback_flag(False)))


# Configuration commands group
@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration (secrets are masked)"""
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("Services:")
    click.echo(f"   Lyrics service: {settings.services.lyrics_service_url}")
    click.echo(f"   LRCLIB: {settings.services.lrclib_url}")
    click.echo(f"   LRCLIB rate: {settings.services.lrclib_rate_limit} per {settings.services.lrclib_rate_period}s")

    click.echo("\nSpotify:")
    click.echo(f"   Client id: {'set' if settings.spotify.client_id else 'not set'}")
    click.echo(f"   Client secret: {'set' if settings.spotify.client_secret else 'not set'}")
    click.echo(f"   Access token: {'set' if settings.spotify.access_token else 'not set'}")
    click.echo(f"   Metadata host: {settings.spotify.metadata_host}")

    click.echo("\nCache:")
    click.echo(f"   Backend: {settings.cache.backend}")
    click.echo(f"   Directory: {settings.get_cache_directory()}")
    click.echo(f"   Provider lyrics: v{settings.cache.provider_lyrics_version}, {settings.cache.provider_lyrics_expiration}")
    click.echo(f"   Transformed lyrics: v{settings.cache.transformed_lyrics_version}, {settings.cache.transformed_lyrics_expiration}")
    click.echo(f"   LRCLIB lyrics: v{settings.cache.lrclib_lyrics_version}, {settings.cache.lrclib_lyrics_expiration}")
    click.echo(f"   Track information: v{settings.cache.track_information_version}, {settings.cache.track_information_expiration}")

    click.echo("\nPlayback:")
    click.echo(f"   Frame interval: {settings.playback.frame_interval:.4f}s")
    click.echo(f"   Resync timings: {', '.join(str(t) for t in settings.playback.resync_timings)}")
    click.echo(f"   Tolerances: playing {settings.playback.playing_tolerance}s, paused {settings.playback.paused_tolerance}s")


@config.command()
@handle_error
def validate():
    """Check the configuration for errors"""
    errors = get_settings().get_errors()
    if not errors:
        click.echo(click.style("Configuration is valid", fg='green'))
        return

    click.echo(click.style(f"Found {len(errors)} configuration errors:", fg='red'))
    for error in errors:
        click.echo(f"   • {error}")
    sys.exit(1)


@cli.command()
@handle_error
def doctor():
    """Run configuration and environment diagnostics"""
    click.echo("Running diagnostics...\n")
    issues = []
    settings = get_settings()

    errors = settings.get_errors()
    if errors:
        click.echo("Configuration: invalid")
        issues.extend(errors)
    else:
        click.echo("Configuration: OK")

    try:
        get_auth()
        click.echo("Credentials: OK")
    except LyricSyncError as e:
        click.echo(f"Credentials: {e}")
        issues.append("Set LYRICSYNC_ACCESS_TOKEN or SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET")

    cache_dir = settings.get_cache_directory()
    if settings.cache.backend == 'memory':
        click.echo("Cache: in memory")
    elif cache_dir.exists() and cache_dir.is_dir():
        click.echo(f"Cache directory: {cache_dir}")
    else:
        click.echo(f"Cache directory: {cache_dir} (will be created)")

    current_log = get_current_log_file()
    click.echo(f"Logging: {current_log}" if current_log else "Logging: console only")

    if issues:
        click.echo(f"\nFound {len(issues)} issues:")
        for issue in issues:
            click.echo(f"   • {issue}")
        sys.exit(1)

    click.echo("\nAll systems operational!")


# Entry point for module execution
if __name__ == '__main__':
    cli()
