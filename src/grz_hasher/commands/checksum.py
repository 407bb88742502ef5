"""Command for computing checksums of a file, URL or strings."""

import json
import logging
from pathlib import Path
from urllib.parse import urlparse

import click
import requests
from pydantic import ValidationError

from ..cancellation import CancelToken, SignalManager
from ..cli import (
    algorithms,
    buffer_size,
    config_file,
    config_files_from_ctx,
    output_json,
    progress,
    session_file,
    timeout,
)
from ..constants import EXIT_INTERRUPTED
from ..events import ErrorEvent, OKEvent, ProgressEvent, StopEvent
from ..exceptions import HasherError
from ..hasher import Hasher
from ..models.config import HasherConfig
from ..progress import TqdmProgress
from ..session import SavedSession

log = logging.getLogger(__name__)

STRINGS_SOURCE_NAME = "<strings>"


def _open_hasher(
    source: str | None,
    strings: tuple[str, ...],
    algorithms: list[str] | None,
    session: SavedSession | None,
    config: HasherConfig,
) -> Hasher:
    if strings:
        return Hasher.from_strings(strings, algorithms, session=session)
    if urlparse(source).scheme in {"http", "https"}:
        return Hasher.from_url(source, algorithms, session=session, timeout=config.http_timeout)
    return Hasher.from_file(source, algorithms, session=session)


def _load_session(session_file: Path | None, source_name: str, force: bool) -> SavedSession | None:
    if session_file is None or not session_file.is_file():
        return None
    try:
        session = SavedSession.from_path(session_file)
    except (OSError, ValidationError) as e:
        raise click.ClickException(f"Cannot read session file '{session_file}': {e}") from e

    if session.source is not None and session.source != source_name:
        message = f"Session file '{session_file}' was saved for '{session.source}', not '{source_name}'"
        if not force:
            raise click.ClickException(f"{message}. Use --force to resume anyway.")
        log.warning(message)
    log.info(f"Resuming from '{session_file}' at {session.computed} bytes")
    return session


def _check_session_total(session: SavedSession | None, hasher: Hasher, session_file: Path, force: bool) -> None:
    if session is None or session.total is None or hasher.total is None or session.total == hasher.total:
        return
    message = f"Session file '{session_file}' was saved for a source of {session.total} bytes, not {hasher.total}"
    if not force:
        hasher.close()
        raise click.ClickException(f"{message}. Use --force to resume anyway.")
    log.warning(message)


@click.command()
@click.argument("source", required=False)
@click.option(
    "--string",
    "strings",
    metavar="STRING",
    multiple=True,
    help="Hash the UTF-8 encoding of this string instead of SOURCE; multiple strings are concatenated.",
)
@algorithms
@config_file
@timeout
@buffer_size
@session_file
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Resume from --session-file even if it was saved for another source or size.",
)
@progress
@click.option(
    "--match",
    "expected",
    metavar="CHECKSUM",
    default=None,
    help="Exit with status 1 unless this hex checksum matches one of the computed checksums.",
)
@output_json
@click.pass_context
def checksum(
    ctx: click.Context,
    source,
    strings,
    algorithms,
    config_file,
    timeout,
    buffer_size,
    session_file,
    force,
    progress,
    expected,
    output_json,
):
    """
    Compute checksums of SOURCE, a file path or an http(s) URL.

    With --session-file, an interrupted computation (Ctrl+C or --timeout) saves
    its progress and is resumed by running the same command again.
    """
    if (source is None) == (not strings):
        raise click.UsageError("Specify either SOURCE or --string, but not both.")
    source_name = source if source is not None else STRINGS_SOURCE_NAME

    try:
        config = HasherConfig.from_paths(config_files_from_ctx(ctx))
        if timeout is not None:
            config.timeout = timeout
        if buffer_size is not None:
            config.buffer_size = buffer_size
    except (RuntimeError, ValidationError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    session = _load_session(session_file, source_name, force)
    # a resumed session decides the algorithms unless they are given explicitly
    requested = list(algorithms) or (None if session is not None else config.algorithms)

    try:
        hasher = _open_hasher(source, strings, requested, session, config)
    except (HasherError, OSError, requests.RequestException) as e:
        raise click.ClickException(str(e)) from e
    _check_session_total(session, hasher, session_file, force)

    log.info(f"Computing {', '.join(hasher.algorithms)} of {source_name}")
    token = CancelToken(timeout=config.timeout)
    with (
        hasher,
        SignalManager(token, log),
        TqdmProgress(hasher.total, hasher.offset, desc="Hashing", disable=not progress) as pbar,
    ):
        with hasher.start(token, config.buffer_size, config.progress_interval if progress else None) as events:
            for event in events:
                if isinstance(event, ProgressEvent):
                    pbar.observe(event)
            terminal = events.terminal_event
        if isinstance(terminal, OKEvent):
            pbar.update_to(terminal.current)

    if isinstance(terminal, StopEvent):
        saved = terminal.session(source=source_name, total=hasher.total)
        if session_file is not None:
            saved.to_path(session_file)
            log.warning(
                f"Hashing {terminal.cause} after {saved.computed} bytes. "
                f"Run the command again with --session-file '{session_file}' to resume."
            )
        else:
            log.warning(
                f"Hashing {terminal.cause} after {saved.computed} bytes. Progress was not saved, use --session-file."
            )
        ctx.exit(EXIT_INTERRUPTED)

    if isinstance(terminal, ErrorEvent):
        raise click.ClickException(f"Hashing failed: {terminal.error}")

    if session_file is not None and session_file.is_file():
        session_file.unlink()
        log.debug(f"Removed session file '{session_file}'")

    checksums = dict(sorted(terminal.checksum_strings().items()))
    matched, matched_alg = hasher.match(expected) if expected is not None else (False, None)

    if output_json:
        result = {"source": source_name, "size": terminal.current, "checksums": checksums}
        if expected is not None:
            result["matched"] = matched_alg
        click.echo(json.dumps(result, indent=2))
    else:
        for alg, value in checksums.items():
            click.echo(f"{alg}  {value}  {source_name}")

    if expected is not None:
        if not matched:
            log.error(f"Checksum {expected} does not match any of {', '.join(checksums)}")
            ctx.exit(1)
        log.info(f"Checksum matches {matched_alg}")
