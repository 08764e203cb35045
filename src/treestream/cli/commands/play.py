from __future__ import annotations

import asyncio
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.text import Text

from treestream.cli.commands._common import get_cli_context, load_or_exit
from treestream.cli.context import ExitCode
from treestream.cli.output import format_error
from treestream.config import StreamConfig
from treestream.host import StreamHost
from treestream.logging import get_logger
from treestream.nodes import Node
from treestream.scheduler import AsyncioClock

logger = get_logger(__name__)


def resolve_stream_config(
    base: StreamConfig,
    speed: int | None,
    interval: float | None,
    stream_by: str | None,
) -> StreamConfig:
    """Overlay command-line options on the configured stream defaults.

    Raises:
        ValidationError: If an override is out of range.
    """
    overrides = {
        key: value
        for key, value in (
            ("speed", speed),
            ("interval", interval),
            ("stream_by", stream_by),
        )
        if value is not None
    }
    return StreamConfig.model_validate({**base.model_dump(), **overrides})


async def play_headless(tree: Node, config: StreamConfig, console: Console) -> str:
    """Stream ``tree`` to ``console`` and return the final text."""
    done = asyncio.Event()
    host = StreamHost(tree, clock=AsyncioClock(), config=config, on_complete=done.set)

    with Live(Text(), console=console, refresh_per_second=30, transient=False) as live:
        unsubscribe = host.subscribe(lambda _stream: live.update(Text(host.text())))
        host.mount()
        # Headless playback always runs, even when auto_start is off
        host.root.start()
        try:
            await done.wait()
            final = host.text()
        finally:
            unsubscribe()
            host.unmount()
        live.update(Text(final))
    return final


@click.command()
@click.argument(
    "document",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--speed", type=int, default=None, help="Tokens revealed per tick.")
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Milliseconds between ticks.",
)
@click.option(
    "--by",
    "stream_by",
    type=click.Choice(["word", "character"]),
    default=None,
    help="Reveal text word by word or character by character.",
)
@click.option(
    "--no-tui",
    is_flag=True,
    default=False,
    help="Stream to the console instead of the interactive TUI.",
)
@click.pass_context
def play(
    ctx: click.Context,
    document: Path,
    speed: int | None,
    interval: float | None,
    stream_by: str | None,
    no_tui: bool,
) -> None:
    """Stream a tree document in the terminal.

    YAML documents (.yaml/.yml) describe a content tree; any other file is
    streamed as plain text.

    Examples:
        treestream play story.yaml
        treestream play notes.txt --by character --speed 1 --interval 20
        treestream play story.yaml --no-tui
    """
    cli_ctx = get_cli_context(ctx)

    try:
        config = resolve_stream_config(
            cli_ctx.config.stream, speed, interval, stream_by
        )
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        click.echo(
            format_error(f"Invalid option {field}: {first_error['msg']}"), err=True
        )
        raise SystemExit(ExitCode.FAILURE) from e

    tree = load_or_exit(document)
    logger.info("play_started", document=str(document), tui=not no_tui)

    try:
        if no_tui or not cli_ctx.is_tty:
            asyncio.run(play_headless(tree, config, Console()))
        else:
            from treestream.tui import TreeStreamApp

            TreeStreamApp(tree, config=config, title=document.name).run()
    except KeyboardInterrupt:
        raise SystemExit(ExitCode.INTERRUPTED) from None
