from __future__ import annotations

import hashlib
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from treestream.cli.commands._common import load_or_exit, root_children
from treestream.cli.output import format_json
from treestream.logging import get_logger
from treestream.plan import build_plan, describe_unit, plan_signature


def signature_digest(signature: tuple[tuple[str, ...], ...]) -> str:
    """Short, stable hex digest of a plan signature for display."""
    encoded = json.dumps(signature, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:12]


@click.command()
@click.argument(
    "document",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
def plan(document: Path, fmt: str) -> None:
    """Show the execution plan of a tree document.

    Lists the units the root stream runs, in order, and the plan signature
    that decides when a run restarts.

    Examples:
        treestream plan story.yaml
        treestream plan story.yaml --format json
    """
    logger = get_logger(__name__)

    tree = load_or_exit(document)
    units = build_plan(root_children(tree))
    signature = plan_signature(units)
    logger.debug("plan_built", document=str(document), units=len(units))

    if fmt == "json":
        click.echo(
            format_json(
                {
                    "units": [
                        {
                            "index": index,
                            "kind": unit.kind.value,
                            "preview": describe_unit(unit),
                        }
                        for index, unit in enumerate(units)
                    ],
                    "signature": signature_digest(signature),
                }
            )
        )
        return

    table = Table(title=str(document), title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Content", overflow="fold")
    for index, unit in enumerate(units):
        table.add_row(str(index), unit.kind.value, describe_unit(unit))

    console = Console()
    console.print(table)
    console.print(f"Signature: {signature_digest(signature)}")
