"""Helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from treestream.cli.context import CLIContext, ExitCode
from treestream.cli.output import format_error
from treestream.document import load_document
from treestream.exceptions import TreeStreamError
from treestream.nested import is_stream_element
from treestream.nodes import Element, Node


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx


def load_or_exit(path: Path) -> Node:
    """Load a tree document, exiting with a formatted error on failure."""
    try:
        return load_document(path)
    except TreeStreamError as e:
        click.echo(format_error(e.message), err=True)
        raise SystemExit(ExitCode.FAILURE) from e


def root_children(tree: Node) -> Node:
    """Children streamed by the root stream of ``tree``."""
    if isinstance(tree, Element) and is_stream_element(tree):
        return tree.children
    return tree
