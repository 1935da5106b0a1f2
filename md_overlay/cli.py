"""
Renders Markdown as character-aligned overlay HTML.
Also renumbers ordered lists and reports the list context at a caret offset.
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields
from enum import Enum
from pathlib import Path

import click

from .config import ConfigError, RenderConfig, build_config
from .constants import BACKENDS
from .exceptions import RenderError, RenderFileError
from .export import render_clean_html
from .filesystem import get_max_file_size, normalize_filepath, read_markdown, rewrite_file
from .lists import create_new_list_item, get_list_context, renumber_lists
from .parser import parse

__all__ = ["cli"]

logger = logging.getLogger(__name__)


def _load_document(
    filepath: str, newline: str | None = None, **overrides: object
) -> tuple[Path, RenderConfig, str, os.stat_result]:
    base_dir = Path.cwd().resolve()
    try:
        path = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = build_config(path.parent, **overrides)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        text, stat_result = read_markdown(path, max_file_size, newline=newline)
    except RenderFileError as error:
        raise click.ClickException(str(error)) from error

    logger.debug("Loaded %s (%d bytes)", path, stat_result.st_size)
    return path, config, text, stat_result


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool = False):
    """
    Character-aligned Markdown rendering for editor overlays.

    Examples:
        md-overlay render notes.md --active-line 3 --show-raw
        md-overlay renumber notes.md --in-place
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)


@cli.command()
@click.option("--active-line", type=int, default=-1, help="Zero-based line holding the caret")
@click.option("--show-raw/--no-show-raw", default=None, help="Echo the active line unstyled")
@click.option("--clean", is_flag=True, help="Strip syntax markers for export")
@click.option("--backend", type=click.Choice(BACKENDS), help="Structural post-processor")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def render(
    filepath: str,
    active_line: int = -1,
    show_raw: bool | None = None,
    clean: bool = False,
    backend: str | None = None,
):
    """
    Render a Markdown file as overlay HTML.

    Args:
        filepath: Path to the Markdown file to render.
        active_line: Zero-based index of the caret line, or -1 for none.
        show_raw: Override for echoing the active line unstyled.
        clean: Produce export HTML without syntax markers.
        backend: Override for the structural post-processor.

    Raises:
        click.BadParameter: If the path or configuration is invalid.
        click.ClickException: If the file cannot be read or the requested
            backend cannot handle the document.

    Examples:
        md-overlay render README.md --backend string
    """
    _, config, text, _ = _load_document(filepath, backend=backend)

    try:
        if clean:
            html = render_clean_html(text, config)
        else:
            html = parse(text, active_line=active_line, show_active_line_raw=show_raw, config=config)
    except RenderError as error:
        raise click.ClickException(str(error)) from error

    click.echo(html)


@cli.command()
@click.option("--in-place", is_flag=True, help="Rewrite the file instead of printing")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def renumber(filepath: str, in_place: bool = False):
    """
    Renumber ordered lists so each counts 1, 2, 3, ...

    Args:
        filepath: Path to the Markdown file.
        in_place: Atomically rewrite the file when numbering changes.

    Raises:
        click.ClickException: If the file cannot be read, changed while being
            processed, or cannot be replaced.

    Examples:
        md-overlay renumber TODO.md --in-place
    """
    path, _, text, stat_result = _load_document(filepath, newline="")
    renumbered = renumber_lists(text)

    if not in_place:
        click.echo(renumbered, nl=False)
        return

    if renumbered == text:
        logger.debug("%s already numbered, nothing to write", path)
        return

    try:
        rewrite_file(
            path,
            renumbered,
            stat_result,
            warn=lambda message: click.echo(message, err=True),
        )
    except RenderFileError as error:
        raise click.ClickException(str(error)) from error


def _format_value(value: object) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return repr(value)
    return str(value)


@cli.command("list-context")
@click.option("--cursor", type=click.IntRange(min=0), required=True, help="Caret offset")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def list_context(filepath: str, cursor: int):
    """
    Show the list item under a caret offset and the marker Enter would add.

    Examples:
        md-overlay list-context TODO.md --cursor 42
    """
    _, _, text, _ = _load_document(filepath)
    context = get_list_context(text, cursor)

    for field in fields(context):
        click.echo(f"{field.name}: {_format_value(getattr(context, field.name))}")
    click.echo(f"next_item: {create_new_list_item(context)!r}")


if __name__ == "__main__":
    cli()
