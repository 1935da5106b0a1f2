"""Markdown to HTML rendering that keeps every character in its column."""

from __future__ import annotations

from .blocks import classify_line, render_line
from .config import RenderConfig, validate_config
from .constants import CODE_FENCE_PATTERN, NBSP, RAW_LINE_CLASS
from .escaping import escape_html, preserve_indentation
from .models import ParserContext, ParserState, RenderContext
from .postprocess import group_blocks, number_anchors_in_order


def _escaped_line(line: str) -> str:
    return preserve_indentation(escape_html(line), line)


def render_raw_line(line: str) -> str:
    """Echo a source line without markdown styling."""
    return f'<div class="{RAW_LINE_CLASS}">{_escaped_line(line) or NBSP}</div>'


def render_code_line(line: str) -> str:
    """Render a line inside a fenced code block verbatim."""
    return f"<div>{_escaped_line(line) or NBSP}</div>"


def _try_toggle_fence(ctx: ParserContext, line: str) -> bool:
    """Flip the fence state when `line` is a code fence delimiter.

    Args:
        ctx: Parser context to update.
        line: Raw source line.

    Returns:
        bool: True when the line is a fence delimiter.

    Examples:
        _try_toggle_fence(ParserContext(), "```python")  # True
    """
    if not CODE_FENCE_PATTERN.match(line):
        return False

    if ctx.state is ParserState.IN_FENCED_CODE:
        ctx.state = ParserState.NORMAL
    else:
        ctx.state = ParserState.IN_FENCED_CODE
    return True


def assemble_lines(
    text: str,
    active_line: int = -1,
    show_active_line_raw: bool = False,
    ctx: RenderContext | None = None,
    config: RenderConfig | None = None,
) -> list[str]:
    """Render every source line as exactly one HTML unit.

    Args:
        text: Raw markdown document.
        active_line: Zero-based index of the line holding the caret, or -1.
        show_active_line_raw: Echo the active line unstyled.
        ctx: Per-parse state; a fresh context is used when omitted.
        config: Rendering configuration; defaults to `RenderConfig()`.

    Returns:
        list[str]: One ``<div>`` unit per line of `text`, in order.
    """
    config = config or RenderConfig()
    ctx = ctx or RenderContext(anchor_prefix=config.anchor_prefix)
    parser_ctx = ParserContext()
    units: list[str] = []

    for index, line in enumerate(text.split("\n")):
        # Fence lines render as fences even on the active line so the
        # post-processor sees the same block boundaries as the assembler.
        if _try_toggle_fence(parser_ctx, line):
            units.append(render_line(classify_line(_escaped_line(line)), ctx))
            continue

        if show_active_line_raw and index == active_line:
            units.append(render_raw_line(line))
            continue

        if parser_ctx.state is ParserState.IN_FENCED_CODE:
            units.append(render_code_line(line))
            continue

        if len(line) > config.max_line_length:
            units.append(render_code_line(line))
            continue

        units.append(render_line(classify_line(_escaped_line(line)), ctx))

    return units


def parse(
    text: str,
    active_line: int = -1,
    show_active_line_raw: bool | None = None,
    config: RenderConfig | None = None,
) -> str:
    """Render a markdown document as character-aligned HTML.

    Each source line becomes one unit whose visible characters match the
    source column for column; markdown syntax stays visible inside
    ``syntax-marker`` spans. Consecutive list items, table rows and fenced
    code lines are then grouped into ``<ul>``/``<ol>``, ``<table>`` and
    ``<pre><code>`` structures.

    Link anchors are numbered from zero on every call, in reading order.

    Args:
        text: Raw markdown document.
        active_line: Zero-based index of the line holding the caret, or -1.
        show_active_line_raw: Echo the active line unstyled. Defaults to the
            configuration value.
        config: Rendering configuration; defaults to `RenderConfig()`.

    Returns:
        str: HTML for the overlay element.

    Raises:
        ConfigError: If `config` fails validation.
        BackendUnavailableError: If the tree backend is forced and the
            document cannot be loaded as a tree.

    Examples:
        parse("# Title\\n- item")
        parse("**bold**", active_line=0, show_active_line_raw=True)
    """
    config = config or RenderConfig()
    validate_config(config)
    if show_active_line_raw is None:
        show_active_line_raw = config.show_active_line_raw

    ctx = RenderContext(anchor_prefix=config.anchor_prefix)
    units = assemble_lines(text, active_line, show_active_line_raw, ctx, config)
    html = group_blocks("".join(units), config.backend, ctx)
    return number_anchors_in_order(html, config.anchor_prefix)
