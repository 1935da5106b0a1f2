"""Block-level classification and rendering of single lines."""

from __future__ import annotations

import re

from .constants import (
    BLOCKQUOTE_CLASS,
    BLOCKQUOTE_PATTERN,
    BULLET_ITEM_PATTERN,
    BULLET_LIST_CLASS,
    CHECKBOX_ITEM_PATTERN,
    CODE_FENCE_CLASS,
    CODE_FENCE_PATTERN,
    HEADER_PATTERN,
    HORIZONTAL_RULE_PATTERN,
    HR_MARKER_CLASS,
    NBSP,
    NUMBERED_ITEM_PATTERN,
    ORDERED_LIST_CLASS,
    SYNTAX_MARKER_CLASS,
    TABLE_CELL_SPLIT_PATTERN,
    TABLE_ROW_CLASS,
    TABLE_ROW_PATTERN,
    TABLE_SEPARATOR_CLASS,
    TABLE_SEPARATOR_PATTERN,
    TASK_CHECKBOX_CLASS,
    TASK_LIST_CLASS,
)
from .inline import parse_inline_elements
from .models import (
    Blockquote,
    BulletItem,
    CheckboxItem,
    CodeFenceDelimiter,
    Header,
    LineClassification,
    NumberedItem,
    Plain,
    RenderContext,
    Rule,
    TableRow,
    TableSeparator,
)

_INDENT_PATTERN = re.compile(r"^(?:&nbsp;|\t)*")


def _marker(text: str) -> str:
    return f'<span class="{SYNTAX_MARKER_CLASS}">{text}</span>'


def classify_line(html: str) -> LineClassification:
    """Classify an escaped, indentation-preserved line.

    Checks run in precedence order and the first match wins: horizontal
    rule, code fence, header, blockquote, checkbox, bullet and numbered list
    items, table separator and row, then plain text.

    Args:
        html: Output of `escape_html` followed by `preserve_indentation`.

    Returns:
        LineClassification: The matching line kind.

    Examples:
        classify_line("## Title")  # Header(level=2, marker="## ", content="Title")
        classify_line("&nbsp;&nbsp;- item")  # BulletItem(...)
    """
    if HORIZONTAL_RULE_PATTERN.match(html):
        return Rule(marker=html)

    if CODE_FENCE_PATTERN.match(html):
        return CodeFenceDelimiter(fence=html, lang=html[3:].strip() or None)

    match = HEADER_PATTERN.match(html)
    if match:
        hashes, space, content = match.groups()
        return Header(level=len(hashes), marker=hashes + space, content=content)

    match = BLOCKQUOTE_PATTERN.match(html)
    if match:
        return Blockquote(content=match.group(1))

    match = CHECKBOX_ITEM_PATTERN.match(html)
    if match:
        indent, marker, box, state, content = match.groups()
        return CheckboxItem(
            indent=indent, marker=marker, checked=state.lower() == "x", box=box, content=content
        )

    match = BULLET_ITEM_PATTERN.match(html)
    if match:
        indent, marker, content = match.groups()
        return BulletItem(indent=indent, marker=marker, content=content)

    match = NUMBERED_ITEM_PATTERN.match(html)
    if match:
        indent, marker, number, content = match.groups()
        return NumberedItem(indent=indent, number=int(number), marker=marker, content=content)

    if TABLE_ROW_PATTERN.match(html):
        if TABLE_SEPARATOR_PATTERN.match(html):
            return TableSeparator(text=html)
        return TableRow(text=html)

    indent = _INDENT_PATTERN.match(html).group(0)
    return Plain(indent=indent, content=html[len(indent) :])


def render_line(line: LineClassification, ctx: RenderContext) -> str:
    """Render one classified line as a single ``<div>`` unit.

    Table rows are not rendered here; they are tagged with a class and left
    as escaped text for the post-processor.
    """
    if isinstance(line, Rule):
        return f'<div><span class="{HR_MARKER_CLASS}">{line.marker}</span></div>'

    if isinstance(line, CodeFenceDelimiter):
        return f'<div><span class="{CODE_FENCE_CLASS}">{line.fence}</span></div>'

    if isinstance(line, Header):
        content = parse_inline_elements(line.content, ctx)
        return f"<div><h{line.level}>{_marker(line.marker)}{content}</h{line.level}></div>"

    if isinstance(line, Blockquote):
        content = parse_inline_elements(line.content, ctx)
        return f'<div><span class="{BLOCKQUOTE_CLASS}">{_marker("&gt;")} {content}</span></div>'

    if isinstance(line, CheckboxItem):
        content = parse_inline_elements(line.content, ctx)
        state = "true" if line.checked else "false"
        return (
            f'<div>{line.indent}<li class="{BULLET_LIST_CLASS} {TASK_LIST_CLASS}">'
            f"{_marker(line.marker)}"
            f'<span class="{TASK_CHECKBOX_CLASS}" data-checked="{state}">{line.box}</span>'
            f"{content}</li></div>"
        )

    if isinstance(line, BulletItem):
        content = parse_inline_elements(line.content, ctx)
        return (
            f'<div>{line.indent}<li class="{BULLET_LIST_CLASS}">'
            f"{_marker(line.marker)}{content}</li></div>"
        )

    if isinstance(line, NumberedItem):
        content = parse_inline_elements(line.content, ctx)
        return (
            f'<div>{line.indent}<li class="{ORDERED_LIST_CLASS}">'
            f"{_marker(line.marker)}{content}</li></div>"
        )

    if isinstance(line, TableSeparator):
        return f'<div class="{TABLE_SEPARATOR_CLASS}">{line.text}</div>'

    if isinstance(line, TableRow):
        return f'<div class="{TABLE_ROW_CLASS}">{line.text}</div>'

    if not line.indent and not line.content:
        return f"<div>{NBSP}</div>"
    return f"<div>{line.indent}{parse_inline_elements(line.content, ctx)}</div>"


def render_table_row(row: str, cell_tag: str, ctx: RenderContext, separator: bool = False) -> str:
    """Render an escaped ``|a|b|`` row as a ``<tr>``.

    Pipes stay visible as marker spans so the row keeps its width. Cells of
    regular rows get inline markdown; separator cells are markers only.

    Args:
        row: Escaped table row text including the outer pipes.
        cell_tag: ``"th"`` for header rows, ``"td"`` for body rows.
        ctx: Per-parse state used for links inside cells.
        separator: Whether `row` is a header separator.

    Returns:
        str: A ``<tr>`` element as HTML.

    Examples:
        render_table_row("| a | b |", "td", RenderContext())
    """
    cells = TABLE_CELL_SPLIT_PATTERN.split(row[1:-1])
    rendered = []
    for index, cell in enumerate(cells):
        if separator:
            body = _marker(cell) if cell else ""
        else:
            body = parse_inline_elements(cell, ctx)
        closing = _marker("|") if index == len(cells) - 1 else ""
        rendered.append(f"<{cell_tag}>{_marker('|')}{body}{closing}</{cell_tag}>")

    row_class = f' class="{TABLE_SEPARATOR_CLASS}"' if separator else ""
    return f"<tr{row_class}>{''.join(rendered)}</tr>"
