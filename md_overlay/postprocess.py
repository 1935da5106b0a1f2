"""Structural post-processing of assembled line units.

The assembler emits one ``<div>`` per source line. This module merges runs of
those units into real HTML structure: list items into ``<ul>``/``<ol>``,
table rows into ``<table>``, and fenced code lines into ``<pre><code>``.

Which units merge is decided once, by `plan_blocks`, from the kind of each
unit. Two interchangeable backends carry the plan out:

* `TreeGrouper` builds an ``xml.etree.ElementTree`` tree from the fragment
  and moves elements around.
* `StringGrouper` does the same work with pattern matching on the HTML
  string, for inputs that cannot be loaded as a tree.
"""

from __future__ import annotations

import itertools
import logging
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Generic, TypeVar, Union

from .blocks import render_table_row
from .constants import (
    BULLET_LIST_CLASS,
    CODE_BLOCK_CLASS,
    CODE_FENCE_CLASS,
    NBSP,
    NBSP_CHAR,
    ORDERED_LIST_CLASS,
    TABLE_CLASS,
    TABLE_ROW_CLASS,
    TABLE_SEPARATOR_CLASS,
)
from .escaping import escape_html
from .exceptions import BackendUnavailableError
from .models import RenderContext

logger = logging.getLogger(__name__)

Unit = TypeVar("Unit")
Part = TypeVar("Part")


class UnitKind(Enum):
    """How a single assembled unit takes part in grouping."""

    BULLET = auto()
    ORDERED = auto()
    TABLE_ROW = auto()
    TABLE_SEPARATOR = auto()
    FENCE = auto()
    OTHER = auto()


@dataclass(frozen=True)
class Passthrough:
    index: int


@dataclass(frozen=True)
class ListBlock:
    tag: str
    items: tuple[int, ...]


@dataclass(frozen=True)
class TableBlock:
    """Promoted table.

    Attributes:
        header: Units before the first separator.
        separator: The first separator unit.
        body: Remaining units with a flag marking further separators.
    """

    header: tuple[int, ...]
    separator: int
    body: tuple[tuple[int, bool], ...]


@dataclass(frozen=True)
class CodeBlock:
    opening: int
    lines: tuple[int, ...]


Block = Union[Passthrough, ListBlock, TableBlock, CodeBlock]

_TABLE_KINDS = (UnitKind.TABLE_ROW, UnitKind.TABLE_SEPARATOR)
_LIST_TAGS = {UnitKind.BULLET: "ul", UnitKind.ORDERED: "ol"}


def _plan_table(kinds: list[UnitKind], start: int, end: int) -> list[Block]:
    separators = [i for i in range(start, end) if kinds[i] is UnitKind.TABLE_SEPARATOR]
    if not separators or separators[0] == start:
        # No header row or no separator: rows stay literal text
        return [Passthrough(i) for i in range(start, end)]

    first = separators[0]
    return [
        TableBlock(
            header=tuple(range(start, first)),
            separator=first,
            body=tuple(
                (i, kinds[i] is UnitKind.TABLE_SEPARATOR) for i in range(first + 1, end)
            ),
        )
    ]


def plan_blocks(kinds: list[UnitKind]) -> list[Block]:
    """Decide how consecutive units are grouped.

    * Consecutive bullet (or ordered) units form one list; a change of marker
      type or any other unit starts a new one.
    * A run of table units becomes a table only when it has at least one row
      before its first separator.
    * After an opening fence, every unit up to the next fence is a code line.
      Both fence units stay in the output. An unterminated fence swallows
      the rest of the document.

    Args:
        kinds: Kind of each assembled unit, in document order.

    Returns:
        list[Block]: Blocks covering every unit exactly once, in order.

    Examples:
        plan_blocks([UnitKind.BULLET, UnitKind.BULLET, UnitKind.OTHER])
        # [ListBlock("ul", (0, 1)), Passthrough(2)]
    """
    plan: list[Block] = []
    code_opening: int | None = None
    code_lines: list[int] = []
    i = 0

    while i < len(kinds):
        kind = kinds[i]

        if code_opening is not None:
            if kind is UnitKind.FENCE:
                plan.append(CodeBlock(opening=code_opening, lines=tuple(code_lines)))
                plan.append(Passthrough(i))
                code_opening = None
                code_lines = []
            else:
                code_lines.append(i)
            i += 1
            continue

        if kind is UnitKind.FENCE:
            plan.append(Passthrough(i))
            code_opening = i
            i += 1
            continue

        if kind in _LIST_TAGS:
            end = i
            while end < len(kinds) and kinds[end] is kind:
                end += 1
            plan.append(ListBlock(tag=_LIST_TAGS[kind], items=tuple(range(i, end))))
            i = end
            continue

        if kind in _TABLE_KINDS:
            end = i
            while end < len(kinds) and kinds[end] in _TABLE_KINDS:
                end += 1
            plan.extend(_plan_table(kinds, i, end))
            i = end
            continue

        plan.append(Passthrough(i))
        i += 1

    if code_opening is not None:
        plan.append(CodeBlock(opening=code_opening, lines=tuple(code_lines)))

    return plan


def _has_class(value: str | None, name: str) -> bool:
    return bool(value) and name in value.split()


class BlockGrouper(ABC, Generic[Unit, Part]):
    """Common driver for both grouping backends.

    Subclasses split the fragment into units, report each unit's kind and
    render the planned blocks; the grouping rules live in `plan_blocks`.
    """

    name = "abstract"

    def __init__(self, ctx: RenderContext | None = None):
        self.ctx = ctx or RenderContext()

    def group(self, html: str) -> str:
        units = self.split_units(html)
        plan = plan_blocks([self.unit_kind(unit) for unit in units])

        parts: list[Part] = []
        for block in plan:
            if isinstance(block, Passthrough):
                parts.append(self.keep_unit(units[block.index]))
            elif isinstance(block, ListBlock):
                parts.append(self.build_list(block.tag, [units[i] for i in block.items]))
            elif isinstance(block, TableBlock):
                parts.append(
                    self.build_table(
                        [units[i] for i in block.header],
                        units[block.separator],
                        [(units[i], is_separator) for i, is_separator in block.body],
                    )
                )
            else:
                parts.append(
                    self.build_code(units[block.opening], [units[i] for i in block.lines])
                )

        return self.join(parts)

    @abstractmethod
    def split_units(self, html: str) -> list[Unit]: ...

    @abstractmethod
    def unit_kind(self, unit: Unit) -> UnitKind: ...

    @abstractmethod
    def keep_unit(self, unit: Unit) -> Part: ...

    @abstractmethod
    def build_list(self, tag: str, items: list[Unit]) -> Part: ...

    @abstractmethod
    def build_table(
        self, header: list[Unit], separator: Unit, body: list[tuple[Unit, bool]]
    ) -> Part: ...

    @abstractmethod
    def build_code(self, opening: Unit, lines: list[Unit]) -> Part: ...

    @abstractmethod
    def join(self, parts: list[Part]) -> str: ...


def _load_fragment(html: str) -> ET.Element:
    markup = html.replace(NBSP, NBSP_CHAR).replace("\r", "&#13;")
    return ET.fromstring(f"<root>{markup}</root>")


class TreeGrouper(BlockGrouper[ET.Element, ET.Element]):
    """Grouping backend that manipulates an ElementTree node tree."""

    name = "tree"

    def split_units(self, html: str) -> list[ET.Element]:
        try:
            root = _load_fragment(html)
        except ET.ParseError as error:
            raise BackendUnavailableError(str(error)) from error
        return list(root)

    def unit_kind(self, unit: ET.Element) -> UnitKind:
        css_class = unit.get("class")
        if _has_class(css_class, TABLE_SEPARATOR_CLASS):
            return UnitKind.TABLE_SEPARATOR
        if _has_class(css_class, TABLE_ROW_CLASS):
            return UnitKind.TABLE_ROW

        first = unit[0] if len(unit) else None
        if first is None:
            return UnitKind.OTHER
        if first.tag == "span" and _has_class(first.get("class"), CODE_FENCE_CLASS):
            return UnitKind.FENCE
        if first.tag == "li":
            if _has_class(first.get("class"), BULLET_LIST_CLASS):
                return UnitKind.BULLET
            if _has_class(first.get("class"), ORDERED_LIST_CLASS):
                return UnitKind.ORDERED
        return UnitKind.OTHER

    def keep_unit(self, unit: ET.Element) -> ET.Element:
        return unit

    def build_list(self, tag: str, items: list[ET.Element]) -> ET.Element:
        container = ET.Element(tag)
        for wrapper in items:
            item = wrapper[0]
            # Indentation moves from the wrapper into the item
            item.text = (wrapper.text or "") + (item.text or "")
            item.tail = None
            container.append(item)
        return container

    def _row(self, unit: ET.Element, cell_tag: str, separator: bool) -> ET.Element:
        text = escape_html("".join(unit.itertext()))
        try:
            return _load_fragment(render_table_row(text, cell_tag, self.ctx, separator))[0]
        except ET.ParseError as error:
            raise BackendUnavailableError(str(error)) from error

    def build_table(
        self,
        header: list[ET.Element],
        separator: ET.Element,
        body: list[tuple[ET.Element, bool]],
    ) -> ET.Element:
        table = ET.Element("table", {"class": TABLE_CLASS})
        thead = ET.SubElement(table, "thead")
        for unit in header:
            thead.append(self._row(unit, "th", separator=False))
        thead.append(self._row(separator, "th", separator=True))
        if body:
            tbody = ET.SubElement(table, "tbody")
            for unit, is_separator in body:
                tbody.append(self._row(unit, "td", separator=is_separator))
        return table

    def build_code(self, opening: ET.Element, lines: list[ET.Element]) -> ET.Element:
        pre = ET.Element("pre", {"class": CODE_BLOCK_CLASS})
        code = ET.SubElement(pre, "code")
        lang = "".join(opening.itertext())[3:].strip()
        if lang:
            code.set("class", f"language-{lang}")
        code.text = "\n".join("".join(line.itertext()).replace(NBSP_CHAR, " ") for line in lines)
        return pre

    def join(self, parts: list[ET.Element]) -> str:
        root = ET.Element("root")
        root.extend(parts)
        html = "".join(ET.tostring(child, encoding="unicode", method="html") for child in root)
        return html.replace(NBSP_CHAR, NBSP)


_UNIT_PATTERN = re.compile(r'<div(?: class="(?P<cls>[^"]*)")?>(?P<body>.*?)</div>', re.S)
_LIST_ITEM_PATTERN = re.compile(r'^(?P<indent>(?:&nbsp;)*)(?P<open><li class="[^"]*">)(?P<rest>.*)$', re.S)
_LIST_CLASS_PATTERN = re.compile(r'^(?:&nbsp;)*<li class="(?P<cls>[^"]*)">')
_FENCE_PATTERN = re.compile(rf'^<span class="{CODE_FENCE_CLASS}">(?P<fence>.*?)</span>$', re.S)
_TAG_PATTERN = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class _StringUnit:
    markup: str
    css_class: str | None
    body: str


class StringGrouper(BlockGrouper[_StringUnit, str]):
    """Grouping backend that works on the concatenated HTML string."""

    name = "string"

    def split_units(self, html: str) -> list[_StringUnit]:
        return [
            _StringUnit(markup=match.group(0), css_class=match.group("cls"), body=match.group("body"))
            for match in _UNIT_PATTERN.finditer(html)
        ]

    def unit_kind(self, unit: _StringUnit) -> UnitKind:
        if _has_class(unit.css_class, TABLE_SEPARATOR_CLASS):
            return UnitKind.TABLE_SEPARATOR
        if _has_class(unit.css_class, TABLE_ROW_CLASS):
            return UnitKind.TABLE_ROW
        if _FENCE_PATTERN.match(unit.body):
            return UnitKind.FENCE

        match = _LIST_CLASS_PATTERN.match(unit.body)
        if match:
            if _has_class(match.group("cls"), BULLET_LIST_CLASS):
                return UnitKind.BULLET
            if _has_class(match.group("cls"), ORDERED_LIST_CLASS):
                return UnitKind.ORDERED
        return UnitKind.OTHER

    def keep_unit(self, unit: _StringUnit) -> str:
        return unit.markup

    def build_list(self, tag: str, items: list[_StringUnit]) -> str:
        rendered = []
        for unit in items:
            match = _LIST_ITEM_PATTERN.match(unit.body)
            rendered.append(f"{match.group('open')}{match.group('indent')}{match.group('rest')}")
        return f"<{tag}>{''.join(rendered)}</{tag}>"

    def build_table(
        self,
        header: list[_StringUnit],
        separator: _StringUnit,
        body: list[tuple[_StringUnit, bool]],
    ) -> str:
        head_rows = [render_table_row(unit.body, "th", self.ctx) for unit in header]
        head_rows.append(render_table_row(separator.body, "th", self.ctx, separator=True))
        html = f'<table class="{TABLE_CLASS}"><thead>{"".join(head_rows)}</thead>'
        if body:
            body_rows = [
                render_table_row(unit.body, "td", self.ctx, separator=is_separator)
                for unit, is_separator in body
            ]
            html += f"<tbody>{''.join(body_rows)}</tbody>"
        return html + "</table>"

    def build_code(self, opening: _StringUnit, lines: list[_StringUnit]) -> str:
        lang = _FENCE_PATTERN.match(opening.body).group("fence")[3:].strip()
        lang_class = f' class="language-{lang}"' if lang else ""
        content = "\n".join(
            _TAG_PATTERN.sub("", line.body).replace(NBSP, " ") for line in lines
        )
        return f'<pre class="{CODE_BLOCK_CLASS}"><code{lang_class}>{content}</code></pre>'

    def join(self, parts: list[str]) -> str:
        return "".join(parts)


def group_blocks(html: str, backend: str = "auto", ctx: RenderContext | None = None) -> str:
    """Restructure assembled units with the requested backend.

    Args:
        html: Concatenated ``<div>`` units from the assembler.
        backend: ``"tree"``, ``"string"``, or ``"auto"`` (tree, falling back
            to string when the fragment cannot be loaded as a tree).
        ctx: Per-parse state used for links inside table cells.

    Returns:
        str: Grouped HTML.

    Raises:
        BackendUnavailableError: If ``"tree"`` is requested and the fragment
            cannot be loaded as a tree.
        ValueError: If `backend` is not a known backend name.
    """
    ctx = ctx or RenderContext()

    if backend == "string":
        return StringGrouper(ctx).group(html)
    if backend == "tree":
        return TreeGrouper(ctx).group(html)
    if backend != "auto":
        raise ValueError(f"Unknown grouping backend: {backend!r}")

    link_index = ctx.link_index
    try:
        return TreeGrouper(ctx).group(html)
    except BackendUnavailableError as error:
        logger.debug("Falling back to string grouping: %s", error.reason)
        # Links in table cells may already have taken anchor names
        ctx.link_index = link_index
        return StringGrouper(ctx).group(html)


def number_anchors_in_order(html: str, anchor_prefix: str) -> str:
    """Renumber link anchor names from zero in document order.

    Links in table cells are rendered while grouping, after every other line,
    so their indices are assigned late. This pass restores reading order.

    Examples:
        number_anchors_in_order(html, "--link-")
    """
    pattern = re.compile(rf'style="anchor-name: {re.escape(anchor_prefix)}\d+"')
    counter = itertools.count()
    return pattern.sub(lambda _: f'style="anchor-name: {anchor_prefix}{next(counter)}"', html)
