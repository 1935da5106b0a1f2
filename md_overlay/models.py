"""Data models for md-overlay."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union

from .constants import DEFAULT_ANCHOR_PREFIX


class ParserState(Enum):
    """Assembler states while walking the document.

    Attributes:
        NORMAL: Lines are parsed as markdown.
        IN_FENCED_CODE: Lines are echoed verbatim until the next fence.
    """

    NORMAL = auto()
    IN_FENCED_CODE = auto()


@dataclass
class ParserContext:
    """Encapsulate assembler state while walking Markdown text."""

    state: ParserState = ParserState.NORMAL


@dataclass(frozen=True)
class Header:
    """ATX header line (levels 1-3).

    Attributes:
        level: Number of leading ``#`` characters.
        marker: Hashes plus the whitespace character that follows them.
        content: Escaped header text.
    """

    level: int
    marker: str
    content: str


@dataclass(frozen=True)
class Rule:
    """Horizontal rule made of three or more ``-``, ``*`` or ``_``."""

    marker: str


@dataclass(frozen=True)
class Blockquote:
    """Single-line blockquote starting with ``> ``."""

    content: str


@dataclass(frozen=True)
class BulletItem:
    """Bullet list item.

    Attributes:
        indent: Indentation as ``&nbsp;`` entities.
        marker: Bullet character plus the following space.
        content: Escaped item text.
    """

    indent: str
    marker: str
    content: str


@dataclass(frozen=True)
class NumberedItem:
    """Numbered list item.

    Attributes:
        indent: Indentation as ``&nbsp;`` entities.
        number: Number typed by the user.
        marker: Digits, dot and the following space, exactly as typed.
        content: Escaped item text.
    """

    indent: str
    number: int
    marker: str
    content: str


@dataclass(frozen=True)
class CheckboxItem:
    """Task list item such as ``- [ ] task`` or ``- [x] done``."""

    indent: str
    marker: str
    checked: bool
    box: str
    content: str


@dataclass(frozen=True)
class CodeFenceDelimiter:
    """Line that opens or closes a fenced code block.

    Attributes:
        fence: Full escaped fence line, e.g. ``"```python"``.
        lang: Language tag following the backticks, or None.
    """

    fence: str
    lang: str | None = None


@dataclass(frozen=True)
class TableRow:
    """Pipe-delimited table row, rendered later by the post-processor."""

    text: str


@dataclass(frozen=True)
class TableSeparator:
    """Table header separator such as ``| --- | :-: |``."""

    text: str


@dataclass(frozen=True)
class Plain:
    """Paragraph text with its indentation split off."""

    indent: str
    content: str


LineClassification = Union[
    Header,
    Rule,
    Blockquote,
    BulletItem,
    NumberedItem,
    CheckboxItem,
    CodeFenceDelimiter,
    TableRow,
    TableSeparator,
    Plain,
]


class SanctuaryKind(Enum):
    """Inline constructs shielded from emphasis parsing."""

    CODE = auto()
    IMAGE = auto()
    LINK = auto()


@dataclass(frozen=True)
class Sanctuary:
    """Record stored behind a placeholder token.

    Attributes:
        kind: Which inline construct was protected.
        original: Matched source text.
        fields: Decomposed parts (``open``/``content``/``close`` for code,
            ``alt``/``url``/``title`` for images, ``text``/``url`` for links).
    """

    kind: SanctuaryKind
    original: str
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class RenderContext:
    """State scoped to a single ``parse`` call.

    Attributes:
        anchor_prefix: Prefix of the CSS anchor names stamped on links.
        link_index: Index the next link will receive.
    """

    anchor_prefix: str = DEFAULT_ANCHOR_PREFIX
    link_index: int = 0

    def next_anchor_name(self) -> str:
        name = f"{self.anchor_prefix}{self.link_index}"
        self.link_index += 1
        return name


class ListType(Enum):
    """Kinds of list items recognised at the cursor."""

    BULLET = "bullet"
    NUMBERED = "numbered"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class ListContext:
    """Snapshot of the list item under the cursor.

    Attributes:
        in_list: Whether the cursor line is a list item.
        list_type: Kind of list item, or None outside lists.
        indent: Leading whitespace of the line.
        marker: Bullet character, item number, or None.
        checked: Checkbox state for task items, otherwise None.
        content: Text after the marker (the whole line outside lists).
        line_start: Offset of the first character of the line.
        line_end: Offset just past the last character of the line.
        marker_end_offset: Offset where the item content starts.
    """

    in_list: bool
    list_type: ListType | None
    indent: str
    marker: str | int | None
    content: str
    line_start: int
    line_end: int
    marker_end_offset: int
    checked: bool | None = None


class ListAction(Enum):
    """Edits the Enter key can make inside a list."""

    EXIT = auto()
    SPLIT = auto()
    APPEND = auto()


@dataclass(frozen=True)
class ListEdit:
    """Text replacement produced by list continuation.

    Replace ``text[start:end]`` with ``insert`` and move the caret to
    ``cursor``.

    Attributes:
        action: Which continuation rule applied.
        start: Start offset of the replaced range.
        end: End offset of the replaced range.
        insert: Replacement text.
        cursor: Caret offset after the edit.
        renumber: Whether numbered lists should be renumbered afterwards.
    """

    action: ListAction
    start: int
    end: int
    insert: str
    cursor: int
    renumber: bool = False

    def apply(self, text: str) -> str:
        return text[: self.start] + self.insert + text[self.end :]
