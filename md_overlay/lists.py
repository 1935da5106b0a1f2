"""List context detection, list continuation and renumbering.

These functions work on the raw (unescaped) editor text and caret offsets.
They never raise for odd input: an out-of-range offset or a line that is not
a list item yields a "not in list" result.
"""

from __future__ import annotations

import re

from .constants import (
    CODE_FENCE_PATTERN,
    LIST_BULLET_PATTERN,
    LIST_CHECKBOX_PATTERN,
    LIST_NUMBERED_PATTERN,
)
from .models import ListAction, ListContext, ListEdit, ListType


def _line_bounds(text: str, cursor_offset: int) -> tuple[int, int, int] | None:
    """Return ``(index, start, end)`` of the line holding `cursor_offset`.

    A caret sitting right after the last character of a line belongs to that
    line. Offsets outside ``0..len(text)`` return None.
    """
    if cursor_offset < 0 or cursor_offset > len(text):
        return None

    start = 0
    for index, line in enumerate(text.split("\n")):
        end = start + len(line)
        if cursor_offset <= end:
            return index, start, end
        start = end + 1

    return None


def line_index_at(text: str, cursor_offset: int) -> int:
    """Return the zero-based line index containing `cursor_offset`.

    Args:
        text: Raw document text.
        cursor_offset: Caret offset into `text`.

    Returns:
        int: Line index suitable for ``parse(active_line=...)``, or -1 when
            the offset is out of range.

    Examples:
        line_index_at("a\\nb", 2)  # 1
        line_index_at("a\\nb", 1)  # 0, end of the first line
    """
    bounds = _line_bounds(text, cursor_offset)
    return bounds[0] if bounds is not None else -1


def get_list_context(text: str, cursor_offset: int) -> ListContext:
    """Describe the list item on the line holding the caret.

    Checkbox items are matched first, then bullet items, then numbered
    items. `marker_end_offset` is the absolute offset where the item content
    starts, so for ``"- [ ] task"`` it points just past ``"- [ ] "``.

    Args:
        text: Raw document text.
        cursor_offset: Caret offset into `text`.

    Returns:
        ListContext: Context of the caret line. Lines that are not list
            items, and offsets outside the text, give ``in_list=False``.

    Examples:
        get_list_context("- [ ] task", 10).marker_end_offset  # 6
        get_list_context("3. three", 8).marker  # 3
    """
    bounds = _line_bounds(text, cursor_offset)
    if bounds is None:
        clamped = min(max(cursor_offset, 0), len(text))
        return ListContext(
            in_list=False,
            list_type=None,
            indent="",
            marker=None,
            content="",
            line_start=clamped,
            line_end=clamped,
            marker_end_offset=clamped,
        )

    _, line_start, line_end = bounds
    line = text[line_start:line_end]

    match = LIST_CHECKBOX_PATTERN.match(line)
    if match:
        return ListContext(
            in_list=True,
            list_type=ListType.CHECKBOX,
            indent=match.group("indent"),
            marker=match.group("marker"),
            content=match.group("content"),
            line_start=line_start,
            line_end=line_end,
            marker_end_offset=line_start + match.start("content"),
            checked=match.group("state").lower() == "x",
        )

    match = LIST_BULLET_PATTERN.match(line)
    if match:
        return ListContext(
            in_list=True,
            list_type=ListType.BULLET,
            indent=match.group("indent"),
            marker=match.group("marker"),
            content=match.group("content"),
            line_start=line_start,
            line_end=line_end,
            marker_end_offset=line_start + match.start("content"),
        )

    match = LIST_NUMBERED_PATTERN.match(line)
    if match:
        return ListContext(
            in_list=True,
            list_type=ListType.NUMBERED,
            indent=match.group("indent"),
            marker=int(match.group("number")),
            content=match.group("content"),
            line_start=line_start,
            line_end=line_end,
            marker_end_offset=line_start + match.start("content"),
        )

    return ListContext(
        in_list=False,
        list_type=None,
        indent="",
        marker=None,
        content=line,
        line_start=line_start,
        line_end=line_end,
        marker_end_offset=line_start,
    )


def create_new_list_item(context: ListContext) -> str:
    """Build the marker text for the item following `context`.

    Numbered markers increment by one, bullet markers are echoed and
    checkboxes always start unchecked. Indentation is kept.

    Examples:
        create_new_list_item(get_list_context("  7. x", 6))  # "  8. "
        create_new_list_item(get_list_context("- [x] done", 10))  # "- [ ] "
    """
    if context.list_type is ListType.BULLET:
        return f"{context.indent}{context.marker} "
    if context.list_type is ListType.NUMBERED:
        return f"{context.indent}{context.marker + 1}. "
    if context.list_type is ListType.CHECKBOX:
        return f"{context.indent}- [ ] "
    return ""


def plan_list_continuation(text: str, cursor_offset: int) -> ListEdit | None:
    """Decide what pressing Enter at `cursor_offset` does inside a list.

    * An empty item with the caret at or after its marker exits the list:
      the marker is deleted.
    * A caret inside the item content splits the item; the text after the
      caret moves into a new item.
    * Otherwise a new empty item is appended after the line.

    Args:
        text: Raw document text.
        cursor_offset: Caret offset into `text`.

    Returns:
        ListEdit | None: The edit to apply, or None when the caret is not on
            a list item.

    Examples:
        edit = plan_list_continuation("- a", 3)
        edit.apply("- a")  # "- a\\n- "
    """
    context = get_list_context(text, cursor_offset)
    if not context.in_list:
        return None

    if not context.content.strip() and cursor_offset >= context.marker_end_offset:
        return ListEdit(
            action=ListAction.EXIT,
            start=context.line_start,
            end=context.marker_end_offset,
            insert="",
            cursor=context.line_start,
        )

    new_item = create_new_list_item(context)
    renumber = context.list_type is ListType.NUMBERED

    if context.marker_end_offset < cursor_offset < context.line_end:
        tail = text[cursor_offset : context.line_end]
        return ListEdit(
            action=ListAction.SPLIT,
            start=cursor_offset,
            end=context.line_end,
            insert=f"\n{new_item}{tail}",
            cursor=cursor_offset + 1 + len(new_item),
            renumber=renumber,
        )

    return ListEdit(
        action=ListAction.APPEND,
        start=context.line_end,
        end=context.line_end,
        insert=f"\n{new_item}",
        cursor=context.line_end + 1 + len(new_item),
        renumber=renumber,
    )


def _breaks_list(line: str) -> bool:
    return not line.strip() or not line[:1].isspace()


def renumber_lists(text: str) -> str:
    """Rewrite numbered list items so each list counts 1, 2, 3, ...

    Numbering is tracked per indentation width. Entering a shallower item
    restarts every deeper sub-list. A blank line or a non-indented line that
    is not a numbered item ends all lists. Lines inside fenced code blocks
    are left alone. Only the digits change; spacing and content are kept.

    Args:
        text: Raw document text.

    Returns:
        str: Text with consecutive numbering.

    Examples:
        renumber_lists("1. a\\n1. b\\n1. c")  # "1. a\\n2. b\\n3. c"
    """
    numbers_by_indent: dict[int, int] = {}
    in_fence = False
    result = []

    for line in text.split("\n"):
        if CODE_FENCE_PATTERN.match(line):
            in_fence = not in_fence
            numbers_by_indent.clear()
            result.append(line)
            continue

        if in_fence:
            result.append(line)
            continue

        match = LIST_NUMBERED_PATTERN.match(line)
        if match is None:
            if _breaks_list(line):
                numbers_by_indent.clear()
            result.append(line)
            continue

        width = len(match.group("indent"))
        number = numbers_by_indent.get(width, 0) + 1
        numbers_by_indent[width] = number
        for deeper in [level for level in numbers_by_indent if level > width]:
            del numbers_by_indent[deeper]

        result.append(f"{line[: match.start('number')]}{number}{line[match.end('number') :]}")

    return "\n".join(result)


_NUMBER_END = re.compile(r"^\s*\d+")


def renumber_lists_at_cursor(text: str, cursor_offset: int) -> tuple[str, int]:
    """Renumber lists and keep the caret on the same character.

    The caret moves by the length change of every rewritten line before it,
    and by the change on its own line when it sits after the digits.

    Args:
        text: Raw document text.
        cursor_offset: Caret offset into `text`.

    Returns:
        tuple[str, int]: Renumbered text and the adjusted caret offset.

    Examples:
        renumber_lists_at_cursor("1. a\\n1. b", 9)  # ("1. a\\n2. b", 9)
    """
    renumbered = renumber_lists(text)
    if renumbered == text:
        return text, cursor_offset

    shift = 0
    line_start = 0
    for old, new in zip(text.split("\n"), renumbered.split("\n")):
        if line_start > cursor_offset:
            break
        if old != new:
            digits_end = line_start + _NUMBER_END.match(old).end()
            if digits_end <= cursor_offset:
                shift += len(new) - len(old)
        line_start += len(old) + 1

    return renumbered, cursor_offset + shift
