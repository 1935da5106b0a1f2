from __future__ import annotations

import pytest

from md_overlay.lists import (
    create_new_list_item,
    get_list_context,
    line_index_at,
    plan_list_continuation,
    renumber_lists,
    renumber_lists_at_cursor,
)
from md_overlay.models import ListAction, ListEdit, ListType


def test_checkbox_context_at_end_of_line():
    context = get_list_context("- [ ] task", 10)

    assert context.in_list
    assert context.list_type is ListType.CHECKBOX
    assert context.checked is False
    assert context.marker == "-"
    assert context.content == "task"
    assert context.line_start == 0
    assert context.line_end == 10
    assert context.marker_end_offset == 6


def test_checked_checkbox_context():
    context = get_list_context("- [x] done", 0)
    assert context.list_type is ListType.CHECKBOX
    assert context.checked is True


def test_bullet_context_on_second_line():
    context = get_list_context("a\n  * item", 5)

    assert context.list_type is ListType.BULLET
    assert context.indent == "  "
    assert context.marker == "*"
    assert context.content == "item"
    assert (context.line_start, context.line_end) == (2, 10)
    assert context.marker_end_offset == 6


def test_numbered_context_reports_integer_marker():
    context = get_list_context("3. three", 8)

    assert context.list_type is ListType.NUMBERED
    assert context.marker == 3
    assert context.marker_end_offset == 3
    assert context.checked is None


def test_plain_line_is_not_in_list():
    context = get_list_context("hello", 2)

    assert not context.in_list
    assert context.list_type is None
    assert context.marker is None
    assert context.content == "hello"
    assert context.marker_end_offset == context.line_start == 0


def test_caret_at_end_of_line_belongs_to_that_line():
    text = "- a\n1. b"
    assert get_list_context(text, 3).list_type is ListType.BULLET
    assert get_list_context(text, 4).list_type is ListType.NUMBERED


@pytest.mark.parametrize(("offset", "clamped"), [(10, 3), (-1, 0)])
def test_out_of_range_offsets_are_not_in_list(offset, clamped):
    context = get_list_context("- a", offset)

    assert not context.in_list
    assert context.line_start == context.line_end == context.marker_end_offset == clamped


@pytest.mark.parametrize(
    ("text", "offset", "expected"),
    [("a\nb", 2, 1), ("a\nb", 1, 0), ("a\nb", 5, -1), ("", 0, 0), ("a\n", 2, 1)],
)
def test_line_index_at(text, offset, expected):
    assert line_index_at(text, offset) == expected


def test_new_item_increments_numbers_and_keeps_indent():
    assert create_new_list_item(get_list_context("  7. x", 6)) == "  8. "


def test_new_item_echoes_bullet_marker():
    assert create_new_list_item(get_list_context("+ x", 3)) == "+ "


def test_new_checkbox_item_is_unchecked():
    assert create_new_list_item(get_list_context("- [x] done", 10)) == "- [ ] "


def test_new_item_outside_list_is_empty():
    assert create_new_list_item(get_list_context("text", 4)) == ""


def test_continuation_appends_after_the_line():
    edit = plan_list_continuation("- a", 3)

    assert edit == ListEdit(action=ListAction.APPEND, start=3, end=3, insert="\n- ", cursor=6)
    assert edit.apply("- a") == "- a\n- "


def test_numbered_continuation_requests_renumbering():
    edit = plan_list_continuation("1. first", 8)

    assert edit.renumber
    assert edit.cursor == 12
    assert edit.apply("1. first") == "1. first\n2. "


def test_continuation_splits_item_at_caret():
    text = "- hello world"
    edit = plan_list_continuation(text, 8)

    assert edit.action is ListAction.SPLIT
    result = edit.apply(text)
    assert result == "- hello \n- world"
    assert result[edit.cursor :] == "world"


def test_continuation_on_empty_item_exits_list():
    text = "- a\n- "
    edit = plan_list_continuation(text, 6)

    assert edit.action is ListAction.EXIT
    assert edit.apply(text) == "- a\n"
    assert edit.cursor == 4
    assert not edit.renumber


def test_continuation_on_empty_checkbox_removes_whole_marker():
    edit = plan_list_continuation("- [ ] ", 6)
    assert edit.action is ListAction.EXIT
    assert edit.apply("- [ ] ") == ""


def test_continuation_with_caret_before_marker_appends():
    edit = plan_list_continuation("- a", 0)
    assert edit.action is ListAction.APPEND
    assert edit.start == 3


def test_continuation_outside_list_does_nothing():
    assert plan_list_continuation("plain", 5) is None


def test_renumber_sequential():
    assert renumber_lists("1. a\n1. b\n1. c") == "1. a\n2. b\n3. c"


def test_renumber_after_insertion_in_the_middle():
    assert renumber_lists("1. a\n2. b\n1. new\n3. c") == "1. a\n2. b\n3. new\n4. c"


def test_renumber_nested_lists_restart():
    text = "1. a\n   1. x\n   5. y\n2. b\n   9. z"
    assert renumber_lists(text) == "1. a\n   1. x\n   2. y\n2. b\n   1. z"


def test_renumber_blank_line_ends_list():
    assert renumber_lists("5. a\n\n7. b") == "1. a\n\n1. b"


def test_renumber_unindented_text_ends_list():
    assert renumber_lists("1. a\ntext\n3. b") == "1. a\ntext\n1. b"


def test_renumber_indented_continuation_keeps_list():
    assert renumber_lists("1. a\n   more\n1. b") == "1. a\n   more\n2. b"


def test_renumber_skips_fenced_code():
    assert renumber_lists("```\n5. x\n```\n3. a") == "```\n5. x\n```\n1. a"


def test_renumber_rewrites_only_digits():
    assert renumber_lists("2.   spaced") == "1.   spaced"


def test_renumber_at_cursor_without_length_change():
    assert renumber_lists_at_cursor("1. a\n1. b", 9) == ("1. a\n2. b", 9)


def test_renumber_at_cursor_shifts_for_shorter_numbers():
    assert renumber_lists_at_cursor("10. a\n10. b", 11) == ("1. a\n2. b", 9)


def test_renumber_at_cursor_before_digits_on_its_line():
    assert renumber_lists_at_cursor("10. a\n10. b", 6) == ("1. a\n2. b", 5)


def test_renumber_at_cursor_leaves_numbered_text_alone():
    assert renumber_lists_at_cursor("1. a\n2. b", 3) == ("1. a\n2. b", 3)
