from __future__ import annotations

import re
import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from md_overlay.config import RenderConfig
from md_overlay.escaping import sanitize_url
from md_overlay.lists import (
    get_list_context,
    line_index_at,
    plan_list_continuation,
    renumber_lists,
)
from md_overlay.parser import assemble_lines, parse

# Images are the one construct whose source text is not shown, so "!" is left
# out of the alphabet.
markdown_alphabet = string.ascii_letters + string.digits + " \t\n#*_~`[]()|>-.:/\\&<\"'=+\u00e9\u6f22"
markdown_text = st.text(alphabet=markdown_alphabet, max_size=200)


@st.composite
def text_and_cursor(draw, text_strategy=markdown_text):
    text = draw(text_strategy)
    cursor = draw(st.integers(min_value=0, max_value=len(text)))
    return text, cursor


@given(markdown_text)
def test_units_show_their_source_line(visible_text, text: str):
    lines = text.split("\n")
    units = assemble_lines(text)

    assert len(units) == len(lines)
    for unit, line in zip(units, lines):
        assert visible_text(unit) == (line or " ")


@pytest.mark.parametrize("backend", ["tree", "string", "auto"])
@settings(deadline=None)
@given(markdown_text)
def test_grouped_output_shows_the_source(visible_text, backend: str, text: str):
    html = parse(text, config=RenderConfig(backend=backend))
    expected = "".join(line or " " for line in text.split("\n"))

    # Code blocks join their lines with newlines
    assert visible_text(html).replace("\n", "") == expected


@given(markdown_text, st.integers(min_value=-1, max_value=10))
def test_raw_active_line_keeps_unit_count(text: str, active_line: int):
    units = assemble_lines(text, active_line=active_line, show_active_line_raw=True)
    assert len(units) == len(text.split("\n"))


@given(st.text(max_size=200))
def test_parse_is_deterministic(content: str):
    assert parse(content) == parse(content)


@given(st.text(max_size=100))
def test_sanitize_url_keeps_or_blocks(url: str):
    result = sanitize_url(url)
    assert result in (url, "#")
    assert sanitize_url(result) == result


@given(st.sampled_from(["javascript", "JavaScript", "data", "vbscript", "file"]), st.text(max_size=20))
def test_sanitize_url_blocks_unknown_schemes(scheme: str, rest: str):
    assert sanitize_url(f"{scheme}:{rest}") == "#"


@given(st.text(max_size=300))
def test_renumber_lists_is_idempotent(text: str):
    once = renumber_lists(text)
    assert renumber_lists(once) == once


@given(markdown_text)
def test_renumber_lists_changes_digits_only(text: str):
    result = renumber_lists(text)

    assert result.count("\n") == text.count("\n")
    assert re.sub(r"\d", "", result) == re.sub(r"\d", "", text)


@given(
    st.lists(st.integers(min_value=0, max_value=999), min_size=1, max_size=20),
    st.sampled_from(["", "  ", "\t"]),
)
def test_renumbered_list_counts_from_one(numbers: list[int], indent: str):
    text = "\n".join(f"{indent}{number}. item" for number in numbers)
    expected = "\n".join(f"{indent}{index}. item" for index in range(1, len(numbers) + 1))

    assert renumber_lists(text) == expected


@given(st.text(max_size=200), st.integers(min_value=-10, max_value=250))
def test_list_context_offsets_are_ordered(text: str, cursor: int):
    context = get_list_context(text, cursor)

    assert 0 <= context.line_start <= context.marker_end_offset <= context.line_end <= len(text)
    assert "\n" not in text[context.line_start : context.line_end]
    if not context.in_list:
        assert context.list_type is None


@given(text_and_cursor())
def test_line_index_matches_line_start(data):
    text, cursor = data
    index = line_index_at(text, cursor)
    context = get_list_context(text, cursor)

    assert index == text[: context.line_start].count("\n")


@given(text_and_cursor(st.text(alphabet=markdown_alphabet, max_size=120)))
def test_list_continuation_keeps_cursor_in_text(data):
    text, cursor = data
    edit = plan_list_continuation(text, cursor)
    if edit is None:
        assert not get_list_context(text, cursor).in_list
        return

    updated = edit.apply(text)
    assert 0 <= edit.start <= edit.end <= len(text)
    assert 0 <= edit.cursor <= len(updated)
