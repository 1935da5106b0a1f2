from __future__ import annotations

import os

import pytest

from md_overlay.escaping import sanitize_url
from md_overlay.lists import get_list_context, plan_list_continuation, renumber_lists
from md_overlay.parser import parse

atheris = pytest.importorskip("atheris")


def test_parse_with_fuzzed_documents():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    rendered = 0

    while provider.remaining_bytes() > 0 and rendered < 32:
        text = provider.ConsumeUnicodeNoSurrogates(128)
        active_line = provider.ConsumeIntInRange(-1, 8)
        html = parse(text, active_line=active_line, show_active_line_raw=provider.ConsumeBool())
        assert html.startswith("<")
        rendered += 1

    assert rendered  # ensure we exercised the loop


def test_sanitize_url_with_fuzzed_input():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)

    for _ in range(128):
        if provider.remaining_bytes() == 0:
            break
        url = provider.ConsumeUnicodeNoSurrogates(64)
        assert sanitize_url(url) in (url, "#")


def test_list_engine_with_fuzzed_input():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)

    while provider.remaining_bytes() > 0:
        text = provider.ConsumeUnicodeNoSurrogates(96)
        cursor = provider.ConsumeIntInRange(0, len(text))

        context = get_list_context(text, cursor)
        assert context.line_start <= context.marker_end_offset <= context.line_end

        edit = plan_list_continuation(text, cursor)
        if edit is not None:
            assert 0 <= edit.cursor <= len(edit.apply(text))

        assert renumber_lists(renumber_lists(text)) == renumber_lists(text)
