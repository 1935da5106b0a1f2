from __future__ import annotations

import logging

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from md_overlay.config import RenderConfig
from md_overlay.exceptions import BackendUnavailableError
from md_overlay.models import RenderContext
from md_overlay.parser import parse
from md_overlay.postprocess import (
    CodeBlock,
    ListBlock,
    Passthrough,
    StringGrouper,
    TableBlock,
    TreeGrouper,
    UnitKind,
    group_blocks,
    plan_blocks,
)

B, O, R, S, F, X = (
    UnitKind.BULLET,
    UnitKind.ORDERED,
    UnitKind.TABLE_ROW,
    UnitKind.TABLE_SEPARATOR,
    UnitKind.FENCE,
    UnitKind.OTHER,
)


def test_plan_groups_consecutive_bullets():
    assert plan_blocks([B, B, X]) == [ListBlock(tag="ul", items=(0, 1)), Passthrough(2)]


def test_plan_splits_lists_when_marker_type_changes():
    assert plan_blocks([B, O]) == [ListBlock(tag="ul", items=(0,)), ListBlock(tag="ol", items=(1,))]


def test_plan_table_splits_header_and_body():
    assert plan_blocks([R, S, R, S]) == [
        TableBlock(header=(0,), separator=1, body=((2, False), (3, True)))
    ]


def test_plan_table_without_header_row_is_left_alone():
    assert plan_blocks([S, R]) == [Passthrough(0), Passthrough(1)]


def test_plan_table_without_separator_is_left_alone():
    assert plan_blocks([R, R]) == [Passthrough(0), Passthrough(1)]


def test_plan_code_block_contains_everything_between_fences():
    assert plan_blocks([F, B, R, S, F, B]) == [
        Passthrough(0),
        CodeBlock(opening=0, lines=(1, 2, 3)),
        Passthrough(4),
        ListBlock(tag="ul", items=(5,)),
    ]


def test_plan_unterminated_fence_swallows_the_rest():
    assert plan_blocks([F, X, B]) == [Passthrough(0), CodeBlock(opening=0, lines=(1, 2))]


def test_plan_empty():
    assert plan_blocks([]) == []


def test_group_blocks_rejects_unknown_backend():
    with pytest.raises(ValueError):
        group_blocks("<div>x</div>", backend="dom")


def test_tree_grouper_reports_malformed_fragments():
    with pytest.raises(BackendUnavailableError) as excinfo:
        TreeGrouper().group("<div><em>x</div>")
    assert excinfo.value.reason


def test_string_grouper_handles_malformed_fragments():
    assert StringGrouper().group("<div><em>x</div>") == "<div><em>x</div>"


def test_fallback_keeps_link_numbers_dense(caplog):
    caplog.set_level(logging.DEBUG, logger="md_overlay.postprocess")
    text = "[a](/l)\n| x |\n|---|\n| [b](/m) |\nq\x0br"
    html = parse(text)

    assert "Falling back to string grouping" in caplog.text
    assert html.index('href="/l" style="anchor-name: --link-0"') < html.index(
        'href="/m" style="anchor-name: --link-1"'
    )
    assert "--link-2" not in html


def test_group_blocks_uses_given_context():
    ctx = RenderContext(anchor_prefix="--t-", link_index=5)
    html = group_blocks(
        '<div class="table-row">| [a](/a) |</div><div class="table-separator">|---|</div>',
        backend="string",
        ctx=ctx,
    )
    assert "anchor-name: --t-5" in html
    assert ctx.link_index == 6


SAMPLE = """# Notes

Some *emphasis*, **bold**, ~~gone~~ and `code`.

- one
- [x] two
  - nested [link](https://example.com)
1. first
2. second

| Name | Value |
| :--- | ----: |
| a    | "1"   |

```python
if a < b and c > 'd':
    pass
```

> quoted ![img](/i.png)
---"""


def test_backends_agree_on_a_sample_document(html_structure):
    tree = parse(SAMPLE, config=RenderConfig(backend="tree"))
    string = parse(SAMPLE, config=RenderConfig(backend="string"))
    assert html_structure(tree) == html_structure(string)


markdown_lines = st.lists(
    st.text(alphabet="ab 12.-*_~`[]()|:#>/\"'\t", max_size=16),
    max_size=12,
)


@settings(max_examples=200, deadline=None)
@given(markdown_lines)
def test_backends_agree_on_generated_documents(html_structure, lines):
    text = "\n".join(lines)
    tree = parse(text, config=RenderConfig(backend="tree"))
    string = parse(text, config=RenderConfig(backend="string"))

    assert html_structure(tree) == html_structure(string)
