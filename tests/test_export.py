from __future__ import annotations

from md_overlay.config import RenderConfig
from md_overlay.export import render_clean_html, strip_overlay_markup


def test_header_loses_its_marker():
    assert render_clean_html("# Title") == "<div><h1>Title</h1></div>"


def test_list_items_lose_internal_classes():
    html = render_clean_html("- a\n- b")

    assert html == "<ul><li>a</li><li>b</li></ul>"


def test_active_line_is_never_raw():
    config = RenderConfig(show_active_line_raw=True)
    html = render_clean_html("**bold**", config)

    assert html == "<div><strong>bold</strong></div>"


def test_code_fences_are_dropped():
    html = render_clean_html("```py\nx = 1\n```")

    assert "```" not in html
    assert "code-fence" not in html
    assert '<code class="language-py">x = 1</code>' in html


def test_table_separator_row_is_dropped():
    html = render_clean_html("| a | b |\n| --- | --- |\n| 1 | 2 |")

    assert "---" not in html
    assert "table-separator" not in html
    assert "<th> a </th><th> b </th>" in html
    assert "<td> 1 </td><td> 2 </td>" in html


def test_task_checkbox_state_survives():
    html = render_clean_html("- [x] done")

    assert 'class="task-checkbox"' in html
    assert 'data-checked="true"' in html
    assert "task-list" not in html


def test_strip_overlay_markup_removes_anchor_style():
    html = '<a href="x" style="anchor-name: --link-0">t</a>'

    assert strip_overlay_markup(html) == '<a href="x">t</a>'


def test_strip_overlay_markup_keeps_other_classes():
    assert strip_overlay_markup('<li class="bullet-list custom">a</li>') == '<li class="custom">a</li>'
