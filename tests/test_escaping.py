from __future__ import annotations

import pytest

from md_overlay.escaping import escape_html, leading_whitespace, preserve_indentation, sanitize_url


def test_escape_html_escapes_markup_and_quotes():
    assert escape_html("a < b & \"c\" 'd'") == "a &lt; b &amp; &quot;c&quot; &#x27;d&#x27;"


def test_leading_whitespace_stops_at_first_visible_character():
    assert leading_whitespace("  \t x ") == "  \t "
    assert leading_whitespace("x  ") == ""


def test_preserve_indentation_turns_spaces_into_entities():
    assert preserve_indentation("  - item", "  - item") == "&nbsp;&nbsp;- item"


def test_preserve_indentation_keeps_tabs():
    assert preserve_indentation("\t x", "\t x") == "\t&nbsp;x"


def test_preserve_indentation_measures_original_line():
    original = "  <b>"
    assert preserve_indentation(escape_html(original), original) == "&nbsp;&nbsp;&lt;b&gt;"


def test_preserve_indentation_leaves_unindented_lines_alone():
    assert preserve_indentation("", "") == ""
    assert preserve_indentation("text  ", "text  ") == "text  "


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com",
        "HTTP://EXAMPLE.COM",
        "mailto:user@example.com",
        "ftp://files.example.com",
        "ftps://files.example.com",
        "/absolute/path",
        "#fragment",
        "?query=1",
        "./relative",
        "page.html",
        "  https://padded.example.com",
    ],
)
def test_sanitize_url_allows_safe_urls_unchanged(url: str):
    assert sanitize_url(url) == url


@pytest.mark.parametrize(
    "url",
    [
        "javascript:alert(1)",
        "JavaScript:alert(1)",
        "  javascript:alert(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
        "vbscript:msgbox",
        "file:///etc/passwd",
    ],
)
def test_sanitize_url_blocks_other_schemes(url: str):
    assert sanitize_url(url) == "#"
