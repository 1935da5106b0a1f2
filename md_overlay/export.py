"""Clean HTML export without overlay-only markup."""

from __future__ import annotations

import re

from .config import RenderConfig
from .constants import (
    CODE_FENCE_CLASS,
    INTERNAL_CLASSES,
    SYNTAX_MARKER_CLASS,
    TABLE_SEPARATOR_CLASS,
)
from .parser import parse

_FENCE_UNIT_PATTERN = re.compile(rf'<div><span class="{CODE_FENCE_CLASS}">[^<]*</span></div>')
_SEPARATOR_ROW_PATTERN = re.compile(rf'<tr class="{TABLE_SEPARATOR_CLASS}">.*?</tr>', re.S)
_MARKER_SPAN_PATTERN = re.compile(rf'<span class="{SYNTAX_MARKER_CLASS}[^"]*">[^<]*</span>')
_ANCHOR_STYLE_PATTERN = re.compile(r'\sstyle="anchor-name:[^"]*"')
_CLASS_ATTR_PATTERN = re.compile(r'\sclass="([^"]*)"')


def _strip_internal_classes(match: re.Match[str]) -> str:
    kept = [name for name in match.group(1).split() if name not in INTERNAL_CLASSES]
    if not kept:
        return ""
    return f' class="{" ".join(kept)}"'


def strip_overlay_markup(html: str) -> str:
    """Remove overlay-only markup from rendered HTML.

    Drops code fence delimiter lines, table separator rows, syntax marker
    spans and link anchor styles, then removes internal class names. Class
    attributes left empty are removed.

    Examples:
        strip_overlay_markup(parse("**bold**"))  # "<div><strong>bold</strong></div>"
    """
    html = _FENCE_UNIT_PATTERN.sub("", html)
    html = _SEPARATOR_ROW_PATTERN.sub("", html)
    html = _MARKER_SPAN_PATTERN.sub("", html)
    html = _ANCHOR_STYLE_PATTERN.sub("", html)
    return _CLASS_ATTR_PATTERN.sub(_strip_internal_classes, html)


def render_clean_html(text: str, config: RenderConfig | None = None) -> str:
    """Render Markdown as HTML suitable for export.

    The document is rendered without an active line, so every line is
    styled, and overlay-only markup is stripped from the result.

    Args:
        text: Raw markdown document.
        config: Rendering configuration; defaults to `RenderConfig()`.

    Returns:
        str: HTML without syntax markers or internal classes.

    Raises:
        ConfigError: If `config` fails validation.

    Examples:
        render_clean_html("# Title")  # "<div><h1>Title</h1></div>"
    """
    return strip_overlay_markup(parse(text, show_active_line_raw=False, config=config))
