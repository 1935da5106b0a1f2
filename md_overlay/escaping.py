"""HTML escaping, indentation preservation, and URL sanitization."""

from __future__ import annotations

import html

from .constants import BLOCKED_URL, NBSP, RELATIVE_URL_PREFIXES, SAFE_URL_PREFIXES


def escape_html(text: str) -> str:
    """Escape ``& < > " '`` so raw text can be embedded in markup.

    Examples:
        escape_html("a < b")  # "a &lt; b"
    """
    return html.escape(text, quote=True)


def leading_whitespace(line: str) -> str:
    """Return the run of spaces and tabs at the start of `line`."""
    return line[: len(line) - len(line.lstrip(" \t"))]


def preserve_indentation(html_line: str, original_line: str) -> str:
    """Replace leading spaces with ``&nbsp;`` entities.

    The leading whitespace run is measured on the original (pre-escape)
    line; escaping never touches whitespace, so the same run prefixes
    `html_line`. Each space becomes one entity, tabs are kept as-is.

    Args:
        html_line: Escaped version of `original_line`.
        original_line: Raw source line.

    Returns:
        str: `html_line` with its indentation made non-collapsible.

    Examples:
        preserve_indentation("  - item", "  - item")  # "&nbsp;&nbsp;- item"
    """
    leading = leading_whitespace(original_line)
    if not leading:
        return html_line
    return leading.replace(" ", NBSP) + html_line[len(leading) :]


def sanitize_url(url: str) -> str:
    """Allow-list URL schemes for ``href`` and ``src`` attributes.

    Absolute URLs must use http, https, mailto, ftp or ftps. Relative
    URLs (starting with ``/``, ``#``, ``?`` or ``.``, or containing neither
    ``:`` nor ``//``) pass unchanged. Anything else is replaced with ``#``.

    Args:
        url: URL text as it appears in the markdown source.

    Returns:
        str: `url` unchanged when allowed, otherwise ``"#"``.

    Examples:
        sanitize_url("https://example.com")  # "https://example.com"
        sanitize_url("javascript:alert(1)")  # "#"
    """
    trimmed = url.strip()
    lowered = trimmed.lower()

    if lowered.startswith(SAFE_URL_PREFIXES):
        return url

    if trimmed.startswith(RELATIVE_URL_PREFIXES):
        return url
    if ":" not in trimmed and "//" not in trimmed:
        return url

    return BLOCKED_URL
