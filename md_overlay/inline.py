"""Inline markdown rendering: sanctuaries and emphasis.

Code spans, images and links are swapped for opaque placeholder tokens
before emphasis rules run, so ``**`` inside `` `code` `` or a URL can never
turn into ``<strong>``. The placeholders are then expanded back into HTML.

All functions here operate on text that has already been HTML-escaped.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from .constants import (
    BOLD_ASTERISK_PATTERN,
    BOLD_ITALIC_ASTERISK_PATTERN,
    BOLD_ITALIC_UNDERSCORE_PATTERN,
    BOLD_UNDERSCORE_PATTERN,
    IMAGE_CLASS,
    IMAGE_PATTERN,
    ITALIC_ASTERISK_PATTERN,
    ITALIC_UNDERSCORE_PATTERN,
    LINK_PATTERN,
    PLACEHOLDER_CLOSE,
    PLACEHOLDER_OPEN,
    PLACEHOLDER_PATTERN,
    STRIKE_DOUBLE_PATTERN,
    STRIKE_SINGLE_PATTERN,
    SYNTAX_MARKER_CLASS,
    URL_PART_CLASS,
)
from .escaping import sanitize_url
from .models import RenderContext, Sanctuary, SanctuaryKind


def is_escaped(text: str, pos: int) -> bool:
    """Determine whether a character is escaped by preceding backslashes.

    Counts consecutive backslashes immediately before `pos`; an odd count marks
    the character as escaped.

    Examples:
        is_escaped("\\\\`", 2)  # False, two backslashes
        is_escaped("\\`", 1)  # True, one backslash
    """
    backslash_count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        backslash_count += 1
        i -= 1
    return backslash_count % 2 == 1


def find_inline_code_spans(text: str) -> list[tuple[int, int, int]]:
    """Locate inline code spans delimited by equal-length backtick runs.

    An opening run of N backticks is closed by the next unescaped run of
    exactly N backticks; runs of any other length are part of the content.
    An opening run that is never closed is literal text and scanning resumes
    right after it.

    Args:
        text: The text to scan for inline code spans.

    Returns:
        list[tuple[int, int, int]]: Start (inclusive), end (exclusive), and
            delimiter length of each span, in document order.

    Examples:
        find_inline_code_spans("`code`")  # [(0, 6, 1)]
        find_inline_code_spans("``a`b`` text")  # [(0, 7, 2)]
    """
    spans = []
    length = len(text)
    i = 0

    while i < length:
        if text[i] != "`" or is_escaped(text, i):
            i += 1
            continue

        start = i
        while i < length and text[i] == "`":
            i += 1
        tick_count = i - start

        j = i
        closed_at = None
        while j < length:
            if text[j] == "`" and not is_escaped(text, j):
                run_start = j
                while j < length and text[j] == "`":
                    j += 1
                if j - run_start == tick_count:
                    closed_at = j
                    break
            else:
                j += 1

        if closed_at is None:
            # Unmatched opener stays literal
            continue

        spans.append((start, closed_at, tick_count))
        i = closed_at

    return spans


def _placeholder(counter: int) -> str:
    return f"{PLACEHOLDER_OPEN}{counter}{PLACEHOLDER_CLOSE}"


def _url_regions(text: str) -> list[tuple[int, int]]:
    return [(match.start(2), match.end(2)) for match in LINK_PATTERN.finditer(text)]


def protect_sanctuaries(text: str) -> tuple[str, dict[str, Sanctuary]]:
    """Swap code spans, images and links for placeholder tokens.

    Code spans whose whole extent lies inside a link URL are left alone, so
    backticks in a URL are never read as code. Code is protected first, then
    images, then links; link text may therefore contain code placeholders.

    Args:
        text: Escaped line content.

    Returns:
        tuple[str, dict[str, Sanctuary]]: The protected text and the records
            keyed by placeholder token.

    Examples:
        protected, sanctuaries = protect_sanctuaries("see `**x**`")
    """
    sanctuaries: dict[str, Sanctuary] = {}
    counter = 0

    regions = _url_regions(text)
    code_spans = [
        span
        for span in find_inline_code_spans(text)
        if not any(start <= span[0] and span[1] <= end for start, end in regions)
    ]

    protected = text
    for start, end, ticks in reversed(code_spans):
        placeholder = _placeholder(counter)
        counter += 1
        original = text[start:end]
        sanctuaries[placeholder] = Sanctuary(
            kind=SanctuaryKind.CODE,
            original=original,
            fields={
                "open": original[:ticks],
                "content": original[ticks:-ticks],
                "close": original[-ticks:],
            },
        )
        protected = protected[:start] + placeholder + protected[end:]

    def protect_image(match: re.Match[str]) -> str:
        nonlocal counter
        placeholder = _placeholder(counter)
        counter += 1
        sanctuaries[placeholder] = Sanctuary(
            kind=SanctuaryKind.IMAGE,
            original=match.group(0),
            fields={
                "alt": match.group(1),
                "url": match.group(2),
                "title": match.group(3) or "",
            },
        )
        return placeholder

    def protect_link(match: re.Match[str]) -> str:
        nonlocal counter
        placeholder = _placeholder(counter)
        counter += 1
        sanctuaries[placeholder] = Sanctuary(
            kind=SanctuaryKind.LINK,
            original=match.group(0),
            fields={"text": match.group(1), "url": match.group(2)},
        )
        return placeholder

    protected = IMAGE_PATTERN.sub(protect_image, protected)
    protected = LINK_PATTERN.sub(protect_link, protected)

    return protected, sanctuaries


def _marker(text: str, extra_class: str = "") -> str:
    classes = f"{SYNTAX_MARKER_CLASS} {extra_class}" if extra_class else SYNTAX_MARKER_CLASS
    return f'<span class="{classes}">{text}</span>'


_EMPHASIS_TAG_PATTERN = re.compile(r"<(/?)([a-z]+)[^>]*>")


def _is_balanced(html: str) -> bool:
    """Check that every tag opened in `html` is closed inside it, in order."""
    stack = []
    for match in _EMPHASIS_TAG_PATTERN.finditer(html):
        closing, tag = match.groups()
        if not closing:
            stack.append(tag)
        elif not stack or stack.pop() != tag:
            return False
    return not stack


def _wrapper(tag: str, delimiter: str, inner_tag: str = "") -> Callable[[re.Match[str]], str]:
    opening = f"<{tag}><{inner_tag}>" if inner_tag else f"<{tag}>"
    closing = f"</{inner_tag}></{tag}>" if inner_tag else f"</{tag}>"

    def replace(match: re.Match[str]) -> str:
        content = match.group(1)
        # Delimiters that would cross an earlier element stay literal
        if not _is_balanced(content):
            return match.group(0)
        return f"{opening}{_marker(delimiter)}{content}{_marker(delimiter)}{closing}"

    return replace


def parse_strikethrough(html: str) -> str:
    """Render ``~~text~~`` and ``~text~``; runs of three or more tildes stay literal."""
    html = STRIKE_DOUBLE_PATTERN.sub(_wrapper("del", "~~"), html)
    return STRIKE_SINGLE_PATTERN.sub(_wrapper("del", "~"), html)


def parse_bold_italic(html: str) -> str:
    """Render ``***text***`` and ``___text___`` as ``<strong><em>``."""
    html = BOLD_ITALIC_ASTERISK_PATTERN.sub(_wrapper("strong", "***", "em"), html)
    return BOLD_ITALIC_UNDERSCORE_PATTERN.sub(_wrapper("strong", "___", "em"), html)


def parse_bold(html: str) -> str:
    html = BOLD_ASTERISK_PATTERN.sub(_wrapper("strong", "**"), html)
    return BOLD_UNDERSCORE_PATTERN.sub(_wrapper("strong", "__"), html)


def parse_italic(html: str) -> str:
    """Render ``*text*`` and ``_text_``.

    Single asterisks must not touch other asterisks. Underscores only count
    at whitespace or line boundaries, so ``snake_case_words`` stays literal.
    """
    html = ITALIC_ASTERISK_PATTERN.sub(_wrapper("em", "*"), html)
    return ITALIC_UNDERSCORE_PATTERN.sub(_wrapper("em", "_"), html)


def apply_emphasis(html: str) -> str:
    """Run the emphasis passes: strikethrough, bold italic, bold, then italic.

    A later pass never wraps a span that would cross an element produced by
    an earlier one; such delimiters are left as literal text.
    """
    # Order matters: *** and ** must not be read as italic markers
    html = parse_strikethrough(html)
    html = parse_bold_italic(html)
    html = parse_bold(html)
    return parse_italic(html)


def _plain_text(text: str, sanctuaries: dict[str, Sanctuary]) -> str:
    """Expand placeholders back to their source text (for attribute values)."""

    def original(match: re.Match[str]) -> str:
        sanctuary = sanctuaries.get(match.group(0))
        return sanctuary.original if sanctuary is not None else ""

    return PLACEHOLDER_PATTERN.sub(original, text)


def _attribute(value: str) -> str:
    # XML parsers fold literal tabs in attribute values into spaces
    return value.replace("\t", "&#9;")


def _render_code(sanctuary: Sanctuary) -> str:
    fields = sanctuary.fields
    return f"<code>{_marker(fields['open'])}{fields['content']}{_marker(fields['close'])}</code>"


def _render_image(sanctuary: Sanctuary, sanctuaries: dict[str, Sanctuary]) -> str:
    fields = sanctuary.fields
    src = sanitize_url(_plain_text(fields["url"], sanctuaries))
    alt = _plain_text(fields["alt"], sanctuaries)
    title = _plain_text(fields["title"], sanctuaries)
    title = f' title="{_attribute(title)}"' if title else ""
    return f'<img src="{_attribute(src)}" alt="{_attribute(alt)}"{title} class="{IMAGE_CLASS}" />'


def _render_link(
    sanctuary: Sanctuary, sanctuaries: dict[str, Sanctuary], ctx: RenderContext
) -> str:
    url = _plain_text(sanctuary.fields["url"], sanctuaries)
    # Emphasis runs while nested code is still a placeholder
    text = apply_emphasis(sanctuary.fields["text"])
    text = restore_sanctuaries(text, sanctuaries, ctx)
    anchor = ctx.next_anchor_name()
    return (
        f'<a href="{_attribute(sanitize_url(url))}" style="anchor-name: {anchor}">'
        f"{_marker('[')}{text}{_marker(f']({url})', URL_PART_CLASS)}</a>"
    )


def restore_sanctuaries(html: str, sanctuaries: dict[str, Sanctuary], ctx: RenderContext) -> str:
    """Expand placeholder tokens into their final HTML.

    Placeholders are processed in order of first occurrence in `html`, which
    keeps link anchor indices in reading order. Placeholders absent from
    `html` are nested inside a link and are expanded with that link.

    Args:
        html: Text containing placeholder tokens.
        sanctuaries: Records produced by `protect_sanctuaries`.
        ctx: Per-parse state supplying link anchor names.

    Returns:
        str: HTML with every placeholder replaced.
    """
    present = sorted(
        (html.find(placeholder), placeholder) for placeholder in sanctuaries if placeholder in html
    )

    for _, placeholder in present:
        sanctuary = sanctuaries[placeholder]
        if sanctuary.kind is SanctuaryKind.CODE:
            replacement = _render_code(sanctuary)
        elif sanctuary.kind is SanctuaryKind.IMAGE:
            replacement = _render_image(sanctuary, sanctuaries)
        else:
            replacement = _render_link(sanctuary, sanctuaries, ctx)
        html = html.replace(placeholder, replacement, 1)

    return html


def parse_inline_elements(text: str, ctx: RenderContext | None = None) -> str:
    """Render all inline markdown in an escaped line fragment.

    Args:
        text: Escaped text.
        ctx: Per-parse state; a fresh context is used when omitted.

    Returns:
        str: HTML with code, images, links and emphasis rendered.

    Examples:
        parse_inline_elements("**bold** and `code`")
    """
    ctx = ctx or RenderContext()
    protected, sanctuaries = protect_sanctuaries(text)
    html = apply_emphasis(protected)
    return restore_sanctuaries(html, sanctuaries, ctx)
