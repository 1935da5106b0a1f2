"""
md-overlay: character-aligned Markdown rendering for editor overlays.

Every rendered character stays in the same column and row as its source
character, so the HTML can sit exactly underneath a transparent textarea.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    md-overlay render notes.md --active-line 2 --show-raw

Library Usage:
    from md_overlay import parse, get_list_context, renumber_lists

    html = parse(text, active_line=2, show_active_line_raw=True)
    context = get_list_context(text, cursor_offset)
    text = renumber_lists(text)
"""

from .config import ConfigError, RenderConfig
from .escaping import escape_html, preserve_indentation, sanitize_url
from .exceptions import BackendUnavailableError, RenderError, RenderFileError
from .export import render_clean_html
from .inline import parse_inline_elements
from .lists import (
    create_new_list_item,
    get_list_context,
    line_index_at,
    plan_list_continuation,
    renumber_lists,
    renumber_lists_at_cursor,
)
from .models import ListAction, ListContext, ListEdit, ListType
from .parser import parse
from .postprocess import group_blocks

__version__ = "0.1.0"

__all__ = [
    # Rendering
    "parse",
    "render_clean_html",
    "parse_inline_elements",
    "group_blocks",
    # Escaping
    "escape_html",
    "preserve_indentation",
    "sanitize_url",
    # Lists
    "get_list_context",
    "create_new_list_item",
    "plan_list_continuation",
    "renumber_lists",
    "renumber_lists_at_cursor",
    "line_index_at",
    # Data models
    "ListAction",
    "ListContext",
    "ListEdit",
    "ListType",
    "RenderConfig",
    # Exceptions
    "BackendUnavailableError",
    "ConfigError",
    "RenderError",
    "RenderFileError",
    # Version
    "__version__",
]
