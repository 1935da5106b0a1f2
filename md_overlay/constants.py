"""Constants used across the md-overlay package."""

from __future__ import annotations

import re

# Entity emitted for each leading space and for blank lines
NBSP = "&nbsp;"
NBSP_CHAR = "\u00a0"

# Sanctuary placeholders are drawn from the Unicode private-use area
PLACEHOLDER_OPEN = "\ue000"
PLACEHOLDER_CLOSE = "\ue001"
PLACEHOLDER_PATTERN = re.compile(f"{PLACEHOLDER_OPEN}\\d+{PLACEHOLDER_CLOSE}")

# Raw-text patterns (applied before escaping)
CODE_FENCE_PATTERN = re.compile(r"^`{3}[^`]*$")

# Block patterns (applied to the escaped, indentation-preserved line)
HORIZONTAL_RULE_PATTERN = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
HEADER_PATTERN = re.compile(r"^(#{1,3})(\s)(.+)$")
BLOCKQUOTE_PATTERN = re.compile(r"^&gt; (.+)$")
CHECKBOX_ITEM_PATTERN = re.compile(r"^((?:&nbsp;)*)(-\s)(\[([ xX])\]\s)(.*)$")
BULLET_ITEM_PATTERN = re.compile(r"^((?:&nbsp;)*)([-*]\s)(.+)$")
NUMBERED_ITEM_PATTERN = re.compile(r"^((?:&nbsp;)*)((\d+)\.\s)(.+)$")
TABLE_ROW_PATTERN = re.compile(r"^\|.+\|$")
TABLE_SEPARATOR_PATTERN = re.compile(r"^\|\s*[-:]+\s*(?:\|\s*[-:]+\s*)*\|$")
TABLE_CELL_SPLIT_PATTERN = re.compile(r"(?<!\\)\|")

# Inline patterns
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^\s)]+)(?:\s+&quot;(.+?)&quot;)?\)")
STRIKE_DOUBLE_PATTERN = re.compile(r"(?<!~)~~(?!~)(.+?)(?<!~)~~(?!~)")
STRIKE_SINGLE_PATTERN = re.compile(r"(?<!~)~(?!~)(.+?)(?<!~)~(?!~)")
BOLD_ITALIC_ASTERISK_PATTERN = re.compile(r"(?<!\*)\*{3}(?!\*)(.+?)(?<!\*)\*{3}(?!\*)")
BOLD_ITALIC_UNDERSCORE_PATTERN = re.compile(r"(?<!\S)_{3}(?!_)(.+?)(?<!_)_{3}(?!\S)")
BOLD_ASTERISK_PATTERN = re.compile(r"\*\*(.+?)\*\*")
BOLD_UNDERSCORE_PATTERN = re.compile(r"__(.+?)__")
ITALIC_ASTERISK_PATTERN = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")
ITALIC_UNDERSCORE_PATTERN = re.compile(r"(?<!\S)_(?!_)(.+?)(?<!_)_(?!\S)")

# Raw-text list patterns used by the list-context engine
LIST_BULLET_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<marker>[-*+])\s+(?P<content>.*)$")
LIST_NUMBERED_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<number>\d+)\.\s+(?P<content>.*)$")
LIST_CHECKBOX_PATTERN = re.compile(
    r"^(?P<indent>\s*)(?P<marker>-)\s+\[(?P<state>[ xX])\]\s+(?P<content>.*)$"
)

# URL schemes allowed in href and src attributes
SAFE_URL_PREFIXES = ("http://", "https://", "mailto:", "ftp://", "ftps://")
RELATIVE_URL_PREFIXES = ("/", "#", "?", ".")
BLOCKED_URL = "#"

# Class names stamped on rendered units
SYNTAX_MARKER_CLASS = "syntax-marker"
URL_PART_CLASS = "url-part"
RAW_LINE_CLASS = "raw-line"
TABLE_ROW_CLASS = "table-row"
TABLE_SEPARATOR_CLASS = "table-separator"
CODE_FENCE_CLASS = "code-fence"
HR_MARKER_CLASS = "hr-marker"
BLOCKQUOTE_CLASS = "blockquote"
BULLET_LIST_CLASS = "bullet-list"
ORDERED_LIST_CLASS = "ordered-list"
TASK_LIST_CLASS = "task-list"
TASK_CHECKBOX_CLASS = "task-checkbox"
CODE_BLOCK_CLASS = "code-block"
TABLE_CLASS = "md-table"
IMAGE_CLASS = "md-image"

# Classes removed by the clean export
INTERNAL_CLASSES = (
    BULLET_LIST_CLASS,
    ORDERED_LIST_CLASS,
    CODE_FENCE_CLASS,
    HR_MARKER_CLASS,
    BLOCKQUOTE_CLASS,
    URL_PART_CLASS,
    RAW_LINE_CLASS,
    TASK_LIST_CLASS,
    TABLE_ROW_CLASS,
    TABLE_SEPARATOR_CLASS,
)

MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd", ".mkdn")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_LINE_LENGTH = 10_000
DEFAULT_ANCHOR_PREFIX = "--link-"
BACKENDS = ("auto", "tree", "string")
