"""Configuration loading and management."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

from .constants import (
    BACKENDS,
    DEFAULT_ANCHOR_PREFIX,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MAX_LINE_LENGTH,
)

# Anchor names are written into a style attribute as CSS dashed idents
_ANCHOR_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class RenderConfig:
    """Configuration for rendering Markdown overlays.

    Attributes:
        show_active_line_raw: Echo the caret line unstyled by default.
        backend: Structural post-processor to use (``"auto"``, ``"tree"`` or
            ``"string"``).
        anchor_prefix: Prefix of the CSS anchor names stamped on links.
        max_line_length: Lines longer than this are echoed verbatim instead
            of being parsed.
        max_file_size: Maximum file size in bytes that the CLI will read.

    Examples:
        RenderConfig(backend="string", show_active_line_raw=True)
    """

    # Rendering
    show_active_line_raw: bool = False
    backend: str = "auto"
    anchor_prefix: str = DEFAULT_ANCHOR_PREFIX

    # Limits
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`backend` must be one of: auto, tree, string")
    """


def load_config(search_path: Path) -> RenderConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.md-overlay]`` table from `pyproject.toml` and the
    ``[md-overlay]`` or ``[tool.md-overlay]`` table from `.md-overlay.toml`
    when present. Returns default values when no configuration is found. TOML
    files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        RenderConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "md-overlay")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".md-overlay.toml",
            table_paths=[("md-overlay",), ("tool", "md-overlay")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return RenderConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> RenderConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> RenderConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    # TOML keys use dashes, dataclass fields use underscores
    settings = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        return RenderConfig(**settings)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def validate_config(config: RenderConfig) -> None:
    """Validate a `RenderConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the backend name is unknown, the anchor prefix is
            empty or holds characters other than letters, digits, `-` and
            `_`, a flag is not a boolean, or numeric limits are not positive
            integers.

    Examples:
        validate_config(RenderConfig(backend="tree"))
    """
    if config.backend not in BACKENDS:
        raise ConfigError(f"`backend` must be one of: {', '.join(BACKENDS)}")

    if not isinstance(config.anchor_prefix, str) or not config.anchor_prefix:
        raise ConfigError("`anchor_prefix` must be a non-empty string")
    if any(char.isspace() for char in config.anchor_prefix):
        raise ConfigError("`anchor_prefix` must not contain whitespace")
    if not _ANCHOR_PREFIX_PATTERN.match(config.anchor_prefix):
        raise ConfigError("`anchor_prefix` may only contain letters, digits, `-` and `_`")

    if not isinstance(config.show_active_line_raw, bool):
        raise ConfigError("`show_active_line_raw` must be a boolean")

    limits = {
        "max_line_length": config.max_line_length,
        "max_file_size": config.max_file_size,
    }
    _ensure_integers(limits)
    _ensure_positive(limits)


def apply_overrides(config: RenderConfig, **overrides: object) -> RenderConfig:
    """Apply override values to a `RenderConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        RenderConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `RenderConfig`.

    Examples:
        updated = apply_overrides(config, backend="string")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> RenderConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        RenderConfig: Validated configuration ready for rendering.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), backend="string")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
