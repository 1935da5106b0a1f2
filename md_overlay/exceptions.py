"""Package-specific exception types."""

from __future__ import annotations


class RenderError(ValueError):
    """Base class for rendering-related errors.

    Markdown input never raises this; it signals a problem with how the
    renderer was asked to run.
    """


class BackendUnavailableError(RenderError):
    """Raised when the tree backend is requested but cannot build a tree.

    Args:
        reason: Description of why the fragment could not be parsed.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Tree backend unavailable: {self.reason}")


class RenderFileError(Exception):
    """Raised when a Markdown file cannot be read or rewritten."""
