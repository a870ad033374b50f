"""Application-level exception types for pipeshell."""

from __future__ import annotations


class ShellError(Exception):
    """Base exception for pipeshell."""


class ConfigurationError(ShellError):
    """Raised when settings or startup validation fail."""


class ParseError(ShellError):
    """Raised when a command line cannot be turned into a pipeline."""


class CommandNotFoundError(ShellError):
    """Raised when a command name is neither a builtin nor an executable on the search path."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name}: command not found")
        self.name = name


class RedirectionError(ShellError):
    """Raised when a redirection target cannot be opened."""

    def __init__(self, path: str) -> None:
        super().__init__(f"shell: cannot open '{path}'")
        self.path = path


class HistoryError(ShellError):
    """Raised when the history file cannot be read or written."""
