"""pipeshell - a small interactive shell with pipelines, redirection and history."""

from .history import HistoryLog
from .session import ShellSession

__version__ = "0.1.0"

__all__ = ["HistoryLog", "ShellSession"]
