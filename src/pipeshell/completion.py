"""Command-name completion and history recall for the prompt."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import History

from pipeshell.commands.registry import BuiltinRegistry
from pipeshell.history import HistoryLog


def candidates(prefix: str, registry: BuiltinRegistry, search_path: str | None = None) -> set[str]:
    """Builtin names and executables on the search path starting with ``prefix``."""

    matches = {name for name in registry.names() if name.startswith(prefix)}
    if search_path is None:
        search_path = os.environ.get("PATH", "")
    for directory in search_path.split(os.pathsep):
        if not directory or not os.path.isdir(directory):
            continue
        try:
            entries = os.listdir(directory)
        except OSError:
            continue
        for entry in entries:
            if not entry.startswith(prefix):
                continue
            if os.access(os.path.join(directory, entry), os.X_OK):
                matches.add(entry)
    return matches


class CommandCompleter(Completer):
    """Complete the first word of the line to a command name."""

    def __init__(self, registry: BuiltinRegistry) -> None:
        self._registry = registry

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterator[Completion]:
        before = document.text_before_cursor
        if any(char.isspace() for char in before):
            return
        matches = sorted(candidates(before, self._registry))
        suffix = " " if len(matches) == 1 else ""
        for match in matches:
            yield Completion(match + suffix, start_position=-len(before), display=match)


class LogHistory(History):
    """Expose a ``HistoryLog`` to prompt_toolkit for up-arrow recall.

    The session appends to the log itself; this class never writes to it.
    """

    def __init__(self, log: HistoryLog) -> None:
        super().__init__()
        self._log = log

    def load_history_strings(self) -> Iterable[str]:
        return list(reversed(self._log.entries()))

    def store_string(self, string: str) -> None:
        return None
