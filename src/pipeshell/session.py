"""Shell session: one history log, one working directory, one line at a time."""

from __future__ import annotations

import asyncio

from loguru import logger

from pipeshell.commands import BuiltinRegistry, create_builtin_registry
from pipeshell.config import Settings, get_settings
from pipeshell.core.executor import Executor, write_terminal
from pipeshell.core.pipeline import parse_line
from pipeshell.core.resolver import CommandResolver
from pipeshell.errors import CommandNotFoundError, HistoryError, ParseError
from pipeshell.history import HistoryLog

NOT_FOUND_STATUS = 127
PARSE_ERROR_STATUS = 2


class ShellSession:
    """Owns the state shared by every command line of one shell run."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        registry: BuiltinRegistry | None = None,
        history: HistoryLog | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry or create_builtin_registry()
        self.resolver = CommandResolver(self.registry)
        self.history = history if history is not None else HistoryLog()
        self.executor = Executor(self)
        self.last_status = 0
        self._exit_status: int | None = None

    @property
    def exit_requested(self) -> bool:
        return self._exit_status is not None

    @property
    def exit_status(self) -> int:
        return self._exit_status if self._exit_status is not None else self.last_status

    def request_exit(self, status: int = 0) -> None:
        self._exit_status = status

    def load_history(self) -> None:
        """Load the configured history file, if there is one."""
        path = self.settings.history_file
        if path is None or not path.exists():
            return
        try:
            self.history.load_from(path, mark_persisted=True)
        except HistoryError as exc:
            self._report(str(exc))

    def flush_history(self) -> None:
        """Overwrite the configured history file with the whole log."""
        path = self.settings.history_file
        if path is None:
            return
        try:
            self.history.save_all_to(path)
        except HistoryError as exc:
            self._report(str(exc))

    def handle_line(self, line: str, *, record: bool = True) -> int:
        """Run one command line and return the status of its last stage.

        The line joins the history log once it has run, so ``history`` never
        lists the line that invoked it.
        """
        stripped = line.strip()
        if not stripped:
            return self.last_status
        try:
            return self._run_line(stripped)
        finally:
            if record:
                self.history.append(stripped)

    def _run_line(self, line: str) -> int:
        try:
            parsed = parse_line(line)
            stages = self.resolver.build_stages(parsed.commands)
        except CommandNotFoundError as exc:
            write_terminal(f"{exc}\n".encode())
            self.last_status = NOT_FOUND_STATUS
            return self.last_status
        except ParseError as exc:
            self._report(str(exc))
            self.last_status = PARSE_ERROR_STATUS
            return self.last_status

        logger.debug("line.run raw={!r} stages={}", line, [stage.name for stage in stages])
        self.last_status = asyncio.run(self.executor.run(stages, parsed.redirection))
        return self.last_status

    def finish(self) -> int:
        """End the session, persisting history; return the exit status."""
        self.flush_history()
        return self.exit_status

    @staticmethod
    def _report(message: str) -> None:
        write_terminal(f"{message}\n".encode(), error=True)
