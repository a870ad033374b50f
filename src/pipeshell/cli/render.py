"""Prompt and message rendering for the interactive shell."""

from __future__ import annotations

import sys
from typing import TextIO

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape

from pipeshell.completion import CommandCompleter, LogHistory
from pipeshell.session import ShellSession


class Renderer:
    """Reads lines for the shell and renders its own messages.

    Uses a prompt_toolkit session with completion and history recall when
    stdin is a terminal, and plain line reads otherwise.
    """

    def __init__(self, session: ShellSession, *, stdin: TextIO | None = None) -> None:
        self._session = session
        self._stdin = stdin
        self.console: Console = Console(stderr=True, highlight=False)
        self._prompt_session: PromptSession[str] | None = None

    @property
    def interactive(self) -> bool:
        stream = self._stdin or sys.stdin
        return stream.isatty()

    def get_user_input(self) -> str:
        """Read one line; raises ``EOFError`` at end of input."""
        prompt = self._session.settings.prompt
        if not self.interactive:
            return self._read_plain_line(prompt)
        if self._prompt_session is None:
            self._prompt_session = PromptSession(
                completer=CommandCompleter(self._session.registry),
                history=LogHistory(self._session.history),
                complete_while_typing=False,
            )
        return self._prompt_session.prompt(prompt)

    def _read_plain_line(self, prompt: str) -> str:
        stream = self._stdin or sys.stdin
        sys.stdout.write(prompt)
        sys.stdout.flush()
        line = stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n")

    def error(self, message: str) -> None:
        """Render an error message on stderr."""
        self.console.print(f"[bold red]shell:[/bold red] {escape(message)}")


def create_cli_renderer(session: ShellSession) -> Renderer:
    """Create and return a Renderer instance."""
    return Renderer(session)
