"""Read-eval-print loop for the interactive shell."""

from __future__ import annotations

from loguru import logger

from pipeshell.session import ShellSession

from .render import Renderer


def run_repl(session: ShellSession, renderer: Renderer) -> int:
    """Run lines until ``exit`` or end of input; return the session exit status."""
    session.load_history()
    _run_input_loop(session, renderer)
    return session.finish()


def _run_input_loop(session: ShellSession, renderer: Renderer) -> None:
    while not session.exit_requested:
        try:
            line = renderer.get_user_input()
        except KeyboardInterrupt:
            continue
        except EOFError:
            logger.debug("repl.eof")
            break

        try:
            session.handle_line(line)
        except KeyboardInterrupt:
            continue
        except Exception as exc:
            # One failing line never ends the session.
            logger.exception("repl.line_error")
            renderer.error(str(exc))
