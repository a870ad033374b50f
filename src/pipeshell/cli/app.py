"""Command-line entry point for pipeshell."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from pipeshell.config import get_settings
from pipeshell.errors import ConfigurationError
from pipeshell.logging_utils import configure_logging
from pipeshell.session import ShellSession

from .render import create_cli_renderer
from .repl import run_repl

app = typer.Typer(
    name="pipeshell",
    help="An interactive shell with pipelines, redirection and history.",
    add_completion=False,
)


@app.command()
def main(
    command: Optional[str] = typer.Option(None, "--command", "-c", help="Run one command line and exit"),
    histfile: Optional[Path] = typer.Option(None, "--histfile", help="History file (defaults to $HISTFILE)"),  # noqa: B008
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Prompt string"),
) -> None:
    """Start the shell, or run a single command line with --command."""
    try:
        settings = get_settings(history_file=histfile, prompt=prompt)
    except ConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(2) from exc

    session = ShellSession(settings)
    if command is not None:
        configure_logging(level=settings.log_level)
        status = session.handle_line(command, record=False)
        raise typer.Exit(status)

    configure_logging(profile="interactive", level=settings.log_level)
    renderer = create_cli_renderer(session)
    status = run_repl(session, renderer)
    raise typer.Exit(status)


if __name__ == "__main__":
    app()
