"""Interactive command-line front end."""

from .app import app
from .render import Renderer
from .repl import run_repl

__all__ = [
    "Renderer",
    "app",
    "run_repl",
]
