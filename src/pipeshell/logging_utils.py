"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Literal

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

LogProfile = Literal["default", "interactive"]

_PROFILE_FORMATS: dict[LogProfile, str] = {
    "interactive": "{message}",
    "default": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}",
}
_CONFIGURED: tuple[LogProfile, str] | None = None


def _build_interactive_handler() -> Handler:
    return RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Configure process-level logging once per profile and level."""

    global _CONFIGURED
    level = (level or os.getenv("PIPESHELL_LOG_LEVEL", "WARNING")).upper()
    if _CONFIGURED == (profile, level):
        return

    logger.remove()
    sink: Handler | object = _build_interactive_handler() if profile == "interactive" else sys.stderr
    logger.add(
        sink,  # type: ignore[arg-type]
        level=level,
        format=_PROFILE_FORMATS[profile],
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED = (profile, level)
