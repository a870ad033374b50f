"""Builtin command registry."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from loguru import logger

if TYPE_CHECKING:
    from pipeshell.session import ShellSession


@dataclass
class BuiltinContext:
    """Everything a builtin sees while it runs."""

    args: list[str]
    stdout: TextIO
    stderr: TextIO
    session: ShellSession
    in_pipeline: bool = False

    def write(self, text: str) -> None:
        self.stdout.write(text)

    def error(self, message: str) -> None:
        self.stderr.write(message + "\n")


BuiltinHandler = Callable[[BuiltinContext], int]


@dataclass(frozen=True)
class BuiltinDescriptor:
    """Builtin name and runtime handle."""

    name: str
    handler: BuiltinHandler


class BuiltinRegistry:
    """Registry of commands the shell implements in-process."""

    def __init__(self) -> None:
        self._builtins: dict[str, BuiltinDescriptor] = {}

    def register(self, *, name: str) -> Callable[[BuiltinHandler], BuiltinHandler]:
        def decorator(handler: BuiltinHandler) -> BuiltinHandler:
            self._builtins[name] = BuiltinDescriptor(name=name, handler=self._wrap_handler(name, handler))
            return handler

        return decorator

    def get(self, name: str) -> BuiltinDescriptor | None:
        return self._builtins.get(name)

    def names(self) -> list[str]:
        return sorted(self._builtins)

    @staticmethod
    def _wrap_handler(name: str, handler: BuiltinHandler) -> BuiltinHandler:
        def _handler(context: BuiltinContext) -> int:
            logger.debug("builtin.start name={} args={}", name, context.args)
            start = time.monotonic()
            try:
                return handler(context)
            except Exception:
                logger.exception("builtin.error name={}", name)
                raise
            finally:
                duration = time.monotonic() - start
                logger.debug("builtin.end name={} duration={:.3f}ms", name, duration * 1000)

        return _handler
