"""Command name resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass

from loguru import logger

from pipeshell.commands.registry import BuiltinHandler, BuiltinRegistry
from pipeshell.core.types import ParsedCommand, PipelineStage, StageKind
from pipeshell.errors import CommandNotFoundError


@dataclass(frozen=True)
class Resolution:
    """What a command name refers to."""

    name: str
    kind: StageKind | None
    handler: BuiltinHandler | None = None
    executable: str | None = None

    @property
    def found(self) -> bool:
        return self.kind is not None


def _is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def find_executable(name: str, search_path: str | None = None) -> str | None:
    """Return the first executable called ``name`` on the search path.

    The search path is read from ``PATH`` on every call. Names containing a
    path separator are checked as given.
    """

    if not name:
        return None
    if os.sep in name:
        return os.path.abspath(name) if _is_executable_file(name) else None

    if search_path is None:
        search_path = os.environ.get("PATH", "")
    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        candidate = os.path.join(directory, name)
        if _is_executable_file(candidate):
            return candidate
    return None


class CommandResolver:
    """Classify command names as builtins or external executables."""

    def __init__(self, registry: BuiltinRegistry) -> None:
        self._registry = registry

    def resolve(self, name: str) -> Resolution:
        descriptor = self._registry.get(name)
        if descriptor is not None:
            return Resolution(name=name, kind=StageKind.BUILTIN, handler=descriptor.handler)

        executable = find_executable(name)
        if executable is None:
            logger.debug("resolve.miss name={}", name)
            return Resolution(name=name, kind=None)
        return Resolution(name=name, kind=StageKind.EXTERNAL, executable=executable)

    def build_stages(self, commands: list[ParsedCommand]) -> list[PipelineStage]:
        """Resolve every command and lay out the pipeline topology.

        Raises ``CommandNotFoundError`` for the first name that resolves to
        nothing; no stage is built in that case.
        """

        stages: list[PipelineStage] = []
        last = len(commands) - 1
        for position, command in enumerate(commands):
            resolution = self.resolve(command.name)
            if not resolution.found:
                raise CommandNotFoundError(command.name)
            stages.append(
                PipelineStage(
                    command=command,
                    kind=resolution.kind,  # type: ignore[arg-type]
                    position=position,
                    is_first=position == 0,
                    is_last=position == last,
                    handler=resolution.handler,
                    executable=resolution.executable,
                )
            )
        return stages
