"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from pipeshell.core.redirection import RedirectionSpec

if TYPE_CHECKING:
    from pipeshell.commands.registry import BuiltinHandler


class StageKind(str, Enum):
    BUILTIN = "builtin"
    EXTERNAL = "external"


@dataclass(frozen=True)
class ParsedCommand:
    """One pipeline segment with redirections removed."""

    name: str
    arguments: list[str] = field(default_factory=list)

    @property
    def argv(self) -> list[str]:
        return [self.name, *self.arguments]


@dataclass(frozen=True)
class ParsedLine:
    """A full input line: the commands of the pipeline and the terminal redirection."""

    raw: str
    commands: list[ParsedCommand]
    redirection: RedirectionSpec = field(default_factory=RedirectionSpec)

    @property
    def is_empty(self) -> bool:
        return not self.commands


@dataclass(frozen=True)
class PipelineStage:
    """A resolved command and its place in the pipeline.

    ``handler`` is set for builtins and ``executable`` for external commands.
    """

    command: ParsedCommand
    kind: StageKind
    position: int
    is_first: bool
    is_last: bool
    handler: BuiltinHandler | None = None
    executable: str | None = None

    @property
    def name(self) -> str:
        return self.command.name
