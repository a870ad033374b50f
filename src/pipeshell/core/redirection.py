"""Redirection operator extraction."""

from __future__ import annotations

from dataclasses import dataclass, replace

STDOUT_TRUNCATE = (">", "1>")
STDOUT_APPEND = (">>", "1>>")
STDERR_TRUNCATE = ("2>",)
STDERR_APPEND = ("2>>",)
REDIRECT_OPERATORS = frozenset(STDOUT_TRUNCATE + STDOUT_APPEND + STDERR_TRUNCATE + STDERR_APPEND)


@dataclass(frozen=True)
class RedirectionSpec:
    """Where the terminal stage of a pipeline writes stdout and stderr."""

    stdout_target: str | None = None
    stdout_append: bool = False
    stderr_target: str | None = None
    stderr_append: bool = False

    @property
    def is_empty(self) -> bool:
        return self.stdout_target is None and self.stderr_target is None

    def merge(self, later: RedirectionSpec) -> RedirectionSpec:
        """Overlay ``later`` on this spec, stream by stream."""
        merged = self
        if later.stdout_target is not None:
            merged = replace(merged, stdout_target=later.stdout_target, stdout_append=later.stdout_append)
        if later.stderr_target is not None:
            merged = replace(merged, stderr_target=later.stderr_target, stderr_append=later.stderr_append)
        return merged


def extract_redirections(tokens: list[str]) -> tuple[list[str], RedirectionSpec]:
    """Remove redirection operators and their targets from ``tokens``.

    The last operator for a stream wins. An operator without a following
    token is kept as a plain argument.
    """

    args: list[str] = []
    spec = RedirectionSpec()
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token not in REDIRECT_OPERATORS or index + 1 >= len(tokens):
            args.append(token)
            index += 1
            continue

        target = tokens[index + 1]
        if token in STDOUT_TRUNCATE:
            spec = replace(spec, stdout_target=target, stdout_append=False)
        elif token in STDOUT_APPEND:
            spec = replace(spec, stdout_target=target, stdout_append=True)
        elif token in STDERR_TRUNCATE:
            spec = replace(spec, stderr_target=target, stderr_append=False)
        else:
            spec = replace(spec, stderr_target=target, stderr_append=True)
        index += 2

    return args, spec
