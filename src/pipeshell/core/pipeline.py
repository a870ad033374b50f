"""Pipeline splitting and line parsing."""

from __future__ import annotations

from pipeshell.core.redirection import RedirectionSpec, extract_redirections
from pipeshell.core.tokenizer import BACKSLASH, DOUBLE_QUOTE, SINGLE_QUOTE, tokenize
from pipeshell.core.types import ParsedCommand, ParsedLine
from pipeshell.errors import ParseError

PIPE = "|"


def split_pipeline(line: str) -> list[str]:
    """Split ``line`` on pipe characters that are not quoted or escaped."""

    segments: list[str] = []
    start = 0
    quote: str | None = None
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if quote == SINGLE_QUOTE:
            if char == SINGLE_QUOTE:
                quote = None
        elif quote == DOUBLE_QUOTE:
            if char == BACKSLASH:
                index += 1
            elif char == DOUBLE_QUOTE:
                quote = None
        elif char == BACKSLASH:
            index += 1
        elif char in (SINGLE_QUOTE, DOUBLE_QUOTE):
            quote = char
        elif char == PIPE:
            segments.append(line[start:index])
            start = index + 1
        index += 1

    segments.append(line[start:])
    return segments


def parse_line(line: str) -> ParsedLine:
    """Parse one input line into its pipeline commands and terminal redirection.

    Redirections in any segment apply to the last stage; later operators win.
    """

    stripped = line.strip()
    if not stripped:
        return ParsedLine(raw=stripped, commands=[])

    segments = split_pipeline(stripped)
    commands: list[ParsedCommand] = []
    redirection = RedirectionSpec()
    for segment in segments:
        args, spec = extract_redirections(tokenize(segment))
        if not args:
            if len(segments) == 1 and not spec.is_empty:
                raise ParseError("shell: syntax error: missing command")
            raise ParseError(f"shell: syntax error near unexpected token '{PIPE}'")
        commands.append(ParsedCommand(name=args[0], arguments=args[1:]))
        redirection = redirection.merge(spec)

    return ParsedLine(raw=stripped, commands=commands, redirection=redirection)
