"""Split a raw command line into words using shell quoting rules."""

from __future__ import annotations

SINGLE_QUOTE = "'"
DOUBLE_QUOTE = '"'
BACKSLASH = "\\"
DOUBLE_QUOTE_ESCAPABLE = (DOUBLE_QUOTE, BACKSLASH)


def tokenize(line: str) -> list[str]:
    """Split ``line`` into tokens.

    Unquoted whitespace separates tokens. A backslash outside quotes takes the
    next character verbatim. Single quotes keep everything literal. Inside
    double quotes a backslash only escapes ``"`` and ``\\``. Quoted and
    unquoted text that touch each other form one token. An unterminated quote
    is closed at end of input; malformed quoting never raises.
    """

    tokens: list[str] = []
    current: list[str] = []
    # A quoted empty string still produces a token.
    has_token = False
    quote: str | None = None
    index = 0
    length = len(line)

    while index < length:
        char = line[index]

        if quote == SINGLE_QUOTE:
            if char == SINGLE_QUOTE:
                quote = None
            else:
                current.append(char)
            index += 1
            continue

        if quote == DOUBLE_QUOTE:
            if char == BACKSLASH and index + 1 < length and line[index + 1] in DOUBLE_QUOTE_ESCAPABLE:
                current.append(line[index + 1])
                index += 2
                continue
            if char == DOUBLE_QUOTE:
                quote = None
            else:
                current.append(char)
            index += 1
            continue

        if char == BACKSLASH:
            if index + 1 < length:
                current.append(line[index + 1])
                has_token = True
            index += 2
            continue

        if char in (SINGLE_QUOTE, DOUBLE_QUOTE):
            quote = char
            has_token = True
            index += 1
            continue

        if char.isspace():
            if has_token or current:
                tokens.append("".join(current))
                current = []
                has_token = False
            index += 1
            continue

        current.append(char)
        has_token = True
        index += 1

    if has_token or current:
        tokens.append("".join(current))
    return tokens
