"""Split Caddyfile text into tokens that remember their source line."""
from __future__ import annotations

from dataclasses import dataclass

OPEN_BRACE = "{"
CLOSE_BRACE = "}"


@dataclass(slots=True, frozen=True)
class Token:
    value: str
    line: int
    offset: int = 0
    unterminated: bool = False

    @property
    def is_open(self) -> bool:
        return self.value == OPEN_BRACE

    @property
    def is_close(self) -> bool:
        return self.value == CLOSE_BRACE


def tokenize(text: str) -> list[Token]:
    """Return the token stream for ``text``.

    Comments (a ``#`` at the start of a token, through end of line) are
    dropped. Double-quoted text is kept as a single token, quotes included.
    Braces are isolated into their own tokens unless they delimit a
    placeholder such as ``{remote_host}``. ``line`` is the 1-based logical
    line a token starts on; newlines inside quotes do not advance it, so every
    token of one statement shares the same line number. ``offset`` is the
    index of the token's first character in ``text``.

    An unterminated quote swallows the rest of the input instead of failing;
    that last token has ``unterminated`` set.
    """
    tokens: list[Token] = []
    length = len(text)
    line = 1
    pos = 0
    while pos < length:
        ch = text[pos]
        if ch == "\n":
            line += 1
            pos += 1
        elif ch.isspace():
            pos += 1
        elif ch == "#":
            newline = text.find("\n", pos)
            pos = length if newline == -1 else newline
        elif ch == CLOSE_BRACE or (ch == OPEN_BRACE and _placeholder_end(text, pos) == -1):
            tokens.append(Token(ch, line, pos))
            pos += 1
        else:
            start = pos
            pos, value, unterminated = _read_word(text, pos)
            tokens.append(Token(value, line, start, unterminated))
    return tokens


def _read_word(text: str, pos: int) -> tuple[int, str, bool]:
    length = len(text)
    chunks: list[str] = []
    while pos < length:
        ch = text[pos]
        if ch.isspace() or ch == CLOSE_BRACE:
            break
        if ch == '"':
            end = _quote_end(text, pos)
            if end == -1:
                chunks.append(text[pos:])
                return length, "".join(chunks), True
            chunks.append(text[pos:end])
            pos = end
        elif ch == OPEN_BRACE:
            end = _placeholder_end(text, pos)
            if end == -1:
                break
            chunks.append(text[pos : end + 1])
            pos = end + 1
        else:
            chunks.append(ch)
            pos += 1
    return pos, "".join(chunks), False


def _quote_end(text: str, start: int) -> int:
    """Index just past the quote closing the one at ``start``, or -1 if it never closes."""
    length = len(text)
    pos = start + 1
    while pos < length:
        ch = text[pos]
        if ch == "\\" and pos + 1 < length:
            pos += 2
            continue
        if ch == '"':
            return pos + 1
        pos += 1
    return -1


def _placeholder_end(text: str, start: int) -> int:
    """Index of the ``}`` closing a placeholder opened at ``start``, or -1."""
    length = len(text)
    pos = start + 1
    while pos < length:
        ch = text[pos]
        if ch == CLOSE_BRACE:
            return pos if pos > start + 1 else -1
        if ch.isspace() or ch in '{"':
            return -1
        pos += 1
    return -1
