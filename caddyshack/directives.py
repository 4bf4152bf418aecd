"""Build nested directive trees from a token stream."""
from __future__ import annotations

from typing import Sequence

from .errors import CaddyfileStructureError
from .models import Directive
from .tokenizer import Token


def build_directives(tokens: Sequence[Token], start: int) -> tuple[list[Directive], int]:
    """Parse the body of a block whose ``{`` sits at ``tokens[start - 1]``.

    A statement is the run of tokens sharing one logical line: the first is
    the directive name, the rest are its arguments. A ``{`` closing that run
    opens a nested block which may span any number of lines. Parsing stops at
    the matching ``}``.

    Returns the directives and the index just past the closing brace.

    When the stream ends in an unterminated quoted token, every open block is
    closed at end of input and the returned index is ``len(tokens)``.

    Raises:
        CaddyfileStructureError: When a ``{`` does not follow a directive on
            its line, or when the input ends before the block is closed.
    """
    opener_line = tokens[start - 1].line if start > 0 else 1
    directives: list[Directive] = []
    pos = start
    count = len(tokens)
    while pos < count:
        token = tokens[pos]
        if token.is_close:
            return directives, pos + 1
        if token.is_open:
            raise CaddyfileStructureError("unexpected '{' without a directive", token.line)

        directive = Directive(name=token.value)
        pos += 1
        while pos < count and tokens[pos].line == token.line and not (tokens[pos].is_open or tokens[pos].is_close):
            directive.args.append(tokens[pos].value)
            pos += 1
        if pos < count and tokens[pos].is_open and tokens[pos].line == token.line:
            directive.block, pos = build_directives(tokens, pos + 1)
        directives.append(directive)

    if count and tokens[-1].unterminated:
        return directives, count
    raise CaddyfileStructureError("unclosed '{'", opener_line)


def walk(directives: Sequence[Directive]):
    """Yield ``(depth, directive)`` pairs depth-first, starting at depth 0."""
    stack = [(0, directive) for directive in reversed(directives)]
    while stack:
        depth, directive = stack.pop()
        yield depth, directive
        stack.extend((depth + 1, child) for child in reversed(directive.block))
