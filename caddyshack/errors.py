"""Exceptions raised while parsing Caddyfile text."""
from __future__ import annotations


class CaddyfileParseError(RuntimeError):
    pass


class CaddyfileStructureError(CaddyfileParseError):
    """Raised for an unmatched or unexpected brace."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
