"""Locate and read Caddyfiles from disk."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

CADDYFILE_NAME = "Caddyfile"

SEARCH_LOCATIONS: tuple[Path, ...] = (
    Path("/etc/caddy") / CADDYFILE_NAME,
    Path("/usr/local/etc/caddy") / CADDYFILE_NAME,
    Path("/etc") / CADDYFILE_NAME,
    Path(".") / CADDYFILE_NAME,
)

PARENT_LEVELS = 5


class CaddyfileNotFoundError(FileNotFoundError):
    """No Caddyfile at (or near) the requested location."""

    def __init__(self, path: Path | None = None):
        self.path = path
        message = f"Caddyfile not found: {path}" if path else "Unable to locate a Caddyfile"
        super().__init__(message)


def read_caddyfile(path: Path) -> str:
    """Return the content of the Caddyfile at ``path``.

    Raises:
        CaddyfileNotFoundError: When the file does not exist.
        PermissionError: When the file exists but cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CaddyfileNotFoundError(path) from exc


def caddyfile_exists(path: Path) -> bool:
    return path.is_file()


def _nearby(hint: Path) -> Iterator[Path]:
    # The hint itself, a sibling named Caddyfile, a child of a directory hint,
    # then Caddyfiles in each ancestor up to PARENT_LEVELS.
    yield hint
    if hint.name and hint.name.lower() != CADDYFILE_NAME.lower():
        yield hint.with_name(CADDYFILE_NAME)
    yield hint / CADDYFILE_NAME
    for level, ancestor in enumerate(hint.parents):
        if level >= PARENT_LEVELS or ancestor == ancestor.parent:
            break
        yield ancestor / CADDYFILE_NAME


def find_caddyfile(explicit: Path | None = None) -> Path:
    """Resolve which Caddyfile to use.

    ``explicit`` may name the file, its directory, or a missing path close to
    it. When nothing turns up around it the well-known install locations are
    tried in turn.

    Raises:
        CaddyfileNotFoundError: When no Caddyfile can be located.
    """
    nearby = _nearby(explicit.expanduser()) if explicit else iter(())
    for candidate in dict.fromkeys((*nearby, *SEARCH_LOCATIONS)):
        if candidate.is_file():
            return candidate
    raise CaddyfileNotFoundError(explicit)
