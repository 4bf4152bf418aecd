"""Compare Caddyfiles structurally and against their canonical rendering."""
from __future__ import annotations

from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
import difflib

from .caddyfile_parser import CaddyfileParseError, parse_all
from .exporter import DEFAULT_INDENT, Writer
from .models import Caddyfile
from .reader import read_caddyfile

MAX_DIFF_LINES = 200


@dataclass(slots=True)
class DriftReport:
    target_path: Path
    in_sync: bool | None
    target_hash: str | None
    canonical_hash: str | None
    diff: str | None
    error: str | None


def structurally_equal(left: Caddyfile, right: Caddyfile) -> bool:
    """True when both aggregates hold the same blocks, addresses, directives and args.

    Raw block text is not part of the comparison.
    """
    return left == right


def diff_text(before: str, after: str, *, fromfile: str = "current", tofile: str = "generated") -> str | None:
    """Return a unified diff of ``before`` -> ``after``, or None when equal."""
    if before == after:
        return None
    lines = list(
        difflib.unified_diff(before.splitlines(), after.splitlines(), fromfile=fromfile, tofile=tofile, lineterm="")
    )
    if len(lines) > MAX_DIFF_LINES:
        lines = [*lines[:MAX_DIFF_LINES], f"... {len(lines) - MAX_DIFF_LINES} more diff lines ..."]
    return "\n".join(lines)


def compare_caddyfile(target_path: Path, *, indent: str = DEFAULT_INDENT) -> DriftReport:
    """Report whether the file at ``target_path`` is already in canonical form."""
    try:
        target_text = read_caddyfile(target_path)
    except OSError as exc:
        return DriftReport(
            target_path=target_path,
            in_sync=None,
            target_hash=None,
            canonical_hash=None,
            diff=None,
            error=f"Unable to read {target_path}: {exc}",
        )

    target_hash = sha256(target_text.encode("utf-8")).hexdigest()
    try:
        canonical_text = Writer(indent=indent).write_caddyfile(parse_all(target_text))
    except CaddyfileParseError as exc:
        return DriftReport(
            target_path=target_path,
            in_sync=None,
            target_hash=target_hash,
            canonical_hash=None,
            diff=None,
            error=f"Failed to parse {target_path}: {exc}",
        )

    canonical_hash = sha256(canonical_text.encode("utf-8")).hexdigest()
    diff = diff_text(target_text, canonical_text, fromfile=str(target_path), tofile="canonical")
    return DriftReport(
        target_path=target_path,
        in_sync=diff is None,
        target_hash=target_hash,
        canonical_hash=canonical_hash,
        diff=diff,
        error=None,
    )


def summarise_drift(report: DriftReport) -> str:
    if report.error:
        return f"{report.target_path}: {report.error}"
    if report.in_sync is None:
        return f"{report.target_path}: not checked"
    state = "canonical" if report.in_sync else "not canonical"
    return f"{report.target_path}: {state}"
