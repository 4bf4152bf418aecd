"""Integration helpers for validating Caddyfiles with the caddy binary."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from shutil import which
import logging
import re
import subprocess

from .config import CADDY_BIN, VALIDATE_TIMEOUT, Settings

logger = logging.getLogger(__name__)

_LINE_FIRST_PATTERNS = (
    re.compile(r"caddyfile:(\d+)\s*[-:]\s*(.+)", re.IGNORECASE),
    re.compile(r"line\s+(\d+):\s*(.+)", re.IGNORECASE),
)
_MESSAGE_FIRST_PATTERN = re.compile(r"error:\s*(.+?)\s+at\s+.*?:(\d+)", re.IGNORECASE)
_ERROR_HINTS = ("error", "invalid", "unknown", "unrecognized", "expected")


class CaddyError(RuntimeError):
    pass


@dataclass(slots=True)
class ValidationIssue:
    line: int
    message: str


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def first_error(self) -> str:
        if self.valid or not self.errors:
            return ""
        return self.errors[0].message

    def __str__(self) -> str:
        if self.valid:
            return "Configuration is valid"
        lines = ["Configuration is invalid:"]
        for issue in self.errors:
            if issue.line > 0:
                lines.append(f"  Line {issue.line}: {issue.message}")
            else:
                lines.append(f"  {issue.message}")
        return "\n".join(lines)


def _caddy_bin(settings: Settings | None = None) -> str:
    configured = (settings.caddy_bin if settings else None) or CADDY_BIN
    candidate = configured or which("caddy")
    if not candidate:
        raise CaddyError("Unable to locate caddy binary. Set CADDYSHACK_CADDY_BIN.")
    return candidate


def _timeout(settings: Settings | None) -> float:
    return settings.validate_timeout if settings else VALIDATE_TIMEOUT


def validate_content(content: str, *, settings: Settings | None = None) -> ValidationResult:
    """Validate Caddyfile text by piping it to ``caddy adapt --validate``."""
    cmd = [_caddy_bin(settings), "adapt", "--config", "-", "--adapter", "caddyfile", "--validate"]
    return _run_validation(cmd, _timeout(settings), stdin=content)


def validate_file(path: Path, *, settings: Settings | None = None) -> ValidationResult:
    """Validate the Caddyfile at ``path`` with ``caddy validate``."""
    cmd = [_caddy_bin(settings), "validate", "--config", str(path), "--adapter", "caddyfile"]
    return _run_validation(cmd, _timeout(settings))


def _run_validation(cmd: list[str], timeout: float, *, stdin: str | None = None) -> ValidationResult:
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            input=stdin,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise CaddyError(f"validation timed out after {timeout:g}s") from exc
    if proc.returncode == 0:
        return ValidationResult(valid=True)

    errors = parse_validation_errors(proc.stderr)
    if not errors:
        detail = proc.stderr.strip() or proc.stdout.strip() or f"caddy exited with status {proc.returncode}"
        errors = [ValidationIssue(line=0, message=detail)]
    return ValidationResult(valid=False, errors=errors)


def parse_validation_errors(output: str) -> list[ValidationIssue]:
    """Extract line-numbered issues from caddy's stderr."""
    issues: list[ValidationIssue] = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        issue = _match_issue(line)
        if issue is not None:
            issues.append(issue)
        elif any(hint in line.lower() for hint in _ERROR_HINTS):
            issues.append(ValidationIssue(line=0, message=line))
    return issues


def _match_issue(line: str) -> ValidationIssue | None:
    for pattern in _LINE_FIRST_PATTERNS:
        match = pattern.search(line)
        if match:
            return ValidationIssue(line=int(match.group(1)), message=match.group(2).strip())
    match = _MESSAGE_FIRST_PATTERN.search(line)
    if match:
        return ValidationIssue(line=int(match.group(2)), message=match.group(1).strip())
    return None
