"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

CADDYFILE_PATH = Path(os.environ.get("CADDYSHACK_CADDYFILE", "/etc/caddy/Caddyfile")).expanduser()
CADDY_ADMIN_ENDPOINT = os.environ.get("CADDYSHACK_CADDY_API", "http://localhost:2019")
CADDY_ADMIN_TIMEOUT = float(os.environ.get("CADDYSHACK_ADMIN_TIMEOUT", "30"))
CADDY_BIN = os.environ.get("CADDYSHACK_CADDY_BIN")
VALIDATE_TIMEOUT = float(os.environ.get("CADDYSHACK_VALIDATE_TIMEOUT", "30"))
INDENT = os.environ.get("CADDYSHACK_INDENT", "\t").encode("utf-8").decode("unicode_escape")
LOG_LEVEL = os.environ.get("CADDYSHACK_LOG_LEVEL", "WARNING").upper()


@dataclass(slots=True)
class Settings:
    caddyfile_path: Path = CADDYFILE_PATH
    admin_endpoint: str = CADDY_ADMIN_ENDPOINT
    admin_timeout: float = CADDY_ADMIN_TIMEOUT
    caddy_bin: str | None = CADDY_BIN
    validate_timeout: float = VALIDATE_TIMEOUT
    indent: str = INDENT
    log_level: str = LOG_LEVEL


def load_settings(**overrides) -> Settings:
    """Return settings from the environment, with ``None`` overrides ignored."""
    settings = Settings()
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(settings, key):
            raise TypeError(f"Unknown setting: {key}")
        setattr(settings, key, value)
    return settings
