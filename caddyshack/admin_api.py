"""Client for the Caddy admin API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen
import json
import logging

from .config import CADDY_ADMIN_ENDPOINT, CADDY_ADMIN_TIMEOUT

logger = logging.getLogger(__name__)

CADDYFILE_CONTENT_TYPE = "text/caddyfile"


class AdminError(RuntimeError):
    """Non-success response (or no response) from the admin API."""

    def __init__(self, status_code: int | None, message: str = ""):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            text = f"caddy admin api unreachable: {message}"
        elif message:
            text = f"caddy admin api error (status {status_code}): {message}"
        else:
            text = f"caddy admin api error (status {status_code})"
        super().__init__(text)


@dataclass(slots=True)
class CaddyStatus:
    running: bool
    version: str | None = None


class AdminClient:
    """Thin wrapper over the admin endpoints used to validate and load config."""

    def __init__(self, base_url: str = CADDY_ADMIN_ENDPOINT, *, timeout: float = CADDY_ADMIN_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def reload(self, caddyfile_text: str) -> None:
        """Load ``caddyfile_text`` as the running configuration (POST /load)."""
        self._request("POST", "/load", caddyfile_text, content_type=CADDYFILE_CONTENT_TYPE)
        logger.info("Loaded new configuration via %s/load", self.base_url)

    def validate(self, caddyfile_text: str) -> dict[str, Any]:
        """Adapt ``caddyfile_text`` to JSON without loading it (POST /adapt).

        Returns the adapter's JSON response; an invalid config raises
        :class:`AdminError` carrying caddy's message.
        """
        body = self._request("POST", "/adapt", caddyfile_text, content_type=CADDYFILE_CONTENT_TYPE)
        return _decode_json(body) if body.strip() else {}

    def get_config(self) -> dict[str, Any]:
        body = self._request("GET", "/config/", accept="application/json")
        if not body.strip():
            return {}
        return _decode_json(body)

    def get_status(self) -> CaddyStatus:
        request = Request(self.base_url + "/config/", method="GET")
        try:
            with urlopen(request, timeout=self.timeout) as response:
                server = response.headers.get("Server")
        except HTTPError as exc:
            server = exc.headers.get("Server") if exc.headers else None
        except (URLError, OSError):
            return CaddyStatus(running=False)
        return CaddyStatus(running=True, version=server or None)

    def ping(self) -> bool:
        return self.get_status().running

    def stop(self) -> None:
        self._request("POST", "/stop")

    def _request(
        self,
        method: str,
        path: str,
        payload: str | None = None,
        *,
        content_type: str | None = None,
        accept: str | None = None,
    ) -> str:
        data = payload.encode("utf-8") if payload is not None else None
        request = Request(self.base_url + path, data=data, method=method)
        if content_type:
            request.add_header("Content-Type", content_type)
        if accept:
            request.add_header("Accept", accept)
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            with urlopen(request, timeout=self.timeout) as response:
                return response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise AdminError(exc.code, _error_message(detail)) from exc
        except URLError as exc:
            raise AdminError(None, str(exc.reason)) from exc


def _decode_json(body: str) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise AdminError(200, f"invalid JSON from admin api: {exc}") from exc
    return data if isinstance(data, dict) else {"result": data}


def _error_message(body: str) -> str:
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return body.strip()
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return body.strip()
