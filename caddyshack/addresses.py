"""Decide whether a top-level token is a site address, and break addresses apart."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol
import re

_DOTTED_QUAD = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")


class AddressClassifier(Protocol):
    def __call__(self, token: str) -> bool: ...


def is_site_address(token: str) -> bool:
    """Return True when ``token`` looks like a listener address.

    This is a lexical heuristic rather than a keyword registry: hostnames,
    ports, URLs, ``localhost`` and IPv4 literals are accepted, anything else is
    treated as a directive keyword. Snippet names ``(name)`` and matcher names
    ``@name`` are never addresses.
    """
    if token in ("", "{", "}"):
        return False
    if token.startswith("(") or token.startswith("@"):
        return False
    if "." in token or ":" in token:
        return True
    if token.startswith("http://") or token.startswith("https://"):
        return True
    if token == "localhost" or token.startswith("localhost:"):
        return True
    return bool(_DOTTED_QUAD.match(token))


class KeywordAwareClassifier:
    """Table-driven classifier layered over :func:`is_site_address`.

    ``keywords`` are always rejected and ``hosts`` (bare names such as an
    internal ``intranet`` host) are always accepted; everything else falls
    through to the heuristic.
    """

    def __init__(self, keywords: Iterable[str] = (), hosts: Iterable[str] = ()) -> None:
        self.keywords = frozenset(keywords)
        self.hosts = frozenset(hosts)

    def __call__(self, token: str) -> bool:
        if token in self.keywords:
            return False
        if token in self.hosts:
            return True
        return is_site_address(token)


@dataclass(slots=True)
class SiteAddress:
    raw: str
    scheme: str | None
    host: str | None
    port: int | None
    path: str | None
    is_ipv6: bool
    is_wildcard: bool


def parse_address(raw: str) -> SiteAddress:
    """Split a site address such as ``https://*.example.com:8443/api`` into parts."""
    scheme: str | None = None
    host_port = raw
    if "://" in raw:
        scheme, host_port = raw.split("://", 1)

    path: str | None = None
    slash = host_port.find("/")
    if slash != -1:
        host_port, path = host_port[:slash], host_port[slash:]

    host: str | None = None
    port: int | None = None
    is_ipv6 = False
    if host_port.startswith("["):
        end = host_port.find("]")
        if end != -1:
            host = host_port[1:end]
            remainder = host_port[end + 1 :]
            if remainder.startswith(":") and remainder[1:].isdigit():
                port = int(remainder[1:])
            is_ipv6 = True
        else:
            host = host_port
    elif ":" in host_port:
        maybe_host, maybe_port = host_port.rsplit(":", 1)
        if maybe_port.isdigit():
            host = maybe_host or None
            port = int(maybe_port)
        else:
            host = host_port
    else:
        host = host_port or None

    is_wildcard = bool(host and "*" in host)
    return SiteAddress(
        raw=raw,
        scheme=scheme,
        host=host,
        port=port,
        path=path,
        is_ipv6=is_ipv6,
        is_wildcard=is_wildcard,
    )
