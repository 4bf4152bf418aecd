"""In-memory model of a parsed Caddyfile."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from .addresses import SiteAddress, parse_address

OrderPosition = Literal["before", "after"]

IMPORT_DIRECTIVE = "import"


@dataclass(slots=True)
class Directive:
    name: str
    args: list[str] = field(default_factory=list)
    block: list[Directive] = field(default_factory=list)

    @property
    def has_block(self) -> bool:
        return bool(self.block)

    def find(self, name: str) -> Directive | None:
        """Return the first direct child named ``name``."""
        for child in self.block:
            if child.name == name:
                return child
        return None


def _imports_of(directives: list[Directive]) -> list[str]:
    return [
        directive.args[0]
        for directive in directives
        if directive.name == IMPORT_DIRECTIVE and directive.args
    ]


@dataclass(slots=True)
class Site:
    addresses: list[str]
    directives: list[Directive] = field(default_factory=list)
    raw_block: str = field(default="", compare=False)

    @property
    def imports(self) -> list[str]:
        """Snippet names pulled in by direct ``import`` children, in order."""
        return _imports_of(self.directives)

    @property
    def label(self) -> str:
        return " ".join(self.addresses)

    def parsed_addresses(self) -> list[SiteAddress]:
        return [parse_address(address) for address in self.addresses]


@dataclass(slots=True)
class Snippet:
    name: str
    directives: list[Directive] = field(default_factory=list)
    raw_block: str = field(default="", compare=False)

    @property
    def imports(self) -> list[str]:
        return _imports_of(self.directives)


@dataclass(slots=True)
class LogConfig:
    output: str = ""
    format: str = ""
    level: str = ""
    roll_size: str = ""
    roll_keep: str = ""
    extra: list[Directive] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.output or self.format or self.level or self.roll_size or self.roll_keep or self.extra
        )


@dataclass(slots=True)
class OrderRule:
    name: str
    position: OrderPosition
    target: str = ""


@dataclass(slots=True)
class GlobalOptions:
    email: str = ""
    admin: str = ""
    acme_ca: str = ""
    debug: bool = False
    log: LogConfig | None = None
    order_rules: list[OrderRule] = field(default_factory=list)
    extra: list[Directive] = field(default_factory=list)
    raw_block: str = field(default="", compare=False)

    @property
    def order_before(self) -> list[str]:
        return [rule.name for rule in self.order_rules if rule.position == "before"]

    @property
    def order_after(self) -> list[str]:
        return [rule.name for rule in self.order_rules if rule.position == "after"]


@dataclass(slots=True)
class Caddyfile:
    global_options: GlobalOptions | None = None
    snippets: list[Snippet] = field(default_factory=list)
    sites: list[Site] = field(default_factory=list)

    def find_site(self, address: str) -> Site | None:
        for site in self.sites:
            if address in site.addresses:
                return site
        return None

    def find_snippet(self, name: str) -> Snippet | None:
        for snippet in self.snippets:
            if snippet.name == name:
                return snippet
        return None

    def is_empty(self) -> bool:
        return self.global_options is None and not self.snippets and not self.sites


def to_dict(caddyfile: Caddyfile) -> dict[str, Any]:
    """Return a JSON-ready view of ``caddyfile`` including derived fields."""
    payload = asdict(caddyfile)
    for site_payload, site in zip(payload["sites"], caddyfile.sites):
        site_payload["imports"] = site.imports
    for snippet_payload, snippet in zip(payload["snippets"], caddyfile.snippets):
        snippet_payload["imports"] = snippet.imports
    if caddyfile.global_options is not None:
        payload["global_options"]["order_before"] = caddyfile.global_options.order_before
        payload["global_options"]["order_after"] = caddyfile.global_options.order_after
    return payload
