"""Render the Caddyfile model back into text."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable
import logging

from .models import Caddyfile, Directive, GlobalOptions, LogConfig, Site, Snippet
from .tokenizer import CLOSE_BRACE, OPEN_BRACE, tokenize

logger = logging.getLogger(__name__)

DEFAULT_INDENT = "\t"


def _split_args(value: str) -> list[str]:
    return [token.value for token in tokenize(value)]


def quote_if_needed(value: str) -> str:
    """Wrap ``value`` in double quotes when it would not survive tokenizing bare.

    A trailing sentinel word catches values whose open quote would swallow
    the arguments after them. Embedded double quotes are escaped.
    """
    if value == "":
        return '""'
    if value not in (OPEN_BRACE, CLOSE_BRACE) and _split_args(value + " x") == [value, "x"]:
        return value
    escaped = value.replace('"', '\\"')
    return f'"{escaped}"'


class Writer:
    """Deterministic serializer for :class:`Caddyfile` models.

    Output order is global options, snippets, then sites, with one blank line
    between top-level blocks. Each nesting level adds one ``indent`` unit and
    a closing brace lines up with the line that opened its block.
    """

    def __init__(self, indent: str = DEFAULT_INDENT) -> None:
        self.indent = indent

    def write_caddyfile(self, caddyfile: Caddyfile | None) -> str:
        if caddyfile is None:
            return ""
        chunks: list[str] = []
        if caddyfile.global_options is not None:
            chunks.append(self.write_global_options(caddyfile.global_options))
        chunks.extend(self.write_snippet(snippet) for snippet in caddyfile.snippets)
        chunks.extend(self.write_site(site) for site in caddyfile.sites)
        return "\n".join(chunks)

    def write_site(self, site: Site) -> str:
        return self._write_block(" ".join(site.addresses), site.directives)

    def write_sites(self, sites: Iterable[Site]) -> str:
        return "\n".join(self.write_site(site) for site in sites)

    def write_snippet(self, snippet: Snippet) -> str:
        return self._write_block(f"({snippet.name})", snippet.directives)

    def write_snippets(self, snippets: Iterable[Snippet]) -> str:
        return "\n".join(self.write_snippet(snippet) for snippet in snippets)

    def write_global_options(self, options: GlobalOptions | None) -> str:
        if options is None:
            return ""
        return self._write_block("", self._global_directives(options))

    def write_directive(self, directive: Directive, depth: int = 0) -> str:
        lines: list[str] = []
        self._render(directive, depth, lines)
        return "".join(lines)

    def _write_block(self, header: str, directives: Iterable[Directive]) -> str:
        lines = [f"{header} {{\n" if header else "{\n"]
        for directive in directives:
            self._render(directive, 1, lines)
        lines.append("}\n")
        return "".join(lines)

    def _render(self, directive: Directive, depth: int, lines: list[str]) -> None:
        prefix = self.indent * depth
        parts = [directive.name, *(quote_if_needed(arg) for arg in directive.args)]
        head = prefix + " ".join(parts)
        if not directive.block:
            lines.append(head + "\n")
            return
        lines.append(head + " {\n")
        for child in directive.block:
            self._render(child, depth + 1, lines)
        lines.append(prefix + "}\n")

    def _global_directives(self, options: GlobalOptions) -> list[Directive]:
        directives: list[Directive] = []
        if options.email:
            directives.append(Directive("email", [options.email]))
        if options.acme_ca:
            directives.append(Directive("acme_ca", [options.acme_ca]))
        if options.admin:
            directives.append(Directive("admin", [options.admin]))
        if options.debug:
            directives.append(Directive("debug"))
        for rule in options.order_rules:
            args = [rule.name, rule.position]
            if rule.target:
                args.append(rule.target)
            directives.append(Directive("order", args))
        if options.log is not None and not options.log.is_empty():
            directives.append(_log_directive(options.log))
        directives.extend(options.extra)
        return directives


def _log_directive(config: LogConfig) -> Directive:
    # Multi-word values such as ``file /var/log/x.log`` go back out as separate args.
    block: list[Directive] = []
    if config.output:
        rolls = [
            Directive(name, [value])
            for name, value in (("roll_size", config.roll_size), ("roll_keep", config.roll_keep))
            if value
        ]
        block.append(Directive("output", _split_args(config.output), rolls))
    if config.format:
        block.append(Directive("format", _split_args(config.format)))
    if config.level:
        block.append(Directive("level", _split_args(config.level)))
    block.extend(config.extra)
    return Directive("log", [], block)


_default_writer = Writer()


def write_caddyfile(caddyfile: Caddyfile | None) -> str:
    return _default_writer.write_caddyfile(caddyfile)


def write_site(site: Site) -> str:
    return _default_writer.write_site(site)


def write_snippet(snippet: Snippet) -> str:
    return _default_writer.write_snippet(snippet)


def write_global_options(options: GlobalOptions | None) -> str:
    return _default_writer.write_global_options(options)


def generate_caddyfile(target: Path, caddyfile: Caddyfile, *, indent: str = DEFAULT_INDENT) -> Path:
    """Render ``caddyfile`` and write it to ``target``.

    Args:
        target: Path to write the generated Caddyfile to.
        caddyfile: The model to render.
        indent: Indent unit for nested blocks.

    Returns:
        The path where the file was written.
    """
    data = Writer(indent=indent).write_caddyfile(caddyfile)
    target.write_text(data, encoding="utf-8")
    logger.info("Wrote %d bytes to %s", len(data), target)
    return target
