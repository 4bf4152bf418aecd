"""Parse Caddyfile text into sites, snippets and global options."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence
import logging
import textwrap

from .addresses import AddressClassifier, is_site_address
from .directives import build_directives
from .errors import CaddyfileParseError, CaddyfileStructureError
from .models import Caddyfile, Directive, GlobalOptions, LogConfig, OrderRule, Site, Snippet
from .tokenizer import Token, tokenize

__all__ = [
    "CaddyfileParseError",
    "CaddyfileStructureError",
    "ParsedBlock",
    "parse_all",
    "parse_global_options",
    "parse_sites",
    "parse_snippets",
    "scan_blocks",
]

logger = logging.getLogger(__name__)

BlockKind = Literal["global", "snippet", "site"]

ORDER_POSITIONS = ("before", "after")


@dataclass(slots=True)
class ParsedBlock:
    kind: BlockKind
    labels: list[str]
    directives: list[Directive]
    raw_block: str
    line: int


def scan_blocks(text: str, *, classifier: AddressClassifier | None = None) -> list[ParsedBlock]:
    """Classify every top-level block of ``text`` in document order.

    The header of a block is the run of tokens on the line of its ``{``,
    extended backwards over lines that end with a comma. A ``{`` alone on its
    line takes the preceding line as its header when anything follows the
    previous block. The first block with an empty header is the global
    options block; later ones are skipped. A
    header of exactly ``(name)`` makes a snippet, and a header whose tokens all
    pass ``classifier`` makes a site. Any other block, and any stray token not
    attached to a block, is skipped.

    Raises:
        CaddyfileStructureError: On an unmatched or unexpected brace.
    """
    accept = classifier or is_site_address
    tokens = tokenize(text)
    blocks: list[ParsedBlock] = []
    pending: list[Token] = []
    seen_global = False
    pos = 0
    while pos < len(tokens):
        token = tokens[pos]
        if token.is_close:
            raise CaddyfileStructureError("unexpected '}'", token.line)
        if not token.is_open:
            pending.append(token)
            pos += 1
            continue

        directives, pos = build_directives(tokens, pos + 1)
        raw_block = _raw_body(text, token, tokens[pos - 1])
        header_line = token.line
        if pending and pending[-1].line != token.line and not pending[-1].value.endswith(","):
            header_line = pending[-1].line
        header = _header_tokens(pending, header_line)
        pending = []

        labels = [value for value in (_strip_comma(item.value) for item in header) if value]
        if not header:
            if seen_global:
                logger.debug("Skipping additional global options block at line %d", token.line)
                continue
            seen_global = True
            blocks.append(ParsedBlock("global", [], directives, raw_block, token.line))
        elif len(labels) == 1 and _is_snippet_label(labels[0]):
            blocks.append(ParsedBlock("snippet", [labels[0][1:-1]], directives, raw_block, token.line))
        elif labels and all(accept(label) for label in labels):
            blocks.append(ParsedBlock("site", labels, directives, raw_block, token.line))
        else:
            logger.debug("Skipping unrecognised block %r at line %d", " ".join(labels), token.line)

    if pending:
        logger.debug("Ignoring %d trailing tokens without a block", len(pending))
    if tokens and tokens[-1].unterminated:
        logger.debug("Unterminated quote at line %d runs to end of input", tokens[-1].line)
    return blocks


def parse_all(text: str, *, classifier: AddressClassifier | None = None) -> Caddyfile:
    """Parse ``text`` into a :class:`Caddyfile` aggregate, preserving order."""
    caddyfile = Caddyfile()
    for block in scan_blocks(text, classifier=classifier):
        if block.kind == "global":
            caddyfile.global_options = _global_options_from(block)
        elif block.kind == "snippet":
            caddyfile.snippets.append(
                Snippet(name=block.labels[0], directives=block.directives, raw_block=block.raw_block)
            )
        else:
            caddyfile.sites.append(
                Site(addresses=block.labels, directives=block.directives, raw_block=block.raw_block)
            )
    return caddyfile


def parse_sites(text: str, *, classifier: AddressClassifier | None = None) -> list[Site]:
    return parse_all(text, classifier=classifier).sites


def parse_snippets(text: str, *, classifier: AddressClassifier | None = None) -> list[Snippet]:
    return parse_all(text, classifier=classifier).snippets


def parse_global_options(text: str, *, classifier: AddressClassifier | None = None) -> GlobalOptions | None:
    return parse_all(text, classifier=classifier).global_options


def _header_tokens(pending: Sequence[Token], line: int) -> list[Token]:
    header: list[Token] = []
    index = len(pending) - 1
    while index >= 0 and pending[index].line == line:
        header.insert(0, pending[index])
        index -= 1
    while index >= 0 and pending[index].value.endswith(","):
        current_line = pending[index].line
        while index >= 0 and pending[index].line == current_line:
            header.insert(0, pending[index])
            index -= 1
    if index >= 0:
        skipped = " ".join(token.value for token in pending[: index + 1])
        logger.debug("Ignoring stray top-level tokens: %s", skipped)
    return header


def _strip_comma(value: str) -> str:
    return value.rstrip(",")


def _is_snippet_label(label: str) -> bool:
    return len(label) > 2 and label.startswith("(") and label.endswith(")")


def _raw_body(text: str, opener: Token, closer: Token) -> str:
    end = closer.offset if closer.is_close else len(text)
    body = text[opener.offset + 1 : end]
    return textwrap.dedent(body.strip("\n")).rstrip()


def _global_options_from(block: ParsedBlock) -> GlobalOptions:
    options = GlobalOptions(raw_block=block.raw_block)
    for directive in block.directives:
        if not _apply_global_option(options, directive):
            options.extra.append(directive)
    return options


def _apply_global_option(options: GlobalOptions, directive: Directive) -> bool:
    """Copy ``directive`` into a modeled field; False when it has no exact field."""
    name, args = directive.name, directive.args
    if directive.block and name != "log":
        return False
    if name in ("email", "admin", "acme_ca") and len(args) == 1:
        setattr(options, name, args[0])
        return True
    if name == "debug" and not args:
        options.debug = True
        return True
    if name == "order" and len(args) == 3 and args[1] in ORDER_POSITIONS:
        options.order_rules.append(OrderRule(name=args[0], position=args[1], target=args[2]))
        return True
    if name == "log" and not args and options.log is None and directive.block:
        options.log = _log_config_from(directive)
        return True
    return False


def _log_config_from(directive: Directive) -> LogConfig:
    config = LogConfig()
    for child in directive.block:
        if child.name == "output" and child.args and not config.output and _has_roll_settings_only(child):
            config.output = " ".join(child.args)
            for setting in child.block:
                setattr(config, setting.name, setting.args[0])
        elif child.name in ("format", "level") and child.args and not child.block and not getattr(config, child.name):
            setattr(config, child.name, " ".join(child.args))
        else:
            config.extra.append(child)
    return config


def _has_roll_settings_only(output: Directive) -> bool:
    names = [setting.name for setting in output.block]
    return (
        all(name in ("roll_size", "roll_keep") for name in names)
        and len(set(names)) == len(names)
        and all(len(setting.args) == 1 and not setting.block for setting in output.block)
    )
