"""CLI entry point for caddyshack."""
from __future__ import annotations

from pathlib import Path
import json
import logging

import click
from rich.console import Console
from rich.table import Table

from .admin_api import AdminClient, AdminError
from .caddy_integration import CaddyError, validate_content
from .caddyfile_parser import CaddyfileParseError, parse_all
from .config import Settings, load_settings
from .directives import walk
from .drift import compare_caddyfile, summarise_drift
from .exporter import Writer, generate_caddyfile
from .models import Caddyfile, to_dict
from .reader import CaddyfileNotFoundError, find_caddyfile, read_caddyfile

SECTIONS = ("all", "sites", "snippets", "global")


def _echo_json(payload: dict) -> None:
    click.echo(json.dumps(payload))


def _settings(ctx: click.Context) -> Settings:
    return ctx.ensure_object(dict)["settings"]


def _load(settings: Settings, path: Path | None) -> tuple[Path, str, Caddyfile]:
    try:
        source = path if path is not None else find_caddyfile(settings.caddyfile_path)
        text = read_caddyfile(source)
        return source, text, parse_all(text)
    except (CaddyfileNotFoundError, PermissionError) as exc:
        raise click.ClickException(str(exc))
    except CaddyfileParseError as exc:
        raise click.ClickException(f"Failed to parse Caddyfile: {exc}")


path_argument = click.argument(
    "path", required=False, type=click.Path(path_type=Path)
)


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Parse, format and deploy Caddyfiles."""
    settings = load_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)["settings"] = settings


@main.command()
@path_argument
@click.option("--section", type=click.Choice(SECTIONS), default="all")
@click.pass_context
def parse(ctx: click.Context, path: Path | None, section: str) -> None:
    """Print the parsed model as JSON."""
    source, _, caddyfile = _load(_settings(ctx), path)
    payload = to_dict(caddyfile)
    if section == "sites":
        payload = {"sites": payload["sites"]}
    elif section == "snippets":
        payload = {"snippets": payload["snippets"]}
    elif section == "global":
        payload = {"global_options": payload["global_options"]}
    payload["source"] = str(source)
    _echo_json(payload)


@main.command()
@path_argument
@click.option("--write", is_flag=True, help="Rewrite the file in place.")
@click.option("--check", is_flag=True, help="Exit 1 when the file is not in canonical form.")
@click.pass_context
def fmt(ctx: click.Context, path: Path | None, write: bool, check: bool) -> None:
    """Print (or rewrite) the file in canonical form."""
    settings = _settings(ctx)
    source, text, caddyfile = _load(settings, path)
    rendered = Writer(indent=settings.indent).write_caddyfile(caddyfile)
    if check:
        if rendered != text:
            click.echo(f"{source} is not formatted", err=True)
            raise SystemExit(1)
        return
    if write:
        generate_caddyfile(source, caddyfile, indent=settings.indent)
        _echo_json({"status": "ok", "output": str(source)})
        return
    click.echo(rendered, nl=False)


@main.command()
@path_argument
@click.pass_context
def sites(ctx: click.Context, path: Path | None) -> None:
    """List site blocks with their addresses and imports."""
    _, _, caddyfile = _load(_settings(ctx), path)
    table = Table(title="Sites")
    table.add_column("Addresses")
    table.add_column("Host")
    table.add_column("Port", justify="right")
    table.add_column("Imports")
    table.add_column("Directives", justify="right")
    for site in caddyfile.sites:
        parsed = site.parsed_addresses()
        table.add_row(
            ", ".join(site.addresses),
            ", ".join(address.host or "*" for address in parsed),
            ", ".join(str(address.port) for address in parsed if address.port is not None),
            ", ".join(site.imports),
            str(sum(1 for _ in walk(site.directives))),
        )
    Console().print(table)


@main.command()
@path_argument
@click.pass_context
def diff(ctx: click.Context, path: Path | None) -> None:
    """Show how the file differs from its canonical form."""
    settings = _settings(ctx)
    try:
        source = path if path is not None else find_caddyfile(settings.caddyfile_path)
    except CaddyfileNotFoundError as exc:
        raise click.ClickException(str(exc))
    report = compare_caddyfile(source, indent=settings.indent)
    if report.error:
        raise click.ClickException(report.error)
    if report.diff:
        click.echo(report.diff)
    click.echo(summarise_drift(report), err=True)
    if report.in_sync is False:
        raise SystemExit(1)


@main.command()
@path_argument
@click.option("--via", type=click.Choice(["binary", "admin"]), default="binary")
@click.pass_context
def validate(ctx: click.Context, path: Path | None, via: str) -> None:
    """Validate the canonical rendering with caddy."""
    settings = _settings(ctx)
    source, _, caddyfile = _load(settings, path)
    rendered = Writer(indent=settings.indent).write_caddyfile(caddyfile)
    if via == "admin":
        client = AdminClient(settings.admin_endpoint, timeout=settings.admin_timeout)
        try:
            client.validate(rendered)
        except AdminError as exc:
            _echo_json({"status": "invalid", "source": str(source), "errors": [{"line": 0, "message": exc.message or str(exc)}]})
            raise SystemExit(1)
        _echo_json({"status": "ok", "source": str(source)})
        return

    try:
        result = validate_content(rendered, settings=settings)
    except CaddyError as exc:
        raise click.ClickException(str(exc))
    _echo_json(
        {
            "status": "ok" if result.valid else "invalid",
            "source": str(source),
            "errors": [{"line": issue.line, "message": issue.message} for issue in result.errors],
        }
    )
    if not result.valid:
        raise SystemExit(1)


@main.command()
@path_argument
@click.pass_context
def reload(ctx: click.Context, path: Path | None) -> None:
    """Load the canonical rendering into the running caddy via the admin API."""
    settings = _settings(ctx)
    source, _, caddyfile = _load(settings, path)
    rendered = Writer(indent=settings.indent).write_caddyfile(caddyfile)
    client = AdminClient(settings.admin_endpoint, timeout=settings.admin_timeout)
    try:
        client.reload(rendered)
    except AdminError as exc:
        raise click.ClickException(str(exc))
    _echo_json({"status": "ok", "source": str(source), "endpoint": settings.admin_endpoint})
