"""prwatch CLI: all commands."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from prwatch.check import check
from prwatch.errors import PrwatchError
from prwatch.models import CheckRequest
from prwatch.providers.github import GitHubProvider
from prwatch.settings import PrwatchSettings, get_settings

app = typer.Typer(help="prwatch: report new pull request versions to a pipeline", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/prwatch/config.toml"),
]


def configure_logging(verbose: bool) -> None:
    # stdout is reserved for the JSON response
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _read_request(request_file: Path | None) -> CheckRequest:
    raw = request_file.read_text() if request_file else sys.stdin.read()
    return CheckRequest.model_validate_json(raw or "{}")


def _with_settings(request: CheckRequest, settings: PrwatchSettings) -> CheckRequest:
    """Fill credentials missing from the request source with the resolved settings."""
    if request.source.access_token or not settings.access_token:
        return request
    source = request.source.model_copy(update={"access_token": settings.access_token})
    return request.model_copy(update={"source": source})


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("check")
def check_cmd(
    profile: ProfileOpt = None,
    request_file: Annotated[
        Path | None,
        typer.Option("--request", "-r", help="Read the check request from a file instead of stdin"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every filter decision to stderr")] = False,
) -> None:
    """Print the new versions for the configured repository as JSON."""
    try:
        request = _read_request(request_file)
    except ValidationError as exc:
        typer.echo(f"error: invalid check request: {exc}", err=True)
        raise typer.Exit(1)

    settings = get_settings(profile)
    request = _with_settings(request, settings)
    configure_logging(verbose or request.source.verbose or settings.verbose)

    try:
        request.source.validate_config()
        provider = GitHubProvider(settings, request.source)
        versions = check(request, provider)
    except PrwatchError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps([v.to_wire() for v in versions]))


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="prwatch Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or "[dim](not set)[/dim]")
    table.add_row("access_token", mask(settings.access_token.get_secret_value() if settings.access_token else None))
    table.add_row("v4_endpoint", settings.v4_endpoint)
    table.add_row("timeout", f"{settings.timeout:g}s")
    table.add_row("verbose", str(settings.verbose).lower())

    rprint(table)
