"""cli.py – Framed Stats Command-Line Interface

This module exposes a Click-based CLI for the one-shot chores around the
webhook service: registering the slash commands with Discord, computing the
stats of a channel *locally* (without going through an interaction), and
probing a running server.

Usage examples
--------------
$ python -m framed_stats.cli register-commands
$ python -m framed_stats.cli stats 1289022276636774404
$ python -m framed_stats.cli --api-url http://localhost:8080 ping

Environment variables
---------------------
DISCORD_TOKEN, APP_ID  Bot credentials (see ``framed_stats.config``).
FRAMED_API_URL         If set, acts like the --api-url option.
"""

from __future__ import annotations

from typing import Any, Optional
import json
import logging

import click
import requests

from framed_stats.commands import ALL_COMMANDS, install_global_commands
from framed_stats.config import ConfigError, Settings
from framed_stats.connections.discord_client import DiscordAPIError, DiscordClient
from framed_stats.verbs import build_stats_report

# ---------------------------------------------------------------------------
# HTTP helper (remote execution)
# ---------------------------------------------------------------------------


def _get_json(url: str) -> Any:
    """GET *url* and return the decoded JSON response."""
    logging.debug("GET %s", url)
    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as exc:
        raise click.ClickException(f"HTTP call failed: {exc}") from exc


def _client(ctx: click.Context) -> DiscordClient:
    settings: Settings = ctx.obj["settings"]
    try:
        settings.require("discord_token")
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return DiscordClient.from_settings(settings)


# ---------------------------------------------------------------------------
# Click entry-point
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--api-url",
    envvar="FRAMED_API_URL",
    default=None,
    metavar="URL",
    help="Base URL of a running Framed Stats server (used by `ping`).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log HTTP traffic and progress.")
@click.pass_context
def cli(ctx: click.Context, api_url: Optional[str], verbose: bool):  # noqa: D401 – Click callback
    """Framed Stats command-line interface."""

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    if ctx.obj is None:
        try:
            ctx.obj = {"settings": Settings.from_env()}
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc
    ctx.obj["api_url"] = api_url


# ---------------------------------------------------------------------------
# `register-commands` – bulk overwrite of the global slash commands
# ---------------------------------------------------------------------------


@cli.command("register-commands", help="Install the slash commands globally (safe to re-run).")
@click.option(
    "--app-id",
    default=None,
    metavar="ID",
    help="Application id; defaults to the APP_ID environment variable.",
)
@click.pass_context
def register_commands(ctx: click.Context, app_id: Optional[str]) -> None:  # noqa: D401 – Click callback
    """Overwrite the application's global commands."""

    application_id = app_id or ctx.obj["settings"].application_id
    if not application_id:
        raise click.ClickException("No application id: pass --app-id or set APP_ID.")

    client = _client(ctx)
    try:
        installed = install_global_commands(client, application_id, ALL_COMMANDS)
    except (DiscordAPIError, requests.RequestException) as exc:
        raise click.ClickException(f"Command registration failed: {exc}") from exc

    for command in installed:
        click.echo(f"registered /{command.get('name')}")


# ---------------------------------------------------------------------------
# `stats` – compute a channel's scores locally
# ---------------------------------------------------------------------------


@cli.command("stats", help="Scan a channel and print the Framed scores.")
@click.argument("channel_id")
@click.option("--json", "as_json", is_flag=True, help="Emit machine-readable JSON.")
@click.pass_context
def stats_command(ctx: click.Context, channel_id: str, as_json: bool) -> None:  # noqa: D401 – Click callback
    """Print the stats report of CHANNEL_ID."""

    client = _client(ctx)
    try:
        stats, message = build_stats_report(client, channel_id)
    except (DiscordAPIError, requests.RequestException) as exc:
        raise click.ClickException(f"History scan failed: {exc}") from exc

    if as_json:
        click.echo(
            json.dumps(
                {
                    user_id: {"days_played": s.days_played, "score": s.score}
                    for user_id, s in stats.items()
                },
                indent=2,
            )
        )
    else:
        click.echo(message)


# ---------------------------------------------------------------------------
# `ping` – remote health check
# ---------------------------------------------------------------------------


@cli.command("ping", help="Call GET /ping on the server given by --api-url.")
@click.pass_context
def ping_command(ctx: click.Context) -> None:  # noqa: D401 – Click callback
    api_url: Optional[str] = ctx.obj.get("api_url")
    if not api_url:
        raise click.ClickException("--api-url (or FRAMED_API_URL) is required for ping.")
    click.echo(_get_json(api_url.rstrip("/") + "/ping"))


# ---------------------------------------------------------------------------
# Entry-point shim for `python -m framed_stats.cli`
# ---------------------------------------------------------------------------

if __name__ == "__main__":  # pragma: no cover – manual execution shortcut
    cli()  # pylint: disable=no-value-for-parameter
