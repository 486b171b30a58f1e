"""handle-event command: run the bot from a GitHub Actions workflow.

Actions exposes the triggering event as GITHUB_EVENT_NAME and a JSON payload
at GITHUB_EVENT_PATH, which stand in for a webhook delivery.
"""

from __future__ import annotations

import json

import click
from rich.console import Console

from prpilot_cli.auth import require_credentials
from prpilot_core.gh.client import GithubRepoClient
from prpilot_core.pipeline import dispatch_event, get_provider

console = Console()


@click.command("handle-event")
@click.option("--event-name", envvar="GITHUB_EVENT_NAME", required=True, help="GitHub event name.")
@click.option(
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the JSON event payload.",
)
@click.pass_context
def handle_event_cmd(ctx, event_name: str, event_path: str):
    """Review newly opened PRs and apply suggestions on /apply-suggestions comments."""
    config = ctx.obj["config"]

    with open(event_path, encoding="utf-8") as f:
        payload = json.load(f)

    repo = (payload.get("repository") or {}).get("full_name")
    if not repo:
        raise click.UsageError(f"Event payload at {event_path} has no repository.full_name.")

    token = require_credentials(config)
    client = GithubRepoClient.from_token(repo, token)
    provider = get_provider(config)

    outcome = dispatch_event(client, provider, event_name, payload, config)
    if outcome is None:
        console.print(f"[dim]Nothing to do for {event_name} event.[/dim]")
    else:
        console.print(f"[green]Handled {event_name} event on {repo}.[/green]")
