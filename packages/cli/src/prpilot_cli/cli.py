"""CLI entry point for prpilot.

Commands:
  review        post an AI review comment on a pull request
  apply         turn the bot's latest review comment into a pull request of changes
  handle-event  react to a GitHub Actions event (PR opened, PR comment created)
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prpilot_cli.commands.apply import apply_cmd
from prpilot_cli.commands.event import handle_event_cmd
from prpilot_cli.commands.review import review_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # PyGithub and the HTTP stack are chatty at DEBUG.
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prpilot"),
    prog_name="prpilot",
)
@click.option(
    "--config",
    "config_path",
    default=".prpilot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRPILOT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI pull-request reviewer that can apply its own suggestions."""
    from prpilot_cli.auth import resolve_github_token
    from prpilot_core.config import load_config

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config


main.add_command(review_cmd)
main.add_command(apply_cmd)
main.add_command(handle_event_cmd)
