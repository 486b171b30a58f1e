"""review command: post an AI review comment on a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markdown import Markdown

from prpilot_cli.auth import require_credentials
from prpilot_core.gh.client import GithubRepoClient
from prpilot_core.pipeline import get_provider, run_review

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the review instead of posting it.",
)
@click.pass_context
def review_cmd(ctx, repo: str, pr_number: int, model: str | None, shadow: bool):
    """Review a pull request and post the result as a PR comment.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    config = ctx.obj["config"]
    if model:
        config["model"] = model
    token = require_credentials(config)

    client = GithubRepoClient.from_token(repo, token)
    provider = get_provider(config)

    console.print(f"Reviewing [bold]{repo}#{pr_number}[/bold] with {config['model']}...")
    body = run_review(client, provider, pr_number, config, shadow=shadow)

    if body is None:
        console.print("[yellow]Skipped: the pull request was opened by the bot.[/yellow]")
    elif shadow:
        console.print(Markdown(body))
        console.print("\n[bold]Shadow review complete. Nothing was posted.[/bold]")
    else:
        console.print(f"[green]Review comment posted on #{pr_number}.[/green]")
