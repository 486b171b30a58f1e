"""apply command: open a pull request with the changes the bot's last review suggests."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prpilot_cli.auth import require_credentials
from prpilot_core.errors import PipelineError
from prpilot_core.gh.client import GithubRepoClient
from prpilot_core.pipeline import ApplyResult, find_latest_bot_comment, get_provider, run_apply

console = Console()

_STATUS_STYLE = {"written": "green", "skipped": "yellow", "failed": "red"}


def _print_result(result: ApplyResult) -> None:
    table = Table(title=f"Suggestions for PR #{result.source_pr}")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")

    if result.materialization is None:
        for s in result.suggestions:
            table.add_row(s.file, "[green]suggested[/green]", s.description)
        for s in result.skipped:
            table.add_row(s.path, "[yellow]skipped[/yellow]", s.reason.value)
    else:
        for o in result.materialization.outcomes:
            style = _STATUS_STYLE[o.status.value]
            table.add_row(o.path, f"[{style}]{o.status.value}[/{style}]", o.detail)
    console.print(table)


@click.command("apply")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request whose review should be applied.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--bot-username", default=None, help="Login of the account that posted the review. Overrides config.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: show the parsed suggestions without creating a branch or PR.",
)
@click.pass_context
def apply_cmd(ctx, repo: str, pr_number: int, model: str | None, bot_username: str | None, shadow: bool):
    """Apply the bot's latest review on a PR as a new pull request.

    The new branch is named <branch_prefix>-<pr>-<unix millis> and the pull
    request targets the reviewed PR's head branch.
    """
    config = ctx.obj["config"]
    if model:
        config["model"] = model
    if bot_username:
        config["bot_username"] = bot_username
    token = require_credentials(config)

    client = GithubRepoClient.from_token(repo, token)
    review = find_latest_bot_comment(client.list_issue_comments(pr_number), config["bot_username"])
    if review is None:
        raise click.ClickException(f"No comment by {config['bot_username']} found on PR #{pr_number}.")

    provider = get_provider(config)
    try:
        result = run_apply(client, provider, pr_number, review.body, config, shadow=shadow)
    except PipelineError as e:
        raise click.ClickException(str(e))

    _print_result(result)
    if result.materialization is None:
        console.print(f"\n[bold]Shadow run complete. {len(result.suggestions)} suggestion(s) would be applied.[/bold]")
    else:
        pull = result.materialization.pull
        console.print(f"\n[green]Opened PR #{pull.number}: {pull.url}[/green]")
