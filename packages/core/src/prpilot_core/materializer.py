"""Turn parsed suggestions into a branch, one commit per file, and a pull request.

Files are written one at a time, in suggestion order. There is no atomic
multi-file commit: if some writes fail, the pull request is still opened with
whatever did land, and its body lists the files that did not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from prpilot_core.errors import PullRequestCreationFailed
from prpilot_core.gh.branch import ensure_branch
from prpilot_core.gh.client import RepoClient
from prpilot_core.gh.contents import UP_TO_DATE, upsert_file
from prpilot_core.gh.models import BranchRef, PullRequestResult
from prpilot_core.suggestions.models import FileOutcome, OutcomeStatus, ParsedSuggestion

logger = logging.getLogger(__name__)


@dataclass
class MaterializationResult:
    pull: PullRequestResult
    branch: BranchRef
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def written(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.WRITTEN]

    @property
    def failed(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]


def _landed(outcome: FileOutcome) -> bool:
    """True when the branch holds the suggested content for this file."""
    return outcome.status is OutcomeStatus.WRITTEN or (
        outcome.status is OutcomeStatus.SKIPPED and outcome.detail == UP_TO_DATE
    )


def build_pr_title(source_pr: int) -> str:
    return f"AI suggested changes for PR #{source_pr}"


def build_pr_body(source_pr: int, outcomes: list[FileOutcome]) -> str:
    """List every applied file with its description, then anything that did not land."""
    applied = [o for o in outcomes if _landed(o)]
    not_applied = [o for o in outcomes if o not in applied]

    lines = [
        "## AI suggested changes\n",
        f"This pull request applies the suggestions from the AI review on #{source_pr}.\n",
        "### Changes",
    ]
    for o in applied:
        lines.append(f"- `{o.path}`: {o.description}" if o.description else f"- `{o.path}`")

    if not_applied:
        lines.append("\n### Not applied")
        for o in not_applied:
            lines.append(f"- `{o.path}` ({o.status.value}): {o.detail}")

    lines.append("\n_Review these changes carefully before merging; they were generated automatically._")
    return "\n".join(lines)


def materialize_pull_request(
    client: RepoClient,
    suggestions: list[ParsedSuggestion],
    base_branch: str,
    head_branch: str,
    source_pr: int,
    skipped: list[FileOutcome] | None = None,
) -> MaterializationResult:
    """Create ``head_branch`` off ``base_branch``, write each suggestion, and open a PR.

    ``skipped`` carries outcomes decided before materialization (for example,
    model output for an unknown file) so they show up in the PR body.
    """
    branch = ensure_branch(client, base_branch, head_branch)

    outcomes: list[FileOutcome] = []
    for i, suggestion in enumerate(suggestions, 1):
        logger.info("[%d/%d] Writing %s", i, len(suggestions), suggestion.file)
        outcomes.append(upsert_file(client, head_branch, suggestion))

    if not any(_landed(o) for o in outcomes):
        raise PullRequestCreationFailed(
            f"None of the {len(suggestions)} suggested file change(s) could be written to {head_branch}."
        )

    all_outcomes = outcomes + list(skipped or [])
    try:
        pull = client.create_pull(
            title=build_pr_title(source_pr),
            body=build_pr_body(source_pr, all_outcomes),
            head=head_branch,
            base=base_branch,
        )
    except Exception as e:
        raise PullRequestCreationFailed(f"Could not open pull request from {head_branch}: {e}") from e

    logger.info("Opened PR #%d (%s) from %s into %s.", pull.number, pull.url, head_branch, base_branch)
    return MaterializationResult(pull=pull, branch=branch, outcomes=all_outcomes)
