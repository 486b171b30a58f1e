"""Top-level flows: review a PR, and apply a review as a new PR.

run_apply is the suggestion pipeline:
    capture_snapshot → narrow_files → synthesize_suggestions → parse_suggestions
                     → materialize_pull_request

handle_comment wraps it for the chat-command trigger and guarantees the
conversation gets exactly one final answer, success or failure.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from prpilot_core.errors import (
    ForkPullRequest,
    NoFilesAvailable,
    NoValidSuggestions,
    PipelineError,
    SnapshotUnavailable,
    SynthesisFailed,
)
from prpilot_core.gh.client import RemoteNotFound, RepoClient
from prpilot_core.gh.models import IssueComment
from prpilot_core.materializer import MaterializationResult, materialize_pull_request
from prpilot_core.prompts import build_review_prompt
from prpilot_core.providers.anthropic import AnthropicProvider
from prpilot_core.providers.base import BaseProvider
from prpilot_core.providers.openai import OpenAIProvider
from prpilot_core.suggestions.extract import narrow_files
from prpilot_core.suggestions.models import FileOutcome, ParsedSuggestion, SkippedCandidate
from prpilot_core.suggestions.parser import parse_suggestions
from prpilot_core.suggestions.synthesize import synthesize_suggestions
from prpilot_core.utils.code import is_code_file, is_excluded

logger = logging.getLogger(__name__)

PROCESSING_MESSAGE = "🤖 Processing your request to apply AI suggestions. This may take a moment..."
NO_REVIEW_MESSAGE = "No AI review comments found for this PR. Please wait for the AI review to complete first."
UNEXPECTED_ERROR_MESSAGE = "Error processing comment. Please check the logs for details."
REVIEW_FALLBACK_MESSAGE = (
    "Hello! 👋 I tried to analyze your PR but encountered an issue. A human reviewer will take a look soon."
)

_FAILURE_MESSAGES: dict[type[PipelineError], str] = {
    NoFilesAvailable: "❌ No files were found in this PR. Make sure the PR contains file changes.",
    SnapshotUnavailable: (
        "❌ Could not retrieve file contents. This may be due to permission issues or large binary files."
    ),
    ForkPullRequest: (
        "❌ This PR comes from a fork, so suggested changes cannot be pushed to its branch. "
        "Apply them manually or open the PR from a branch in this repository."
    ),
    SynthesisFailed: "❌ The AI did not return any suggestions. Please try again in a few minutes.",
    NoValidSuggestions: (
        "❌ The AI could not generate any valid suggestions from the review. "
        "Try being more specific in your review comments."
    ),
}


@dataclass
class ApplyResult:
    source_pr: int
    head_branch: str
    suggestions: list[ParsedSuggestion] = field(default_factory=list)
    skipped: list[SkippedCandidate] = field(default_factory=list)
    materialization: MaterializationResult | None = None  # None in shadow mode


def get_provider(config: dict) -> BaseProvider:
    model = config["model"]
    if model == "anthropic":
        return AnthropicProvider(api_key=config["anthropic_api_key"])
    if model == "openai":
        return OpenAIProvider(api_key=config["openai_api_key"])
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def make_branch_name(prefix: str, pr_number: int, now_ms: int | None = None) -> str:
    """Unique per run: concurrent runs for the same PR get distinct branches without locking."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}-{pr_number}-{now_ms}"


def failure_message(error: Exception) -> str:
    """Map a pipeline failure to the comment shown to the person who asked."""
    for error_type, message in _FAILURE_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return f"❌ Error creating PR from suggestions: {error}"


def capture_snapshot(client: RepoClient, pr_number: int, ref: str, config: dict) -> Mapping[str, str]:
    """Read every applicable file the PR touches, as of ``ref``.

    Removed files, binaries, excluded paths and files over
    ``max_chars_per_file`` are left out. The result is read-only.
    """
    exclude_patterns = config.get("exclude", [])
    max_chars = config.get("max_chars_per_file", 60000)

    candidates = [
        f.filename
        for f in client.list_pull_files(pr_number)
        if f.status != "removed" and is_code_file(f.filename) and not is_excluded(f.filename, exclude_patterns)
    ]
    if not candidates:
        raise NoFilesAvailable()

    snapshot: dict[str, str] = {}
    for path in candidates:
        try:
            entry = client.get_contents(path, ref=ref)
        except RemoteNotFound:
            logger.warning("%s is listed in PR #%d but missing at %s.", path, pr_number, ref)
            continue
        except Exception as e:
            logger.warning("Could not fetch %s at %s: %s", path, ref, e)
            continue

        if isinstance(entry, list) or entry.content is None:
            logger.warning("Skipping %s: no inline text content available.", path)
            continue
        if len(entry.content) > max_chars:
            logger.info("Skipping %s: %d chars exceeds max_chars_per_file=%d.", path, len(entry.content), max_chars)
            continue
        snapshot[path] = entry.content

    if not snapshot:
        raise SnapshotUnavailable()

    logger.info("Captured %d file(s) from PR #%d at %s.", len(snapshot), pr_number, ref)
    return MappingProxyType(snapshot)


def run_apply(
    client: RepoClient,
    provider: BaseProvider,
    pr_number: int,
    review_text: str,
    config: dict,
    shadow: bool = False,
) -> ApplyResult:
    """Apply the suggestions in ``review_text`` to PR ``pr_number`` as a new pull request.

    Files are read at the reviewed PR's head commit. The new PR targets its head
    branch, so merging it folds the suggestions into the original PR. PRs from
    forks are rejected with ForkPullRequest. In shadow mode nothing is written.
    """
    pull = client.get_pull(pr_number)
    if pull.head_repo != client.full_name:
        raise ForkPullRequest(pull.head_repo or "a deleted fork")
    # head_ref can move while we work; the head commit cannot.
    snapshot = capture_snapshot(client, pr_number, pull.head_sha, config)

    candidates = narrow_files(review_text, snapshot)
    raw = synthesize_suggestions(
        provider,
        candidates,
        review_text,
        temperature=config.get("suggestion_temperature", 0.2),
        max_tokens=config.get("suggestion_max_tokens", 16384),
    )
    parsed = parse_suggestions(raw, snapshot)

    head_branch = make_branch_name(config.get("branch_prefix", "ai-suggested-changes"), pr_number)
    result = ApplyResult(
        source_pr=pr_number,
        head_branch=head_branch,
        suggestions=parsed.suggestions,
        skipped=parsed.skipped,
    )
    if shadow:
        return result

    result.materialization = materialize_pull_request(
        client,
        parsed.suggestions,
        base_branch=pull.head_ref,
        head_branch=head_branch,
        source_pr=pr_number,
        skipped=[FileOutcome.skipped(s.path, s.reason.value) for s in parsed.skipped if s.path],
    )
    return result


def contains_command(body: str, commands: list[str]) -> bool:
    return any(command in body for command in commands)


def find_latest_bot_comment(comments: list[IssueComment], bot_username: str) -> IssueComment | None:
    bot_comments = [c for c in comments if c.author == bot_username]
    return bot_comments[-1] if bot_comments else None


def _post_final_comment(client: RepoClient, pr_number: int, body: str) -> None:
    try:
        client.create_issue_comment(pr_number, body)
    except Exception:
        logger.exception("Error posting final comment on PR #%d.", pr_number)


def handle_comment(
    client: RepoClient,
    provider: BaseProvider,
    pr_number: int,
    comment_body: str,
    comment_author: str | None,
    config: dict,
) -> str | None:
    """React to a new PR comment. Returns the final comment posted, or None if ignored.

    Only comments carrying one of the configured command tokens, written by
    someone other than the bot, trigger the pipeline.
    """
    bot_username = config.get("bot_username") or ""

    if not comment_author:
        logger.info("Comment on PR #%d has no author, skipping.", pr_number)
        return None
    if comment_author == bot_username:
        logger.info("Comment on PR #%d is from the bot, skipping.", pr_number)
        return None
    if not contains_command(comment_body or "", config.get("commands", [])):
        return None

    logger.info("Received command to apply suggestions on PR #%d from %s.", pr_number, comment_author)

    try:
        review = find_latest_bot_comment(client.list_issue_comments(pr_number), bot_username)
        if review is None:
            client.create_issue_comment(pr_number, NO_REVIEW_MESSAGE)
            return NO_REVIEW_MESSAGE
        client.create_issue_comment(pr_number, PROCESSING_MESSAGE)
    except Exception:
        logger.exception("Error preparing suggestions for PR #%d.", pr_number)
        _post_final_comment(client, pr_number, UNEXPECTED_ERROR_MESSAGE)
        return UNEXPECTED_ERROR_MESSAGE

    try:
        result = run_apply(client, provider, pr_number, review.body, config)
        pull = result.materialization.pull
        message = f"✅ Created a new PR with AI-generated changes: #{pull.number} ({pull.url})"
        logger.info("Created PR #%d with AI-generated changes for PR #%d.", pull.number, pr_number)
    except Exception as e:
        logger.exception("Error creating PR from suggestions for PR #%d.", pr_number)
        message = failure_message(e)

    _post_final_comment(client, pr_number, message)
    return message


def run_review(
    client: RepoClient,
    provider: BaseProvider,
    pr_number: int,
    config: dict,
    shadow: bool = False,
) -> str | None:
    """Generate a conversational review for PR ``pr_number`` and post it as a comment.

    Returns the review text, or None when the PR was opened by the bot itself.
    """
    pull = client.get_pull(pr_number)
    if pull.author and pull.author == config.get("bot_username"):
        logger.info("PR #%d is from the bot, skipping review.", pr_number)
        return None

    files = client.list_pull_files(pr_number)
    prompt = build_review_prompt(client.full_name, pull, files)
    body = provider.generate(prompt, temperature=config.get("review_temperature", 0.7))
    if not body or not body.strip():
        logger.error("Review generation failed for PR #%d; posting fallback comment.", pr_number)
        body = REVIEW_FALLBACK_MESSAGE

    if not shadow:
        client.create_issue_comment(pr_number, body)
        logger.info("Review comment posted on PR #%d.", pr_number)
    return body


def dispatch_event(
    client: RepoClient,
    provider: BaseProvider,
    event_name: str,
    payload: dict,
    config: dict,
) -> str | None:
    """Route a GitHub event payload to the matching flow. Unhandled events return None."""
    action = payload.get("action")

    if event_name == "pull_request" and action == "opened":
        return run_review(client, provider, payload["pull_request"]["number"], config)

    if event_name == "issue_comment" and action == "created":
        issue = payload.get("issue") or {}
        if not issue.get("pull_request"):
            logger.debug("Comment on issue #%s is not on a pull request, ignoring.", issue.get("number"))
            return None
        comment = payload.get("comment") or {}
        author = (comment.get("user") or {}).get("login")
        return handle_comment(client, provider, issue["number"], comment.get("body") or "", author, config)

    logger.info("Ignoring %s event with action %r.", event_name, action)
    return None
