"""Failure taxonomy for the suggestion pipeline.

Structural failures raise one of the PipelineError subclasses below and
propagate to the command handler, which turns them into a user-facing comment.
Filtering outcomes (unknown file, unchanged content) are never raised; see
prpilot_core.suggestions.models.SkipReason.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every fatal pipeline failure."""


class NoFilesAvailable(PipelineError):
    """The file snapshot is empty, so there is nothing to apply suggestions to."""

    def __init__(self, message: str = "No files found in this PR."):
        super().__init__(message)


class SnapshotUnavailable(PipelineError):
    """Every candidate file failed to download."""

    def __init__(self, message: str = "Could not retrieve content for any file in this PR."):
        super().__init__(message)


class SynthesisFailed(PipelineError):
    """The model returned no output for the suggestion prompt."""

    def __init__(self, message: str = "The model returned an empty response."):
        super().__init__(message)


class NoValidSuggestions(PipelineError):
    """Parsing produced zero suggestions that change a known file."""

    def __init__(self, message: str = "No valid suggestions could be extracted from the model output."):
        super().__init__(message)


class BaseBranchNotFound(PipelineError):
    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Base branch {branch!r} not found.")


class BranchCreationFailed(PipelineError):
    def __init__(self, branch: str, reason: str):
        self.branch = branch
        super().__init__(f"Could not create branch {branch!r}: {reason}")


class PullRequestCreationFailed(PipelineError):
    pass


class ForkPullRequest(PipelineError):
    """The PR's head branch lives in another repository, which the bot cannot push to."""

    def __init__(self, head_repo: str):
        self.head_repo = head_repo
        super().__init__(f"The pull request branch lives in {head_repo}, not in this repository.")
