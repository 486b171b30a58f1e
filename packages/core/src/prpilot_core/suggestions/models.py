from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_DESCRIPTION = "Applied suggestions from the AI review."


@dataclass(frozen=True)
class ParsedSuggestion:
    file: str
    content: str
    description: str = DEFAULT_DESCRIPTION


class SkipReason(str, Enum):
    """Why a candidate block from the model output was not turned into a suggestion."""

    UNKNOWN_FILE = "unknown file"
    NO_CHANGE = "no change"
    MARKER_WITHOUT_FENCE = "marker without fenced block"
    UNTERMINATED_FENCE = "unterminated fenced block"


@dataclass(frozen=True)
class SkippedCandidate:
    path: str
    reason: SkipReason


@dataclass
class ParseResult:
    suggestions: list[ParsedSuggestion] = field(default_factory=list)
    skipped: list[SkippedCandidate] = field(default_factory=list)


class OutcomeStatus(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one file during materialization."""

    path: str
    status: OutcomeStatus
    detail: str = ""  # "created" / "updated", the skip reason, or the error text
    description: str = ""

    @classmethod
    def written(cls, path: str, action: str, description: str = "") -> FileOutcome:
        return cls(path, OutcomeStatus.WRITTEN, action, description)

    @classmethod
    def skipped(cls, path: str, reason: str, description: str = "") -> FileOutcome:
        return cls(path, OutcomeStatus.SKIPPED, reason, description)

    @classmethod
    def failed(cls, path: str, error: str, description: str = "") -> FileOutcome:
        return cls(path, OutcomeStatus.FAILED, error, description)
