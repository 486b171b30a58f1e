"""Plain data returned by RepoClient implementations.

Keeping these free of PyGithub types means the pipeline and its tests never
touch a live GitHub object.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteEntry:
    """One item from the contents API: a file, or one entry of a directory listing."""

    path: str
    sha: str
    kind: str = "file"  # "file" | "dir" | "symlink" | "submodule"
    content: str | None = None  # only populated for single-file fetches


@dataclass(frozen=True)
class RemoteFileState:
    """Whether a path exists on a branch, and at which blob SHA."""

    sha: str | None = None
    content: str | None = None

    @property
    def exists(self) -> bool:
        return self.sha is not None


ABSENT = RemoteFileState()


@dataclass(frozen=True)
class BranchRef:
    name: str
    base_sha: str
    created: bool = False  # False when an existing branch was reused


@dataclass(frozen=True)
class PullRequestResult:
    number: int
    url: str
    head_branch: str
    base_branch: str


@dataclass(frozen=True)
class PullInfo:
    number: int
    title: str
    body: str
    author: str | None
    head_ref: str
    head_sha: str
    base_ref: str
    head_repo: str | None = None  # full name of the repository holding head_ref


@dataclass(frozen=True)
class PullFile:
    filename: str
    status: str  # "added" | "modified" | "removed" | "renamed" | ...
    additions: int = 0
    deletions: int = 0
    patch: str | None = None


@dataclass(frozen=True)
class IssueComment:
    id: int
    author: str | None
    body: str
