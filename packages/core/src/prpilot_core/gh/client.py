"""The repository operations the bot needs, behind one explicit interface.

Every pipeline step depends on RepoClient, never on PyGithub directly.
GithubRepoClient is the production implementation; tests use an in-memory
fake. A client is built once per repository and never mutated afterwards, so
it can be shared read-only between pipeline runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from github import Auth, Github, GithubException, UnknownObjectException

from prpilot_core.gh.models import IssueComment, PullFile, PullInfo, PullRequestResult, RemoteEntry

logger = logging.getLogger(__name__)

# GitHub answers a duplicate create-ref with 422 and this message. Matching on
# both status and message keeps other 422s (bad SHA, invalid name) fatal.
_REF_EXISTS_STATUS = 422
_REF_EXISTS_MESSAGE = "reference already exists"


class RemoteNotFound(Exception):
    """The requested path or ref does not exist on the remote."""

    def __init__(self, path: str, ref: str | None = None):
        self.path = path
        self.ref = ref
        where = f" at {ref}" if ref else ""
        super().__init__(f"{path} not found{where}")


class RefAlreadyExists(Exception):
    """create_ref lost a race: the ref was created after we checked for it."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Reference refs/heads/{branch} already exists")


class RepoClient(ABC):
    """Authenticated access to one repository."""

    full_name: str

    @abstractmethod
    def get_branch_sha(self, branch: str) -> str | None:
        """Return the commit SHA at the tip of ``branch``, or None if it does not exist."""

    @abstractmethod
    def create_ref(self, branch: str, sha: str) -> None:
        """Create ``refs/heads/<branch>`` at ``sha``.

        Raises RefAlreadyExists when the ref is already present.
        """

    @abstractmethod
    def get_contents(self, path: str, ref: str) -> RemoteEntry | list[RemoteEntry]:
        """Fetch ``path`` at ``ref``.

        Returns a single entry for a file or a list for a directory listing.
        Raises RemoteNotFound when nothing exists at that path.
        """

    @abstractmethod
    def put_file(self, path: str, content: str, message: str, branch: str, sha: str | None = None) -> str:
        """Create (``sha`` is None) or update a file on ``branch``. Returns the new commit SHA."""

    @abstractmethod
    def create_pull(self, title: str, body: str, head: str, base: str) -> PullRequestResult:
        """Open a pull request from ``head`` into ``base``."""

    @abstractmethod
    def list_issue_comments(self, number: int) -> list[IssueComment]:
        """Return the conversation comments on an issue or PR, oldest first."""

    @abstractmethod
    def create_issue_comment(self, number: int, body: str) -> None:
        """Post a conversation comment on an issue or PR."""

    @abstractmethod
    def get_pull(self, number: int) -> PullInfo:
        """Return the head/base metadata of a pull request."""

    @abstractmethod
    def list_pull_files(self, number: int) -> list[PullFile]:
        """Return the files changed by a pull request."""


def get_repo(repo_name: str, token: str):
    return Github(auth=Auth.Token(token)).get_repo(repo_name)


def _error_message(exc: GithubException) -> str:
    data = exc.data if isinstance(exc.data, dict) else {}
    return str(data.get("message") or exc)


class GithubRepoClient(RepoClient):
    """RepoClient backed by a PyGithub Repository object.

    PyGithub base64-encodes file content for the contents API, so put_file
    takes plain text.
    """

    def __init__(self, repo):
        self._repo = repo
        self.full_name = repo.full_name

    @classmethod
    def from_token(cls, repo_name: str, token: str) -> GithubRepoClient:
        return cls(get_repo(repo_name, token))

    def get_branch_sha(self, branch: str) -> str | None:
        try:
            # Exact-name lookup; the git refs API prefix-matches.
            return self._repo.get_branch(branch).commit.sha
        except UnknownObjectException:
            return None

    def create_ref(self, branch: str, sha: str) -> None:
        try:
            self._repo.create_git_ref(ref=f"refs/heads/{branch}", sha=sha)
        except GithubException as e:
            if e.status == _REF_EXISTS_STATUS and _REF_EXISTS_MESSAGE in _error_message(e).lower():
                raise RefAlreadyExists(branch) from e
            raise

    def get_contents(self, path: str, ref: str) -> RemoteEntry | list[RemoteEntry]:
        try:
            result = self._repo.get_contents(path, ref=ref)
        except UnknownObjectException:
            raise RemoteNotFound(path, ref) from None

        if isinstance(result, list):
            return [RemoteEntry(path=item.path, sha=item.sha, kind=item.type) for item in result]

        content = None
        # Files over 1 MB come back with encoding "none" and no inline content.
        if result.encoding == "base64":
            content = result.decoded_content.decode("utf-8", errors="replace")
        return RemoteEntry(path=result.path, sha=result.sha, kind=result.type, content=content)

    def put_file(self, path: str, content: str, message: str, branch: str, sha: str | None = None) -> str:
        if sha is None:
            result = self._repo.create_file(path, message, content, branch=branch)
        else:
            result = self._repo.update_file(path, message, content, sha, branch=branch)
        return result["commit"].sha

    def create_pull(self, title: str, body: str, head: str, base: str) -> PullRequestResult:
        pr = self._repo.create_pull(title=title, body=body, head=head, base=base)
        return PullRequestResult(number=pr.number, url=pr.html_url, head_branch=head, base_branch=base)

    def list_issue_comments(self, number: int) -> list[IssueComment]:
        return [
            IssueComment(id=c.id, author=c.user.login if c.user else None, body=c.body or "")
            for c in self._repo.get_issue(number).get_comments()
        ]

    def create_issue_comment(self, number: int, body: str) -> None:
        self._repo.get_issue(number).create_comment(body)

    def get_pull(self, number: int) -> PullInfo:
        pr = self._repo.get_pull(number)
        return PullInfo(
            number=pr.number,
            title=pr.title or "",
            body=pr.body or "",
            author=pr.user.login if pr.user else None,
            head_ref=pr.head.ref,
            head_sha=pr.head.sha,
            base_ref=pr.base.ref,
            head_repo=pr.head.repo.full_name if pr.head.repo else None,
        )

    def list_pull_files(self, number: int) -> list[PullFile]:
        return [
            PullFile(
                filename=f.filename,
                status=f.status,
                additions=f.additions,
                deletions=f.deletions,
                patch=f.patch,
            )
            for f in self._repo.get_pull(number).get_files()
        ]
