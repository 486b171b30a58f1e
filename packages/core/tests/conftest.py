"""Shared fixtures: an in-memory RepoClient and a canned-response provider."""

import hashlib

import pytest

from prpilot_core.gh.client import RefAlreadyExists, RemoteNotFound, RepoClient
from prpilot_core.gh.models import IssueComment, PullFile, PullInfo, PullRequestResult, RemoteEntry
from prpilot_core.providers.base import BaseProvider

BASE_SHA = "a" * 40


def blob_sha(content: str) -> str:
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


class FakeRepoClient(RepoClient):
    """Keeps one {path: content} dict per branch and records every mutation."""

    def __init__(self, files=None, pull_files=None, comments=None, base_branch="feature"):
        self.full_name = "owner/repo"
        self.branches = {base_branch: BASE_SHA}
        self.files = {base_branch: dict(files or {})}
        self.commits = {BASE_SHA: dict(files or {})}
        self.pull = PullInfo(
            number=7,
            title="Add feature",
            body="Adds the feature.",
            author="alice",
            head_ref=base_branch,
            head_sha=BASE_SHA,
            base_ref="main",
            head_repo="owner/repo",
        )
        self.pull_files = pull_files
        self.comments = list(comments or [])
        self.fail_writes: set[str] = set()
        self.fail_create_pull = False
        self.created_refs: list[tuple[str, str]] = []
        self.writes: list[dict] = []
        self.pulls: list[dict] = []
        self.posted: list[str] = []

    # -- refs -------------------------------------------------------------

    def get_branch_sha(self, branch):
        return self.branches.get(branch)

    def create_ref(self, branch, sha):
        if branch in self.branches:
            raise RefAlreadyExists(branch)
        self.branches[branch] = sha
        self.files[branch] = dict(self.commits[sha])
        self.created_refs.append((branch, sha))

    # -- contents ---------------------------------------------------------

    def get_contents(self, path, ref):
        tree = self.files[ref] if ref in self.files else self.commits.get(ref, {})
        if path not in tree:
            raise RemoteNotFound(path, ref)
        content = tree[path]
        return RemoteEntry(path=path, sha=blob_sha(content), content=content)

    def put_file(self, path, content, message, branch, sha=None):
        self.writes.append({"path": path, "content": content, "message": message, "branch": branch, "sha": sha})
        if path in self.fail_writes:
            raise RuntimeError(f"500 Server Error writing {path}")
        tree = self.files[branch]
        if sha is None and path in tree:
            raise RuntimeError('422 {"message": "Invalid request. \\"sha\\" wasn\'t supplied."}')
        if sha is not None and blob_sha(tree.get(path, "")) != sha:
            raise RuntimeError(f"409 {path} does not match {sha}")
        tree[path] = content
        self.branches[branch] = blob_sha(branch + str(len(self.writes)))
        self.commits[self.branches[branch]] = dict(tree)
        return self.branches[branch]

    # -- pulls and comments ----------------------------------------------

    def create_pull(self, title, body, head, base):
        if self.fail_create_pull or self.files[head] == self.files[base]:
            raise RuntimeError(f"422 Validation Failed: No commits between {base} and {head}")
        number = 100 + len(self.pulls)
        self.pulls.append({"title": title, "body": body, "head": head, "base": base})
        return PullRequestResult(
            number=number,
            url=f"https://github.com/owner/repo/pull/{number}",
            head_branch=head,
            base_branch=base,
        )

    def list_issue_comments(self, number):
        return list(self.comments)

    def create_issue_comment(self, number, body):
        self.posted.append(body)

    def get_pull(self, number):
        return self.pull

    def list_pull_files(self, number):
        if self.pull_files is not None:
            return list(self.pull_files)
        return [PullFile(filename=path, status="modified") for path in self.files[self.pull.head_ref]]


class StubProvider(BaseProvider):
    """Returns a fixed response and remembers what it was asked."""

    def __init__(self, response=""):
        self.response = response
        self.calls: list[dict] = []

    def _call_api(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append(
            {"system": system_prompt, "prompt": user_prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        return self.response


def bot_comment(body, author="github-actions[bot]", comment_id=1):
    return IssueComment(id=comment_id, author=author, body=body)


@pytest.fixture
def config():
    return {
        "model": "anthropic",
        "anthropic_api_key": "key",
        "openai_api_key": None,
        "github_token": "tok",
        "bot_username": "github-actions[bot]",
        "branch_prefix": "ai-suggested-changes",
        "commands": ["/apply-suggestions", "/create-pr-from-suggestions"],
        "exclude": [],
        "max_chars_per_file": 60000,
        "suggestion_temperature": 0.2,
        "suggestion_max_tokens": 16384,
        "review_temperature": 0.7,
    }
