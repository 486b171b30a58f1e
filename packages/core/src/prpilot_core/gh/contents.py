from __future__ import annotations

import logging

from prpilot_core.gh.client import RemoteNotFound, RepoClient
from prpilot_core.gh.models import ABSENT, RemoteEntry, RemoteFileState
from prpilot_core.suggestions.models import FileOutcome, ParsedSuggestion

logger = logging.getLogger(__name__)

UP_TO_DATE = "already up to date"


def fetch_file_state(client: RepoClient, path: str, branch: str) -> RemoteFileState:
    """Read the current blob SHA of ``path`` on ``branch``.

    The contents API usually answers with the file itself, but can answer with
    a directory listing; in that case the entry whose path matches exactly
    supplies the SHA.
    """
    try:
        result = client.get_contents(path, ref=branch)
    except RemoteNotFound:
        return ABSENT

    if isinstance(result, RemoteEntry):
        return RemoteFileState(sha=result.sha, content=result.content)

    for entry in result:
        if entry.path == path:
            return RemoteFileState(sha=entry.sha)
    logger.debug("Directory listing for %s has no exact entry; treating as absent.", path)
    return ABSENT


def _with_trailing_newline(content: str) -> str:
    newline = "\r\n" if "\r\n" in content else "\n"
    return content.rstrip("\r\n") + newline


def upsert_file(client: RepoClient, branch: str, suggestion: ParsedSuggestion) -> FileOutcome:
    """Write one suggestion to ``branch``, creating or updating as the remote state requires.

    Never raises: a failure becomes a FAILED outcome so the caller can carry on
    with the remaining files.
    """
    path = suggestion.file
    content = _with_trailing_newline(suggestion.content)

    try:
        # Always re-read: the contents API only accepts an update carrying the
        # blob's current SHA.
        state = fetch_file_state(client, path, branch)

        if state.exists and state.content == content:
            logger.info("%s on %s already has the suggested content.", path, branch)
            return FileOutcome.skipped(path, UP_TO_DATE, suggestion.description)

        if state.exists:
            client.put_file(path, content, f"Update {path} with suggested changes", branch, sha=state.sha)
            action = "updated"
        else:
            client.put_file(path, content, f"Create {path} with suggested changes", branch)
            action = "created"
    except Exception as e:
        logger.error("Failed to write %s to %s: %s", path, branch, e)
        return FileOutcome.failed(path, str(e), suggestion.description)

    logger.info("%s %s on %s.", action.capitalize(), path, branch)
    return FileOutcome.written(path, action, suggestion.description)
