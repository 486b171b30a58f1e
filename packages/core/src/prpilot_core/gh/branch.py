from __future__ import annotations

import logging

from prpilot_core.errors import BaseBranchNotFound, BranchCreationFailed
from prpilot_core.gh.client import RefAlreadyExists, RepoClient
from prpilot_core.gh.models import BranchRef

logger = logging.getLogger(__name__)


def ensure_branch(client: RepoClient, base_branch: str, head_branch: str) -> BranchRef:
    """Make sure ``head_branch`` exists, forking it from ``base_branch`` if needed.

    An existing head branch is reused without checking where it points, and
    its tip is never moved. That makes repeated calls with the same name safe.
    """
    base_sha = client.get_branch_sha(base_branch)
    if base_sha is None:
        raise BaseBranchNotFound(base_branch)

    if client.get_branch_sha(head_branch) is not None:
        logger.info("Branch %s already exists on %s; reusing it.", head_branch, client.full_name)
        return BranchRef(name=head_branch, base_sha=base_sha, created=False)

    try:
        client.create_ref(head_branch, base_sha)
    except RefAlreadyExists:
        # Another run created it between our lookup and our create.
        logger.info("Branch %s was created concurrently; reusing it.", head_branch)
        return BranchRef(name=head_branch, base_sha=base_sha, created=False)
    except Exception as e:
        raise BranchCreationFailed(head_branch, str(e)) from e

    logger.info("Created branch %s from %s at %s.", head_branch, base_branch, base_sha[:7])
    return BranchRef(name=head_branch, base_sha=base_sha, created=True)
