from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from prpilot_core.errors import NoFilesAvailable

logger = logging.getLogger(__name__)

# An inline code span delimited by one, two or three backticks on a single line:
# `a.py`, ``a.py``, ```a.py```. The closing run must match the opening run.
_CODE_SPAN_RE = re.compile(r"(?<!`)(`{1,3})([^`\n]+?)\1(?!`)")

# Trailing ":line" or ":line:col" as in `src/app.py:42:7`.
_LOCATION_SUFFIX_RE = re.compile(r"(?::\d+){1,2}$")


def extract_file_references(review_text: str, snapshot: Mapping[str, str]) -> set[str]:
    """Return the snapshot paths the review text mentions inside inline code spans."""
    found: set[str] = set()
    for match in _CODE_SPAN_RE.finditer(review_text):
        span = match.group(2)
        if any(ch.isspace() for ch in span):
            continue
        token = _LOCATION_SUFFIX_RE.sub("", span)
        if not token:
            continue
        if token in snapshot:
            found.add(token)
    return found


def narrow_files(review_text: str, snapshot: Mapping[str, str]) -> dict[str, str]:
    """Pick the files the model should consider rewriting.

    Files referenced in the review win; a review that names no known file gets
    the whole snapshot, so there is always at least one candidate.
    """
    if not snapshot:
        raise NoFilesAvailable()

    referenced = extract_file_references(review_text, snapshot)
    if not referenced:
        logger.info("Review references no known file; considering all %d file(s).", len(snapshot))
        return dict(snapshot)

    logger.info("Review references %d of %d file(s): %s", len(referenced), len(snapshot), sorted(referenced))
    return {path: content for path, content in snapshot.items() if path in referenced}
