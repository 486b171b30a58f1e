"""Recover per-file rewrites from free-form model output.

The model is asked to answer with blocks shaped like::

    FILE: src/app.py
    DESCRIPTION: Guard against a missing config file.
    ```python
    ...complete file...
    ```

A line scanner with three states reads them:

    SEEKING      looking for a FILE: marker
    AWAIT_FENCE  marker seen; blank lines and one DESCRIPTION: line may follow
    IN_FENCE     collecting lines until a matching closing fence

A marker followed by anything other than a fence, and a fence still open at
the end of the text, are reported as skipped candidates instead of silently
swallowing the text that follows.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from prpilot_core.errors import NoValidSuggestions
from prpilot_core.suggestions.models import (
    DEFAULT_DESCRIPTION,
    ParsedSuggestion,
    ParseResult,
    SkippedCandidate,
    SkipReason,
)

logger = logging.getLogger(__name__)

# Models like to decorate the marker: "**FILE: a.py**", "### FILE: `a.py`".
_MARKER_RE = re.compile(r"^[#>*_\s]*FILE:\s*(?P<path>.*)$")
_DESCRIPTION_RE = re.compile(r"^[*_\s]*DESCRIPTION:\s*(?P<text>.*)$")
_FENCE_OPEN_RE = re.compile(r"^\s*(?P<fence>`{3,}|~{3,})(?P<info>[^`]*)$")


class _State(Enum):
    SEEKING = "seeking"
    AWAIT_FENCE = "await_fence"
    IN_FENCE = "in_fence"


@dataclass(frozen=True)
class RawBlock:
    path: str
    content: str
    description: str | None = None


def _clean_path(raw: str) -> str:
    return raw.strip().strip("*_`").strip()


def _closes(line: str, fence: str) -> bool:
    """A closing fence uses the opening character, at least as many times, and nothing else."""
    stripped = line.strip()
    return len(stripped) >= len(fence) and stripped == fence[0] * len(stripped)


def scan_blocks(text: str) -> tuple[list[RawBlock], list[SkippedCandidate]]:
    """Split model output into marker/fence blocks, in order of appearance."""
    blocks: list[RawBlock] = []
    anomalies: list[SkippedCandidate] = []

    state = _State.SEEKING
    path = ""
    description: str | None = None
    fence = ""
    body: list[str] = []

    # Split on "\n" only; body lines keep their "\r", form feeds and other separators.
    for raw_line in text.split("\n"):
        line = raw_line.rstrip("\r")
        if state is _State.IN_FENCE:
            if _closes(line, fence):
                blocks.append(RawBlock(path, "\n".join(body), description))
                state = _State.SEEKING
            else:
                body.append(raw_line)
            continue

        if state is _State.AWAIT_FENCE:
            opening = _FENCE_OPEN_RE.match(line)
            if opening:
                fence = opening.group("fence")
                body = []
                state = _State.IN_FENCE
                continue
            if not line.strip():
                continue
            desc = _DESCRIPTION_RE.match(line)
            if desc and description is None:
                description = desc.group("text").strip().strip("*_").strip() or None
                continue
            anomalies.append(SkippedCandidate(path, SkipReason.MARKER_WITHOUT_FENCE))
            state = _State.SEEKING
            # Fall through: this line may itself be the next marker.

        marker = _MARKER_RE.match(line)
        if marker:
            path = _clean_path(marker.group("path"))
            description = None
            state = _State.AWAIT_FENCE

    if state is _State.AWAIT_FENCE:
        anomalies.append(SkippedCandidate(path, SkipReason.MARKER_WITHOUT_FENCE))
    elif state is _State.IN_FENCE:
        anomalies.append(SkippedCandidate(path, SkipReason.UNTERMINATED_FENCE))

    return blocks, anomalies


def parse_suggestions(raw: str, snapshot: Mapping[str, str]) -> ParseResult:
    """Turn model output into suggestions that change a known file.

    Blocks for paths outside ``snapshot`` and blocks whose content matches the
    original (ignoring surrounding whitespace) are skipped and logged. If the
    same file appears twice, the later block wins.

    Raises NoValidSuggestions when nothing is left.
    """
    blocks, skipped = scan_blocks(raw)
    by_path: dict[str, ParsedSuggestion] = {}

    for block in blocks:
        path = block.path.strip()
        content = block.content.strip()

        if path not in snapshot:
            logger.warning("Skipping suggestion for unknown file %r.", path)
            skipped.append(SkippedCandidate(path, SkipReason.UNKNOWN_FILE))
            continue
        if content == snapshot[path].strip():
            logger.info("Skipping suggestion for %s: content is unchanged.", path)
            skipped.append(SkippedCandidate(path, SkipReason.NO_CHANGE))
            continue

        if path in by_path:
            logger.debug("Model output contains %s more than once; keeping the last block.", path)
            del by_path[path]
        by_path[path] = ParsedSuggestion(
            file=path,
            content=content,
            description=block.description or DEFAULT_DESCRIPTION,
        )

    for anomaly in skipped:
        if anomaly.reason in (SkipReason.MARKER_WITHOUT_FENCE, SkipReason.UNTERMINATED_FENCE):
            logger.warning("Ignoring malformed block for %r: %s.", anomaly.path, anomaly.reason.value)

    suggestions = list(by_path.values())
    if not suggestions:
        raise NoValidSuggestions()

    logger.info("Parsed %d suggestion(s), skipped %d candidate(s).", len(suggestions), len(skipped))
    return ParseResult(suggestions=suggestions, skipped=skipped)
