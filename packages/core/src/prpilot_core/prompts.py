"""Prompt text for the two model calls the bot makes.

The suggestion prompt defines the output contract the parser in
prpilot_core.suggestions.parser relies on: a ``FILE: <path>`` marker line,
an optional ``DESCRIPTION:`` line, then exactly one fenced block with the
complete new file.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from prpilot_core.gh.models import PullFile, PullInfo

FILE_MARKER = "FILE:"
DESCRIPTION_MARKER = "DESCRIPTION:"

_BACKTICK_RUN_RE = re.compile(r"`{3,}")

SUGGESTION_SYSTEM_PROMPT = """You are a careful senior engineer applying code review feedback.
You rewrite files exactly as the review asks and change nothing else."""


def fence_for(content: str) -> str:
    """Return a backtick fence longer than any backtick run inside ``content``."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN_RE.finditer(content)), default=0)
    return "`" * max(3, longest + 1)


def _fenced(content: str, info: str = "") -> str:
    fence = fence_for(content)
    return f"{fence}{info}\n{content}\n{fence}"


def build_suggestion_prompt(files: Mapping[str, str], review_text: str) -> str:
    """Bundle the candidate files and the review into one rewrite request."""
    file_sections = "\n\n".join(f"### {path}\n{_fenced(content)}" for path, content in files.items())
    return f"""Below are the current contents of the files in a pull request, followed by a code review of it.
Apply every suggestion from the review that affects these files.

## Files
{file_sections}

## Review
{_fenced(review_text)}

### Output Format:
For each file that needs to change, output:

{FILE_MARKER} <path exactly as listed above>
{DESCRIPTION_MARKER} <one short sentence describing the change>
```
<the complete updated file content>
```

Rules:
- Output the COMPLETE file content, not a diff or a fragment.
- If the file itself contains ``` fences, wrap it in a longer fence such as ````.
- Only use paths listed above. Do not invent new files.
- Omit files that do not need changes.
- Do not return any other text."""


def build_review_prompt(repo: str, pull: PullInfo, files: list[PullFile]) -> str:
    """Build the prompt for the conversational review comment posted on a new PR."""
    file_changes = "\n---\n".join(
        f"File: {f.filename}\nStatus: {f.status}\nChanges: +{f.additions} -{f.deletions}"
        + (f"\n\nDiff:\n{f.patch}" if f.patch else "")
        for f in files
    )
    return f"""You are a helpful code reviewer bot. Analyze the following pull request and provide a constructive, friendly comment.

Repository: {repo}
PR #{pull.number}: {pull.title}
Description: {pull.body or "No description provided"}

Changed files:
{file_changes}

Provide a helpful comment that:
1. Summarizes the changes
2. Highlights good practices you notice
3. Suggests improvements if applicable, referring to files as inline code such as `path/to/file.py`
4. Asks relevant questions if needed
5. Keeps a friendly, constructive tone

Your comment should be formatted in Markdown."""
