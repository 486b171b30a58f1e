"""Tests for picking the files a review refers to."""

import pytest

from prpilot_core.errors import NoFilesAvailable
from prpilot_core.suggestions.extract import extract_file_references, narrow_files

SNAPSHOT = {
    "src/app.py": "print('app')\n",
    "src/util.py": "def helper(): ...\n",
    "README.md": "# Project\n",
}


class TestExtractFileReferences:
    def test_single_backtick_reference(self):
        assert extract_file_references("Please rename `src/app.py`.", SNAPSHOT) == {"src/app.py"}

    def test_double_and_triple_backtick_references(self):
        text = "See ``src/util.py`` and ```README.md```."
        assert extract_file_references(text, SNAPSHOT) == {"src/util.py", "README.md"}

    def test_line_suffix_is_stripped(self):
        assert extract_file_references("Bug at `src/app.py:12`", SNAPSHOT) == {"src/app.py"}

    def test_line_and_column_suffix_is_stripped(self):
        assert extract_file_references("Bug at `src/util.py:3:14`", SNAPSHOT) == {"src/util.py"}

    def test_unknown_paths_ignored(self):
        assert extract_file_references("What about `src/other.py`?", SNAPSHOT) == set()

    def test_tokens_with_whitespace_ignored(self):
        assert extract_file_references("Call `helper() in src/app.py` later", SNAPSHOT) == set()

    def test_padded_span_is_not_a_path(self):
        assert extract_file_references("Look at ` src/app.py ` again.", SNAPSHOT) == set()

    def test_identifiers_are_not_paths(self):
        assert extract_file_references("The `helper` function is unused.", SNAPSHOT) == set()

    def test_references_are_deduplicated(self):
        text = "`src/app.py` here, `src/app.py:4` there, and ``src/app.py`` again."
        assert extract_file_references(text, SNAPSHOT) == {"src/app.py"}

    def test_fenced_blocks_do_not_match_across_lines(self):
        text = "```python\nsrc/app.py\n```"
        assert extract_file_references(text, SNAPSHOT) == set()

    def test_no_code_spans(self):
        assert extract_file_references("Looks good to me!", SNAPSHOT) == set()


class TestNarrowFiles:
    def test_keeps_only_referenced_files(self):
        result = narrow_files("Fix `src/app.py:3`", SNAPSHOT)
        assert result == {"src/app.py": SNAPSHOT["src/app.py"]}

    def test_falls_back_to_all_files_when_nothing_referenced(self):
        assert narrow_files("General comments only.", SNAPSHOT) == SNAPSHOT

    def test_falls_back_when_only_unknown_files_referenced(self):
        assert set(narrow_files("Touch `docs/guide.md`", SNAPSHOT)) == set(SNAPSHOT)

    def test_empty_snapshot_raises(self):
        with pytest.raises(NoFilesAvailable):
            narrow_files("Fix `src/app.py`", {})

    def test_result_is_a_copy(self):
        result = narrow_files("nothing specific", SNAPSHOT)
        result["new.py"] = ""
        assert "new.py" not in SNAPSHOT
