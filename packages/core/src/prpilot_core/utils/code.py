"""Helpers deciding which pull-request files the model may rewrite."""

import fnmatch

# Files that are never sent to the model: binaries cannot round-trip through a
# text prompt and lockfiles are regenerated by tools, not edited by hand.
NON_TEXT_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".zip",
    ".tar",
    ".gz",
    ".7z",
    ".jar",
    ".so",
    ".dll",
    ".exe",
    ".pyc",
    ".lock",  # e.g. package-lock.json, poetry.lock
}


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_TEXT_EXTENSIONS)


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.min.js"
    - Directory names/prefixes: "migrations/", "vendor" (matches any file within that tree)
    """
    basename = filename.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern) or fnmatch.fnmatch(basename, pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False
