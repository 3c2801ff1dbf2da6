"""Path normalisation and filtering for recovered files."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable

from codegen_recovery import constants

_PATH_SEGMENT = r"[\w@$~+\-\[\]().]+"
_BARE_PATH = re.compile(rf"^{_PATH_SEGMENT}(?:/{_PATH_SEGMENT})*$")
_HAS_EXTENSION = re.compile(r"\.[A-Za-z0-9]{1,12}$")

# Decorations around a path written on its own line before a code fence,
# e.g. "**src/App.tsx**", "### `src/App.tsx`:", "File: src/App.tsx"
_LABEL_LEAD = re.compile(
    r"^[\s#>*`'\"-]*(?:(?:file(?:name)?|path)\s*:\s*)?[\s*`'\"]*", re.I
)
_LABEL_TRAIL = re.compile(r"[\s*`'\":]*$")

# First line inside a code block naming the file
_HEADER_COMMENT = re.compile(
    r"^\s*(?://|#|/\*|<!--)?\s*(?:file(?:name)?|path)\s*:\s*(\S+?)\s*(?:\*/|-->)?\s*$",
    re.I,
)


def normalize_path(raw: str) -> str | None:
    """Return a clean project-relative path, or None when `raw` is not usable.

    Backslashes become slashes; leading ``./`` and ``/`` are removed. Paths
    that escape the project root are rejected.
    """
    text = raw.strip().strip("\"'`").replace("\\", "/")
    if not text or "://" in text or any(ch.isspace() for ch in text):
        return None
    text = posixpath.normpath(text.lstrip("/"))
    if text in (".", "") or text == ".." or text.startswith("../"):
        return None
    return text


def looks_like_path(key: str) -> bool:
    """True for object keys that plausibly name a file (contain ``.`` or ``/``)."""
    return (
        ("." in key or "/" in key)
        and len(key) <= 512
        and "://" not in key
        and not any(ch.isspace() for ch in key)
    )


def is_ignored(
    path: str,
    prefixes: Iterable[str] = constants.IGNORED_PATH_PREFIXES,
    names: Iterable[str] = constants.IGNORED_FILE_NAMES,
) -> bool:
    """True for dependency, build output and lock files."""
    for prefix in prefixes:
        if path.startswith(prefix) or f"/{prefix}" in path:
            return True
    return posixpath.basename(path) in set(names)


def path_from_label(line: str) -> str | None:
    """Extract a path from a standalone label line preceding a code fence."""
    text = _LABEL_TRAIL.sub("", _LABEL_LEAD.sub("", line))
    if not text or not _BARE_PATH.match(text):
        return None
    if not _HAS_EXTENSION.search(posixpath.basename(text)):
        return None
    return normalize_path(text)


def path_from_header(line: str) -> str | None:
    """Extract a path from a ``// File: x`` style first line of a code block."""
    match = _HEADER_COMMENT.match(line)
    if not match:
        return None
    candidate = match.group(1)
    if not _BARE_PATH.match(candidate):
        return None
    return normalize_path(candidate)


class PathFilter:
    """Normalises candidate paths and drops ignored ones."""

    __slots__ = ("names", "prefixes")

    def __init__(
        self,
        prefixes: Iterable[str] = constants.IGNORED_PATH_PREFIXES,
        names: Iterable[str] = constants.IGNORED_FILE_NAMES,
    ) -> None:
        self.prefixes = tuple(prefixes)
        self.names = frozenset(names)

    def accept(self, raw: str) -> str | None:
        """Return the normalised path, or None when it is unusable or ignored."""
        path = normalize_path(raw)
        if path is None or is_ignored(path, self.prefixes, self.names):
            return None
        return path


DEFAULT_PATH_FILTER = PathFilter()
