"""Static heuristic tables used by the completeness analyzer.

Everything here is data: compiled regexes and extension sets. The tables are
module-level constants so they are compiled once and shared read-only across
threads. Suffix patterns are anchored with ``\\Z`` and are only ever applied
to a short tail of the content.
"""

from __future__ import annotations

import re
from typing import NamedTuple


class SuffixPattern(NamedTuple):
    """A named "content was cut off here" pattern."""

    name: str
    regex: re.Pattern[str]


INCOMPLETE_SUFFIXES: tuple[SuffixPattern, ...] = (
    SuffixPattern("trailing_comma", re.compile(r",\s*\Z")),
    SuffixPattern("trailing_ellipsis", re.compile(r"\.\.\.\s*\Z")),
    SuffixPattern(
        "unterminated_tag", re.compile(r"<[A-Za-z][\w.:-]*(?:\s[^<>]*)?\Z")
    ),
    SuffixPattern("open_call", re.compile(r"\(\s*\Z")),
    SuffixPattern("open_object", re.compile(r"\{\s*\Z")),
    SuffixPattern("open_array", re.compile(r"\[\s*\Z")),
    SuffixPattern(
        "dangling_import",
        re.compile(r"\bimport\b[^\n]*\bfrom\s*(?:[\"'][^\"'\n]*)?\Z"),
    ),
)

# --- Endings ---

# `}` `;` `)` `]` `/>`, a closing tag, or a closing quote/backtick
PROPER_ENDING = re.compile(r"(?:[}\];)'\"`]|/>|</[A-Za-z][\w.:-]*\s*>)\s*\Z")

# Prose may also end on sentence punctuation or a closing fence
PROSE_ENDING = re.compile(r"(?:[.!?:)\]*_>'\"`]|```)\s*\Z")

# --- Long-file escape hatch ---

CODE_STRUCTURE = re.compile(r"function\s+|const\s+\w+\s*=|=>\s*\{|class\s+\w+|<\w+")
ESCAPE_HATCH_FINAL_CHARS = frozenset("}]);'\"`>")

# --- Extension groups ---

JSON_EXTENSIONS = frozenset({".json"})
MARKUP_EXTENSIONS = frozenset(
    {".tsx", ".jsx", ".vue", ".svelte", ".html", ".htm", ".xml", ".svg"}
)
PROSE_EXTENSIONS = frozenset({".md", ".mdx", ".txt", ".rst"})

# HTML elements that never take a closing tag
HTML_VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)
