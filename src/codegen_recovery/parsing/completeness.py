"""Heuristic completeness analysis for recovered files.

Decides whether a file's content looks like it ended naturally or was cut
off mid-stream. The checks run in a fixed order and the first decisive rule
wins:

1. Too short: stripped content under ``min_complete_chars`` is incomplete.
2. Cut-off suffix: a pattern from `parsing.patterns` matches the tail, or the
   final line leaves a string or template literal open.
3. Extension rules: JSON must parse (final), markup must balance braces and
   tags, everything else needs a proper ending.
4. Long-file escape hatch: long code with balanced-enough braces and a
   plausible last character is accepted even when rule 3 failed.

The escape hatch is approximate: it accepts some genuinely truncated long
files whose last line happens to end on a plausible character.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import posixpath
from typing import TYPE_CHECKING

from codegen_recovery import constants
from codegen_recovery.parsing import patterns

if TYPE_CHECKING:
    from codegen_recovery.config.types import FrozenConfig

log = logging.getLogger(__name__)

# Tokens after which a single quote opens a string rather than an apostrophe
_EXPRESSION_LEADERS = frozenset("=(,:[{?+!&|;")
_EXPRESSION_KEYWORDS = frozenset({"return", "case"})


@dataclasses.dataclass(frozen=True, slots=True)
class CompletenessVerdict:
    """Outcome of one analysis with the rule that decided it."""

    complete: bool
    reason: str

    def __bool__(self) -> bool:
        return self.complete


class CompletenessAnalyzer:
    """Pure, deterministic completeness checks with configurable thresholds."""

    __slots__ = ("brace_tolerance", "long_file_threshold", "min_complete_chars")

    def __init__(
        self,
        *,
        min_complete_chars: int = constants.MIN_COMPLETE_CHARS,
        long_file_threshold: int = constants.LONG_FILE_THRESHOLD,
        brace_tolerance: int = constants.BRACE_TOLERANCE,
    ) -> None:
        """Initialize with the analyzer thresholds.

        Args:
            min_complete_chars: Shorter stripped content is always incomplete.
            long_file_threshold: Content longer than this may use the escape hatch.
            brace_tolerance: Allowed ``{``/``}`` imbalance for markup and long files.
        """
        self.min_complete_chars = min_complete_chars
        self.long_file_threshold = long_file_threshold
        self.brace_tolerance = brace_tolerance

    @classmethod
    def from_config(cls, config: FrozenConfig) -> CompletenessAnalyzer:
        return cls(
            min_complete_chars=config.min_complete_chars,
            long_file_threshold=config.long_file_threshold,
            brace_tolerance=config.brace_tolerance,
        )

    def analyze(self, path: str, content: str) -> CompletenessVerdict:
        """Classify `content` of the file at `path`."""
        text = content.strip()
        if len(text) < self.min_complete_chars:
            return CompletenessVerdict(False, "too_short")

        ext = posixpath.splitext(path.lower())[1]
        prose = ext in patterns.PROSE_EXTENSIONS

        cut_off = self._cut_off_reason(text, prose=prose)
        if cut_off is not None:
            return CompletenessVerdict(False, cut_off)

        if ext in patterns.JSON_EXTENSIONS:
            return self._check_json(text)

        if ext in patterns.MARKUP_EXTENSIONS:
            verdict = self._check_markup(text)
        else:
            verdict = self._check_ending(text, prose=prose)

        if not verdict.complete and self._escape_hatch(text):
            log.debug(
                "Treating long file as complete: %s (%d chars)", path, len(text)
            )
            return CompletenessVerdict(True, "long_file_escape_hatch")
        return verdict

    def is_complete(self, path: str, content: str) -> bool:
        return self.analyze(path, content).complete

    # --- Rules ---

    def _cut_off_reason(self, text: str, *, prose: bool) -> str | None:
        tail = text[-constants.SUFFIX_WINDOW :]
        for pattern in patterns.INCOMPLETE_SUFFIXES:
            if pattern.regex.search(tail):
                return f"suffix:{pattern.name}"
        if prose:
            return None
        last_line = tail.rsplit("\n", 1)[-1]
        if _count_unescaped(last_line, '"') % 2:
            return "suffix:unterminated_string"
        if _count_unescaped(text, "`") % 2:
            return "suffix:unterminated_template"
        return None

    def _check_json(self, text: str) -> CompletenessVerdict:
        try:
            json.loads(text)
        except ValueError:
            return CompletenessVerdict(False, "json_invalid")
        return CompletenessVerdict(True, "json_valid")

    def _check_markup(self, text: str) -> CompletenessVerdict:
        braces, tags = _markup_balance(text)
        if braces is None or tags is None:
            return CompletenessVerdict(False, "unterminated_tag")
        if abs(braces) > self.brace_tolerance:
            return CompletenessVerdict(False, "unbalanced_braces")
        if tags != 0:
            return CompletenessVerdict(False, "unbalanced_tags")
        return CompletenessVerdict(True, "markup_balanced")

    def _check_ending(self, text: str, *, prose: bool) -> CompletenessVerdict:
        tail = text[-constants.SUFFIX_WINDOW :]
        ok = patterns.PROPER_ENDING.search(tail) is not None
        if not ok and prose:
            ok = patterns.PROSE_ENDING.search(tail) is not None
        return CompletenessVerdict(ok, "proper_ending" if ok else "no_proper_ending")

    def _escape_hatch(self, text: str) -> bool:
        if len(text) <= self.long_file_threshold:
            return False
        if not patterns.CODE_STRUCTURE.search(text):
            return False
        if abs(text.count("{") - text.count("}")) > self.brace_tolerance:
            return False
        return text[-1] in patterns.ESCAPE_HATCH_FINAL_CHARS


def _count_unescaped(text: str, quote: str) -> int:
    count = 0
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == quote:
            count += 1
    return count


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$."


def _markup_balance(text: str) -> tuple[int | None, int | None]:
    """Return ``(brace_delta, open_tag_delta)`` for markup content.

    Double-quoted strings and template literals are skipped. A single quote
    starts a string only in expression position and only when it closes on
    the same line; any other single quote is an apostrophe in markup text.
    Returns ``(None, None)`` when a tag opener is never closed with ``>``.
    """
    braces = 0
    tags = 0
    in_string = False
    in_template = False
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if escaped:
            escaped = False
        elif (in_string or in_template) and ch == "\\":
            escaped = True
        elif in_string:
            if ch == '"':
                in_string = False
        elif in_template:
            if ch == "`":
                in_template = False
        elif ch == '"':
            in_string = True
        elif ch == "`":
            in_template = True
        elif ch == "'" and _opens_expression(text, i):
            end = _single_quote_end(text, i + 1)
            if end is not None:
                i = end
        elif ch == "{":
            braces += 1
        elif ch == "}":
            braces -= 1
        elif ch == "<" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "/":
                # </Tag> or the fragment closer </>
                tags -= 1
            elif nxt == ">":
                tags += 1
            elif nxt.isalpha() and not (i > 0 and _is_ident_char(text[i - 1])):
                end = _tag_end(text, i + 1)
                if end is None:
                    return None, None
                name_end = i + 1
                while name_end < end and (
                    text[name_end].isalnum() or text[name_end] in "-_.:"
                ):
                    name_end += 1
                name = text[i + 1 : name_end].lower()
                # <T,> and <T extends U> are generic parameters, not elements
                generic = text.startswith((",", " extends "), name_end)
                self_closing = text[end - 1] == "/"
                void = name in patterns.HTML_VOID_ELEMENTS
                if not (generic or self_closing or void):
                    tags += 1
                i = end
        i += 1
    return braces, tags


def _opens_expression(text: str, index: int) -> bool:
    """True when the character at `index` sits where a JS value can start."""
    i = index - 1
    while i >= 0 and text[i] in " \t":
        i -= 1
    if i < 0 or text[i] == "\n" or text[i] in _EXPRESSION_LEADERS:
        return True
    end = i + 1
    while i >= 0 and _is_ident_char(text[i]):
        i -= 1
    return text[i + 1 : end] in _EXPRESSION_KEYWORDS


def _single_quote_end(text: str, start: int) -> int | None:
    """Index of the quote closing a single-quoted literal on the same line."""
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 1
        elif ch == "\n":
            return None
        elif ch == "'":
            return i
        i += 1
    return None


def _tag_end(text: str, start: int) -> int | None:
    """Index of the ``>`` closing the tag that begins at `start`, if any.

    Attribute expressions in braces and quoted attribute values may contain
    ``>`` and are skipped.
    """
    depth = 0
    quote = ""
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = ""
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == ">" and depth <= 0:
            return i
        i += 1
    return None


_DEFAULT_ANALYZER = CompletenessAnalyzer()


def analyze(path: str, content: str) -> CompletenessVerdict:
    """Analyze with default thresholds."""
    return _DEFAULT_ANALYZER.analyze(path, content)


def is_complete(path: str, content: str) -> bool:
    """Return True when `content` looks like a whole file for `path`."""
    return _DEFAULT_ANALYZER.analyze(path, content).complete
