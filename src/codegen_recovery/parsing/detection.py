"""Dialect detection for raw model responses.

Detection only looks at a bounded prefix of the response, so the cost is
constant no matter how long the response is. Envelope detection is
conservative: a delimited response that happens to contain JSON file bodies
(``package.json`` inside a FILE block, say) must not be mistaken for an
envelope.
"""

from __future__ import annotations

import re

from codegen_recovery import constants
from codegen_recovery.core.types import Dialect
from codegen_recovery.parsing.repair import (
    split_plan_preamble,
    strip_fence,
    strip_invisible_prefix,
)

FILE_SENTINEL = re.compile(r"<!--\s*FILE:")
_META_MARKER = re.compile(r"<!--\s*META\s*-->")
_PLAN_MARKER = re.compile(r"<!--\s*PLAN\s*-->")
_EXPLANATION_MARKER = re.compile(r"<!--\s*EXPLANATION\s*-->")
FENCE_OPENER = re.compile(r"^[ \t]*```", re.M)

FILES_KEY = re.compile(r'"(?:files|fileChanges)"\s*:')
_V2_SIGNATURES = (
    re.compile(r'"format"\s*:\s*"json"', re.I),
    re.compile(r'"version"\s*:\s*"2\.0"'),
    re.compile(r'"batch"\s*:\s*\{'),
    re.compile(r'"manifest"\s*:\s*\['),
)


def detect_dialect(text: str, *, window: int = constants.DETECTION_WINDOW) -> Dialect:
    """Classify `text` into exactly one `Dialect`.

    Args:
        text: The raw response.
        window: Number of leading characters inspected.

    Returns:
        The detected dialect; `Dialect.UNKNOWN` for empty or unrecognised input.
    """
    if not text or not text.strip():
        return Dialect.UNKNOWN

    prefix = strip_invisible_prefix(text[:window])
    has_sentinel = FILE_SENTINEL.search(prefix) is not None

    if _starts_with_object(prefix) or (
        FILES_KEY.search(prefix) and not has_sentinel
    ):
        if any(sig.search(prefix) for sig in _V2_SIGNATURES):
            return Dialect.ENVELOPE_V2
        return Dialect.ENVELOPE_V1

    if has_sentinel or (
        _PLAN_MARKER.search(prefix) and _EXPLANATION_MARKER.search(prefix)
    ):
        if _META_MARKER.search(prefix):
            return Dialect.DELIMITED_V2
        return Dialect.DELIMITED_V1

    if FENCE_OPENER.search(prefix):
        return Dialect.FALLBACK

    return Dialect.UNKNOWN


def _starts_with_object(prefix: str) -> bool:
    _, body = split_plan_preamble(prefix)
    return strip_fence(body).lstrip().startswith("{")
