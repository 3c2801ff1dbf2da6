"""Cheap scans over a partial response, for progress displays.

These never run an extractor. They are meant to be called repeatedly on a
growing streamed response to answer "has any file started yet?" and "which
files has the producer mentioned so far?".
"""

from __future__ import annotations

import re

from codegen_recovery.core.types import Dialect
from codegen_recovery.parsing.detection import FILE_SENTINEL, detect_dialect
from codegen_recovery.parsing.paths import DEFAULT_PATH_FILTER, PathFilter
from codegen_recovery.parsing.repair import marker_block, parse_key_values, split_list

_FILES_OBJECT = re.compile(r'"(?:files|fileChanges)"\s*:\s*[{\[]')
_CODE_FENCE = re.compile(r"```(?:tsx?|jsx?|typescript|javascript)\b")
_SENTINEL_PATH = re.compile(r"<!--\s*FILE:\s*([\w./@$-]+\.[A-Za-z]+)\s*-->")
_FILE_KEY = re.compile(r'"([\w./@$-]+\.(?:tsx?|jsx?|mjs|css|scss|json|md|html))"\s*:')


def has_files(text: str) -> bool:
    """True once the response contains the start of at least one file."""
    dialect = detect_dialect(text)
    if dialect.is_envelope:
        return _FILES_OBJECT.search(text) is not None
    if dialect.is_delimited:
        return FILE_SENTINEL.search(text) is not None
    if dialect is Dialect.FALLBACK:
        return _CODE_FENCE.search(text) is not None
    return False


def extract_file_list(
    text: str, path_filter: PathFilter = DEFAULT_PATH_FILTER
) -> list[str]:
    """Sorted, de-duplicated paths mentioned so far.

    Delimited responses contribute their PLAN create/update lists and FILE
    sentinels; anything else contributes file-like JSON object keys.
    """
    candidates: list[str] = []
    if detect_dialect(text).is_delimited:
        block = marker_block(text, "PLAN")
        if block is not None:
            values = parse_key_values(block)
            candidates.extend(split_list(values.get("create", "")))
            candidates.extend(split_list(values.get("update", "")))
        candidates.extend(m.group(1) for m in _SENTINEL_PATH.finditer(text))
    else:
        candidates.extend(m.group(1) for m in _FILE_KEY.finditer(text))

    accepted = (path_filter.accept(c) for c in candidates)
    return sorted({p for p in accepted if p})
