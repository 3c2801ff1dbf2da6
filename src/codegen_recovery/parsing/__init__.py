"""Detection, completeness analysis, repair and per-dialect extraction."""

from .completeness import (
    CompletenessAnalyzer,
    CompletenessVerdict,
    analyze,
    is_complete,
)
from .delimited import DelimitedExtractor
from .detection import detect_dialect
from .envelope import EnvelopeExtractor
from .fallback import FallbackExtractor
from .paths import DEFAULT_PATH_FILTER, PathFilter, normalize_path
from .repair import JsonRepair, clean_code, repair_json

__all__ = [  # noqa: RUF022
    "detect_dialect",
    "CompletenessAnalyzer",
    "CompletenessVerdict",
    "analyze",
    "is_complete",
    "EnvelopeExtractor",
    "DelimitedExtractor",
    "FallbackExtractor",
    "PathFilter",
    "DEFAULT_PATH_FILTER",
    "normalize_path",
    "JsonRepair",
    "repair_json",
    "clean_code",
]
