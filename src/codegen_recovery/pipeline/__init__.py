"""Parsing orchestration, cross-validation and continuation planning."""

from .base import BaseHandler
from .continuation import build_continuation_prompt, plan_continuation
from .cross_validation import cross_validate, expected_paths
from .inspection import extract_file_list, has_files
from .parser import ResponseParser, parse_response

__all__ = [  # noqa: RUF022
    "BaseHandler",
    "ResponseParser",
    "parse_response",
    "cross_validate",
    "expected_paths",
    "plan_continuation",
    "build_continuation_prompt",
    "has_files",
    "extract_file_list",
]
