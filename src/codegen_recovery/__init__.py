"""Recover, validate and patch code-generation responses from LLMs."""

import importlib.metadata
import logging

from codegen_recovery.config import (
    FrozenConfig,
    ResolvedConfig,
    default_config,
    resolve_config,
)
from codegen_recovery.core.types import (
    BatchInfo,
    ContinuationRequest,
    Dialect,
    Failure,
    FileAction,
    FileEntry,
    FixKind,
    Issue,
    IssueKind,
    LocalFixResult,
    ManifestEntry,
    MetaInfo,
    ParseOutcome,
    ParseResult,
    PlanInfo,
    Result,
    Success,
)
from codegen_recovery.exceptions import (
    CodegenRecoveryError,
    ConfigurationError,
    FatalParseError,
)
from codegen_recovery.fixes import (
    LocalFixEngine,
    SymbolImport,
    SymbolTable,
    default_symbol_table,
)
from codegen_recovery.parsing import (
    CompletenessAnalyzer,
    CompletenessVerdict,
    analyze,
    detect_dialect,
    is_complete,
)
from codegen_recovery.pipeline import (
    ResponseParser,
    build_continuation_prompt,
    cross_validate,
    extract_file_list,
    has_files,
    parse_response,
    plan_continuation,
)
from codegen_recovery.telemetry import (
    InMemoryReporter,
    TelemetryContext,
    TelemetryReporter,
)

# Version handling
try:
    __version__ = importlib.metadata.version("codegen-recovery")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library code logs through "codegen_recovery.*" loggers and never configures
# handlers itself.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Parsing
    "ResponseParser",
    "parse_response",
    "detect_dialect",
    "has_files",
    "extract_file_list",
    # Completeness
    "CompletenessAnalyzer",
    "CompletenessVerdict",
    "analyze",
    "is_complete",
    # Validation and continuation
    "cross_validate",
    "plan_continuation",
    "build_continuation_prompt",
    # Local fixes
    "LocalFixEngine",
    "SymbolImport",
    "SymbolTable",
    "default_symbol_table",
    # Data model
    "ParseResult",
    "ParseOutcome",
    "FileEntry",
    "FileAction",
    "ManifestEntry",
    "BatchInfo",
    "PlanInfo",
    "MetaInfo",
    "Dialect",
    "Issue",
    "IssueKind",
    "LocalFixResult",
    "FixKind",
    "ContinuationRequest",
    "Result",
    "Success",
    "Failure",
    # Configuration
    "resolve_config",
    "default_config",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    "InMemoryReporter",
    # Exceptions
    "CodegenRecoveryError",
    "ConfigurationError",
    "FatalParseError",
]
