"""Response parsing orchestration.

`ResponseParser` runs the whole recovery pipeline for one raw response:
size guard, dialect detection, extraction with the matching extractor,
conversion into a `ParseResult` and manifest cross-validation. Malformed
input never raises; problems are reported as issues on the result, and
`handle()` wraps fatal results in a `Failure`.
"""

from __future__ import annotations

import dataclasses
import functools
import logging

from codegen_recovery.config.types import FrozenConfig
from codegen_recovery.core.documents import (
    DelimitedDocument,
    EnvelopeDocument,
    FallbackDocument,
    ParsedDocument,
    UnrecognizedDocument,
)
from codegen_recovery.core.types import (
    Dialect,
    Failure,
    Issue,
    IssueKind,
    ParseResult,
    Result,
    Success,
)
from codegen_recovery.exceptions import FatalParseError
from codegen_recovery.parsing.completeness import CompletenessAnalyzer
from codegen_recovery.parsing.delimited import DelimitedExtractor
from codegen_recovery.parsing.detection import detect_dialect
from codegen_recovery.parsing.envelope import EnvelopeExtractor
from codegen_recovery.parsing.fallback import FallbackExtractor
from codegen_recovery.parsing.paths import PathFilter
from codegen_recovery.pipeline.base import BaseHandler
from codegen_recovery.pipeline.cross_validation import cross_validate
from codegen_recovery.telemetry import TelemetryContext, TelemetryContextProtocol

log = logging.getLogger(__name__)

EMPTY_RESPONSE = "Empty or invalid response"
UNRECOGNIZED_RESPONSE = "Response format not recognized"


class ResponseParser(BaseHandler[str, ParseResult, FatalParseError]):
    """Turn raw model output into a `ParseResult`.

    The parser holds no per-call state, so one instance can be shared across
    threads.

    Attributes:
        config: Frozen configuration controlling limits and heuristics.
        analyzer: Completeness analyzer shared by every extractor.
        path_filter: Normalises paths and drops ignored ones.
    """

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            config: Frozen configuration; defaults are used when omitted.
            telemetry: Telemetry context; a no-op context when omitted.
        """
        self.config = config or FrozenConfig()
        self.analyzer = CompletenessAnalyzer.from_config(self.config)
        self.path_filter = PathFilter(self.config.ignored_path_prefixes)
        self._envelope = EnvelopeExtractor(self.analyzer, self.path_filter)
        self._delimited = DelimitedExtractor(self.analyzer, self.path_filter)
        self._fallback = FallbackExtractor(self.analyzer, self.path_filter)
        self._tele = telemetry or TelemetryContext()

    def handle(self, command: str) -> Result[ParseResult, FatalParseError]:
        """Parse `command` and classify the outcome.

        Returns:
            `Success` with the result when at least one file (or deletion)
            was recovered, otherwise `Failure` carrying a `FatalParseError`.
        """
        result = self.parse(command)
        if result.is_fatal:
            return Failure(FatalParseError(result))
        return Success(result)

    def parse(self, text: str) -> ParseResult:
        """Run detection, extraction and cross-validation on `text`."""
        with self._tele("parse"):
            result = self._guard(text)
            if result is None:
                with self._tele("detect"):
                    dialect = detect_dialect(
                        text, window=self.config.detection_window
                    )
                with self._tele("extract", dialect=dialect.value):
                    document = self._extract(text, dialect)
                result = self._to_result(document, text)
                with self._tele("validate"):
                    result = cross_validate(result, self.path_filter)
            self._tele.count("files", len(result.files))

        log.debug(
            "Parsed %s response: %d file(s), truncated=%s, outcome=%s",
            result.dialect.value,
            len(result.files),
            result.truncated,
            result.outcome.value,
        )
        for issue in result.issues:
            log.debug("%s (%s): %s", issue.kind.value, issue.severity, issue.message)
        return result

    # --- Stages ---

    def _guard(self, text: str) -> ParseResult | None:
        """Reject empty and oversized input before any scanning."""
        if not isinstance(text, str) or not text.strip():
            return ParseResult(
                Dialect.UNKNOWN,
                issues=(Issue(IssueKind.FATAL_PARSE, EMPTY_RESPONSE, "error"),),
            )
        limit = self.config.max_response_chars
        if limit is not None and len(text) > limit:
            message = f"Response too large ({len(text):,} chars > {limit:,} limit)"
            return ParseResult(
                Dialect.UNKNOWN,
                issues=(Issue(IssueKind.SIZE_LIMIT, message, "error"),),
                raw=text if self.config.include_raw else None,
            )
        return None

    def _extract(self, text: str, dialect: Dialect) -> ParsedDocument:
        match dialect:
            case Dialect.ENVELOPE_V2:
                return self._envelope.extract(text, version=2)
            case Dialect.ENVELOPE_V1:
                return self._envelope.extract(text, version=1)
            case Dialect.DELIMITED_V2:
                return self._delimited.extract(text, version=2)
            case Dialect.DELIMITED_V1:
                return self._delimited.extract(text, version=1)
            case Dialect.FALLBACK:
                return self._fallback.extract(text)
            case Dialect.UNKNOWN:
                if not self.config.aggressive_recovery:
                    return UnrecognizedDocument(UNRECOGNIZED_RESPONSE)
                return self._recover_unknown(text)

    def _recover_unknown(self, text: str) -> ParsedDocument:
        """Try every extractor in turn; the first one that finds files wins."""
        for extract in (
            functools.partial(self._envelope.extract, version=1),
            functools.partial(self._delimited.extract, version=1),
            self._fallback.extract,
        ):
            document = extract(text)
            if document.files:
                note = Issue(
                    IssueKind.LOW_CONFIDENCE,
                    "Format not detected; recovered files with the "
                    f"{document.dialect.value} extractor",
                )
                return dataclasses.replace(document, issues=(note, *document.issues))
        return UnrecognizedDocument(
            "No files could be recovered from an unrecognized response"
        )

    def _to_result(self, document: ParsedDocument, text: str) -> ParseResult:
        raw = text if self.config.include_raw else None
        match document:
            case EnvelopeDocument() | DelimitedDocument():
                return ParseResult(
                    dialect=document.dialect,
                    files={entry.path: entry for entry in document.files},
                    issues=document.issues,
                    truncated=document.truncated,
                    manifest=document.manifest,
                    batch=document.batch,
                    plan=document.plan,
                    meta=document.meta,
                    explanation=document.explanation,
                    deleted_paths=document.deleted_paths,
                    raw=raw,
                )
            case FallbackDocument():
                return ParseResult(
                    dialect=Dialect.FALLBACK,
                    files={entry.path: entry for entry in document.files},
                    issues=document.issues,
                    truncated=document.truncated,
                    raw=raw,
                )
            case UnrecognizedDocument(reason=reason, issues=issues):
                return ParseResult(
                    dialect=Dialect.UNKNOWN,
                    issues=(*issues, Issue(IssueKind.FATAL_PARSE, reason, "error")),
                    raw=raw,
                )


def parse_response(text: str, config: FrozenConfig | None = None) -> ParseResult:
    """Parse one response with a throwaway `ResponseParser`.

    Never raises on malformed input; check `ParseResult.is_fatal` or
    `ParseResult.outcome` instead.
    """
    return ResponseParser(config).parse(text)
