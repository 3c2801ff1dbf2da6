"""Core data types that flow through the recovery pipeline.

This module defines the immutable data structures produced while turning a
raw model response into a set of files. Every stage builds new values
instead of editing old ones, so a `ParseResult` handed to a caller can be
shared freely across threads.
"""

from __future__ import annotations

import dataclasses
import enum
from types import MappingProxyType
import typing

# --- Minimal guard helpers (clarity > boilerplate) ---

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T]:
    """Return an immutable mapping view.

    Accepts dict or Mapping; wraps dicts in MappingProxyType. ``None`` becomes
    an empty view.
    """
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad for Robust Error Handling ---
# Failures are a predictable part of the data flow rather than exceptions
# escaping from deep inside the extractors.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Enumerations ---


class Dialect(enum.Enum):
    """Closed set of producer formats a response can be written in."""

    ENVELOPE_V2 = "envelope-v2"
    ENVELOPE_V1 = "envelope-v1"
    DELIMITED_V2 = "delimited-v2"
    DELIMITED_V1 = "delimited-v1"
    FALLBACK = "fallback"
    UNKNOWN = "unknown"

    @property
    def is_envelope(self) -> bool:
        return self in (Dialect.ENVELOPE_V1, Dialect.ENVELOPE_V2)

    @property
    def is_delimited(self) -> bool:
        return self in (Dialect.DELIMITED_V1, Dialect.DELIMITED_V2)


class FileAction(enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: object) -> FileAction:
        """Lenient conversion used by the extractors; unknown values mean create."""
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.CREATE


ManifestStatus = typing.Literal["included", "pending", "marked", "skipped"]
MANIFEST_STATUSES: tuple[ManifestStatus, ...] = (
    "included",
    "pending",
    "marked",
    "skipped",
)


class IssueKind(enum.Enum):
    """Taxonomy of everything the pipeline reports instead of raising."""

    FATAL_PARSE = "fatal_parse"
    PARTIAL_RECOVERY = "partial_recovery"
    MANIFEST_MISMATCH = "manifest_mismatch"
    REPAIR_APPLIED = "repair_applied"
    LOW_CONFIDENCE = "low_confidence"
    SIZE_LIMIT = "size_limit"


Severity = typing.Literal["error", "warning", "info"]


class ParseOutcome(enum.Enum):
    """Coarse classification of a `ParseResult` for callers."""

    CLEAN = "clean"
    REPAIRED = "repaired"
    PARTIAL = "partial"
    FATAL = "fatal"


class FixKind(enum.Enum):
    BARE_SPECIFIER = "bare_specifier"
    MISSING_IMPORT = "missing_import"
    UNDEFINED_VARIABLE = "undefined_variable"
    NONE = "none"


# --- Core Data Models ---


@dataclasses.dataclass(frozen=True, slots=True)
class FileEntry:
    """A single recovered file.

    Attributes:
        path: Project-relative, slash separated path.
        content: File body with any wrapping code fences removed.
        complete: Verdict of the completeness analyzer (or False when the
            response ended inside this file).
        recovered: True when the file boundary had to be inferred.
    """

    path: str
    content: str
    complete: bool
    recovered: bool = False

    def __post_init__(self) -> None:
        """Validate invariants for type safety."""
        _require(
            condition=isinstance(self.path, str) and self.path.strip() != "",
            message="must be a non-empty str",
            field_name="path",
            exc=TypeError,
        )
        _require(
            condition="\\" not in self.path,
            message="must use forward slashes",
            field_name="path",
        )
        _require(
            condition=isinstance(self.content, str),
            message="must be str",
            field_name="content",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ManifestEntry:
    """One producer-declared file change. Advisory, never used for extraction."""

    path: str
    action: FileAction = FileAction.CREATE
    declared_lines: int = 0
    declared_tokens: int = 0
    status: ManifestStatus = "included"

    def __post_init__(self) -> None:
        """Validate manifest entry invariants."""
        _require(
            condition=isinstance(self.action, FileAction),
            message="must be a FileAction",
            field_name="action",
            exc=TypeError,
        )
        _require(
            condition=self.declared_lines >= 0 and self.declared_tokens >= 0,
            message="must be >= 0",
            field_name="declared_lines/declared_tokens",
        )
        _require(
            condition=self.status in MANIFEST_STATUSES,
            message=f"must be one of {list(MANIFEST_STATUSES)}, got {self.status!r}",
            field_name="status",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class BatchInfo:
    """Progress of a multi-part generation."""

    current: int = 1
    total: int = 1
    is_complete: bool = True
    completed_paths: tuple[str, ...] = ()
    remaining_paths: tuple[str, ...] = ()
    hint: str | None = None

    def __post_init__(self) -> None:
        """Validate batch ordinals and path tuples."""
        _require(
            condition=isinstance(self.current, int) and self.current >= 1,
            message="must be an int >= 1",
            field_name="current",
        )
        _require(
            condition=isinstance(self.total, int) and self.total >= 1,
            message="must be an int >= 1",
            field_name="total",
        )
        _require(
            condition=_is_tuple_of(self.completed_paths, str)
            and _is_tuple_of(self.remaining_paths, str),
            message="must be tuples of str",
            field_name="completed_paths/remaining_paths",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class PlanInfo:
    """Paths the producer announced it would create, update or delete."""

    create: tuple[str, ...] = ()
    update: tuple[str, ...] = ()
    delete: tuple[str, ...] = ()

    @property
    def written_paths(self) -> tuple[str, ...]:
        return self.create + self.update


@dataclasses.dataclass(frozen=True, slots=True)
class MetaInfo:
    format: str
    version: str
    timestamp: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class Issue:
    """A reported condition; errors are fatal, everything else is advisory."""

    kind: IssueKind
    message: str
    severity: Severity = "warning"
    path: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ParseResult:
    """The pipeline's sole output.

    Immutable after construction. Callers persist files or build
    continuation prompts from it; stages that add information (such as the
    cross-validator) return a new instance via `with_issues`.
    """

    dialect: Dialect
    files: typing.Mapping[str, FileEntry] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    issues: tuple[Issue, ...] = ()
    truncated: bool = False
    manifest: tuple[ManifestEntry, ...] | None = None
    batch: BatchInfo | None = None
    plan: PlanInfo | None = None
    meta: MetaInfo | None = None
    explanation: str | None = None
    deleted_paths: tuple[str, ...] = ()
    raw: str | None = None

    def __post_init__(self) -> None:
        """Freeze the file map and validate its keys."""
        object.__setattr__(self, "files", _freeze_mapping(self.files))
        _require(
            condition=isinstance(self.dialect, Dialect),
            message="must be a Dialect",
            field_name="dialect",
            exc=TypeError,
        )
        for path, entry in self.files.items():
            _require(
                condition=isinstance(entry, FileEntry) and entry.path == path,
                message=f"entry for {path!r} must be a FileEntry with a matching path",
                field_name="files",
            )
        _require(
            condition=_is_tuple_of(self.issues, Issue),
            message="must be a tuple of Issue",
            field_name="issues",
            exc=TypeError,
        )

    # --- Derived views ---

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(i.message for i in self.issues if i.severity != "error")

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(i.message for i in self.issues if i.severity == "error")

    @property
    def incomplete_paths(self) -> tuple[str, ...]:
        return tuple(p for p, e in self.files.items() if not e.complete)

    @property
    def recovered_paths(self) -> tuple[str, ...]:
        return tuple(p for p, e in self.files.items() if e.recovered)

    @property
    def contents(self) -> dict[str, str]:
        """Path to content map, ready for a file store."""
        return {p: e.content for p, e in self.files.items()}

    @property
    def complete_files(self) -> dict[str, str]:
        return {p: e.content for p, e in self.files.items() if e.complete}

    @property
    def is_fatal(self) -> bool:
        return not self.files and bool(self.errors)

    @property
    def needs_continuation(self) -> bool:
        return self.batch is not None and not self.batch.is_complete

    @property
    def outcome(self) -> ParseOutcome:
        if self.is_fatal:
            return ParseOutcome.FATAL
        kinds = {i.kind for i in self.issues}
        if self.incomplete_paths or IssueKind.PARTIAL_RECOVERY in kinds:
            return ParseOutcome.PARTIAL
        if self.recovered_paths or IssueKind.REPAIR_APPLIED in kinds:
            return ParseOutcome.REPAIRED
        return ParseOutcome.CLEAN

    def issues_of(self, kind: IssueKind) -> tuple[Issue, ...]:
        return tuple(i for i in self.issues if i.kind == kind)

    def with_issues(self, *issues: Issue) -> ParseResult:
        """Return a copy with additional issues appended."""
        if not issues:
            return self
        return dataclasses.replace(self, issues=self.issues + tuple(issues))


@dataclasses.dataclass(frozen=True, slots=True)
class LocalFixResult:
    """Outcome of one local fix attempt.

    `applied=False` with `kind=FixKind.NONE` is the expected "needs a full
    regeneration" signal, not an error.
    """

    applied: bool
    patched_files: typing.Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    explanation: str = ""
    kind: FixKind = FixKind.NONE

    def __post_init__(self) -> None:
        """Freeze the patch and keep `applied`, `kind` and the patch consistent."""
        object.__setattr__(self, "patched_files", _freeze_mapping(self.patched_files))
        if self.applied:
            _require(
                condition=self.kind is not FixKind.NONE and bool(self.patched_files),
                message="an applied fix needs a kind and at least one patched file",
                field_name="applied",
            )
        else:
            _require(
                condition=self.kind is FixKind.NONE and not self.patched_files,
                message="a fix that was not applied cannot carry a patch",
                field_name="applied",
            )

    @classmethod
    def no_fix(cls, explanation: str = "No local fix available") -> LocalFixResult:
        return cls(applied=False, explanation=explanation)


@dataclasses.dataclass(frozen=True, slots=True)
class ContinuationRequest:
    """Everything needed to ask the producer for the next batch."""

    next_batch: int
    total_batches: int
    remaining_paths: tuple[str, ...]
    completed_paths: tuple[str, ...]
    regenerate_paths: tuple[str, ...]
    prompt: str

    def __post_init__(self) -> None:
        _require(
            condition=self.next_batch >= 1,
            message="must be >= 1",
            field_name="next_batch",
        )
        _require(
            condition=_is_tuple_of(self.remaining_paths, str)
            and _is_tuple_of(self.completed_paths, str)
            and _is_tuple_of(self.regenerate_paths, str),
            message="path lists must be tuples of str",
            exc=TypeError,
        )
