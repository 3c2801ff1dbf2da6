"""Intermediate documents produced by the extractors.

Each dialect family has its own variant; `ResponseParser` converts them into a
`ParseResult` with an exhaustive ``match`` so adding a variant without a
matching branch is caught by the type checker.
"""

from __future__ import annotations

import dataclasses
import typing

from codegen_recovery.core.types import (
    BatchInfo,
    Dialect,
    FileEntry,
    Issue,
    ManifestEntry,
    MetaInfo,
    PlanInfo,
    _is_tuple_of,
    _require,
)


@dataclasses.dataclass(frozen=True, slots=True)
class _StructuredDocument:
    version: typing.Literal[1, 2]
    files: tuple[FileEntry, ...] = ()
    issues: tuple[Issue, ...] = ()
    truncated: bool = False
    manifest: tuple[ManifestEntry, ...] | None = None
    batch: BatchInfo | None = None
    plan: PlanInfo | None = None
    meta: MetaInfo | None = None
    explanation: str | None = None
    deleted_paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require(
            condition=self.version in (1, 2),
            message=f"must be 1 or 2, got {self.version!r}",
            field_name="version",
        )
        _require(
            condition=_is_tuple_of(self.files, FileEntry),
            message="must be a tuple of FileEntry",
            field_name="files",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class EnvelopeDocument(_StructuredDocument):
    """Files recovered from a JSON envelope."""

    @property
    def dialect(self) -> Dialect:
        return Dialect.ENVELOPE_V2 if self.version == 2 else Dialect.ENVELOPE_V1


@dataclasses.dataclass(frozen=True, slots=True)
class DelimitedDocument(_StructuredDocument):
    """Files recovered from comment-sentinel markers."""

    @property
    def dialect(self) -> Dialect:
        return Dialect.DELIMITED_V2 if self.version == 2 else Dialect.DELIMITED_V1


@dataclasses.dataclass(frozen=True, slots=True)
class FallbackDocument:
    """Files recovered from loose fenced code blocks."""

    files: tuple[FileEntry, ...] = ()
    issues: tuple[Issue, ...] = ()
    truncated: bool = False

    @property
    def dialect(self) -> Dialect:
        return Dialect.FALLBACK


@dataclasses.dataclass(frozen=True, slots=True)
class UnrecognizedDocument:
    """Nothing usable was found; `reason` becomes the fatal error."""

    reason: str
    issues: tuple[Issue, ...] = ()

    @property
    def dialect(self) -> Dialect:
        return Dialect.UNKNOWN


type ParsedDocument = (
    EnvelopeDocument | DelimitedDocument | FallbackDocument | UnrecognizedDocument
)
