"""Extraction for the JSON envelope dialects.

V2 envelopes carry ``meta``, ``plan``, ``manifest``, ``batch``,
``explanation`` and a ``files`` object. V1 envelopes are looser: files may
live under ``files``, ``fileChanges``, ``changes`` or ``Changes``, or sit
directly at the root as file-like keys.

Parsing degrades in three steps: strict decode, a single `repair_json` pass,
then regex salvage of whatever file values can still be read.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from codegen_recovery.core.documents import EnvelopeDocument
from codegen_recovery.core.types import (
    BatchInfo,
    FileAction,
    FileEntry,
    Issue,
    IssueKind,
    ManifestEntry,
    MetaInfo,
    PlanInfo,
)
from codegen_recovery.parsing.completeness import CompletenessAnalyzer
from codegen_recovery.parsing.paths import (
    DEFAULT_PATH_FILTER,
    PathFilter,
    looks_like_path,
)
from codegen_recovery.parsing.repair import (
    as_count,
    as_flag,
    as_status,
    clean_code,
    decode_json_string,
    plan_from_mapping,
    repair_json,
    split_list,
    split_plan_preamble,
    strip_fence,
    strip_invisible_prefix,
)

log = logging.getLogger(__name__)

_DECODER = json.JSONDecoder(strict=False)

V1_FILE_CONTAINERS = ("files", "fileChanges", "changes", "Changes")
_CONTENT_KEYS = ("content", "code", "diff")
_ROOT_FILE_KEY = re.compile(r"\.[A-Za-z]+$")
_ENVELOPE_KEYS = frozenset(
    {"meta", "plan", "manifest", "batch", "explanation", "files", "deletedFiles"}
)

# Salvage patterns. Key bodies exclude backslashes so escaped quotes inside
# file contents never start a match.
_STRING_PAIR = re.compile(r'"([^"\\\n]{1,512})"\s*:\s*"((?:[^"\\]|\\.)*)"', re.S)
_OPEN_PAIR = re.compile(r'"([^"\\\n]{1,512})"\s*:\s*"')
_OPEN_VALUE_REST = re.compile(r"(?:[^\"\\]|\\.)*\\?\Z", re.S)
_EXPLANATION = re.compile(r'"explanation"\s*:\s*"((?:[^"\\]|\\.)*)"', re.S)
_IS_COMPLETE = re.compile(r'"isComplete"\s*:\s*(true|false)')
_BATCH_ORDINAL = re.compile(r'"(current|total)"\s*:\s*(\d+)')


class EnvelopeExtractor:
    """Turn a JSON envelope response into an `EnvelopeDocument`."""

    def __init__(
        self,
        analyzer: CompletenessAnalyzer | None = None,
        path_filter: PathFilter = DEFAULT_PATH_FILTER,
    ) -> None:
        """Initialize with the completeness analyzer and path filter to apply."""
        self.analyzer = analyzer or CompletenessAnalyzer()
        self.path_filter = path_filter

    def extract(self, text: str, *, version: int = 2) -> EnvelopeDocument:
        """Extract files and metadata; never raises on malformed input."""
        issues: list[Issue] = []
        prepared = strip_invisible_prefix(text)
        preamble_plan, prepared = split_plan_preamble(prepared)
        prepared = strip_fence(prepared)

        start = prepared.find("{")
        if start == -1:
            issues.append(Issue(IssueKind.FATAL_PARSE, "No JSON object found", "error"))
            return EnvelopeDocument(version, issues=tuple(issues), plan=preamble_plan)
        body = prepared[start:]

        hit_eof = False
        open_path: tuple[str | int, ...] = ()
        try:
            data, _ = _DECODER.raw_decode(body)
        except ValueError as exc:
            repair = repair_json(body)
            try:
                data, _ = _DECODER.raw_decode(repair.text)
            except ValueError:
                log.debug("JSON repair failed, salvaging by pattern: %s", exc)
                return self._salvage(
                    body, version, exc, preamble_plan, issues, hit_eof=repair.hit_eof
                )
            hit_eof = repair.hit_eof
            open_path = repair.open_path
            message = (
                "JSON was repaired from truncated response"
                if hit_eof
                else f"JSON was repaired: {exc.msg}"
            )
            issues.append(Issue(IssueKind.REPAIR_APPLIED, message))

        if not isinstance(data, dict):
            issues.append(
                Issue(
                    IssueKind.FATAL_PARSE,
                    "Top-level JSON value is not an object",
                    "error",
                )
            )
            return EnvelopeDocument(version, issues=tuple(issues), plan=preamble_plan)

        container, location = self._file_container(data, version)
        files = self._files(container, _entry_at(open_path, location))
        plan = (
            plan_from_mapping(data["plan"])
            if isinstance(data.get("plan"), dict)
            else preamble_plan
        )
        batch = _batch(data.get("batch"))
        deleted = self._deleted(data.get("deletedFiles"), plan)
        explanation = data.get("explanation")

        if not files and not deleted:
            issues.append(
                Issue(IssueKind.FATAL_PARSE, "No files found in envelope", "error")
            )

        return EnvelopeDocument(
            version,
            files=tuple(files.values()),
            issues=tuple(issues),
            truncated=hit_eof or (batch is not None and not batch.is_complete),
            manifest=self._manifest(data.get("manifest")),
            batch=batch,
            plan=plan,
            meta=_meta(data.get("meta")),
            explanation=explanation if isinstance(explanation, str) else None,
            deleted_paths=deleted,
        )

    # --- Files ---

    @staticmethod
    def _file_container(
        data: dict[str, Any], version: int
    ) -> tuple[Any, tuple[str, ...]]:
        """Return the file container and its key path within the document."""
        if version == 2:
            return data.get("files"), ("files",)
        for key in V1_FILE_CONTAINERS:
            container = data.get(key)
            if isinstance(container, dict | list) and container:
                return container, (key,)
        root_files = {
            k: v
            for k, v in data.items()
            if k not in _ENVELOPE_KEYS and _ROOT_FILE_KEY.search(k)
        }
        return root_files or None, ()

    def _files(
        self, container: Any, cut_entry: str | int | None
    ) -> dict[str, FileEntry]:
        """Read file entries; `cut_entry` names the one end-of-text cut into."""
        entries: list[tuple[str | int, Any, Any]]
        if isinstance(container, dict):
            entries = [(key, key, value) for key, value in container.items()]
        elif isinstance(container, list):
            # [{"path": ..., "content": ...}, ...]
            entries = [
                (index, item.get("path") or item.get("file"), item)
                for index, item in enumerate(container)
                if isinstance(item, dict)
            ]
        else:
            return {}

        files: dict[str, FileEntry] = {}
        for entry, key, value in entries:
            if not isinstance(key, str) or not looks_like_path(key):
                continue
            path = self.path_filter.accept(key)
            content = _content_of(value)
            if path is None or content is None:
                continue
            cleaned = clean_code(content)
            if not cleaned:
                continue
            cut_off = entry == cut_entry
            files.pop(path, None)
            files[path] = FileEntry(
                path=path,
                content=cleaned,
                complete=not cut_off and self.analyzer.is_complete(path, cleaned),
                recovered=cut_off,
            )
        return files

    def _deleted(self, listed: Any, plan: PlanInfo | None) -> tuple[str, ...]:
        raw: list[str] = []
        if isinstance(listed, list):
            raw.extend(str(p) for p in listed)
        if plan is not None:
            raw.extend(plan.delete)
        deleted: dict[str, None] = {}
        for candidate in raw:
            path = self.path_filter.accept(candidate)
            if path is not None:
                deleted[path] = None
        return tuple(deleted)

    def _manifest(self, entries: Any) -> tuple[ManifestEntry, ...] | None:
        if not isinstance(entries, list):
            return None
        manifest = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            path = self.path_filter.accept(str(entry.get("path") or ""))
            if path is None:
                continue
            manifest.append(
                ManifestEntry(
                    path=path,
                    action=FileAction.parse(entry.get("action")),
                    declared_lines=as_count(entry.get("lines")),
                    declared_tokens=as_count(entry.get("tokens")),
                    status=as_status(entry.get("status")),
                )
            )
        return tuple(manifest)

    # --- Salvage ---

    def _salvage(
        self,
        body: str,
        version: int,
        error: ValueError,
        plan: PlanInfo | None,
        issues: list[Issue],
        *,
        hit_eof: bool,
    ) -> EnvelopeDocument:
        files: dict[str, FileEntry] = {}
        last_end = 0
        for match in _STRING_PAIR.finditer(body):
            key = match.group(1)
            last_end = match.end()
            if key in _ENVELOPE_KEYS or not looks_like_path(key):
                continue
            self._add_salvaged(files, key, decode_json_string(match.group(2)), False)

        cut_off = False
        opened = _OPEN_PAIR.search(body, last_end)
        if opened and _OPEN_VALUE_REST.match(body, opened.end()):
            key = opened.group(1)
            if key not in _ENVELOPE_KEYS and looks_like_path(key):
                cut_off = True
                self._add_salvaged(
                    files, key, decode_json_string(body[opened.end() :]), True
                )

        explanation = _EXPLANATION.search(body)
        batch = _salvaged_batch(body)
        if files:
            issues.append(
                Issue(
                    IssueKind.PARTIAL_RECOVERY,
                    f"JSON could not be parsed ({error.msg}); "
                    f"salvaged {len(files)} file(s) by pattern",
                )
            )
        else:
            issues.append(
                Issue(IssueKind.FATAL_PARSE, f"JSON parse error: {error}", "error")
            )

        return EnvelopeDocument(
            version,
            files=tuple(files.values()),
            issues=tuple(issues),
            truncated=cut_off
            or hit_eof
            or (batch is not None and not batch.is_complete),
            batch=batch,
            plan=plan,
            explanation=(
                decode_json_string(explanation.group(1)) if explanation else None
            ),
        )

    def _add_salvaged(
        self, files: dict[str, FileEntry], key: str, content: str, cut_off: bool
    ) -> None:
        path = self.path_filter.accept(key)
        if path is None:
            return
        cleaned = clean_code(content)
        if not cleaned:
            return
        files.pop(path, None)
        files[path] = FileEntry(
            path=path,
            content=cleaned,
            complete=not cut_off and self.analyzer.is_complete(path, cleaned),
            recovered=True,
        )


def _content_of(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for key in _CONTENT_KEYS:
            if isinstance(value.get(key), str) and value[key]:
                return value[key]
    return None


def _paths(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return split_list(value)
    if isinstance(value, list):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return ()


def _batch(data: Any) -> BatchInfo | None:
    if not isinstance(data, dict):
        return None
    hint = data.get("nextBatchHint")
    return BatchInfo(
        current=max(as_count(data.get("current")), 1),
        total=max(as_count(data.get("total")), 1),
        is_complete=as_flag(data.get("isComplete")),
        completed_paths=_paths(data.get("completed")),
        remaining_paths=_paths(data.get("remaining")),
        hint=str(hint) if hint else None,
    )


def _salvaged_batch(body: str) -> BatchInfo | None:
    flag = _IS_COMPLETE.search(body)
    if not flag:
        return None
    ordinals = {m.group(1): int(m.group(2)) for m in _BATCH_ORDINAL.finditer(body)}
    return BatchInfo(
        current=max(ordinals.get("current", 1), 1),
        total=max(ordinals.get("total", 1), 1),
        is_complete=flag.group(1) == "true",
    )


def _meta(data: Any) -> MetaInfo | None:
    if not isinstance(data, dict):
        return None
    timestamp = data.get("timestamp")
    return MetaInfo(
        format=str(data.get("format") or "json"),
        version=str(data.get("version") or "2.0"),
        timestamp=str(timestamp) if timestamp else None,
    )


def _entry_at(
    open_path: tuple[str | int, ...], location: tuple[str, ...]
) -> str | int | None:
    """Key or index of the container entry holding the open string, if any."""
    depth = len(location)
    if len(open_path) > depth and open_path[:depth] == location:
        return open_path[depth]
    return None
