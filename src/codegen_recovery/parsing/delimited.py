"""Extraction for the comment-sentinel ("marker") dialects.

File bodies sit between ``<!-- FILE:path -->`` and ``<!-- /FILE:path -->``.
Metadata lives in separate ``<!-- NAME -->`` blocks (``META``, ``PLAN``,
``MANIFEST``, ``EXPLANATION``, ``BATCH``) and is parsed independently of the
file bodies.
"""

from __future__ import annotations

import logging
import re

from codegen_recovery.core.documents import DelimitedDocument
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
from codegen_recovery.parsing.paths import DEFAULT_PATH_FILTER, PathFilter
from codegen_recovery.parsing.repair import (
    as_count,
    as_flag,
    as_status,
    clean_code,
    load_object,
    marker_block,
    parse_key_values,
    plan_from_mapping,
    split_list,
    split_plan_preamble,
    strip_invisible_prefix,
)

log = logging.getLogger(__name__)

FILE_OPEN = re.compile(r"<!--\s*FILE:\s*([^\s>]+?)\s*-->")
FILE_CLOSE = re.compile(r"<!--\s*/FILE:\s*([^\s>]+?)\s*-->")
_TRAILING_BLOCK = re.compile(r"<!--\s*(?:BATCH|GENERATION_META)\b")
_TABLE_SEPARATOR = re.compile(r"^[\s|:-]+$")


class DelimitedExtractor:
    """Turn a marker-delimited response into a `DelimitedDocument`."""

    def __init__(
        self,
        analyzer: CompletenessAnalyzer | None = None,
        path_filter: PathFilter = DEFAULT_PATH_FILTER,
    ) -> None:
        self.analyzer = analyzer or CompletenessAnalyzer()
        self.path_filter = path_filter

    def extract(self, text: str, *, version: int = 2) -> DelimitedDocument:
        """Extract files and metadata blocks; never raises on malformed input."""
        text = strip_invisible_prefix(text)
        issues: list[Issue] = []
        files, cut_off = self._files(text, issues)

        plan = self._plan(text)
        batch = self._batch(text)
        deleted = self._deleted(plan)
        if not files and not deleted:
            issues.append(
                Issue(
                    IssueKind.FATAL_PARSE, "No FILE blocks found in response", "error"
                )
            )

        return DelimitedDocument(
            version,
            files=tuple(files.values()),
            issues=tuple(issues),
            truncated=cut_off or (batch is not None and not batch.is_complete),
            manifest=self._manifest(text),
            batch=batch,
            plan=plan,
            meta=self._meta(text, version),
            explanation=marker_block(text, "EXPLANATION"),
            deleted_paths=deleted,
        )

    # --- Files ---

    def _files(
        self, text: str, issues: list[Issue]
    ) -> tuple[dict[str, FileEntry], bool]:
        """Sequential sentinel scan; returns the files and whether EOF cut one off."""
        files: dict[str, FileEntry] = {}
        cut_off = False
        openers = list(FILE_OPEN.finditer(text))
        for index, opener in enumerate(openers):
            raw_path = opener.group(1)
            start = opener.end()
            is_last = index + 1 == len(openers)
            next_open = len(text) if is_last else openers[index + 1].start()

            closers = list(FILE_CLOSE.finditer(text, start, next_open))
            same = next((c for c in closers if c.group(1) == raw_path), None)
            recovered = True
            complete_by_eof = True
            if same is not None:
                end = same.start()
                recovered = False
            elif closers:
                end = closers[0].start()
                issues.append(
                    Issue(
                        IssueKind.REPAIR_APPLIED,
                        f'File "{raw_path}" was closed by the marker for '
                        f'"{closers[0].group(1)}" - recovered',
                        path=raw_path,
                    )
                )
            elif not is_last:
                end = next_open
                issues.append(
                    Issue(
                        IssueKind.REPAIR_APPLIED,
                        f'File "{raw_path}" had missing closing marker - recovered',
                        path=raw_path,
                    )
                )
            else:
                trailing = _TRAILING_BLOCK.search(text, start)
                if trailing:
                    end = trailing.start()
                else:
                    end = len(text)
                    complete_by_eof = False
                    cut_off = True
                    issues.append(
                        Issue(
                            IssueKind.PARTIAL_RECOVERY,
                            f'File "{raw_path}" was cut off by the end of the response',
                            path=raw_path,
                        )
                    )

            path = self.path_filter.accept(raw_path)
            if path is None:
                log.debug("Skipping ignored or invalid path %r", raw_path)
                continue
            content = clean_code(text[start:end])
            if not content:
                continue
            files.pop(path, None)
            files[path] = FileEntry(
                path=path,
                content=content,
                complete=complete_by_eof and self.analyzer.is_complete(path, content),
                recovered=recovered,
            )
        return files, cut_off

    def _deleted(self, plan: PlanInfo | None) -> tuple[str, ...]:
        if plan is None:
            return ()
        accepted = (self.path_filter.accept(p) for p in plan.delete)
        return tuple(dict.fromkeys(p for p in accepted if p))

    # --- Metadata blocks ---

    @staticmethod
    def _meta(text: str, version: int) -> MetaInfo | None:
        block = marker_block(text, "META")
        if block is None:
            return None
        values = parse_key_values(block)
        return MetaInfo(
            format=values.get("format") or "marker",
            version=values.get("version") or f"{version}.0",
            timestamp=values.get("timestamp") or None,
        )

    @staticmethod
    def _plan(text: str) -> PlanInfo | None:
        block = marker_block(text, "PLAN")
        if block is None:
            plan, _ = split_plan_preamble(text)
            return plan
        data = load_object(block)
        if data is not None:
            return plan_from_mapping(data)
        values = parse_key_values(block)
        return PlanInfo(
            create=split_list(values.get("create", "")),
            update=split_list(values.get("update", "")),
            delete=split_list(values.get("delete", "")),
        )

    def _manifest(self, text: str) -> tuple[ManifestEntry, ...] | None:
        block = marker_block(text, "MANIFEST")
        if block is None:
            return None
        entries = []
        for raw_line in block.splitlines():
            line = raw_line.strip()
            if not line.startswith("|") or _TABLE_SEPARATOR.match(line):
                continue
            cells = [c.strip() for c in line.strip("|").split("|")]
            if len(cells) < 4 or cells[0].lower() in ("file", "path"):
                continue
            path = self.path_filter.accept(cells[0].strip("`"))
            if path is None:
                continue
            entries.append(
                ManifestEntry(
                    path=path,
                    action=FileAction.parse(cells[1]),
                    declared_lines=as_count(cells[2]),
                    declared_tokens=as_count(cells[3]),
                    status=as_status(cells[4] if len(cells) > 4 else None),
                )
            )
        return tuple(entries) if entries else None

    @staticmethod
    def _batch(text: str) -> BatchInfo | None:
        block = marker_block(text, "BATCH")
        if block is None:
            return None
        values = parse_key_values(block)
        return BatchInfo(
            current=max(as_count(values.get("current")), 1),
            total=max(as_count(values.get("total")), 1),
            is_complete=as_flag(values.get("iscomplete")),
            completed_paths=split_list(values.get("completed", "")),
            remaining_paths=split_list(values.get("remaining", "")),
            hint=values.get("nextbatchhint") or None,
        )
