"""Manifest and plan cross-validation.

Compares what the producer said it would write against what was actually
recovered. Mismatches are warnings only: a missing file is a reason to ask
for a continuation, never a reason to discard the files that did arrive.
"""

from __future__ import annotations

import logging

from codegen_recovery.core.types import FileAction, Issue, IssueKind, ParseResult
from codegen_recovery.parsing.paths import DEFAULT_PATH_FILTER, PathFilter

log = logging.getLogger(__name__)

_DEFERRED_STATUSES = frozenset({"pending", "skipped"})


def expected_paths(
    result: ParseResult, path_filter: PathFilter = DEFAULT_PATH_FILTER
) -> tuple[str, ...]:
    """Paths the producer promised to write in this response.

    Manifest entries win over the plan. Deletions, pending or skipped entries
    and plan paths the batch declares as remaining are not expected yet.
    """
    if result.manifest is not None:
        return tuple(
            dict.fromkeys(
                entry.path
                for entry in result.manifest
                if entry.action in (FileAction.CREATE, FileAction.UPDATE)
                and entry.status not in _DEFERRED_STATUSES
            )
        )
    if result.plan is None:
        return ()
    declared = result.batch.remaining_paths if result.batch else ()
    remaining = {path_filter.accept(p) for p in declared}
    accepted = (path_filter.accept(p) for p in result.plan.written_paths)
    return tuple(dict.fromkeys(p for p in accepted if p and p not in remaining))


def cross_validate(
    result: ParseResult, path_filter: PathFilter = DEFAULT_PATH_FILTER
) -> ParseResult:
    """Return `result` with a MANIFEST_MISMATCH warning per missing file."""
    expected = expected_paths(result, path_filter)
    missing = [p for p in expected if p not in result.files]
    if not missing:
        return result
    log.debug("Declared but missing files: %s", missing)
    source = "manifest" if result.manifest is not None else "plan"
    return result.with_issues(
        *(
            Issue(
                IssueKind.MANIFEST_MISMATCH,
                f"File in {source} but not generated: {path}",
                "warning",
                path=path,
            )
            for path in missing
        )
    )
