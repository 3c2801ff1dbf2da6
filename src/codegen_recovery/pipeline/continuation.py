"""Continuation planning for multi-batch generations.

When a response declares ``batch.isComplete == false`` the caller has to ask
the producer for the next batch. `plan_continuation` works out which files
are still owed and builds the follow-up prompt; it never talks to a provider.
"""

from __future__ import annotations

from codegen_recovery.core.types import ContinuationRequest, FileAction, ParseResult
from codegen_recovery.parsing.paths import DEFAULT_PATH_FILTER, PathFilter


def plan_continuation(
    result: ParseResult, path_filter: PathFilter = DEFAULT_PATH_FILTER
) -> ContinuationRequest | None:
    """Return the next-batch request, or None when no continuation is needed."""
    batch = result.batch
    if batch is None or batch.is_complete:
        return None

    remaining = _accepted(batch.remaining_paths, path_filter) or tuple(
        p for p in _declared_paths(result, path_filter) if p not in result.files
    )
    completed = _accepted(batch.completed_paths, path_filter) or tuple(
        p for p, entry in result.files.items() if entry.complete
    )
    regenerate = tuple(p for p in result.incomplete_paths if p not in remaining)
    next_batch = batch.current + 1
    total = max(batch.total, next_batch)

    return ContinuationRequest(
        next_batch=next_batch,
        total_batches=total,
        remaining_paths=remaining,
        completed_paths=completed,
        regenerate_paths=regenerate,
        prompt=_render(remaining, completed, regenerate, next_batch, total),
    )


def build_continuation_prompt(result: ParseResult) -> str | None:
    """Only the prompt text of `plan_continuation`."""
    request = plan_continuation(result)
    return request.prompt if request is not None else None


def _declared_paths(result: ParseResult, path_filter: PathFilter) -> tuple[str, ...]:
    declared: list[str] = []
    if result.manifest is not None:
        declared.extend(
            entry.path
            for entry in result.manifest
            if entry.action is not FileAction.DELETE and entry.status != "skipped"
        )
    if result.plan is not None:
        declared.extend(result.plan.written_paths)
    return _accepted(tuple(declared), path_filter)


def _accepted(paths: tuple[str, ...], path_filter: PathFilter) -> tuple[str, ...]:
    accepted = (path_filter.accept(p) for p in paths)
    return tuple(dict.fromkeys(p for p in accepted if p))


def _bullets(paths: tuple[str, ...]) -> str:
    return "\n".join(f"- {p}" for p in paths) if paths else "- (none)"


def _render(
    remaining: tuple[str, ...],
    completed: tuple[str, ...],
    regenerate: tuple[str, ...],
    next_batch: int,
    total: int,
) -> str:
    sections = [
        f"Continue generating the remaining {len(remaining)} files.",
        f"ALREADY COMPLETED ({len(completed)} files):\n{_bullets(completed)}",
        f"REMAINING FILES TO GENERATE:\n{_bullets(remaining)}",
    ]
    if regenerate:
        sections.append(
            "INCOMPLETE FILES TO REGENERATE IN FULL (cut off last time):\n"
            f"{_bullets(regenerate)}"
        )
    sections.append(
        "Use the same format and structure. "
        f"This is batch {next_batch} of {total}."
    )
    return "\n\n".join(sections)
