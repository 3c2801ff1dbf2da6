"""Best-effort extraction from loose fenced code blocks.

Used when a response follows no known dialect. The scan is line based: each
fence opener consumes lines up to its matching closer (or end-of-text). A
path comes from the label line right before the fence or from a header
comment on the first line inside it; when no block is named at all, long
enough code blocks get synthetic names.
"""

from __future__ import annotations

import dataclasses
import re

from codegen_recovery import constants
from codegen_recovery.core.documents import FallbackDocument
from codegen_recovery.core.types import FileEntry, Issue, IssueKind
from codegen_recovery.parsing.completeness import CompletenessAnalyzer
from codegen_recovery.parsing.paths import (
    DEFAULT_PATH_FILTER,
    PathFilter,
    path_from_header,
    path_from_label,
)

_FENCE = re.compile(r"^[ \t]*(`{3,}|~{3,})[ \t]*([\w+#.-]*)")

# Fence language -> extension for synthetic names; other languages are skipped
_LANGUAGE_EXTENSIONS = {
    "": "js",
    "tsx": "tsx",
    "jsx": "jsx",
    "ts": "ts",
    "typescript": "ts",
    "js": "js",
    "javascript": "js",
    "mjs": "js",
    "css": "css",
    "html": "html",
    "vue": "vue",
    "svelte": "svelte",
}
_COMPONENT_HINTS = ("import React", "export default")


@dataclasses.dataclass(frozen=True, slots=True)
class _Block:
    label: str | None
    language: str
    lines: tuple[str, ...]
    closed: bool


def scan_blocks(text: str) -> list[_Block]:
    """Split `text` into fenced blocks without backtracking regexes."""
    lines = text.splitlines()
    blocks: list[_Block] = []
    label: str | None = None
    i = 0
    while i < len(lines):
        opener = _FENCE.match(lines[i])
        if opener is None:
            if lines[i].strip():
                label = lines[i]
            i += 1
            continue
        fence = opener.group(1)
        body: list[str] = []
        closed = False
        j = i + 1
        while j < len(lines):
            candidate = lines[j].strip()
            if candidate.startswith(fence) and not candidate.strip(fence[0]):
                closed = True
                break
            body.append(lines[j])
            j += 1
        blocks.append(_Block(label, opener.group(2).lower(), tuple(body), closed))
        label = None
        i = j + 1
    return blocks


class FallbackExtractor:
    """Recover files from fenced code blocks with low confidence."""

    def __init__(
        self,
        analyzer: CompletenessAnalyzer | None = None,
        path_filter: PathFilter = DEFAULT_PATH_FILTER,
        *,
        min_block_chars: int = constants.FALLBACK_MIN_BLOCK_CHARS,
    ) -> None:
        self.analyzer = analyzer or CompletenessAnalyzer()
        self.path_filter = path_filter
        self.min_block_chars = min_block_chars

    def extract(self, text: str) -> FallbackDocument:
        issues = [
            Issue(
                IssueKind.LOW_CONFIDENCE,
                "Using fallback parser - response format not recognized",
            )
        ]
        blocks = scan_blocks(text)
        truncated = bool(blocks) and not blocks[-1].closed

        files: dict[str, FileEntry] = {}
        unnamed: list[_Block] = []
        for block in blocks:
            named = self._named(block)
            if named is None:
                unnamed.append(block)
                continue
            self._add(files, named[0], named[1], block.closed)

        if not files:
            self._add_synthetic(files, unnamed)

        if truncated:
            issues.append(
                Issue(
                    IssueKind.PARTIAL_RECOVERY,
                    "Last code block was not closed before the end of the response",
                )
            )
        if not files:
            issues.append(
                Issue(
                    IssueKind.FATAL_PARSE,
                    "No recoverable files found in code blocks",
                    "error",
                )
            )
        return FallbackDocument(
            files=tuple(files.values()), issues=tuple(issues), truncated=truncated
        )

    def _named(self, block: _Block) -> tuple[str, str] | None:
        """Return ``(path, content)`` when the block names its file."""
        if block.label is not None:
            path = path_from_label(block.label)
            if path is not None:
                return path, "\n".join(block.lines)
        if block.lines:
            path = path_from_header(block.lines[0])
            if path is not None:
                return path, "\n".join(block.lines[1:])
        return None

    def _add_synthetic(self, files: dict[str, FileEntry], blocks: list[_Block]) -> None:
        index = 1
        for block in blocks:
            extension = _LANGUAGE_EXTENSIONS.get(block.language)
            content = "\n".join(block.lines).strip()
            if extension is None or len(content) < self.min_block_chars:
                continue
            if block.language in ("tsx", "jsx") or _looks_like_component(content):
                path = f"component{index}.tsx"
            elif "export " in content:
                path = f"module{index}.ts"
            else:
                path = f"code{index}.{extension}"
            if self._add(files, path, content, block.closed):
                index += 1

    def _add(
        self, files: dict[str, FileEntry], raw_path: str, content: str, closed: bool
    ) -> bool:
        path = self.path_filter.accept(raw_path)
        content = content.strip()
        if path is None or not content:
            return False
        files.pop(path, None)
        files[path] = FileEntry(
            path=path,
            content=content,
            complete=closed and self.analyzer.is_complete(path, content),
            recovered=True,
        )
        return True


def _looks_like_component(content: str) -> bool:
    if any(hint in content for hint in _COMPONENT_HINTS):
        return True
    return "function " in content and "return" in content and "<" in content
