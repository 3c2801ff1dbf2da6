"""Deterministic fixes for common runtime/build errors in generated projects.

`LocalFixEngine.try_fix` tries three strategies in order and returns the first
one that changes a file:

1. bare specifier: ``import x from "src/components/X"`` rewritten to a
   relative path;
2. missing import: a well-known identifier (``useState``, ``motion``, an icon)
   used without being imported;
3. undefined variable: an identifier exported by exactly one other project
   file.

A `LocalFixResult` with ``applied=False`` is the normal "ask the model to
regenerate" outcome. The input mapping is never modified.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import posixpath
import re

from codegen_recovery import constants
from codegen_recovery.config.types import FrozenConfig
from codegen_recovery.core.types import FixKind, LocalFixResult
from codegen_recovery.fixes.imports import (
    add_import,
    is_bound,
    relative_specifier,
    resolve_specifier,
    rewrite_specifier,
)
from codegen_recovery.fixes.symbols import (
    SymbolImport,
    SymbolTable,
    default_symbol_table,
)
from codegen_recovery.parsing.paths import PathFilter
from codegen_recovery.telemetry import TelemetryContext, TelemetryContextProtocol

log = logging.getLogger(__name__)

_BARE_SPECIFIER_PATTERNS = (
    re.compile(r"""["']([^"'\n]+)["']\s*was\s*a?\s*bare\s*specifier""", re.I),
    re.compile(r"""specifier\s*["']([^"'\n]+)["']""", re.I),
    re.compile(r"""Failed to resolve import\s*["']([^"'\n]+)["']""", re.I),
)
_UNDEFINED_NAME_PATTERNS = (
    re.compile(r"""['"]?([A-Za-z_$][\w$]*)['"]?\s+is\s+not\s+defined""", re.I),
    re.compile(r"""Cannot find name\s+['"]?([A-Za-z_$][\w$]*)['"]?""", re.I),
    re.compile(r"""Can't find variable:\s*([A-Za-z_$][\w$]*)""", re.I),
)
_TYPE_DECLARATION = ("interface", "type")

type _Strategy = Callable[[str, str, Mapping[str, str]], LocalFixResult]


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _default_export(name: str) -> re.Pattern[str]:
    return re.compile(
        r"^export\s+default\s+(?:async\s+)?(?:function\*?\s+|class\s+|const\s+)?"
        + re.escape(name)
        + r"(?![\w$])",
        re.M,
    )


def _named_export(name: str) -> re.Pattern[str]:
    return re.compile(
        r"^export\s+(?:declare\s+)?"
        r"(const|let|var|(?:async\s+)?function\*?|(?:abstract\s+)?class|enum"
        r"|interface|type)\s+" + re.escape(name) + r"(?![\w$])",
        re.M,
    )


def _export_list(name: str) -> re.Pattern[str]:
    return re.compile(
        r"^export\s*(?:type\s*)?\{[^}]*(?<![\w$])"
        + re.escape(name)
        + r"(?![\w$])[^}]*\}",
        re.M,
    )


class LocalFixEngine:
    """Apply small, deterministic patches without calling a model.

    Attributes:
        symbols: Identifier table used by the missing-import strategy.
        path_filter: Excludes ignored files (``node_modules/`` etc.) from the
            export search.
    """

    def __init__(
        self,
        symbols: SymbolTable | None = None,
        config: FrozenConfig | None = None,
        *,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self.symbols = symbols if symbols is not None else default_symbol_table()
        config = config or FrozenConfig()
        self.path_filter = PathFilter(config.ignored_path_prefixes)
        self._tele = telemetry or TelemetryContext()

    def try_fix(
        self,
        error_message: str,
        error_stack: str | None,
        target_path: str,
        files: Mapping[str, str],
    ) -> LocalFixResult:
        """Try each strategy in turn; the first applied fix wins.

        Args:
            error_message: The error text reported by the runtime or bundler.
            error_stack: Optional stack trace, searched after the message.
            target_path: The file the error was raised in.
            files: Current project files, path -> content.

        Returns:
            The applied fix, or an unapplied result whose explanation says why
            no strategy could help.
        """
        text = "\n".join(part for part in (error_message, error_stack) if part)
        strategies: tuple[tuple[str, _Strategy], ...] = (
            ("bare_specifier", self._fix_bare_specifier),
            ("missing_import", self._fix_missing_import),
            ("undefined_variable", self._fix_undefined_variable),
        )
        declined: str | None = None
        with self._tele("fix"):
            for name, strategy in strategies:
                with self._tele(name):
                    result = strategy(text, target_path, files)
                if result.applied:
                    self._tele.count("applied", strategy=name)
                    log.debug("Local fix applied: %s", result.explanation)
                    return result
                if declined is None and result.explanation:
                    declined = result.explanation

        log.debug("No local fix for error: %.200s", error_message)
        return LocalFixResult.no_fix(declined or "No local fix available")

    # --- Strategies ---

    def _fix_bare_specifier(
        self, text: str, target_path: str, files: Mapping[str, str]
    ) -> LocalFixResult:
        specifier = _first_match(_BARE_SPECIFIER_PATTERNS, text)
        if specifier is None:
            return LocalFixResult.no_fix("")
        resolved = resolve_specifier(specifier, files)
        if resolved is None and not specifier.startswith("src/"):
            return LocalFixResult.no_fix("")

        destination = resolved or specifier
        patched: dict[str, str] = {}
        for path, content in files.items():
            if not content or specifier not in content:
                continue
            fixed = rewrite_specifier(
                content, specifier, relative_specifier(path, destination)
            )
            if fixed != content:
                patched[path] = fixed

        if not patched:
            return LocalFixResult.no_fix(f'No file imports "{specifier}"')
        return LocalFixResult(
            applied=True,
            patched_files=patched,
            explanation=(
                f'Fixed {len(patched)} bare specifier import(s): "{specifier}" '
                "→ relative path"
            ),
            kind=FixKind.BARE_SPECIFIER,
        )

    def _fix_missing_import(
        self, text: str, target_path: str, files: Mapping[str, str]
    ) -> LocalFixResult:
        identifier = _first_match(_UNDEFINED_NAME_PATTERNS, text)
        if identifier is None or identifier not in self.symbols:
            return LocalFixResult.no_fix("")
        content = files.get(target_path)
        if not content:
            return LocalFixResult.no_fix(f"Target file not found: {target_path}")
        if is_bound(content, identifier):
            return LocalFixResult.no_fix(f"{identifier} is already imported")

        symbol = self.symbols[identifier]
        return LocalFixResult(
            applied=True,
            patched_files={target_path: add_import(content, identifier, symbol)},
            explanation=f"Added missing import: {identifier} from '{symbol.module}'",
            kind=FixKind.MISSING_IMPORT,
        )

    def _fix_undefined_variable(
        self, text: str, target_path: str, files: Mapping[str, str]
    ) -> LocalFixResult:
        identifier = _first_match(_UNDEFINED_NAME_PATTERNS, text)
        if identifier is None or identifier in self.symbols:
            return LocalFixResult.no_fix("")
        content = files.get(target_path)
        if not content:
            return LocalFixResult.no_fix(f"Target file not found: {target_path}")
        if is_bound(content, identifier):
            return LocalFixResult.no_fix(f"{identifier} is already imported")

        exporters = self._find_exporters(identifier, target_path, files)
        if not exporters:
            return LocalFixResult.no_fix(f"No project file exports {identifier}")
        if len(exporters) > 1:
            paths = ", ".join(sorted(exporters))
            return LocalFixResult.no_fix(
                f"{identifier} is exported by several files ({paths}); not guessing"
            )

        [(path, symbol_kind)] = exporters.items()
        specifier = relative_specifier(target_path, path)
        symbol = SymbolImport(
            specifier,
            is_default=symbol_kind == "default",
            is_type_only=symbol_kind == "type",
        )
        return LocalFixResult(
            applied=True,
            patched_files={target_path: add_import(content, identifier, symbol)},
            explanation=f"Added import for {identifier} from '{specifier}'",
            kind=FixKind.UNDEFINED_VARIABLE,
        )

    def _find_exporters(
        self, identifier: str, target_path: str, files: Mapping[str, str]
    ) -> dict[str, str]:
        """Map each file exporting `identifier` to ``default``/``named``/``type``."""
        default = _default_export(identifier)
        named = _named_export(identifier)
        listed = _export_list(identifier)
        exporters: dict[str, str] = {}
        for path, content in files.items():
            if path == target_path or not content:
                continue
            if posixpath.splitext(path)[1] not in constants.JS_SOURCE_EXTENSIONS:
                continue
            if self.path_filter.accept(path) is None:
                continue
            if default.search(content):
                exporters[path] = "default"
            elif match := named.search(content):
                is_type = match.group(1) in _TYPE_DECLARATION
                exporters[path] = "type" if is_type else "named"
            elif listed.search(content):
                exporters[path] = "named"
        return exporters
