"""Import-statement scanning and editing for JS/TS sources.

Everything here is line based: a statement starts on a line beginning with
``import`` and runs until its module specifier (or a terminating ``;``) is
seen, capped at `constants.MAX_IMPORT_STATEMENT_LINES` lines. That is enough
to edit the imports that generated code actually contains without a JS
parser.
"""

from __future__ import annotations

import dataclasses
import posixpath
import re
from collections.abc import Mapping

from codegen_recovery import constants
from codegen_recovery.fixes.symbols import SymbolImport

_IMPORT_START = re.compile(r"^\s*import(?=[\s{*'\"]|$)")
_FROM_MODULE = re.compile(r"""\bfrom\s*(["'])([^"'\n]+)\1""")
_SIDE_EFFECT = re.compile(r"""^\s*import\s*(["'])([^"'\n]+)\1""")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_DIRECTIVE = re.compile(r"""^\s*(["'])use [\w -]+\1\s*;?\s*$""")
_DEFAULT_ONLY = re.compile(r"^(\s*import\s+[A-Za-z_$][\w$]*)\s+from\b")
_IMPORT_HEAD = re.compile(r"^(\s*import)\s*")


@dataclasses.dataclass(frozen=True, slots=True)
class ImportStatement:
    """One import statement found in a source file.

    Attributes:
        start: Index of the first line of the statement.
        end: Index one past the last line.
        text: The statement's source text (lines joined, endings kept).
        module: The module specifier.
        default: Default binding, if any.
        named: Local names bound by the ``{ ... }`` clause.
        namespace: Binding of a ``* as name`` clause, if any.
        type_only: True for ``import type ...`` statements.
        has_braces: True when the statement has a ``{ ... }`` clause.
    """

    start: int
    end: int
    text: str
    module: str
    default: str | None = None
    named: tuple[str, ...] = ()
    namespace: str | None = None
    type_only: bool = False
    has_braces: bool = False

    @property
    def bindings(self) -> tuple[str, ...]:
        names = [self.default, self.namespace, *self.named]
        return tuple(n for n in names if n)


def scan_imports(content: str) -> list[ImportStatement]:
    """Return the file's import statements in source order."""
    lines = content.splitlines(keepends=True)
    statements: list[ImportStatement] = []
    i = 0
    while i < len(lines):
        if not _IMPORT_START.match(lines[i]):
            i += 1
            continue
        statement = _read_statement(lines, i)
        if statement is None:
            i += 1
            continue
        statements.append(statement)
        i = statement.end
    return statements


def _read_statement(lines: list[str], start: int) -> ImportStatement | None:
    limit = min(len(lines), start + constants.MAX_IMPORT_STATEMENT_LINES)
    for end in range(start + 1, limit + 1):
        text = "".join(lines[start:end])
        side_effect = _SIDE_EFFECT.match(text)
        if side_effect:
            return ImportStatement(start, end, text, side_effect.group(2))
        source = _FROM_MODULE.search(text)
        if source:
            return _parse_clause(start, end, text, source)
        if text.rstrip().endswith(";"):
            return None
    return None


def _parse_clause(
    start: int, end: int, text: str, source: re.Match[str]
) -> ImportStatement:
    clause = _IMPORT_START.sub("", text[: source.start()], count=1).strip()
    type_only = False
    if clause.startswith("type ") or clause.startswith("type{"):
        type_only = True
        clause = clause[4:].strip()

    named: list[str] = []
    has_braces = "{" in clause
    if has_braces:
        head, _, rest = clause.partition("{")
        inner = rest.split("}", 1)[0]
        clause = head
        for spec in inner.split(","):
            spec = spec.strip()
            if spec.startswith("type "):
                spec = spec[5:].strip()
            local = spec.rsplit(" as ", 1)[-1].strip()
            if _IDENTIFIER.match(local):
                named.append(local)

    default = namespace = None
    for part in (p.strip() for p in clause.split(",")):
        if part.startswith("*"):
            binding = part.rsplit(" as ", 1)[-1].strip()
            namespace = binding if _IDENTIFIER.match(binding) else None
        elif _IDENTIFIER.match(part):
            default = part

    return ImportStatement(
        start=start,
        end=end,
        text=text,
        module=source.group(2),
        default=default,
        named=tuple(named),
        namespace=namespace,
        type_only=type_only,
        has_braces=has_braces,
    )


def is_bound(content: str, name: str) -> bool:
    """True when an import statement in `content` binds `name`."""
    return any(name in statement.bindings for statement in scan_imports(content))


# --- Editing ---


def render_import(name: str, symbol: SymbolImport) -> str:
    """A single-symbol import statement, without a trailing newline."""
    if symbol.is_default:
        return f"import {name} from '{symbol.module}';"
    if symbol.is_type_only:
        return f"import type {{ {name} }} from '{symbol.module}';"
    return f"import {{ {name} }} from '{symbol.module}';"


def add_import(content: str, name: str, symbol: SymbolImport) -> str:
    """Return `content` with `name` imported as described by `symbol`.

    Merges into an existing import of the same module when the statement's
    shape allows it; otherwise inserts a new statement.
    """
    statements = scan_imports(content)
    lines = content.splitlines(keepends=True)
    for statement in statements:
        if statement.module != symbol.module:
            continue
        merged = _merge(statement, name, symbol)
        if merged is not None:
            return "".join(
                [*lines[: statement.start], merged, *lines[statement.end :]]
            )
    return insert_statement(content, render_import(name, symbol), statements)


def _merge(statement: ImportStatement, name: str, symbol: SymbolImport) -> str | None:
    """Rewritten statement text, or None when the shapes do not combine."""
    if statement.namespace is not None:
        return None
    if symbol.is_type_only:
        if statement.type_only and statement.has_braces:
            return _add_to_braces(statement.text, name)
        return None
    if statement.type_only:
        return None
    if symbol.is_default:
        if statement.default is None and statement.has_braces:
            return _IMPORT_HEAD.sub(
                lambda m: f"{m.group(1)} {name}, ", statement.text, count=1
            )
        return None
    if statement.has_braces:
        return _add_to_braces(statement.text, name)
    if statement.default is not None:
        return _DEFAULT_ONLY.sub(
            lambda m: f"{m.group(1)}, {{ {name} }} from", statement.text, count=1
        )
    return None


def _add_to_braces(text: str, name: str) -> str:
    open_ = text.index("{")
    close = text.index("}", open_)
    inner = text[open_ + 1 : close]
    body = inner.rstrip()
    trailing = inner[len(body) :]
    if not body.strip():
        new_inner = f" {name} "
    elif "\n" in inner:
        had_comma = body.endswith(",")
        last_line = body.rsplit("\n", 1)[-1]
        indent = last_line[: len(last_line) - len(last_line.lstrip())]
        comma = "," if had_comma else ""
        new_inner = f"{body.rstrip(',')},\n{indent}{name}{comma}{trailing}"
    else:
        new_inner = f"{body.rstrip(',')}, {name}{trailing or ' '}"
    return f"{text[: open_ + 1]}{new_inner}{text[close:]}"


def insert_statement(
    content: str,
    statement: str,
    statements: list[ImportStatement] | None = None,
) -> str:
    """Insert `statement` after the first import, or after leading directives."""
    if statements is None:
        statements = scan_imports(content)
    lines = content.splitlines(keepends=True)
    if statements:
        position = statements[0].end
    else:
        position = 0
        while position < len(lines) and _DIRECTIVE.match(lines[position]):
            position += 1
    if position > 0 and not lines[position - 1].endswith("\n"):
        lines[position - 1] += "\n"
    return "".join([*lines[:position], f"{statement}\n", *lines[position:]])


# --- Paths ---


def strip_source_extension(path: str) -> str:
    root, ext = posixpath.splitext(path)
    return root if ext in constants.JS_SOURCE_EXTENSIONS else path


def relative_specifier(from_file: str, to_path: str) -> str:
    """Import specifier leading from `from_file` to `to_path`, extension stripped.

    >>> relative_specifier("src/pages/Home.tsx", "src/components/Button.tsx")
    '../components/Button'
    """
    start = posixpath.dirname(from_file) or "."
    relative = posixpath.relpath(to_path, start)
    if not relative.startswith("../"):
        relative = f"./{relative}"
    return strip_source_extension(relative)


def resolve_specifier(specifier: str, files: Mapping[str, str]) -> str | None:
    """Find the project file a bare specifier refers to.

    Tries the specifier as given, with each resolvable extension, as a
    directory with an ``index`` file, and all of that again under ``src/``.
    """
    base = posixpath.normpath(specifier.lstrip("/"))
    if base.startswith("../"):
        return None
    roots = [base] if base.startswith("src/") else [base, f"src/{base}"]
    for root in roots:
        candidates = [root]
        candidates.extend(f"{root}{ext}" for ext in constants.RESOLVABLE_EXTENSIONS)
        candidates.extend(
            f"{root}/index{ext}" for ext in constants.RESOLVABLE_EXTENSIONS
        )
        for candidate in candidates:
            if candidate in files:
                return candidate
    return None


def rewrite_specifier(content: str, old: str, new: str) -> str:
    """Replace `old` with `new` wherever it is used as an import source."""
    pattern = re.compile(
        r"""(\bfrom\s*|\bimport\s*\(\s*|^\s*import\s*)(["'])"""
        + re.escape(old)
        + r"\2",
        re.M,
    )
    return pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}{new}{m.group(2)}", content)
