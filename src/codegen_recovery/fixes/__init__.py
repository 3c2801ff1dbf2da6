"""Local, model-free fixes for errors in generated projects."""

from codegen_recovery.fixes.engine import LocalFixEngine
from codegen_recovery.fixes.imports import (
    ImportStatement,
    add_import,
    is_bound,
    relative_specifier,
    resolve_specifier,
    rewrite_specifier,
    scan_imports,
)
from codegen_recovery.fixes.symbols import (
    SymbolImport,
    SymbolTable,
    default_symbol_table,
)

__all__ = [  # noqa: RUF022
    "LocalFixEngine",
    "SymbolImport",
    "SymbolTable",
    "default_symbol_table",
    "ImportStatement",
    "scan_imports",
    "is_bound",
    "add_import",
    "relative_specifier",
    "resolve_specifier",
    "rewrite_specifier",
]
