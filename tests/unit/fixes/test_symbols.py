"""The well-known symbol table."""

import pytest

from codegen_recovery.fixes.symbols import (
    SymbolImport,
    SymbolTable,
    default_symbol_table,
)

pytestmark = pytest.mark.unit


class TestSymbolImport:
    def test_empty_module_is_rejected(self):
        with pytest.raises(ValueError, match="module"):
            SymbolImport("")

    def test_default_and_type_only_are_exclusive(self):
        with pytest.raises(ValueError, match="both"):
            SymbolImport("react", is_default=True, is_type_only=True)


class TestDefaultTable:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("React", SymbolImport("react", is_default=True)),
            ("useState", SymbolImport("react")),
            ("FC", SymbolImport("react", is_type_only=True)),
            ("X", SymbolImport("lucide-react")),
            ("motion", SymbolImport("motion/react")),
            ("clsx", SymbolImport("clsx", is_default=True)),
        ],
    )
    def test_known_symbols(self, name, expected):
        assert default_symbol_table()[name] == expected

    def test_built_once(self):
        assert default_symbol_table() is default_symbol_table()

    def test_read_only(self):
        table = default_symbol_table()
        with pytest.raises(TypeError):
            table["Toast"] = SymbolImport("sonner")  # type: ignore[index]

    def test_extended_returns_a_new_table(self):
        base = default_symbol_table()
        extended = base.extended(
            {"Toast": SymbolImport("sonner")}, toast=SymbolImport("sonner")
        )

        assert isinstance(extended, SymbolTable)
        assert extended["Toast"].module == "sonner"
        assert "toast" in extended
        assert "Toast" not in base
        assert len(extended) == len(base) + 2
