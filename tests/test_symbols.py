# =============================================================================
# test_symbols.py - Symbol Table Tests
# =============================================================================
# Tests for the symbol table shared by both passes.
#
# Test coverage includes:
#   - Case-insensitive definition and lookup
#   - Duplicate definitions
#   - Value updates and 16-bit masking
#   - Records in definition order
# =============================================================================

import pytest
from asm1802.assembler.symbols import PREDEFINED, SymbolRecord, SymbolTable
from asm1802.errors import DuplicateSymbolError, ErrorKind, UndefinedSymbolError


class TestDefinition:
    """Test defining and looking up symbols."""

    def test_define_and_lookup(self):
        """A defined symbol keeps its value, index and line."""
        table = SymbolTable()
        table.define("START", 0x0100, index=3, line=4)
        symbol = table.lookup("START")
        assert symbol.value == 0x0100
        assert symbol.index == 3
        assert symbol.line == 4
        assert symbol.resolved

    def test_case_insensitive(self):
        """Names are looked up without regard to case."""
        table = SymbolTable()
        table.define("Loop", 1)
        assert "LOOP" in table
        assert "loop" in table
        assert table.lookup("lOoP").name == "LOOP"

    def test_missing(self):
        """Unknown names are not in the table."""
        table = SymbolTable()
        assert table.lookup("NOWHERE") is None
        assert table.value_of("NOWHERE") is None
        assert "NOWHERE" not in table

    def test_default_index(self):
        """Symbols defined without an index count as pre-defined."""
        table = SymbolTable()
        assert table.define("PORT", 4).index == PREDEFINED

    def test_value_masked(self):
        """Values are masked to 16 bits."""
        table = SymbolTable()
        table.define("BIG", 0x12345)
        assert table.value_of("BIG") == 0x2345

    def test_value_not_yet_known(self):
        """A symbol defined without a value is unresolved."""
        table = SymbolTable()
        table.define("COUNT", None)
        assert not table.lookup("COUNT").resolved
        assert table.value_of("COUNT") is None

    def test_duplicate_raises(self):
        """Defining a name twice raises DUP_SYM and keeps the first value."""
        table = SymbolTable()
        table.define("X", 1, line=2)
        with pytest.raises(DuplicateSymbolError) as exc_info:
            table.define("x", 2, line=9)
        assert exc_info.value.kind == ErrorKind.DUP_SYM
        assert exc_info.value.original_line == 2
        assert table.value_of("X") == 1

    def test_len_and_iter(self):
        """The table has a length and iterates in definition order."""
        table = SymbolTable()
        table.define("A1", 1)
        table.define("B1", 2)
        assert len(table) == 2
        assert [symbol.name for symbol in table] == ["A1", "B1"]


class TestUpdates:
    """Test changes to existing symbols."""

    def test_mark_duplicate_keeps_value(self):
        """Marking a duplicate keeps the value."""
        table = SymbolTable()
        table.define("X", 5)
        table.mark_duplicate("X")
        symbol = table.lookup("X")
        assert symbol.duplicate
        assert symbol.value == 5

    def test_update_value(self):
        """Updating a value masks it to 16 bits."""
        table = SymbolTable()
        table.define("COUNT", None)
        table.update_value("COUNT", 0x1FFFF)
        assert table.value_of("COUNT") == 0xFFFF

    def test_update_missing(self):
        """Updating an unknown name raises."""
        table = SymbolTable()
        with pytest.raises(UndefinedSymbolError):
            table.update_value("NOWHERE", 1)

    def test_clear(self):
        """clear() empties the table."""
        table = SymbolTable()
        table.define("X", 1)
        table.clear()
        assert len(table) == 0


class TestRecords:
    """Test summary records for the printed table."""

    def test_definition_order(self):
        """Records come out in definition order."""
        table = SymbolTable()
        table.define("ZETA", 2)
        table.define("ALPHA", 1)
        table.define("LATER", None)
        assert table.records() == [
            SymbolRecord("ZETA", True, 2),
            SymbolRecord("ALPHA", True, 1),
            SymbolRecord("LATER", False, 0),
        ]
