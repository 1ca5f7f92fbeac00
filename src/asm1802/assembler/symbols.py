"""
Symbol Table
============

Labels and equates defined by the source program, kept for the whole of
one assembly run (both passes).

A symbol is created by its first definition. A later definition of the
same name never replaces it: the symbol is marked duplicate instead, and
the second pass reports every definition except the first. Only the
defining statement may rewrite the value, which is how an equate that
referred to a forward label gets its final value in the second pass.

Symbols iterate in definition order, which is also the order of the
printed symbol table.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from asm1802.errors import DuplicateSymbolError, UndefinedSymbolError


# Definition index used for symbols seeded from the command line
PREDEFINED = -1


@dataclass
class Symbol:
    """
    One entry of the symbol table.

    Attributes:
        name: Upper-cased symbol name
        value: 16-bit value, or None while not yet known
        duplicate: True once a second definition has been seen
        index: Index of the defining statement (PREDEFINED for -D symbols)
        line: Source line of the defining statement
    """
    name: str
    value: Optional[int] = None
    duplicate: bool = False
    index: int = PREDEFINED
    line: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class SymbolRecord:
    """Summary row for the symbol table printout."""
    name: str
    resolved: bool
    value: int


class SymbolTable:
    """
    Mapping from symbol name to Symbol.

    All changes go through define(), mark_duplicate() and update_value();
    lookup() hands out the Symbol for reading.
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def lookup(self, name: str) -> Optional[Symbol]:
        """Return the symbol called name, or None."""
        return self._symbols.get(name.upper())

    def value_of(self, name: str) -> Optional[int]:
        """Return the value of a symbol, None if absent or not yet known."""
        symbol = self.lookup(name)
        return symbol.value if symbol is not None else None

    def define(
        self,
        name: str,
        value: Optional[int],
        index: int = PREDEFINED,
        line: Optional[int] = None,
    ) -> Symbol:
        """
        Create a new symbol.

        Args:
            name: Symbol name (case-insensitive)
            value: Its value, or None if not yet known
            index: Index of the defining statement
            line: Source line of the definition

        Returns:
            The new Symbol

        Raises:
            DuplicateSymbolError: If the name is already defined
        """
        key = name.upper()
        existing = self._symbols.get(key)
        if existing is not None:
            raise DuplicateSymbolError(key, line=line, original_line=existing.line)

        symbol = Symbol(
            name=key,
            value=None if value is None else value & 0xFFFF,
            index=index,
            line=line,
        )
        self._symbols[key] = symbol
        return symbol

    def mark_duplicate(self, name: str) -> None:
        """Flag a symbol as defined more than once. Its value is kept."""
        self._get(name).duplicate = True

    def update_value(self, name: str, value: Optional[int]) -> None:
        """Set the value of an existing symbol."""
        self._get(name).value = None if value is None else value & 0xFFFF

    def records(self) -> list[SymbolRecord]:
        """Return summary records in definition order."""
        return [
            SymbolRecord(symbol.name, symbol.resolved, symbol.value or 0)
            for symbol in self._symbols.values()
        ]

    def clear(self) -> None:
        self._symbols.clear()

    def _get(self, name: str) -> Symbol:
        symbol = self.lookup(name)
        if symbol is None:
            raise UndefinedSymbolError(name.upper())
        return symbol
