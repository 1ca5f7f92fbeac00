"""
Assembly Context
================

The state shared by every statement of one pass: the location counter,
the pass number and the symbol table. The driver owns one context per run
and hands it to the statement parser and the expression evaluator.
"""

from dataclasses import dataclass, field

from asm1802.assembler.symbols import SymbolTable


FIRST_PASS = 1
FINAL_PASS = 2


@dataclass
class AssemblyContext:
    """
    Location counter, pass number and symbols of an assembly run.

    Attributes:
        symbols: The symbol table, kept across both passes
        pc: 16-bit location counter
        pass_number: FIRST_PASS or FINAL_PASS
    """
    symbols: SymbolTable = field(default_factory=SymbolTable)
    pc: int = 0
    pass_number: int = FIRST_PASS

    @property
    def final_pass(self) -> bool:
        """True in the pass that reports undefined symbols and bad branches."""
        return self.pass_number == FINAL_PASS

    def reset(self, pass_number: int) -> None:
        """Start a pass: location counter back to 0."""
        self.pass_number = pass_number
        self.pc = 0

    def set_pc(self, address: int) -> None:
        self.pc = address & 0xFFFF

    def advance(self, size: int) -> None:
        self.pc = (self.pc + size) & 0xFFFF

    def next_page(self) -> None:
        """Move to the start of the next 256-byte page."""
        self.pc = (self.pc + 0x100) & 0xFF00
