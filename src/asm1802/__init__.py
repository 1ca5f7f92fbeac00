"""
asm1802 - Level I Assembler Toolchain for the RCA CDP1802
=========================================================

This package provides an assembler and a disassembler for the RCA CDP1802
(COSMAC) 8-bit microprocessor, the CPU of the COSMAC ELF, the VIP and
many space and embedded systems of the 1970s and 1980s.

Source programs are written in the Level I assembly language defined in
the Operator Manual for the RCA COSMAC Development System II.

Main Components
---------------
- **assembler**: Two-pass CDP1802 assembler (asm1802)
    Converts Level I source files (.asm) to binary images, Intel HEX,
    listings and symbol tables

- **disassembler**: CDP1802 disassembler (dis1802)
    Turns machine code back into Level I mnemonics

- **cpu**: The CDP1802 instruction table shared by both

Quick Start
-----------
Assemble a program:
    >>> from asm1802.assembler import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("blink.asm")
    >>> asm.write_hex("blink.hex")

Disassemble it again:
    >>> from asm1802.disassembler import CDP1802Disassembler
    >>> for inst in CDP1802Disassembler().disassemble(code):
    ...     print(inst)

Or use the command-line tools:
    $ asm1802 blink.asm -x blink.hex -l blink.lst
    $ dis1802 blink.bin --start 0x0000

Reference Documentation
-----------------------
- RCA CDP1802 User Manual (MPM-201)
- Operator Manual for the RCA COSMAC Development System II (MPM-216)
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from asm1802.assembler import Assembler, assemble
from asm1802.disassembler import CDP1802Disassembler, DisassembledInstruction
from asm1802.errors import (
    Asm1802Error,
    AssemblerError,
    AssemblySyntaxError,
    ConstantError,
    ExpressionError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    BranchRangeError,
    OperandRangeError,
    PhaseError,
    ErrorKind,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    # Disassembler
    "CDP1802Disassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "Asm1802Error",
    "AssemblerError",
    "AssemblySyntaxError",
    "ConstantError",
    "ExpressionError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "BranchRangeError",
    "OperandRangeError",
    "PhaseError",
    "ErrorKind",
]
