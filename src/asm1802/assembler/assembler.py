"""
CDP1802 Assembler - Main Interface
==================================

This module provides the Assembler class, the primary interface for
assembling Level I source code. It reads the source, runs the code
generator and writes the results.

Example Usage
-------------
>>> from asm1802.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... START: LDI #05
...        BR START
...        END
... ''')
>>> code.hex()
'f8053000'
>>> asm.get_symbols()
{'START': 0}
>>> asm.write_hex("blink.hex")

Command-Line Usage
------------------
    $ asm1802 blink.asm -o blink.bin -x blink.hex -l blink.lst -s blink.sym

Options:
    -o, --output FILE      Raw binary image
    -x, --hex FILE         Intel HEX file
    -l, --listing FILE     Listing file
    -s, --symbols FILE     Symbol table file
    -D, --define SYM=VAL   Pre-define symbol
    -q, --quiet            No listing on the console
    -v, --verbose          Verbose output
"""

from pathlib import Path
from typing import Iterable, Optional
import sys

from asm1802.assembler.codegen import CodeGenerator
from asm1802.assembler.listing import (
    ListingLine,
    format_intel_hex,
    format_listing,
    format_summary,
    format_symbol,
)
from asm1802.assembler.symbols import SymbolRecord


# Extension given to a source file named without one
SOURCE_EXTENSION = ".asm"


class Assembler:
    """
    Main CDP1802 assembler class.

    Each call to one of the assemble methods runs a fresh two-pass
    assembly. Symbols given to define_symbol() or the constructor are
    seeded into every run.

    Statement errors do not raise: they are reported per line in the
    listing and counted by error_count().

    Attributes:
        verbose: If True, print progress messages to stderr
        fill_byte: Value for gaps in the binary image
    """

    def __init__(
        self,
        verbose: bool = False,
        defines: Optional[dict[str, int]] = None,
        fill_byte: int = 0x00,
    ):
        """
        Initialize the assembler.

        Args:
            verbose: Enable verbose output
            defines: Dictionary of pre-defined symbols
            fill_byte: Value written to unused addresses of the binary image
        """
        self.verbose = verbose
        self.fill_byte = fill_byte & 0xFF
        self._defines: dict[str, int] = {}
        self._source_file: Optional[Path] = None
        self._codegen = CodeGenerator()

        if defines:
            for name, value in defines.items():
                self.define_symbol(name, value)

    def define_symbol(self, name: str, value: int) -> None:
        """
        Pre-define a symbol (like -D on command line).

        Args:
            name: Symbol name
            value: Symbol value
        """
        self._defines[name.upper()] = value & 0xFFFF

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_lines(self, lines: Iterable[str]) -> bytes:
        """
        Assemble a sequence of source lines.

        Args:
            lines: Source lines without line terminators

        Returns:
            The object image
        """
        self._codegen = CodeGenerator()
        for name, value in self._defines.items():
            self._codegen.define_symbol(name, value)

        self._codegen.generate(lines)
        code = self.get_code()

        self._log(
            f"Assembled {len(self._codegen.statements)} statements: "
            f"{len(code)} bytes, {self.error_count()} errors"
        )
        return code

    def assemble_string(self, source: str) -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code

        Returns:
            The object image
        """
        return self.assemble_lines(source.splitlines())

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        A file name without an extension gets `.asm` appended.

        Args:
            filepath: Path to assembly source file

        Returns:
            The object image

        Raises:
            FileNotFoundError: If source file not found
        """
        filepath = source_path(filepath)
        self._source_file = filepath
        self._log(f"Assembling {filepath}...")

        source = filepath.read_text(encoding="latin-1")
        return self.assemble_string(source)

    # =========================================================================
    # Results
    # =========================================================================

    @property
    def codegen(self) -> CodeGenerator:
        """The code generator of the last run."""
        return self._codegen

    @property
    def source_file(self) -> Optional[Path]:
        return self._source_file

    def get_code(self) -> bytes:
        """Return the object image, gaps filled with fill_byte."""
        return self._codegen.image.to_bytes(self.fill_byte)

    def get_origin(self) -> int:
        """Return the lowest address holding code."""
        return self._codegen.image.start

    def get_segments(self) -> list[tuple[int, bytes]]:
        """Return the object code as (address, bytes) chunks."""
        return self._codegen.image.segments()

    def get_symbols(self) -> dict[str, int]:
        """Return a dictionary of resolved symbol names to values."""
        return {
            record.name: record.value
            for record in self.get_symbol_records()
            if record.resolved
        }

    def get_symbol_records(self) -> list[SymbolRecord]:
        return self._codegen.symbols.records()

    def get_listing_lines(self) -> list[ListingLine]:
        return self._codegen.listing

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing rows followed by the error count and symbol table
        """
        return (
            format_listing(self._codegen.listing)
            + "\n\n"
            + self.get_summary()
        )

    def get_summary(self) -> str:
        """Return the error count and symbol table."""
        return format_summary(
            self.error_count(),
            self.get_symbol_records(),
            self._codegen.errors.warnings,
        )

    # =========================================================================
    # Output Methods
    # =========================================================================

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write raw binary output.

        The image runs from the lowest to the highest address holding code.

        Args:
            filepath: Output file path
        """
        code = self.get_code()
        Path(filepath).write_bytes(code)
        self._log(f"Wrote {len(code)} bytes to {filepath}")

    def write_hex(self, filepath: str | Path) -> None:
        """
        Write Intel HEX output.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(
            format_intel_hex(self.get_segments(), self.get_origin())
        )
        self._log(f"Wrote Intel HEX to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(self.get_listing() + "\n")
        self._log(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: one `NAME     HHHH ddddd` row per symbol
        """
        rows = [format_symbol(record) for record in self.get_symbol_records()]
        Path(filepath).write_text("".join(row + "\n" for row in rows))
        self._log(f"Wrote symbols to {filepath}")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        """
        Check if assembly produced errors.

        Returns:
            True if errors occurred
        """
        return self._codegen.has_errors()

    def error_count(self) -> int:
        return self._codegen.error_count()

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            One line per error with its source line number
        """
        return self._codegen.errors.report()

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)


def source_path(filepath: str | Path) -> Path:
    """Return the path of a source file, adding `.asm` if it has no extension."""
    filepath = Path(filepath)
    if not filepath.suffix:
        filepath = filepath.with_suffix(SOURCE_EXTENSION)
    return filepath


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, defines: Optional[dict[str, int]] = None) -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        defines: Pre-defined symbols

    Returns:
        Generated object code
    """
    asm = Assembler(defines=defines)
    return asm.assemble_string(source)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Args:
        filepath: Path to source file

    Returns:
        Generated object code
    """
    asm = Assembler()
    return asm.assemble_file(filepath)
