"""
CDP1802 Code Generator
======================

This module drives the two-pass assembly of a Level I program.

Pass 1 (Layout)
---------------
- Parse every statement with undefined symbols read as 0
- Bind labels to the location counter and equates to their values
- Mark names defined more than once as duplicates
- Follow ORG, PAGE and END to lay out the program
- Warn once if the program has no END

Pass 2 (Code Generation)
------------------------
- Re-parse every statement; undefined symbols are now errors
- Report every definition of a duplicate symbol except the first
- Let the defining equate update its symbol
- Check that short branches stay in their page
- Report statements whose size differs from pass 1
- Collect object bytes and diagnostics per source line

A statement in error, or one whose size changed since pass 1, generates no
code but still occupies the size it had in pass 1, so addresses agree
between the passes.

Object Image
------------
Code is kept as (address, bytes) chunks in generation order. ObjectImage
can flatten the chunks into one contiguous image, filling gaps with a
configurable byte.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional
import logging

from asm1802.assembler.context import AssemblyContext, FINAL_PASS, FIRST_PASS
from asm1802.assembler.listing import ListingLine
from asm1802.assembler.parser import (
    Statement,
    StatementParser,
    StatementType,
    split_source,
)
from asm1802.assembler.symbols import PREDEFINED, SymbolTable
from asm1802.errors import (
    AssemblerError,
    DuplicateSymbolError,
    ErrorCollector,
    PhaseError,
)

logger = logging.getLogger(__name__)


MISSING_END = "Missing END directive"


# =============================================================================
# Object Image
# =============================================================================

@dataclass
class ObjectImage:
    """
    Machine code of a program as address-tagged chunks.

    Adjacent emissions are merged into one chunk.
    """
    chunks: list[tuple[int, bytearray]] = field(default_factory=list)

    def emit(self, address: int, code: bytes) -> None:
        if not code:
            return
        if self.chunks:
            start, data = self.chunks[-1]
            if start + len(data) == address:
                data.extend(code)
                return
        self.chunks.append((address, bytearray(code)))

    def clear(self) -> None:
        self.chunks.clear()

    def __bool__(self) -> bool:
        return bool(self.chunks)

    @property
    def start(self) -> int:
        """Lowest address holding code."""
        if not self.chunks:
            return 0
        return min(address for address, _ in self.chunks)

    @property
    def end(self) -> int:
        """One past the highest address holding code."""
        if not self.chunks:
            return 0
        return max(address + len(data) for address, data in self.chunks)

    def segments(self) -> list[tuple[int, bytes]]:
        """Return the chunks as immutable (address, bytes) pairs."""
        return [(address, bytes(data)) for address, data in self.chunks]

    def to_bytes(self, fill_byte: int = 0x00) -> bytes:
        """
        Flatten the chunks into one image from start to end.

        Later chunks overwrite earlier ones where they overlap.

        Args:
            fill_byte: Value for addresses no chunk covers
        """
        if not self.chunks:
            return b""
        base = self.start
        image = bytearray([fill_byte & 0xFF]) * (self.end - base)
        for address, data in self.chunks:
            offset = address - base
            image[offset:offset + len(data)] = data
        return bytes(image)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Runs the two passes over a program's statements.

    The code generator owns:
    - The assembly context (location counter, pass number, symbol table)
    - The statement sequence, built once from the source lines
    - The object image, listing lines and diagnostics of the last pass 2

    Usage:
        codegen = CodeGenerator()
        codegen.generate(lines)
        image = codegen.image.to_bytes()
        for line in codegen.listing:
            ...
    """

    def __init__(self, context: Optional[AssemblyContext] = None):
        """
        Initialize the code generator.

        Args:
            context: Context to assemble in; a fresh one by default. Pass a
                     context whose symbol table is already filled to skip
                     straight to pass 2.
        """
        self.context = context or AssemblyContext()
        self.parser = StatementParser(self.context)
        self.errors = ErrorCollector()
        self.image = ObjectImage()
        self.statements: list[Statement] = []
        self.source: list[str] = []
        self.listing: list[ListingLine] = []
        self.missing_end = False
        self._layout_sizes: dict[int, int] = {}

    @property
    def symbols(self) -> SymbolTable:
        return self.context.symbols

    # =========================================================================
    # Public Interface
    # =========================================================================

    def define_symbol(self, name: str, value: int) -> None:
        """
        Pre-define a symbol (e.g., from command line -D option).

        Pre-defined symbols behave like equates placed before the program.
        """
        self.symbols.define(name, value, index=PREDEFINED)

    def load(self, lines: Iterable[str]) -> list[Statement]:
        """
        Split source lines into the statement sequence.

        Args:
            lines: Source lines without line terminators

        Returns:
            The statements, in source order
        """
        self.source = [line.rstrip("\r\n") for line in lines]
        self.statements = split_source(self.source)
        logger.debug(
            f"Loaded {len(self.source)} lines, {len(self.statements)} statements"
        )
        return self.statements

    def generate(self, lines: Iterable[str]) -> bytes:
        """
        Assemble source lines.

        This is the main entry point for code generation. Statement errors
        do not raise; check has_errors() and the listing diagnostics.

        Args:
            lines: Source lines without line terminators

        Returns:
            The object image, gaps filled with zero
        """
        self.load(lines)
        self.run_pass1()
        self.run_pass2()
        return self.image.to_bytes()

    def has_errors(self) -> bool:
        return self.errors.has_errors()

    def error_count(self) -> int:
        return self.errors.error_count()

    # =========================================================================
    # Pass 1
    # =========================================================================

    def run_pass1(self) -> None:
        """Lay out the program and build the symbol table."""
        self.context.reset(FIRST_PASS)
        self._layout_sizes.clear()
        self.missing_end = True

        for statement in self.statements:
            self.parser.parse(statement)
            self._layout_sizes[statement.index] = statement.size

            if statement.label is not None:
                self._bind_label(statement)

            if statement.type == StatementType.END:
                self.missing_end = False
                break

            self._update_location(statement)

        if self.missing_end:
            logger.warning(MISSING_END)

        logger.debug(
            f"Pass 1: final pc ${self.context.pc:04X}, {len(self.symbols)} symbols"
        )

    def _bind_label(self, statement: Statement) -> None:
        """Define the label or equate name of a statement."""
        name = statement.label
        if name in self.symbols:
            self.symbols.mark_duplicate(name)
            return

        if not statement.equate:
            value = self.context.pc
        elif statement.is_error or statement.unresolved:
            value = None
        else:
            value = statement.value

        self.symbols.define(
            name, value, index=statement.index, line=statement.line_number
        )

    # =========================================================================
    # Pass 2
    # =========================================================================

    def run_pass2(self) -> None:
        """
        Generate code and diagnostics.

        Can be run again with the same symbol table and gives the same
        result.
        """
        self.context.reset(FINAL_PASS)
        self.errors.clear()
        self.image.clear()
        self.listing = []

        if self.missing_end:
            self.errors.add_warning(MISSING_END)

        lines: dict[int, ListingLine] = {}
        end_pcs: dict[int, int] = {}
        last_line = len(self.source)

        for statement in self.statements:
            line = lines.get(statement.line_number)
            if line is None:
                line = ListingLine(
                    address=self.context.pc,
                    code=b"",
                    line_number=statement.line_number,
                    source=self._source_text(statement.line_number),
                )
                lines[statement.line_number] = line

            if not self._pass2_statement(statement, line):
                last_line = statement.line_number
                break
            end_pcs[statement.line_number] = self.context.pc

        self.listing = self._build_listing(lines, end_pcs, last_line)

        logger.debug(
            f"Pass 2: {self.errors.error_count()} errors, "
            f"{sum(len(data) for _, data in self.image.chunks)} bytes"
        )

    def _pass2_statement(self, statement: Statement, line: ListingLine) -> bool:
        """
        Generate one statement.

        Returns:
            False when the statement is END
        """
        self.parser.parse(statement)

        if statement.is_error:
            self._report(line, statement.exception.at_line(statement.line_number))
            statement.size = self._layout_sizes.get(statement.index, statement.size)
            self.context.advance(statement.size)
            return True

        if statement.label is not None:
            self._check_definition(line, statement)

        if statement.type == StatementType.END:
            return False

        layout_size = self._layout_sizes.get(statement.index)
        if layout_size is not None and layout_size != statement.size:
            self._report(
                line,
                PhaseError(layout_size, statement.size, line=statement.line_number),
            )
            statement.size = layout_size
            self.context.advance(layout_size)
            return True

        if statement.code:
            self.image.emit(self.context.pc, statement.code)
            line.code += statement.code

        self._update_location(statement)
        return True

    def _check_definition(self, line: ListingLine, statement: Statement) -> None:
        """Report later definitions of a duplicate; let an equate update."""
        symbol = self.symbols.lookup(statement.label)
        if symbol is None:
            # pass 2 run on a table that was seeded rather than built
            self._bind_label(statement)
            return

        if symbol.index != statement.index:
            self._report(
                line,
                DuplicateSymbolError(
                    symbol.name,
                    line=statement.line_number,
                    original_line=symbol.line,
                ),
            )
        elif statement.type == StatementType.EQU:
            self.symbols.update_value(symbol.name, statement.value)

    def _report(self, line: ListingLine, error: AssemblerError) -> None:
        self.errors.add(error)
        line.diagnostics.append(error.kind.message)
        logger.debug(str(error))

    def _build_listing(
        self,
        lines: dict[int, ListingLine],
        end_pcs: dict[int, int],
        last_line: int,
    ) -> list[ListingLine]:
        """One listing line per source line, up to the END line."""
        listing = []
        address = 0
        for number in range(1, last_line + 1):
            line = lines.get(number)
            if line is None:
                line = ListingLine(
                    address=address,
                    code=b"",
                    line_number=number,
                    source=self._source_text(number),
                )
            address = end_pcs.get(number, address)
            listing.append(line)
        return listing

    # =========================================================================
    # Helpers
    # =========================================================================

    def _update_location(self, statement: Statement) -> None:
        """Apply the effect of a statement on the location counter."""
        if statement.type == StatementType.ORG:
            self.context.set_pc(statement.value)
        elif statement.type == StatementType.PAGE:
            self.context.next_page()
        elif statement.type != StatementType.EQU:
            self.context.advance(statement.size)

    def _source_text(self, line_number: int) -> str:
        if 1 <= line_number <= len(self.source):
            return self.source[line_number - 1]
        return ""
