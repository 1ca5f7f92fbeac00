"""
Listing and Output Formatting
=============================

Text renderings of an assembly run: the console listing, the error summary
with the symbol table, the symbol file and Intel HEX.

Listing Layout
--------------
One row per source line, with up to seven object bytes per row. Longer
code continues on the following rows, each starting at its own address:

    0000 F805;              0001 START: LDI #05
    0002 3000;              0002        BR START
    0004 48454C4C4F2057;    0003 MSG: DC T'HELLO WORLD'
    000B 4F524C44;          0003
    >>> Undefined symbol

Symbol Table Layout
-------------------
    Symbol   Hex    Dec
    START    0000     0
    COUNT    not yet known

Intel HEX
---------
Data records of up to 16 bytes, one run per contiguous chunk of the object
image, followed by an end-of-file record.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from asm1802.assembler.symbols import SymbolRecord


# Object bytes shown on one listing row
BYTES_PER_ROW = 7

# Width of the symbol name column
NAME_WIDTH = 8

# Data bytes per Intel HEX record
HEX_RECORD_SIZE = 16


@dataclass
class ListingLine:
    """
    Assembly result for one source line.

    Attributes:
        address: Location counter at the first statement of the line
        code: Object bytes generated by all statements of the line
        line_number: 1-indexed source line number
        source: Source text as written
        diagnostics: Error messages for the line
    """
    address: int
    code: bytes
    line_number: int
    source: str
    diagnostics: list[str] = field(default_factory=list)


# =============================================================================
# Listing
# =============================================================================

def format_listing_line(line: ListingLine) -> list[str]:
    """
    Render one listing line as console rows.

    Returns:
        The code rows followed by one `>>> ` row per diagnostic
    """
    rows = []
    offset = 0
    while True:
        chunk = line.code[offset:offset + BYTES_PER_ROW]
        row = f"{(line.address + offset) & 0xFFFF:04X} {chunk.hex().upper()};"
        row += "  " * (BYTES_PER_ROW - len(chunk))
        row += f" {line.line_number:04d}"
        if offset == 0:
            row += f" {line.source}"
        rows.append(row.rstrip())
        offset += BYTES_PER_ROW
        if offset >= len(line.code):
            break

    for message in line.diagnostics:
        rows.append(f">>> {message}")
    return rows


def format_listing(lines: Iterable[ListingLine]) -> str:
    """Render a full listing."""
    rows = []
    for line in lines:
        rows.extend(format_listing_line(line))
    return "\n".join(rows)


# =============================================================================
# Summary and Symbol Table
# =============================================================================

def format_symbol(record: SymbolRecord) -> str:
    name = record.name.ljust(NAME_WIDTH)[:NAME_WIDTH]
    if not record.resolved:
        return f"{name} not yet known"
    return f"{name} {record.value:04X} {record.value:5d}"


def format_symbol_table(records: Iterable[SymbolRecord]) -> str:
    """Render the symbol table with its title and header."""
    rows = ["Symbol Table", "", "Symbol".ljust(NAME_WIDTH) + " Hex    Dec"]
    rows.extend(format_symbol(record) for record in records)
    return "\n".join(rows)


def format_summary(
    error_count: int,
    records: Iterable[SymbolRecord],
    warnings: Optional[Iterable[str]] = None,
) -> str:
    """
    Render the end-of-run summary.

    Args:
        error_count: Number of errors found in the final pass
        records: Symbol table records
        warnings: Run-level warnings (e.g. a missing END)
    """
    rows = list(warnings or [])
    rows.append(f"{error_count} errors")
    rows.append("")
    rows.append(format_symbol_table(records))
    return "\n".join(rows)


# =============================================================================
# Intel HEX
# =============================================================================

def _hex_record(address: int, record_type: int, data: bytes = b"") -> str:
    checksum = len(data) + (address >> 8) + (address & 0xFF) + record_type + sum(data)
    return (
        f":{len(data):02X}{address:04X}{record_type:02X}"
        f"{data.hex().upper()}{(-checksum) & 0xFF:02X}"
    )


def format_intel_hex(
    chunks: Iterable[tuple[int, bytes]], start_address: int = 0
) -> str:
    """
    Render object chunks as Intel HEX.

    Args:
        chunks: (address, bytes) pairs
        start_address: Address stored in the end-of-file record

    Returns:
        HEX text, one record per line, ending with a newline
    """
    records = []
    for address, data in chunks:
        for offset in range(0, len(data), HEX_RECORD_SIZE):
            records.append(
                _hex_record(
                    (address + offset) & 0xFFFF,
                    0x00,
                    data[offset:offset + HEX_RECORD_SIZE],
                )
            )
    records.append(_hex_record(start_address & 0xFFFF, 0x01))
    return "\n".join(records) + "\n"
