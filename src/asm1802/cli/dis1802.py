"""
dis1802 - CDP1802 Disassembler Command-Line Interface
=====================================================

Usage Examples
--------------
Disassemble a binary image:
    $ dis1802 blink.bin

With base address:
    $ dis1802 blink.bin --address 0x0100

Limit number of instructions:
    $ dis1802 blink.bin --count 20

Output re-assemblable source:
    $ dis1802 blink.bin --source -o blink.asm

Annotate with a symbol file written by asm1802 -s:
    $ dis1802 blink.bin --symbols blink.sym
"""

from pathlib import Path
from typing import Optional

import click

from asm1802 import __version__
from asm1802.cli.errors import handle_cli_exception, parse_number, setup_logging
from asm1802.disassembler import CDP1802Disassembler


def read_symbol_file(path: Path) -> dict[int, str]:
    """
    Read a symbol file written by asm1802.

    Rows are `NAME HHHH DDDDD`; symbols without a value are skipped.

    Returns:
        Mapping of address to symbol name (first name wins)
    """
    symbols: dict[int, str] = {}
    for row in path.read_text().splitlines():
        fields = row.split()
        if len(fields) != 3:
            continue
        name, hex_value, _ = fields
        try:
            symbols.setdefault(int(hex_value, 16), name)
        except ValueError:
            continue
    return symbols


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Base address (decimal, or hex with 0x, $ or #). Default: 0",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Symbol file for address annotations",
)
@click.option(
    "--source",
    is_flag=True,
    help="Omit addresses and bytes; output assembler statements only",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="dis1802")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    symbols: Optional[Path],
    source: bool,
    verbose: bool,
) -> None:
    """
    Disassemble CDP1802 machine code.

    INPUT_FILE is the binary image to disassemble.
    """
    setup_logging(verbose)

    try:
        try:
            base_address = parse_number(address)
        except ValueError:
            raise click.BadParameter(f"invalid address '{address}'", param_hint="--address")
        if not 0 <= base_address <= 0xFFFF:
            raise click.BadParameter(
                "address must be 0-65535 (0x0000-0xFFFF)", param_hint="--address"
            )

        data = input_file.read_bytes()
        if not data:
            raise click.BadParameter(f"{input_file} is empty", param_hint="INPUT_FILE")

        if verbose:
            click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
            click.echo(f"Base address: {base_address:04X}", err=True)

        symbol_table = read_symbol_file(symbols) if symbols else {}
        disasm = CDP1802Disassembler(symbol_table=symbol_table)

        if source:
            instructions = disasm.disassemble(data, base_address, count)
            lines = [f"       ORG #{base_address:04X}"]
            for instr in instructions:
                label = symbol_table.get(instr.address)
                prefix = f"{label}:".ljust(7) if label else "       "
                lines.append(prefix + instr.to_source())
            lines.append("       END")
            result = "\n".join(lines) + "\n"
        else:
            result = disasm.disassemble_to_text(data, base_address, count) + "\n"

        if output:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        else:
            click.echo(result, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
