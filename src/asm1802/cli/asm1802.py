"""
asm1802 - CDP1802 Assembler Command-Line Interface
==================================================

This module implements the command-line interface for the CDP1802 Level I
assembler. It prints a banner, the listing, the error count and the symbol
table, and writes the requested output files.

Usage Examples
--------------
Basic assembly (listing on the console only):
    $ asm1802 blink.asm

The extension may be omitted:
    $ asm1802 blink

Generate all output files:
    $ asm1802 blink.asm -o blink.bin -x blink.hex -l blink.lst -s blink.sym

With defines:
    $ asm1802 -D PORT=4 -D DELAY=#40 blink.asm

Verbose mode:
    $ asm1802 -v blink.asm
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click

from asm1802 import __version__
from asm1802.assembler import Assembler
from asm1802.assembler.assembler import source_path
from asm1802.assembler.listing import format_listing
from asm1802.cli.errors import (
    ExitCode,
    handle_cli_exception,
    parse_number,
    setup_logging,
)

logger = logging.getLogger(__name__)


def parse_define(text: str) -> tuple[str, int]:
    """
    Parse a -D option.

    NAME=VALUE gives the value; a bare NAME is defined as 1.

    Raises:
        click.BadParameter: If the value is not a number
    """
    if "=" not in text:
        return text.strip(), 1
    name, value_str = text.split("=", 1)
    try:
        return name.strip(), parse_number(value_str)
    except ValueError:
        raise click.BadParameter(f"invalid value in -D {text}", param_hint="-D")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("input_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write raw binary image",
)
@click.option(
    "-x", "--hex",
    "hex_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write Intel HEX file",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write symbol file",
)
@click.option(
    "-D", "--define",
    multiple=True,
    help="Define symbol (format: NAME=VALUE, hex with 0x, $ or #)",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Do not print the listing on the console",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="asm1802")
def main(
    input_file: Path,
    output: Optional[Path],
    hex_file: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    define: tuple[str, ...],
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Assemble CDP1802 Level I source code.

    INPUT_FILE is the assembly source file; `.asm` is added when it has
    no extension.

    \b
    Examples:
        asm1802 blink.asm                 # Listing on the console
        asm1802 blink -o blink.bin        # Raw binary image
        asm1802 blink.asm -x blink.hex    # Intel HEX
        asm1802 -D PORT=4 blink.asm       # Define symbol

    Binary and HEX files are only written when the program has no errors.
    """
    setup_logging(verbose)

    try:
        defines = dict(parse_define(text) for text in define)
        source = source_path(input_file)
        if not source.is_file():
            raise FileNotFoundError(f"{source} not found")

        asm = Assembler(verbose=verbose, defines=defines)

        click.echo(f"ASM1802 v{__version__}")
        click.echo()

        asm.assemble_file(source)

        if not quiet:
            click.echo(format_listing(asm.get_listing_lines()))
            click.echo()
        click.echo(asm.get_summary())

        if listing:
            asm.write_listing(listing)
        if symbols:
            asm.write_symbols(symbols)

        if asm.has_errors():
            if verbose:
                click.echo(asm.get_error_report(), err=True)
            sys.exit(ExitCode.ASSEMBLY_ERROR)

        if output:
            asm.write_binary(output)
        if hex_file:
            asm.write_hex(hex_file)

        logger.debug(
            f"Assembly complete: {len(asm.get_code())} bytes at "
            f"${asm.get_origin():04X}, {len(asm.get_symbol_records())} symbols"
        )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
