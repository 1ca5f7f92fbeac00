"""
asm1802 Error Hierarchy
=======================

This module defines the error kinds reported by the assembler and the
exception hierarchy used to carry them between the lexer, the expression
evaluator and the statement parser.

Error Kinds
-----------
The assembler reports a closed set of errors, each attached to
exactly one cause. They are modelled by the ErrorKind enumeration:

| Kind          | Cause                                       |
|---------------|---------------------------------------------|
| INV_MNE       | invalid mnemonic or missing comma           |
| DUP_SYM       | symbol defined more than once               |
| INV_BCONST    | invalid binary constant                     |
| INV_DCONST    | invalid decimal constant                    |
| MISSING_CONST | a constant was expected                     |
| UNDEF_SYMB    | undefined symbol                            |
| MISSING_EXPR  | an expression was expected                  |
| INV_HCONST    | invalid hex constant                        |
| MISSING_QUOTE | missing closing quote                       |
| INV_PERIOD    | invalid period                              |
| BAD_START     | invalid character at start of statement     |
| INV_BRANCH    | short branch target outside the page        |
| INV_REG       | invalid register number                     |
| INV_DEV       | invalid device number                       |
| MISSING_PAREN | missing closing parenthesis                 |
| INV_SYNTAX    | generic syntax error                        |
| PHASE         | statement size differs between the passes   |

Exception Hierarchy
-------------------
Asm1802Error (base)
└── AssemblerError (carries an ErrorKind)
    ├── AssemblySyntaxError  - INV_MNE, MISSING_QUOTE, INV_PERIOD, BAD_START,
    │                          MISSING_PAREN, INV_SYNTAX
    ├── ConstantError        - INV_BCONST, INV_HCONST, INV_DCONST, MISSING_CONST
    ├── ExpressionError      - MISSING_EXPR
    ├── UndefinedSymbolError - UNDEF_SYMB
    ├── DuplicateSymbolError - DUP_SYM
    ├── BranchRangeError     - INV_BRANCH
    ├── OperandRangeError    - INV_REG, INV_DEV
    └── PhaseError           - PHASE

Errors never abort an assembly run. The statement parser catches
AssemblerError at the statement boundary and records its kind on the
statement; the driver turns recorded kinds into per-line diagnostics.
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Error Kinds
# =============================================================================

class ErrorKind(Enum):
    """
    Closed enumeration of statement errors.

    The value of each member is the diagnostic text printed in the listing.
    """

    INV_MNE = "Invalid mnemonic or missing comma"
    DUP_SYM = "Previously defined symbol"
    INV_BCONST = "Invalid binary constant"
    INV_DCONST = "Invalid decimal constant"
    MISSING_CONST = "A constant was expected"
    UNDEF_SYMB = "Undefined symbol"
    MISSING_EXPR = "An expression was expected"
    INV_HCONST = "Invalid hex constant"
    MISSING_QUOTE = "Missing end quote in string"
    INV_PERIOD = "Invalid '.'"
    BAD_START = "Invalid char at start of statement"
    INV_BRANCH = "Branch out of page"
    INV_REG = "Invalid register number"
    INV_DEV = "Invalid device number"
    MISSING_PAREN = "Missing closing parenthesis"
    INV_SYNTAX = "Syntax error"
    PHASE = "Size changed between passes"

    @property
    def message(self) -> str:
        """Return the diagnostic text for this kind."""
        return self.value


# =============================================================================
# Base Exception Classes
# =============================================================================

class Asm1802Error(Exception):
    """
    Base exception for all asm1802 errors.

    Callers can catch every error raised by the package with a single
    except clause:

        try:
            assembler.assemble_file("blink.asm")
        except Asm1802Error as e:
            print(f"Error: {e}")
    """
    pass


class AssemblerError(Asm1802Error):
    """
    Base exception for statement-level assembly errors.

    Attributes:
        kind: The ErrorKind describing the cause
        line: Source line number (1-indexed), when known
        detail: Extra context such as the offending symbol name
    """

    default_kind = ErrorKind.INV_SYNTAX

    def __init__(
        self,
        kind: Optional[ErrorKind] = None,
        line: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.kind = kind or self.default_kind
        self.line = line
        self.detail = detail
        super().__init__(self._format_message())

    def at_line(self, line: int) -> "AssemblerError":
        """
        Attach a source line number to an error raised without one.

        The lexer and evaluator work on statement text only; the driver
        knows which source line the statement came from.
        """
        self.line = line
        self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format as 'line N: error: message (detail)'.

        Example output:
            line 12: error: Undefined symbol (LOOP2)
        """
        text = self.kind.message
        if self.detail:
            text = f"{text} ({self.detail})"
        if self.line is not None:
            return f"line {self.line}: error: {text}"
        return f"error: {text}"


class AssemblySyntaxError(AssemblerError):
    """
    Malformed statement text.

    Examples:
        - Unknown mnemonic
        - Unterminated string literal
        - Stray period or missing parenthesis
        - Trailing text after PAGE or END
    """
    pass


class ConstantError(AssemblerError):
    """Invalid binary/decimal/hex constant, or a constant was expected."""

    default_kind = ErrorKind.MISSING_CONST


class ExpressionError(AssemblerError):
    """An expression was expected but none was found."""

    default_kind = ErrorKind.MISSING_EXPR


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a symbol with no known value.

    Only raised in the second pass; the first pass substitutes zero so
    that forward references can be laid out.
    """

    default_kind = ErrorKind.UNDEF_SYMB

    def __init__(self, symbol: str, line: Optional[int] = None):
        self.symbol = symbol
        super().__init__(ErrorKind.UNDEF_SYMB, line=line, detail=symbol)


class DuplicateSymbolError(AssemblerError):
    """Symbol defined more than once; the first definition is kept."""

    default_kind = ErrorKind.DUP_SYM

    def __init__(
        self,
        symbol: str,
        line: Optional[int] = None,
        original_line: Optional[int] = None,
    ):
        self.symbol = symbol
        self.original_line = original_line
        detail = symbol
        if original_line is not None:
            detail = f"{symbol}, first defined at line {original_line}"
        super().__init__(ErrorKind.DUP_SYM, line=line, detail=detail)


class BranchRangeError(AssemblerError):
    """
    Short branch target outside the current page.

    A CDP1802 short branch replaces only the low byte of the program
    counter, so the target must lie in the same 256-byte page as the
    branch operand byte.
    """

    default_kind = ErrorKind.INV_BRANCH

    def __init__(self, target: int, pc: int, line: Optional[int] = None):
        self.target = target
        self.pc = pc
        super().__init__(
            ErrorKind.INV_BRANCH,
            line=line,
            detail=f"target ${target:04X} from ${pc:04X}",
        )


class OperandRangeError(AssemblerError):
    """Register number outside 0-15 (1-15 for LDN) or device outside 0-7."""

    default_kind = ErrorKind.INV_REG


class PhaseError(AssemblerError):
    """
    A statement assembled to a different size in the second pass.

    Happens when a name read as a bare hex constant in the first pass is
    defined as a label later on. The first-pass size is kept so that the
    addresses already bound to labels stay valid.
    """

    default_kind = ErrorKind.PHASE

    def __init__(self, expected: int, actual: int, line: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            ErrorKind.PHASE,
            line=line,
            detail=f"{actual} bytes, laid out as {expected}",
        )


_KIND_CLASSES = {
    ErrorKind.INV_BCONST: ConstantError,
    ErrorKind.INV_DCONST: ConstantError,
    ErrorKind.INV_HCONST: ConstantError,
    ErrorKind.MISSING_CONST: ConstantError,
    ErrorKind.MISSING_EXPR: ExpressionError,
    ErrorKind.INV_REG: OperandRangeError,
    ErrorKind.INV_DEV: OperandRangeError,
}


def error_for(kind: ErrorKind, line: Optional[int] = None) -> AssemblerError:
    """
    Build the exception that carries a given error kind.

    Used where an ERROR token from the lexer has to be turned into an
    exception by the parser or the evaluator.
    """
    cls = _KIND_CLASSES.get(kind, AssemblySyntaxError)
    return cls(kind, line=line)


# =============================================================================
# Error Collection
# =============================================================================

class ErrorCollector:
    """
    Collects diagnostics for batch reporting.

    The driver adds one entry per statement error found in the second pass
    and one warning per run-level condition (a missing END). Nothing is
    raised: the caller decides what a non-zero error count means.

    Example:
        collector = ErrorCollector()
        collector.add(UndefinedSymbolError("LOOP", line=7))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self):
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []

    def add(self, error: AssemblerError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def warning_count(self) -> int:
        """Return the number of collected warnings."""
        return len(self.warnings)

    def report(self) -> str:
        """
        Format all errors and warnings for display.

        Returns:
            Formatted string with all errors, warnings and a summary line
        """
        lines = [str(error) for error in self.errors]

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()
