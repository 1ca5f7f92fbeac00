"""
Level I Expression Evaluator
============================

This module evaluates the operand expressions of Level I assembly language.
The language has no operator precedence to speak of: an expression is one
simple term, optionally followed by a single signed constant offset, and
optionally wrapped in an address-of form.

Expression Grammar
------------------
    expression := address_of | term [offset]
    address_of := "A" ["." ("0" | "1")] "(" term [offset] ")"
    offset     := ("+" | "-") constant
    term       := "*" | constant | string | identifier

**Terms:**
- `*` - current location counter (2 bytes)
- constant - binary/decimal/hex literal (1 byte up to $FF, else 2)
- string - T'..' literal, the code of its first character (1 byte)
- identifier - symbol value (1 byte hint); an unbound identifier made of
  1-4 hex digits (e.g. `FF`, `C0DE`) is an unprefixed hex constant

**Address-of forms:**
- `A(expr)` - the full 16-bit value, always 2 bytes
- `A.0(expr)` - low byte of the value
- `A.1(expr)` - high byte of the value

Size Hints
----------
Every result carries a size hint of 1 or 2 bytes. It decides how many
bytes a data-list item occupies, and whether an immediate instruction such
as LDI carries a one- or two-byte operand: `LDI A(TABLE)` assembles to
three bytes while `LDI #FF` assembles to two.

Forward References
------------------
In the first pass an undefined identifier evaluates to 0 and the result is
flagged `unresolved`; in the final pass it raises UndefinedSymbolError.

Example Usage
-------------
>>> from asm1802.assembler.context import AssemblyContext
>>> from asm1802.assembler.lexer import Lexer
>>> context = AssemblyContext()
>>> context.symbols.define("BUF", 0x1234)
>>> evaluator = ExpressionEvaluator(context)
>>> evaluator.evaluate(Lexer("A.1(BUF)")).value
18
"""

from dataclasses import dataclass

from asm1802.assembler.context import AssemblyContext
from asm1802.assembler.lexer import Lexer, TokenType, is_hex_word
from asm1802.errors import (
    AssemblySyntaxError,
    ConstantError,
    ErrorKind,
    ExpressionError,
    OperandRangeError,
    UndefinedSymbolError,
    error_for,
)


# Largest register and device numbers
MAX_REGISTER = 0x0F
MAX_DEVICE = 0x07


@dataclass(frozen=True)
class ExprValue:
    """
    Result of evaluating an expression.

    Attributes:
        value: 16-bit value
        size: Size hint, 1 or 2 bytes
        address_of: True for the A(...) form
        unresolved: True if a not-yet-defined symbol was read as 0
    """
    value: int
    size: int = 1
    address_of: bool = False
    unresolved: bool = False

    @property
    def low(self) -> int:
        return self.value & 0xFF

    @property
    def high(self) -> int:
        return (self.value >> 8) & 0xFF

    def to_bytes(self) -> bytes:
        """Encode by the size hint, high byte first."""
        if self.size == 2:
            return bytes([self.high, self.low])
        return bytes([self.low])


# =============================================================================
# Expression Evaluator
# =============================================================================

class ExpressionEvaluator:
    """
    Evaluates expressions against an assembly context.

    The evaluator reads from a Lexer positioned at the start of the
    expression and leaves it just after the last character used. It reads
    the location counter, the pass number and the symbol table from the
    context but never changes them.

    Attributes:
        context: The AssemblyContext of the current run
    """

    def __init__(self, context: AssemblyContext):
        self.context = context

    def evaluate(self, lexer: Lexer) -> ExprValue:
        """
        Evaluate the expression at the cursor.

        Args:
            lexer: Cursor over the statement text

        Returns:
            ExprValue with the value and its size hint

        Raises:
            ExpressionError: If nothing is available at the cursor
            UndefinedSymbolError: If a symbol is undefined in the final pass
            AssemblerError: For malformed literals and address-of forms
        """
        lexer.skip_spaces()
        if lexer.at_end():
            raise ExpressionError()

        if self._at_address_of(lexer):
            return self._address_of(lexer)

        return self._offset(lexer, self._term(lexer))

    def evaluate_register(self, lexer: Lexer, device: bool = False) -> ExprValue:
        """
        Evaluate a register (0-F) or I/O device (0-7) operand.

        The operand is a constant, a symbol (its low 4 bits, or low 3 bits
        for a device), the `Rn` register form or an unprefixed hex digit
        string, tried in that order.

        Args:
            lexer: Cursor over the statement text
            device: True to check against the device range

        Raises:
            OperandRangeError: If a constant is out of range
        """
        limit = MAX_DEVICE if device else MAX_REGISTER
        kind = ErrorKind.INV_DEV if device else ErrorKind.INV_REG

        lexer.skip_spaces()
        token = lexer.next_token()

        if token.type == TokenType.EMPTY:
            raise ExpressionError()
        if token.type == TokenType.ERROR:
            raise error_for(token.error)

        if token.type != TokenType.TEXT:
            return self._checked(token.value, limit, kind)

        name = token.text
        symbol = self.context.symbols.lookup(name)
        if symbol is not None and symbol.resolved:
            return ExprValue(symbol.value & limit)

        if symbol is None:
            if len(name) == 2 and name[0] == "R" and is_hex_word(name[1]):
                return ExprValue(int(name[1], 16))
            if is_hex_word(name):
                return self._checked(int(name, 16), limit, kind)

        return self._undefined(name)

    # =========================================================================
    # Address-of Forms
    # =========================================================================

    def _at_address_of(self, lexer: Lexer) -> bool:
        return lexer.peek().upper() == "A" and lexer.peek(1) in (".", "(")

    def _address_of(self, lexer: Lexer) -> ExprValue:
        """Evaluate A(expr), A.0(expr) or A.1(expr)."""
        lexer.advance()

        part = None
        if lexer.match("."):
            digit = lexer.peek()
            if digit not in ("0", "1"):
                raise AssemblySyntaxError(ErrorKind.INV_PERIOD)
            lexer.advance()
            part = int(digit)
            if not lexer.match("("):
                raise AssemblySyntaxError(ErrorKind.INV_SYNTAX)
        else:
            lexer.match("(")

        lexer.skip_spaces()
        inner = self._offset(lexer, self._term(lexer))
        lexer.skip_spaces()
        if not lexer.match(")"):
            raise AssemblySyntaxError(ErrorKind.MISSING_PAREN)

        if part is None:
            return ExprValue(inner.value, 2, address_of=True, unresolved=inner.unresolved)
        if part == 0:
            return ExprValue(inner.low, 1, unresolved=inner.unresolved)
        return ExprValue(inner.high, 1, unresolved=inner.unresolved)

    # =========================================================================
    # Terms and Offsets
    # =========================================================================

    def _term(self, lexer: Lexer) -> ExprValue:
        if lexer.match("*"):
            return ExprValue(self.context.pc, 2)

        token = lexer.next_token()
        if token.type == TokenType.EMPTY:
            raise ExpressionError()
        if token.type == TokenType.ERROR:
            raise error_for(token.error)
        if token.type == TokenType.STRING:
            return ExprValue(token.value, 1)
        if token.is_constant:
            return ExprValue(token.value, token.size)

        return self._symbol(token.text)

    def _symbol(self, name: str) -> ExprValue:
        symbol = self.context.symbols.lookup(name)
        if symbol is not None and symbol.resolved:
            return ExprValue(symbol.value, 1)
        if symbol is None and is_hex_word(name):
            value = int(name, 16)
            return ExprValue(value, 2 if value > 0xFF else 1)
        return self._undefined(name)

    def _undefined(self, name: str) -> ExprValue:
        if self.context.final_pass:
            raise UndefinedSymbolError(name)
        return ExprValue(0, 1, unresolved=True)

    def _offset(self, lexer: Lexer, base: ExprValue) -> ExprValue:
        """Apply an optional +const or -const to base."""
        sign = lexer.peek()
        if sign not in ("+", "-"):
            return base
        lexer.advance()

        token = lexer.next_token()
        if token.type == TokenType.ERROR and token.error != ErrorKind.INV_SYNTAX:
            raise error_for(token.error)
        if not token.is_constant:
            raise ConstantError(ErrorKind.MISSING_CONST)

        if sign == "+":
            value = base.value + token.value
        else:
            value = base.value - token.value
        return ExprValue(
            value & 0xFFFF,
            2,
            address_of=base.address_of,
            unresolved=base.unresolved,
        )

    @staticmethod
    def _checked(value: int, limit: int, kind: ErrorKind) -> ExprValue:
        if value > limit:
            raise OperandRangeError(kind)
        return ExprValue(value)
