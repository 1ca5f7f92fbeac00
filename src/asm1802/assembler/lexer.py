"""
CDP1802 Level I Assembly Lexer
==============================

This module implements the lexer (tokenizer) for RCA Level I assembly
language. Unlike a whole-file tokenizer, it works on one statement at a
time: the parser and the expression evaluator share a single Lexer as a
cursor over the statement text and pull tokens from it on demand, looking
at punctuation (`:`, `=`, `,`, `(`, `*`, `+`) directly through the cursor
helpers.

Token Types
-----------
- EMPTY: No token characters at the cursor
- ERROR: A malformed literal; carries an ErrorKind
- STRING: String literal T'...'
- BCONST: Binary constant B'...'
- DCONST: Decimal constant (123 or D'...')
- HCONST: Hex constant (#1F or X'...')
- TEXT: Identifier, mnemonic or directive name

Constant Formats
----------------

| Format      | Form           | Example   | Value  |
|-------------|----------------|-----------|--------|
| Decimal     | digits, D'..'  | 12, D'12' | 12     |
| Hexadecimal | #, X'..'       | #1F       | 31     |
| Binary      | B'..'          | B'1010'   | 10     |
| String      | T'..'          | T'AB'     | 65, 66 |

Decimal constants take 1 to 5 digits and must not exceed 65535, hex
constants 1 to 4 digits, binary constants 1 to 8 digits. Inside quotes a
doubled quote ('') stands for one quote character.

Identifiers and every radix-prefixed literal, T'...' strings included, are
upper-cased.

Example
-------
>>> from asm1802.assembler.lexer import Lexer
>>> lexer = Lexer("LDI #05")
>>> lexer.next_token()
Token(TEXT, 'LDI')
>>> lexer.skip_spaces()
>>> lexer.next_token().value
5
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import string

from asm1802.errors import ErrorKind


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types of Level I assembly language."""

    EMPTY = auto()    # Nothing consumable at the cursor
    ERROR = auto()    # Malformed literal
    STRING = auto()   # T'...'
    BCONST = auto()   # B'...'
    DCONST = auto()   # 123 or D'...'
    HCONST = auto()   # #1F or X'...'
    TEXT = auto()     # Identifier


CONSTANT_TYPES = frozenset({TokenType.BCONST, TokenType.DCONST, TokenType.HCONST})

_RADIX = {
    TokenType.BCONST: 2,
    TokenType.DCONST: 10,
    TokenType.HCONST: 16,
}

BINARY_DIGITS = "01"
DECIMAL_DIGITS = string.digits
HEX_DIGITS = string.digits + "ABCDEF"
TEXT_CHARS = string.digits + string.ascii_uppercase


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token taken from a statement.

    Attributes:
        type: The TokenType classification
        text: Digits of a constant, identifier name or string payload
        error: For ERROR tokens, what was wrong with the literal
    """
    type: TokenType
    text: str = ""
    error: Optional[ErrorKind] = None

    def __repr__(self) -> str:
        if self.type == TokenType.ERROR:
            return f"Token(ERROR, {self.error.name})"
        if self.type == TokenType.EMPTY:
            return "Token(EMPTY)"
        return f"Token({self.type.name}, {self.text!r})"

    @property
    def is_constant(self) -> bool:
        """True for binary, decimal and hex constants."""
        return self.type in CONSTANT_TYPES

    @property
    def value(self) -> Optional[int]:
        """
        Integer value of a constant or string token.

        A string yields the code of its first character. Other token types
        have no value.
        """
        if self.type in _RADIX:
            return int(self.text, _RADIX[self.type])
        if self.type == TokenType.STRING:
            return ord(self.text[0]) & 0xFF
        return None

    @property
    def size(self) -> int:
        """Natural width of a constant: 2 bytes above $FF, else 1."""
        return 2 if (self.value or 0) > 0xFF else 1


# =============================================================================
# Classification Helpers
# =============================================================================

def _all_in(text: str, alphabet: str) -> bool:
    return all(ch in alphabet for ch in text)


def is_hex_word(text: str) -> bool:
    """Check whether text can be read as an unprefixed 1-4 digit hex number."""
    return 1 <= len(text) <= 4 and _all_in(text.upper(), HEX_DIGITS)


def _binary_token(digits: str) -> Token:
    if 1 <= len(digits) <= 8 and _all_in(digits, BINARY_DIGITS):
        return Token(TokenType.BCONST, digits)
    return Token(TokenType.ERROR, digits, ErrorKind.INV_BCONST)


def _decimal_token(digits: str) -> Token:
    if (
        1 <= len(digits) <= 5
        and _all_in(digits, DECIMAL_DIGITS)
        and int(digits) <= 0xFFFF
    ):
        return Token(TokenType.DCONST, digits)
    return Token(TokenType.ERROR, digits, ErrorKind.INV_DCONST)


def _hex_token(digits: str) -> Token:
    if is_hex_word(digits):
        return Token(TokenType.HCONST, digits)
    return Token(TokenType.ERROR, digits, ErrorKind.INV_HCONST)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Cursor over the text of one statement.

    next_token() classifies the span at the cursor by its leading character
    and advances past it. It never skips spaces by itself: callers decide
    where blanks are allowed with skip_spaces().

    A token ends at the first character that is neither alphanumeric nor
    '#' and is not inside an open quote. That character is left for the
    caller.

    Attributes:
        text: The statement text
        pos: Index of the next unread character
    """

    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def at_end(self) -> bool:
        """Check if the cursor is past the last character."""
        return self.pos >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        """
        Look at the character at cursor + offset without advancing.

        Returns an empty string past the end of the text.
        """
        pos = self.pos + offset
        if pos >= len(self.text):
            return ""
        return self.text[pos]

    def advance(self) -> str:
        """Consume and return the current character."""
        if self.at_end():
            return ""
        char = self.text[self.pos]
        self.pos += 1
        return char

    def match(self, expected: str) -> bool:
        """
        Consume the next character if it matches expected.

        Returns:
            True if matched and consumed, False otherwise
        """
        if self.peek() == expected:
            self.pos += 1
            return True
        return False

    def skip_spaces(self) -> None:
        """Skip blanks and tabs."""
        # peek() returns '' at the end, and '' is "in" every string
        while self.peek() and self.peek() in " \t":
            self.pos += 1

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def next_token(self) -> Token:
        """
        Scan the token at the cursor.

        Returns:
            The next Token; EMPTY when the cursor is at the end or at a
            character that cannot start a token
        """
        char = self.peek()

        if char == "":
            return Token(TokenType.EMPTY)

        if char == "'":
            # A quote cannot start a literal; read it as a bad number
            body, closed = self._scan_quoted()
            if not closed:
                return Token(TokenType.ERROR, body, ErrorKind.MISSING_QUOTE)
            return Token(TokenType.ERROR, body, ErrorKind.INV_DCONST)

        if char == "#":
            self.advance()
            return _hex_token(self._scan_word().upper())

        word = self._scan_word()
        if not word:
            return Token(TokenType.EMPTY)

        upper = word.upper()
        if word[0] in string.ascii_letters:
            if self.peek() == "'":
                return self._scan_literal(upper)
            if _all_in(upper, TEXT_CHARS):
                return Token(TokenType.TEXT, upper)
            return Token(TokenType.ERROR, upper, ErrorKind.INV_SYNTAX)

        return _decimal_token(upper)

    def _scan_word(self) -> str:
        """Consume a run of alphanumerics and '#'."""
        start = self.pos
        while self.peek() and (self.peek().isalnum() or self.peek() == "#"):
            self.pos += 1
        return self.text[start:self.pos]

    def _scan_quoted(self) -> tuple[str, bool]:
        """
        Consume a quoted span starting at the opening quote.

        Returns:
            (payload, closed) - payload with doubled quotes collapsed, and
            whether a closing quote was found
        """
        self.advance()
        chars = []
        while not self.at_end():
            char = self.advance()
            if char == "'":
                if self.peek() == "'":
                    self.advance()
                    chars.append("'")
                    continue
                return "".join(chars), True
            chars.append(char)
        return "".join(chars), False

    def _scan_literal(self, prefix: str) -> Token:
        """
        Scan a quoted literal after its letter prefix (B, D, T or X).

        The prefix has already been consumed; the cursor is on the quote.
        """
        body, closed = self._scan_quoted()

        if len(prefix) != 1 or prefix not in "BDTX":
            return Token(TokenType.ERROR, prefix, ErrorKind.INV_SYNTAX)
        if not closed:
            return Token(TokenType.ERROR, body, ErrorKind.MISSING_QUOTE)

        body = body.upper()
        if prefix == "T":
            if not body:
                return Token(TokenType.ERROR, body, ErrorKind.MISSING_QUOTE)
            return Token(TokenType.STRING, body)

        if prefix == "B":
            return _binary_token(body)
        if prefix == "D":
            return _decimal_token(body)
        return _hex_token(body)
