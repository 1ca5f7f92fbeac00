"""
Level I Statement Parser
========================

This module turns the text of one statement into a classified, sized and
encoded Statement. It also holds the splitter that cuts source lines into
statements.

Statements
----------
A source line holds any number of statements separated by `;`. A doubled
period `..` starts a comment that runs to the end of the line:

    START: LDI #05; PLO R2   .. load counter
           BR START

Each statement is one of:

1. **NOP**: Empty, or a label on its own
   ```asm
   LOOP:
   ```

2. **EQU**: Symbol definition, never takes code space
   ```asm
   COUNT = #10
   ```

3. **DC**: Data constants; a statement starting with `,` is a data-list
   ```asm
   DC T'HELLO', #0D, A(START)
   ,#01,#02
   ```

4. **ORG**, **PAGE**, **END**: Location counter control
   ```asm
   ORG #0100
   PAGE
   END
   ```

5. **INSTR**: Machine instruction, optionally followed by a data-list
   ```asm
   LDI A.1(TABLE)
   SEP R4, A(SUB)
   ```

6. **ERROR**: Anything that failed; carries exactly one ErrorKind

Operand Encoding
----------------
| Kind  | Operand              | Bytes                        |
|-------|----------------------|------------------------------|
| NONE  | (none)               | opcode                       |
| REG   | register 0-F         | opcode + register            |
| REG1  | register 1-F         | opcode + register            |
| IODEV | device 0-7           | opcode + device              |
| EXPR  | byte                 | opcode, low                  |
| EXPR  | A(expr)              | opcode, high, low            |
| SADDR | address in same page | opcode, low                  |
| LADDR | address              | opcode, high, low            |

Data-list bytes follow the instruction bytes.

Parsing is repeated in each pass. The result depends only on the
statement text, the location counter, the pass number and the symbol
table; the parser writes only into the Statement.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Optional
import string

from asm1802.assembler.context import AssemblyContext
from asm1802.assembler.expressions import ExpressionEvaluator
from asm1802.assembler.lexer import Lexer, TokenType
from asm1802.cpu import (
    InstructionInfo,
    OperandKind,
    encode_opcode,
    get_instruction_info,
    same_page,
)
from asm1802.errors import (
    AssemblerError,
    AssemblySyntaxError,
    BranchRangeError,
    ErrorKind,
    OperandRangeError,
    error_for,
)


# =============================================================================
# Statement
# =============================================================================

class StatementType(Enum):
    """Terminal classification of a statement."""
    NOP = auto()
    DC = auto()
    EQU = auto()
    ORG = auto()
    PAGE = auto()
    END = auto()
    INSTR = auto()
    ERROR = auto()


# Directives recognized in the mnemonic position
DIRECTIVES = frozenset({"DC", "ORG", "PAGE", "END"})


@dataclass
class Statement:
    """
    One statement of the source program.

    The text, line number and index are fixed when the source is split.
    Everything else is rewritten each time the statement is parsed.

    Attributes:
        text: Raw statement text
        line_number: Source line (1-indexed)
        index: Position in the statement sequence
        label: Label or equate name
        type: Classification
        value: Operand value (instruction), address (ORG), value (EQU)
        mnemonic: Instruction mnemonic
        instruction: Instruction descriptor
        operand_size: Operand bytes after the opcode (EXPR/SADDR/LADDR)
        data: Data-list bytes
        size: Total bytes the statement occupies
        code: Encoded bytes
        error: What went wrong, for ERROR statements
        exception: The error raised while parsing
        equate: True for `name = expr` statements, even when in error
        unresolved: True if the value used a not-yet-known symbol
    """
    text: str
    line_number: int
    index: int = 0
    label: Optional[str] = None
    type: StatementType = StatementType.NOP
    value: int = 0
    mnemonic: Optional[str] = None
    instruction: Optional[InstructionInfo] = None
    operand_size: int = 0
    data: bytearray = field(default_factory=bytearray)
    size: int = 0
    code: bytes = b""
    error: Optional[ErrorKind] = None
    exception: Optional[AssemblerError] = field(default=None, repr=False)
    equate: bool = False
    unresolved: bool = False

    def reset(self) -> None:
        """Clear the results of a previous parse."""
        self.label = None
        self.type = StatementType.NOP
        self.value = 0
        self.mnemonic = None
        self.instruction = None
        self.operand_size = 0
        self.data = bytearray()
        self.size = 0
        self.code = b""
        self.error = None
        self.exception = None
        self.equate = False
        self.unresolved = False

    @property
    def is_error(self) -> bool:
        return self.type == StatementType.ERROR

    def encode(self) -> bytes:
        """
        Generate the object bytes of the statement.

        Returns:
            Opcode and operand bytes followed by data-list bytes; empty for
            statements that take no code space
        """
        if self.type == StatementType.DC:
            return bytes(self.data)
        if self.type != StatementType.INSTR:
            return b""

        info = self.instruction
        code = bytearray([encode_opcode(info, self.value)])
        if self.operand_size == 2:
            code.append((self.value >> 8) & 0xFF)
        if self.operand_size >= 1:
            code.append(self.value & 0xFF)
        code.extend(self.data)
        return bytes(code)


# =============================================================================
# Statement Splitter
# =============================================================================

def split_statements(line: str, line_number: int) -> list[tuple[str, int]]:
    """
    Cut one source line into statement texts.

    Statements are separated by `;` outside quotes. A `..` outside quotes
    starts a comment that runs to the end of the line. Blank statements
    are dropped.

    Args:
        line: The raw source line
        line_number: Its 1-indexed line number

    Returns:
        List of (statement_text, line_number) pairs
    """
    statements = []
    current = []
    in_string = False

    def flush():
        text = "".join(current)
        if text.strip():
            statements.append((text, line_number))
        current.clear()

    pos = 0
    while pos < len(line):
        char = line[pos]
        if in_string:
            if char == "'":
                in_string = False
            current.append(char)
        elif char == "'":
            in_string = True
            current.append(char)
        elif char == "." and line[pos + 1:pos + 2] == ".":
            break
        elif char == ";":
            flush()
        else:
            current.append(char)
        pos += 1

    flush()
    return statements


def split_source(lines: Iterable[str]) -> list[Statement]:
    """
    Build the statement sequence of a program.

    Args:
        lines: Source lines without line terminators

    Returns:
        Statements in source order, indexed from 0
    """
    statements = []
    for line_number, line in enumerate(lines, start=1):
        for text, number in split_statements(line.rstrip("\r\n"), line_number):
            statements.append(Statement(text, number, index=len(statements)))
    return statements


# =============================================================================
# Statement Parser
# =============================================================================

class StatementParser:
    """
    Parses statements against an assembly context.

    Errors raised while reading a statement are caught here, at the
    statement boundary, and recorded on the statement as an ERROR
    classification with its ErrorKind.

    Attributes:
        context: The AssemblyContext of the current run
        evaluator: Expression evaluator bound to the same context
    """

    def __init__(self, context: AssemblyContext):
        self.context = context
        self.evaluator = ExpressionEvaluator(context)

    def parse(self, statement: Statement) -> Statement:
        """
        Parse a statement in place.

        Args:
            statement: The statement to (re)parse

        Returns:
            The same statement, classified and, if valid, encoded
        """
        statement.reset()
        lexer = Lexer(statement.text)
        try:
            self._parse_statement(statement, lexer)
        except AssemblerError as e:
            statement.type = StatementType.ERROR
            statement.error = e.kind
            statement.exception = e
        else:
            statement.code = statement.encode()
        return statement

    # =========================================================================
    # Statement Structure
    # =========================================================================

    def _parse_statement(self, statement: Statement, lexer: Lexer) -> None:
        lexer.skip_spaces()
        while lexer.match(";"):
            lexer.skip_spaces()

        if lexer.at_end():
            statement.type = StatementType.NOP
            return

        if self._data_list_start(statement, lexer):
            return
        self._check_start(lexer)

        name = self._identifier(lexer)

        if lexer.match(":"):
            statement.label = name
            lexer.skip_spaces()
            if lexer.at_end():
                statement.type = StatementType.NOP
                return
            if self._data_list_start(statement, lexer):
                return
            self._check_start(lexer)
            name = self._identifier(lexer)

        lexer.skip_spaces()
        if lexer.match("="):
            if statement.label is not None:
                raise AssemblySyntaxError(ErrorKind.INV_SYNTAX)
            self._parse_equate(statement, name, lexer)
            return

        self._dispatch(statement, name, lexer)

    def _data_list_start(self, statement: Statement, lexer: Lexer) -> bool:
        """Handle a statement that is a bare `,` data-list."""
        if not lexer.match(","):
            return False
        self._parse_data_list(statement, lexer)
        statement.type = StatementType.DC
        return True

    @staticmethod
    def _check_start(lexer: Lexer) -> None:
        char = lexer.peek()
        if char == ".":
            raise AssemblySyntaxError(ErrorKind.INV_PERIOD)
        if char not in string.ascii_letters:
            raise AssemblySyntaxError(ErrorKind.BAD_START)

    @staticmethod
    def _identifier(lexer: Lexer) -> str:
        token = lexer.next_token()
        if token.type == TokenType.ERROR:
            raise error_for(token.error)
        if token.type != TokenType.TEXT:
            raise AssemblySyntaxError(ErrorKind.INV_SYNTAX)
        return token.text

    def _parse_equate(self, statement: Statement, name: str, lexer: Lexer) -> None:
        statement.label = name
        statement.equate = True
        result = self.evaluator.evaluate(lexer)
        statement.value = result.value
        statement.unresolved = result.unresolved
        self._expect_end(lexer)
        statement.type = StatementType.EQU

    def _dispatch(self, statement: Statement, name: str, lexer: Lexer) -> None:
        """Handle the directive or mnemonic in the operation field."""
        if name == "DC":
            lexer.skip_spaces()
            self._parse_data_list(statement, lexer)
            statement.type = StatementType.DC
            return

        if name == "ORG":
            result = self.evaluator.evaluate(lexer)
            statement.value = result.value
            statement.unresolved = result.unresolved
            self._expect_end(lexer)
            statement.type = StatementType.ORG
            return

        if name in ("PAGE", "END"):
            lexer.skip_spaces()
            if not lexer.at_end():
                raise AssemblySyntaxError(ErrorKind.INV_SYNTAX)
            statement.type = StatementType[name]
            return

        info = get_instruction_info(name)
        if info is None:
            raise AssemblySyntaxError(ErrorKind.INV_MNE, detail=name)

        statement.mnemonic = name
        statement.instruction = info
        statement.size = info.size

        self._parse_operand(statement, info, lexer)
        self._parse_trailer(statement, lexer)
        statement.type = StatementType.INSTR

    # =========================================================================
    # Operands
    # =========================================================================

    def _parse_operand(
        self, statement: Statement, info: InstructionInfo, lexer: Lexer
    ) -> None:
        kind = info.operand
        if kind == OperandKind.NONE:
            return

        if kind in (OperandKind.REG, OperandKind.REG1, OperandKind.IODEV):
            result = self.evaluator.evaluate_register(
                lexer, device=(kind == OperandKind.IODEV)
            )
            statement.value = result.value
            statement.unresolved = result.unresolved
            if kind == OperandKind.REG1 and result.value == 0 and not result.unresolved:
                raise OperandRangeError(ErrorKind.INV_REG)
            return

        result = self.evaluator.evaluate(lexer)
        statement.value = result.value
        statement.unresolved = result.unresolved

        if kind == OperandKind.EXPR:
            if result.address_of:
                statement.operand_size = 2
                statement.size += 1
            else:
                statement.operand_size = 1
        elif kind == OperandKind.SADDR:
            pc = self.context.pc
            if self.context.final_pass and not same_page(pc, result.value):
                raise BranchRangeError(result.value, pc)
            statement.operand_size = 1
        else:
            statement.operand_size = 2

    def _parse_trailer(self, statement: Statement, lexer: Lexer) -> None:
        """Accept the end of the statement or a `, data-list`."""
        lexer.skip_spaces()
        if lexer.at_end():
            return
        if lexer.match(","):
            self._parse_data_list(statement, lexer)
            return
        self._unexpected(lexer)

    def _parse_data_list(self, statement: Statement, lexer: Lexer) -> None:
        """
        Parse comma-separated data items and append their bytes.

        A T'..' item gives one byte per character; any other item is an
        expression giving one or two bytes, high byte first.
        """
        while True:
            lexer.skip_spaces()
            start = lexer.pos
            token = lexer.next_token()
            if token.type == TokenType.STRING and lexer.peek() not in ("+", "-"):
                item = bytes(ord(char) & 0xFF for char in token.text)
            else:
                lexer.pos = start
                item = self.evaluator.evaluate(lexer).to_bytes()

            statement.data.extend(item)
            statement.size += len(item)

            lexer.skip_spaces()
            if lexer.at_end():
                return
            if not lexer.match(","):
                self._unexpected(lexer)

    def _expect_end(self, lexer: Lexer) -> None:
        lexer.skip_spaces()
        if not lexer.at_end():
            self._unexpected(lexer)

    @staticmethod
    def _unexpected(lexer: Lexer) -> None:
        if lexer.peek() == ".":
            raise AssemblySyntaxError(ErrorKind.INV_PERIOD)
        raise AssemblySyntaxError(ErrorKind.INV_SYNTAX)
