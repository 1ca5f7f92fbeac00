"""
CDP1802 Level I Assembler
=========================

This package provides a two-pass assembler for the RCA CDP1802 (COSMAC)
microprocessor, accepting the Level I assembly language of the RCA COSMAC
Development System II.

Main Components
---------------
- **Assembler**: Facade that reads source, assembles it and writes results
- **Lexer**: Cursor over one statement that classifies tokens
- **ExpressionEvaluator**: Evaluates operand expressions and size hints
- **StatementParser**: Classifies, sizes and encodes statements
- **CodeGenerator**: Runs the two passes and collects diagnostics
- **SymbolTable**: Labels and equates with duplicate detection

Assembly Process
----------------
1. **Splitting**: Source lines are cut into statements at `;`, outside
   quotes; `..` starts a comment running to the end of the line.

2. **Pass 1**: Every statement is parsed with unknown symbols read as 0,
   labels are bound and the program is laid out.

3. **Pass 2**: Every statement is parsed again against the complete
   symbol table; code, listing lines and diagnostics are produced.

Example Usage
-------------
>>> from asm1802.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
...        ORG #0100
... LOOP:  SEQ; REQ
...        BR LOOP
...        END
... ''')
>>> print(asm.get_listing())

Supported Features
------------------
- Full CDP1802 instruction set, including the alias mnemonics
- Labels (`NAME:`) and equates (`NAME = expr`)
- Constants: decimal, #hex, B'binary', D'decimal', X'hex', T'text'
- Address-of forms A(expr), A.0(expr), A.1(expr)
- Directives DC, ORG, PAGE and END
- Data-lists after DC, after an instruction, or on their own (`,1,2`)
- Listing, symbol table, raw binary and Intel HEX output
"""

from asm1802.assembler.assembler import Assembler, assemble, assemble_file
from asm1802.assembler.codegen import CodeGenerator, ObjectImage
from asm1802.assembler.context import AssemblyContext
from asm1802.assembler.expressions import ExpressionEvaluator, ExprValue
from asm1802.assembler.lexer import Lexer, Token, TokenType
from asm1802.assembler.listing import ListingLine
from asm1802.assembler.parser import (
    Statement,
    StatementParser,
    StatementType,
    split_source,
    split_statements,
)
from asm1802.assembler.symbols import Symbol, SymbolRecord, SymbolTable
from asm1802.cpu import (
    OperandKind,
    InstructionInfo,
    OPCODE_TABLE,
    MNEMONICS,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Statement",
    "StatementParser",
    "StatementType",
    "split_source",
    "split_statements",
    # Code generator
    "CodeGenerator",
    "ObjectImage",
    "AssemblyContext",
    "ListingLine",
    # Symbols
    "Symbol",
    "SymbolRecord",
    "SymbolTable",
    # Opcodes
    "OperandKind",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    # Expressions
    "ExpressionEvaluator",
    "ExprValue",
]
