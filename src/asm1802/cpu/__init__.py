"""
asm1802 CPU Package
===================

CDP1802 instruction set definitions shared by the assembler (which encodes
instructions) and the disassembler (which decodes them).

Modules:
    cdp1802: Instruction table, operand kinds and helpers for encoding and
             decoding in-opcode register/device operands.

Usage:
    from asm1802.cpu import (
        OperandKind,
        InstructionInfo,
        OPCODE_TABLE,
        get_instruction_info,
    )
"""

# =============================================================================
# Public API Exports
# =============================================================================

from asm1802.cpu.cdp1802 import (
    # Core types
    OperandKind,
    InstructionInfo,
    # Master instruction database
    OPCODE_TABLE,
    OPERAND_MASKS,
    # Instruction set reference lists
    MNEMONICS,
    SHORT_BRANCH_INSTRUCTIONS,
    # Lookup functions
    get_instruction_info,
    is_valid_instruction,
    is_short_branch,
    same_page,
    # Encoding helpers
    encode_opcode,
    decode_operand,
)

__all__ = [
    "OperandKind",
    "InstructionInfo",
    "OPCODE_TABLE",
    "OPERAND_MASKS",
    "MNEMONICS",
    "SHORT_BRANCH_INSTRUCTIONS",
    "get_instruction_info",
    "is_valid_instruction",
    "is_short_branch",
    "same_page",
    "encode_opcode",
    "decode_operand",
]
