"""
CDP1802 Instruction Set Definition
==================================

This module defines the RCA CDP1802 (COSMAC) instruction set as used by the
Level I assembler: the opcode template of every mnemonic, the kind of
operand it takes and its base size in bytes.

The CDP1802 has sixteen 16-bit scratchpad registers (R0-RF), an 8-bit
accumulator (D) and seven I/O device lines (N = 1-7). Many opcodes carry
their operand in the low nibble of the opcode byte itself.

Operand Kinds
-------------
1. **NONE**: No operand (e.g., IRX, SHR, RET)
   - 1 byte: opcode
2. **REG**: Register number in the low nibble (e.g., INC R5)
   - 1 byte: opcode | register
3. **REG1**: As REG but register 0 is excluded (LDN R0 would be IDL)
4. **IODEV**: Device number in the low three bits (e.g., OUT 4)
5. **EXPR**: Immediate byte (e.g., LDI #41)
   - 2 bytes: opcode + byte
6. **SADDR**: Short branch, low byte of an address in the same page
   - 2 bytes: opcode + address low byte
7. **LADDR**: Long branch / long skip, full address
   - 3 bytes: opcode + address high byte + address low byte

Sizes in the table never include data-list bytes that may follow an
instruction in the source.

Reference
---------
- RCA COSMAC Development System II Operator Manual (Level I assembler)
- RCA CDP1802 User Manual (MPM-201)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Operand Kind Enumeration
# =============================================================================

class OperandKind(Enum):
    """
    CDP1802 operand kinds.

    Data-list values that may follow an instruction are not part of the
    operand kind.
    """
    NONE = auto()    # No operand
    REG = auto()     # Register (0 to F)
    REG1 = auto()    # Register (1 to F)
    IODEV = auto()   # I/O device (0 to 7)
    EXPR = auto()    # Immediate expression
    SADDR = auto()   # Short (same page) address
    LADDR = auto()   # Long address


# Bits of the opcode byte that hold an in-opcode operand
OPERAND_MASKS: dict[OperandKind, int] = {
    OperandKind.REG: 0x0F,
    OperandKind.REG1: 0x0F,
    OperandKind.IODEV: 0x07,
}


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about one mnemonic.

    Frozen so that the shared table cannot be modified at runtime.

    Attributes:
        opcode: Opcode template; bits that carry a register or device are 0
        operand: The kind of operand the mnemonic takes
        size: Bytes generated, excluding any data-list
    """
    opcode: int
    operand: OperandKind
    size: int

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=${self.opcode:02X}, {self.operand.name}, size={self.size})"


# =============================================================================
# Opcode Table
# =============================================================================
# Key: mnemonic
# Value: InstructionInfo(opcode, operand kind, size)
#
# Several mnemonics are aliases of the same opcode (BDF/BPZ/BGE, SHRC/RSHR,
# SKP/NBR, LSKP/NLBR). The first one listed is the canonical form used by
# the disassembler.
# =============================================================================

OPCODE_TABLE: dict[str, InstructionInfo] = {
    # =========================================================================
    # REGISTER OPERATIONS
    # =========================================================================
    "INC":  InstructionInfo(0x10, OperandKind.REG, 1),
    "DEC":  InstructionInfo(0x20, OperandKind.REG, 1),
    "IRX":  InstructionInfo(0x60, OperandKind.NONE, 1),
    "GLO":  InstructionInfo(0x80, OperandKind.REG, 1),
    "GHI":  InstructionInfo(0x90, OperandKind.REG, 1),
    "PLO":  InstructionInfo(0xA0, OperandKind.REG, 1),
    "PHI":  InstructionInfo(0xB0, OperandKind.REG, 1),

    # =========================================================================
    # MEMORY REFERENCE
    # =========================================================================
    "LDN":  InstructionInfo(0x00, OperandKind.REG1, 1),
    "LDA":  InstructionInfo(0x40, OperandKind.REG, 1),
    "LDX":  InstructionInfo(0xF0, OperandKind.NONE, 1),
    "LDXA": InstructionInfo(0x72, OperandKind.NONE, 1),
    "LDI":  InstructionInfo(0xF8, OperandKind.EXPR, 2),
    "STR":  InstructionInfo(0x50, OperandKind.REG, 1),
    "STXD": InstructionInfo(0x73, OperandKind.NONE, 1),

    # =========================================================================
    # LOGIC OPERATIONS
    # =========================================================================
    "OR":   InstructionInfo(0xF1, OperandKind.NONE, 1),
    "ORI":  InstructionInfo(0xF9, OperandKind.EXPR, 2),
    "XOR":  InstructionInfo(0xF3, OperandKind.NONE, 1),
    "XRI":  InstructionInfo(0xFB, OperandKind.EXPR, 2),
    "AND":  InstructionInfo(0xF2, OperandKind.NONE, 1),
    "ANI":  InstructionInfo(0xFA, OperandKind.EXPR, 2),
    "SHR":  InstructionInfo(0xF6, OperandKind.NONE, 1),
    "SHRC": InstructionInfo(0x76, OperandKind.NONE, 1),
    "RSHR": InstructionInfo(0x76, OperandKind.NONE, 1),
    "SHL":  InstructionInfo(0xFE, OperandKind.NONE, 1),
    "SHLC": InstructionInfo(0x7E, OperandKind.NONE, 1),
    "RSHL": InstructionInfo(0x7E, OperandKind.NONE, 1),

    # =========================================================================
    # ARITHMETIC OPERATIONS
    # =========================================================================
    "ADD":  InstructionInfo(0xF4, OperandKind.NONE, 1),
    "ADI":  InstructionInfo(0xFC, OperandKind.EXPR, 2),
    "ADC":  InstructionInfo(0x74, OperandKind.NONE, 1),
    "ADCI": InstructionInfo(0x7C, OperandKind.EXPR, 2),
    "SD":   InstructionInfo(0xF5, OperandKind.NONE, 1),
    "SDI":  InstructionInfo(0xFD, OperandKind.EXPR, 2),
    "SDB":  InstructionInfo(0x75, OperandKind.NONE, 1),
    "SDBI": InstructionInfo(0x7D, OperandKind.EXPR, 2),
    "SM":   InstructionInfo(0xF7, OperandKind.NONE, 1),
    "SMI":  InstructionInfo(0xFF, OperandKind.EXPR, 2),
    "SMB":  InstructionInfo(0x77, OperandKind.NONE, 1),
    "SMBI": InstructionInfo(0x7F, OperandKind.EXPR, 2),

    # =========================================================================
    # SHORT BRANCH
    # =========================================================================
    "BR":   InstructionInfo(0x30, OperandKind.SADDR, 2),
    "BQ":   InstructionInfo(0x31, OperandKind.SADDR, 2),
    "BZ":   InstructionInfo(0x32, OperandKind.SADDR, 2),
    "BDF":  InstructionInfo(0x33, OperandKind.SADDR, 2),
    "BPZ":  InstructionInfo(0x33, OperandKind.SADDR, 2),
    "BGE":  InstructionInfo(0x33, OperandKind.SADDR, 2),
    "B1":   InstructionInfo(0x34, OperandKind.SADDR, 2),
    "B2":   InstructionInfo(0x35, OperandKind.SADDR, 2),
    "B3":   InstructionInfo(0x36, OperandKind.SADDR, 2),
    "B4":   InstructionInfo(0x37, OperandKind.SADDR, 2),
    "SKP":  InstructionInfo(0x38, OperandKind.NONE, 1),
    "NBR":  InstructionInfo(0x38, OperandKind.NONE, 1),
    "BNQ":  InstructionInfo(0x39, OperandKind.SADDR, 2),
    "BNZ":  InstructionInfo(0x3A, OperandKind.SADDR, 2),
    "BNF":  InstructionInfo(0x3B, OperandKind.SADDR, 2),
    "BM":   InstructionInfo(0x3B, OperandKind.SADDR, 2),
    "BL":   InstructionInfo(0x3B, OperandKind.SADDR, 2),
    "BN1":  InstructionInfo(0x3C, OperandKind.SADDR, 2),
    "BN2":  InstructionInfo(0x3D, OperandKind.SADDR, 2),
    "BN3":  InstructionInfo(0x3E, OperandKind.SADDR, 2),
    "BN4":  InstructionInfo(0x3F, OperandKind.SADDR, 2),

    # =========================================================================
    # LONG BRANCH
    # =========================================================================
    "LBR":  InstructionInfo(0xC0, OperandKind.LADDR, 3),
    "LBQ":  InstructionInfo(0xC1, OperandKind.LADDR, 3),
    "LBZ":  InstructionInfo(0xC2, OperandKind.LADDR, 3),
    "LBDF": InstructionInfo(0xC3, OperandKind.LADDR, 3),
    "LSKP": InstructionInfo(0xC8, OperandKind.NONE, 1),
    "NLBR": InstructionInfo(0xC8, OperandKind.LADDR, 3),
    "LBNQ": InstructionInfo(0xC9, OperandKind.LADDR, 3),
    "LBNZ": InstructionInfo(0xCA, OperandKind.LADDR, 3),
    "LBNF": InstructionInfo(0xCB, OperandKind.LADDR, 3),

    # =========================================================================
    # LONG SKIP
    # =========================================================================
    "LSNQ": InstructionInfo(0xC5, OperandKind.LADDR, 3),
    "LSNZ": InstructionInfo(0xC6, OperandKind.LADDR, 3),
    "LSNF": InstructionInfo(0xC7, OperandKind.LADDR, 3),
    "LSIE": InstructionInfo(0xCC, OperandKind.LADDR, 3),
    "LSQ":  InstructionInfo(0xCD, OperandKind.LADDR, 3),
    "LSZ":  InstructionInfo(0xCE, OperandKind.LADDR, 3),
    "LSDF": InstructionInfo(0xCF, OperandKind.LADDR, 3),

    # =========================================================================
    # CONTROL
    # =========================================================================
    "IDL":  InstructionInfo(0x00, OperandKind.NONE, 1),
    "NOP":  InstructionInfo(0xC4, OperandKind.NONE, 1),
    "SEP":  InstructionInfo(0xD0, OperandKind.REG, 1),
    "SEX":  InstructionInfo(0xE0, OperandKind.REG, 1),
    "SEQ":  InstructionInfo(0x7B, OperandKind.NONE, 1),
    "REQ":  InstructionInfo(0x7A, OperandKind.NONE, 1),
    "SAV":  InstructionInfo(0x78, OperandKind.NONE, 1),
    "MARK": InstructionInfo(0x79, OperandKind.NONE, 1),
    "RET":  InstructionInfo(0x70, OperandKind.NONE, 1),
    "DIS":  InstructionInfo(0x71, OperandKind.NONE, 1),

    # =========================================================================
    # INPUT / OUTPUT
    # =========================================================================
    "OUT":  InstructionInfo(0x60, OperandKind.IODEV, 1),
    "INP":  InstructionInfo(0x68, OperandKind.IODEV, 1),
}


# =============================================================================
# Instruction Classification Sets
# =============================================================================

# All valid mnemonics
MNEMONICS: frozenset[str] = frozenset(OPCODE_TABLE)

# Short branches (target restricted to the current page)
SHORT_BRANCH_INSTRUCTIONS: frozenset[str] = frozenset(
    name for name, info in OPCODE_TABLE.items()
    if info.operand == OperandKind.SADDR
)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(mnemonic: str) -> Optional[InstructionInfo]:
    """
    Look up instruction information by mnemonic.

    Args:
        mnemonic: The instruction mnemonic (e.g., "LDI"), any case

    Returns:
        InstructionInfo if found, None for an unknown mnemonic
    """
    return OPCODE_TABLE.get(mnemonic.upper())


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a valid CDP1802 instruction."""
    return mnemonic.upper() in MNEMONICS


def is_short_branch(mnemonic: str) -> bool:
    """Check if an instruction is a same-page short branch."""
    return mnemonic.upper() in SHORT_BRANCH_INSTRUCTIONS


def same_page(pc: int, target: int) -> bool:
    """
    Check whether a short branch at pc can reach target.

    The branch operand byte sits at pc + 1; the CDP1802 replaces only the
    low byte of R(P) when the branch is taken, so the target has to be in
    the page of the operand byte.
    """
    return ((pc + 1) & 0xFF00) == (target & 0xFF00)


def encode_opcode(info: InstructionInfo, operand: int = 0) -> int:
    """
    Combine an opcode template with an in-opcode operand.

    Args:
        info: The instruction descriptor
        operand: Register or device number (ignored for other kinds)

    Returns:
        The opcode byte
    """
    mask = OPERAND_MASKS.get(info.operand)
    if mask is None:
        return info.opcode
    return info.opcode | (operand & mask)


def decode_operand(info: InstructionInfo, opcode: int) -> int:
    """
    Extract the in-opcode operand (register or device) from an opcode byte.

    Returns 0 for instructions whose operand is not part of the opcode.
    """
    mask = OPERAND_MASKS.get(info.operand)
    if mask is None:
        return 0
    return opcode & mask
