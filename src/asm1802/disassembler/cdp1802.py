"""
CDP1802 Disassembler
====================

Disassembles CDP1802 machine code into Level I assembly language. This is
the inverse operation of the assembler's code generation, and its output
can be fed back to the assembler.

Architecture:
    - 8-bit data bus, 16-bit address bus
    - Registers: D (8-bit accumulator), DF (carry), R0-RF (16-bit),
      P and X (4-bit register designators), Q (output flip-flop)
    - Big-endian byte ordering for long branch addresses

Instruction Formats:
    - 1 byte: opcode, optionally carrying a register (INC R5 = $15) or an
      I/O device (OUT 4 = $64) in its low bits
    - 2 bytes: opcode + immediate byte (LDI) or short branch target low
      byte (BR); the high byte of a short branch target is the page of the
      branch operand byte
    - 3 bytes: opcode + 16-bit address (LBR, LSZ...)

Usage:
    disasm = CDP1802Disassembler()

    # Disassemble from bytes
    instructions = disasm.disassemble(memory_bytes, start_address=0x0100)

    # Disassemble single instruction
    instr = disasm.disassemble_one(memory_bytes, address=0x0100)
    print(f"{instr.address:04X}: {instr.mnemonic} {instr.operand_str}")
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from asm1802.cpu import (
    OPCODE_TABLE,
    OPERAND_MASKS,
    InstructionInfo,
    OperandKind,
    decode_operand,
)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled CDP1802 instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The opcode byte
        mnemonic: The instruction mnemonic (e.g., "LDI", "SEP")
        kind: The operand kind of the instruction
        operand: Decoded operand value (register, device, byte or address)
        operand_str: Formatted operand string in assembler syntax
        size: Total instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (e.g., symbol name, ASCII character)
    """
    address: int
    opcode: int
    mnemonic: str
    kind: OperandKind
    operand: Optional[int]
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(8)

        if self.operand_str:
            asm = f"{self.mnemonic} {self.operand_str}"
        else:
            asm = self.mnemonic

        if self.comment:
            return f"{self.address:04X}: {hex_bytes}  {asm:<12} .. {self.comment}"
        return f"{self.address:04X}: {hex_bytes}  {asm}"

    def to_source(self) -> str:
        """Return the instruction as an assembler statement."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic


# =============================================================================
# CDP1802 Disassembler
# =============================================================================

class CDP1802Disassembler:
    """
    Disassembler for CDP1802 machine code.

    This class builds a reverse lookup table from the shared OPCODE_TABLE.
    Opcodes that carry a register or device number are expanded into one
    entry per operand value.

    Attributes:
        _reverse_table: Maps opcode byte to (mnemonic, InstructionInfo)
        _symbol_table: Optional symbol table for address annotation
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to symbol names.
                         Used to annotate branch and address operands.
        """
        self._symbol_table = symbol_table or {}
        self._reverse_table = self._build_reverse_table()

    def _build_reverse_table(self) -> Dict[int, Tuple[str, InstructionInfo]]:
        """
        Build reverse lookup table: opcode -> (mnemonic, info).

        Aliases (SKP/NBR, BDF/BPZ/BGE...) keep the first mnemonic listed.
        Register 0 of LDN and device 0 of OUT/INP are not expanded: $00 is
        IDL, $60 is IRX and $68 is undefined.
        """
        reverse = {}

        for mnemonic, info in OPCODE_TABLE.items():
            mask = OPERAND_MASKS.get(info.operand)
            if mask is None:
                reverse.setdefault(info.opcode, (mnemonic, info))

        for mnemonic, info in OPCODE_TABLE.items():
            mask = OPERAND_MASKS.get(info.operand)
            if mask is None:
                continue
            first = 0 if info.operand == OperandKind.REG else 1
            for operand in range(first, mask + 1):
                reverse.setdefault(info.opcode | operand, (mnemonic, info))

        return reverse

    def lookup(self, opcode: int) -> Optional[Tuple[str, InstructionInfo]]:
        """Return (mnemonic, info) for an opcode byte, None if undefined."""
        return self._reverse_table.get(opcode & 0xFF)

    def disassemble_one(
        self,
        data: bytes,
        address: int = 0,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        entry = self.lookup(opcode)

        if entry is None:
            # Undefined opcode ($68) - return as data byte
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic="DC",
                kind=OperandKind.NONE,
                operand=opcode,
                operand_str=f"#{opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="undefined opcode",
            )

        mnemonic, info = entry

        if offset + info.size > len(data):
            partial = bytes(data[offset:])
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=mnemonic,
                kind=info.operand,
                operand=None,
                operand_str="???",
                size=len(partial),
                raw_bytes=partial,
                comment="incomplete instruction",
            )

        raw_bytes = bytes(data[offset:offset + info.size])
        operand, operand_str, comment = self._format_operand(
            info, raw_bytes, address
        )

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=mnemonic,
            kind=info.operand,
            operand=operand,
            operand_str=operand_str,
            size=info.size,
            raw_bytes=raw_bytes,
            comment=comment,
        )

    def _format_operand(
        self,
        info: InstructionInfo,
        raw_bytes: bytes,
        address: int
    ) -> Tuple[Optional[int], str, str]:
        """
        Format the operand of an instruction.

        Returns:
            Tuple of (operand value, operand string, comment)
        """
        kind = info.operand

        if kind == OperandKind.NONE:
            return None, "", ""

        if kind in (OperandKind.REG, OperandKind.REG1):
            register = decode_operand(info, raw_bytes[0])
            return register, f"R{register:X}", ""

        if kind == OperandKind.IODEV:
            device = decode_operand(info, raw_bytes[0])
            return device, str(device), ""

        if kind == OperandKind.EXPR:
            value = raw_bytes[1]
            comment = f"'{chr(value)}'" if 0x20 <= value < 0x7F else ""
            return value, f"#{value:02X}", comment

        if kind == OperandKind.SADDR:
            # Target is in the page of the operand byte
            target = ((address + 1) & 0xFF00) | raw_bytes[1]
        else:
            target = (raw_bytes[1] << 8) | raw_bytes[2]

        return target, f"#{target:04X}", self._symbol_table.get(target, "")

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None
    ) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of first byte
            count: Maximum number of instructions to disassemble (None = all)
            max_bytes: Maximum number of bytes to process (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            if max_bytes is not None and offset >= max_bytes:
                break

            instr = self.disassemble_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address = (address + instr.size) & 0xFFFF

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None
    ) -> str:
        """
        Disassemble and return a formatted listing.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of first byte
            count: Maximum number of instructions

        Returns:
            One line per instruction
        """
        lines = []
        for instr in self.disassemble(data, start_address, count):
            label = self._symbol_table.get(instr.address)
            if label:
                lines.append(f"{label}:")
            lines.append(str(instr))
        return "\n".join(lines)
