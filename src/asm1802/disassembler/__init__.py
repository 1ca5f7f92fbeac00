"""
asm1802 Disassembler Module
===========================

Disassembly of CDP1802 machine code back into Level I assembly language.

Usage:
    from asm1802.disassembler import CDP1802Disassembler

    disasm = CDP1802Disassembler()
    instructions = disasm.disassemble(memory_bytes, start_address=0x0000)
"""

from .cdp1802 import CDP1802Disassembler, DisassembledInstruction

__all__ = [
    "CDP1802Disassembler",
    "DisassembledInstruction",
]
