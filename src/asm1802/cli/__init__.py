"""
asm1802 Command-Line Interface
==============================

This package provides the command-line tools:

- **asm1802**: CDP1802 Level I assembler
- **dis1802**: CDP1802 disassembler

Each tool is a Click command with help and consistent exit codes.
"""

__all__ = ["asm1802", "dis1802"]
