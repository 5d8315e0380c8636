"""
ZEPA Machine
============
Assembler and virtual processor for ZEPA, a small 32-bit instruction set
with seven instructions (MV, ADD, SUB, CMP, JUMP, LOAD, STORE).

Architecture:
    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌──────────┐    ┌──────────┐
    │ .asm     │───>│  Lexer   │───>│ Assembler │───>│  Memory  │───>│ Emulator │
    │ source   │    │ (tokens) │    │ (bytes)   │    │ (image)  │    │ (F-D-E)  │
    └──────────┘    └──────────┘    └───────────┘    └──────────┘    └──────────┘

    - isa.py:           opcode/register enums and the bit layout, shared by both ends
    - lexer.py:         comment/label stripping, token lists
    - assembler.py:     token list -> 32-bit word -> 4 big-endian bytes
    - emulator/:        decoder, registers, memory, fetch-decode-execute loop
    - disassembler.py:  bytes -> assembly text
    - config.py:        machine profiles (memory size, LOAD mode, step limit)
"""

__version__ = "0.4.0"

from .errors import (
    AssemblerError, InvalidOpcode, InvalidRegister, InvalidOperandCount,
    InvalidImmediate, AssemblyIOError, MachineFault, DecodeFault, MemoryFault,
)
from .isa import Opcode, Register, Format
from .lexer import SourceLine, tokenize, tokenize_line, load_file
from .assembler import Assembler, assemble, assemble_file, encode, encode_bytes
from .emulator import ZepaMachine, StopReason, MachineState, decode
from .disassembler import ZepaDisassembler, disassemble_bytes


def run_source(source: str, *, profile: str = "default",
               max_steps: int = None, **overrides) -> ZepaMachine:
    """Assemble source, load it into a fresh machine, run it, return the machine.

    Full pipeline: Lexer -> Assembler -> ZepaMachine.run().

    Args:
        source: ZEPA assembly text.
        profile: Machine profile name (see config.MACHINE_PROFILES).
        max_steps: Step limit for this run (profile default if None).
        overrides: memory_size / load_mode overrides for the profile.
    """
    machine = ZepaMachine.from_profile(profile, **overrides)
    machine.load_program(assemble(source))
    machine.run(max_steps=max_steps)
    return machine
