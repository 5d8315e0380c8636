"""
ZEPA Virtual Emulator — pure-software ZEPA processor.

  cpu/regs.py     register file
  cpu/decoder.py  instruction word -> DecodedInstruction
  cpu/alu.py      wrapping 32-bit arithmetic and CMP
  mem/memory.py   flat byte memory with bounds checks
  emu.py          ZepaMachine: fetch-decode-execute loop
"""

from .emu import ZepaMachine, StopReason, MachineState
from .cpu.decoder import DecodedInstruction, decode, format_instruction
from .cpu.regs import Registers
from .mem.memory import Memory
