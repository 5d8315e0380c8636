"""
ZEPA Instruction Set: Opcode, Register and Field Layout Tables

Shared by the assembler (encode) and the emulator decoder (decode) so both
sides of the toolchain agree on one bit layout.

Word layout (bit 31 on the left):

  R-Type   | opcode:6 | rd:5 | rs1:5 | rs2:5 | funct5:5 | funct6:6 |
            31      26 25  21 20   16 15   11 10       6 5        0

  I-Type   | opcode:6 | reg:5 | immediate:16 | funct5:5 |
            31      26 25   21 20          5 4        0

The funct fields are reserved and always assembled as zero.

Opcode numbering continues after the twelve registers (MV = 12), which keeps
the binary images compatible with existing ZEPA programs. A consequence is
that no real instruction encodes to the all-zero word, so zero is free to act
as the halt sentinel.
"""

from enum import Enum, IntEnum
from typing import Dict


WORD_BITS = 32
WORD_BYTES = 4
WORD_MASK = 0xFFFFFFFF

# Halt sentinel: a fetched word equal to this stops the machine
HALT_WORD = 0x00000000


class Register(IntEnum):
    """Register file index. W0-W5 are general purpose, the rest special."""
    W0 = 0
    W1 = 1
    W2 = 2
    W3 = 3
    W4 = 4
    W5 = 5
    PC = 6    # Program counter
    SP = 7    # Stack pointer
    IR = 8    # Instruction register
    SR = 9    # Status register (result of last CMP)
    MDR = 10  # Memory data register
    MAR = 11  # Memory address register


GENERAL_REGISTERS = (Register.W0, Register.W1, Register.W2,
                     Register.W3, Register.W4, Register.W5)

# Assembler-visible register names. Special registers are not addressable
# from source.
REGISTER_NAMES: Dict[str, Register] = {r.name: r for r in GENERAL_REGISTERS}


class Opcode(IntEnum):
    MV = 12
    ADD = 13
    SUB = 14
    CMP = 15
    JUMP = 16
    LOAD = 17
    STORE = 18


class Format(Enum):
    R = 'R-Type'
    I = 'I-Type'


FORMATS: Dict[Opcode, Format] = {
    Opcode.ADD:   Format.R,
    Opcode.SUB:   Format.R,
    Opcode.CMP:   Format.R,
    Opcode.MV:    Format.I,
    Opcode.JUMP:  Format.I,
    Opcode.LOAD:  Format.I,
    Opcode.STORE: Format.I,
}

OPCODE_NAMES: Dict[str, Opcode] = {op.name: op for op in Opcode}


# ──────────────────────────────────────────────
# Field shifts and masks
# ──────────────────────────────────────────────

OPCODE_SHIFT = 26
OPCODE_MASK = 0x3F

# R-Type
RD_SHIFT_R = 21
RD_MASK_R = 0x1F
RS1_SHIFT_R = 16
RS1_MASK_R = 0x1F
RS2_SHIFT_R = 11
RS2_MASK_R = 0x1F
FUNCT5_SHIFT_R = 6
FUNCT5_MASK_R = 0x1F
FUNCT6_SHIFT_R = 0
FUNCT6_MASK_R = 0x3F

# I-Type
REG_SHIFT_I = 21
REG_MASK_I = 0x1F
IMM_SHIFT_I = 5
IMM_MASK_I = 0xFFFF
FUNCT5_SHIFT_I = 0
FUNCT5_MASK_I = 0x1F


def opcode_of(word: int) -> int:
    """Raw 6-bit opcode field of an instruction word (not validated)."""
    return (word >> OPCODE_SHIFT) & OPCODE_MASK
