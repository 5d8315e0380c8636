"""
ZEPA Emulator — Instruction Decoder

Splits a fetched 32-bit word back into opcode and operand fields. The inverse
of assembler.encode():

  ADD/SUB/CMP (R-Type): rd, rs1, rs2, funct5, funct6 at 21/16/11/6/0
  everything else (I-Type): register at 21, 16-bit immediate at 5, funct5 at 0

Decoding looks only at bit patterns. Register fields are not checked here;
the emulator rejects register numbers outside the register file when it
executes the instruction.

An opcode field that matches no Opcode raises DecodeFault. Unknown words
are never treated as no-ops.
"""

from dataclasses import dataclass

from ...errors import DecodeFault
from ...isa import (
    Format, FORMATS, Opcode, Register, opcode_of,
    RD_SHIFT_R, RD_MASK_R, RS1_SHIFT_R, RS1_MASK_R, RS2_SHIFT_R, RS2_MASK_R,
    FUNCT5_SHIFT_R, FUNCT5_MASK_R, FUNCT6_SHIFT_R, FUNCT6_MASK_R,
    REG_SHIFT_I, REG_MASK_I, IMM_SHIFT_I, IMM_MASK_I,
    FUNCT5_SHIFT_I, FUNCT5_MASK_I,
)

# Opcodes with an address operand, printed in hex
_ADDRESS_OPS = (Opcode.JUMP, Opcode.LOAD, Opcode.STORE)


@dataclass(frozen=True)
class DecodedInstruction:
    """Fields of one instruction word.

    For I-Type words the register field lands in ``rd``; rs1/rs2 stay 0.
    """
    opcode: Opcode
    word: int
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    funct5: int = 0
    funct6: int = 0
    immediate: int = 0

    @property
    def format(self) -> Format:
        return FORMATS[self.opcode]

    @property
    def reg(self) -> int:
        """I-Type register field."""
        return self.rd


def decode(word: int) -> DecodedInstruction:
    """Decode a 32-bit instruction word.

    Raises DecodeFault if the opcode field is not a known opcode.
    """
    raw_op = opcode_of(word)
    try:
        opcode = Opcode(raw_op)
    except ValueError:
        raise DecodeFault(
            f"Unknown opcode {raw_op} in word 0x{word:08X}", word=word) from None

    if FORMATS[opcode] is Format.R:
        return DecodedInstruction(
            opcode=opcode,
            word=word,
            rd=(word >> RD_SHIFT_R) & RD_MASK_R,
            rs1=(word >> RS1_SHIFT_R) & RS1_MASK_R,
            rs2=(word >> RS2_SHIFT_R) & RS2_MASK_R,
            funct5=(word >> FUNCT5_SHIFT_R) & FUNCT5_MASK_R,
            funct6=(word >> FUNCT6_SHIFT_R) & FUNCT6_MASK_R,
        )

    return DecodedInstruction(
        opcode=opcode,
        word=word,
        rd=(word >> REG_SHIFT_I) & REG_MASK_I,
        immediate=(word >> IMM_SHIFT_I) & IMM_MASK_I,
        funct5=(word >> FUNCT5_SHIFT_I) & FUNCT5_MASK_I,
    )


def register_name(index: int) -> str:
    """Register name for a raw field value; 'R<n>' if it names no register."""
    try:
        return Register(index).name
    except ValueError:
        return f"R{index}"


def format_instruction(inst: DecodedInstruction) -> str:
    """Render a decoded instruction as assembly text.

    The output assembles back to the same word whenever every register
    field names a general register.
    """
    mnem = inst.opcode.name
    if inst.format is Format.R:
        rs1, rs2 = register_name(inst.rs1), register_name(inst.rs2)
        if inst.opcode is Opcode.CMP and inst.rd == 0:
            return f"{mnem:<6}{rs1}, {rs2}"
        return f"{mnem:<6}{register_name(inst.rd)}, {rs1}, {rs2}"

    if inst.opcode is Opcode.JUMP and inst.rd == 0:
        return f"{mnem:<6}#0x{inst.immediate:04X}"
    if inst.opcode in _ADDRESS_OPS:
        return f"{mnem:<6}{register_name(inst.rd)}, #0x{inst.immediate:04X}"
    return f"{mnem:<6}{register_name(inst.rd)}, #{inst.immediate}"
