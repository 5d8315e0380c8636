"""
ZEPA Assembler.

Assembles ZEPA assembly text into a flat binary image: one 32-bit
big-endian word per instruction, in source order, starting at address 0.

Input:  Assembly text (see lexer.py for the line syntax)
Output: Raw bytes, or a listing with addresses next to the source

Instruction formats:
  R-Type  ADD rd, rs1, rs2     three registers
          CMP rs1, rs2         two registers, rd assembled as 0
  I-Type  MV reg, #imm         register + 16-bit immediate
          JUMP #addr           immediate only, register assembled as 0

Immediates: #123, #0x7B, or the same without '#'. Always unsigned 16-bit.
Registers: W0-W5, case-insensitive.

There is no label resolution: the assembler is single pass and every
instruction is exactly 4 bytes, so the address of the Nth instruction is
always 4*N. Jumps take raw numeric addresses.

The HALT pseudo-instruction assembles to the all-zero word, which the
emulator treats as the end of the program.
"""

from __future__ import annotations
from typing import List, Sequence, Union
from dataclasses import dataclass
from pathlib import Path
import logging
import re

from .errors import (
    AssemblerError, InvalidOpcode, InvalidRegister,
    InvalidOperandCount, InvalidImmediate,
)
from .isa import (
    Format, FORMATS, OPCODE_NAMES, REGISTER_NAMES, HALT_WORD, WORD_BYTES,
    OPCODE_SHIFT, OPCODE_MASK,
    RD_SHIFT_R, RD_MASK_R, RS1_SHIFT_R, RS1_MASK_R, RS2_SHIFT_R, RS2_MASK_R,
    FUNCT5_SHIFT_R, FUNCT5_MASK_R, FUNCT6_SHIFT_R, FUNCT6_MASK_R,
    REG_SHIFT_I, REG_MASK_I, IMM_SHIFT_I, IMM_MASK_I,
    FUNCT5_SHIFT_I, FUNCT5_MASK_I,
)
from .lexer import SourceLine, tokenize, load_file

__all__ = [
    'Assembler', 'AssemblerError', 'assemble', 'assemble_file',
    'encode', 'encode_bytes', 'parse_register', 'parse_immediate',
]

log = logging.getLogger(__name__)

HALT_MNEMONIC = 'HALT'

_HEX_RE = re.compile(r'0[xX][0-9A-Fa-f]+')
_DEC_RE = re.compile(r'[0-9]+')


# ──────────────────────────────────────────────
# Operand parsing
# ──────────────────────────────────────────────

def parse_register(text: str) -> int:
    """Resolve a register name (W0-W5, any case) to its field value."""
    reg = REGISTER_NAMES.get(text.upper())
    if reg is None:
        raise InvalidRegister(f"Invalid register: {text}")
    return int(reg)


def parse_immediate(text: str) -> int:
    """Parse an unsigned 16-bit immediate: #123, #0x7B, 123 or 0x7B."""
    digits = text[1:] if text.startswith('#') else text

    if _HEX_RE.fullmatch(digits):
        value = int(digits[2:], 16)
    elif _DEC_RE.fullmatch(digits):
        value = int(digits, 10)
    else:
        raise InvalidImmediate(f"Invalid immediate value: {digits}")

    if value > IMM_MASK_I:
        raise InvalidImmediate(f"Immediate out of 16-bit range: {digits}")
    return value


# ──────────────────────────────────────────────
# Encoding
# ──────────────────────────────────────────────

def _encode_r_type(opcode: int, operands: Sequence[str]) -> int:
    if len(operands) == 3:
        rd = parse_register(operands[0])
        rs1 = parse_register(operands[1])
        rs2 = parse_register(operands[2])
    elif len(operands) == 2:
        rd = 0
        rs1 = parse_register(operands[0])
        rs2 = parse_register(operands[1])
    else:
        raise InvalidOperandCount(
            f"R-Type instruction expects 2 or 3 operands, got {len(operands)}")

    funct5 = funct6 = 0  # reserved
    word = (opcode & OPCODE_MASK) << OPCODE_SHIFT
    word |= (rd & RD_MASK_R) << RD_SHIFT_R
    word |= (rs1 & RS1_MASK_R) << RS1_SHIFT_R
    word |= (rs2 & RS2_MASK_R) << RS2_SHIFT_R
    word |= (funct5 & FUNCT5_MASK_R) << FUNCT5_SHIFT_R
    word |= (funct6 & FUNCT6_MASK_R) << FUNCT6_SHIFT_R
    return word


def _encode_i_type(opcode: int, operands: Sequence[str]) -> int:
    if len(operands) == 2:
        reg = parse_register(operands[0])
        imm = parse_immediate(operands[1])
    elif len(operands) == 1:
        reg = 0
        imm = parse_immediate(operands[0])
    else:
        raise InvalidOperandCount(
            f"I-Type instruction expects 1 or 2 operands, got {len(operands)}")

    funct5 = 0  # reserved
    word = (opcode & OPCODE_MASK) << OPCODE_SHIFT
    word |= (reg & REG_MASK_I) << REG_SHIFT_I
    word |= (imm & IMM_MASK_I) << IMM_SHIFT_I
    word |= (funct5 & FUNCT5_MASK_I) << FUNCT5_SHIFT_I
    return word


def encode(tokens: Sequence[str]) -> int:
    """Encode one tokenized instruction into a 32-bit word.

    Raises InvalidOpcode, InvalidRegister, InvalidOperandCount or
    InvalidImmediate; the raised error carries the token sequence.
    """
    if not tokens:
        raise InvalidOperandCount("Empty instruction")

    mnem = tokens[0].upper()
    operands = tokens[1:]

    try:
        if mnem == HALT_MNEMONIC:
            if operands:
                raise InvalidOperandCount(
                    f"HALT takes no operands, got {len(operands)}")
            return HALT_WORD

        opcode = OPCODE_NAMES.get(mnem)
        if opcode is None:
            raise InvalidOpcode(f"Invalid opcode: {mnem}")

        if FORMATS[opcode] is Format.R:
            return _encode_r_type(opcode, operands)
        return _encode_i_type(opcode, operands)
    except AssemblerError as e:
        if not e.tokens:
            e.with_tokens(tokens)
        raise


def encode_bytes(tokens: Sequence[str]) -> bytes:
    """Encode one instruction as 4 big-endian bytes."""
    return encode(tokens).to_bytes(WORD_BYTES, 'big')


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

@dataclass
class AsmRecord:
    """One assembled instruction: where it landed and what it came from."""
    addr: int
    word: int
    line: SourceLine

    @property
    def data(self) -> bytes:
        return self.word.to_bytes(WORD_BYTES, 'big')


class Assembler:
    """Single-pass ZEPA assembler.

    Usage:
        asm = Assembler()
        binary = asm.assemble(source_text)
        print(asm.get_listing())

    Assembly is fail-fast: the first bad instruction raises, tagged with
    its source line number.
    """

    def __init__(self):
        self.binary: bytearray = bytearray()  # Assembled image
        self.records: List[AsmRecord] = []    # One per emitted instruction

    def assemble(self, source: str) -> bytearray:
        """Assemble source text into a binary image starting at address 0."""
        return self.assemble_lines(tokenize(source))

    def assemble_lines(self, lines: Sequence[SourceLine]) -> bytearray:
        """Assemble already-tokenized lines."""
        self.binary = bytearray()
        self.records = []

        for line in lines:
            addr = len(self.binary)
            try:
                word = encode(line.tokens)
            except AssemblerError as e:
                raise e.at_line(line.line_num)
            rec = AsmRecord(addr=addr, word=word, line=line)
            self.records.append(rec)
            self.binary += rec.data
            log.debug("0x%04X: %08X  %s", addr, word, ' '.join(line.tokens))

        log.info("Assembled %d instructions (%d bytes)",
                 len(self.records), len(self.binary))
        return self.binary

    def get_listing(self) -> str:
        """Return a human-readable listing showing address, bytes, and source."""
        lines = []
        lines.append(f"{'ADDR':>6}  {'BYTES':<11}  SOURCE")
        lines.append("-" * 60)
        for rec in self.records:
            hex_str = ' '.join(f'{b:02X}' for b in rec.data)
            raw = rec.line.raw
            if len(raw) > 40:
                raw = raw[:40]
            lines.append(f"0x{rec.addr:04X}  {hex_str:<11}  {raw}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> bytes:
    """Assemble source text, return the binary image."""
    return bytes(Assembler().assemble(source))


def assemble_file(path: Union[str, Path]) -> bytes:
    """Assemble a source file, return the binary image.

    Raises AssemblyIOError if the file cannot be read.
    """
    return bytes(Assembler().assemble_lines(load_file(path)))
