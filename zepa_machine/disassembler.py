"""
ZEPA Disassembler
=================
Turns a binary image back into assembly text, one 4-byte word at a time.

API Usage:
    from zepa_machine.disassembler import ZepaDisassembler

    dis = ZepaDisassembler()
    for r in dis.disassemble(image):
        print(r.format())   # "0x0000: 30 20 00 A0  MV    W1, #5"

Words that do not decode (unknown opcode, reserved funct bits set) and a
trailing partial word are emitted as .word / .byte data lines instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .errors import DecodeFault
from .isa import HALT_WORD, WORD_BYTES
from .emulator.cpu.decoder import decode, format_instruction


@dataclass
class DisassembledInstruction:
    """One decoded word with its formatting data."""
    address: int
    raw_bytes: bytes
    text: str
    is_data: bool = False

    @property
    def hex_str(self) -> str:
        """Hex bytes formatted like '30 20 00 A0'."""
        return " ".join(f"{b:02X}" for b in self.raw_bytes)

    def format(self, hex_width: int = 11) -> str:
        """Format as a single disassembly line."""
        return f"0x{self.address:04X}: {self.hex_str.ljust(hex_width)}  {self.text}"


class ZepaDisassembler:
    """
    ZEPA disassembler.

    Usage:
        dis = ZepaDisassembler()
        results = dis.disassemble(raw_bytes)
        single  = dis.decode_one(raw_bytes, offset=8)
    """

    def __init__(self, stop_at_halt: bool = False):
        self.stop_at_halt = stop_at_halt

    def disassemble(self, data: bytes, base_addr: int = 0,
                    max_instructions: int = 0) -> List[DisassembledInstruction]:
        """Disassemble a block of bytes. Returns list of DisassembledInstruction."""
        data = bytes(data)
        results: List[DisassembledInstruction] = []
        offset = 0
        while offset < len(data):
            inst = self.decode_one(data, offset, base_addr + offset)
            if inst is None:
                break
            results.append(inst)
            offset += len(inst.raw_bytes)
            if self.stop_at_halt and inst.text == "HALT":
                break
            if max_instructions and len(results) >= max_instructions:
                break
        return results

    def decode_one(self, data: bytes, offset: int = 0,
                   base_addr: int = 0) -> Optional[DisassembledInstruction]:
        """Decode exactly one word at the given offset."""
        if offset >= len(data):
            return None

        raw = bytes(data[offset:offset + WORD_BYTES])
        if len(raw) < WORD_BYTES:
            return self._make_data(raw, base_addr, ".byte")

        word = int.from_bytes(raw, 'big')
        if word == HALT_WORD:
            return DisassembledInstruction(address=base_addr, raw_bytes=raw, text="HALT")

        try:
            inst = decode(word)
        except DecodeFault:
            return self._make_data(raw, base_addr, ".word")

        # Reserved funct bits set: no source line assembles to this word
        if inst.funct5 or inst.funct6:
            return self._make_data(raw, base_addr, ".word")

        return DisassembledInstruction(
            address=base_addr,
            raw_bytes=raw,
            text=format_instruction(inst),
        )

    @staticmethod
    def _make_data(raw: bytes, base_addr: int, directive: str) -> DisassembledInstruction:
        """Data pseudo-instruction for bytes that are not an instruction."""
        if directive == ".word":
            text = f".word 0x{int.from_bytes(raw, 'big'):08X}"
        else:
            text = ".byte " + ", ".join(f"0x{b:02X}" for b in raw)
        return DisassembledInstruction(address=base_addr, raw_bytes=raw,
                                       text=text, is_data=True)


def disassemble_bytes(data: bytes, base_addr: int = 0,
                      stop_at_halt: bool = False) -> List[DisassembledInstruction]:
    """Module-level convenience function."""
    return ZepaDisassembler(stop_at_halt=stop_at_halt).disassemble(data, base_addr)
