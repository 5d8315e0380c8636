"""
ZEPA Emulator — Flat Byte-Addressed Memory

One contiguous bytearray, addressed from 0. The program image is loaded at
the bottom and STORE writes single bytes anywhere inside it. There is no
region map, no write protection and no memory-mapped I/O.

Any access outside [0, size) raises MemoryFault instead of wrapping or
indexing off the end.
"""

from typing import Dict, Iterator, Tuple

from ...errors import MemoryFault
from ...isa import WORD_BYTES


class Memory:
    """Fixed-size byte-addressable memory."""

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError(f"Memory size must be positive, got {size}")
        self.size = size
        self._mem = bytearray(size)

    def __len__(self) -> int:
        return self.size

    def _check(self, addr: int, length: int = 1):
        if addr < 0 or addr + length > self.size:
            raise MemoryFault(
                f"Address 0x{addr:04X} (+{length}) outside memory of {self.size} bytes",
                addr=addr, size=self.size)

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        self._check(addr)
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        self._check(addr)
        self._mem[addr] = value & 0xFF

    def read32(self, addr: int) -> int:
        """Read a 32-bit word (big-endian)."""
        self._check(addr, WORD_BYTES)
        return int.from_bytes(self._mem[addr:addr + WORD_BYTES], 'big')

    def write32(self, addr: int, value: int):
        """Write a 32-bit word (big-endian)."""
        self._check(addr, WORD_BYTES)
        self._mem[addr:addr + WORD_BYTES] = (value & 0xFFFFFFFF).to_bytes(WORD_BYTES, 'big')

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int = 0):
        """Copy a binary image into memory at base_addr.

        The whole image must fit; a program larger than memory is an error
        rather than being silently truncated.
        """
        self._check(base_addr, len(data))
        self._mem[base_addr:base_addr + len(data)] = data

    def clear(self):
        self._mem = bytearray(self.size)

    # --- Snapshots ---

    def snapshot(self) -> bytes:
        """Copy of the whole memory for later diffing."""
        return bytes(self._mem)

    @staticmethod
    def diff_snapshots(snap_a: bytes, snap_b: bytes) -> Dict[int, Tuple[int, int]]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[i] = (snap_a[i], snap_b[i])
        return changes

    # --- Dumps ---

    def nonzero_words(self) -> Iterator[Tuple[int, bytes]]:
        """Yield (addr, 4 bytes) for every word-aligned row that is not all zero."""
        for addr in range(0, self.size, WORD_BYTES):
            row = bytes(self._mem[addr:addr + WORD_BYTES])
            if any(row):
                yield addr, row
