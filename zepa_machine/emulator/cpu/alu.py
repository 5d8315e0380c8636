"""
ZEPA Emulator — ALU Operations

32-bit unsigned arithmetic. ADD and SUB wrap modulo 2^32 and set no
flags; the only status the machine keeps is the tri-state CMP result in SR.
"""

from ...isa import WORD_MASK

# SR values written by CMP
SR_EQUAL = 0
SR_LESS = 1
SR_GREATER = 2


def add32(a: int, b: int) -> int:
    """Add two 32-bit values, wrapping on overflow."""
    return (a + b) & WORD_MASK


def sub32(a: int, b: int) -> int:
    """Subtract b from a, wrapping on underflow."""
    return (a - b) & WORD_MASK


def compare(a: int, b: int) -> int:
    """CMP result for unsigned a vs b. Equality is checked first."""
    if a == b:
        return SR_EQUAL
    if a < b:
        return SR_LESS
    return SR_GREATER
