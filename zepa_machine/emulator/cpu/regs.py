"""
ZEPA Emulator — CPU Register Set

Register model:
  W0–W5  — 32-bit general purpose
  PC     — program counter (byte address of the next fetch)
  SP     — stack pointer (reserved, no instruction touches it yet)
  IR     — instruction register (last fetched word)
  SR     — status register: 0 equal, 1 less, 2 greater (last CMP)
  MDR    — memory data register (reserved)
  MAR    — memory address register (reserved)

All registers hold unsigned 32-bit values; every write is masked.
"""

from typing import Dict, List

from ...isa import Register, WORD_MASK

NUM_REGISTERS = len(Register)


def _reg_property(reg: Register):
    def getter(self) -> int:
        return self._values[reg]

    def setter(self, value: int):
        self._values[reg] = value & WORD_MASK

    return property(getter, setter, doc=f"{reg.name} register")


class Registers:
    """ZEPA register file, indexed by Register or by raw field value."""

    __slots__ = ('_values',)

    W0 = _reg_property(Register.W0)
    W1 = _reg_property(Register.W1)
    W2 = _reg_property(Register.W2)
    W3 = _reg_property(Register.W3)
    W4 = _reg_property(Register.W4)
    W5 = _reg_property(Register.W5)
    PC = _reg_property(Register.PC)
    SP = _reg_property(Register.SP)
    IR = _reg_property(Register.IR)
    SR = _reg_property(Register.SR)
    MDR = _reg_property(Register.MDR)
    MAR = _reg_property(Register.MAR)

    def __init__(self):
        self._values: List[int] = [0] * NUM_REGISTERS

    @staticmethod
    def is_valid(index: int) -> bool:
        return 0 <= index < NUM_REGISTERS

    def __getitem__(self, index: int) -> int:
        return self._values[Register(index)]

    def __setitem__(self, index: int, value: int):
        self._values[Register(index)] = value & WORD_MASK

    def as_dict(self) -> Dict[str, int]:
        """Register name -> value, in register-file order."""
        return {r.name: self._values[r] for r in Register}

    def reset(self):
        """Reset to power-on state: every register zero."""
        self._values = [0] * NUM_REGISTERS
