"""
ZEPA toolchain exceptions.

Assembly-time errors derive from AssemblerError, run-time faults from
MachineFault. Library code raises these; only the CLI turns them into
messages and exit codes.
"""

from typing import Optional, Sequence

__all__ = [
    'AssemblerError', 'InvalidOpcode', 'InvalidRegister',
    'InvalidOperandCount', 'InvalidImmediate', 'AssemblyIOError',
    'MachineFault', 'DecodeFault', 'MemoryFault',
]


class AssemblerError(Exception):
    """Raised on assembly errors.

    Carries the offending token sequence and, when known, the source line.
    """
    def __init__(self, message: str, tokens: Optional[Sequence[str]] = None,
                 line_num: int = 0):
        self.tokens = list(tokens) if tokens else []
        self.line_num = line_num
        self.detail = message
        super().__init__(self._format())

    def _format(self) -> str:
        msg = self.detail
        if self.tokens:
            msg = f"{msg} in '{' '.join(self.tokens)}'"
        if self.line_num:
            msg = f"Line {self.line_num}: {msg}"
        return msg

    def at_line(self, line_num: int) -> 'AssemblerError':
        """Attach a source line number after the fact, returns self."""
        self.line_num = line_num
        self.args = (self._format(),)
        return self

    def with_tokens(self, tokens: Sequence[str]) -> 'AssemblerError':
        """Attach the offending token sequence after the fact, returns self."""
        self.tokens = list(tokens)
        self.args = (self._format(),)
        return self


class InvalidOpcode(AssemblerError):
    pass


class InvalidRegister(AssemblerError):
    pass


class InvalidOperandCount(AssemblerError):
    pass


class InvalidImmediate(AssemblerError):
    pass


class AssemblyIOError(AssemblerError):
    """Source file missing or unreadable."""
    pass


class MachineFault(Exception):
    """Raised when the emulator cannot continue executing."""
    def __init__(self, message: str, pc: Optional[int] = None):
        self.detail = message
        self.pc = pc
        super().__init__(self._format())

    def _format(self) -> str:
        if self.pc is None:
            return self.detail
        return f"{self.detail} (PC=0x{self.pc:04X})"

    def at_pc(self, pc: int) -> 'MachineFault':
        """Attach the faulting instruction's address, returns self."""
        self.pc = pc
        self.args = (self._format(),)
        return self


class DecodeFault(MachineFault):
    """Unknown opcode, or a register field that names no register."""
    def __init__(self, message: str, word: int = 0, pc: Optional[int] = None):
        self.word = word
        super().__init__(message, pc)


class MemoryFault(MachineFault):
    """Access outside the machine's memory."""
    def __init__(self, message: str, addr: int = 0, size: int = 0,
                 pc: Optional[int] = None):
        self.addr = addr
        self.size = size
        super().__init__(message, pc)
