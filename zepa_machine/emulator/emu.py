"""
ZEPA Emulator — Main Machine Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Flat memory (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - ALU operations (cpu/alu.py)

Execution model (one step):
  1. Fetch the 4 bytes at PC (big-endian) into IR, PC += 4
  2. If IR == 0: PC -= 4, machine HALTED
  3. Decode IR
  4. Execute the handler for the opcode, back to FETCHING

Termination reasons:
  - HALT:     fetched the all-zero word
  - TIMEOUT:  step limit reached
  - BREAK:    breakpoint address reached

Faults (unknown opcode, bad register field, address outside memory) are
raised as MachineFault subclasses and leave the machine FAULTED.
"""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set, Union
from pathlib import Path
from enum import Enum
import logging

from ..config import LOAD_LITERAL, LOAD_MEMORY, LOAD_MODES, get_profile, DEFAULT_PROFILE
from ..errors import DecodeFault, MachineFault
from ..isa import HALT_WORD, Opcode, WORD_BYTES, WORD_MASK
from .cpu.regs import Registers
from .cpu.decoder import DecodedInstruction, decode, format_instruction
from .cpu import alu
from .mem.memory import Memory

log = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class MachineState(Enum):
    FETCHING = 'FETCHING'
    DECODING = 'DECODING'
    EXECUTING = 'EXECUTING'
    HALTED = 'HALTED'
    FAULTED = 'FAULTED'


class ZepaMachine:
    """ZEPA virtual processor.

    Usage:
        m = ZepaMachine(memory_size=1024)
        m.load_program(assemble(source))
        reason = m.run()
        print(m.regs.W0)

    Each machine owns its memory and registers; machines never share state.
    """

    DEFAULT_MEMORY_SIZE = 1024
    TRACE_LIMIT = 10_000  # most recent trace lines kept

    def __init__(self, memory_size: int = DEFAULT_MEMORY_SIZE,
                 load_mode: str = LOAD_LITERAL,
                 max_steps: Optional[int] = None):
        if load_mode not in LOAD_MODES:
            raise ValueError(f"Unknown load mode '{load_mode}'")

        self.regs = Registers()
        self.mem = Memory(memory_size)
        self.load_mode = load_mode
        self.max_steps = max_steps

        self.state = MachineState.FETCHING
        self.steps = 0

        # Breakpoints: set of PC addresses that trigger BREAK
        self._breakpoints: Set[int] = set()

        self._trace = False
        self._trace_output: Deque[str] = deque(maxlen=self.TRACE_LIMIT)

        self._dispatch = self._build_dispatch()

    @classmethod
    def from_profile(cls, name: str = DEFAULT_PROFILE, **overrides) -> 'ZepaMachine':
        """Build a machine from a named profile in config.MACHINE_PROFILES."""
        profile = get_profile(name, **overrides)
        return cls(memory_size=profile["memory_size"],
                   load_mode=profile["load_mode"],
                   max_steps=profile["max_steps"])

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, image: bytes, base_addr: int = 0):
        """Copy a binary image into memory and rewind to PC=0.

        Run state (PC, IR, step count, trace, HALTED/FAULTED) starts over;
        general registers and the rest of memory are left as they are.
        """
        self.mem.load_binary(bytes(image), base_addr)
        self._rewind()
        log.debug("Loaded %d bytes at 0x%04X", len(image), base_addr)

    def load_binary(self, path_or_data: Union[str, Path, bytes], base_addr: int = 0):
        """Load a raw binary file or bytes into memory."""
        if isinstance(path_or_data, (str, Path)):
            data = Path(path_or_data).read_bytes()
        else:
            data = bytes(path_or_data)
        self.load_program(data, base_addr)

    def reset(self):
        """Clear registers, memory and run state. Breakpoints are kept."""
        self.regs.reset()
        self.mem.clear()
        self._rewind()

    def _rewind(self):
        self.regs.PC = 0
        self.regs.IR = 0
        self.state = MachineState.FETCHING
        self.steps = 0
        self._trace_output.clear()

    # ══════════════════════════════════════════════
    # Debug hooks
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    def set_trace(self, enabled: bool = True):
        self._trace = enabled

    @property
    def trace_output(self) -> List[str]:
        return list(self._trace_output)

    @property
    def halted(self) -> bool:
        return self.state is MachineState.HALTED

    # ══════════════════════════════════════════════
    # Cycle phases
    # ══════════════════════════════════════════════

    def fetch(self):
        """Read the word at PC into IR and advance PC by one word."""
        pc = self.regs.PC
        self.regs.IR = self.mem.read32(pc)
        self.regs.PC = pc + WORD_BYTES

    def is_end_of_program(self) -> bool:
        """Halt check on the word just fetched. Rolls PC back onto it."""
        if self.regs.IR == HALT_WORD:
            self.regs.PC = (self.regs.PC - WORD_BYTES) & WORD_MASK
            return True
        return False

    def decode(self) -> DecodedInstruction:
        return decode(self.regs.IR)

    def execute(self, inst: DecodedInstruction):
        """Dispatch a decoded instruction to its handler."""
        self._dispatch[inst.opcode](inst)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason.HALT once halted, else None.

        Raises MachineFault (DecodeFault / MemoryFault) if the instruction
        cannot be executed.
        """
        if self.state is MachineState.HALTED:
            return StopReason.HALT
        if self.state is MachineState.FAULTED:
            raise MachineFault("Machine is faulted; reset() before stepping",
                               pc=self.regs.PC)

        pc = self.regs.PC
        try:
            self.state = MachineState.FETCHING
            self.fetch()

            if self.is_end_of_program():
                self.state = MachineState.HALTED
                log.info("Halted at 0x%04X after %d steps", self.regs.PC, self.steps)
                return StopReason.HALT

            self.state = MachineState.DECODING
            inst = self.decode()

            if self._trace:
                line = f"0x{pc:04X}: {self.regs.IR:08X}  {format_instruction(inst)}"
                self._trace_output.append(line)
                log.debug(line)

            self.state = MachineState.EXECUTING
            self.execute(inst)
        except MachineFault as e:
            self.state = MachineState.FAULTED
            if e.pc is None:
                e.at_pc(pc)
            log.warning("Fault at 0x%04X: %s", pc, e)
            raise

        self.steps += 1
        self.state = MachineState.FETCHING
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until halt, breakpoint, or step limit.

        Args:
            max_steps: Instructions to execute before TIMEOUT. Defaults to
                the machine's own max_steps; None on both means no limit.

        A breakpoint on the starting PC does not fire, so run() can resume
        from a BREAK.
        """
        limit = max_steps if max_steps is not None else self.max_steps
        executed = 0

        while True:
            if executed and self.regs.PC in self._breakpoints:
                log.info("Breakpoint at 0x%04X", self.regs.PC)
                return StopReason.BREAK
            if limit is not None and executed >= limit and not self.halted:
                log.info("Step limit %d reached at 0x%04X", limit, self.regs.PC)
                return StopReason.TIMEOUT

            reason = self.step()
            if reason is not None:
                return reason
            executed += 1

    # ══════════════════════════════════════════════
    # Register access
    # ══════════════════════════════════════════════

    def _read_reg(self, index: int) -> int:
        self._check_reg(index)
        return self.regs[index]

    def _write_reg(self, index: int, value: int):
        self._check_reg(index)
        self.regs[index] = value

    def _check_reg(self, index: int):
        if not Registers.is_valid(index):
            raise DecodeFault(f"Register field {index} names no register",
                              word=self.regs.IR)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[Opcode, Callable[[DecodedInstruction], None]]:
        """Build opcode → handler dispatch table."""
        return {
            Opcode.MV:    self._op_mv,
            Opcode.ADD:   self._op_add,
            Opcode.SUB:   self._op_sub,
            Opcode.CMP:   self._op_cmp,
            Opcode.JUMP:  self._op_jump,
            Opcode.LOAD:  self._op_load,
            Opcode.STORE: self._op_store,
        }

    def _op_mv(self, inst: DecodedInstruction):
        self._write_reg(inst.rd, inst.immediate)

    def _op_add(self, inst: DecodedInstruction):
        self._write_reg(inst.rd, alu.add32(self._read_reg(inst.rs1),
                                           self._read_reg(inst.rs2)))

    def _op_sub(self, inst: DecodedInstruction):
        self._write_reg(inst.rd, alu.sub32(self._read_reg(inst.rs1),
                                           self._read_reg(inst.rs2)))

    def _op_cmp(self, inst: DecodedInstruction):
        self.regs.SR = alu.compare(self._read_reg(inst.rs1),
                                   self._read_reg(inst.rs2))

    def _op_jump(self, inst: DecodedInstruction):
        self.regs.PC = inst.immediate

    def _op_load(self, inst: DecodedInstruction):
        """LOAD reg, addr.

        literal mode: reg <- addr. memory mode: reg <- memory[addr].
        """
        if self.load_mode == LOAD_MEMORY:
            self._write_reg(inst.reg, self.mem.read8(inst.immediate))
        else:
            self._write_reg(inst.reg, inst.immediate)

    def _op_store(self, inst: DecodedInstruction):
        """STORE reg, addr: memory[addr] <- low byte of reg."""
        self.mem.write8(inst.immediate, self._read_reg(inst.reg) & 0xFF)
