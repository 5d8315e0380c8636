#!/usr/bin/env python3
"""
zepa — ZEPA Machine Toolkit
===========================

One CLI for the whole toolchain:
    zepa asm     — Assemble ZEPA source to a binary image or listing
    zepa run     — Assemble (or load) a program and run it on the emulator
    zepa disasm  — Disassemble a binary image

Usage:
    python zepa.py <command> [options]
    python zepa.py <command> --help

Examples:
    python zepa.py asm add_two_number.asm -o add_two_number.bin
    python zepa.py asm add_two_number.asm --listing
    python zepa.py run add_two_number.asm
    python zepa.py run store_load.bin --profile strict --dump-memory
    python zepa.py run loop.asm --max-steps 500 --trace
    python zepa.py disasm add_two_number.bin
"""

import argparse
import logging
import os
import sys

from zepa_machine import __version__
from zepa_machine.assembler import Assembler
from zepa_machine.config import MACHINE_PROFILES, LOAD_MODES, DEFAULT_PROFILE
from zepa_machine.disassembler import ZepaDisassembler
from zepa_machine.emulator import ZepaMachine, StopReason
from zepa_machine.errors import AssemblerError, MachineFault
from zepa_machine.isa import Register
from zepa_machine.lexer import load_file
from zepa_machine.log_setup import setup_logging

log = logging.getLogger("zepa_machine.cli")


def _parse_int(s):
    """Parse an integer argument: 0x-prefixed hex or decimal."""
    return int(s.strip(), 0)


def _positive_int(s):
    """Parse a size argument; argparse reports anything below 1."""
    value = _parse_int(s)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number of bytes, got {s}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(
        prog="zepa",
        description="ZEPA Machine toolkit: assemble, run, disassemble",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="profiles: " + ", ".join(
            f"{name} ({p['description']})" for name, p in MACHINE_PROFILES.items()),
    )
    parser.add_argument("--version", action="version", version=f"zepa {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More console logging (-v info, -vv debug)")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a full debug log file into this directory")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble ZEPA source to binary or listing")
    p_asm.add_argument("input", help="Input .asm file")
    p_asm.add_argument("-o", "--output", help="Output file (.bin or .lst)")
    p_asm.add_argument("--listing", action="store_true", help="Print listing to stdout")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program on the emulator")
    p_run.add_argument("input", help="Input .asm source or .bin image")
    p_run.add_argument("--profile", default=DEFAULT_PROFILE,
                       choices=list(MACHINE_PROFILES.keys()),
                       help=f"Machine profile (default: {DEFAULT_PROFILE})")
    p_run.add_argument("--memory", type=_positive_int, default=None,
                       help="Memory size in bytes (overrides profile)")
    p_run.add_argument("--load-mode", choices=LOAD_MODES, default=None,
                       help="LOAD semantics (overrides profile)")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help="Stop with TIMEOUT after this many instructions")
    p_run.add_argument("--break", dest="breakpoints", type=_parse_int,
                       action="append", default=[],
                       help="Breakpoint address (repeatable)")
    p_run.add_argument("--trace", action="store_true",
                       help="Print every executed instruction")
    p_run.add_argument("--dump-memory", action="store_true",
                       help="Print non-zero memory words after the run")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a binary image")
    p_dis.add_argument("input", help="Input .bin file")
    p_dis.add_argument("--stop-at-halt", action="store_true",
                       help="Stop at the first HALT word")
    p_dis.add_argument("-o", "--output", help="Output file (default: stdout)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    console_level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(console_level=console_level, log_dir=args.log_dir)

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        return 1
    except MachineFault as e:
        print(f"Machine fault: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        log.exception("Internal error")
        print(f"Internal error: {e}", file=sys.stderr)
        return 2


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _assemble_input(path):
    asm = Assembler()
    asm.assemble_lines(load_file(path))
    return asm


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args):
    asm = _assemble_input(args.input)

    if args.listing or not args.output:
        print(asm.get_listing())
        if not args.output:
            return 0

    out = args.output
    ext = os.path.splitext(out)[1].lower()
    if ext == ".lst":
        with open(out, "w", encoding="utf-8") as f:
            f.write(asm.get_listing() + "\n")
    else:  # .bin or anything else
        with open(out, "wb") as f:
            f.write(bytes(asm.binary))
    print(f"Assembled {len(asm.binary)} bytes -> {out}")
    return 0


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    if os.path.splitext(args.input)[1].lower() == ".bin":
        with open(args.input, "rb") as f:
            image = f.read()
    else:
        image = bytes(_assemble_input(args.input).binary)

    machine = ZepaMachine.from_profile(args.profile, memory_size=args.memory,
                                       load_mode=args.load_mode)
    machine.load_program(image)
    for addr in args.breakpoints:
        machine.add_breakpoint(addr)
    machine.set_trace(args.trace)

    reason = machine.run(max_steps=args.max_steps)

    if args.trace:
        print("\n".join(machine.trace_output))
    print(f"Stopped: {reason.value} after {machine.steps} steps")
    print(_format_registers(machine))
    if args.dump_memory:
        print(_format_memory(machine))
    return 0 if reason is not StopReason.TIMEOUT else 1


def _format_registers(machine):
    lines = ["----------Registers----------"]
    for name, value in machine.regs.as_dict().items():
        if name == Register.IR.name:
            continue
        lines.append(f"{name}: {value}")
    return "\n".join(lines)


def _format_memory(machine):
    lines = ["----------Memory----------"]
    for addr, row in machine.mem.nonzero_words():
        bits = " ".join(f"{b:08b}" for b in row)
        lines.append(f"Initial Address: 0x{addr:04X} -- Instruction: {bits}")
    return "\n".join(lines)


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    with open(args.input, "rb") as f:
        data = f.read()

    dis = ZepaDisassembler(stop_at_halt=args.stop_at_halt)
    output = "\n".join(r.format() for r in dis.disassemble(data))
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output + "\n")
        print(f"Disassembled {len(data)} bytes -> {args.output}")
    else:
        print(output)
    return 0


COMMANDS = {
    "asm": cmd_asm,
    "run": cmd_run,
    "disasm": cmd_disasm,
}


if __name__ == "__main__":
    sys.exit(main())
