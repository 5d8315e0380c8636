"""
zepa CLI tests: drive main(argv) and check exit codes and output.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from zepa import main
from zepa_machine.assembler import assemble

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")
ADD_TWO = os.path.join(EXAMPLES_DIR, "add_two_number.asm")
STORE_LOAD = os.path.join(EXAMPLES_DIR, "store_load.asm")


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestAsmCommand:

    def test_listing_to_stdout(self, capsys):
        assert main(["asm", ADD_TWO]) == 0
        out = capsys.readouterr().out
        assert "0x0000  30 20 00 A0  MV W1, #5" in out
        assert "0x0008  34 01 10 00  ADD W0, W1, W2" in out

    def test_binary_output(self, tmp_path, capsys):
        out_path = tmp_path / "add.bin"
        assert main(["asm", ADD_TWO, "-o", str(out_path)]) == 0
        assert out_path.read_bytes() == bytes.fromhex("302000A0 30400060 34011000")
        assert "Assembled 12 bytes" in capsys.readouterr().out

    def test_listing_file(self, tmp_path):
        out_path = tmp_path / "add.lst"
        assert main(["asm", ADD_TWO, "-o", str(out_path)]) == 0
        assert "ADD W0, W1, W2" in out_path.read_text(encoding="utf-8")

    def test_assembly_error(self, tmp_path, capsys):
        src = _write(tmp_path, "bad.asm", "MV W1, #5\nFOO W1\n")
        assert main(["asm", src]) == 1
        err = capsys.readouterr().err
        assert "Assembly error" in err
        assert "Line 2" in err

    def test_missing_source(self, tmp_path, capsys):
        assert main(["asm", str(tmp_path / "nope.asm")]) == 1
        assert "nope.asm" in capsys.readouterr().err


class TestRunCommand:

    def test_run_source(self, capsys):
        assert main(["run", ADD_TWO]) == 0
        out = capsys.readouterr().out
        assert "Stopped: HALT after 3 steps" in out
        assert "----------Registers----------" in out
        assert "W0: 8" in out
        assert "PC: 12" in out
        assert "IR:" not in out

    def test_run_binary(self, tmp_path, capsys):
        image = tmp_path / "add.bin"
        image.write_bytes(assemble("MV W1,#5\nMV W2,#3\nADD W0,W1,W2"))
        assert main(["run", str(image)]) == 0
        assert "W0: 8" in capsys.readouterr().out

    def test_load_mode_and_memory_dump(self, capsys):
        assert main(["run", STORE_LOAD, "--load-mode", "memory", "--dump-memory"]) == 0
        out = capsys.readouterr().out
        assert "W2: 66" in out
        assert ("Initial Address: 0x0020 -- Instruction: "
                "01000010 00000000 00000000 00000000") in out

    def test_strict_profile(self, capsys):
        assert main(["run", STORE_LOAD, "--profile", "strict"]) == 0
        assert "W2: 66" in capsys.readouterr().out

    def test_trace(self, capsys):
        assert main(["run", ADD_TWO, "--trace"]) == 0
        assert "0x0008: 34011000  ADD   W0, W1, W2" in capsys.readouterr().out

    def test_breakpoint(self, capsys):
        assert main(["run", ADD_TWO, "--break", "0x8"]) == 0
        out = capsys.readouterr().out
        assert "Stopped: BREAK after 2 steps" in out
        assert "W0: 0" in out

    def test_timeout(self, tmp_path, capsys):
        src = _write(tmp_path, "loop.asm", "loop:\nJUMP 0x0000\n")
        assert main(["run", src, "--max-steps", "5"]) == 1
        assert "Stopped: TIMEOUT after 5 steps" in capsys.readouterr().out

    def test_fault(self, tmp_path, capsys):
        src = _write(tmp_path, "fault.asm", "STORE W1, 0x0400\n")
        assert main(["run", src]) == 1
        assert "Machine fault" in capsys.readouterr().err

    def test_program_too_big_for_memory(self, capsys):
        assert main(["run", ADD_TWO, "--memory", "8"]) == 1
        assert "Machine fault" in capsys.readouterr().err

    @pytest.mark.parametrize("size", ["0", "-4", "0x0"])
    def test_memory_size_must_be_positive(self, size, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["run", ADD_TWO, f"--memory={size}"])
        assert exc.value.code == 2
        err = capsys.readouterr().err
        assert "positive" in err
        assert "Internal error" not in err

    def test_memory_size_hex(self, capsys):
        assert main(["run", ADD_TWO, "--memory", "0x40"]) == 0
        assert "W0: 8" in capsys.readouterr().out

    def test_missing_binary(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "nope.bin")]) == 1
        assert "Error" in capsys.readouterr().err


class TestDisasmCommand:

    def test_disasm(self, tmp_path, capsys):
        image = tmp_path / "add.bin"
        image.write_bytes(assemble("MV W1,#5\nHALT\nMV W2,#3"))
        assert main(["disasm", str(image)]) == 0
        out = capsys.readouterr().out
        assert "0x0000: 30 20 00 A0  MV    W1, #5" in out
        assert "0x0004: 00 00 00 00  HALT" in out
        assert "MV    W2, #3" in out

    def test_disasm_stop_at_halt_to_file(self, tmp_path):
        image = tmp_path / "add.bin"
        image.write_bytes(assemble("MV W1,#5\nHALT\nMV W2,#3"))
        out_path = tmp_path / "add.dis"
        assert main(["disasm", str(image), "--stop-at-halt", "-o", str(out_path)]) == 0
        text = out_path.read_text(encoding="utf-8")
        assert "HALT" in text
        assert "W2" not in text


class TestMisc:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "zepa" in capsys.readouterr().out
