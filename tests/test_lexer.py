"""
Tokenizer tests: comment stripping, label lines, comma handling.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from zepa_machine.errors import AssemblyIOError
from zepa_machine.lexer import SourceLine, tokenize, tokenize_line, load_file


class TestTokenizeLine:

    def test_instruction_with_comment(self):
        assert tokenize_line("MV W1, #5       ; Load 5") == ['MV', 'W1', '#5']

    def test_commas_without_spaces(self):
        assert tokenize_line("ADD W0,W1,W2") == ['ADD', 'W0', 'W1', 'W2']

    def test_extra_whitespace(self):
        assert tokenize_line("   \tSUB   W3 ,  W3, W5  ") == ['SUB', 'W3', 'W3', 'W5']

    def test_blank_and_comment_lines_are_dropped(self):
        assert tokenize_line("") == []
        assert tokenize_line("      ") == []
        assert tokenize_line("; just a comment") == []
        assert tokenize_line("   ;; indented comment") == []

    def test_label_lines_are_dropped(self):
        assert tokenize_line("loop:") == []
        assert tokenize_line("  target:   ; jump here") == []

    def test_case_is_preserved(self):
        # Case folding is the assembler's job
        assert tokenize_line("mv w1, #0x1f") == ['mv', 'w1', '#0x1f']

    def test_no_validation(self):
        assert tokenize_line("NOT AN INSTRUCTION") == ['NOT', 'AN', 'INSTRUCTION']


class TestTokenize:

    def test_source_order_and_line_numbers(self):
        src = "; header\nMV W1, #5\n\nstart:\nMV W2, #3\nADD W0, W1, W2 ; sum\n"
        lines = tokenize(src)
        assert [l.tokens for l in lines] == [
            ['MV', 'W1', '#5'],
            ['MV', 'W2', '#3'],
            ['ADD', 'W0', 'W1', 'W2'],
        ]
        assert [l.line_num for l in lines] == [2, 5, 6]
        assert lines[2].raw == "ADD W0, W1, W2 ; sum"

    def test_empty_source(self):
        assert tokenize("") == []
        assert tokenize("\n\n; nothing\n") == []

    def test_source_line_accessors(self):
        line = SourceLine(tokens=['add', 'W0', 'W1', 'W2'], line_num=1)
        assert line.mnemonic == 'ADD'
        assert line.operands == ['W0', 'W1', 'W2']
        assert SourceLine().mnemonic == ""


class TestLoadFile:

    def test_load_file(self, tmp_path):
        path = tmp_path / "prog.asm"
        path.write_text("MV W1, #5 ; five\nloop:\nJUMP 0x0000\n", encoding="utf-8")
        lines = load_file(path)
        assert [l.tokens for l in lines] == [['MV', 'W1', '#5'], ['JUMP', '0x0000']]

    def test_missing_file(self, tmp_path):
        with pytest.raises(AssemblyIOError) as exc:
            load_file(tmp_path / "missing.asm")
        assert "missing.asm" in str(exc.value)


class TestLineEndings:

    def test_crlf(self):
        lines = tokenize("MV W1, #1\r\nADD W0, W1, W2\r\n")
        assert [l.line_num for l in lines] == [1, 2]
        assert lines[1].raw == "ADD W0, W1, W2"
        assert lines[1].tokens == ['ADD', 'W0', 'W1', 'W2']

    @pytest.mark.parametrize("sep", ["\x0c", "\x1c", "\u2028", "\x0b"])
    def test_only_newline_ends_a_line(self, sep):
        lines = tokenize(f"MV W1, #1{sep}\nFOO W2\n")
        assert [l.line_num for l in lines] == [1, 2]
        assert lines[1].tokens == ['FOO', 'W2']
