"""
Decoder and disassembler tests.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from zepa_machine.assembler import assemble, encode
from zepa_machine.disassembler import ZepaDisassembler, disassemble_bytes
from zepa_machine.emulator.cpu.decoder import decode, format_instruction, register_name
from zepa_machine.errors import DecodeFault
from zepa_machine.isa import Format, Opcode


class TestDecoder:

    def test_r_type(self):
        inst = decode(0x34221800)
        assert inst.opcode is Opcode.ADD
        assert inst.format is Format.R
        assert (inst.rd, inst.rs1, inst.rs2) == (1, 2, 3)
        assert inst.funct5 == 0 and inst.funct6 == 0

    def test_i_type(self):
        inst = decode(0x48600400)
        assert inst.opcode is Opcode.STORE
        assert inst.format is Format.I
        assert inst.reg == 3
        assert inst.immediate == 0x20
        assert inst.rs1 == 0 and inst.rs2 == 0

    @pytest.mark.parametrize("tokens", [
        ['MV', 'W5', '#65535'], ['ADD', 'W0', 'W5', 'W3'], ['SUB', 'W4', 'W4', 'W4'],
        ['CMP', 'W1', 'W2'], ['JUMP', '#0x14'], ['LOAD', 'W2', '0x20'],
        ['STORE', 'W3', '#0x3FF'],
    ])
    def test_format_reassembles(self, tokens):
        word = encode(tokens)
        text = format_instruction(decode(word))
        assert encode(text.replace(',', ' ').split()) == word

    def test_format_text(self):
        assert format_instruction(decode(0x302000A0)) == "MV    W1, #5"
        assert format_instruction(decode(0x3C051800)) == "CMP   W5, W3"
        assert format_instruction(decode(0x40000280)) == "JUMP  #0x0014"
        assert format_instruction(decode(0x44400400)) == "LOAD  W2, #0x0020"

    @pytest.mark.parametrize("word", [0x00000001, 0x04000000, 0x4C000000, 0xFC000000])
    def test_unknown_opcode(self, word):
        with pytest.raises(DecodeFault) as exc:
            decode(word)
        assert exc.value.word == word

    def test_register_name(self):
        assert register_name(0) == "W0"
        assert register_name(9) == "SR"
        assert register_name(31) == "R31"


class TestDisassembler:

    def test_program(self):
        image = assemble("MV W1,#5\nMV W2,#3\nADD W0,W1,W2")
        results = ZepaDisassembler().disassemble(image)
        assert [r.text for r in results] == ["MV    W1, #5", "MV    W2, #3", "ADD   W0, W1, W2"]
        assert [r.address for r in results] == [0, 4, 8]
        assert results[0].format() == "0x0000: 30 20 00 A0  MV    W1, #5"

    def test_round_trip_through_text(self):
        src = "MV W3, #66\nSTORE W3, 0x020\nLOAD W2, 0x020\nCMP W5, W3\nJUMP 0x14\n"
        image = assemble(src)
        text = "\n".join(r.text for r in disassemble_bytes(image))
        assert assemble(text) == image

    def test_halt_word(self):
        image = assemble("MV W1, #1\nHALT\nMV W2, #2")
        results = disassemble_bytes(image)
        assert [r.text for r in results][1] == "HALT"
        assert len(disassemble_bytes(image, stop_at_halt=True)) == 2

    def test_data_words(self):
        results = disassemble_bytes(b'\xFC\x00\x00\x00\x12\x34')
        assert results[0].text == ".word 0xFC000000"
        assert results[0].is_data
        assert results[1].text == ".byte 0x12, 0x34"
        assert results[1].is_data
        assert results[1].address == 4

    def test_base_addr_and_limit(self):
        image = assemble("MV W1,#1\nMV W2,#2\nMV W3,#3")
        results = ZepaDisassembler().disassemble(image, base_addr=0x100, max_instructions=2)
        assert [r.address for r in results] == [0x100, 0x104]

    def test_decode_one_past_end(self):
        assert ZepaDisassembler().decode_one(b'\x30\x20\x00\xA0', offset=4) is None

    def test_empty(self):
        assert disassemble_bytes(b'') == []


class TestReservedBits:

    def test_reserved_bits_disassemble_as_data(self):
        results = disassemble_bytes(bytes.fromhex("302000A1 34011001 34011040"))
        assert [r.text for r in results] == [
            ".word 0x302000A1", ".word 0x34011001", ".word 0x34011040",
        ]
        assert all(r.is_data for r in results)

    def test_clean_words_still_decode(self):
        results = disassemble_bytes(bytes.fromhex("302000A0 34011000"))
        assert [r.is_data for r in results] == [False, False]
