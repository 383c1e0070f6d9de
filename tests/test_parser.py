"""
Parser tests for assembunny.

Covers operand classification, per-opcode operand shapes, profile
restrictions and all-or-nothing program parsing.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from assembunny.instructions import Instruction, Literal, Opcode, Reg, Register
from assembunny.parser import ParseError, load, parse_line, parse_operand, parse_program


class TestOperands:
    def test_literal(self):
        assert parse_operand("41") == Literal(41)

    def test_negative_literal(self):
        assert parse_operand("-2") == Literal(-2)

    def test_plus_sign_literal(self):
        assert parse_operand("+5") == Literal(5)

    def test_register(self):
        assert parse_operand("c") == Register(Reg.C)

    def test_unknown_register(self):
        with pytest.raises(ParseError, match="Bad operand 'e'"):
            parse_operand("e")

    def test_multi_letter(self):
        with pytest.raises(ParseError):
            parse_operand("ab")

    def test_uppercase_rejected(self):
        with pytest.raises(ParseError):
            parse_operand("A")

    def test_non_ascii_digits_rejected(self):
        with pytest.raises(ParseError):
            parse_operand("\u0663")
        with pytest.raises(ParseError):
            parse_line("cpy \u0661\u0662 a")


class TestParseLine:
    def test_cpy(self):
        assert parse_line("cpy 41 a") == Instruction(
            Opcode.CPY, (Literal(41), Register(Reg.A)))

    def test_jnz_negative_offset(self):
        assert parse_line("jnz c -2") == Instruction(
            Opcode.JNZ, (Register(Reg.C), Literal(-2)))

    def test_jnz_register_offset(self):
        instr = parse_line("jnz 1 b")
        assert instr.args == (Literal(1), Register(Reg.B))

    def test_whitespace_ignored(self):
        assert parse_line("   inc \t d   ") == Instruction(Opcode.INC, (Register(Reg.D),))

    def test_tgl_and_out(self):
        assert parse_line("tgl a").op is Opcode.TGL
        assert parse_line("out 0").args == (Literal(0),)

    def test_unknown_opcode(self):
        with pytest.raises(ParseError, match="Unknown opcode: mul"):
            parse_line("mul a b")

    def test_register_only_slot(self):
        """inc/dec/tgl take a register, never a literal."""
        for text in ("inc 5", "dec -1", "tgl 2"):
            with pytest.raises(ParseError, match="must be a register"):
                parse_line(text)

    def test_operand_count(self):
        for text in ("inc", "cpy 1", "jnz a 1 2", "out 1 2", "tgl"):
            with pytest.raises(ParseError, match="operand"):
                parse_line(text)

    def test_empty_line(self):
        with pytest.raises(ParseError):
            parse_line("   ")

    def test_line_number_in_message(self):
        with pytest.raises(ParseError) as exc:
            parse_line("bogus", line_num=7)
        assert exc.value.line_num == 7
        assert str(exc.value).startswith("Line 7:")

    def test_str_renders_source(self):
        assert str(parse_line("cpy  -3   d")) == "cpy -3 d"


class TestProfiles:
    def test_baseline_rejects_tgl(self):
        with pytest.raises(ParseError, match="not available"):
            parse_line("tgl a", profile="baseline")

    def test_toggle_rejects_out(self):
        with pytest.raises(ParseError, match="not available"):
            parse_line("out a", profile="toggle")

    def test_baseline_cpy_needs_register_destination(self):
        with pytest.raises(ParseError, match="destination"):
            parse_line("cpy 1 2", profile="baseline")

    def test_baseline_jnz_needs_literal_offset(self):
        with pytest.raises(ParseError, match="offset"):
            parse_line("jnz a b", profile="baseline")

    def test_signal_accepts_literal_destination(self):
        """Later machines accept the shapes tgl can produce."""
        instr = parse_line("cpy 1 2", profile="signal")
        assert instr.args == (Literal(1), Literal(2))

    def test_unknown_profile(self):
        with pytest.raises(ValueError, match="Unknown profile"):
            parse_line("inc a", profile="turbo")


class TestParseProgram:
    SOURCE = """cpy 41 a
inc a
inc a
dec a
jnz a 2
dec a"""

    def test_length(self):
        assert len(load(self.SOURCE)) == 6

    def test_blank_lines_and_indent(self):
        program = parse_program("\n   cpy 1 a\n\n\t inc a  \n\n")
        assert len(program) == 2
        assert program[1] == parse_line("inc a")

    def test_to_source(self):
        assert load(self.SOURCE).to_source() == self.SOURCE

    def test_single_error_keeps_location(self):
        with pytest.raises(ParseError) as exc:
            parse_program("inc a\nfoo b\ninc b")
        assert exc.value.line_num == 2
        assert exc.value.line_text == "foo b"

    def test_all_errors_reported(self):
        with pytest.raises(ParseError) as exc:
            parse_program("foo\ninc a\ninc e\ncpy 1")
        msg = str(exc.value)
        assert "3 errors" in msg
        assert "Line 1:" in msg
        assert "Line 3:" in msg
        assert "Line 4:" in msg

    def test_baseline_program(self):
        program = load(self.SOURCE, profile="baseline")
        assert len(program) == 6
