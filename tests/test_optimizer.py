"""
Multiply-loop fusion tests.

The matcher must accept the exact six-instruction idiom and nothing else.
Equivalence with step-by-step execution is covered in test_emulator.py.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from assembunny.instructions import Reg
from assembunny.optimizer import (MultiplyLoop, find_multiply_loops, match_multiply,
                                  match_window)
from assembunny.parser import load
from assembunny.regs import RegisterBank


MULTIPLY = """cpy 5 a
cpy 3 c
cpy a b
inc d
dec b
jnz b -2
dec c
jnz c -5"""


def _idiom(*lines: str):
    return list(load("\n".join(lines)))


class TestMatch:
    def test_match_at_cursor(self):
        loop = match_multiply(load(MULTIPLY), 2)
        assert loop == MultiplyLoop(factor=Reg.A, scratch=Reg.B, counter=Reg.C, dest=Reg.D)

    def test_no_match_elsewhere(self):
        program = load(MULTIPLY)
        assert match_multiply(program, 0) is None
        assert match_multiply(program, 1) is None
        assert match_multiply(program, 3) is None

    def test_window_must_fit(self):
        """A cursor whose six-instruction window runs off the end never matches."""
        program = load(MULTIPLY)
        assert match_multiply(program, 3) is None
        assert match_multiply(program, -1) is None
        assert match_multiply(load("\n".join(MULTIPLY.split("\n")[2:7])), 0) is None

    def test_offsets_not_checked(self):
        window = _idiom("cpy a b", "inc d", "dec b", "jnz b 9", "dec c", "jnz c c")
        assert match_window(window) is not None

    def test_find_multiply_loops(self):
        found = find_multiply_loops(load(MULTIPLY))
        assert [idx for idx, _ in found] == [2]

    def test_listing_marks_site(self):
        listing = load(MULTIPLY).listing().split("\n")
        assert listing[2] == "0002* cpy a b"
        assert listing[3] == "0003  inc d"


class TestNearMisses:
    """Register roles are checked in every position."""

    @pytest.mark.parametrize("lines", [
        # inner dec on another register
        ("cpy a b", "inc d", "dec c", "jnz b -2", "dec c", "jnz c -5"),
        # inner jnz tests another register
        ("cpy a b", "inc d", "dec b", "jnz a -2", "dec c", "jnz c -5"),
        # outer dec and jnz disagree
        ("cpy a b", "inc d", "dec b", "jnz b -2", "dec c", "jnz d -5"),
        # cpy from a literal
        ("cpy 5 b", "inc d", "dec b", "jnz b -2", "dec c", "jnz c -5"),
        # cpy into a literal
        ("cpy a 5", "inc d", "dec b", "jnz b -2", "dec c", "jnz c -5"),
        # jnz on a literal condition
        ("cpy a b", "inc d", "dec b", "jnz 1 -2", "dec c", "jnz c -5"),
        # dec instead of inc
        ("cpy a b", "dec d", "dec b", "jnz b -2", "dec c", "jnz c -5"),
        # instructions out of order
        ("cpy a b", "dec b", "inc d", "jnz b -2", "dec c", "jnz c -5"),
    ])
    def test_rejected(self, lines):
        assert match_window(_idiom(*lines)) is None

    def test_short_window(self):
        assert match_window(_idiom("cpy a b", "inc d", "dec b")) is None


class TestApply:
    def test_closed_form(self):
        regs = RegisterBank({'a': 5, 'b': 99, 'c': 3, 'd': 1})
        MultiplyLoop(factor=Reg.A, scratch=Reg.B, counter=Reg.C, dest=Reg.D).apply(regs)
        assert regs.as_dict() == {'a': 5, 'b': 0, 'c': 0, 'd': 16}

    def test_str(self):
        loop = MultiplyLoop(factor=Reg.A, scratch=Reg.B, counter=Reg.C, dest=Reg.D)
        assert str(loop) == "d += a * c"
