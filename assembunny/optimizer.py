"""
Multiply-loop fusion for the assembunny engine.

The only idiom the machine has for multiplication is a pair of nested
countdown loops:

    cpy X Y     ; Y = X
    inc D       ; ┐ inner: D += 1, Y times
    dec Y       ; │
    jnz Y -2    ; ┘
    dec Z       ; outer: Z times
    jnz Z -5

which leaves D += X*Z, Y = 0, Z = 0 after X*Z iterations. The matcher
recognises that exact six-instruction shape at the cursor so the engine
can apply the result in one step.

Register roles are checked strictly (the register written by the cpy is
the one decremented and tested by the inner loop; the outer dec and jnz
share a register). The jnz offsets are not checked. Anything else falls
back to ordinary execution.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .instructions import Instruction, Opcode, Reg, Register

__all__ = ['MultiplyLoop', 'PATTERN_LENGTH', 'match_window', 'match_multiply',
           'find_multiply_loops']

PATTERN_LENGTH = 6


@dataclass(frozen=True)
class MultiplyLoop:
    """A matched loop: dest += factor * counter; scratch = counter = 0."""
    factor: Reg     # X
    scratch: Reg    # Y
    counter: Reg    # Z
    dest: Reg       # D

    def apply(self, regs):
        """Apply the closed-form result to a RegisterBank."""
        values = regs.values
        values[self.dest] += values[self.factor] * values[self.counter]
        values[self.scratch] = 0
        values[self.counter] = 0

    def __str__(self) -> str:
        return (f"{self.dest.letter} += {self.factor.letter} * "
                f"{self.counter.letter}")


def _is_instr(instr: Instruction, op: Opcode) -> bool:
    return instr.op is op


def _reg_arg(instr: Instruction, pos: int) -> Optional[Reg]:
    """Register held in operand slot pos, or None for a literal."""
    arg = instr.args[pos]
    if isinstance(arg, Register):
        return arg.reg
    return None


def match_window(window: Sequence[Instruction]) -> Optional[MultiplyLoop]:
    """Match six instructions against the multiply idiom."""
    if len(window) != PATTERN_LENGTH:
        return None
    cpy, inc, dec1, jnz1, dec2, jnz2 = window

    # ── 1: cpy X Y, both registers ──
    if not _is_instr(cpy, Opcode.CPY):
        return None
    factor = _reg_arg(cpy, 0)
    scratch = _reg_arg(cpy, 1)
    if factor is None or scratch is None:
        return None

    # ── 2: inc D ──
    if not _is_instr(inc, Opcode.INC):
        return None
    dest = _reg_arg(inc, 0)

    # ── 3, 4: dec Y; jnz Y _ ──
    if not (_is_instr(dec1, Opcode.DEC) and _is_instr(jnz1, Opcode.JNZ)):
        return None
    if _reg_arg(dec1, 0) != scratch or _reg_arg(jnz1, 0) != scratch:
        return None

    # ── 5, 6: dec Z; jnz Z _ ──
    if not (_is_instr(dec2, Opcode.DEC) and _is_instr(jnz2, Opcode.JNZ)):
        return None
    counter = _reg_arg(dec2, 0)
    if counter is None or _reg_arg(jnz2, 0) != counter:
        return None

    if dest is None:
        return None
    return MultiplyLoop(factor=factor, scratch=scratch, counter=counter, dest=dest)


def match_multiply(program, cursor: int) -> Optional[MultiplyLoop]:
    """Match the idiom anchored at cursor. The whole six-instruction window
    must lie inside the program."""
    instrs = program.instructions
    if cursor < 0 or cursor + PATTERN_LENGTH > len(instrs):
        return None
    # called on every step; reject on the first opcode before slicing
    if instrs[cursor].op is not Opcode.CPY:
        return None
    return match_window(instrs[cursor:cursor + PATTERN_LENGTH])


def find_multiply_loops(program) -> List[Tuple[int, MultiplyLoop]]:
    """Every index at which the idiom currently matches."""
    found = []
    for i in range(len(program) - PATTERN_LENGTH + 1):
        loop = match_multiply(program, i)
        if loop is not None:
            found.append((i, loop))
    return found
