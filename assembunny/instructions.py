"""
Instruction model for the assembunny machine.

Operands are either a register reference or a literal integer. An
instruction is an opcode plus a tuple of operands whose count and kinds
are fixed by the opcode table below.

Opcode table:
  cpy  src dst   — copy src (reg/imm) into dst (must be a register to have effect)
  inc  reg       — reg += 1
  dec  reg       — reg -= 1
  jnz  cond off  — if cond != 0: cursor += off
  tgl  reg       — toggle the instruction at cursor + reg
  out  val       — append val to the output sink

Toggle rewrites only the opcode of the target; operands are carried over
untouched, which is why cpy and jnz may end up holding literals in slots
that normally take a register.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Dict, Tuple, Union

__all__ = [
    'Reg', 'Register', 'Literal', 'Operand', 'Opcode', 'Instruction',
    'OPCODES', 'REG', 'ANY', 'TOGGLE_MAP', 'toggled',
]


# ──────────────────────────────────────────────
# Registers and operands
# ──────────────────────────────────────────────

class Reg(IntEnum):
    """Register ordinals. The ordinal is the slot in the register array."""
    A = 0
    B = 1
    C = 2
    D = 3

    @property
    def letter(self) -> str:
        return self.name.lower()

    @classmethod
    def from_letter(cls, letter: str) -> 'Reg':
        """'a' → Reg.A. Raises KeyError for anything outside a..d."""
        if len(letter) != 1 or not letter.islower():
            raise KeyError(letter)
        return cls[letter.upper()]


@dataclass(frozen=True)
class Register:
    """Operand naming one of the four registers."""
    reg: Reg

    def __str__(self) -> str:
        return self.reg.letter


@dataclass(frozen=True)
class Literal:
    """Operand holding a signed integer."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


Operand = Union[Register, Literal]


# ──────────────────────────────────────────────
# Opcodes
# ──────────────────────────────────────────────

class Opcode(Enum):
    CPY = 'cpy'
    INC = 'inc'
    DEC = 'dec'
    JNZ = 'jnz'
    TGL = 'tgl'
    OUT = 'out'


# Operand slot kinds
REG = 'REG'   # register only
ANY = 'ANY'   # register or literal

# Format: { Opcode: (slot_kind, ...) }
# cpy's destination is parsed like any other slot; the engine ignores the
# write when it holds a literal.
OPCODES: Dict[Opcode, Tuple[str, ...]] = {
    Opcode.CPY: (ANY, ANY),
    Opcode.INC: (REG,),
    Opcode.DEC: (REG,),
    Opcode.JNZ: (ANY, ANY),
    Opcode.TGL: (REG,),
    Opcode.OUT: (ANY,),
}


# ──────────────────────────────────────────────
# Instructions
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """One program line: opcode + operands."""
    op: Opcode
    args: Tuple[Operand, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.args)

    def __str__(self) -> str:
        if not self.args:
            return self.op.value
        return self.op.value + ' ' + ' '.join(str(a) for a in self.args)


# ──────────────────────────────────────────────
# Toggle mapping
# ──────────────────────────────────────────────
# out maps to itself. Whether that was intended or an oversight in the
# machine this models is unknown; it is kept as observed.

TOGGLE_MAP: Dict[Opcode, Opcode] = {
    Opcode.INC: Opcode.DEC,
    Opcode.DEC: Opcode.INC,
    Opcode.CPY: Opcode.JNZ,
    Opcode.JNZ: Opcode.CPY,
    Opcode.TGL: Opcode.INC,
    Opcode.OUT: Opcode.OUT,
}


def toggled(instr: Instruction) -> Instruction:
    """Return the toggled form of an instruction.

    The operands are kept as they are. If the new opcode wants a different
    number of operands than the instruction carries, the instruction is
    returned unchanged.
    """
    new_op = TOGGLE_MAP[instr.op]
    if len(OPCODES[new_op]) != instr.arity:
        return instr
    return replace(instr, op=new_op)
