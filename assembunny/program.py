"""
Program container.

A Program is a single list of Instructions. Its length is fixed once
parsed; tgl replaces entries in place and nothing is ever inserted or
removed.
"""

from __future__ import annotations
from typing import Iterable, Iterator, List

from .instructions import Instruction, toggled
from .optimizer import find_multiply_loops


class Program:
    """Mutable, index-addressable instruction array."""

    __slots__ = ('instructions',)

    def __init__(self, instructions: Iterable[Instruction] = ()):
        self.instructions: List[Instruction] = list(instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index):
        return self.instructions[index]

    def __setitem__(self, index: int, instr: Instruction):
        if not 0 <= index < len(self.instructions):
            raise IndexError(f"Instruction index {index} out of range")
        self.instructions[index] = instr

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __eq__(self, other) -> bool:
        if isinstance(other, Program):
            return self.instructions == other.instructions
        return NotImplemented

    def __repr__(self) -> str:
        return f"Program({len(self.instructions)} instructions)"

    def in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self.instructions)

    def toggle(self, index: int) -> bool:
        """Toggle the instruction at index in place.

        Returns False (and changes nothing) when index is out of bounds.
        """
        if not 0 <= index < len(self.instructions):
            return False
        self.instructions[index] = toggled(self.instructions[index])
        return True

    def copy(self) -> 'Program':
        """Independent copy. Instructions are immutable, so a shallow list
        copy is enough to isolate tgl writes."""
        return Program(self.instructions)

    def to_source(self) -> str:
        return '\n'.join(str(instr) for instr in self.instructions)

    def listing(self) -> str:
        """Indexed listing. Lines that start a fusable multiply loop are
        marked with '*'."""
        fused = {idx for idx, _ in find_multiply_loops(self)}
        lines = []
        for i, instr in enumerate(self.instructions):
            mark = '*' if i in fused else ' '
            lines.append(f"{i:04d}{mark} {instr}")
        return '\n'.join(lines)
