"""
assembunny — Register Bank

Four general-purpose registers a, b, c, d. Values are plain Python ints,
all zero at reset. Storage is a fixed four-slot list indexed by the
register ordinal (see instructions.Reg), so the engine's hot loop never
does a name lookup.

Registers can be addressed by Reg, by letter ('a'), or by ordinal (0-3).
"""

from __future__ import annotations
from typing import Dict, Iterator, Mapping, Optional, Union

from .instructions import Reg

RegId = Union[Reg, str, int]


def _index(reg: RegId) -> int:
    """Resolve a register identifier to its slot."""
    if isinstance(reg, str):
        return Reg.from_letter(reg)
    if isinstance(reg, int) and 0 <= reg < len(Reg):
        return int(reg)
    raise KeyError(reg)


class RegisterBank:
    """Register file for the assembunny machine."""

    __slots__ = ('values',)

    def __init__(self, initial: Optional[Mapping[RegId, int]] = None):
        self.values = [0] * len(Reg)
        if initial:
            for reg, value in initial.items():
                self.set(reg, value)

    # --- access ---

    def get(self, reg: RegId) -> int:
        return self.values[_index(reg)]

    def set(self, reg: RegId, value: int):
        self.values[_index(reg)] = int(value)

    def add(self, reg: RegId, delta: int):
        self.values[_index(reg)] += delta

    def __getitem__(self, reg: RegId) -> int:
        return self.get(reg)

    def __setitem__(self, reg: RegId, value: int):
        self.set(reg, value)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __eq__(self, other) -> bool:
        if isinstance(other, RegisterBank):
            return self.values == other.values
        return NotImplemented

    def __repr__(self) -> str:
        return f"RegisterBank({self.as_dict()!r})"

    # --- snapshots ---

    def as_dict(self) -> Dict[str, int]:
        """{'a': .., 'b': .., 'c': .., 'd': ..}"""
        return {r.letter: self.values[r] for r in Reg}

    def copy(self) -> 'RegisterBank':
        bank = RegisterBank()
        bank.values = list(self.values)
        return bank

    def display(self) -> str:
        """Format register state for traces: 'a=1 b=0 c=0 d=7'."""
        return ' '.join(f"{r.letter}={self.values[r]}" for r in Reg)

    def reset(self):
        """Zero every register."""
        for i in range(len(self.values)):
            self.values[i] = 0
