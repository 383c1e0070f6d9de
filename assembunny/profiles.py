"""
Machine profiles.

Each profile describes one generation of the machine: which opcodes the
loader accepts, whether the multiply-loop fusion is applied while running,
and the step limit used when the caller gives none.

    baseline  cpy inc dec jnz                 (cpy dst must be a register,
                                               jnz offset must be a literal)
    toggle    cpy inc dec jnz tgl
    signal    cpy inc dec jnz tgl out         + multiply fusion, 1M step cap

Programs that write to the output sink are usually built to loop forever,
hence the step cap on the signal profile.
"""

from __future__ import annotations
from typing import Any, Dict

from .instructions import Opcode

__all__ = ['PROFILES', 'DEFAULT_PROFILE', 'DEFAULT_MAX_STEPS', 'get_profile']


DEFAULT_MAX_STEPS = 1_000_000

PROFILES: Dict[str, Dict[str, Any]] = {
    "baseline": {
        "opcodes": frozenset([Opcode.CPY, Opcode.INC, Opcode.DEC, Opcode.JNZ]),
        "fuse": False,
        "max_steps": None,
        "strict_operands": True,
        "description": "Four-opcode machine, no self-modification",
    },
    "toggle": {
        "opcodes": frozenset([Opcode.CPY, Opcode.INC, Opcode.DEC, Opcode.JNZ,
                              Opcode.TGL]),
        "fuse": False,
        "max_steps": None,
        "strict_operands": False,
        "description": "Adds tgl (runtime instruction rewriting)",
    },
    "signal": {
        "opcodes": frozenset(Opcode),
        "fuse": True,
        "max_steps": DEFAULT_MAX_STEPS,
        "strict_operands": False,
        "description": "Adds out and multiply-loop fusion",
    },
}

DEFAULT_PROFILE = "signal"


def get_profile(name: str = None) -> Dict[str, Any]:
    """Look up a profile by name (None → default). Unknown names raise ValueError."""
    if name is None:
        name = DEFAULT_PROFILE
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(
            f"Unknown profile '{name}' (expected one of: {', '.join(PROFILES)})"
        ) from None
