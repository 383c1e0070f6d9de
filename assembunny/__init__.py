"""
assembunny — a small self-modifying register machine
=====================================================
Four registers (a, b, c, d), six opcodes (cpy inc dec jnz tgl out), and
an instruction (tgl) that rewrites other instructions while the program
runs.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌────────────┐
    │  Source  │───>│  Parser  │───>│  Program  │───>│  Emulator  │──> RunResult
    │  (text)  │    │          │    │ (mutable) │    │ + optimizer│
    └──────────┘    └──────────┘    └───────────┘    └────────────┘

    - instructions.py: Operand / Instruction model, opcode table, tgl mapping
    - parser.py:       Line parser → Program, ParseError
    - program.py:      In-place rewritable instruction array
    - regs.py:         Four-slot register bank
    - optimizer.py:    Multiply-loop fusion (six-instruction idiom)
    - emu.py:          Fetch/execute loop, step limit, output sink
    - profiles.py:     baseline / toggle / signal machine generations
"""

__version__ = "0.1.0"

from .instructions import Reg, Register, Literal, Opcode, Instruction, toggled
from .parser import AssembunnyError, ParseError, parse_line, parse_program, load
from .program import Program
from .regs import RegisterBank
from .optimizer import MultiplyLoop, match_multiply, find_multiply_loops
from .profiles import PROFILES, DEFAULT_PROFILE, get_profile
from .emu import Emulator, RunResult, StopReason, run
from .log_setup import setup_logging
