"""
assembunny source parser.

Turns program text into a Program, one instruction per line:

    cpy <src> <dst>
    inc <reg>
    dec <reg>
    jnz <cond> <offset>
    tgl <reg>
    out <val>

<reg> is one of the letters a, b, c, d. Every other slot takes either a
register letter or a signed decimal literal. Leading and trailing
whitespace is ignored, as are blank lines.

Parsing is all-or-nothing: every line is checked, the errors are
collected, and a single ParseError listing all of them is raised. No
partial Program is ever returned.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging
import re

from .instructions import OPCODES, REG, Instruction, Literal, Opcode, Reg, Register
from .profiles import get_profile
from .program import Program

__all__ = ['AssembunnyError', 'ParseError', 'SourceLine', 'parse_operand',
           'parse_line', 'parse_program', 'load']

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r'^[+-]?[0-9]+$')


class AssembunnyError(Exception):
    """Base class for assembunny errors."""


class ParseError(AssembunnyError):
    """Raised when program text cannot be parsed."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


@dataclass
class SourceLine:
    """One split source line."""
    mnemonic: Optional[str] = None
    operands: List[str] = field(default_factory=list)
    line_num: int = 0
    raw: str = ""


def _split_line(line: str, line_num: int) -> SourceLine:
    result = SourceLine(line_num=line_num, raw=line)
    parts = line.split()
    if parts:
        result.mnemonic = parts[0]
        result.operands = parts[1:]
    return result


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

def parse_operand(token: str, line_num: int = 0):
    """'-5' → Literal(-5), 'c' → Register(Reg.C)."""
    if _INT_RE.match(token):
        return Literal(int(token))
    try:
        return Register(Reg.from_letter(token))
    except KeyError:
        raise ParseError(f"Bad operand '{token}' (expected a-d or an integer)",
                         line_num) from None


def _parse_operands(mnem: str, kinds: Tuple[str, ...], tokens: List[str],
                    line_num: int) -> Tuple:
    if len(tokens) != len(kinds):
        raise ParseError(
            f"{mnem}: expected {len(kinds)} operand(s), got {len(tokens)}",
            line_num)
    args = []
    for kind, token in zip(kinds, tokens):
        arg = parse_operand(token, line_num)
        if kind == REG and not isinstance(arg, Register):
            raise ParseError(f"{mnem}: operand must be a register, got '{token}'",
                             line_num)
        args.append(arg)
    return tuple(args)


# ──────────────────────────────────────────────
# Lines and programs
# ──────────────────────────────────────────────

def _check_strict(instr: Instruction, line_num: int):
    """First-generation shape: cpy writes a register, jnz jumps a constant."""
    if instr.op is Opcode.CPY and not isinstance(instr.args[1], Register):
        raise ParseError("cpy: destination must be a register", line_num)
    if instr.op is Opcode.JNZ and not isinstance(instr.args[1], Literal):
        raise ParseError("jnz: offset must be a literal", line_num)


def _parse_source_line(line: SourceLine, profile: Dict[str, Any]) -> Instruction:
    mnem = line.mnemonic
    try:
        op = Opcode(mnem)
    except ValueError:
        raise ParseError(f"Unknown opcode: {mnem}", line.line_num) from None
    if op not in profile["opcodes"]:
        raise ParseError(f"Opcode '{mnem}' not available in this profile",
                         line.line_num)
    args = _parse_operands(mnem, OPCODES[op], line.operands, line.line_num)
    instr = Instruction(op, args)
    if profile["strict_operands"]:
        _check_strict(instr, line.line_num)
    return instr


def parse_line(text: str, line_num: int = 0, profile: str = None) -> Instruction:
    """Parse a single instruction line."""
    line = _split_line(text, line_num)
    if line.mnemonic is None:
        raise ParseError("Empty line", line_num)
    return _parse_source_line(line, get_profile(profile))


def parse_program(source: str, profile: str = None) -> Program:
    """Parse a whole program. Raises ParseError listing every bad line."""
    prof = get_profile(profile)
    instructions = []
    errors = []

    for i, raw in enumerate(source.split('\n'), 1):
        line = _split_line(raw, i)
        if line.mnemonic is None:
            continue
        try:
            instructions.append(_parse_source_line(line, prof))
        except ParseError as e:
            e.line_text = raw
            errors.append(e)

    if errors:
        if len(errors) == 1:
            raise errors[0]
        raise ParseError(f"{len(errors)} errors:\n" + "\n".join(str(e) for e in errors))

    logger.debug("Parsed %d instructions", len(instructions))
    return Program(instructions)


def load(text: str, profile: str = None) -> Program:
    """Parse program text into a Program."""
    return parse_program(text, profile)
