"""
assembunny — Execution Engine

Fetch/execute loop over a Program and a RegisterBank.

Execution model (one step):
  1. Cursor outside [0, len(program))       → HALT
  2. Step limit reached                     → TIMEOUT   (checked in run())
  3. Breakpoint at cursor                   → BREAK
  4. Multiply idiom at cursor (fusion on)   → apply closed form, cursor += 6
  5. Otherwise execute the instruction at cursor; the opcode moves the cursor
  6. Requested amount of output collected   → DONE      (checked in run(), before each step)

A fused multiply loop counts as a single step.

tgl rewrites the Program in place. The convenience run() therefore works
on a copy unless asked not to, so repeated runs of the same Program (e.g.
trying many seed values for register a) never see each other's rewrites.

Termination reasons:
  - HALT:     cursor left the program (normal end)
  - TIMEOUT:  max_steps executed
  - DONE:     max_output values emitted
  - BREAK:    breakpoint hit
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Set, Union
import logging

from .instructions import Opcode, Register
from .optimizer import PATTERN_LENGTH, match_multiply
from .parser import load
from .profiles import get_profile
from .program import Program
from .regs import RegisterBank

__all__ = ['StopReason', 'RunResult', 'Emulator', 'run']

logger = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'
    DONE = 'DONE'
    BREAK = 'BREAK'


@dataclass
class RunResult:
    """Final machine state handed back to the caller."""
    registers: Dict[str, int]
    output: List[int] = field(default_factory=list)
    reason: StopReason = StopReason.HALT
    steps: int = 0
    cursor: int = 0
    program: Optional[Program] = None

    @property
    def output_text(self) -> str:
        """Output values concatenated as decimal text ('0101...')."""
        return ''.join(str(v) for v in self.output)

    def __getitem__(self, reg: str) -> int:
        return self.registers[reg]


class Emulator:
    """assembunny virtual machine.

    Usage:
        emu = Emulator(load(source), {'a': 7})
        reason = emu.run(max_steps=1_000_000)
        print(emu.regs['a'], emu.output)
    """

    def __init__(self, program: Program,
                 registers: Union[RegisterBank, Mapping, None] = None,
                 *, fuse: bool = True):
        self.program = program
        if isinstance(registers, RegisterBank):
            self.regs = registers
        else:
            self.regs = RegisterBank(registers)
        self.fuse = fuse

        self.cursor: int = 0
        self.steps: int = 0
        self.fused: int = 0
        self.output: List[int] = []

        self._breakpoints: Set[int] = set()
        self._resume_at: Optional[int] = None

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one step. Returns a StopReason if stopped, else None."""
        cursor = self.cursor
        if not 0 <= cursor < len(self.program):
            return StopReason.HALT

        if cursor in self._breakpoints and cursor != self._resume_at:
            self._resume_at = cursor
            return StopReason.BREAK
        self._resume_at = None

        if self.fuse:
            loop = match_multiply(self.program, cursor)
            if loop is not None:
                if self._trace:
                    self._trace_output.append(
                        f"{cursor:04d}: {'mul ' + str(loop):<14s} {self.regs.display()}")
                loop.apply(self.regs)
                self.cursor = cursor + PATTERN_LENGTH
                self.steps += 1
                self.fused += 1
                return None

        instr = self.program[cursor]
        if self._trace:
            self._trace_output.append(
                f"{cursor:04d}: {str(instr):<14s} {self.regs.display()}")
        self._dispatch[instr.op](instr.args)
        self.steps += 1
        return None

    def run(self, max_steps: Optional[int] = None,
            max_output: Optional[int] = None) -> StopReason:
        """Run until a termination condition.

        Args:
            max_steps: Stop with TIMEOUT once this many steps have run
                       (None = no limit)
            max_output: Stop with DONE once this many values were emitted

        Returns:
            StopReason indicating why execution stopped
        """
        program = self.program
        while True:
            if max_output is not None and len(self.output) >= max_output:
                return StopReason.DONE

            if (max_steps is not None and self.steps >= max_steps
                    and program.in_bounds(self.cursor)):
                logger.info("Step limit %d reached at cursor %d",
                            max_steps, self.cursor)
                return StopReason.TIMEOUT

            reason = self.step()
            if reason is not None:
                logger.debug("Stopped: %s after %d steps (cursor=%d, fused=%d)",
                             reason.value, self.steps, self.cursor, self.fused)
                return reason

    def result(self, reason: StopReason) -> RunResult:
        return RunResult(
            registers=self.regs.as_dict(),
            output=list(self.output),
            reason=reason,
            steps=self.steps,
            cursor=self.cursor,
            program=self.program,
        )

    # ══════════════════════════════════════════════
    # Operand evaluation
    # ══════════════════════════════════════════════

    def _eval(self, operand) -> int:
        """Register value or literal value."""
        if isinstance(operand, Register):
            return self.regs.values[operand.reg]
        return operand.value

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(args). Each handler moves the cursor.

    def _build_dispatch(self) -> dict:
        return {
            Opcode.CPY: self._op_cpy,
            Opcode.INC: self._op_inc,
            Opcode.DEC: self._op_dec,
            Opcode.JNZ: self._op_jnz,
            Opcode.TGL: self._op_tgl,
            Opcode.OUT: self._op_out,
        }

    def _op_cpy(self, args):
        src, dst = args
        # A toggled jnz can leave a literal in the destination slot
        if isinstance(dst, Register):
            self.regs.values[dst.reg] = self._eval(src)
        self.cursor += 1

    def _op_inc(self, args):
        self.regs.values[args[0].reg] += 1
        self.cursor += 1

    def _op_dec(self, args):
        self.regs.values[args[0].reg] -= 1
        self.cursor += 1

    def _op_jnz(self, args):
        cond, offset = args
        if self._eval(cond) != 0:
            self.cursor += self._eval(offset)
        else:
            self.cursor += 1

    def _op_tgl(self, args):
        target = self.cursor + self.regs.values[args[0].reg]
        if self.program.toggle(target):
            logger.debug("tgl at %d rewrote %d to '%s'",
                         self.cursor, target, self.program[target])
        self.cursor += 1

    def _op_out(self, args):
        self.output.append(self._eval(args[0]))
        self.cursor += 1

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, index: int):
        """Stop with BREAK before executing the instruction at index."""
        self._breakpoints.add(index)

    def remove_breakpoint(self, index: int):
        self._breakpoints.discard(index)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed step."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Reset cursor, counters, registers and output.

        The Program is left as it is; tgl rewrites are not undone.
        """
        self.regs.reset()
        self.cursor = 0
        self.steps = 0
        self.fused = 0
        self.output.clear()
        self._resume_at = None
        self._breakpoints.clear()
        self._trace_output.clear()


# Marks "take the limit from the profile"; an explicit None means no limit
PROFILE_DEFAULT = object()


def run(program: Union[Program, str],
        registers: Optional[Mapping] = None,
        max_steps: Optional[int] = PROFILE_DEFAULT,
        *, profile: str = None,
        fuse: Optional[bool] = None,
        max_output: Optional[int] = None,
        copy: bool = True) -> RunResult:
    """Run a program from cursor 0 and return its final state.

    Args:
        program: Program, or source text (parsed with the same profile)
        registers: initial register values, e.g. {'a': 7}; others start at 0
        max_steps: step limit; None runs unbounded, omitted takes the
                   profile's default
        profile: 'baseline', 'toggle' or 'signal' (default)
        fuse: multiply-loop fusion; None takes the profile's default
        max_output: stop once this many values were emitted
        copy: run on a copy of program so the caller's copy is not toggled
    """
    prof = get_profile(profile)
    if isinstance(program, str):
        program = load(program, profile)
    elif copy:
        program = program.copy()
    if max_steps is PROFILE_DEFAULT:
        max_steps = prof["max_steps"]
    if fuse is None:
        fuse = prof["fuse"]

    emu = Emulator(program, registers, fuse=fuse)
    reason = emu.run(max_steps=max_steps, max_output=max_output)
    return emu.result(reason)
