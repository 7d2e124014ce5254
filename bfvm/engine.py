"""
bfvm - Execution Engine

Integrates:
  - Execution state (state.py): pc, tape, jump stack
  - Opcode table (program.py)
  - Byte streams (streams.py)

Execution model, one step:
  1. Fetch the program byte at PC
  2. Advance PC past it
  3. Dispatch to the handler for that byte (unknown bytes have none)
  4. Handlers that jump overwrite PC

Loops are resolved lazily, with no precomputed jump table:
  - '[' on a nonzero cell pushes the current PC, which at that point
    already points just past the bracket. On a zero cell it scans forward
    over the raw bytes, counting nesting depth, and resumes after the
    matching ']' without pushing.
  - ']' on a nonzero cell jumps to the top of the jump stack without
    popping. On a zero cell it pops and falls through.
  - ']' with an empty jump stack is an error whatever the cell holds.
  - Reaching the end of the program with a loop still entered is an
    error too: that loop's '[' never had a ']'.

Stop reasons (run() returns these; failures raise ExecutionError):
  DONE:     PC reached the end of the program
  TIMEOUT:  max_steps instructions executed
  BREAK:    PC reached a breakpoint
"""

import io
import logging
from enum import Enum
from typing import BinaryIO, Callable, Dict, Optional, Set

from .errors import ExecutionError, UnmatchedEndBracket, UnmatchedStartBracket
from .program import INC, DEC, RIGHT, LEFT, OPEN, CLOSE, IN, OUT, mnemonic
from .state import ExecutionState
from .streams import ByteInput, ByteOutput

log = logging.getLogger(__name__)


class StopReason(Enum):
    DONE = 'DONE'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class Engine:
    """Tape machine interpreter.

    Usage:
        engine = Engine(b',[.,]', stdin=sys.stdin.buffer, stdout=sys.stdout.buffer)
        engine.run()              # StopReason.DONE, or raises ExecutionError

    Without streams, input is empty and output is collected in a BytesIO:
        engine = Engine(b'++++++++[>++++++++<-]>.')
        engine.run()
        engine.output.stream.getvalue()   # b'@'
    """

    def __init__(self, program: bytes,
                 stdin: Optional[BinaryIO] = None,
                 stdout: Optional[BinaryIO] = None):
        self.program = bytes(program)
        self.state = ExecutionState()

        self.input = ByteInput(stdin if stdin is not None else io.BytesIO())
        self.output = ByteOutput(stdout if stdout is not None else io.BytesIO())

        # Breakpoints: set of PC values that trigger BREAK
        self._breakpoints: Set[int] = set()
        # PC of the last BREAK, skipped once so run() can resume past it
        self._resume_pc: Optional[int] = None

        self._trace = False
        self._trace_output = []

        self._dispatch = self._build_dispatch()

    @property
    def tape(self):
        return self.state.tape

    @property
    def finished(self) -> bool:
        return self.state.pc >= len(self.program)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one program byte. Returns StopReason.DONE at the end, else None."""
        state = self.state
        pc = state.pc

        if pc >= len(self.program):
            self._finish()
            return StopReason.DONE

        op = self.program[pc]

        if self._trace:
            self._trace_output.append(f"{pc:06d}: {mnemonic(op):5s} {state.display()}")

        state.pc = pc + 1
        state.steps += 1

        handler = self._dispatch.get(op)
        if handler is None:
            return None

        try:
            handler()
        except ExecutionError as e:
            if e.pc is None:
                e.pc = pc
            raise

        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until the program ends, a breakpoint is hit, or the step budget runs out.

        Args:
            max_steps: Maximum program bytes to execute in this call.
                None (the default) means no limit.

        Returns:
            StopReason.DONE, TIMEOUT or BREAK.

        Raises:
            ExecutionError: the first failure; the run cannot continue.
        """
        state = self.state
        program_len = len(self.program)
        pending_resume = self._resume_pc
        resume_pc = pending_resume
        self._resume_pc = None
        executed = 0

        log.debug(f"Run from pc {state.pc} of {program_len} "
                  f"(max_steps={max_steps})")

        while state.pc < program_len:
            pc = state.pc
            if pc in self._breakpoints and pc != resume_pc:
                self._resume_pc = pc
                log.debug(f"Breakpoint at pc {pc}")
                return StopReason.BREAK
            resume_pc = None

            if max_steps is not None and executed >= max_steps:
                log.debug(f"Step budget of {max_steps} exhausted at pc {pc}")
                if executed == 0:
                    # Still parked on the breakpoint we stopped at last time
                    self._resume_pc = pending_resume
                return StopReason.TIMEOUT

            self.step()
            executed += 1

        self._finish()
        log.debug(f"Finished after {state.steps} steps, "
                  f"tape length {len(state.tape)}")
        return StopReason.DONE

    def _finish(self):
        state = self.state
        if state.jumps:
            # The resume position is one past the unmatched '['
            raise UnmatchedStartBracket(
                "program ended inside a loop with no closing ']'",
                pc=state.jumps[-1] - 1)
        try:
            self.output.flush()
        except ExecutionError as e:
            # Raised past the last instruction, outside step()
            e.pc = len(self.program)
            raise

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[int, Callable]:
        return {
            INC:   self._op_inc,
            DEC:   self._op_dec,
            RIGHT: self._op_right,
            LEFT:  self._op_left,
            OPEN:  self._op_open,
            CLOSE: self._op_close,
            IN:    self._op_in,
            OUT:   self._op_out,
        }

    def _op_inc(self):
        self.state.tape.increment()

    def _op_dec(self):
        self.state.tape.decrement()

    def _op_right(self):
        self.state.tape.advance()

    def _op_left(self):
        self.state.tape.retreat()

    def _op_open(self):
        state = self.state
        if state.tape.value:
            state.push_jump(state.pc)
            return

        # Zero cell: skip to just past the matching ']'
        program = self.program
        pc = state.pc
        depth = 1
        while depth:
            if pc >= len(program):
                raise UnmatchedStartBracket("no matching ']' for '['")
            byte = program[pc]
            if byte == OPEN:
                depth += 1
            elif byte == CLOSE:
                depth -= 1
            pc += 1
        state.pc = pc

    def _op_close(self):
        state = self.state
        resume_pc = state.peek_jump()
        if resume_pc is None:
            raise UnmatchedEndBracket("']' with no matching loop entry")
        if state.tape.value:
            state.pc = resume_pc
        else:
            state.pop_jump()

    def _op_in(self):
        # Prompts written so far must be visible before we block on input
        self.output.flush()
        self.state.tape.value = self.input.read_byte()

    def _op_out(self):
        self.output.write_byte(self.state.tape.value)

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, pc: int):
        """Stop run() before the program byte at ``pc`` executes."""
        self._breakpoints.add(pc)

    def remove_breakpoint(self, pc: int):
        self._breakpoints.discard(pc)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed program byte."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Fresh tape and jump stack for another run of the same program.

        Tape watchpoints belong to the old tape and are dropped with it.
        Stream positions are not rewound; the byte counters restart at 0.
        """
        self.state.reset()
        self.input.consumed = 0
        self.output.written = 0
        self._breakpoints.clear()
        self._resume_pc = None
        self._trace_output.clear()
