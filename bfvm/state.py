"""
bfvm - Execution State

Everything that changes while a program runs lives in one object owned
by the engine, so two engines never share anything mutable.

  pc     - index of the next program byte to execute
  tape   - the cell tape and its cursor (see tape.py)
  jumps  - jump stack of loop resume positions; each entry is the pc
           just after a taken '[', which is where a nonzero ']' returns to
  steps  - executed program bytes, no-ops included
"""

from typing import List, Optional

from .tape import Tape


class ExecutionState:
    """Program counter, tape, jump stack and step counter for one run."""

    __slots__ = ('pc', 'tape', 'jumps', 'steps')

    def __init__(self):
        self.pc: int = 0
        self.tape = Tape()
        self.jumps: List[int] = []
        self.steps: int = 0

    # --- Jump stack ---

    def push_jump(self, resume_pc: int):
        self.jumps.append(resume_pc)

    def peek_jump(self) -> Optional[int]:
        return self.jumps[-1] if self.jumps else None

    def pop_jump(self) -> Optional[int]:
        return self.jumps.pop() if self.jumps else None

    @property
    def depth(self) -> int:
        """Number of loops currently entered."""
        return len(self.jumps)

    # --- Display ---

    def display(self) -> str:
        """One-line state summary for traces."""
        tape = self.tape
        return (f"PC={self.pc:06d} PTR={tape.cursor:06d} "
                f"CELL={tape.value:02X} DEPTH={self.depth} LEN={len(tape)}")

    def reset(self):
        """Fresh tape, empty jump stack, counters at zero."""
        self.pc = 0
        self.tape = Tape()
        self.jumps = []
        self.steps = 0
