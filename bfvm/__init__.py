"""
bfvm - Tape Machine Interpreter
===============================
Runs programs for the eight-instruction byte tape language
(``+ - > < [ ] , .``) directly from their raw bytes.

Architecture:
    ┌───────────┐    ┌──────────────┐    ┌──────────────────────────┐
    │ Program   │───>│ load_program │───>│ Engine                   │
    │ (file or  │    │ (bytes)      │    │  state: pc, tape, jumps  │
    │  bytes)   │    └──────────────┘    │  streams: in/out bytes   │
    └───────────┘                        └──────────────────────────┘

    - program.py:     Opcode table, loading, instruction statistics
    - tape.py:        Growable 8-bit tape (bytearray, 256-cell chunks)
    - state.py:       Per-run mutable state (pc, tape, jump stack)
    - streams.py:     One-byte I/O with error mapping
    - engine.py:      Fetch/dispatch loop, lazy bracket matching, debug hooks
    - errors.py:      ExecutionError taxonomy
    - serial_link.py: pyserial port as input/output
"""

__version__ = "0.1.0"

from typing import BinaryIO, Optional

from .errors import (
    ExecutionError, TapeUnderflow, UnmatchedStartBracket, UnmatchedEndBracket,
    EndOfInput, InputFailure, OutputFailure,
)
from .program import load_program, instruction_count, bracket_balance
from .tape import Tape, TAPE_CHUNK
from .state import ExecutionState
from .engine import Engine, StopReason


def execute(program: bytes, stdin: Optional[BinaryIO] = None,
            stdout: Optional[BinaryIO] = None, *,
            max_steps: Optional[int] = None) -> StopReason:
    """Run a program to completion on a fresh engine.

    Args:
        program: Program bytes (see load_program()).
        stdin: Binary reader for ','. Default: empty input.
        stdout: Binary writer for '.'. Default: discarded BytesIO.
        max_steps: Optional step budget; TIMEOUT is returned when spent.

    Returns:
        StopReason.DONE on success (TIMEOUT only with a budget).

    Raises:
        ExecutionError subclass on the first failure.
    """
    return Engine(program, stdin, stdout).run(max_steps=max_steps)
