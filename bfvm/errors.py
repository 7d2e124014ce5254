"""
bfvm - Execution Errors

Every failure of a run is terminal. The engine raises the first one it
hits and never retries, so callers only need to catch ExecutionError.
"""

from typing import Optional


class ExecutionError(Exception):
    """Base class for run failures.

    ``pc`` is the program counter of the instruction that failed. The
    engine fills it in when the error is raised below the dispatch level
    (tape, streams) without one.
    """
    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.pc = pc

    def __str__(self) -> str:
        if self.pc is None:
            return self.message
        return f"pc {self.pc}: {self.message}"


class TapeUnderflow(ExecutionError):
    """Cursor retreat below cell 0."""


class UnmatchedStartBracket(ExecutionError):
    """A '[' whose matching ']' does not exist."""


class UnmatchedEndBracket(ExecutionError):
    """A ']' reached with no loop entry recorded."""


class EndOfInput(ExecutionError):
    """',' found the input stream exhausted."""


class InputFailure(ExecutionError):
    """',' failed for any reason other than end of input."""


class OutputFailure(ExecutionError):
    """'.' could not write its byte."""
