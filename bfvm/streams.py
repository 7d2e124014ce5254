"""
bfvm - One-Byte Input/Output Adapters

The engine talks to the outside world one byte at a time. These wrappers
take any binary file-like object (sys.stdin.buffer, io.BytesIO, an open
file, a serial.Serial port) and turn its failures into the execution
error taxonomy:

  read   empty result       -> EndOfInput
         OSError            -> InputFailure (original chained)
  write  OSError            -> OutputFailure (original chained)
         0 bytes written    -> OutputFailure
  flush  OSError            -> OutputFailure

ValueError (closed or detached stream) is mapped like OSError.

Reads of exactly one byte block for as long as the underlying stream
blocks. Nothing is retried.
"""

from typing import BinaryIO

from .errors import EndOfInput, InputFailure, OutputFailure


class ByteInput:
    """Reads single bytes from a binary reader."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.consumed: int = 0

    def read_byte(self) -> int:
        try:
            data = self.stream.read(1)
        except (OSError, ValueError) as e:
            raise InputFailure(f"input read failed: {e}") from e
        if not data:
            raise EndOfInput("end of input")
        self.consumed += 1
        return data[0]


class ByteOutput:
    """Writes single bytes to a binary writer."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.written: int = 0

    def write_byte(self, value: int):
        try:
            count = self.stream.write(bytes((value & 0xFF,)))
        except (OSError, ValueError) as e:
            raise OutputFailure(f"output write failed: {e}") from e
        # Unbuffered streams report a failed write as 0
        if count == 0:
            raise OutputFailure("output write failed: 0 bytes written")
        self.written += 1

    def flush(self):
        try:
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise OutputFailure(f"output flush failed: {e}") from e
