"""
bfvm - Opcode Table and Program Loading

Programs are raw byte sequences. There is no parse step: the engine
indexes the bytes directly and every byte outside the table below is a
no-op (a comment, in practice).

Opcode table:
  +   INC      increment current cell (mod 256)
  -   DEC      decrement current cell (mod 256)
  >   RIGHT    advance tape cursor, growing the tape at the high end
  <   LEFT     retreat tape cursor (underflow at 0 is an error)
  [   OPEN     loop entry, taken while the current cell is nonzero
  ]   CLOSE    loop repeat / exit
  ,   IN       read one input byte into the current cell
  .   OUT      write the current cell as one output byte
"""

from pathlib import Path
from typing import Dict, Union


# ──────────────────────────────────────────────
# Opcode constants
# ──────────────────────────────────────────────

INC   = ord('+')
DEC   = ord('-')
RIGHT = ord('>')
LEFT  = ord('<')
OPEN  = ord('[')
CLOSE = ord(']')
IN    = ord(',')
OUT   = ord('.')

# opcode byte -> mnemonic
OPCODES: Dict[int, str] = {
    INC:   'INC',
    DEC:   'DEC',
    RIGHT: 'RIGHT',
    LEFT:  'LEFT',
    OPEN:  'OPEN',
    CLOSE: 'CLOSE',
    IN:    'IN',
    OUT:   'OUT',
}


def mnemonic(byte: int) -> str:
    """Return the mnemonic for an opcode byte, 'NOP' for anything else."""
    return OPCODES.get(byte, 'NOP')


# ──────────────────────────────────────────────
# Loading
# ──────────────────────────────────────────────

def load_program(path_or_data: Union[str, Path, bytes, bytearray, memoryview]) -> bytes:
    """Load a program from a file path or a bytes-like object.

    Paths are read in binary mode, so the program text is never decoded
    and any byte value may appear in it. The result is an immutable
    ``bytes`` copy; the source is not touched again after this call.
    """
    if isinstance(path_or_data, (str, Path)):
        return Path(path_or_data).read_bytes()
    return bytes(path_or_data)


def instruction_count(program: bytes) -> int:
    """Count the bytes of a program that are recognised instructions."""
    return sum(1 for byte in program if byte in OPCODES)


def bracket_balance(program: bytes) -> int:
    """Return count('[') - count(']') over the raw program bytes.

    Zero does not mean the brackets are well nested (``][`` balances),
    but a nonzero result means at least one bracket is unmatched. Used
    by the CLI to warn before running.
    """
    return program.count(OPEN) - program.count(CLOSE)
