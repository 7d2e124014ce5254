"""
bfvm - Growable Byte Tape

The tape is a flat bytearray of unsigned 8-bit cells plus a cursor.

  - Starts at TAPE_CHUNK (256) zero cells.
  - Grows only at the high end, TAPE_CHUNK cells at a time, exactly when
    the cursor lands one past the last cell. Never shrinks.
  - There is no low end to grow into: retreating from cell 0 raises
    TapeUnderflow instead of wrapping.
  - No upper bound. A program that walks right forever will eventually
    exhaust memory.

Cell writes can be observed with watchpoints, which is mostly useful
for working out which cells a program uses as variables.
"""

import logging
from typing import Callable, Dict, List, Optional

from .errors import TapeUnderflow

log = logging.getLogger(__name__)

TAPE_CHUNK = 256


class Tape:
    """Unsigned 8-bit tape with a cursor. All arithmetic wraps mod 256."""

    def __init__(self):
        self._cells = bytearray(TAPE_CHUNK)
        self.cursor: int = 0

        # Watchpoints: cell index -> [callback(index, old, new)]
        self._watchpoints: Dict[int, List[Callable]] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, index: int) -> int:
        return self._cells[index]

    # --- Current cell ---

    @property
    def value(self) -> int:
        return self._cells[self.cursor]

    @value.setter
    def value(self, new: int):
        new &= 0xFF
        if self._watchpoints:
            old = self._cells[self.cursor]
            for cb in self._watchpoints.get(self.cursor, ()):
                cb(self.cursor, old, new)
        self._cells[self.cursor] = new

    def increment(self):
        self.value = self._cells[self.cursor] + 1

    def decrement(self):
        self.value = self._cells[self.cursor] - 1

    # --- Cursor movement ---

    def advance(self):
        """Move the cursor right, appending a zeroed chunk at the end."""
        self.cursor += 1
        if self.cursor == len(self._cells):
            self._cells.extend(bytes(TAPE_CHUNK))
            log.debug(f"Tape grown to {len(self._cells)} cells")

    def retreat(self):
        if self.cursor == 0:
            raise TapeUnderflow("tape cursor moved left of cell 0")
        self.cursor -= 1

    # --- Watchpoints ---

    def add_watchpoint(self, index: int, callback: Callable):
        """Call ``callback(index, old, new)`` on every write to a cell.

        Writes are reported even when the value does not change, and
        cells past the current end can be watched before the tape grows
        to reach them.
        """
        self._watchpoints.setdefault(index, []).append(callback)

    def remove_watchpoint(self, index: int, callback: Optional[Callable] = None):
        """Remove a watchpoint. If callback is None, removes all on that cell."""
        if index not in self._watchpoints:
            return
        if callback is None:
            del self._watchpoints[index]
            return
        remaining = [cb for cb in self._watchpoints[index] if cb != callback]
        if remaining:
            self._watchpoints[index] = remaining
        else:
            del self._watchpoints[index]

    # --- Inspection ---

    def snapshot(self, start: int = 0, end: Optional[int] = None) -> bytes:
        """Copy cells ``start`` up to (not including) ``end``."""
        if end is None:
            end = len(self._cells)
        return bytes(self._cells[start:end])

    def hexdump(self, start: int = 0, length: int = 64) -> str:
        """Hex dump of a cell range, 16 cells per line, cursor cell bracketed."""
        end = min(start + length, len(self._cells))
        lines = []
        for row in range(start, end, 16):
            cells = range(row, min(row + 16, end))
            hex_bytes = ' '.join(
                f'[{self._cells[i]:02X}]' if i == self.cursor else f' {self._cells[i]:02X} '
                for i in cells
            )
            ascii_bytes = ''.join(
                chr(self._cells[i]) if 0x20 <= self._cells[i] < 0x7F else '.'
                for i in cells
            )
            lines.append(f'{row:06d}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)
