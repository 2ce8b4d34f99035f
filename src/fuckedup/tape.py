from __future__ import annotations

import logging
from typing import List

import numpy as np

logger = logging.getLogger(__name__)

CELL_BITS = 32
_CELL_MASK = (1 << CELL_BITS) - 1
_CELL_SIGN = 1 << (CELL_BITS - 1)


def wrap_cell(value: int) -> int:
    """Reduce ``value`` to a signed 32-bit cell value (two's complement wrap)."""
    return ((value + _CELL_SIGN) & _CELL_MASK) - _CELL_SIGN


def low_byte(value: int) -> int:
    return value & 0xFF


class Tape:
    """
    Zero-initialized, growable array of signed 32-bit cells.

    The tape starts with ``capacity`` cells (one by default) and doubles
    until an index fits whenever a write or ``reserve`` reaches past the end.
    Newly exposed cells are zero. Reads past the end return zero without
    growing. Negative indices are never valid.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("Tape capacity must be >= 1")
        self._cells = np.zeros(capacity, dtype=np.int32)
        self.growths = 0

    @property
    def capacity(self) -> int:
        return len(self._cells)

    def reserve(self, index: int) -> None:
        """Grow (doubling) until ``index`` is addressable."""
        if index < len(self._cells):
            return
        size = len(self._cells)
        while index >= size:
            size *= 2
        grown = np.zeros(size, dtype=np.int32)
        grown[:len(self._cells)] = self._cells
        logger.debug("tape grows from %d to %d cells", len(self._cells), size)
        self._cells = grown
        self.growths += 1

    def _check(self, index: int) -> None:
        if index < 0:
            raise IndexError(f"tape index {index} is below cell 0")

    def __getitem__(self, index: int) -> int:
        self._check(index)
        if index >= len(self._cells):
            return 0
        return int(self._cells[index])

    def __setitem__(self, index: int, value: int) -> None:
        self._check(index)
        self.reserve(index)
        self._cells[index] = wrap_cell(value)

    def add(self, index: int, amount: int) -> int:
        """Add ``amount`` to a cell with wraparound and return the new value."""
        value = wrap_cell(self[index] + amount)
        self[index] = value
        return value

    def __len__(self) -> int:
        return len(self._cells)

    def tolist(self) -> List[int]:
        return [int(c) for c in self._cells]

    def __repr__(self) -> str:
        used = np.nonzero(self._cells)[0]
        extent = int(used[-1]) + 1 if len(used) else 0
        shown = self.tolist()[:min(extent, 16)]
        return f"Tape(capacity={len(self._cells)}, cells={shown})"
