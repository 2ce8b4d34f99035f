from __future__ import annotations

import logging
from typing import BinaryIO, Iterable, Iterator, List, TextIO, Union

import numpy as np

from .errors import InputUnavailable, make_loop_close_error, make_unbalanced_error
from .opcodes import SYMBOLS, Op, symbol_for

logger = logging.getLogger(__name__)

Source = Union[str, bytes, bytearray, TextIO, BinaryIO]


class TaggedStream:
    """Growable sequence of instruction tags, terminated by ``Op.END``.

    Backed by a zero-filled numpy buffer whose capacity doubles when full,
    so the slot after the last tag always holds the sentinel.
    """

    def __init__(self, capacity: int = 2):
        self._buf = np.zeros(max(2, capacity), dtype=np.int8)
        self._size = 0

    @classmethod
    def from_ops(cls, ops: Iterable[Op]) -> 'TaggedStream':
        stream = cls()
        for op in ops:
            stream.append(op)
        return stream

    def append(self, op: Op) -> None:
        if op == Op.END:
            raise ValueError("END is reserved for the stream terminator")
        while self._size >= len(self._buf) - 1:
            self._grow()
        self._buf[self._size] = int(op)
        self._size += 1

    def _grow(self) -> None:
        new_buf = np.zeros(len(self._buf) * 2, dtype=np.int8)
        new_buf[:len(self._buf)] = self._buf
        self._buf = new_buf

    @property
    def capacity(self) -> int:
        return len(self._buf)

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the tags including the trailing sentinel."""
        view = self._buf[:self._size + 1]
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Op]:
        for i in range(self._size):
            yield Op(int(self._buf[i]))

    def __getitem__(self, index: int) -> Op:
        if index < 0 or index > self._size:
            raise IndexError(index)
        return Op(int(self._buf[index]))

    def __repr__(self) -> str:
        text = ''.join(symbol_for(op) for op in self)
        if len(text) > 40:
            text = text[:37] + '...'
        return f"TaggedStream({text!r}, len={self._size})"


def read_source(source: Source) -> str:
    """Return ``source`` as text, reading it first if it is a stream.

    Bytes are decoded as latin-1 so every input byte maps to exactly one
    character; only the eight ASCII command symbols matter anyway.
    """
    if hasattr(source, 'read'):
        try:
            data = source.read()
        except OSError as e:
            raise InputUnavailable(message=f"InputUnavailable: could not read program: {e}") from e
    else:
        data = source
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode('latin-1')
    return data


def load(source: Source) -> TaggedStream:
    """
    Turn source text into a validated tagged stream.

    Every character outside ``+-,.><[]`` is a comment. Loop brackets are
    checked as they are scanned:

    - a ``]`` while no loop is open raises LoopCloseBeforeOpen at once;
    - loops still open at the end raise UnbalancedLoop.
    """
    text = read_source(source)

    stream = TaggedStream()
    balance = 0
    open_offsets: List[int] = []

    for offset, ch in enumerate(text):
        op = SYMBOLS.get(ch)
        if op is None:
            continue
        if op == Op.LOOP_START:
            balance += 1
            open_offsets.append(offset)
        elif op == Op.LOOP_END:
            if balance == 0:
                raise make_loop_close_error(source=text, offset=offset)
            balance -= 1
            open_offsets.pop()
        stream.append(op)

    if balance != 0:
        raise make_unbalanced_error(source=text, open_offsets=open_offsets)

    logger.debug("loaded %d instructions from %d characters", len(stream), len(text))
    return stream
