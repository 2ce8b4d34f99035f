from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Tuple

import numpy as np

from .errors import InternalError
from .loader import TaggedStream
from .opcodes import (
    IO_OPS,
    LOOP_OPS,
    OPERAND_TYPES,
    RUN_OPS,
    TAGS,
    End,
    Instruction,
    LoopEnd,
    LoopStart,
    Op,
    Read,
    Write,
    symbol_for,
)

logger = logging.getLogger(__name__)


class Bytecode:
    """
    Compressed, jump-resolved instruction cells.

    Layout:
    - ``+ - > <`` runs: (tag, count)
    - ``[``: (tag, index of the matching ``]`` tag)
    - ``]``: (tag, index of the matching ``[`` tag)
    - ``, .``: (tag,)
    - a single ``Op.END`` cell at the end
    """

    def __init__(self, cells: np.ndarray):
        self._cells = np.array(cells, dtype=np.int64)
        self._cells.flags.writeable = False

    @classmethod
    def from_cells(cls, cells: Iterable[int]) -> 'Bytecode':
        """Build bytecode from raw integers and check its jump invariants."""
        code = cls(np.fromiter((int(c) for c in cells), dtype=np.int64))
        code.validate()
        return code

    @property
    def cells(self) -> np.ndarray:
        return self._cells

    def tolist(self) -> List[int]:
        return [int(c) for c in self._cells]

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, index: int) -> int:
        return int(self._cells[index])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bytecode):
            return NotImplemented
        return bool(np.array_equal(self._cells, other._cells))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bytecode({self.tolist()!r})"

    # ===== Decoding =====

    def instructions(self) -> Iterator[Tuple[int, Instruction]]:
        """Yield ``(cell_index, instruction)`` pairs up to and including End."""
        cells = self._cells
        i = 0
        while i < len(cells):
            try:
                op = Op(int(cells[i]))
            except ValueError:
                raise InternalError(message=f"InternalError: unknown tag {int(cells[i])} at cell {i}") from None
            if op == Op.END:
                yield i, End()
                return
            operand_type = OPERAND_TYPES.get(op)
            if operand_type is not None:
                if i + 1 >= len(cells):
                    raise InternalError(message=f"InternalError: missing operand for {op.name} at cell {i}")
                yield i, operand_type(int(cells[i + 1]))
                i += 2
            elif op == Op.READ:
                yield i, Read()
                i += 1
            else:
                yield i, Write()
                i += 1
        raise InternalError(message="InternalError: bytecode is not terminated by END")

    def disassemble(self) -> str:
        """One line per instruction: cell index, mnemonic and operand."""
        lines = []
        depth = 0
        for index, ins in self.instructions():
            if isinstance(ins, LoopEnd):
                depth -= 1
            name = type(ins).__name__
            operand = getattr(ins, 'count', getattr(ins, 'target', None))
            text = name if operand is None else f"{name} {operand}"
            lines.append(f"{index:6d}  {'  ' * depth}{text}")
            if isinstance(ins, LoopStart):
                depth += 1
        return "\n".join(lines)

    def validate(self) -> None:
        """Raise InternalError unless every count and jump is well formed."""
        cells = self._cells
        for index, ins in self.instructions():
            if isinstance(ins, End):
                if index != len(cells) - 1:
                    raise InternalError(message=f"InternalError: END at cell {index} is not the last cell")
            elif isinstance(ins, LoopStart):
                t = ins.target
                if not (index < t < len(cells) - 1) or cells[t] != Op.LOOP_END or cells[t + 1] != index:
                    raise InternalError(message=f"InternalError: LoopStart at cell {index} has a bad target {t}")
            elif isinstance(ins, LoopEnd):
                t = ins.target
                if not (0 <= t < index) or cells[t] != Op.LOOP_START or cells[t + 1] != index:
                    raise InternalError(message=f"InternalError: LoopEnd at cell {index} has a bad target {t}")
            elif hasattr(ins, 'count') and ins.count < 1:
                raise InternalError(message=f"InternalError: run at cell {index} has count {ins.count}")


# ---------------- Compression ----------------
def compressed_size(stream: TaggedStream) -> int:
    """Exact number of cells ``compress`` writes for ``stream``, sentinel included."""
    size = 1
    prev = Op.END
    for op in stream:
        if op in RUN_OPS:
            if op != prev:
                size += 2
        elif op in LOOP_OPS:
            size += 2
        else:
            size += 1
        prev = op
    return size


def _find_loop_start(cells: np.ndarray, end: int) -> int:
    # Walk back over the output already written. Inner loops are skipped by
    # counting the ']' tags met on the way and the '[' tags that close them.
    depth = 0
    i = end - 1
    while i >= 0:
        c = cells[i]
        if c == Op.LOOP_END:
            depth += 1
        elif c == Op.LOOP_START:
            if depth == 0:
                return i
            depth -= 1
        i -= 1
    raise InternalError(message=f"InternalError: no '[' matches the ']' at cell {end}")


def compress(stream: TaggedStream) -> Bytecode:
    """
    Merge runs and resolve loop jumps.

    Runs of ``+ - > <`` become one (tag, count) pair. Each ``]`` finds its
    ``[`` by scanning backward through the cells written so far, then both
    brackets store the other's tag index in their operand slot.

    The stream must come from ``load``: bracket balance is not re-checked.
    """
    size = compressed_size(stream)
    cells = np.zeros(size, dtype=np.int64)

    pos = 0
    compressing = Op.END
    for op in stream:
        if op in RUN_OPS:
            if op != compressing:
                compressing = op
                cells[pos] = op
                cells[pos + 1] = 1
                pos += 2
            else:
                cells[pos - 1] += 1
        elif op == Op.LOOP_START:
            compressing = Op.END
            cells[pos] = op
            pos += 2  # operand is filled in by the matching ']'
        elif op == Op.LOOP_END:
            compressing = Op.END
            cells[pos] = op
            start = _find_loop_start(cells, pos)
            cells[start + 1] = pos
            cells[pos + 1] = start
            pos += 2
        elif op in IO_OPS:
            compressing = Op.END
            cells[pos] = op
            pos += 1
        else:
            raise InternalError(message=f"InternalError: unexpected tag {op!r} in tagged stream")

    if pos != size - 1:
        raise InternalError(message=f"InternalError: wrote {pos} cells, expected {size - 1}")

    logger.debug("compressed %d instructions into %d cells", len(stream), size)
    return Bytecode(cells)


def decompile(code: Bytecode) -> str:
    """Expand bytecode back into equivalent Brainfuck source text."""
    out: List[str] = []
    for _, ins in code.instructions():
        if isinstance(ins, End):
            break
        out.append(symbol_for(TAGS[type(ins)]) * getattr(ins, "count", 1))
    return ''.join(out)
