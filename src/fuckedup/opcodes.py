from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Union


class Op(IntEnum):
    """Instruction tags shared by the tagged stream and the bytecode.

    Zero is the end-of-stream sentinel. Operands (run counts, jump indices)
    are never negative, so the bracket tags are negative to keep them
    distinguishable from operands when the compressor scans backward.
    """

    END = 0
    INC = 1
    DEC = 2
    READ = 3
    WRITE = 4
    FORWARD = 5
    BACKWARD = 6
    LOOP_START = -1
    LOOP_END = -2


SYMBOLS: Dict[str, Op] = {
    '+': Op.INC,
    '-': Op.DEC,
    ',': Op.READ,
    '.': Op.WRITE,
    '>': Op.FORWARD,
    '<': Op.BACKWARD,
    '[': Op.LOOP_START,
    ']': Op.LOOP_END,
}

# Tags whose consecutive repeats merge into a single (tag, count) pair.
RUN_OPS = frozenset((Op.INC, Op.DEC, Op.FORWARD, Op.BACKWARD))
LOOP_OPS = frozenset((Op.LOOP_START, Op.LOOP_END))
IO_OPS = frozenset((Op.READ, Op.WRITE))


def symbol_for(op: Op) -> str:
    for ch, tag in SYMBOLS.items():
        if tag == op:
            return ch
    return ''


# ---------------- Decoded instructions ----------------
@dataclass(frozen=True)
class Add:
    count: int


@dataclass(frozen=True)
class Sub:
    count: int


@dataclass(frozen=True)
class Forward:
    count: int


@dataclass(frozen=True)
class Backward:
    count: int


@dataclass(frozen=True)
class Read:
    pass


@dataclass(frozen=True)
class Write:
    pass


@dataclass(frozen=True)
class LoopStart:
    target: int  # cell index of the matching LoopEnd tag


@dataclass(frozen=True)
class LoopEnd:
    target: int  # cell index of the matching LoopStart tag


@dataclass(frozen=True)
class End:
    pass


Instruction = Union[Add, Sub, Forward, Backward, Read, Write, LoopStart, LoopEnd, End]

OPERAND_TYPES = {
    Op.INC: Add,
    Op.DEC: Sub,
    Op.FORWARD: Forward,
    Op.BACKWARD: Backward,
    Op.LOOP_START: LoopStart,
    Op.LOOP_END: LoopEnd,
}

TAGS = {
    Add: Op.INC,
    Sub: Op.DEC,
    Forward: Op.FORWARD,
    Backward: Op.BACKWARD,
    Read: Op.READ,
    Write: Op.WRITE,
    LoopStart: Op.LOOP_START,
    LoopEnd: Op.LOOP_END,
    End: Op.END,
}
