from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, List, Optional, Tuple


class ExitStatus(IntEnum):
    OK = 0
    USAGE = 2
    LOOP_CLOSE_BEFORE_OPEN = 65
    INPUT_UNAVAILABLE = 66
    COMPILER_UNAVAILABLE = 69
    OUT_OF_BOUNDS_MOVE = 70
    INTERNAL = 71
    OUTPUT_UNAVAILABLE = 73
    UNBALANCED_LOOP = 76


def _build_context(lines: List[str], line_no_1: int, *, context: int = 2) -> str:
    idx = max(1, line_no_1)
    start = max(1, idx - context)
    end = min(len(lines), idx + context)

    out: List[str] = []
    for i in range(start, end + 1):
        prefix = '>' if i == idx else ' '
        out.append(f"{prefix} {i:4d} | {lines[i - 1]}")
    return "\n".join(out)


def _position(source: str, offset: int) -> Tuple[int, int]:
    line = source.count('\n', 0, offset) + 1
    column = offset - (source.rfind('\n', 0, offset) + 1) + 1
    return line, column


@dataclass
class FuckedUpError(Exception):
    message: str

    exit_status: ClassVar[ExitStatus] = ExitStatus.INTERNAL

    def __str__(self) -> str:
        return self.message


@dataclass
class LoadError(FuckedUpError):
    """Structural problem found while loading source text."""

    line: int
    column: int
    context: str


@dataclass
class LoopCloseBeforeOpen(LoadError):
    offset: int

    exit_status: ClassVar[ExitStatus] = ExitStatus.LOOP_CLOSE_BEFORE_OPEN


@dataclass
class UnbalancedLoop(LoadError):
    unclosed: int

    exit_status: ClassVar[ExitStatus] = ExitStatus.UNBALANCED_LOOP


@dataclass
class InputUnavailable(FuckedUpError):
    exit_status: ClassVar[ExitStatus] = ExitStatus.INPUT_UNAVAILABLE


@dataclass
class OutputUnavailable(FuckedUpError):
    exit_status: ClassVar[ExitStatus] = ExitStatus.OUTPUT_UNAVAILABLE


@dataclass
class CompilerUnavailable(FuckedUpError):
    returncode: Optional[int] = None

    exit_status: ClassVar[ExitStatus] = ExitStatus.COMPILER_UNAVAILABLE


@dataclass
class OutOfBoundsMove(FuckedUpError):
    cursor: int
    distance: int

    exit_status: ClassVar[ExitStatus] = ExitStatus.OUT_OF_BOUNDS_MOVE


@dataclass
class InternalError(FuckedUpError):
    """A broken bytecode invariant. Never caused by user input."""

    exit_status: ClassVar[ExitStatus] = ExitStatus.INTERNAL


def make_loop_close_error(*, source: str, offset: int) -> LoopCloseBeforeOpen:
    line, column = _position(source, offset)
    ctx = _build_context(source.split('\n'), line)
    return LoopCloseBeforeOpen(
        message=f"LoopCloseBeforeOpen: ']' without a matching '[' (line {line}, column {column})",
        line=line,
        column=column,
        context=ctx,
        offset=offset,
    )


def make_unbalanced_error(*, source: str, open_offsets: List[int]) -> UnbalancedLoop:
    # Points at the innermost loop still open when the source ran out.
    line, column = _position(source, open_offsets[-1])
    ctx = _build_context(source.split('\n'), line)
    count = len(open_offsets)
    plural = '' if count == 1 else 's'
    return UnbalancedLoop(
        message=f"UnbalancedLoop: {count} unclosed loop{plural} (innermost opened at line {line}, column {column})",
        line=line,
        column=column,
        context=ctx,
        unclosed=count,
    )


def make_out_of_bounds_error(*, cursor: int, distance: int) -> OutOfBoundsMove:
    return OutOfBoundsMove(
        message=f"OutOfBoundsMove: moving {distance} left from cell {cursor} leaves the tape",
        cursor=cursor,
        distance=distance,
    )
