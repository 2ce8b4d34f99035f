from __future__ import annotations

import io
import logging
from typing import BinaryIO, Dict, List, Optional, Union

from .compressor import Bytecode
from .errors import InternalError, OutputUnavailable, make_out_of_bounds_error
from .loader import TaggedStream
from .opcodes import Op
from .tape import Tape, low_byte

logger = logging.getLogger(__name__)

# Value stored by ',' once input is exhausted; the same value C's getchar()
# returns, so interpreted and compiled programs agree.
EOF_VALUE = -1

Input = Union[bytes, bytearray, BinaryIO, None]


def _as_reader(stdin: Input) -> BinaryIO:
    if stdin is None:
        return io.BytesIO()
    if isinstance(stdin, (bytes, bytearray)):
        return io.BytesIO(bytes(stdin))
    return stdin


class Machine:
    """
    Tape interpreter for compressed bytecode.

    State:
    - ip: index of the next bytecode cell
    - tape / cursor: program memory and the current cell

    Brackets occupy two cells. A taken jump resumes right after the
    matching bracket's operand; otherwise execution steps over the pair.
    """

    def __init__(self, code: Bytecode, stdin: Input = None, stdout: Optional[BinaryIO] = None,
                 tape: Optional[Tape] = None):
        self.code = code
        self.stdin = _as_reader(stdin)
        self.stdout = stdout if stdout is not None else io.BytesIO()
        self.tape = tape if tape is not None else Tape()
        self.ip = 0
        self.cursor = 0
        self.steps = 0

    def _read_byte(self) -> int:
        # Pending output (a prompt) must be visible before blocking on input.
        self._flush()
        data = self.stdin.read(1)
        if not data:
            return EOF_VALUE
        return data[0]

    def _write_byte(self, value: int) -> None:
        try:
            self.stdout.write(bytes((low_byte(value),)))
        except OSError as e:
            raise OutputUnavailable(message=f"OutputUnavailable: could not write program output: {e}") from e

    def _flush(self) -> None:
        try:
            self.stdout.flush()
        except OSError as e:
            raise OutputUnavailable(message=f"OutputUnavailable: could not flush program output: {e}") from e

    def run(self) -> None:
        cells: List[int] = self.code.tolist()
        tape = self.tape
        ip = self.ip
        cursor = self.cursor
        steps = 0

        try:
            while True:
                op = cells[ip]
                steps += 1
                if op == Op.INC:
                    tape.add(cursor, cells[ip + 1])
                    ip += 2
                elif op == Op.DEC:
                    tape.add(cursor, -cells[ip + 1])
                    ip += 2
                elif op == Op.FORWARD:
                    cursor += cells[ip + 1]
                    tape.reserve(cursor)
                    ip += 2
                elif op == Op.BACKWARD:
                    distance = cells[ip + 1]
                    if distance > cursor:
                        raise make_out_of_bounds_error(cursor=cursor, distance=distance)
                    cursor -= distance
                    ip += 2
                elif op == Op.LOOP_START:
                    if tape[cursor] == 0:
                        ip = cells[ip + 1] + 2
                    else:
                        ip += 2
                elif op == Op.LOOP_END:
                    if tape[cursor] != 0:
                        ip = cells[ip + 1] + 2
                    else:
                        ip += 2
                elif op == Op.WRITE:
                    self._write_byte(tape[cursor])
                    ip += 1
                elif op == Op.READ:
                    tape[cursor] = self._read_byte()
                    ip += 1
                elif op == Op.END:
                    break
                else:
                    raise InternalError(message=f"InternalError: unknown tag {op} at cell {ip}")
        finally:
            self.ip = ip
            self.cursor = cursor
            self.steps += steps

        self._flush()
        logger.debug("executed %d instructions, tape capacity %d", steps, tape.capacity)


def execute(code: Bytecode, stdin: Input = None, *, tape_capacity: int = 1) -> bytes:
    """Run ``code`` to completion and return everything it wrote."""
    out = io.BytesIO()
    Machine(code, stdin=stdin, stdout=out, tape=Tape(tape_capacity)).run()
    return out.getvalue()


# ---------------- Reference stepper ----------------
def _jump_table(ops: List[Op]) -> Dict[int, int]:
    table: Dict[int, int] = {}
    stack: List[int] = []
    for pos, op in enumerate(ops):
        if op == Op.LOOP_START:
            stack.append(pos)
        elif op == Op.LOOP_END:
            start = stack.pop()
            table[start] = pos
            table[pos] = start
    return table


def run_tagged(stream: TaggedStream, stdin: Input = None, *, tape_capacity: int = 1) -> bytes:
    """
    Execute an uncompressed tagged stream one symbol at a time.

    Slow, but independent of the compressor; used to check that compression
    does not change behaviour.
    """
    ops = list(stream)
    table = _jump_table(ops)
    reader = _as_reader(stdin)
    out = bytearray()
    tape = Tape(tape_capacity)
    cursor = 0
    i = 0
    while i < len(ops):
        op = ops[i]
        if op == Op.INC:
            tape.add(cursor, 1)
        elif op == Op.DEC:
            tape.add(cursor, -1)
        elif op == Op.FORWARD:
            cursor += 1
            tape.reserve(cursor)
        elif op == Op.BACKWARD:
            if cursor == 0:
                raise make_out_of_bounds_error(cursor=cursor, distance=1)
            cursor -= 1
        elif op == Op.WRITE:
            out.append(low_byte(tape[cursor]))
        elif op == Op.READ:
            data = reader.read(1)
            tape[cursor] = data[0] if data else EOF_VALUE
        elif op == Op.LOOP_START:
            if tape[cursor] == 0:
                i = table[i]
        elif op == Op.LOOP_END:
            if tape[cursor] != 0:
                i = table[i]
        i += 1
    return bytes(out)
