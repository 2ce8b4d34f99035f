from __future__ import annotations

import logging
from typing import List

from .compressor import Bytecode
from .errors import ExitStatus
from .opcodes import Add, Backward, End, Forward, LoopEnd, LoopStart, Read, Sub, Write

logger = logging.getLogger(__name__)

_UINT_MASK = 0xFFFFFFFF

PRELUDE = """\
#include <stdio.h>
#include <stdlib.h>
#include <string.h>

static int *memory;
static size_t memsize = 1, memptr = 0;

/* Grow the tape by doubling until memptr fits; new cells are zero. */
static void memfix(void)
{
    size_t oldsize = memsize;
    int *newmem;
    if (memptr < memsize)
        return;
    while (memptr >= memsize)
        memsize *= 2;
    newmem = calloc(memsize, sizeof(int));
    if (newmem == NULL) {
        perror("memfix");
        exit(EXIT_FAILURE);
    }
    memcpy(newmem, memory, oldsize * sizeof(int));
    free(memory);
    memory = newmem;
}

static void memback(size_t n)
{
    if (n > memptr) {
        fflush(stdout);
        fprintf(stderr, "OutOfBoundsMove: moving %zu left from cell %zu leaves the tape\\n", n, memptr);
        exit(@OOB_STATUS@);
    }
    memptr -= n;
}

int main(void)
{
    memory = calloc(memsize, sizeof(int));
    if (memory == NULL) {
        perror("calloc");
        return EXIT_FAILURE;
    }
"""

EPILOGUE = """\
    free(memory);
    return 0;
}
"""


class CGenerator:
    """
    Translates bytecode into a standalone C program.

    Cell arithmetic goes through ``unsigned int`` so overflow wraps exactly
    like the interpreter's 32-bit cells instead of being undefined.
    Loops become ``while`` blocks opened and closed in emission order; the
    jump targets stored in the bytecode are not needed here.
    """

    def __init__(self, indent: str = '    '):
        self.indent = indent
        self.lines: List[str] = []
        self.depth = 1

    def emit(self, statement: str) -> None:
        self.lines.append(f"{self.indent * self.depth}{statement}")

    def generate(self, code: Bytecode) -> str:
        self.lines = [PRELUDE.replace('@OOB_STATUS@', str(int(ExitStatus.OUT_OF_BOUNDS_MOVE))).rstrip('\n')]
        self.depth = 1

        for _, ins in code.instructions():
            if isinstance(ins, Add):
                self.emit(f"memory[memptr] = (int)((unsigned int)memory[memptr] + {ins.count & _UINT_MASK}u);")
            elif isinstance(ins, Sub):
                self.emit(f"memory[memptr] = (int)((unsigned int)memory[memptr] - {ins.count & _UINT_MASK}u);")
            elif isinstance(ins, Forward):
                self.emit(f"memptr += {ins.count}; memfix();")
            elif isinstance(ins, Backward):
                self.emit(f"memback({ins.count});")
            elif isinstance(ins, Read):
                self.emit("memory[memptr] = getchar();")
            elif isinstance(ins, Write):
                self.emit("putchar(memory[memptr]);")
            elif isinstance(ins, LoopStart):
                self.emit("while (memory[memptr] != 0) {")
                self.depth += 1
            elif isinstance(ins, LoopEnd):
                self.depth -= 1
                self.emit("}")
            elif isinstance(ins, End):
                break

        self.lines.append(EPILOGUE.rstrip('\n'))
        text = "\n".join(self.lines) + "\n"
        logger.debug("generated %d lines of C from %d cells", text.count("\n"), len(code))
        return text


def generate_c(code: Bytecode) -> str:
    return CGenerator().generate(code)
