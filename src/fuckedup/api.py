from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from .codegen import generate_c
from .compressor import Bytecode, compress
from .errors import InputUnavailable
from .loader import Source, load
from .tape import Tape
from .toolchain import CCompiler, PathLike, Toolchain
from .vm import Input, Machine, execute


@dataclass(frozen=True)
class RunOptions:
    tape_capacity: int = 1


@dataclass(frozen=True)
class BuildOptions:
    cc: Optional[str] = None

    def toolchain(self) -> Toolchain:
        if self.cc is None:
            return CCompiler()
        return CCompiler(cc=self.cc)


def compile_string(source: Source) -> Bytecode:
    """Load, validate and compress a program."""
    return compress(load(source))


def compile_file(path: PathLike, *, encoding: str = "latin-1") -> Bytecode:
    p = Path(path)
    try:
        text = p.read_text(encoding=encoding)
    except OSError as e:
        raise InputUnavailable(message=f"InputUnavailable: could not read {p}: {e.strerror or e}") from e
    return compile_string(text)


def run_string(source: Source, stdin: Input = None, *, options: Optional[RunOptions] = None) -> bytes:
    opts = options or RunOptions()
    return execute(compile_string(source), stdin, tape_capacity=opts.tape_capacity)


def run(code: Bytecode, stdin: Input, stdout: BinaryIO, *, options: Optional[RunOptions] = None) -> Machine:
    """Interpret ``code`` streaming its output into ``stdout``."""
    opts = options or RunOptions()
    machine = Machine(code, stdin=stdin, stdout=stdout, tape=Tape(opts.tape_capacity))
    machine.run()
    return machine


def emit_c(source: Source) -> str:
    return generate_c(compile_string(source))


def build(code: Bytecode, output_path: PathLike, *, options: Optional[BuildOptions] = None,
          toolchain: Optional[Toolchain] = None) -> Path:
    """Generate C for ``code`` and hand it to the toolchain; returns the artifact path."""
    if toolchain is None:
        toolchain = (options or BuildOptions()).toolchain()
    out = Path(output_path)
    toolchain(generate_c(code), out)
    return out
