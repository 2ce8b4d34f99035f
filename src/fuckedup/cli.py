from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

from .api import BuildOptions, RunOptions, build, compile_file, compile_string, run
from .codegen import generate_c
from .compressor import Bytecode
from .errors import ExitStatus, FuckedUpError, OutputUnavailable

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuckedup",
        description="Brainfuck interpreter and compiler (C as intermediate language).",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-c", dest="code", metavar="CODE", help="read code from the following argument")
    source.add_argument("-f", dest="file", metavar="INPUT_FILE", help="read code from the specified file")

    goal = parser.add_mutually_exclusive_group()
    goal.add_argument("-g", dest="goal", action="store_const", const="gcc",
                      help="compile using a C compiler, using C as intermediate language")
    goal.add_argument("-S", "--emit-c", dest="goal", action="store_const", const="c",
                      help="write the generated C program instead of compiling it")
    goal.add_argument("--dump", dest="goal", action="store_const", const="dump",
                      help="write the compressed bytecode as a listing")
    parser.set_defaults(goal="eval")

    parser.add_argument("-o", dest="output", metavar="OUTPUT_FILE", help="write to the specified file")
    parser.add_argument("--cc", default=None, help="C compiler command (default: $CC or gcc)")
    parser.add_argument("--tape-size", type=int, default=1, metavar="N",
                        help="initial tape capacity in cells (default 1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log pipeline details to stderr")
    return parser


@contextlib.contextmanager
def _open_output(path: Optional[str]) -> Iterator[BinaryIO]:
    if path is None:
        yield sys.stdout.buffer
        return
    try:
        f = open(path, "wb")
    except OSError as e:
        raise OutputUnavailable(message=f"OutputUnavailable: could not open {path}: {e.strerror or e}") from e
    with f:
        yield f


def _write(out: BinaryIO, data: bytes) -> None:
    try:
        out.write(data)
        out.flush()
    except OSError as e:
        raise OutputUnavailable(message=f"OutputUnavailable: could not write output: {e.strerror or e}") from e


def _load(args: argparse.Namespace) -> Bytecode:
    if args.code is not None:
        return compile_string(args.code)
    if args.file is not None:
        return compile_file(args.file)
    return compile_string(sys.stdin.buffer)


def _build(code: Bytecode, args: argparse.Namespace) -> None:
    options = BuildOptions(cc=args.cc)
    if args.output is not None:
        parent = Path(args.output).resolve().parent
        if not parent.is_dir() or not os.access(parent, os.W_OK):
            raise OutputUnavailable(message=f"OutputUnavailable: cannot create {args.output}")
        build(code, args.output, options=options)
        return

    # No output file: build into a temporary directory and stream the binary.
    with tempfile.TemporaryDirectory(prefix="fuckedup-") as tmp:
        artifact = build(code, Path(tmp) / "a.out", options=options)
        _write(sys.stdout.buffer, artifact.read_bytes())


def _main(args: argparse.Namespace) -> int:
    code = _load(args)
    logger.debug("goal %s, %d bytecode cells", args.goal, len(code))

    if args.goal == "gcc":
        _build(code, args)
        return ExitStatus.OK

    with _open_output(args.output) as out:
        if args.goal == "c":
            _write(out, generate_c(code).encode("ascii"))
        elif args.goal == "dump":
            _write(out, (code.disassemble() + "\n").encode("ascii"))
        else:
            run(code, sys.stdin.buffer, out, options=RunOptions(tape_capacity=args.tape_size))
    return ExitStatus.OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.tape_size < 1:
        parser.error("--tape-size must be >= 1")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")

    try:
        return int(_main(args))
    except FuckedUpError as e:
        sys.stdout.flush()
        print(e, file=sys.stderr)
        return int(e.exit_status)


if __name__ == "__main__":
    raise SystemExit(main())
