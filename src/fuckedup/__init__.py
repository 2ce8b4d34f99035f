import logging

from .api import BuildOptions, RunOptions, build, compile_file, compile_string, emit_c, run, run_string
from .codegen import generate_c
from .compressor import Bytecode, compress
from .errors import (
    CompilerUnavailable,
    ExitStatus,
    FuckedUpError,
    InputUnavailable,
    InternalError,
    LoopCloseBeforeOpen,
    OutOfBoundsMove,
    OutputUnavailable,
    UnbalancedLoop,
)
from .loader import TaggedStream, load
from .tape import Tape
from .vm import EOF_VALUE, Machine, execute

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'load',
    'TaggedStream',
    'compress',
    'Bytecode',
    'Machine',
    'execute',
    'EOF_VALUE',
    'Tape',
    'generate_c',
    'RunOptions',
    'BuildOptions',
    'compile_string',
    'compile_file',
    'run_string',
    'run',
    'emit_c',
    'build',
    'ExitStatus',
    'FuckedUpError',
    'LoopCloseBeforeOpen',
    'UnbalancedLoop',
    'InputUnavailable',
    'OutputUnavailable',
    'CompilerUnavailable',
    'OutOfBoundsMove',
    'InternalError',
]
