from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .errors import CompilerUnavailable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Anything that turns C source text into an executable at the given path.
Toolchain = Callable[[str, PathLike], None]


def default_cc() -> str:
    return os.environ.get('CC') or 'gcc'


def find_compiler(cc: Optional[str] = None) -> Optional[str]:
    """Resolve the compiler executable on PATH, or None if it is missing."""
    words = shlex.split(cc or default_cc())
    if not words:
        return None
    return shutil.which(words[0])


@dataclass(frozen=True)
class CCompiler:
    """
    Runs a C compiler once, feeding the program on stdin.

    No timeout and no retry: a compiler that cannot be started, or that
    exits nonzero, raises CompilerUnavailable.
    """

    cc: str = field(default_factory=default_cc)
    flags: Tuple[str, ...] = ('-O3', '-xc')

    def command(self, output_path: PathLike) -> List[str]:
        return [*shlex.split(self.cc), *self.flags, '-o', str(output_path), '-']

    def __call__(self, source: str, output_path: PathLike) -> None:
        cmd = self.command(output_path)
        logger.debug("running %s", ' '.join(shlex.quote(c) for c in cmd))
        try:
            result = subprocess.run(cmd, input=source, text=True, capture_output=True)
        except OSError as e:
            raise CompilerUnavailable(message=f"CompilerUnavailable: could not run {cmd[0]}: {e}") from e

        if result.stderr:
            logger.debug("%s stderr:\n%s", cmd[0], result.stderr.rstrip())
        if result.returncode != 0:
            lines = result.stderr.strip().splitlines()
            detail = f": {lines[0]}" if lines else ''
            raise CompilerUnavailable(
                message=f"CompilerUnavailable: {cmd[0]} exited with status {result.returncode}{detail}",
                returncode=result.returncode,
            )
