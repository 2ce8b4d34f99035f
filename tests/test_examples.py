"""
Runs the sample programs under examples/ against their .result files.
"""

import os
import subprocess

import pytest

from fuckedup import build, compile_file, execute
from fuckedup.toolchain import find_compiler

PROGRAMS = os.path.join(os.path.dirname(__file__), '..', 'examples')


def _programs():
    return sorted(f[:-3] for f in os.listdir(PROGRAMS) if f.endswith('.bf'))


def _read(name, ext):
    path = os.path.join(PROGRAMS, name + ext)
    if not os.path.exists(path):
        return b""
    with open(path, 'rb') as f:
        return f.read()


@pytest.mark.parametrize("name", _programs())
def test_interpreted_output(name):
    code = compile_file(os.path.join(PROGRAMS, name + '.bf'))
    assert execute(code, _read(name, '.input')) == _read(name, '.result')


@pytest.mark.skipif(find_compiler() is None, reason="no C compiler on PATH")
@pytest.mark.parametrize("name", _programs())
def test_compiled_output(tmp_path, name):
    code = compile_file(os.path.join(PROGRAMS, name + '.bf'))
    exe = build(code, tmp_path / name)
    result = subprocess.run([str(exe)], input=_read(name, '.input'), capture_output=True)
    assert result.returncode == 0
    assert result.stdout == _read(name, '.result')
