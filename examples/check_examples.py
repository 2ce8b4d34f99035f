#!/usr/bin/env python3
"""Run every program in this directory and diff its output with the .result file.

Each ``name.bf`` is run with ``name.input`` (if present) on stdin, first
through the interpreter and then, when a C compiler is available, as a
compiled binary.
"""

import os
import subprocess
import sys
import tempfile

HERE = os.path.abspath(os.path.dirname(__file__))
ROOT = os.path.abspath(os.path.join(HERE, '..'))

sys.path.insert(0, os.path.join(ROOT, 'src'))

from fuckedup.toolchain import find_compiler  # noqa: E402


def _read(path: str) -> bytes:
    if not os.path.exists(path):
        return b""
    with open(path, 'rb') as f:
        return f.read()


def _cli(*args: str, input_data: bytes) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [os.path.join(ROOT, 'src'), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "fuckedup", *args],
        input=input_data,
        capture_output=True,
        cwd=ROOT,
        env=env,
        timeout=60,
    )


def _run_interpreted(src: str, input_data: bytes) -> subprocess.CompletedProcess:
    return _cli("-f", src, input_data=input_data)


def _run_compiled(src: str, input_data: bytes) -> subprocess.CompletedProcess:
    with tempfile.TemporaryDirectory() as tmp:
        exe = os.path.join(tmp, "prog")
        built = _cli("-f", src, "-g", "-o", exe, input_data=b"")
        if built.returncode != 0:
            return built
        return subprocess.run([exe], input=input_data, capture_output=True, timeout=60)


def main() -> int:
    programs = sorted(f for f in os.listdir(HERE) if f.endswith('.bf'))
    runners = [("eval", _run_interpreted)]
    if find_compiler() is not None:
        runners.append(("gcc", _run_compiled))
    else:
        print("(no C compiler found, skipping compiled runs)")

    print("=== Example Output Verification ===")

    any_fail = False
    for name in programs:
        stem = os.path.join(HERE, name[:-3])
        expected = _read(stem + '.result')
        input_data = _read(stem + '.input')
        for label, runner in runners:
            r = runner(os.path.join(HERE, name), input_data)
            passed = r.returncode == 0 and r.stdout == expected
            print(f"[{'PASS' if passed else 'FAIL'}] {label:4s} {name}")
            if passed:
                continue
            any_fail = True
            print(f"Expected: {expected!r}")
            print(f"Got:      {r.stdout[:2000]!r}")
            print(f"Return code: {r.returncode}")
            print("--- stderr ---")
            print(r.stderr.decode(errors='replace')[:2000])

    if any_fail:
        print("\nSome programs FAILED.")
        return 1

    print("\nAll programs passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
