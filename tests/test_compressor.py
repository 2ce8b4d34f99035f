"""
Compressor tests: run-length merging, jump resolution and determinism.
"""

import pytest

from conftest import HELLO_WORLD
from fuckedup import Bytecode, InternalError, compress, load
from fuckedup.compressor import compressed_size, decompile
from fuckedup.opcodes import Add, Backward, End, Forward, LoopEnd, LoopStart, Op, Sub, Write


def test_multiplication_loop_layout():
    code = compress(load("++++[>++++<-]>."))
    assert code.tolist() == [
        Op.INC, 4,
        Op.LOOP_START, 12,
        Op.FORWARD, 1,
        Op.INC, 4,
        Op.BACKWARD, 1,
        Op.DEC, 1,
        Op.LOOP_END, 2,
        Op.FORWARD, 1,
        Op.WRITE,
        Op.END,
    ]


def test_nested_loops_point_at_each_other():
    code = compress(load("[[]]"))
    assert code.tolist() == [-1, 6, -1, 4, -2, 2, -2, 0, 0]


def test_loop_at_index_zero_stores_zero_target():
    code = compress(load("[-]"))
    assert code.tolist() == [Op.LOOP_START, 4, Op.DEC, 1, Op.LOOP_END, 0, Op.END]


def test_io_and_brackets_close_runs():
    assert compress(load("+.+")).tolist() == [Op.INC, 1, Op.WRITE, Op.INC, 1, Op.END]
    assert compress(load("+[-]+")).tolist() == [
        Op.INC, 1, Op.LOOP_START, 6, Op.DEC, 1, Op.LOOP_END, 2, Op.INC, 1, Op.END,
    ]


def test_alternating_tags_do_not_merge():
    assert compress(load("+-+")).tolist() == [Op.INC, 1, Op.DEC, 1, Op.INC, 1, Op.END]


def test_comments_do_not_split_runs():
    assert compress(load("++ two more ++")).tolist() == [Op.INC, 4, Op.END]


def test_empty_program():
    assert compress(load("")).tolist() == [Op.END]


@pytest.mark.parametrize("source", ["", "+", "+++---", "[[]]", ",.,.", "+[>+<-]>.", HELLO_WORLD])
def test_first_pass_size_is_exact(source):
    stream = load(source)
    assert len(compress(stream)) == compressed_size(stream)


def test_jump_invariants_hold():
    code = compress(load(HELLO_WORLD))
    code.validate()
    for index, ins in code.instructions():
        if isinstance(ins, LoopStart):
            assert ins.target > index
            assert code[ins.target] == Op.LOOP_END
            assert code[ins.target + 1] == index
        elif isinstance(ins, LoopEnd):
            assert ins.target < index
            assert code[ins.target] == Op.LOOP_START


def test_instructions_decode_to_tagged_variants():
    code = compress(load("++[>-<-]."))
    assert list(code.instructions()) == [
        (0, Add(2)),
        (2, LoopStart(12)),
        (4, Forward(1)),
        (6, Sub(1)),
        (8, Backward(1)),
        (10, Sub(1)),
        (12, LoopEnd(2)),
        (14, Write()),
        (15, End()),
    ]


def test_compression_is_deterministic():
    assert compress(load(HELLO_WORLD)) == compress(load(HELLO_WORLD))


def test_decompile_round_trip_preserves_bytecode():
    code = compress(load(HELLO_WORLD + " comments vanish"))
    assert decompile(code) == HELLO_WORLD
    assert compress(load(decompile(code))) == code


def test_disassemble_lists_every_instruction():
    listing = compress(load("+[-].")).disassemble().splitlines()
    assert [line.split()[1:] for line in listing] == [
        ["Add", "1"],
        ["LoopStart", "6"],
        ["Sub", "1"],
        ["LoopEnd", "2"],
        ["Write"],
        ["End"],
    ]
    assert listing[2].startswith("     4    ")


def test_from_cells_rejects_broken_jumps():
    with pytest.raises(InternalError):
        Bytecode.from_cells([Op.LOOP_START, 3, Op.LOOP_END, 0, Op.END])
    with pytest.raises(InternalError):
        Bytecode.from_cells([Op.INC, 0, Op.END])
    with pytest.raises(InternalError):
        Bytecode.from_cells([Op.INC, 1])
    with pytest.raises(InternalError):
        Bytecode.from_cells([7, Op.END])


def test_compressing_unvalidated_stream_is_internal_error():
    from fuckedup.loader import TaggedStream

    stream = TaggedStream.from_ops([Op.LOOP_END])
    with pytest.raises(InternalError):
        compress(stream)
