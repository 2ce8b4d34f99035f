"""
Interpreter tests: the concrete scenarios, numeric semantics and tape growth.
"""

import io

import pytest

from conftest import HELLO_WORLD
from fuckedup import (
    EOF_VALUE,
    Bytecode,
    Machine,
    OutOfBoundsMove,
    OutputUnavailable,
    Tape,
    compress,
    execute,
    load,
    run_string,
)
from fuckedup.opcodes import Op
from fuckedup.vm import run_tagged


def test_multiplication_outputs_sixteen():
    assert run_string("++++[>++++<-]>.") == bytes([16])


def test_echo_one_byte():
    assert run_string(",.", b"A") == b"A"
    assert run_string(",.", bytes([65])) == bytes([65])


def test_loop_on_zero_cell_is_skipped():
    assert run_string("[]") == b""
    assert run_string("[.]+.") == b"\x01"


def test_loop_falls_through_after_last_iteration():
    assert run_string("+[-]+.") == b"\x01"
    assert run_string("++[>+<-]>.") == b"\x02"


def test_nested_loops_step_over_bracket_operands():
    assert run_string("++[>++[>+<-]<-]>>.") == b"\x04"
    assert run_string("+[[-]]++.") == b"\x02"


def test_hello_world():
    assert run_string(HELLO_WORLD) == b"Hello World!\n"


def test_end_of_input_stores_minus_one():
    code = compress(load(","))
    machine = Machine(code, stdin=b"")
    machine.run()
    assert machine.tape[0] == EOF_VALUE == -1


def test_end_of_input_is_visible_to_program():
    # -1 written out truncates to 0xFF; -1 + 1 is zero.
    assert run_string(",.") == b"\xff"
    assert run_string(",+.") == b"\x00"
    assert run_string(",.,.", b"x") == b"x\xff"


def test_reads_from_binary_stream():
    assert run_string(",.>,.", io.BytesIO(b"hi")) == b"hi"


def test_decrement_below_zero_wraps_output():
    assert run_string("-.") == b"\xff"
    assert run_string("-" * 257 + ".") == b"\xff"


def test_output_is_low_eight_bits():
    assert run_string("+" * 300 + ".") == bytes([300 & 0xFF])


def test_cells_are_not_limited_to_a_byte():
    # 256 increments leave 256 in the cell, so the loop runs.
    assert run_string("+" * 256 + "[>+<-]>[-]+.") == b"\x01"
    machine = Machine(compress(load("+" * 256)))
    machine.run()
    assert machine.tape[0] == 256


def test_increment_wraps_at_32_bits():
    code = Bytecode.from_cells([Op.INC, 2**31 - 1, Op.INC, 1, Op.END])
    machine = Machine(code)
    machine.run()
    assert machine.tape[0] == -(2**31)


def test_decrement_wraps_at_32_bits():
    code = Bytecode.from_cells([Op.DEC, 2**31, Op.DEC, 1, Op.WRITE, Op.END])
    machine = Machine(code)
    machine.run()
    assert machine.tape[0] == 2**31 - 1
    assert machine.stdout.getvalue() == b"\xff"


def test_tape_growth_keeps_earlier_cells():
    source = "+++++" + ">" * 100 + "+++" + "<" * 100 + "."
    machine = Machine(compress(load(source)))
    machine.run()
    assert machine.stdout.getvalue() == b"\x05"
    assert machine.tape.capacity == 128
    assert machine.tape[100] == 3
    assert machine.tape.growths == 1


def test_growth_across_many_doublings():
    source = "".join("+" * (i % 7 + 1) + ">" for i in range(40)) + "<" * 40 + "".join(".>" for _ in range(40))
    expected = bytes(i % 7 + 1 for i in range(40))
    assert run_string(source) == expected


@pytest.mark.parametrize("capacity", [1, 2, 3, 64, 4096])
def test_output_does_not_depend_on_initial_capacity(capacity):
    source = HELLO_WORLD + ">" * 50 + "+++[<+>-]<."
    expected = run_string(source)
    assert execute(compress(load(source)), tape_capacity=capacity) == expected


def test_move_below_cell_zero_raises():
    with pytest.raises(OutOfBoundsMove) as info:
        run_string("<")
    assert info.value.cursor == 0
    assert info.value.distance == 1
    assert info.value.exit_status == 70


def test_move_below_cell_zero_keeps_earlier_output():
    out = io.BytesIO()
    machine = Machine(compress(load("+.>><<<")), stdout=out)
    with pytest.raises(OutOfBoundsMove) as info:
        machine.run()
    assert out.getvalue() == b"\x01"
    assert info.value.cursor == 2
    assert info.value.distance == 3


def test_write_failure_is_output_unavailable():
    class Closed(io.RawIOBase):
        def writable(self):
            return True

        def write(self, b):
            raise OSError("broken pipe")

    with pytest.raises(OutputUnavailable):
        Machine(compress(load("+.")), stdout=Closed()).run()


def test_output_is_flushed_before_reading():
    sink = io.BytesIO()
    out = io.BufferedWriter(sink)
    seen = []

    class Recorder(io.RawIOBase):
        def readable(self):
            return True

        def read(self, size=-1):
            seen.append(sink.getvalue())
            return b""

    Machine(compress(load("+++.,.")), stdin=Recorder(), stdout=out).run()
    assert seen == [b"\x03"]
    assert sink.getvalue() == b"\x03\xff"


@pytest.mark.parametrize("source, stdin", [
    ("++++[>++++<-]>.", b""),
    (",+[-.,+]", b"echo this"),
    (",+[-.[-],+]", b"abc"),
    (HELLO_WORLD, b""),
    (">,+[->,+]<[.<]", b"reverse"),
    ("+[->,----------]<[+++++++++++.<]", b"abc\n"),
    (",.,.,.", b"z"),
])
def test_compression_is_transparent(source, stdin):
    stream = load(source)
    assert execute(compress(stream), stdin) == run_tagged(stream, stdin)


def test_reference_stepper_checks_left_edge():
    with pytest.raises(OutOfBoundsMove):
        run_tagged(load("+<"))


def test_machine_uses_supplied_tape():
    tape = Tape(4)
    tape[2] = 9
    Machine(compress(load(">>[-]")), tape=tape).run()
    assert tape[2] == 0


def test_eof_terminated_reverse():
    assert run_string(">,+[->,+]<[.<]", b"abc") == b"cba"
