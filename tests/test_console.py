import fcntl
import io
import os
import struct
import termios

import pytest

from simplecomputer.console import (
    Console,
    console_fits,
    counter_from_keys,
    move_down,
    move_left,
    move_right,
    move_up,
)
from simplecomputer.keys import Key, read_value
from simplecomputer.machine import Flag, Machine, Opcode, encode_command
from simplecomputer.term import Terminal


class ScriptedReader:
    def __init__(self, keys=()):
        self.pending = list(keys)
        self.regimes = []

    def read_key(self):
        if not self.pending:
            raise EOFError
        return self.pending.pop(0)

    def keys(self):
        while self.pending:
            yield self.pending.pop(0)

    def read_value(self, echo=None):
        return read_value(self.keys(), echo)

    def regime(self, canonical, vtime=0, vmin=1, echo=True, sigint=True):
        self.regimes.append((canonical, vtime, vmin, echo, sigint))


def make_console(keys=(), lines=(), terminal=None):
    out = io.StringIO()
    timer_calls = []
    line_source = iter(list(lines))
    reader = ScriptedReader(keys)
    console = Console(
        machine=Machine(),
        terminal=terminal if terminal is not None else Terminal(stream=out),
        reader=reader,
        read_line=lambda: next(line_source, ""),
        timer=timer_calls.append,
    )
    return console, out, timer_calls


def stopped(console):
    console.machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
    return console


def test_console_fits():
    assert console_fits(26, 109)
    assert not console_fits(25, 200)
    assert not console_fits(80, 108)


def test_moves_stay_in_memory():
    for cell in range(128):
        for move in (move_right, move_left, move_up, move_down):
            assert 0 <= move(cell) < 128


def test_left_undoes_right():
    for cell in range(128):
        assert move_left(move_right(cell)) == cell


def test_wrapping_moves():
    assert move_right(127) == 120
    assert move_left(120) == 127
    assert move_right(9) == 0
    assert move_left(0) == 9
    assert move_up(0) == 120
    assert move_down(120) == 0


def test_vertical_moves_clamp_to_last_cell():
    assert move_up(9) == 127
    assert move_down(118) == 127


def test_counter_from_keys():
    assert counter_from_keys([Key.DIGIT_1, Key.DIGIT_2, Key.DIGIT_7]) == 127


def test_counter_ignores_keys_out_of_range():
    noisy = [Key.UP, Key.DIGIT_2, Key.DIGIT_9, Key.DIGIT_5, Key.OTHER, Key.DIGIT_0]
    assert counter_from_keys(noisy) == counter_from_keys(
        [Key.DIGIT_2, Key.DIGIT_5, Key.DIGIT_0]
    )


def test_counter_after_two_limits_digits():
    with pytest.raises(EOFError):
        counter_from_keys([Key.DIGIT_2, Key.DIGIT_9, Key.DIGIT_9])


def test_escape_exits():
    console, _, _ = make_console()
    assert console.handle_key(Key.ESC) is False


def test_keys_ignored_while_running():
    console, _, _ = make_console()
    assert console.handle_key(Key.RIGHT) is True
    assert console.machine.active_cell == 0


def test_arrow_moves_active_cell():
    console = stopped(make_console()[0])
    console.handle_key(Key.RIGHT)
    assert console.machine.active_cell == move_right(0)
    console.handle_key(Key.UP)
    assert console.machine.active_cell == move_up(move_right(0))


def test_run_key_starts_clock():
    console, _, timer_calls = make_console()
    stopped(console)
    console.machine.counter = 5
    console.handle_key(Key.R)
    assert not console.machine.get_flag(Flag.IGNORING_CLOCK_PULSES)
    assert timer_calls == [0.1]
    assert console.machine.counter == 0


def test_step_key_executes_one_instruction():
    console, _, _ = make_console()
    m = console.machine
    m.memory[0] = encode_command(0, Opcode.LOAD, 5)
    m.memory[5] = 7
    console.handle_key(Key.T)
    assert m.accumulator == m.memory[5]
    assert m.counter == m.active_cell
    assert m.get_flag(Flag.IGNORING_CLOCK_PULSES)


def test_reset_key_clears_machine():
    console, _, timer_calls = make_console()
    m = stopped(console).machine
    m.memory[3] = 5
    m.accumulator = 9
    m.active_cell = 4
    console.handle_key(Key.I)
    assert m.memory == [0] * 128
    assert m.accumulator == 0
    assert m.active_cell == 0
    assert m.get_flag(Flag.IGNORING_CLOCK_PULSES)
    assert not m.get_flag(Flag.INCORRECT_COMMAND)
    assert timer_calls and all(call == 0 for call in timer_calls)


def test_f5_sets_accumulator():
    keys = [Key.PLUS, Key.DIGIT_1, Key.HEX_A, Key.HEX_B, Key.HEX_C]
    console, out, _ = make_console(keys)
    stopped(console).handle_key(Key.F5)
    assert console.machine.accumulator == read_value(keys)
    assert "+1abc" in out.getvalue()


def test_f6_sets_counter():
    keys = [Key.DIGIT_0, Key.DIGIT_4, Key.DIGIT_2]
    console, _, _ = make_console(keys)
    stopped(console).handle_key(Key.F6)
    assert console.machine.counter == counter_from_keys(keys)


def test_enter_edits_active_cell():
    keys = [Key.MINUS, Key.DIGIT_0, Key.HEX_D, Key.DIGIT_1, Key.HEX_F]
    console, _, _ = make_console(keys)
    stopped(console).machine.active_cell = 3
    console.handle_key(Key.ENTER)
    assert console.machine.memory[3] == read_value(keys)
    assert console.machine.io_buffer[0].startswith("003<")


def test_save_then_load_round_trip(tmp_path):
    path = tmp_path / "memory.o"
    source, _, _ = make_console(lines=[f"  {path}  extra\n"])
    stopped(source).machine.memory[2] = 42
    source.machine.memory[100] = 7
    source.handle_key(Key.S)

    target, _, _ = make_console(lines=["\n", f"{path}\n"])
    stopped(target).handle_key(Key.L)
    assert target.machine.memory == source.machine.memory


def test_load_missing_file_reports_error(tmp_path):
    console, out, _ = make_console(lines=[str(tmp_path / "absent.o")])
    stopped(console).machine.memory[1] = 3
    console.handle_key(Key.L)
    assert "Error loading file" in out.getvalue()
    assert console.machine.memory[1] == 3


def test_draw_frame_shows_help():
    console, out, _ = make_console()
    console.draw_frame()
    assert "ESC - exit" in out.getvalue()
    assert "F6 - counter" in out.getvalue()


def test_run_refuses_small_window():
    console, out, timer_calls = make_console([Key.ESC])
    console.machine.memory[0] = 1
    assert console.run() == 0
    assert "ERROR: window is too small!" in out.getvalue()
    assert console.machine.memory[0] == 1
    assert console.reader.regimes == []


def test_run_until_escape():
    master, slave = os.openpty()
    try:
        fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 30, 120, 0, 0))
        out = io.StringIO()
        console, _, timer_calls = make_console(
            [Key.RIGHT, Key.ESC], terminal=Terminal(stream=out, fd=slave)
        )
        status = console.run()
    finally:
        os.close(master)
        os.close(slave)
    assert status == 0
    assert "ESC - exit" in out.getvalue()
    assert console.machine.active_cell == move_right(0)
    assert console.reader.regimes == [(False, 0, 1, True, True)]
    assert timer_calls[-1] == 0