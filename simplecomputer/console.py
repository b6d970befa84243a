"""The interactive console of the simple computer."""

from __future__ import annotations

import argparse
import signal
import sys
from typing import Callable, Iterable, Iterator

from .cpu import Processor, create_timer
from .display import Display
from .keys import Key, KeyReader
from .machine import RAM_SIZE, Flag, Machine, MachineError
from .term import Color, Terminal

MIN_ROWS = 25
MIN_COLS = 109
LAST_CELL = RAM_SIZE - 1
LAST_ROW_START = 120
ROW_WIDTH = 10
FILENAME_LIMIT = 63
RUN_INTERVAL = 0.1

_G, _B, _R = Color.LIGHT_GRAY, Color.BLACK, Color.RED
_BOXES = (
    (1, 86, 3, 24, _G, _B, " Accumulator ", _R, _B),
    (1, 1, 15, 62, _G, _B, " Memory ", _R, _B),
    (4, 86, 3, 24, _G, _B, " Command ", _R, _B),
    (4, 63, 3, 23, _G, _B, " Counter ", _R, _B),
    (1, 63, 3, 23, _G, _B, " Flags ", _R, _B),
    (19, 68, 7, 13, _G, _B, " IN-OUT ", Color.GREEN, _G),
    (16, 1, 3, 62, _G, _B, " Edited cell (format) ", _R, _B),
    (7, 63, 12, 47, _G, _B, " Edited cell (enlarged) ", _R, _B),
    (19, 81, 7, 29, _G, _B, " Control ", Color.GREEN, _G),
    (19, 1, 7, 67, _G, _B, " Processor cache ", _R, _B),
)
_HELP = (
    (20, "l - load s - save i - reset"),
    (21, "r - run t - step"),
    (22, "ESC - exit"),
    (23, "F5 - accumulator"),
    (24, "F6 - counter"),
)


def console_fits(rows: int, cols: int) -> bool:
    """Whether a terminal of this size can hold the console."""
    return rows > MIN_ROWS and cols >= MIN_COLS


def move_right(cell: int) -> int:
    """The cell to the right, wrapping within its row."""
    if cell == LAST_CELL:
        return LAST_ROW_START
    if cell % ROW_WIDTH == ROW_WIDTH - 1:
        return cell - (ROW_WIDTH - 1)
    return cell + 1


def move_left(cell: int) -> int:
    """The cell to the left, wrapping within its row."""
    if cell % ROW_WIDTH == 0:
        return LAST_CELL if cell == LAST_ROW_START else cell + ROW_WIDTH - 1
    return cell - 1


def move_up(cell: int) -> int:
    """The cell above, wrapping from the first row to the last."""
    if 0 <= cell < ROW_WIDTH:
        return min(LAST_ROW_START + cell, LAST_CELL)
    return cell - ROW_WIDTH


def move_down(cell: int) -> int:
    """The cell below, wrapping from the last row to the first."""
    if cell < LAST_ROW_START:
        return min(cell + ROW_WIDTH, LAST_CELL)
    return cell % ROW_WIDTH


def _next_in(keys: Iterator[Key], low: Key, high: Key) -> Key:
    for key in keys:
        if low <= key <= high:
            return key
    raise EOFError("input ended before the counter was complete")


def _read_counter(
    keys: Iterable[Key], echo: Callable[[str], object] | None = None
) -> int:
    stream = iter(keys)
    first = _next_in(stream, Key.DIGIT_0, Key.DIGIT_2)
    digits = [first]
    top = Key.DIGIT_5 if first == Key.DIGIT_2 else Key.DIGIT_9
    if echo is not None:
        echo(str(int(first)))
    for _ in range(2):
        key = _next_in(stream, Key.DIGIT_0, top)
        digits.append(key)
        if echo is not None:
            echo(str(int(key)))
    return sum(int(d) * w for d, w in zip(digits, (100, 10, 1)))


def counter_from_keys(keys: Iterable[Key]) -> int:
    """A three-digit decimal counter from key presses, at most 255."""
    return _read_counter(keys)


class Console:
    """The full-screen console: draws the machine and reacts to keys."""

    def __init__(
        self,
        machine: Machine | None = None,
        terminal: Terminal | None = None,
        reader: KeyReader | None = None,
        read_line: Callable[[], str] | None = None,
        timer: Callable[[float], object] | None = None,
    ) -> None:
        self.machine = machine if machine is not None else Machine()
        self.terminal = terminal if terminal is not None else Terminal()
        self.reader = reader if reader is not None else KeyReader()
        self.read_line = read_line if read_line is not None else sys.stdin.readline
        self.timer = timer if timer is not None else create_timer
        self.display = Display(self.machine, self.terminal, read_value=self._read_value)
        self.processor = Processor(self.machine, self.display)

    def _read_value(self) -> int:
        return self.reader.read_value(self.terminal.write)

    @property
    def _ignoring(self) -> bool:
        return self.machine.get_flag(Flag.IGNORING_CLOCK_PULSES)

    def _read_filename(self) -> str:
        while True:
            line = self.read_line()
            if not line:
                raise EOFError("no file name given")
            words = line.split()
            if words:
                return words[0][:FILENAME_LIMIT]

    def draw_frame(self) -> None:
        """Clear the screen and draw every box and the key help."""
        t = self.terminal
        t.clear()
        for box in _BOXES:
            t.box(*box)
        t.set_default_color()
        for row, text in _HELP:
            t.goto(row, 82)
            t.write(text)

    def key_save(self) -> None:
        """Ask for a file name and save memory to it."""
        t = self.terminal
        t.goto(26, 2)
        t.write("Save file as:      ")
        name = self._read_filename()
        try:
            self.machine.save(name)
        except MachineError:
            t.goto(26, 2)
            t.write("Error saving file ")
        self.display.print_all()

    def key_load(self) -> None:
        """Ask for a file name and load memory from it."""
        t = self.terminal
        t.goto(26, 2)
        t.write("Load file:         ")
        t.goto(26, 13)
        name = self._read_filename()
        try:
            self.machine.load(name)
        except MachineError:
            t.goto(26, 2)
            t.write("Error loading file ")
        self.display.print_all()

    def key_enter(self) -> None:
        """Edit the active cell in place."""
        t, d = self.terminal, self.display
        active = self.machine.active_cell
        row = 2 + (active + 1) // ROW_WIDTH
        col = 2 + ((active + 1) % ROW_WIDTH) * 6 - 6
        t.goto(row, col)
        t.set_bg(Color.RED)
        t.set_fg(Color.BLACK)
        t.write("     ")
        t.goto(row, col)
        value = self._read_value()
        self.machine.write(active, value)
        t.goto(row, col)
        d.print_cell(active, Color.BLACK, Color.RED)
        d.print_term(active, -1)
        d.print_big_cell()
        d.print_decoded_command(value)
        d.print_cache()
        d.print_command()
        t.goto(50, 0)

    def key_f5(self) -> None:
        """Enter a new accumulator value."""
        t = self.terminal
        t.goto(2, 88)
        t.write("hex:                 ")
        t.goto(2, 92)
        self.machine.accumulator = self._read_value()
        self.display.print_accumulator()

    def key_f6(self) -> None:
        """Enter a new instruction counter."""
        t = self.terminal
        t.goto(5, 67)
        t.write("T:" + " " * 15)
        t.goto(5, 69)
        self.machine.counter = _read_counter(self.reader.keys(), t.write)
        self.display.print_all()

    def key_reset(self) -> None:
        """Zero the machine, redraw the screen and stop the clock."""
        m = self.machine
        self.terminal.set_default_color()
        m.reset_memory()
        m.reset_flags()
        m.accumulator = 0
        m.counter = 0
        self.draw_frame()
        self.display.print_all()
        m.set_flag(Flag.INCORRECT_COMMAND, 1)
        self.timer(0)
        self.processor.reset()

    def _start(self) -> None:
        m = self.machine
        m.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
        m.counter = 0
        m.active_cell = 0
        self.timer(RUN_INTERVAL)

    def handle_key(self, key: Key) -> bool:
        """React to one key; False means the console should exit."""
        if key == Key.I:
            self.timer(0)
            self.processor.reset()
        if key == Key.T:
            self.machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        if key == Key.ESC:
            return False
        if not self._ignoring:
            return True
        moves = {
            Key.UP: move_up,
            Key.DOWN: move_down,
            Key.RIGHT: move_right,
            Key.LEFT: move_left,
        }
        actions = {
            Key.ENTER: self.key_enter,
            Key.L: self.key_load,
            Key.S: self.key_save,
            Key.R: self._start,
            Key.T: self.processor.step,
            Key.I: self.key_reset,
            Key.F5: self.key_f5,
            Key.F6: self.key_f6,
        }
        if key in moves:
            self.machine.active_cell = moves[key](self.machine.active_cell)
            self.display.print_all()
        elif key in actions:
            actions[key]()
        return True

    def _on_alarm(self, signum, frame) -> None:
        self.processor.tick()

    def run(self) -> int:
        """Run the console until ESC; return the exit status."""
        try:
            rows, cols = self.terminal.screen_size()
        except (OSError, ValueError):
            rows = cols = 0
        if not console_fits(rows, cols):
            self.terminal.write("ERROR: window is too small!\n")
            return 0
        m = self.machine
        m.reset_flags()
        m.reset_memory()
        m.counter = 0
        m.accumulator = 0
        m.cache.reset()
        self.draw_frame()
        previous = signal.signal(signal.SIGALRM, self._on_alarm)
        m.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        self.display.print_all()
        try:
            for key in self.reader.keys():
                if not self.handle_key(key):
                    break
        finally:
            self.timer(0)
            signal.signal(
                signal.SIGALRM, previous if previous is not None else signal.SIG_DFL
            )
        self.reader.regime(False, 0, 1, echo=True, sigint=True)
        return 0


def main(argv: list[str] | None = None) -> int:
    """Start the interactive console."""
    parser = argparse.ArgumentParser(
        prog="simplecomputer", description="Interactive simple computer console."
    )
    parser.parse_args(argv)
    return Console().run()


if __name__ == "__main__":
    sys.exit(main())