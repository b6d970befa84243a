"""Drawing the state of the simple computer on a terminal."""

from __future__ import annotations

from typing import Callable, Mapping

from .font import DEFAULT_FONT, BigChar
from .machine import (
    RAM_SIZE,
    CacheLine,
    Flag,
    Machine,
    MachineError,
    validate_command,
)
from .term import Color, Terminal

_SIGN_BIT = 1 << 14
_HEX_DIGITS = "0123456789abcdef"
_FLAG_LETTERS = (
    (Flag.OVERFLOW, "P"),
    (Flag.DIVISION_BY_ZERO, "O"),
    (Flag.RANGE_OVERFLOW, "M"),
    (Flag.INCORRECT_COMMAND, "T"),
    (Flag.IGNORING_CLOCK_PULSES, "E"),
)


def _unsigned(value: int) -> int:
    return value & 0xFFFFFFFF if value < 0 else value


def _split(value: int) -> tuple[int, int]:
    """The sign field and the value with its sign bit cleared."""
    return value >> 14, value & ~_SIGN_BIT


def _signed_word(value: int, spec: str) -> str:
    """A word as its sign character and its magnitude in the format ``spec``."""
    sign, magnitude = _split(value)
    prefix = "-" if sign == 1 else "+"
    return f"{prefix}{_unsigned(magnitude):{spec}}"


def format_cell(value: int) -> str:
    """A memory word as a sign and four upper-case hex digits."""
    return _signed_word(value, "04X")


def format_decoded(value: int) -> str:
    """A word in decimal, octal, hex and binary, as shown under the memory."""
    sign, magnitude = _split(value)
    raw = _unsigned(magnitude)
    minus = "-" if sign else ""
    text = f"dec: {minus}{magnitude} oct: {minus}{raw:o} hex: {minus}{raw:04X} bin: "
    text += "1" if sign else "0"
    text += "".join("1" if magnitude & (1 << i) else "0" for i in range(13, -1, -1))
    if magnitude == 0:
        text += " " * 10
    return text


def format_flags(machine: Machine) -> str:
    """The five flags as letters, with '_' for each one that is clear."""
    return " ".join(
        letter if machine.get_flag(flag) else "_" for flag, letter in _FLAG_LETTERS
    )


def format_cache_line(line: CacheLine) -> str:
    """One cache line: its address and its words, or '-' if it is empty."""
    if line.address == -1:
        return "-"
    words = "".join(
        f" {'-' if (word >> 14) & 1 else '+'}{word & 0x3FFF:04X}" for word in line.data
    )
    return f"{line.address:03d}:{words}"


class Display:
    """Renders a machine's memory, registers, cache and I/O log."""

    def __init__(
        self,
        machine: Machine,
        terminal: Terminal,
        font: Mapping[str, BigChar] | None = None,
        read_value: Callable[[], int] | None = None,
    ) -> None:
        self.machine = machine
        self.terminal = terminal
        self.font = font if font is not None else DEFAULT_FONT
        self.read_value = read_value

    def _active_value(self) -> int:
        address = self.machine.active_cell
        return self.machine.memory[address] if 0 <= address < RAM_SIZE else 0

    def print_cell(self, address: int, fg: Color, bg: Color) -> None:
        """Write one memory cell in the given colours, followed by a space."""
        t = self.terminal
        text = format_cell(self.machine.read(address))
        t.set_fg(fg)
        t.set_bg(bg)
        t.write(text)
        t.set_default_color()
        t.write(" ")

    def print_flags(self) -> None:
        """Write the flag letters."""
        t = self.terminal
        t.set_default_color()
        t.goto(2, 70)
        t.write(format_flags(self.machine) + "\n")
        t.goto(50, 1)

    def print_decoded_command(self, value: int) -> None:
        """Write ``value`` in every base under the memory box."""
        t = self.terminal
        t.goto(17, 3)
        t.set_default_color()
        t.write(" " * 59)
        t.goto(17, 3)
        t.write(format_decoded(value))

    def print_accumulator(self) -> None:
        """Write the accumulator."""
        t = self.terminal
        acc = self.machine.accumulator
        t.set_default_color()
        t.goto(2, 88)
        t.write(" " * 19)
        t.goto(2, 88)
        sign = "-" if acc >> 14 == 1 else "+"
        t.write(f"sc: {acc} hex: {sign}{_unsigned(acc):X}\n")

    def print_counters(self) -> None:
        """Write the instruction counter."""
        t = self.terminal
        counter = self.machine.counter
        t.set_default_color()
        t.goto(5, 67)
        t.write(f"T: {counter:03d}")
        t.write(f" IC: +{_unsigned(counter):04X}")

    def print_memory(self) -> None:
        """Write all memory, ten cells a row, the active cell highlighted."""
        row = 2
        self.terminal.goto(row, 2)
        for address in range(RAM_SIZE):
            if address == self.machine.active_cell:
                self.print_cell(address, Color.BLACK, Color.RED)
            else:
                self.print_cell(address, Color.LIGHT_GRAY, Color.BLACK)
            if (address + 1) % 10 == 0:
                row += 1
                self.terminal.goto(row, 2)

    def print_command(self) -> None:
        """Write the command and operand held in the active cell."""
        t = self.terminal
        t.goto(5, 87)
        t.write(" " * 21)
        t.set_default_color()
        value = self._active_value()
        command, operand = (value >> 7) & 0x7F, value & 0x7F
        if not validate_command(command):
            t.goto(5, 91)
            t.write("! ")
        t.goto(5, 93)
        t.write(f"+{command:02X} : {operand:02X}\n")

    def print_big_cell(self) -> None:
        """Draw the active cell in big characters."""
        t = self.terminal
        value = self._active_value()
        sign, _ = _split(value)
        t.set_fg(Color.LIGHT_GRAY)
        t.set_bg(Color.BLACK)
        text = _signed_word(value, "04x") + " "
        t.print_bigchar(
            self.font["-" if sign else "+"], 7, 65, Color.BLACK, Color.RED
        )
        col = 56
        for ch in text[:6]:
            col += 8
            if ch in _HEX_DIGITS:
                t.print_bigchar(self.font[ch], 7, col, Color.BLACK, Color.RED)
        t.goto(16, 66)
        t.set_fg(Color.BLUE)
        t.write(f"Edited cell number: {self.machine.active_cell + 1}  ")
        t.goto(50, 1)

    def print_cache(self) -> None:
        """Write each cache line on its own row."""
        for index, line in enumerate(self.machine.cache.lines):
            self.terminal.goto(20 + index, 3)
            self.terminal.write(format_cache_line(line))

    def print_all(self) -> None:
        """Redraw every part of the screen that shows machine state."""
        self.print_cache()
        self.print_memory()
        self.print_accumulator()
        self.print_command()
        self.terminal.set_default_color()
        self.print_counters()
        self.print_flags()
        self.print_decoded_command(self._active_value())
        self.print_big_cell()
        self.terminal.set_default_color()
        self.terminal.goto(50, 0)

    def _write_log(self, row: int, col: int, width: int) -> None:
        for line in self.machine.io_buffer:
            row += 1
            self.terminal.goto(row, col)
            self.terminal.write(line[:width].ljust(width))

    def _push_log(self, entry: str) -> None:
        buffer = self.machine.io_buffer
        self.machine.io_buffer = [entry] + buffer[: len(buffer) - 1]

    def print_term(self, address: int, mode: int) -> None:
        """Log output (1), read input (0) or log an edited cell (-1) in the I/O box."""
        t = self.terminal
        row, col = 19, 69
        t.goto(row, col)
        if mode in (1, -1):
            t.set_default_color()
            value = self.machine.read(address)
            arrow = ">" if mode == 1 else "<"
            entry = f"{address:03d}{arrow} {_signed_word(value, '04x')}"
            self._push_log(entry)
            self._write_log(row, col, len(entry))
        elif mode == 0:
            self.machine.read(address)
            if self.read_value is None:
                raise MachineError("no input device attached")
            t.set_default_color()
            self._push_log(f"{address:03d}<       ")
            t.goto(row, col)
            self._write_log(row, col, 13)
            t.goto(row + 1, col + 5)
            value = self.read_value()
            self.machine.memory[address] = value
            self.machine.io_buffer[0] = f"{address:03d}< {_signed_word(value, '04x')}"
        else:
            raise ValueError(f"unknown I/O mode {mode}")
        t.goto(50, 0)

    def reset_term(self) -> None:
        """Clear the screen and the I/O log, then redraw."""
        self.terminal.clear()
        self.machine.io_buffer = [" " * 10 for _ in self.machine.io_buffer]
        self.print_all()