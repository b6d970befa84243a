"""Terminal control through ANSI escape sequences, boxes and big characters."""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from typing import Sequence, TextIO

from .font import BigChar, utf8_length

ESC = "\x1b"
ENTER_ALT_CHARSET = ESC + "(0"
EXIT_ALT_CHARSET = ESC + "(B"

ANGLE_LEFT_UP = "l"
ANGLE_LEFT_DOWN = "m"
ANGLE_RIGHT_UP = "k"
ANGLE_RIGHT_DOWN = "j"
LINE_VERTICAL = "x"
LINE_HORIZONTAL = "q"
BLACK_CHAR = "a"


class Color(IntEnum):
    """The eight basic terminal colours."""

    BLACK = 0
    RED = 1
    GREEN = 2
    BROWN = 3
    BLUE = 4
    PURPLE = 5
    CYAN = 6
    LIGHT_GRAY = 7


class Terminal:
    """Writes control sequences and text to a text stream."""

    def __init__(self, stream: TextIO | None = None, fd: int | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self._fd = fd

    def write(self, text: str) -> None:
        """Write ``text`` as it is."""
        self.stream.write(text)
        self.stream.flush()

    def clear(self) -> None:
        """Move the cursor home and clear the screen."""
        self.write(f"{ESC}[H{ESC}[J")

    def goto(self, row: int, col: int) -> None:
        """Move the cursor to ``row``, ``col``."""
        self.write(f"{ESC}[{row};{col}H")

    def screen_size(self) -> tuple[int, int]:
        """Return the terminal's (rows, columns); raise OSError if it has none."""
        fd = self._fd if self._fd is not None else self.stream.fileno()
        size = os.get_terminal_size(fd)
        return size.lines, size.columns

    def set_fg(self, color: Color) -> None:
        """Set the foreground colour."""
        self.write(f"{ESC}[3{int(color)}m")

    def set_bg(self, color: Color) -> None:
        """Set the background colour."""
        self.write(f"{ESC}[4{int(color)}m")

    def set_default_color(self) -> None:
        """Reset all colours and attributes."""
        self.write(f"{ESC}[0m")

    def set_cursor_visible(self, visible: bool) -> None:
        """Show or hide the cursor."""
        if visible:
            self.write(f"{ESC}[?25h{ESC}[?8c")
        else:
            self.write(f"{ESC}[?25l{ESC}[?1c")

    def delete_line(self) -> None:
        """Erase the line under the cursor."""
        self.write(f"{ESC}[2K")

    def print_alt(self, text: str) -> None:
        """Write ``text`` in the line-drawing character set."""
        self.write(ENTER_ALT_CHARSET + text + EXIT_ALT_CHARSET)

    def box(
        self,
        row: int,
        col: int,
        height: int,
        width: int,
        box_fg: Color,
        box_bg: Color,
        header: str | None,
        header_fg: Color,
        header_bg: Color,
    ) -> None:
        """Draw a frame with its top-left corner at ``row``, ``col`` and a header."""
        self.set_fg(box_fg)
        self.set_bg(box_bg)
        if row < 0 or col < 0:
            raise ValueError(f"box corner ({row}, {col}) is off screen")

        bottom = row + height - 1
        right = col + width - 1

        self.goto(row, col)
        self.print_alt(ANGLE_LEFT_UP)
        for c in range(col + 1, right):
            self.goto(row, c)
            self.print_alt(LINE_HORIZONTAL)
        self.print_alt(ANGLE_RIGHT_UP)

        for r in range(row + 1, bottom):
            self.goto(r, col)
            self.print_alt(LINE_VERTICAL)
        self.goto(bottom, col)
        self.print_alt(ANGLE_LEFT_DOWN)

        for r in range(row + 1, bottom):
            self.goto(r, right)
            self.print_alt(LINE_VERTICAL)
        for c in range(col + 1, right):
            self.goto(bottom, c)
            self.print_alt(LINE_HORIZONTAL)
        self.print_alt(ANGLE_RIGHT_DOWN)

        if header is not None:
            self.set_fg(header_fg)
            self.set_bg(header_bg)
            self.goto(row, col + width // 2 - utf8_length(header) // 2)
            self.write(header)

    def print_bigchar(
        self,
        big: BigChar | Sequence[int],
        row: int,
        col: int,
        bg: Color,
        fg: Color,
    ) -> None:
        """Draw an 8x8 character whose top line is just below ``row``."""
        words = big.words if isinstance(big, BigChar) else list(big)
        self.set_fg(fg)
        self.set_bg(bg)
        for i, word in enumerate(words[:2]):
            for j in range(4):
                line = (word >> (j * 8)) & 0xFF
                text = "".join(
                    BLACK_CHAR if line & (1 << k) else " " for k in range(8)
                )
                self.goto(row + i * 4 + j + 1, col)
                self.print_alt(text)
        self.set_default_color()
        self.goto(24, 0)