"""Reading single keys and hexadecimal words from the terminal."""

from __future__ import annotations

import os
import sys
import termios
from enum import IntEnum
from typing import Callable, Iterable, Iterator

READ_SIZE = 8
SIGN_BIT = 1 << 14


class Key(IntEnum):
    """Keys the console understands; digits and hex letters hold their value."""

    DIGIT_0 = 0
    DIGIT_1 = 1
    DIGIT_2 = 2
    DIGIT_3 = 3
    DIGIT_4 = 4
    DIGIT_5 = 5
    DIGIT_6 = 6
    DIGIT_7 = 7
    DIGIT_8 = 8
    DIGIT_9 = 9
    HEX_A = 10
    HEX_B = 11
    HEX_C = 12
    HEX_D = 13
    HEX_E = 14
    HEX_F = 15
    UP = 16
    DOWN = 17
    RIGHT = 18
    LEFT = 19
    F5 = 20
    F6 = 21
    L = 22
    S = 23
    R = 24
    T = 25
    I = 26  # noqa: E741
    ESC = 27
    ENTER = 28
    OTHER = 29
    PLUS = 30
    MINUS = 31
    NUM = 32


_SEQUENCES = {
    b"\x1b[A": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1b[C": Key.RIGHT,
    b"\x1b[D": Key.LEFT,
    b"\n": Key.ENTER,
    b"\x1b[15~": Key.F5,
    b"\x1b[17~": Key.F6,
}

_FIRST_BYTE = {
    ord("l"): Key.L,
    ord("s"): Key.S,
    ord("r"): Key.R,
    ord("t"): Key.T,
    ord("i"): Key.I,
}


def decode_key(data: bytes) -> Key:
    """Map the bytes of one terminal read to a key."""
    data = bytes(data[:READ_SIZE]).split(b"\x00", 1)[0]
    if data in _SEQUENCES:
        return _SEQUENCES[data]
    if not data:
        return Key.OTHER
    first = data[0]
    if first in _FIRST_BYTE:
        return _FIRST_BYTE[first]
    if ord("0") <= first <= ord("9"):
        return Key(first - ord("0"))
    if ord("a") <= first <= ord("f"):
        return Key(first - ord("a") + 10)
    if first == 0x1B:
        return Key.ESC
    if first == ord("+"):
        return Key.PLUS
    if first == ord("-"):
        return Key.MINUS
    return Key.OTHER


def _next_key(keys: Iterator[Key]) -> Key:
    try:
        return next(keys)
    except StopIteration:
        raise EOFError("input ended before the value was complete") from None


def _next_in(keys: Iterator[Key], low: Key, high: Key) -> Key:
    """The next key between ``low`` and ``high``; other keys are skipped."""
    while True:
        key = _next_key(keys)
        if low <= key <= high:
            return key


def read_value(
    keys: Iterable[Key], echo: Callable[[str], object] | None = None
) -> int:
    """Build a word from a sign and four hex digits, the first one 0-3.

    Keys that do not fit the current position are ignored; every accepted
    key is passed to ``echo``.  Raises EOFError if the keys run out.
    """
    say = echo if echo is not None else (lambda text: None)
    stream = iter(keys)
    value = 0
    first: Key | None = None
    while True:
        key = _next_key(stream)
        if key == Key.PLUS:
            say("+")
            break
        if key == Key.MINUS:
            value |= SIGN_BIT
            say("-")
            break
        if Key.DIGIT_0 <= key <= Key.DIGIT_3:
            say("+")
            first = key
            break
    if first is None:
        first = _next_in(stream, Key.DIGIT_0, Key.DIGIT_3)
    value |= int(first) << 12
    say(str(int(first)))
    for shift in (8, 4, 0):
        key = _next_in(stream, Key.DIGIT_0, Key.HEX_F)
        value |= int(key) << shift
        say(format(int(key), "x"))
    return value


class KeyReader:
    """Reads keys one at a time from a terminal in non-canonical mode."""

    def __init__(self, fd: int | None = None) -> None:
        self._fd = fd
        self._saved: list | None = None

    @property
    def fd(self) -> int:
        return self._fd if self._fd is not None else sys.stdin.fileno()

    def save(self) -> None:
        """Remember the terminal's current attributes."""
        self._saved = termios.tcgetattr(self.fd)

    def restore(self) -> None:
        """Put back the attributes remembered by the last save."""
        if self._saved is None:
            raise RuntimeError("terminal attributes were never saved")
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, self._saved)

    def regime(
        self,
        canonical: bool,
        vtime: int = 0,
        vmin: int = 1,
        echo: bool = True,
        sigint: bool = True,
    ) -> None:
        """Save the attributes, then switch canonical mode, echo and signals."""
        self.save()
        attrs = list(self._saved)
        attrs[6] = list(attrs[6])
        lflag = attrs[3]
        if canonical:
            lflag |= termios.ICANON
        else:
            lflag &= ~termios.ICANON
            lflag = lflag | termios.ECHO if echo else lflag & ~termios.ECHO
            lflag = lflag | termios.ISIG if sigint else lflag & ~termios.ISIG
            attrs[6][termios.VTIME] = vtime
            attrs[6][termios.VMIN] = vmin
        attrs[3] = lflag
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, attrs)

    def read_key(self) -> Key:
        """Wait for one key press without echo and decode it."""
        self.regime(False, 0, 1, echo=False, sigint=True)
        try:
            data = os.read(self.fd, READ_SIZE)
        finally:
            self.restore()
        return decode_key(data)

    def keys(self) -> Iterator[Key]:
        """Yield key presses forever."""
        while True:
            yield self.read_key()

    def read_value(self, echo: Callable[[str], object] | None = None) -> int:
        """Read a signed four-digit hex word from the keyboard."""
        return read_value(self.keys(), echo)