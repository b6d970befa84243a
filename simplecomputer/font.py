"""Big 8x8 characters, their binary font file and UTF-8 length counting."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterable, Mapping

FONT_ORDER = "0123456789abcdef+-"
_GLYPH = struct.Struct("<2I")
_WORD = struct.Struct("<I")


@dataclass
class BigChar:
    """An 8x8 bitmap held in two 32-bit words, one byte per row."""

    words: list[int] = field(default_factory=lambda: [0, 0])

    def __post_init__(self) -> None:
        words = [int(w) & 0xFFFFFFFF for w in self.words]
        if len(words) != 2:
            raise ValueError("a big character has exactly two words")
        self.words = words

    @staticmethod
    def _locate(x: int, y: int) -> tuple[int, int]:
        if not (0 <= x <= 7 and 0 <= y <= 7):
            raise ValueError(f"position ({x}, {y}) outside 8x8 grid")
        return x // 4, (x % 4) * 8 + y

    def get(self, x: int, y: int) -> int:
        """Return the pixel at row ``x``, column ``y``."""
        index, bit = self._locate(x, y)
        return (self.words[index] >> bit) & 1

    def set(self, x: int, y: int, value: int) -> None:
        """Set (1) or clear (0) the pixel at row ``x``, column ``y``."""
        index, bit = self._locate(x, y)
        if value not in (0, 1):
            raise ValueError(f"pixel value must be 0 or 1, not {value}")
        if value:
            self.words[index] |= 1 << bit
        else:
            self.words[index] &= ~(1 << bit) & 0xFFFFFFFF


_DEFAULT_WORDS = {
    "0": (1717992960, 8283750),
    "1": (471341056, 3938328),
    "2": (538983424, 3935292),
    "3": (2120252928, 8282238),
    "4": (2120640000, 6316158),
    "5": (2114092544, 8273984),
    "6": (33701376, 4071998),
    "7": (811630080, 396312),
    "8": (2120646144, 8283750),
    "9": (2087074816, 3956832),
    "a": (2118269952, 4342338),
    "b": (1044528640, 4080194),
    "c": (37895168, 3949058),
    "d": (1111637504, 4080194),
    "e": (2114092544, 8258050),
    "f": (33717760, 131646),
    "+": (2115508224, 1579134),
    "-": (2113929216, 126),
}

DEFAULT_FONT: dict[str, BigChar] = {
    ch: BigChar(list(words)) for ch, words in _DEFAULT_WORDS.items()
}


def write_bigchars(stream: BinaryIO, chars: Iterable[BigChar]) -> None:
    """Write each character as two little-endian 32-bit words."""
    stream.write(b"".join(_GLYPH.pack(*char.words) for char in chars))


def read_bigchars(stream: BinaryIO, count: int) -> list[BigChar]:
    """Read ``count`` characters; raise ValueError if the stream runs short."""
    size = _GLYPH.size * count
    data = stream.read(size)
    if len(data) != size:
        raise ValueError(f"expected {count} characters, got {len(data)} bytes")
    return [BigChar(list(words)) for words in _GLYPH.iter_unpack(data)]


def save_font(path: str | Path, font: Mapping[str, BigChar]) -> None:
    """Write the font's glyphs in the standard order."""
    with open(path, "wb") as stream:
        write_bigchars(stream, (font[ch] for ch in FONT_ORDER))


def load_font(path: str | Path) -> dict[str, BigChar]:
    """Load a font file over the defaults; a missing file leaves the defaults."""
    font = {ch: BigChar(list(DEFAULT_FONT[ch].words)) for ch in FONT_ORDER}
    try:
        data = Path(path).read_bytes()
    except OSError:
        return font
    limit = len(FONT_ORDER) * 2 * _WORD.size
    usable = data[: min(len(data), limit) // _WORD.size * _WORD.size]
    for position, (word,) in enumerate(_WORD.iter_unpack(usable)):
        font[FONT_ORDER[position // 2]].words[position % 2] = word
    return font


def utf8_length(data: bytes | str) -> int:
    """Count the characters of a NUL-terminated UTF-8 string; 0 if it is invalid."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    end = data.find(b"\x00")
    if end != -1:
        data = data[:end]
    count = 0
    pos = 0
    while pos < len(data):
        lead = data[pos]
        if lead & 0x80 == 0:
            width = 1
        elif lead & 0xE0 == 0xC0:
            width = 2
        elif lead & 0xF0 == 0xE0:
            width = 3
        elif lead & 0xF8 == 0xF0:
            width = 4
        else:
            return 0
        tail = data[pos + 1 : pos + width]
        if len(tail) != width - 1 or any(b & 0xC0 != 0x80 for b in tail):
            return 0
        pos += width
        count += 1
    return count