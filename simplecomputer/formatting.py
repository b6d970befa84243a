"""Conversions between numbers and binary, octal and hexadecimal digits."""

from __future__ import annotations

_HEX_DIGITS = "0123456789ABCDEF"
_HEX = {format(i, "04b"): digit for i, digit in enumerate(_HEX_DIGITS)}
_OCT = {format(i, "03b"): str(i) for i in range(8)}


def hex_char(tetrad: str) -> str:
    """Hex digit for a four-character bit string, or a space if it is not one."""
    return _HEX.get(tetrad, " ")


def oct_char(triad: str) -> str:
    """Octal digit for a three-character bit string, or a space if it is not one."""
    return _OCT.get(triad, " ")


def int_to_bin(value: int, size: int = 32) -> str:
    """The low ``size`` bits of a 32-bit integer as a string of 0s and 1s."""
    if size < 0:
        raise ValueError(f"size must not be negative, not {size}")
    if size == 0:
        return ""
    bits = value & 0xFFFFFFFF & ((1 << size) - 1)
    return format(bits, f"0{size}b")