import pytest

from simplecomputer.formatting import hex_char, int_to_bin, oct_char


def test_hex_char_pinned():
    assert hex_char("0000") == "0"
    assert hex_char("1010") == "A"
    assert hex_char("1111") == "F"


@pytest.mark.parametrize("value", range(16))
def test_hex_char_matches_bits(value):
    assert int(hex_char(int_to_bin(value, 4)), 16) == value


@pytest.mark.parametrize("value", range(8))
def test_oct_char_matches_bits(value):
    assert int(oct_char(int_to_bin(value, 3)), 8) == value


@pytest.mark.parametrize("bad", ["", "2", "01", "00000", "abcd"])
def test_hex_char_invalid(bad):
    assert hex_char(bad) == " "


@pytest.mark.parametrize("bad", ["", "0000", "12", "0a1"])
def test_oct_char_invalid(bad):
    assert oct_char(bad) == " "


@pytest.mark.parametrize("value", [0, 1, 5, 255, 0x7FFF, 2**31 - 1])
def test_int_to_bin_round_trip(value):
    text = int_to_bin(value)
    assert len(text) == 32
    assert int(text, 2) == value


def test_int_to_bin_negative_is_twos_complement():
    assert int_to_bin(-1) == "1" * 32
    assert int_to_bin(-1, 8) == "1" * 8


@pytest.mark.parametrize("size", [1, 4, 15, 40])
def test_int_to_bin_size(size):
    text = int_to_bin(0x7FFF, size)
    assert len(text) == size
    assert set(text) <= {"0", "1"}


def test_int_to_bin_wide_size_pads_with_zeros():
    text = int_to_bin(-1, 40)
    assert text.startswith("0" * 8)
    assert text.endswith("1" * 32)


def test_int_to_bin_zero_size():
    assert int_to_bin(12, 0) == ""


def test_int_to_bin_negative_size():
    with pytest.raises(ValueError):
        int_to_bin(1, -1)