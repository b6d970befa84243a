import io

import pytest

from simplecomputer.font import (
    DEFAULT_FONT,
    FONT_ORDER,
    BigChar,
    load_font,
    read_bigchars,
    save_font,
    utf8_length,
    write_bigchars,
)


def test_default_font_values_from_source(tmp_path):
    font = load_font(tmp_path / "missing.bin")
    assert font["0"].words == [1717992960, 8283750]
    assert font["-"].words == [2113929216, 126]
    assert set(font) == set(FONT_ORDER)


def test_minus_glyph_row():
    minus = BigChar([2113929216, 126])
    assert minus.get(4, 0) == 0
    assert minus.get(4, 1) == 1


@pytest.mark.parametrize("x", range(8))
@pytest.mark.parametrize("y", range(8))
def test_set_get_round_trip(x, y):
    char = BigChar()
    char.set(x, y, 1)
    assert char.get(x, y) == 1
    assert sum(char.get(i, j) for i in range(8) for j in range(8)) == 1
    char.set(x, y, 0)
    assert char == BigChar()


def test_set_leaves_other_pixels():
    char = BigChar(list(DEFAULT_FONT["8"].words))
    before = [[char.get(i, j) for j in range(8)] for i in range(8)]
    char.set(7, 7, 1 - before[7][7])
    after = [[char.get(i, j) for j in range(8)] for i in range(8)]
    changed = [(i, j) for i in range(8) for j in range(8) if before[i][j] != after[i][j]]
    assert changed == [(7, 7)]


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (8, 0), (0, 8)])
def test_get_out_of_range(x, y):
    with pytest.raises(ValueError):
        BigChar().get(x, y)


def test_set_bad_value():
    with pytest.raises(ValueError):
        BigChar().set(0, 0, 2)


def test_write_read_round_trip():
    chars = [DEFAULT_FONT[ch] for ch in FONT_ORDER]
    stream = io.BytesIO()
    write_bigchars(stream, chars)
    assert len(stream.getvalue()) == 8 * len(chars)
    stream.seek(0)
    assert read_bigchars(stream, len(chars)) == chars


def test_read_short_stream():
    stream = io.BytesIO()
    write_bigchars(stream, [DEFAULT_FONT["1"]])
    stream.seek(0)
    with pytest.raises(ValueError):
        read_bigchars(stream, 2)


def test_save_load_round_trip(tmp_path):
    font = {ch: BigChar(list(g.words)) for ch, g in DEFAULT_FONT.items()}
    font["a"].set(0, 0, 1 - font["a"].get(0, 0))
    path = tmp_path / "font.bin"
    save_font(path, font)
    assert load_font(path) == font


def test_load_missing_gives_defaults(tmp_path):
    assert load_font(tmp_path / "missing.bin") == DEFAULT_FONT


def test_load_partial_file_replaces_prefix(tmp_path):
    replacement = BigChar([0xFFFFFFFF, 0xFFFFFFFF])
    stream = io.BytesIO()
    write_bigchars(stream, [replacement])
    path = tmp_path / "partial.bin"
    path.write_bytes(stream.getvalue()[:4])
    font = load_font(path)
    assert font["0"].words[0] == replacement.words[0]
    assert font["0"].words[1] == DEFAULT_FONT["0"].words[1]
    assert font["1"] == DEFAULT_FONT["1"]


def test_load_does_not_alias_defaults(tmp_path):
    original = DEFAULT_FONT["0"].get(0, 0)
    font = load_font(tmp_path / "missing.bin")
    font["0"].set(0, 0, 1 - original)
    assert font["0"].get(0, 0) == 1 - original
    assert DEFAULT_FONT["0"].get(0, 0) == original
    assert load_font(tmp_path / "missing.bin")["0"].get(0, 0) == original


@pytest.mark.parametrize("text", ["", "abc", " Память ", "IN-OUT", "€𝄞"])
def test_utf8_length_counts_characters(text):
    assert utf8_length(text.encode("utf-8")) == len(text)
    assert utf8_length(text) == len(text)


@pytest.mark.parametrize("data", [b"\xff", b"\xd0", b"a\xe2\x82", b"\x80", b"\xc3a"])
def test_utf8_length_invalid(data):
    assert utf8_length(data) == 0


def test_utf8_length_stops_at_nul():
    assert utf8_length(b"ab\x00cd") == 2