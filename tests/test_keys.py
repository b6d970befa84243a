import os
import termios
import threading

import pytest

from simplecomputer.keys import Key, KeyReader, decode_key, read_value


def _read_key_fed(reader, master, data):
    """Read one key through the reader while a thread keeps feeding data."""
    stop = threading.Event()

    def feed():
        while not stop.is_set():
            os.write(master, data)
            stop.wait(0.02)

    thread = threading.Thread(target=feed, daemon=True)
    thread.start()
    try:
        return reader.read_key()
    finally:
        stop.set()
        thread.join()


@pytest.mark.parametrize(
    "data, key",
    [
        (b"\x1b[A", Key.UP),
        (b"\x1b[B", Key.DOWN),
        (b"\x1b[C", Key.RIGHT),
        (b"\x1b[D", Key.LEFT),
        (b"\n", Key.ENTER),
        (b"\x1b[15~", Key.F5),
        (b"\x1b[17~", Key.F6),
        (b"l", Key.L),
        (b"s", Key.S),
        (b"r", Key.R),
        (b"t", Key.T),
        (b"i", Key.I),
        (b"\x1b", Key.ESC),
        (b"+", Key.PLUS),
        (b"-", Key.MINUS),
        (b"x", Key.OTHER),
        (b"", Key.OTHER),
        (b"A", Key.OTHER),
    ],
)
def test_decode_key_fixed_sequences(data, key):
    assert decode_key(data) == key


def test_decode_key_uses_first_byte_of_longer_reads():
    assert decode_key(b"lq") == Key.L
    assert decode_key(b"\x1b[Z") == Key.ESC


def test_decode_key_stops_at_nul():
    assert decode_key(b"\n\x00junk") == Key.ENTER


def test_decode_digits_and_hex_letters_carry_their_value():
    for digit in "0123456789abcdef":
        assert decode_key(digit.encode()) == Key(int(digit, 16))


def test_read_value_plus_sign_round_trip():
    echoed = []
    keys = [Key.PLUS, Key.DIGIT_1, Key.HEX_A, Key.HEX_B, Key.HEX_C]
    value = read_value(keys, echoed.append)
    assert "".join(echoed) == "+1abc"
    assert format(value, "04x") == "1abc"


def test_read_value_minus_sets_sign_bit():
    echoed = []
    value = read_value([Key.MINUS, Key.DIGIT_2, Key.DIGIT_0, Key.DIGIT_0, Key.HEX_F], echoed.append)
    assert value >> 14 == 1
    assert format(value & 0x3FFF, "04x") == "200f"
    assert "".join(echoed) == "-200f"


def test_read_value_digit_first_implies_plus():
    echoed = []
    value = read_value([Key.DIGIT_3, Key.DIGIT_0, Key.DIGIT_0, Key.DIGIT_1], echoed.append)
    assert "".join(echoed) == "+3001"
    assert value >> 14 == 0


def test_read_value_skips_keys_that_do_not_fit():
    clean = [Key.PLUS, Key.DIGIT_2, Key.HEX_E, Key.DIGIT_7, Key.DIGIT_9]
    noisy = [
        Key.OTHER,
        Key.DIGIT_5,
        Key.PLUS,
        Key.HEX_F,
        Key.DIGIT_2,
        Key.UP,
        Key.HEX_E,
        Key.ENTER,
        Key.DIGIT_7,
        Key.DIGIT_9,
    ]
    assert read_value(noisy) == read_value(clean)


def test_read_value_raises_when_keys_run_out():
    with pytest.raises(EOFError):
        read_value([Key.PLUS, Key.DIGIT_1])


def test_restore_without_save_raises():
    master, slave = os.openpty()
    try:
        with pytest.raises(RuntimeError):
            KeyReader(fd=slave).restore()
    finally:
        os.close(master)
        os.close(slave)


def test_regime_switches_and_restore_returns_to_canonical():
    master, slave = os.openpty()
    try:
        reader = KeyReader(fd=slave)
        reader.regime(False, 0, 1, echo=False, sigint=True)
        attrs = termios.tcgetattr(slave)
        assert not attrs[3] & termios.ICANON
        assert not attrs[3] & termios.ECHO
        assert attrs[3] & termios.ISIG
        assert attrs[6][termios.VMIN] == 1
        reader.restore()
        assert termios.tcgetattr(slave)[3] & termios.ICANON
    finally:
        os.close(master)
        os.close(slave)


def test_canonical_regime_turns_icanon_back_on_and_keeps_echo():
    master, slave = os.openpty()
    try:
        reader = KeyReader(fd=slave)
        reader.regime(False, 0, 1, echo=False, sigint=True)
        before = termios.tcgetattr(slave)[3]
        assert not before & termios.ICANON
        reader.regime(True)
        after = termios.tcgetattr(slave)[3]
        assert after & termios.ICANON
        assert not after & termios.ECHO
        key = _read_key_fed(reader, master, b"r")
        assert key == Key.R
        restored = termios.tcgetattr(slave)[3]
        assert restored & termios.ICANON
        assert not restored & termios.ECHO
    finally:
        os.close(master)
        os.close(slave)


def test_read_key_from_pty():
    master, slave = os.openpty()
    try:
        key = _read_key_fed(KeyReader(fd=slave), master, b"s")
    finally:
        os.close(master)
        os.close(slave)
    assert key == Key.S