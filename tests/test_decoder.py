import pytest

from hex_tool.codec.decoder import (
    PLACEHOLDER, ByteCategory, Nibble, Pane, byte_category, bytes_to_hex, bytes_to_text,
    encode_for_pane, hex_to_bytes, set_nibble, text_char_to_byte,
)
from hex_tool.errors import InvalidHex, Unencodable


def test_hex_roundtrip_all_bytes():
    data = bytes(range(256))
    assert hex_to_bytes(bytes_to_hex(data)) == data


def test_hex_accepts_lowercase_and_spaces():
    assert hex_to_bytes("0a FF 1b") == b"\x0a\xff\x1b"


@pytest.mark.parametrize("bad", ["0G", "ABC", "zz"])
def test_invalid_hex(bad):
    with pytest.raises(InvalidHex):
        hex_to_bytes(bad)


def test_text_view_uses_placeholder():
    assert bytes_to_text(b"Hi\x00\xff~") == "Hi" + PLACEHOLDER * 2 + "~"


def test_text_char_to_byte():
    assert text_char_to_byte("A") == 0x41
    with pytest.raises(Unencodable):
        text_char_to_byte("ж")
    with pytest.raises(Unencodable):
        text_char_to_byte("\n")


def test_set_nibble():
    assert set_nibble(0x12, Nibble.HIGH, 0xF) == 0xF2
    assert set_nibble(0x12, Nibble.LOW, 0xF) == 0x1F


def test_categories():
    assert byte_category(0x00) is ByteCategory.NULL
    assert byte_category(ord("a")) is ByteCategory.PRINTABLE
    assert byte_category(0x20) is ByteCategory.WHITESPACE
    assert byte_category(0x0A) is ByteCategory.WHITESPACE
    assert byte_category(0x01) is ByteCategory.ASCII_OTHER
    assert byte_category(0x80) is ByteCategory.NON_ASCII


def test_encode_for_pane():
    assert encode_for_pane(Pane.HEX, b"\x01\xab") == "01 AB"
    assert encode_for_pane(Pane.TEXT, b"ok\x00") == "ok."
    assert Pane.HEX.other() is Pane.TEXT
