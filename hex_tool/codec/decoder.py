# codec/decoder.py
"""
Перевод байт в HEX-пары и в печатный текст и обратно.
Текстовая панель - строго однобайтовая: печатный ASCII 0x20..0x7E
показывается как есть, всё остальное - одним символом-заполнителем.
"""
from __future__ import annotations
from enum import Enum
from typing import Iterable, List, Union

from ..errors import InvalidHex, Unencodable

PLACEHOLDER = "."
HEX_DIGITS = "0123456789abcdefABCDEF"


class Pane(Enum):
    HEX = "hex"
    TEXT = "text"

    def other(self) -> "Pane":
        return Pane.TEXT if self is Pane.HEX else Pane.HEX


class Nibble(Enum):
    """Половина байта: HIGH - старшие 4 бита (F в 0xF4), LOW - младшие."""
    HIGH = 0
    LOW = 1

    def toggle(self) -> "Nibble":
        return Nibble.LOW if self is Nibble.HIGH else Nibble.HIGH


class ByteCategory(Enum):
    NULL = "null"
    PRINTABLE = "printable"
    WHITESPACE = "whitespace"
    ASCII_OTHER = "ascii_other"
    NON_ASCII = "non_ascii"


def is_printable(b: int) -> bool:
    return 0x20 <= b <= 0x7E


def bytes_to_hex(data: Union[bytes, bytearray, Iterable[int]]) -> List[str]:
    return [f"{b:02X}" for b in data]


def hex_digit_to_nibble(c: str) -> int:
    if len(c) != 1 or c not in HEX_DIGITS:
        raise InvalidHex(c)
    return int(c, 16)


def hex_to_bytes(groups: Union[str, Iterable[str]]) -> bytes:
    """Обратное к bytes_to_hex: строка пар ('0A FF', '0aff') или список пар."""
    text = groups if isinstance(groups, str) else "".join(groups)
    digits = [hex_digit_to_nibble(c) for c in text if not c.isspace()]
    if len(digits) % 2:
        raise InvalidHex(text)
    return bytes((digits[i] << 4) | digits[i + 1] for i in range(0, len(digits), 2))


def set_nibble(byte: int, nibble: Nibble, value: int) -> int:
    if nibble is Nibble.HIGH:
        return ((value & 0x0F) << 4) | (byte & 0x0F)
    return (byte & 0xF0) | (value & 0x0F)


def bytes_to_text(data: Union[bytes, bytearray, Iterable[int]]) -> str:
    return "".join(chr(b) if is_printable(b) else PLACEHOLDER for b in data)


def text_char_to_byte(c: str) -> int:
    if len(c) != 1 or not is_printable(ord(c)):
        raise Unencodable(c)
    return ord(c)


def byte_category(b: int) -> ByteCategory:
    if b == 0x00:
        return ByteCategory.NULL
    if 0x21 <= b <= 0x7E:
        return ByteCategory.PRINTABLE
    if b in (0x20, 0x09, 0x0A, 0x0B, 0x0C, 0x0D):
        return ByteCategory.WHITESPACE
    if b < 0x80:
        return ByteCategory.ASCII_OTHER
    return ByteCategory.NON_ASCII


def encode_for_pane(pane: Pane, data: bytes) -> str:
    """Форматирование байт для буфера обмена в зависимости от активной панели."""
    if pane is Pane.HEX:
        return " ".join(bytes_to_hex(data))
    return bytes_to_text(data)
