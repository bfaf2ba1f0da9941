# codec/labels.py
"""
Метки под курсором: знаковые/беззнаковые целые 8/16/32/64 бит,
float 32/64 и смещение. Многобайтовые значения читаются в выбранном
порядке байт. Если байт до конца файла не хватает, метка недоступна
(value = None) - из неполных данных ничего не считаем.

Дополнительно - битовый поток: первые stream_bits бит под курсором в
двоичном, восьмеричном и шестнадцатеричном виде (после EOF - нули).
"""
from __future__ import annotations
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..config import DEFAULT_STREAM_BITS

MAX_STREAM_BITS = 64


class ByteOrder(Enum):
    BIG = "big"
    LITTLE = "little"

    def toggle(self) -> "ByteOrder":
        return ByteOrder.LITTLE if self is ByteOrder.BIG else ByteOrder.BIG

    @property
    def prefix(self) -> str:
        return ">" if self is ByteOrder.BIG else "<"


class LabelKind(Enum):
    # (заголовок, ширина в байтах, формат struct)
    SIGNED_8 = ("Знаковое 8 бит", 1, "b")
    UNSIGNED_8 = ("Беззнаковое 8 бит", 1, "B")
    SIGNED_16 = ("Знаковое 16 бит", 2, "h")
    UNSIGNED_16 = ("Беззнаковое 16 бит", 2, "H")
    SIGNED_32 = ("Знаковое 32 бит", 4, "i")
    UNSIGNED_32 = ("Беззнаковое 32 бит", 4, "I")
    SIGNED_64 = ("Знаковое 64 бит", 8, "q")
    UNSIGNED_64 = ("Беззнаковое 64 бит", 8, "Q")
    FLOAT_32 = ("Float 32 бит", 4, "f")
    FLOAT_64 = ("Float 64 бит", 8, "d")
    BINARY = ("Двоичное", 0, "")
    OCTAL = ("Восьмеричное", 0, "")
    HEXADECIMAL = ("Шестнадцатеричное", 0, "")
    STREAM_LENGTH = ("Длина потока, бит", 0, "")
    OFFSET = ("Смещение", 0, "")

    def __init__(self, title: str, width: int, fmt: str):
        self.title = title
        self.width = width
        self.fmt = fmt

    @property
    def numeric(self) -> bool:
        return bool(self.fmt)

    @property
    def order_dependent(self) -> bool:
        return self.width > 1

    @classmethod
    def from_name(cls, name: str) -> "LabelKind":
        key = name.strip().upper().replace("-", "_")
        aliases = {"I8": "SIGNED_8", "U8": "UNSIGNED_8", "I16": "SIGNED_16", "U16": "UNSIGNED_16",
                   "I32": "SIGNED_32", "U32": "UNSIGNED_32", "I64": "SIGNED_64", "U64": "UNSIGNED_64",
                   "F32": "FLOAT_32", "F64": "FLOAT_64", "BIN": "BINARY", "OCT": "OCTAL",
                   "HEX": "HEXADECIMAL", "OFF": "OFFSET"}
        try:
            return cls[aliases.get(key, key)]
        except KeyError:
            raise ValueError(f"Неизвестная метка: {name}") from None


@dataclass(frozen=True)
class Label:
    kind: LabelKind
    byte_order: Optional[ByteOrder]
    value: Optional[str]

    @property
    def available(self) -> bool:
        return self.value is not None

    @property
    def title(self) -> str:
        return self.kind.title


def format_number(kind: LabelKind, data: bytes, order: ByteOrder) -> Optional[str]:
    if len(data) < kind.width:
        return None
    value = struct.unpack(order.prefix + kind.fmt, data[:kind.width])[0]
    if kind in (LabelKind.FLOAT_32, LabelKind.FLOAT_64):
        return f"{value:e}"
    return str(value)


def stream_bytes(data: bytes, bits: int) -> bytes:
    """Первые bits бит, дополненные нулями; хвост последнего байта обнулён."""
    full, rest = divmod(bits, 8)
    buf = bytearray(data[:full].ljust(full, b"\x00"))
    if rest:
        last = data[full] if len(data) > full else 0
        buf.append((last >> (8 - rest)) << (8 - rest))
    return bytes(buf)


class LabelEngine:
    """Считает метки по окну файла и кэширует байты под курсором."""

    def __init__(self, window, stream_bits: int = DEFAULT_STREAM_BITS):
        self.window = window
        self.stream_bits = stream_bits
        self.offset = 0
        self.byte_order = ByteOrder.BIG
        self.labels: Dict[LabelKind, Label] = {}
        self._data = b""

    def compute(self, offset: int, byte_order: ByteOrder) -> Dict[LabelKind, Label]:
        self.offset = offset
        self.byte_order = byte_order
        self._data = self.window.read(offset, 8)
        labels = {}
        for kind in LabelKind:
            if kind.numeric:
                order = byte_order if kind.order_dependent else None
                labels[kind] = Label(kind, order, format_number(kind, self._data, byte_order))
        labels.update(self._stream_labels())
        labels[LabelKind.OFFSET] = Label(LabelKind.OFFSET, None, f"{offset} (0x{offset:X})")
        self.labels = labels
        return labels

    def reorder(self, byte_order: ByteOrder) -> Dict[LabelKind, Label]:
        """Пересчитать только многобайтовые метки под новый порядок байт."""
        self.byte_order = byte_order
        labels = dict(self.labels)
        for kind in LabelKind:
            if kind.numeric and kind.order_dependent:
                labels[kind] = Label(kind, byte_order, format_number(kind, self._data, byte_order))
        self.labels = labels
        return labels

    def set_stream_bits(self, bits: int) -> Dict[LabelKind, Label]:
        self.stream_bits = max(1, min(MAX_STREAM_BITS, bits))
        labels = dict(self.labels)
        labels.update(self._stream_labels())
        self.labels = labels
        return labels

    def _stream_labels(self) -> Dict[LabelKind, Label]:
        bits = self.stream_bits
        stream = stream_bytes(self._data, bits)
        binary = "".join(f"{b:08b}" for b in stream)[:bits]
        return {
            LabelKind.BINARY: Label(LabelKind.BINARY, None, binary),
            LabelKind.OCTAL: Label(LabelKind.OCTAL, None, " ".join(f"{b:03o}" for b in stream)),
            LabelKind.HEXADECIMAL: Label(LabelKind.HEXADECIMAL, None, " ".join(f"{b:02X}" for b in stream)),
            LabelKind.STREAM_LENGTH: Label(LabelKind.STREAM_LENGTH, None, str(bits)),
        }
