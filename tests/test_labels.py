import pytest

from hex_tool.codec.labels import ByteOrder, LabelEngine, LabelKind, stream_bytes
from hex_tool.storage.window import FileWindow


@pytest.fixture
def engine(make_file):
    windows = []

    def _make(data: bytes, stream_bits=8):
        w = FileWindow.open(make_file(data))
        windows.append(w)
        return LabelEngine(w, stream_bits)
    yield _make
    for w in windows:
        w.close()


def test_u32_in_both_orders(engine):
    e = engine(b"\x01\x02\x03\x04")
    labels = e.compute(0, ByteOrder.BIG)
    assert labels[LabelKind.UNSIGNED_32].value == "16909060"
    labels = e.reorder(ByteOrder.LITTLE)
    assert labels[LabelKind.UNSIGNED_32].value == "67305985"


def test_double_toggle_restores_labels(engine):
    e = engine(bytes(range(1, 9)))
    before = e.compute(0, ByteOrder.BIG)
    e.reorder(ByteOrder.BIG.toggle())
    after = e.reorder(ByteOrder.BIG.toggle().toggle())
    assert after == before


def test_single_byte_labels_ignore_order(engine):
    e = engine(b"\xff\x00")
    before = e.compute(0, ByteOrder.BIG)
    after = e.reorder(ByteOrder.LITTLE)
    assert after[LabelKind.SIGNED_8] is before[LabelKind.SIGNED_8]
    assert after[LabelKind.SIGNED_8].value == "-1"
    assert after[LabelKind.UNSIGNED_8].value == "255"


def test_labels_unavailable_near_eof(engine):
    e = engine(b"\x01\x02\x03")
    labels = e.compute(1, ByteOrder.BIG)
    assert labels[LabelKind.UNSIGNED_16].value == "515"
    assert not labels[LabelKind.UNSIGNED_32].available
    assert not labels[LabelKind.FLOAT_64].available
    labels = e.compute(3, ByteOrder.BIG)
    assert not labels[LabelKind.UNSIGNED_8].available
    assert labels[LabelKind.OFFSET].value == "3 (0x3)"


def test_float_label(engine):
    e = engine(b"\x3f\x80\x00\x00")
    labels = e.compute(0, ByteOrder.BIG)
    assert labels[LabelKind.FLOAT_32].value == "1.000000e+00"


def test_stream_labels(engine):
    e = engine(b"\xa5\xff")
    labels = e.compute(0, ByteOrder.BIG)
    assert labels[LabelKind.BINARY].value == "10100101"
    assert labels[LabelKind.HEXADECIMAL].value == "A5"
    labels = e.set_stream_bits(12)
    assert labels[LabelKind.BINARY].value == "101001011111"
    assert labels[LabelKind.HEXADECIMAL].value == "A5 F0"
    assert labels[LabelKind.STREAM_LENGTH].value == "12"


def test_stream_bits_clamped(engine):
    e = engine(b"\x00")
    e.compute(0, ByteOrder.BIG)
    e.set_stream_bits(0)
    assert e.stream_bits == 1
    e.set_stream_bits(1000)
    assert e.stream_bits == 64


def test_stream_bytes_zero_fill_after_eof():
    assert stream_bytes(b"\xff", 16) == b"\xff\x00"
    assert stream_bytes(b"\xff", 3) == b"\xe0"


def test_label_names():
    assert LabelKind.from_name("u32") is LabelKind.UNSIGNED_32
    assert LabelKind.from_name("float-64") is LabelKind.FLOAT_64
    with pytest.raises(ValueError):
        LabelKind.from_name("u12")
