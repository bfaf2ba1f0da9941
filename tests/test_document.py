import json

from hex_tool.codec.decoder import Nibble, Pane
from hex_tool.codec.labels import ByteOrder, LabelKind
from hex_tool.editor import commands as cmd


def data_of(doc):
    return doc.buffer.read(0, doc.length)


def test_labels_follow_byte_order(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    assert doc.labels[LabelKind.UNSIGNED_32].value == "16909060"
    doc.execute(cmd.ToggleByteOrder())
    assert doc.byte_order is ByteOrder.LITTLE
    assert doc.labels[LabelKind.UNSIGNED_32].value == "67305985"
    doc.execute(cmd.ToggleByteOrder())
    assert doc.labels[LabelKind.UNSIGNED_32].value == "16909060"


def test_overwrite_then_undo_is_clean(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    doc.execute(cmd.JumpToOffset(2))
    doc.execute(cmd.Overwrite("FF"))
    assert data_of(doc) == b"\x01\x02\xff\x04"
    assert doc.dirty
    assert doc.cursor.offset == 3
    doc.execute(cmd.Undo())
    assert data_of(doc) == b"\x01\x02\x03\x04"
    assert not doc.dirty
    assert doc.cursor.offset == 2


def test_overwrite_nibbles(open_doc):
    doc = open_doc(b"\x00\x00\x00")
    doc.execute(cmd.MoveCursor(cmd.Direction.RIGHT))
    assert doc.cursor.nibble is Nibble.LOW
    doc.execute(cmd.Overwrite("ABC"))
    assert data_of(doc) == b"\x0a\xbc\x00"
    assert doc.cursor.offset == 2
    assert doc.cursor.nibble is Nibble.HIGH
    assert len(doc.history) == 1


def test_overwrite_text_pane(open_doc):
    doc = open_doc(b"\x00\x00\x00")
    doc.execute(cmd.SetPaneFocus(Pane.TEXT))
    doc.execute(cmd.Overwrite("Hi"))
    assert data_of(doc) == b"Hi\x00"
    assert doc.cursor.offset == 2


def test_overwrite_at_eof_extends(open_doc):
    doc = open_doc(b"\x01")
    doc.execute(cmd.JumpToOffset(1))
    doc.execute(cmd.Overwrite("FF"))
    assert data_of(doc) == b"\x01\xff"
    doc.execute(cmd.Undo())
    assert doc.length == 1


def test_invalid_input_changes_nothing(open_doc, journal):
    doc = open_doc(b"\x01\x02")
    assert doc.dispatch(cmd.Overwrite("0G")) is False
    assert data_of(doc) == b"\x01\x02"
    assert not doc.dirty
    assert doc.notification
    records = [json.loads(line) for line in journal.read_text(encoding="utf-8").splitlines()]
    assert records[-1]["kind"] == "error"
    assert records[-1]["payload"]["error"] == "InvalidHex"


def test_search_and_wrap(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04\x02\x03")
    doc.execute(cmd.Search("0203"))
    assert doc.search.matches == [1, 4]
    assert doc.cursor.offset == 0
    offsets = []
    for _ in range(3):
        doc.execute(cmd.NextMatch())
        offsets.append(doc.cursor.offset)
    assert offsets == [1, 4, 1]
    doc.execute(cmd.PrevMatch())
    assert doc.cursor.offset == 4


def test_navigation_without_matches(open_doc):
    doc = open_doc(b"\x01\x02")
    assert doc.dispatch(cmd.NextMatch()) is False
    doc.execute(cmd.Search("FFFF"))
    assert doc.dispatch(cmd.NextMatch()) is False
    assert doc.cursor.offset == 0


def test_insert_shifts_search_results(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04\x02\x03")
    doc.execute(cmd.Search("0203"))
    doc.execute(cmd.InsertByte(0xEE))
    assert data_of(doc) == b"\xee\x01\x02\x03\x04\x02\x03"
    assert doc.search.matches == [2, 5]
    doc.execute(cmd.NextMatch())
    assert doc.cursor.offset == 2


def test_delete_and_backspace(open_doc):
    doc = open_doc(b"\x01\x02\x03")
    doc.execute(cmd.JumpToOffset(1))
    doc.execute(cmd.DeleteByte())
    assert data_of(doc) == b"\x01\x03"
    doc.execute(cmd.Backspace())
    assert data_of(doc) == b"\x03"
    assert doc.cursor.offset == 0
    doc.execute(cmd.Backspace())
    assert data_of(doc) == b"\x03"


def test_increase_stream_length(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    doc.execute(cmd.IncreaseStreamLength())
    assert doc.length == 5
    assert data_of(doc) == b"\x01\x02\x03\x04\x00"
    assert doc.dirty


def test_decrease_stream_length_at_eof(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    doc.execute(cmd.MoveCursor(cmd.Direction.END))
    assert doc.cursor.offset == 3
    doc.execute(cmd.DecreaseStreamLength())
    assert doc.length == 3
    assert doc.cursor.offset == 2
    doc.execute(cmd.Undo())
    assert data_of(doc) == b"\x01\x02\x03\x04"


def test_jump_out_of_range(open_doc):
    doc = open_doc(b"\x01\x02")
    assert doc.dispatch(cmd.JumpToOffset(2)) is True
    assert doc.dispatch(cmd.JumpToOffset(3)) is False
    assert doc.cursor.offset == 2


def test_bit_stream_commands(open_doc):
    doc = open_doc(b"\xa5\xff")
    doc.execute(cmd.IncreaseBitStream())
    assert doc.stream_bits == 9
    assert doc.labels[LabelKind.BINARY].value == "101001011"
    doc.execute(cmd.DecreaseBitStream())
    assert doc.stream_bits == 8


def test_save_then_undo_is_dirty(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    doc.execute(cmd.JumpToOffset(2))
    doc.execute(cmd.Overwrite("FF"))
    doc.execute(cmd.Save())
    assert not doc.dirty
    assert doc.path.read_bytes() == b"\x01\x02\xff\x04"
    doc.execute(cmd.Undo())
    assert doc.dirty
    assert data_of(doc) == b"\x01\x02\x03\x04"


def test_selection_copy(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    doc.execute(cmd.MoveCursor(cmd.Direction.RIGHT, extend=True))
    doc.execute(cmd.MoveCursor(cmd.Direction.RIGHT, extend=True))
    assert (doc.selection.start, doc.selection.end) == (0, 2)
    assert doc.execute(cmd.CopySelection()) == "01 02"
    doc.execute(cmd.SetPaneFocus(Pane.TEXT))
    assert doc.execute(cmd.CopySelection()) == ".."
    doc.execute(cmd.MoveCursor(cmd.Direction.LEFT))
    assert doc.selection is None


def test_copy_label(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04")
    assert doc.execute(cmd.CopyLabel(LabelKind.UNSIGNED_16)) == "258"
    doc.execute(cmd.JumpToOffset(3))
    assert doc.dispatch(cmd.CopyLabel(LabelKind.UNSIGNED_16)) is False


def test_undo_with_empty_history(open_doc):
    doc = open_doc(b"\x01")
    doc.execute(cmd.Undo())
    assert doc.notification == "Нечего отменять"


def test_snapshot(open_doc):
    doc = open_doc(bytes(range(40)), rows=2)
    doc.execute(cmd.Search("0203"))
    snap = doc.snapshot()
    assert snap.length == 40
    assert snap.window_offset == 0
    assert snap.window_bytes == bytes(range(32))
    assert snap.search_match_highlights == ((2, 4),)
    assert not snap.dirty
    doc.execute(cmd.JumpToOffset(39))
    assert doc.snapshot().window_offset == 16


def test_overwrite_removes_broken_match_highlight(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04\x02\x03")
    doc.execute(cmd.Search("0203"))
    doc.execute(cmd.JumpToOffset(1))
    doc.execute(cmd.Overwrite("FF"))
    assert doc.snapshot().search_match_highlights == ((4, 6),)
    doc.execute(cmd.Undo())
    assert doc.snapshot().search_match_highlights == ((1, 3), (4, 6))
    doc.execute(cmd.Redo())
    assert doc.snapshot().search_match_highlights == ((4, 6),)


def test_extending_overwrite_keeps_matches_in_place(open_doc):
    doc = open_doc(b"\x00\x02\x03")
    doc.execute(cmd.Search("0203"))
    doc.execute(cmd.JumpToOffset(1))
    doc.execute(cmd.Overwrite("0203AABB"))
    assert data_of(doc) == b"\x00\x02\x03\xaa\xbb"
    assert doc.snapshot().search_match_highlights == ((1, 3),)
    doc.execute(cmd.Undo())
    assert data_of(doc) == b"\x00\x02\x03"
    assert doc.snapshot().search_match_highlights == ((1, 3),)


def test_insert_inside_match_drops_it(open_doc):
    doc = open_doc(b"\x01\x02\x03\x04\x02\x03")
    doc.execute(cmd.Search("0203"))
    doc.execute(cmd.JumpToOffset(2))
    doc.execute(cmd.InsertByte(0xEE))
    assert data_of(doc) == b"\x01\x02\xee\x03\x04\x02\x03"
    assert doc.snapshot().search_match_highlights == ((5, 7),)
    doc.execute(cmd.DeleteByte())
    assert doc.snapshot().search_match_highlights == ((1, 3), (4, 6))
