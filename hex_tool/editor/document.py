# editor/document.py
"""
Документ - единственный владелец состояния редактора: окно файла,
курсор, выделение, история правок, метки и состояние поиска.
Команда применяется целиком, затем пересчитываются производные виды;
экран читает только неизменяемый снимок (snapshot).
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..codec.decoder import (
    Nibble, Pane, encode_for_pane, hex_digit_to_nibble, set_nibble, text_char_to_byte,
)
from ..codec.labels import ByteOrder, Label, LabelEngine, LabelKind
from ..config import BYTES_PER_ROW, CACHE_BUDGET, CHUNK_SIZE, DEFAULT_ROWS, DEFAULT_STREAM_BITS
from ..errors import HexToolError, InvalidInput, IoError, NotFound
from ..journal import log_event
from ..search.engine import SearchPattern, SearchState, compile_pattern, scan
from ..storage.window import FileWindow
from . import commands as cmd
from . import history
from .history import Edit, EditKind, UndoStack


@dataclass
class Cursor:
    offset: int = 0
    nibble: Nibble = Nibble.HIGH
    pane: Pane = Pane.HEX


@dataclass(frozen=True)
class Selection:
    start: int
    end: int  # не включая

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class Window:
    """Видимая часть файла: смещение первой строки и число строк."""
    offset: int = 0
    rows: int = DEFAULT_ROWS

    @property
    def length(self) -> int:
        return self.rows * BYTES_PER_ROW


@dataclass(frozen=True)
class Snapshot:
    path: str
    length: int
    window_offset: int
    window_bytes: bytes
    cursor: Cursor
    selection: Optional[Selection]
    labels: Tuple[Label, ...]
    search_match_highlights: Tuple[Tuple[int, int], ...]
    current_match: Optional[int]
    dirty: bool
    byte_order: ByteOrder
    notification: str
    bytes_per_row: int = BYTES_PER_ROW


class Document:
    def __init__(self, buffer: FileWindow, rows: int = DEFAULT_ROWS,
                 stream_bits: int = DEFAULT_STREAM_BITS):
        self.buffer = buffer
        self.history = UndoStack()
        self.search = SearchState()
        self.cursor = Cursor()
        self.anchor: Optional[int] = None
        self.view = Window(rows=rows)
        self.byte_order = ByteOrder.BIG
        self.notification = ""
        self.quit_requested = False
        self.save_failed = False
        self.clipboard: Optional[str] = None
        self._labels = LabelEngine(buffer, stream_bits)
        self._label_key = None
        self._handlers = {
            cmd.MoveCursor: self._move,
            cmd.SetPaneFocus: self._set_pane,
            cmd.Overwrite: self._overwrite,
            cmd.InsertByte: self._insert,
            cmd.DeleteByte: self._delete,
            cmd.Backspace: self._backspace,
            cmd.IncreaseStreamLength: self._grow,
            cmd.DecreaseStreamLength: self._shrink,
            cmd.IncreaseBitStream: lambda c: self._labels.set_stream_bits(self._labels.stream_bits + 1),
            cmd.DecreaseBitStream: lambda c: self._labels.set_stream_bits(self._labels.stream_bits - 1),
            cmd.JumpToOffset: self._jump,
            cmd.ToggleByteOrder: self._toggle_order,
            cmd.Search: self._search,
            cmd.NextMatch: lambda c: self._navigate(forward=True),
            cmd.PrevMatch: lambda c: self._navigate(forward=False),
            cmd.Undo: self._undo,
            cmd.Redo: self._redo,
            cmd.Save: self._save,
            cmd.Quit: self._quit,
            cmd.CopySelection: self._copy_selection,
            cmd.CopyLabel: self._copy_label,
        }
        self._refresh()

    @classmethod
    def open(cls, path, chunk_size: int = CHUNK_SIZE, cache_budget: int = CACHE_BUDGET,
             rows: int = DEFAULT_ROWS, stream_bits: int = DEFAULT_STREAM_BITS) -> "Document":
        buffer = FileWindow.open(path, chunk_size=chunk_size, cache_budget=cache_budget)
        return cls(buffer, rows=rows, stream_bits=stream_bits)

    def close(self):
        self.buffer.close()

    # ---------- состояние ----------
    @property
    def path(self) -> Path:
        return self.buffer.path

    @property
    def length(self) -> int:
        return self.buffer.length

    @property
    def dirty(self) -> bool:
        return self.history.dirty or self.buffer.length != self.buffer.disk_length

    @property
    def labels(self) -> Dict[LabelKind, Label]:
        return self._labels.labels

    @property
    def stream_bits(self) -> int:
        return self._labels.stream_bits

    @property
    def selection(self) -> Optional[Selection]:
        if self.anchor is None:
            return None
        start = min(self.anchor, self.cursor.offset)
        end = min(self.length, max(self.anchor, self.cursor.offset) + 1)
        if start >= end:
            return None
        return Selection(start, end)

    # ---------- команды ----------
    def execute(self, command: "cmd.Command"):
        """Применить команду. Ошибки ввода/IO пробрасываются наверх."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise InvalidInput(f"Неизвестная команда: {command!r}")
        self.notification = ""
        try:
            return handler(command)
        finally:
            self._refresh()

    def dispatch(self, command: "cmd.Command") -> bool:
        """
        Граница обработки команды: все ошибки редактора восстановимые,
        они превращаются в уведомление и пишутся в журнал.
        """
        try:
            self.execute(command)
        except HexToolError as e:
            self.notification = str(e)
            log_event("error", {"command": type(command).__name__, "error": type(e).__name__,
                                "message": str(e), "path": str(self.path)})
            return False
        return True

    def snapshot(self) -> Snapshot:
        start, rows = self.view.offset, self.view.length
        end = start + rows
        order = [k for k in LabelKind if k in self.labels]
        return Snapshot(
            path=str(self.path),
            length=self.length,
            window_offset=start,
            window_bytes=self.buffer.read(start, rows),
            cursor=replace(self.cursor),
            selection=self.selection,
            labels=tuple(self.labels[k] for k in order),
            search_match_highlights=tuple(self.search.highlights(start, end)),
            current_match=self.search.current,
            dirty=self.dirty,
            byte_order=self.byte_order,
            notification=self.notification,
        )

    # ---------- двухфазные операции для фонового потока ----------
    def prepare_search(self, text: str) -> SearchPattern:
        return compile_pattern(text)

    def finish_search(self, pattern: SearchPattern, matches) -> int:
        self.search.reset(pattern, matches)
        self.notification = f"Поиск: {pattern.text} - найдено {len(matches)}"
        log_event("search", {"pattern": pattern.text, "encoding": pattern.encoding,
                             "matches": len(matches), "path": str(self.path)})
        self._refresh()
        return len(matches)

    def finish_save(self, tmp, generation: int) -> bool:
        try:
            adopted = self.buffer.adopt(tmp, generation)
        except IoError:
            self.save_failed = True
            raise
        if not adopted:
            self.notification = "Файл менялся во время сохранения - сохраните ещё раз"
            return False
        self._saved()
        return True

    # ---------- обработчики ----------
    def _move(self, c: cmd.MoveCursor):
        before = self.cursor.offset
        cur = self.cursor
        step = BYTES_PER_ROW
        last = max(0, self.length - 1)
        d = c.direction
        if d is cmd.Direction.LEFT:
            if cur.pane is Pane.HEX and cur.nibble is Nibble.LOW:
                cur.nibble = Nibble.HIGH
            elif cur.offset > 0:
                cur.offset -= 1
                cur.nibble = Nibble.LOW if cur.pane is Pane.HEX else Nibble.HIGH
        elif d is cmd.Direction.RIGHT:
            if cur.pane is Pane.HEX and cur.nibble is Nibble.HIGH and cur.offset < self.length:
                cur.nibble = Nibble.LOW
            elif cur.offset < self.length:
                cur.offset += 1
                cur.nibble = Nibble.HIGH
        elif d is cmd.Direction.UP:
            if cur.offset >= step:
                cur.offset -= step
        elif d is cmd.Direction.DOWN:
            if cur.offset + step <= self.length:
                cur.offset += step
        elif d is cmd.Direction.HOME:
            cur.offset -= cur.offset % step
            cur.nibble = Nibble.HIGH
        elif d is cmd.Direction.END:
            cur.offset = min(cur.offset - cur.offset % step + step - 1, last)
            cur.nibble = Nibble.LOW if cur.pane is Pane.HEX else Nibble.HIGH
        elif d is cmd.Direction.PAGE_UP:
            cur.offset = max(0, cur.offset - self.view.length)
        elif d is cmd.Direction.PAGE_DOWN:
            cur.offset = min(cur.offset + self.view.length, last)
        if c.extend:
            if self.anchor is None:
                self.anchor = before
        else:
            self.anchor = None
        self.search.forget_position()

    def _set_pane(self, c: cmd.SetPaneFocus):
        self.cursor.pane = c.pane
        self.cursor.nibble = Nibble.HIGH

    def _overwrite(self, c: cmd.Overwrite):
        cur = self.cursor
        if cur.pane is Pane.HEX:
            digits = [hex_digit_to_nibble(ch) for ch in c.value if not ch.isspace()]
            if not digits:
                raise InvalidInput("Пустой ввод")
            first = 0 if cur.nibble is Nibble.HIGH else 1
            count = (first + len(digits) + 1) // 2
            new = bytearray(self.buffer.read(cur.offset, count).ljust(count, b"\x00"))
            pos = first
            for value in digits:
                i = pos // 2
                new[i] = set_nibble(new[i], Nibble.HIGH if pos % 2 == 0 else Nibble.LOW, value)
                pos += 1
            self._commit(history.overwrite(self.buffer, cur.offset, bytes(new)))
            cur.offset += pos // 2
            cur.nibble = Nibble.HIGH if pos % 2 == 0 else Nibble.LOW
        else:
            if not c.value:
                raise InvalidInput("Пустой ввод")
            data = bytes(text_char_to_byte(ch) for ch in c.value)
            self._commit(history.overwrite(self.buffer, cur.offset, data))
            cur.offset += len(data)
            cur.nibble = Nibble.HIGH
        self.anchor = None

    def _insert(self, c: cmd.InsertByte):
        if not 0 <= c.value <= 0xFF:
            raise InvalidInput(f"Значение байта вне диапазона: {c.value}")
        self._commit(history.insert(self.cursor.offset, bytes([c.value])))
        self.cursor.nibble = Nibble.HIGH

    def _delete(self, c: cmd.DeleteByte):
        if self.cursor.offset >= self.length:
            return
        self._commit(history.delete(self.buffer, self.cursor.offset))
        self.cursor.nibble = Nibble.HIGH

    def _backspace(self, c: cmd.Backspace):
        if self.cursor.offset == 0:
            return
        self._commit(history.delete(self.buffer, self.cursor.offset - 1))
        self.cursor.offset -= 1
        self.cursor.nibble = Nibble.HIGH

    def _grow(self, c: cmd.IncreaseStreamLength):
        self._commit(history.resize(self.buffer, self.length + 1))

    def _shrink(self, c: cmd.DecreaseStreamLength):
        if not self.length:
            return
        self._commit(history.resize(self.buffer, self.length - 1))
        if self.cursor.offset >= self.length:
            self.cursor.offset = max(0, self.length - 1)

    def _jump(self, c: cmd.JumpToOffset):
        if not 0 <= c.offset <= self.length:
            raise InvalidInput(f"Смещение {c.offset} вне файла (длина {self.length})")
        self.cursor.offset = c.offset
        self.cursor.nibble = Nibble.HIGH
        self.anchor = None
        self.search.forget_position()

    def _toggle_order(self, c: cmd.ToggleByteOrder):
        self.byte_order = self.byte_order.toggle()

    def _search(self, c: cmd.Search):
        pattern = self.prepare_search(c.pattern)
        self.finish_search(pattern, scan(self.buffer, pattern))

    def _navigate(self, forward: bool):
        state = self.search
        if state.pattern is None:
            raise NotFound("Нет поискового запроса")
        if state.stale:
            self._rescan()
        if not state.matches:
            raise NotFound(f"Не найдено: {state.pattern.text}")
        offset = state.next_match(self.cursor.offset) if forward else state.prev_match(self.cursor.offset)
        self.cursor.offset = offset
        self.cursor.nibble = Nibble.HIGH
        self.anchor = None
        self.notification = f"Поиск: {state.pattern.text} [{state.index + 1}/{len(state.matches)}]"

    def _undo(self, c: cmd.Undo):
        edit = self.history.undo(self.buffer)
        if edit is None:
            self.notification = "Нечего отменять"
            return
        self._after_edit(edit, -1)
        self.cursor.offset = edit.offset

    def _redo(self, c: cmd.Redo):
        edit = self.history.redo(self.buffer)
        if edit is None:
            self.notification = "Нечего повторять"
            return
        self._after_edit(edit, +1)
        self.cursor.offset = edit.offset

    def _save(self, c: cmd.Save):
        try:
            self.buffer.save()
        except IoError:
            self.save_failed = True
            raise
        self._saved()

    def _quit(self, c: cmd.Quit):
        self.quit_requested = True

    def _copy_selection(self, c: cmd.CopySelection) -> str:
        sel = self.selection or Selection(self.cursor.offset, min(self.cursor.offset + 1, self.length))
        text = encode_for_pane(self.cursor.pane, self.buffer.read(sel.start, len(sel)))
        self.clipboard = text
        return text

    def _copy_label(self, c: cmd.CopyLabel) -> str:
        label = self.labels.get(c.kind)
        if label is None or not label.available:
            raise InvalidInput(f"Метка недоступна: {c.kind.title}")
        self.clipboard = label.value
        return label.value

    # ---------- внутреннее ----------
    def _commit(self, edit: Edit):
        self.history.commit(edit, self.buffer)
        self._after_edit(edit, +1)

    def _after_edit(self, edit: Edit, sign: int):
        delta = edit.delta * sign
        # перезапись меняет длину только в хвосте: позиции не сдвигаются
        if delta and edit.kind is not EditKind.OVERWRITE:
            point = edit.offset
            if self.anchor is not None and self.anchor > point:
                self.anchor = max(point, self.anchor + delta)
            if self.cursor.offset > point:
                self.cursor.offset = max(point, self.cursor.offset + delta)
        if self.search.pattern is not None:
            self.search.stale = True
            self._rescan()

    def _rescan(self):
        """Совпадения пересчитываются по текущему содержимому после каждой правки."""
        self.search.refresh(scan(self.buffer, self.search.pattern))

    def _saved(self):
        self.history.mark_saved()
        self.save_failed = False
        self.notification = f"Сохранено: {self.path} ({self.length} байт)"
        log_event("save", {"path": str(self.path), "bytes": self.length})

    def _clamp(self):
        self.cursor.offset = max(0, min(self.cursor.offset, self.length))
        if self.anchor is not None:
            self.anchor = max(0, min(self.anchor, self.length))

    def _follow_cursor(self):
        row = self.cursor.offset // BYTES_PER_ROW
        first = self.view.offset // BYTES_PER_ROW
        if row < first:
            self.view.offset = row * BYTES_PER_ROW
        elif row >= first + self.view.rows:
            self.view.offset = (row - self.view.rows + 1) * BYTES_PER_ROW

    def _refresh(self):
        self._clamp()
        self._follow_cursor()
        key = (self.cursor.offset, self.buffer.generation)
        if self._label_key != key:
            self._labels.compute(self.cursor.offset, self.byte_order)
            self._label_key = key
        elif self._labels.byte_order is not self.byte_order:
            self._labels.reorder(self.byte_order)
