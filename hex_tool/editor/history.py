# editor/history.py
"""
Правки как обратимые записи и стеки Undo/Redo.

Каждая правка хранит старые и новые байты, поэтому её можно откатить
и повторить независимо от того, что сейчас лежит на диске (история
переживает сохранение).
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EditKind(Enum):
    OVERWRITE = "overwrite"
    INSERT = "insert"
    DELETE = "delete"
    RESIZE = "resize"


@dataclass(frozen=True)
class Edit:
    kind: EditKind
    offset: int
    old: bytes
    new: bytes

    @property
    def delta(self) -> int:
        """На сколько правка меняет длину файла."""
        return len(self.new) - len(self.old)

    def apply(self, window) -> None:
        if self.kind is EditKind.OVERWRITE:
            window.write(self.offset, self.new)
        elif self.kind is EditKind.INSERT:
            window.insert(self.offset, self.new)
        elif self.kind is EditKind.DELETE:
            window.delete(self.offset, len(self.old))
        else:
            window.resize(self.offset + len(self.new))

    def revert(self, window) -> None:
        if self.kind is EditKind.OVERWRITE:
            window.write(self.offset, self.old)
            if len(self.old) < len(self.new):
                # перезапись удлинила файл - возвращаем прежний конец
                window.resize(self.offset + len(self.old))
        elif self.kind is EditKind.INSERT:
            window.delete(self.offset, len(self.new))
        elif self.kind is EditKind.DELETE:
            window.insert(self.offset, self.old)
        else:
            window.resize(self.offset)
            if self.old:
                window.write(self.offset, self.old)


def overwrite(window, offset: int, new: bytes) -> Edit:
    return Edit(EditKind.OVERWRITE, offset, window.read(offset, len(new)), bytes(new))


def insert(offset: int, new: bytes) -> Edit:
    return Edit(EditKind.INSERT, offset, b"", bytes(new))


def delete(window, offset: int, count: int = 1) -> Edit:
    return Edit(EditKind.DELETE, offset, window.read(offset, count), b"")


def resize(window, new_length: int) -> Edit:
    """Изменение длины: offset - меньшая из длин, old/new - срезанный или добавленный хвост."""
    length = window.length
    if new_length >= length:
        return Edit(EditKind.RESIZE, length, b"", bytes(new_length - length))
    return Edit(EditKind.RESIZE, new_length, window.read(new_length, length - new_length), b"")


class UndoStack:
    def __init__(self):
        self._undo: List[Edit] = []
        self._redo: List[Edit] = []
        # глубина стека, соответствующая файлу на диске; None - недостижима
        self._saved_depth: Optional[int] = 0

    def commit(self, edit: Edit, window) -> Edit:
        edit.apply(window)
        if self._saved_depth is not None and self._saved_depth > len(self._undo):
            # сохранённое состояние было в redo - после новой правки к нему не вернуться
            self._saved_depth = None
        self._undo.append(edit)
        self._redo.clear()
        return edit

    def undo(self, window) -> Optional[Edit]:
        if not self._undo:
            return None
        edit = self._undo[-1]
        edit.revert(window)
        self._redo.append(self._undo.pop())
        return edit

    def redo(self, window) -> Optional[Edit]:
        if not self._redo:
            return None
        edit = self._redo[-1]
        edit.apply(window)
        self._undo.append(self._redo.pop())
        return edit

    def mark_saved(self):
        self._saved_depth = len(self._undo)

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def depth(self) -> int:
        return len(self._undo)

    @property
    def dirty(self) -> bool:
        return self._saved_depth != len(self._undo)

    def __len__(self) -> int:
        return len(self._undo)
