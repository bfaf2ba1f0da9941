# editor/commands.py
"""Команды, которые ввод передаёт документу."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..codec.decoder import Pane
from ..codec.labels import LabelKind


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


@dataclass(frozen=True)
class MoveCursor:
    direction: Direction
    extend: bool = False


@dataclass(frozen=True)
class SetPaneFocus:
    pane: Pane


@dataclass(frozen=True)
class Overwrite:
    value: str


@dataclass(frozen=True)
class InsertByte:
    value: int = 0


@dataclass(frozen=True)
class DeleteByte:
    pass


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class IncreaseStreamLength:
    pass


@dataclass(frozen=True)
class DecreaseStreamLength:
    pass


@dataclass(frozen=True)
class IncreaseBitStream:
    pass


@dataclass(frozen=True)
class DecreaseBitStream:
    pass


@dataclass(frozen=True)
class JumpToOffset:
    offset: int


@dataclass(frozen=True)
class ToggleByteOrder:
    pass


@dataclass(frozen=True)
class Search:
    pattern: str


@dataclass(frozen=True)
class NextMatch:
    pass


@dataclass(frozen=True)
class PrevMatch:
    pass


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class Save:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class CopySelection:
    pass


@dataclass(frozen=True)
class CopyLabel:
    kind: LabelKind


Command = Union[
    MoveCursor, SetPaneFocus, Overwrite, InsertByte, DeleteByte, Backspace,
    IncreaseStreamLength, DecreaseStreamLength, IncreaseBitStream, DecreaseBitStream,
    JumpToOffset, ToggleByteOrder, Search, NextMatch, PrevMatch, Undo, Redo,
    Save, Quit, CopySelection, CopyLabel,
]
