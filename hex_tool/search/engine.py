# search/engine.py
"""
Поиск последовательности байт по всему файлу.

Шаблон: строка чётной длины из HEX-цифр - это байты ('0203' -> 02 03);
любая другая строка - печатные символы по одному байту на символ.
Сканирование идёт блоками через окно файла (весь файл в память не
читается), между блоками проверяется флаг отмены. Совпадения не
перекрываются, смещения по возрастанию.
"""
from __future__ import annotations
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..codec.decoder import HEX_DIGITS, text_char_to_byte
from ..config import SCAN_BLOCK
from ..errors import InvalidPattern, NotFound, ScanCancelled, Unencodable


@dataclass(frozen=True)
class SearchPattern:
    text: str
    data: bytes
    encoding: str  # "hex" | "text"

    def __len__(self) -> int:
        return len(self.data)


def compile_pattern(text: str) -> SearchPattern:
    if not text:
        raise InvalidPattern("Пустой поисковый запрос")
    if len(text) % 2 == 0 and all(c in HEX_DIGITS for c in text):
        return SearchPattern(text, bytes.fromhex(text), "hex")
    try:
        data = bytes(text_char_to_byte(c) for c in text)
    except Unencodable as e:
        raise InvalidPattern(f"Шаблон не HEX и не однобайтовый текст: {e}") from e
    return SearchPattern(text, data, "text")


def scan(window, pattern: SearchPattern, cancelled: Optional[Callable[[], bool]] = None,
         block_size: Optional[int] = None) -> List[int]:
    """Все неперекрывающиеся вхождения pattern в окне файла."""
    needle = pattern.data
    if not needle:
        return []
    keep = len(needle) - 1
    matches: List[int] = []
    carry = b""
    next_allowed = 0
    for offset, block in window.iter_blocks(block_size or SCAN_BLOCK):
        if cancelled is not None and cancelled():
            raise ScanCancelled(f"Поиск '{pattern.text}' прерван")
        buf = carry + block
        base = offset - len(carry)
        pos = buf.find(needle, max(0, next_allowed - base))
        while pos >= 0:
            matches.append(base + pos)
            next_allowed = base + pos + len(needle)
            pos = buf.find(needle, pos + len(needle))
        carry = buf[-keep:] if keep else b""
    return matches


@dataclass
class SearchState:
    pattern: Optional[SearchPattern] = None
    matches: List[int] = field(default_factory=list)
    index: Optional[int] = None
    stale: bool = False

    def reset(self, pattern: SearchPattern, matches: List[int]):
        self.pattern = pattern
        self.matches = list(matches)
        self.index = None
        self.stale = False

    @property
    def current(self) -> Optional[int]:
        if self.index is None or not self.matches:
            return None
        return self.matches[self.index]

    def next_match(self, cursor: int) -> int:
        if not self.matches:
            raise NotFound("Совпадений нет")
        if self.index is None:
            i = bisect_left(self.matches, cursor)
            self.index = i if i < len(self.matches) else 0
        else:
            self.index = (self.index + 1) % len(self.matches)
        return self.matches[self.index]

    def prev_match(self, cursor: int) -> int:
        if not self.matches:
            raise NotFound("Совпадений нет")
        if self.index is None:
            i = bisect_right(self.matches, cursor) - 1
            self.index = i if i >= 0 else len(self.matches) - 1
        else:
            self.index = (self.index - 1) % len(self.matches)
        return self.matches[self.index]

    def forget_position(self):
        """Курсор ушёл сам - следующая навигация идёт от курсора."""
        self.index = None

    def refresh(self, matches: List[int]):
        """Результаты пересканирования тем же шаблоном; уцелевшее текущее совпадение остаётся текущим."""
        current = self.current
        self.matches = list(matches)
        self.index = None
        self.stale = False
        if current is not None:
            i = bisect_left(self.matches, current)
            if i < len(self.matches) and self.matches[i] == current:
                self.index = i

    def highlights(self, start: int, end: int) -> List[tuple]:
        """Диапазоны [s, e) совпадений, задевающих окно [start, end)."""
        # пока результаты не пересчитаны, подсвечивать нечего
        if self.pattern is None or self.stale or not self.matches:
            return []
        width = len(self.pattern)
        i = bisect_left(self.matches, start - width + 1)
        out = []
        while i < len(self.matches) and self.matches[i] < end:
            out.append((self.matches[i], self.matches[i] + width))
            i += 1
        return out
