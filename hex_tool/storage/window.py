# storage/window.py
"""
Менеджер окна файла: побайтовое чтение/запись по всему файлу поверх
загрузчика чанков. Файл целиком в память не грузится никогда.

Содержимое описывается таблицей кусков (piece table). Кусок ссылается
на один из трёх источников:
  FILE  - исходный файл на диске (читается через ChunkLoader);
  ADDED - добавочный буфер с введёнными байтами (только дописывается);
  ZERO  - нули от увеличения длины, в памяти не хранятся.
Память растёт с числом правок, а не с размером файла.
"""
from __future__ import annotations
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from ..config import CACHE_BUDGET, CHUNK_SIZE, SCAN_BLOCK
from ..errors import InvalidInput, IoError
from .chunks import ChunkLoader


class Source(Enum):
    FILE = "file"
    ADDED = "added"
    ZERO = "zero"


@dataclass(frozen=True)
class Piece:
    source: Source
    start: int
    length: int


class FileWindow:
    def __init__(self, path: Path, handle, length: int,
                 chunk_size: int = CHUNK_SIZE, cache_budget: int = CACHE_BUDGET):
        self.path = Path(path)
        self.loader = ChunkLoader(handle, length, chunk_size, cache_budget)
        self.disk_length = length
        self.writable = os.access(self.path, os.W_OK)
        self.generation = 0
        self.dirty_chunks: set[int] = set()
        self._added = bytearray()
        self._pieces: List[Piece] = [Piece(Source.FILE, 0, length)] if length else []
        self._length = length

    @classmethod
    def open(cls, path, chunk_size: int = CHUNK_SIZE, cache_budget: int = CACHE_BUDGET) -> "FileWindow":
        path = Path(path)
        try:
            handle = open(path, "rb")
        except OSError as e:
            raise IoError(f"Не удалось открыть {path}: {e.strerror or e}", path) from e
        try:
            length = os.fstat(handle.fileno()).st_size
        except OSError as e:
            handle.close()
            raise IoError(f"Не удалось узнать размер {path}: {e}", path) from e
        return cls(path, handle, length, chunk_size, cache_budget)

    @property
    def length(self) -> int:
        return self._length

    @property
    def chunk_size(self) -> int:
        return self.loader.chunk_size

    def close(self):
        self.loader.close()

    # ---------- чтение ----------
    def read(self, offset: int, length: int) -> bytes:
        return self._read_pieces(self._pieces, offset, length, cache=True)

    def iter_blocks(self, block_size: int = SCAN_BLOCK) -> Iterable[Tuple[int, bytes]]:
        """Последовательно отдаёт (offset, bytes) по всему файлу, мимо кэша."""
        pieces = tuple(self._pieces)
        total = sum(p.length for p in pieces)
        for start in range(0, total, block_size):
            yield start, self._read_pieces(pieces, start, block_size, cache=False)

    def prefetch(self, offset: int, length: int) -> None:
        """Подгрузить в кэш чанки исходного файла под диапазоном окна."""
        pos = 0
        end = offset + length
        for p in tuple(self._pieces):
            if pos >= end:
                break
            lo, hi = max(offset, pos), min(end, pos + p.length)
            if lo < hi and p.source is Source.FILE:
                self.loader.ensure_loaded(p.start + lo - pos, hi - lo)
            pos += p.length

    # ---------- изменение ----------
    def write(self, offset: int, data: bytes) -> None:
        """Перезапись на месте; если выходим за конец - файл удлиняется."""
        self._check_offset(offset)
        if not data:
            return
        overlap = min(len(data), self._length - offset)
        self._splice(offset, overlap, [self._append_added(data)])
        self._length += len(data) - overlap
        self._touch(offset, offset + len(data))

    def insert(self, offset: int, data: bytes) -> None:
        self._check_offset(offset)
        if not data:
            return
        end_before = self._length
        self._splice(offset, 0, [self._append_added(data)])
        self._length += len(data)
        self._touch(offset, max(end_before, self._length))

    def delete(self, offset: int, count: int) -> bytes:
        """Удалить count байт с offset, вернуть удалённое."""
        self._check_offset(offset)
        count = max(0, min(count, self._length - offset))
        if not count:
            return b""
        removed = self.read(offset, count)
        end_before = self._length
        self._splice(offset, count, [])
        self._length -= count
        self._touch(offset, end_before)
        return removed

    def resize(self, new_length: int) -> None:
        """Обрезать или дополнить нулями. Курсоры зажимает вызывающий."""
        if new_length < 0:
            raise InvalidInput(f"Отрицательная длина: {new_length}")
        if new_length < self._length:
            end_before = self._length
            self._splice(new_length, self._length - new_length, [])
            self._length = new_length
            self._touch(new_length, end_before)
        elif new_length > self._length:
            start = self._length
            self._pieces.append(Piece(Source.ZERO, 0, new_length - start))
            self._length = new_length
            self._touch(start, new_length)

    # ---------- сохранение ----------
    def save(self) -> None:
        tmp, generation = self.export()
        self.adopt(tmp, generation)

    def export(self) -> Tuple[Path, int]:
        """
        Записать текущее содержимое во временный файл рядом с оригиналом.
        Возвращает (путь, поколение), которое потом отдаётся в adopt().
        """
        if not self.writable:
            raise IoError(f"Нет прав на запись: {self.path}", self.path)
        generation = self.generation
        pieces = tuple(self._pieces)
        try:
            fd, name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        except OSError as e:
            raise IoError(f"Не удалось создать временный файл: {e}", self.path) from e
        tmp = Path(name)
        try:
            with os.fdopen(fd, "wb") as out:
                for block in self._iter_piece_data(pieces):
                    out.write(block)
                out.flush()
                os.fsync(out.fileno())
            shutil.copymode(self.path, tmp)
        except (OSError, IoError) as e:
            tmp.unlink(missing_ok=True)
            if isinstance(e, IoError):
                raise
            raise IoError(f"Ошибка записи {tmp}: {e}", self.path) from e
        return tmp, generation

    def adopt(self, tmp: Path, generation: int) -> bool:
        """
        Заменить оригинал временным файлом. Если с момента export() были
        правки - временный файл устарел, удаляем его и возвращаем False.
        """
        tmp = Path(tmp)
        if generation != self.generation:
            tmp.unlink(missing_ok=True)
            return False
        old_handle = self.loader.handle
        old_handle.close()
        try:
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            self._reopen()
            raise IoError(f"Не удалось заменить {self.path}: {e}", self.path) from e
        self._reopen()
        self._added = bytearray()
        self._pieces = [Piece(Source.FILE, 0, self._length)] if self._length else []
        self.disk_length = self._length
        self.dirty_chunks.clear()
        return True

    # ---------- внутреннее ----------
    def _reopen(self):
        try:
            handle = open(self.path, "rb")
            length = os.fstat(handle.fileno()).st_size
        except OSError as e:
            raise IoError(f"Не удалось переоткрыть {self.path}: {e}", self.path) from e
        self.loader.reset(handle, length)

    def _check_offset(self, offset: int):
        if offset < 0 or offset > self._length:
            raise InvalidInput(f"Смещение {offset} вне файла (длина {self._length})")

    def _append_added(self, data: bytes) -> Piece:
        start = len(self._added)
        self._added += data
        return Piece(Source.ADDED, start, len(data))

    def _touch(self, start: int, end: int):
        self.generation += 1
        if end <= start:
            return
        cs = self.loader.chunk_size
        self.dirty_chunks.update(range(start // cs, (end - 1) // cs + 1))

    def _split(self, offset: int) -> int:
        """Разрезать кусок на границе offset; вернуть индекс куска, начинающегося с offset."""
        pos = 0
        for i, p in enumerate(self._pieces):
            if offset == pos:
                return i
            if offset < pos + p.length:
                inner = offset - pos
                self._pieces[i:i + 1] = [
                    Piece(p.source, p.start, inner),
                    Piece(p.source, p.start + inner, p.length - inner),
                ]
                return i + 1
            pos += p.length
        return len(self._pieces)

    def _splice(self, offset: int, remove: int, new: Sequence[Piece]):
        i = self._split(offset)
        j = self._split(offset + remove) if remove else i
        self._pieces[i:j] = list(new)

    def _read_pieces(self, pieces: Sequence[Piece], offset: int, length: int, cache: bool) -> bytes:
        total = sum(p.length for p in pieces)
        offset = max(0, offset)
        end = min(total, offset + max(0, length))
        if offset >= end:
            return b""
        out = bytearray()
        pos = 0
        for p in pieces:
            if pos >= end:
                break
            lo, hi = max(offset, pos), min(end, pos + p.length)
            if lo < hi:
                out += self._piece_bytes(p, lo - pos, hi - lo, cache)
            pos += p.length
        return bytes(out)

    def _piece_bytes(self, p: Piece, inner: int, size: int, cache: bool = True) -> bytes:
        if p.source is Source.FILE:
            data = self.loader.read(p.start + inner, size, cache=cache)
            if len(data) != size:
                raise IoError(f"Файл {self.path} изменён снаружи: не хватает данных", self.path)
            return data
        if p.source is Source.ADDED:
            return bytes(self._added[p.start + inner : p.start + inner + size])
        return bytes(size)

    def _iter_piece_data(self, pieces: Sequence[Piece], block: int = SCAN_BLOCK) -> Iterable[bytes]:
        for p in pieces:
            for inner in range(0, p.length, block):
                yield self._piece_bytes(p, inner, min(block, p.length - inner), cache=False)
