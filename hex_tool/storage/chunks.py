# storage/chunks.py
"""
Загрузчик чанков: файл читается кусками фиксированного размера по требованию.
Держим в памяти не больше `cache_budget` байт, лишнее выкидываем по LRU.
Номер чанка для смещения: offset // chunk_size.
"""
from __future__ import annotations
import itertools
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import BinaryIO, Dict

from ..config import CACHE_BUDGET, CHUNK_SIZE
from ..errors import IoError


@dataclass
class Chunk:
    index: int
    start: int
    data: bytes
    last_access: int = 0

    @property
    def end(self) -> int:
        return self.start + len(self.data)


@dataclass
class ChunkLoader:
    handle: BinaryIO
    length: int
    chunk_size: int = CHUNK_SIZE
    cache_budget: int = CACHE_BUDGET
    _chunks: "OrderedDict[int, Chunk]" = field(default_factory=OrderedDict, init=False, repr=False)
    _clock: itertools.count = field(default_factory=itertools.count, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.cache_budget < self.chunk_size:
            raise ValueError("cache_budget must hold at least one chunk")

    # ---------- публичный API ----------
    def chunk_index(self, offset: int) -> int:
        return offset // self.chunk_size

    @property
    def resident_bytes(self) -> int:
        with self._lock:
            return sum(len(c.data) for c in self._chunks.values())

    def is_resident(self, index: int) -> bool:
        with self._lock:
            return index in self._chunks

    def ensure_loaded(self, offset: int, length: int) -> None:
        """Сделать диапазон резидентным (в пределах бюджета кэша)."""
        with self._lock:
            self._load_range(offset, length)

    def read(self, offset: int, length: int, cache: bool = True) -> bytes:
        """
        Срез файла, возможно через несколько чанков. Всё, что за концом
        файла, просто отрезается: запрос за EOF даёт короткий срез.
        cache=False читает мимо LRU (последовательный поиск/сохранение).
        """
        offset = max(0, offset)
        end = min(self.length, offset + max(0, length))
        if offset >= end:
            return b""
        with self._lock:
            if cache:
                loaded = self._load_range(offset, end - offset)
            else:
                loaded = {}
                for idx in self._indices(offset, end - offset):
                    chunk = self._chunks.get(idx)
                    loaded[idx] = chunk.data if chunk is not None else self._fetch(idx)
        out = bytearray()
        for idx in self._indices(offset, end - offset):
            data = loaded[idx]
            base = idx * self.chunk_size
            out += data[max(offset, base) - base : min(end, base + len(data)) - base]
        return bytes(out)

    def reset(self, handle: BinaryIO, length: int) -> None:
        """Перепривязать загрузчик к новому файлу (после сохранения)."""
        with self._lock:
            self.handle = handle
            self.length = length
            self._chunks.clear()

    def close(self):
        with self._lock:
            self._chunks.clear()
            try:
                self.handle.close()
            except OSError:
                pass

    # ---------- внутреннее ----------
    def _indices(self, offset: int, length: int):
        if length <= 0 or offset >= self.length:
            return range(0)
        last = min(self.length, offset + length) - 1
        return range(self.chunk_index(offset), self.chunk_index(last) + 1)

    def _fetch(self, index: int) -> bytes:
        start = index * self.chunk_size
        size = min(self.chunk_size, self.length - start)
        try:
            self.handle.seek(start)
            data = self.handle.read(size)
        except OSError as e:
            raise IoError(f"Ошибка чтения чанка {index} (0x{start:X}): {e}") from e
        if len(data) != size:
            raise IoError(f"Файл укоротился: чанк {index} прочитан не полностью")
        return data

    def _load_range(self, offset: int, length: int) -> Dict[int, bytes]:
        indices = list(self._indices(offset, length))
        # сначала читаем всё недостающее: при ошибке кэш остаётся как был
        fetched = {idx: self._fetch(idx) for idx in indices if idx not in self._chunks}
        loaded = {}
        for idx in indices:
            chunk = self._chunks.get(idx)
            if chunk is None:
                chunk = Chunk(idx, idx * self.chunk_size, fetched[idx])
                self._chunks[idx] = chunk
            chunk.last_access = next(self._clock)
            self._chunks.move_to_end(idx)
            loaded[idx] = chunk.data
        self._evict()
        return loaded

    def _evict(self):
        resident = sum(len(c.data) for c in self._chunks.values())
        while resident > self.cache_budget and len(self._chunks) > 1:
            _, old = self._chunks.popitem(last=False)
            resident -= len(old.data)
