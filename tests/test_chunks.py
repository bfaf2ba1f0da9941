import io

import pytest

from hex_tool.errors import IoError
from hex_tool.storage.chunks import ChunkLoader


def make_loader(data: bytes, chunk_size=4, cache_budget=8):
    return ChunkLoader(io.BytesIO(data), len(data), chunk_size, cache_budget)


def test_read_spans_chunks_and_clips_at_eof():
    loader = make_loader(bytes(range(10)))
    assert loader.read(2, 5) == bytes([2, 3, 4, 5, 6])
    assert loader.read(8, 10) == bytes([8, 9])
    assert loader.read(10, 4) == b""
    assert loader.read(50, 4) == b""


def test_chunk_index():
    loader = make_loader(bytes(10))
    assert loader.chunk_index(0) == 0
    assert loader.chunk_index(3) == 0
    assert loader.chunk_index(4) == 1


def test_cache_respects_budget_and_evicts_lru():
    loader = make_loader(bytes(range(16)), chunk_size=4, cache_budget=8)
    loader.read(0, 1)
    loader.read(4, 1)
    loader.read(0, 1)  # чанк 0 снова свежий
    loader.read(8, 1)
    assert loader.resident_bytes <= 8
    assert loader.is_resident(0)
    assert not loader.is_resident(1)
    assert loader.is_resident(2)


def test_uncached_read_leaves_cache_alone():
    loader = make_loader(bytes(range(16)))
    assert loader.read(0, 16, cache=False) == bytes(range(16))
    assert loader.resident_bytes == 0


def test_short_last_chunk():
    loader = make_loader(bytes(range(6)))
    loader.ensure_loaded(4, 2)
    assert loader.is_resident(1)
    assert loader.resident_bytes == 2


def test_truncated_file_is_io_error():
    # длина больше, чем реально есть в потоке
    loader = ChunkLoader(io.BytesIO(b"abcde"), 8, 4, 8)
    assert loader.read(0, 1) == b"a"
    before = loader.resident_bytes
    with pytest.raises(IoError):
        loader.read(0, 8)
    assert loader.is_resident(0)
    assert not loader.is_resident(1)
    assert loader.resident_bytes == before == 4


def test_bad_parameters():
    with pytest.raises(ValueError):
        make_loader(b"abc", chunk_size=0)
    with pytest.raises(ValueError):
        make_loader(b"abc", chunk_size=8, cache_budget=4)
