import pytest

from hex_tool import config
from hex_tool.editor.document import Document


@pytest.fixture(autouse=True)
def journal(tmp_path, monkeypatch):
    """Журнал сессии пишется во временную папку теста."""
    log_file = tmp_path / "logs" / "session.jsonl"
    monkeypatch.setattr(config, "LOG_FILE", log_file)
    return log_file


@pytest.fixture
def make_file(tmp_path):
    def _make(data: bytes, name: str = "data.bin"):
        path = tmp_path / name
        path.write_bytes(bytes(data))
        return path
    return _make


@pytest.fixture
def open_doc(make_file):
    docs = []

    def _open(data: bytes, **kwargs):
        doc = Document.open(make_file(data), **kwargs)
        docs.append(doc)
        return doc
    yield _open
    for doc in docs:
        doc.close()
