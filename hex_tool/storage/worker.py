# storage/worker.py
"""
Фоновый поток для долгого ввода-вывода: подгрузка чанков, поиск, запись
временного файла при сохранении. Общение только через очереди сообщений.

Поток ничего не меняет в курсоре, истории правок и состоянии поиска - он
лишь читает диапазоны байт и пишет временный файл, а результат применяет
главный цикл. У каждого запроса растущий id; результаты устаревших
запросов (того же вида) выбрасываются в poll().
"""
from __future__ import annotations
import itertools
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..search.engine import SearchPattern, scan
from .window import FileWindow


class RequestKind(Enum):
    LOAD = "load"
    SCAN = "scan"
    SAVE = "save"


@dataclass(frozen=True)
class Request:
    id: int
    kind: RequestKind
    payload: Dict[str, Any] = field(default_factory=dict)
    cancel: Optional[threading.Event] = None


@dataclass(frozen=True)
class Result:
    request_id: int
    kind: RequestKind
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IoWorker:
    def __init__(self, window: FileWindow):
        self.window = window
        self._requests: "queue.Queue[Optional[Request]]" = queue.Queue()
        self._results: "queue.Queue[Result]" = queue.Queue()
        self._ids = itertools.count(1)
        self._latest: Dict[RequestKind, int] = {}
        self._cancel: Dict[RequestKind, threading.Event] = {}
        self._ready: Dict[RequestKind, Result] = {}
        self._thread = threading.Thread(target=self._run, name="hex-io", daemon=True)
        self._thread.start()

    # ---------- API главного цикла ----------
    def submit(self, kind: RequestKind, **payload) -> int:
        """Поставить запрос; предыдущий запрос того же вида становится устаревшим."""
        rid = next(self._ids)
        self._latest[kind] = rid
        previous = self._cancel.pop(kind, None)
        if previous is not None:
            previous.set()
        cancel = threading.Event()
        self._cancel[kind] = cancel
        self._requests.put(Request(rid, kind, payload, cancel))
        return rid

    def cancel(self, kind: RequestKind) -> None:
        event = self._cancel.pop(kind, None)
        if event is not None:
            event.set()
        self._latest.pop(kind, None)

    def poll(self) -> List[Result]:
        """Забрать готовые результаты, отбросив устаревшие."""
        fresh = [res for res in self._ready.values() if self._is_current(res)]
        self._ready.clear()
        while True:
            try:
                res = self._results.get_nowait()
            except queue.Empty:
                break
            if self._latest.get(res.kind) == res.request_id:
                self._latest.pop(res.kind, None)
                self._cancel.pop(res.kind, None)
                fresh.append(res)
        return fresh

    def wait(self, request_id: int, timeout: Optional[float] = None, interval: float = 0.02) -> Optional[Result]:
        """Ждать результат конкретного запроса (None - устарел или таймаут)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            found = None
            for res in self.poll():
                if res.request_id == request_id:
                    found = res
                else:
                    # на каждый вид - только последний результат
                    self._ready[res.kind] = res
            if found is not None:
                return found
            if request_id not in self._latest.values():
                return None
            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(interval)

    @property
    def backlog(self) -> int:
        """Сколько готовых результатов ждёт poll()."""
        return len(self._ready)

    def _is_current(self, res: Result) -> bool:
        # после выдачи вид убран из _latest; новый запрос того же вида делает результат устаревшим
        return self._latest.get(res.kind, res.request_id) == res.request_id

    def close(self):
        for event in self._cancel.values():
            event.set()
        self._requests.put(None)
        self._thread.join(timeout=5)

    # ---------- поток ----------
    def _run(self):
        while True:
            req = self._requests.get()
            if req is None:
                return
            if req.cancel is not None and req.cancel.is_set():
                continue
            try:
                value = self._handle(req)
            except Exception as e:  # результат с ошибкой уходит в главный цикл
                self._results.put(Result(req.id, req.kind, error=e))
            else:
                self._results.put(Result(req.id, req.kind, value=value))

    def _handle(self, req: Request):
        p = req.payload
        if req.kind is RequestKind.LOAD:
            self.window.prefetch(p["offset"], p["length"])
            return p["offset"]
        if req.kind is RequestKind.SCAN:
            pattern: SearchPattern = p["pattern"]
            return scan(self.window, pattern, cancelled=req.cancel.is_set,
                        block_size=p.get("block_size"))
        if req.kind is RequestKind.SAVE:
            return self.window.export()
        raise ValueError(f"Unknown request kind: {req.kind}")
