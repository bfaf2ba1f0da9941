# journal.py
from __future__ import annotations
import json
from datetime import datetime, timezone

from . import config


def log_event(kind: str, payload: dict):
    """Дописать событие сессии в JSONL-журнал."""
    log_file = config.LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "payload": payload,
    }
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")
