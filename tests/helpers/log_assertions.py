from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List


def read_jsonl(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def event_types(rows: Iterable[Dict[str, Any]]) -> List[str]:
    return [str(r.get("event_type")) for r in rows]


def assert_no_secret_leak(objs: Iterable[Dict[str, Any]], secret: str) -> None:
    blob = json.dumps(list(objs), ensure_ascii=False)
    assert secret not in blob, "secret leaked into a log record"
    assert "***REDACTED***" in blob
