from __future__ import annotations

import collections
import json
import os
import threading
from typing import Any, Deque, Dict, List, Optional

from bothost.core.events.models import BaseEvent


class EventJournal:
    """
    Synchronous event sink: appends every published event to a JSONL file
    (redacted payload only) and keeps the most recent ones in memory.
    """

    def __init__(self, *, path: Optional[str] = os.path.join("logs", "events.jsonl"), keep_recent: int = 500):
        self.path = path
        self._lock = threading.Lock()
        self._recent: Deque[Dict[str, Any]] = collections.deque(maxlen=max(10, int(keep_recent)))
        if self.path:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

    def publish_nowait(self, ev: BaseEvent) -> bool:
        rec = ev.model_dump(mode="json")
        with self._lock:
            self._recent.appendleft(rec)
            if self.path:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        return True

    def recent(self, n: int = 50, *, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            items = list(self._recent)
        if event_type:
            items = [r for r in items if r.get("event_type") == event_type]
        return items[: max(1, int(n))]
