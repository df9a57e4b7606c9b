"""
Lifecycle event records published by the module loader.

The host owns the actual sink; anything exposing `publish_nowait(event)` works.
`EventJournal` is the default one (JSONL file plus an in-memory tail).
"""

from bothost.core.events.journal import EventJournal
from bothost.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from bothost.core.events.redaction import redact

__all__ = [
    "BaseEvent",
    "EventJournal",
    "EventSeverity",
    "SourceSubsystem",
    "redact",
]
