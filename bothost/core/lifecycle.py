from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, Optional, Union


class AppLifecycleEvents(str, Enum):
    CONFIGURATION_LOADED = "CONFIGURATION_LOADED"
    SERVICES_READY = "SERVICES_READY"
    HTTP_SERVER_READY = "HTTP_SERVER_READY"
    MODULES_LOADED = "MODULES_LOADED"


class AppLifecycle:
    """
    Process-wide, one-shot lifecycle signals.

    Each event fires at most once. Waiting on an event that already fired
    returns immediately, so late waiters never miss it.
    """

    def __init__(self) -> None:
        self._events: Dict[AppLifecycleEvents, threading.Event] = {e: threading.Event() for e in AppLifecycleEvents}

    def publish(self, event: Union[AppLifecycleEvents, str]) -> None:
        self._events[_coerce(event)].set()

    def is_published(self, event: Union[AppLifecycleEvents, str]) -> bool:
        return self._events[_coerce(event)].is_set()

    def wait_for(self, event: Union[AppLifecycleEvents, str], timeout: Optional[float] = None) -> bool:
        """Blocks until `event` fired. Returns False only when `timeout` elapsed first."""
        return self._events[_coerce(event)].wait(timeout=timeout)


def _coerce(event: Union[AppLifecycleEvents, str]) -> AppLifecycleEvents:
    if isinstance(event, AppLifecycleEvents):
        return event
    try:
        return AppLifecycleEvents(str(event).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown lifecycle event: {event!r}") from None
