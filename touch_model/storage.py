"""Clock and key-value persistence seams injected into the core services."""

import threading
import time
from typing import Dict, Optional, Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Current wall-clock time in epoch milliseconds."""
        ...


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class SystemClock:
    def now(self) -> int:
        return int(time.time() * 1000)


class MemoryKeyValueStore:
    """Process-local store. Used by tests and when no database is configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
