"""Simple memory-backed session handler

Keeps payloads in a process-local dict as `{<session_id>: (<bytes>, <written_at>)}`.
Used by the "array" driver and by tests.
"""
import time
from threading import RLock
from typing import Dict, Tuple

from .handler import SessionHandler


class MemorySessionHandler(SessionHandler):
    def __init__(self):
        self._lock = RLock()
        self._store: Dict[str, Tuple[bytes, float]] = {}

    def read(self, session_id: str) -> bytes:
        with self._lock:
            entry = self._store.get(session_id)
            return entry[0] if entry else b""

    def write(self, session_id: str, data: bytes) -> None:
        with self._lock:
            self._store[session_id] = (bytes(data), time.time())

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._store.pop(session_id, None)

    def gc(self, max_lifetime: int) -> int:
        cutoff = time.time() - max_lifetime
        with self._lock:
            expired = [sid for sid, (_, written_at) in self._store.items() if written_at < cutoff]
            for sid in expired:
                del self._store[sid]
        return len(expired)

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._store.keys())
