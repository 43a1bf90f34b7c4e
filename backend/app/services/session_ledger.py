"""Session event ledger — in-memory, per-session list of created events.

Lives for the lifetime of the process and is cleared on restart. Entries are
appended in completion order, so callers treat it as best-effort read-back;
the downstream calendar remains the source of truth.
"""
import threading
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any


@dataclass(frozen=True)
class SessionEventRecord:
    title: str
    start_iso: str
    timezone: str
    event_link: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionEventLedger:
    """Bounded per-session ledger; the oldest entry is evicted past ``max_entries``."""

    def __init__(self, max_entries: int = 50):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: dict[str, deque[SessionEventRecord]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    def record(self, session_id: str, event: SessionEventRecord) -> None:
        with self._lock_for(session_id):
            entries = self._entries.get(session_id)
            if entries is None:
                entries = self._entries[session_id] = deque(maxlen=self.max_entries)
            entries.append(event)

    def list(self, session_id: str) -> list[SessionEventRecord]:
        with self._lock_for(session_id):
            return list(self._entries.get(session_id, ()))

    def evict(self, session_id: str) -> None:
        """Drop every entry for a session."""
        with self._lock_for(session_id):
            self._entries.pop(session_id, None)
        with self._registry_lock:
            self._locks.pop(session_id, None)

    def clear(self) -> None:
        with self._registry_lock:
            self._entries.clear()
            self._locks.clear()
