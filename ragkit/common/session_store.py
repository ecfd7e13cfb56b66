"""
Session Store

Holds the result set of the last search for each session id, so that
summarize and cite calls can work on it later.

Bounded in two ways:
- capacity: least recently used sessions are evicted first
- ttl: a session expires ttl_seconds after its last write (0 disables)
"""

import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Iterable, Optional, Tuple

from .schemas import ScoredDocument

logger = logging.getLogger("ragkit.common.session_store")

Context = Tuple[ScoredDocument, ...]

EVICT_CAPACITY = "capacity"
EVICT_EXPIRED = "expired"


def mint_session_id() -> str:
    """Generate a collision-safe session id"""
    return f"session_{uuid.uuid4().hex}"


class SessionStore:
    """
    LRU mapping of session id -> search context.

    Every public operation runs under one lock, so a reader never sees a
    partially written context, and racing writers resolve last-write-wins.
    """

    def __init__(
        self,
        capacity: int = 1024,
        ttl_seconds: float = 3600.0,
        on_evict: Optional[Callable[[str, str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            capacity: Maximum number of sessions kept
            ttl_seconds: Lifetime of a context after its last put, 0 for no expiry
            on_evict: Called with (session_id, reason) whenever an entry is dropped
            clock: Monotonic time source, injectable for tests
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")

        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._on_evict = on_evict
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Context]]" = OrderedDict()
        self._lock = threading.Lock()

    def put(self, session_id: str, context: Iterable[ScoredDocument]) -> None:
        """Store a context, replacing whatever the session held before."""
        snapshot: Context = tuple(context)
        evicted = []
        with self._lock:
            if session_id in self._entries:
                del self._entries[session_id]
            self._entries[session_id] = (self._clock(), snapshot)
            while len(self._entries) > self.capacity:
                oldest, _ = self._entries.popitem(last=False)
                evicted.append(oldest)

        for sid in evicted:
            self._notify(sid, EVICT_CAPACITY)

    def get(self, session_id: str) -> Optional[Context]:
        """Return the stored context, or None if absent or expired."""
        expired = False
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            written_at, context = entry
            if self._is_expired(written_at):
                del self._entries[session_id]
                expired = True
            else:
                self._entries.move_to_end(session_id)

        if expired:
            self._notify(session_id, EVICT_EXPIRED)
            return None
        return context

    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were dropped."""
        if not self.ttl_seconds:
            return 0
        with self._lock:
            stale = [sid for sid, (ts, _) in self._entries.items() if self._is_expired(ts)]
            for sid in stale:
                del self._entries[sid]

        for sid in stale:
            self._notify(sid, EVICT_EXPIRED)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_id: str) -> bool:
        return self.get(session_id) is not None

    def _is_expired(self, written_at: float) -> bool:
        return bool(self.ttl_seconds) and self._clock() - written_at >= self.ttl_seconds

    def _notify(self, session_id: str, reason: str) -> None:
        logger.debug("Evicted session %s (%s)", session_id, reason)
        if self._on_evict is not None:
            self._on_evict(session_id, reason)
