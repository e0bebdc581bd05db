"""
Per-trip refresh coordination.

Refreshes of the same trip are serialised: only one load per trip runs at a
time. A caller that had to wait reuses the result of a load that started after
its own request instead of loading again. Every load carries a token from a
single increasing counter, and a result is only published when no load with a
newer token has been published for that trip, so a slow stale load can never
overwrite a fresher snapshot.

Only the latest token is kept per trip. A published snapshot and the trip's
lock are held while callers are inside ``refresh`` for that trip and are
released when the last one leaves.
"""
import itertools
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class SnapshotRefresher:
    """Single-flight, latest-wins snapshot loads keyed by trip id."""

    def __init__(self):
        self._guard = threading.Lock()
        self._tokens = itertools.count(1)
        self._trip_locks: Dict[Any, threading.Lock] = {}
        self._waiters: Dict[Any, int] = {}
        self._published_tokens: Dict[Any, int] = {}
        self._retained: Dict[Any, Tuple[int, Any]] = {}

    def _enter(self, trip_id: Any) -> threading.Lock:
        with self._guard:
            self._waiters[trip_id] = self._waiters.get(trip_id, 0) + 1
            lock = self._trip_locks.get(trip_id)
            if lock is None:
                lock = self._trip_locks[trip_id] = threading.Lock()
            return lock

    def _leave(self, trip_id: Any) -> None:
        with self._guard:
            self._waiters[trip_id] -= 1
            if self._waiters[trip_id] == 0:
                # Nobody holds or waits on the lock once the count is zero
                del self._waiters[trip_id]
                self._trip_locks.pop(trip_id, None)
                self._retained.pop(trip_id, None)

    def _newer_than(self, trip_id: Any, token: int) -> Optional[Tuple[int, Any]]:
        with self._guard:
            retained = self._retained.get(trip_id)
            if retained is not None and retained[0] > token:
                return retained
            return None

    def next_token(self) -> int:
        with self._guard:
            return next(self._tokens)

    def publish(self, trip_id: Any, token: int, snapshot: Any) -> bool:
        """Record a snapshot unless a newer one is already published. Returns True when recorded."""
        with self._guard:
            current = self._published_tokens.get(trip_id, 0)
            if current > token:
                logger.info(f"Discarding stale snapshot for trip {trip_id} (token {token} < {current})")
                return False
            self._published_tokens[trip_id] = token
            if self._waiters.get(trip_id):
                self._retained[trip_id] = (token, snapshot)
            return True

    def latest(self, trip_id: Any) -> Optional[Any]:
        """Snapshot held for callers still inside ``refresh``, if any."""
        with self._guard:
            retained = self._retained.get(trip_id)
            return retained[1] if retained else None

    def latest_token(self, trip_id: Any) -> int:
        with self._guard:
            return self._published_tokens.get(trip_id, 0)

    def refresh(self, trip_id: Any, loader: Callable[[Any], Any]) -> Optional[Any]:
        """Load a fresh snapshot for ``trip_id`` with ``loader``, or reuse one that started after this call."""
        requested = self.next_token()
        lock = self._enter(trip_id)
        try:
            with lock:
                newer = self._newer_than(trip_id, requested)
                if newer is not None:
                    # A load that began after this request finished while we waited
                    return newer[1]
                token = self.next_token()
                snapshot = loader(trip_id)
                if not self.publish(trip_id, token, snapshot):
                    newer = self._newer_than(trip_id, token)
                    if newer is not None:
                        return newer[1]
                return snapshot
        finally:
            self._leave(trip_id)

    def forget(self, trip_id: Any) -> None:
        """Drop what is known about a deleted trip. Locks stay with their holders."""
        with self._guard:
            self._published_tokens.pop(trip_id, None)
            self._retained.pop(trip_id, None)


snapshot_refresher = SnapshotRefresher()
