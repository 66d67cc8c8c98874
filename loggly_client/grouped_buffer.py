"""Grouped buffer of per-group queues of encoded records behind one lock."""

import threading
import logging

logger = logging.getLogger(__name__)


class GroupedBuffer:
    """Thread-safe mapping of group key to an ordered queue of encoded records.

    A single lock guards both the queues and the client-wide tag list, so a
    drain never races an append: every blob lands in exactly one drain.
    Callers do encoding and network I/O outside the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._groups: dict[str, list[bytes]] = {}
        self._tags: list[str] = []

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------

    def append(self, group_key: str, blob: bytes) -> int:
        """Queue *blob* under *group_key*; return the total queued record count."""
        return self.append_counted(group_key, blob)[0]

    def append_counted(self, group_key: str, blob: bytes) -> tuple[int, int]:
        """Queue *blob* and return (queued records, non-empty groups) as of the append."""
        with self._lock:
            self._groups.setdefault(group_key, []).append(blob)
            total = sum(len(q) for q in self._groups.values())
            groups = sum(1 for q in self._groups.values() if q)
        logger.debug("buffered record in group %r (%d queued)", group_key, total)
        return total, groups

    def drain_all(self) -> dict[str, list[bytes]]:
        """Atomically remove and return every non-empty group's queue."""
        with self._lock:
            drained = {key: queue for key, queue in self._groups.items() if queue}
            self._groups = {}
        return drained

    def restore(self, group_key: str, blobs: list[bytes]) -> None:
        """Put drained records back at the front of their group."""
        if not blobs:
            return
        with self._lock:
            queue = self._groups.get(group_key, [])
            self._groups[group_key] = list(blobs) + queue

    def pending(self, group_key: str) -> list[bytes]:
        with self._lock:
            return list(self._groups.get(group_key, []))

    @property
    def group_count(self) -> int:
        """Number of distinct groups currently holding records."""
        with self._lock:
            return sum(1 for q in self._groups.values() if q)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(len(q) for q in self._groups.values())

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def tag(self, *tags: str) -> None:
        with self._lock:
            self._tags.extend(tags)

    @property
    def tags(self) -> list[str]:
        with self._lock:
            return list(self._tags)

    def tags_list(self) -> str:
        """Comma-delimited tag list."""
        with self._lock:
            return ",".join(self._tags)
