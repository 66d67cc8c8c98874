"""Flush observers: hooks for buffering and delivery events, plus metrics."""

import threading
import time

from loggly_client.errors import DeliveryError


class FlushObserver:
    """No-op base class; override the hooks you care about.

    Hooks are called from producer threads, background flush threads and
    the scheduler thread, so implementations must be thread-safe.
    """

    def on_buffered(self, group_key: str, pending: int, groups: int) -> None:
        pass

    def on_flush(self, trigger: str, groups: int) -> None:
        pass

    def on_delivered(
        self, group_key: str, records: int, bytes_sent: int, send_time_ms: float
    ) -> None:
        pass

    def on_failed(self, group_key: str, records: int, error: DeliveryError) -> None:
        pass


class MetricsCollector(FlushObserver):
    """Counts records buffered, batches delivered or dropped, and flush triggers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records_buffered = 0
        self._batches_sent = 0
        self._batches_failed = 0
        self._total_entries = 0
        self._dropped_entries = 0
        self._total_bytes = 0
        self._send_time_ms = 0.0
        self._max_pending_groups = 0
        self._flush_triggers: dict[str, int] = {}
        self._start_time = time.monotonic()

    def on_buffered(self, group_key: str, pending: int, groups: int) -> None:
        with self._lock:
            self._records_buffered += 1
            self._max_pending_groups = max(self._max_pending_groups, groups)

    def on_flush(self, trigger: str, groups: int) -> None:
        with self._lock:
            self._flush_triggers[trigger] = self._flush_triggers.get(trigger, 0) + 1

    def on_delivered(
        self, group_key: str, records: int, bytes_sent: int, send_time_ms: float
    ) -> None:
        with self._lock:
            self._batches_sent += 1
            self._total_entries += records
            self._total_bytes += bytes_sent
            self._send_time_ms += send_time_ms

    def on_failed(self, group_key: str, records: int, error: DeliveryError) -> None:
        with self._lock:
            self._batches_failed += 1
            self._dropped_entries += records

    def snapshot(self) -> dict:
        with self._lock:
            sent = self._batches_sent
            return {
                "records_buffered": self._records_buffered,
                "batches_sent": sent,
                "batches_failed": self._batches_failed,
                "total_entries": self._total_entries,
                "dropped_entries": self._dropped_entries,
                "total_bytes": self._total_bytes,
                "avg_batch_size": self._total_entries / sent if sent else 0.0,
                "avg_send_time_ms": self._send_time_ms / sent if sent else 0.0,
                "max_pending_groups": self._max_pending_groups,
                "flush_triggers": dict(self._flush_triggers),
                "uptime_seconds": time.monotonic() - self._start_time,
            }
