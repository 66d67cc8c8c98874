"""Loggly client that buffers encoded records per group and ships them in batches."""

import io
import socket
import threading
import time
import logging
from typing import Any, Mapping

import httpx

from loggly_client.config import ClientConfig, DEFAULT_ENDPOINT
from loggly_client.dispatcher import FlushDispatcher
from loggly_client.encoder import encode
from loggly_client.errors import DeliveryError
from loggly_client.grouped_buffer import GroupedBuffer
from loggly_client.metrics import FlushObserver
from loggly_client.models import (
    MINIMAL_STRIP_KEYS,
    NO_TAG,
    Level,
    apply_defaults,
    build_record,
    group_key_for,
    now_millis,
)
from loggly_client.scheduler import FlushScheduler

logger = logging.getLogger(__name__)


def default_properties() -> dict:
    """Default properties merged into every record: the local hostname."""
    try:
        return {"hostname": socket.gethostname()}
    except OSError:
        return {}


class LogglyClient:
    """Buffered, batching client for a Loggly-style bulk endpoint.

    Records are routed to a buffer group by their ``partnerID`` and every
    group is shipped as its own POST. A flush happens when the number of
    distinct groups holding records reaches ``buffer_size``, every
    ``flush_interval`` seconds, and on explicit ``flush()``.

    Note that ``buffer_size`` counts groups, not records: a single busy group
    only ships on the timer, while many partners trigger a flush quickly.
    """

    def __init__(
        self,
        token: str,
        buffer_size: int = 100,
        minimal: bool = False,
        *tags: str,
        flush_interval: float = 5.0,
        endpoint: str | None = None,
        level=Level.INFO,
        defaults: Mapping[str, Any] | None = None,
        writer=None,
        observer: FlushObserver | None = None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
        autostart: bool = True,
    ):
        self.token = token
        self.buffer_size = buffer_size
        self.minimal = minimal
        self.level = level
        self.defaults = dict(defaults) if defaults is not None else default_properties()
        self.writer = writer
        self.observer = observer if observer is not None else FlushObserver()

        self._buffer = GroupedBuffer()
        self._buffer.tag(*tags)
        self._dispatcher = FlushDispatcher(
            endpoint or DEFAULT_ENDPOINT.replace("{token}", token, 1),
            timeout=timeout,
            http_client=http_client,
        )
        self._scheduler = FlushScheduler(flush_interval, self._timer_flush)
        self._writer_lock = threading.Lock()
        self._inflight: set[threading.Thread] = set()
        self._inflight_lock = threading.Lock()

        if autostart:
            self.start()

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "LogglyClient":
        """Create a client from a loaded ClientConfig."""
        return cls(
            config.token,
            config.buffer_size,
            config.minimal,
            *config.tags,
            flush_interval=config.flush_interval,
            endpoint=config.resolved_endpoint,
            level=config.level,
            timeout=config.timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def start(self):
        """Start the periodic flush thread."""
        self._scheduler.start()

    def close(self, flush: bool = True, timeout: float = 5.0):
        """Stop the scheduler, wait for background flushes, and flush leftovers.

        A delivery failure during the final flush is logged, not raised.
        """
        self._scheduler.stop(timeout=timeout)

        with self._inflight_lock:
            pending = list(self._inflight)
        for thread in pending:
            thread.join(timeout=timeout)

        try:
            if flush:
                try:
                    self._flush("close")
                except DeliveryError as exc:
                    logger.warning("Final flush failed: %s", exc)
        finally:
            self._dispatcher.close()

    def __enter__(self) -> "LogglyClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def send(self, record: Mapping[str, Any]) -> None:
        """Encode *record* and buffer it for asynchronous delivery.

        Raises EncodeError if the record cannot be serialized. Delivery
        errors are never raised here.
        """
        msg = dict(record)
        if self.minimal:
            for key in MINIMAL_STRIP_KEYS:
                msg.pop(key, None)
        else:
            if "timestamp" not in msg:
                msg["timestamp"] = now_millis()
            apply_defaults(msg, self.defaults)

        group_key = group_key_for(msg)
        line = encode(msg)

        self._mirror(line + b"\n")
        self._enqueue(group_key, line)

    def write(self, data) -> int:
        """Buffer raw, already-encoded data under the NO_TAG group."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        elif isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data)
        else:
            raise TypeError(f"write() expects str or bytes, not {type(data).__name__}")
        self._mirror(data)
        self._enqueue(NO_TAG, data)
        return len(data)

    def debug(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.DEBUG, component, props)

    def info(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.INFO, component, props)

    def notice(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.NOTICE, component, props)

    def warn(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.WARNING, component, props)

    warning = warn

    def error(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.ERROR, component, props)

    def critical(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.CRITICAL, component, props)

    def alert(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.ALERT, component, props)

    def emergency(self, component: str, *props: Mapping[str, Any]):
        return self._log(Level.EMERGENCY, component, props)

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Ship every buffered group now.

        Raises the first DeliveryError. The pass stops there: the failed
        batch is dropped and groups not yet attempted stay buffered.
        """
        self._flush("manual")

    # ------------------------------------------------------------------
    # Tags and configuration
    # ------------------------------------------------------------------

    def tag(self, *tags: str) -> None:
        """Add client-wide tags sent with every batch."""
        self._buffer.tag(*tags)

    @property
    def tags(self) -> list[str]:
        return self._buffer.tags

    def tags_list(self) -> str:
        return self._buffer.tags_list()

    @property
    def level(self) -> Level:
        return self._level

    @level.setter
    def level(self, value):
        self._level = Level.parse(value)

    @property
    def flush_interval(self) -> float:
        return self._scheduler.interval

    @flush_interval.setter
    def flush_interval(self, value: float):
        self._scheduler.interval = value

    @property
    def endpoint(self) -> str:
        return self._dispatcher.endpoint

    @endpoint.setter
    def endpoint(self, value: str):
        self._dispatcher.endpoint = value

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    @property
    def group_count(self) -> int:
        return self._buffer.group_count

    def pending(self, group_key: str = NO_TAG) -> list[bytes]:
        """Copy of the records queued for *group_key*."""
        return self._buffer.pending(group_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log(self, level: Level, component: str, props):
        if self._level > level:
            return None
        return self.send(build_record(level, component, *props))

    def _mirror(self, data: bytes):
        """Copy *data* to the optional writer; failures never block buffering."""
        writer = self.writer
        if writer is None:
            return
        if isinstance(writer, io.TextIOBase):
            data = data.decode("utf-8", errors="replace")
        try:
            with self._writer_lock:
                writer.write(data)
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Mirror writer failed: %s", exc)

    def _enqueue(self, group_key: str, blob: bytes):
        pending, groups = self._buffer.append_counted(group_key, blob)
        self.observer.on_buffered(group_key, pending, groups)
        logger.debug("buffer (%d/%d groups, %d records)", groups, self.buffer_size, pending)
        if groups >= self.buffer_size:
            self._spawn_flush()

    def _spawn_flush(self):
        """Start a fire-and-forget flush on its own thread."""
        thread = threading.Thread(target=self._background_flush, args=("size",), daemon=True)
        with self._inflight_lock:
            self._inflight.add(thread)
        thread.start()

    def _background_flush(self, trigger: str):
        try:
            self._flush(trigger)
        except DeliveryError as exc:
            logger.warning("Background %s flush dropped a batch: %s", trigger, exc)
        except Exception:
            logger.exception("Background %s flush failed", trigger)
        finally:
            with self._inflight_lock:
                self._inflight.discard(threading.current_thread())

    def _timer_flush(self):
        try:
            self._flush("timer")
        except DeliveryError as exc:
            logger.warning("Timer flush dropped a batch: %s", exc)

    def _flush(self, trigger: str):
        drained = self._buffer.drain_all()
        if not drained:
            logger.debug("no messages to flush")
            return

        tags = self._buffer.tags
        groups = list(drained.items())
        # Groups before this index are settled: shipped, or failed and dropped.
        settled = 0

        try:
            self.observer.on_flush(trigger, len(groups))
            for group_key, blobs in groups:
                logger.debug("flushing %d messages for group %r", len(blobs), group_key)
                start = time.monotonic()
                try:
                    sent = self._dispatcher.ship(group_key, blobs, tags)
                except DeliveryError as exc:
                    settled += 1
                    self.observer.on_failed(group_key, len(blobs), exc)
                    raise
                settled += 1
                elapsed_ms = (time.monotonic() - start) * 1000
                self.observer.on_delivered(group_key, len(blobs), sent, elapsed_ms)
        except BaseException:
            for later_key, later_blobs in groups[settled:]:
                self._buffer.restore(later_key, later_blobs)
            raise
