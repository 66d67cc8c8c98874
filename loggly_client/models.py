"""Record model: severity levels, group keys and record construction."""

import time
from enum import IntEnum
from typing import Any, Mapping

# Group used for records without a partnerID and for raw writes.
NO_TAG = "notag"

GROUP_FIELD = "partnerID"

# Keys removed from records when the client runs in minimal mode.
MINIMAL_STRIP_KEYS = ("filename", "func", "hostname", "line")


class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    NOTICE = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5
    ALERT = 6
    EMERGENCY = 7

    @classmethod
    def parse(cls, value) -> "Level":
        """Accept a Level, an int, or a case-insensitive level name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


def now_millis() -> int:
    return int(time.time() * 1000)


def group_key_for(record: Mapping[str, Any]) -> str:
    """Return the buffer group for *record*: its partnerID, else NO_TAG."""
    value = record.get(GROUP_FIELD)
    if value is None:
        return NO_TAG
    return str(value)


def merge(target: dict, *others: Mapping[str, Any]) -> dict:
    """Copy every key of *others* into *target*, later mappings winning."""
    for other in others:
        if other:
            target.update(other)
    return target


def apply_defaults(record: dict, defaults: Mapping[str, Any]) -> dict:
    """Add default properties to *record* without overwriting caller keys."""
    for key, value in defaults.items():
        record.setdefault(key, value)
    return record


def build_record(
    level: Level, component: str, *props: Mapping[str, Any]
) -> dict:
    """Build the record sent by the severity helpers (``client.info`` etc.)."""
    record = {"level": level.name.lower(), "component": component}
    return merge(record, *props)
