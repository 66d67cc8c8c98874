"""Record encoder: one compact JSON object per line."""

import datetime
import json
from typing import Any, Mapping

from loggly_client.errors import EncodeError


def _default(value: Any):
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(record: Mapping[str, Any]) -> bytes:
    """Serialize *record* to UTF-8 JSON bytes without a trailing newline.

    JSON escapes control characters inside strings, so the result never
    contains a raw newline and can be joined with ``b"\\n"`` safely.
    Raises EncodeError for cyclic or non-JSON values (NaN included).
    """
    try:
        payload = json.dumps(
            record,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_default,
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        raise EncodeError(f"Cannot encode log record: {exc}") from exc
    return payload
