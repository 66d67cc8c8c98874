"""Flush dispatcher: ships one group's batch as a single HTTP POST."""

import logging
import time
from urllib.parse import quote

import httpx

from loggly_client.errors import DeliveryError
from loggly_client.models import NO_TAG

logger = logging.getLogger(__name__)

__version__ = "0.4.3"

USER_AGENT = f"loggly-client-python (version: {__version__})"

TAG_HEADER = "X-Loggly-Tag"

NEWLINE = b"\n"

# Characters left as-is in a tag. Everything else, including commas and
# non-ASCII text, is percent-encoded so the header stays ASCII.
TAG_SAFE = "-._~!$&'()*+;=:@/ "


def join_records(blobs: list[bytes]) -> bytes:
    """Join encoded records with one newline between consecutive records."""
    return NEWLINE.join(blobs)


def build_headers(group_key: str, body: bytes, tags=()) -> dict[str, str]:
    """Request headers for a batch of *group_key* records.

    Unlike a plain per-group tag, the tag header lists the client-wide
    tags followed by the group key, so it is also sent for the NO_TAG group
    whenever client tags exist. It is omitted only when there is nothing
    to send. Each tag is percent-encoded outside TAG_SAFE.
    """
    headers = {
        "User-Agent": USER_AGENT,
        "Content-Type": "text/plain",
        "Content-Length": str(len(body)),
    }
    all_tags = list(tags)
    if group_key != NO_TAG:
        all_tags.append(group_key)
    if all_tags:
        headers[TAG_HEADER] = ",".join(quote(tag, safe=TAG_SAFE) for tag in all_tags)
    return headers


class FlushDispatcher:
    """Posts batches to the bulk endpoint through an httpx client."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self.endpoint = endpoint
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.Client(timeout=timeout)

    def ship(self, group_key: str, blobs: list[bytes], tags=()) -> int:
        """Deliver *blobs* as one request; return the body size in bytes.

        Raises DeliveryError for transport failures and status >= 400.
        The batch is not kept: a failed batch is lost.
        """
        body = join_records(blobs)
        headers = build_headers(group_key, body, tags)

        logger.debug("POST %s with %d bytes (group %r)", self.endpoint, len(body), group_key)
        start = time.monotonic()
        try:
            response = self._client.post(self.endpoint, content=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            logger.debug("error: %s", exc)
            raise DeliveryError(
                f"Delivery of {len(blobs)} record(s) for group {group_key!r} failed: {exc}",
                group_key=group_key,
            ) from exc

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.debug("%d response in %.1fms", response.status_code, elapsed_ms)

        if response.status_code >= 400:
            detail = response.text
            logger.debug("error: %s", detail)
            raise DeliveryError(
                f"Endpoint rejected {len(blobs)} record(s) for group {group_key!r}: "
                f"HTTP {response.status_code}",
                group_key=group_key,
                status_code=response.status_code,
                body=detail,
            )

        return len(body)

    def close(self):
        """Close the underlying HTTP client if this dispatcher created it."""
        if self._owns_client:
            self._client.close()
