import threading

import httpx
import pytest

from loggly_client.server import IngestServer


class RecordingTransport:
    """httpx mock handler that records requests and answers with a fixed status.

    Set ``fail_with`` to an exception instance to simulate a transport error.
    """

    def __init__(self, status: int = 200, text: str = '{"response":"ok"}'):
        self.status = status
        self.text = text
        self.fail_with = None
        self.requests: list[httpx.Request] = []
        self._cond = threading.Condition()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        with self._cond:
            self.requests.append(request)
            self._cond.notify_all()
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(self.status, text=self.text)

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.requests) >= count, timeout)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def http_client(transport):
    client = transport.client()
    yield client
    client.close()


@pytest.fixture
def ingest_server():
    """Local bulk endpoint on an ephemeral port."""
    server = IngestServer("127.0.0.1", 0)
    server.start()
    yield server
    server.stop()
