"""End-to-end tests: client -> real HTTP -> local ingestion server."""

import pytest

from loggly_client.client import LogglyClient
from loggly_client.config import ClientConfig
from loggly_client.dispatcher import USER_AGENT
from loggly_client.errors import DeliveryError
from loggly_client.metrics import MetricsCollector


def _client_for(server, **overrides) -> LogglyClient:
    defaults = {
        "token": "tok",
        "endpoint": server.endpoint_template,
        "buffer_size": 100,
        "flush_interval": 30.0,
        "timeout": 5.0,
    }
    defaults.update(overrides)
    return LogglyClient.from_config(ClientConfig(**defaults))


class TestEndToEnd:
    def test_explicit_flush_delivers_groups(self, ingest_server):
        client = _client_for(ingest_server)
        try:
            client.info("api", {"message": "hello"})
            client.error("api", {"message": "boom", "partnerID": "x"})
            client.flush()

            batches = ingest_server.batches
            assert len(batches) == 2
            by_tags = {tuple(b["tags"]): b for b in batches}
            assert by_tags[("x",)]["records"][0]["message"] == "boom"
            assert by_tags[()]["records"][0]["level"] == "info"
            for batch in batches:
                assert batch["token"] == "tok"
                assert batch["user_agent"] == USER_AGENT
                assert batch["content_type"].startswith("text/plain")
                assert batch["content_length"] == len(batch["body"])
        finally:
            client.close()

    def test_group_threshold_triggers_automatic_flush(self, ingest_server):
        client = _client_for(ingest_server, buffer_size=2)
        try:
            client.send({"message": "one", "partnerID": "a"})
            client.send({"message": "two", "partnerID": "b"})

            assert ingest_server.wait_for_batches(2, timeout=5.0)
            tags = sorted(b["tags"][0] for b in ingest_server.batches)
            assert tags == ["a", "b"]
        finally:
            client.close()

    def test_timer_flush(self, ingest_server):
        client = _client_for(ingest_server, flush_interval=0.2)
        try:
            client.notice("cron", {"message": "tick"})
            assert ingest_server.wait_for_batches(1, timeout=5.0)
        finally:
            client.close()

    def test_rejected_batch_is_dropped(self, ingest_server):
        metrics = MetricsCollector()
        client = LogglyClient.from_config(
            ClientConfig(token="tok", endpoint=ingest_server.endpoint_template),
            observer=metrics,
        )
        ingest_server.fail_status = 429
        try:
            client.send({"message": "lost"})
            with pytest.raises(DeliveryError) as excinfo:
                client.flush()
            assert excinfo.value.status_code == 429
            assert client.pending_count == 0
            assert metrics.snapshot()["dropped_entries"] == 1
        finally:
            ingest_server.fail_status = 0
            client.close()

    def test_close_ships_leftovers(self, ingest_server):
        client = _client_for(ingest_server)
        client.write(b'{"raw":true}')
        client.close()
        assert ingest_server.batches[0]["records"] == [{"raw": True}]
