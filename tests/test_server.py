"""Tests for the local ingestion server app."""

import pytest

from loggly_client.server import create_app


@pytest.fixture
def app():
    application = create_app(token="tok")
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


class TestBulkEndpoint:
    def test_accepts_batch(self, app, client):
        resp = client.post(
            "/bulk/tok",
            data=b'{"a":1}\n{"b":2}',
            headers={"X-Loggly-Tag": "web,x", "Content-Type": "text/plain"},
        )

        assert resp.status_code == 200
        assert resp.get_json() == {"response": "ok"}
        batch = app.config["RECEIVED"][0]
        assert batch["records"] == [{"a": 1}, {"b": 2}]
        assert batch["tags"] == ["web", "x"]
        assert batch["token"] == "tok"

    def test_percent_encoded_tags_decoded(self, app, client):
        client.post("/bulk/tok", data=b"{}", headers={"X-Loggly-Tag": "web,caf%C3%A9"})
        assert app.config["RECEIVED"][0]["tags"] == ["web", "café"]

    def test_non_json_line_kept_as_text(self, app, client):
        client.post("/bulk/tok", data=b"plain text")
        assert app.config["RECEIVED"][0]["records"] == ["plain text"]

    def test_wrong_token_rejected(self, app, client):
        resp = client.post("/bulk/other", data=b"{}")
        assert resp.status_code == 403
        assert app.config["RECEIVED"] == []

    def test_fail_status(self, app, client):
        app.config["FAIL_STATUS"] = 500
        resp = client.post("/bulk/tok", data=b"{}")
        assert resp.status_code == 500
        assert app.config["RECEIVED"] == []

    def test_any_token_when_unset(self):
        open_client = create_app().test_client()
        assert open_client.post("/bulk/anything", data=b"{}").status_code == 200


class TestReadEndpoints:
    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_received(self, client):
        client.post("/bulk/tok", data=b'{"a":1}', headers={"X-Loggly-Tag": "x"})
        data = client.get("/received").get_json()
        assert data["count"] == 1
        assert data["batches"][0] == {"tags": ["x"], "records": [{"a": 1}]}
