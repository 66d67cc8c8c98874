"""Local bulk-ingestion server for development and integration tests.

Mimics the ``POST /bulk/<token>`` endpoint closely enough to exercise the
client end to end: it splits each body into JSON lines, records the tag
header, and can be told to reject batches.
"""

import json
import threading
import logging
from urllib.parse import unquote

from flask import Flask, jsonify, request
from werkzeug.serving import make_server

from loggly_client.dispatcher import TAG_HEADER

logger = logging.getLogger(__name__)


def create_app(token: str = "", fail_status: int = 0) -> Flask:
    """Build the ingestion app.

    *token*, when set, is the only token accepted (others get 403).
    *fail_status*, when non-zero, is returned for every bulk request.
    """
    app = Flask(__name__)
    app.config["TOKEN"] = token
    app.config["FAIL_STATUS"] = fail_status
    app.config["RECEIVED"] = []
    lock = threading.Lock()
    batch_received = threading.Condition(lock)
    app.extensions["batch_received"] = batch_received

    @app.route("/bulk/<token>", methods=["POST"])
    def bulk(token):
        expected = app.config["TOKEN"]
        if expected and token != expected:
            return jsonify(response="invalid token"), 403

        fail_status = app.config["FAIL_STATUS"]
        if fail_status:
            return jsonify(response="rejected"), fail_status

        body = request.get_data()
        lines = [line for line in body.split(b"\n") if line]
        records = []
        for line in lines:
            try:
                records.append(json.loads(line))
            except ValueError:
                records.append(line.decode("utf-8", errors="replace"))

        header = request.headers.get(TAG_HEADER, "")
        batch = {
            "token": token,
            "tags": [unquote(t) for t in header.split(",") if t],
            "user_agent": request.headers.get("User-Agent", ""),
            "content_type": request.headers.get("Content-Type", ""),
            "content_length": int(request.headers.get("Content-Length", 0)),
            "body": body,
            "records": records,
        }
        with batch_received:
            app.config["RECEIVED"].append(batch)
            batch_received.notify_all()

        logger.info("Received batch of %d records (tags=%s)", len(records), batch["tags"])
        return jsonify(response="ok")

    @app.route("/received")
    def received():
        with lock:
            batches = [
                {"tags": b["tags"], "records": b["records"]}
                for b in app.config["RECEIVED"]
            ]
        return jsonify(batches=batches, count=len(batches))

    @app.route("/health")
    def health():
        return jsonify(status="ok")

    return app


class IngestServer:
    """Runs the ingestion app on a background werkzeug server thread."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, token: str = "",
                 fail_status: int = 0):
        self.app = create_app(token=token, fail_status=fail_status)
        self._server = make_server(host, port, self.app, threaded=True)
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://{self._server.host}:{self._server.server_port}"

    @property
    def endpoint_template(self) -> str:
        """Endpoint template accepted by ClientConfig / LogglyClient."""
        return self.url + "/bulk/{token}"

    @property
    def batches(self) -> list[dict]:
        with self.app.extensions["batch_received"]:
            return list(self.app.config["RECEIVED"])

    @property
    def fail_status(self) -> int:
        return self.app.config["FAIL_STATUS"]

    @fail_status.setter
    def fail_status(self, value: int):
        self.app.config["FAIL_STATUS"] = value

    def wait_for_batches(self, count: int, timeout: float = 5.0) -> bool:
        """Block until at least *count* batches arrived; False on timeout."""
        cond = self.app.extensions["batch_received"]
        with cond:
            return cond.wait_for(lambda: len(self.app.config["RECEIVED"]) >= count, timeout)

    def start(self):
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Ingest server listening on %s", self.url)

    def serve_forever(self):
        logger.info("Ingest server listening on %s", self.url)
        self._server.serve_forever()

    def stop(self):
        # shutdown() blocks until serve_forever exits, so only call it when running
        if self._thread:
            self._server.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self._server.server_close()
