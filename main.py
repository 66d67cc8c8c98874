"""Demo producer that ships sample log records to a Loggly bulk endpoint."""

import logging
import random
import signal
import threading

from loggly_client.client import LogglyClient
from loggly_client.config import load_client_config
from loggly_client.metrics import MetricsCollector

SAMPLE_COMPONENTS = ["auth", "billing", "search", "scheduler"]
SAMPLE_PARTNERS = ["acme", "globex", "initech", None]
SAMPLE_MESSAGES = [
    "User logged in",
    "Request processed successfully",
    "Database query completed",
    "Cache miss for key",
    "Connection timeout to upstream",
    "Authentication failed for user",
]
SAMPLE_LEVELS = ["debug", "info", "info", "info", "warn", "error"]


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_client_config()
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    metrics = MetricsCollector()
    client = LogglyClient.from_config(config, observer=metrics)
    logger.info(
        "Starting Loggly client: endpoint=%s, buffer_size=%d groups, flush_interval=%.1fs",
        client.endpoint,
        config.buffer_size,
        config.flush_interval,
    )

    try:
        for _ in range(config.run_time):
            if shutdown_event.is_set():
                break
            for _ in range(config.logs_per_second):
                props = {"message": random.choice(SAMPLE_MESSAGES)}
                partner = random.choice(SAMPLE_PARTNERS)
                if partner:
                    props["partnerID"] = partner
                log = getattr(client, random.choice(SAMPLE_LEVELS))
                log(random.choice(SAMPLE_COMPONENTS), props)
            shutdown_event.wait(timeout=1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        client.close()
        logger.info("Client metrics: %s", metrics.snapshot())


if __name__ == "__main__":
    main()
