"""Entry point for the local bulk-ingestion server."""

import logging

from loggly_client.config import load_server_config
from loggly_client.server import IngestServer


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_server_config()
    server = IngestServer(
        config.host, config.port, token=config.token, fail_status=config.fail_status
    )
    logger.info("Bulk endpoint: %s", server.endpoint_template)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        server.stop()


if __name__ == "__main__":
    main()
