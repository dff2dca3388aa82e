"""Application entry point for the Fold backend server."""

import structlog

from fold.app import App
from fold.config import Config
from fold.logging import setup_logging
from fold.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    logger.info("server_starting", host=config.host, port=config.port, environment=config.environment)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
