"""Entry point of the FitClub backend server."""

import structlog

from fitclub.app import App
from fitclub.config import Config
from fitclub.logging import setup_logging
from fitclub.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    if config.expose_reset_token and not config.debug:
        logger.warning("reset_tokens_exposed_in_responses")
    if config.smtp_host is None:
        logger.warning("smtp_disabled", detail="password reset emails will only be logged")
    run_server(App(config), config)


if __name__ == "__main__":
    main()
