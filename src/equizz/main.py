"""Application entry point for EQuizz backend server."""

import structlog

from equizz.app import App
from equizz.config import Config
from equizz.logging import setup_logging
from equizz.web.runner import run_server

logger = structlog.get_logger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin123"


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    logger.info(
        "server_starting",
        host=config.host,
        port=config.port,
        cors_origins=config.cors_origins,
        max_sessions_per_user=config.max_sessions_per_user,
        session_cleanup_interval_hours=config.session_cleanup_interval_hours,
    )
    if config.session_cleanup_interval_hours == 0:
        logger.warning("session_cleanup_disabled")
    if config.default_admin_password == DEFAULT_ADMIN_PASSWORD:
        logger.warning("default_admin_password_in_use", email=config.default_admin_email)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
