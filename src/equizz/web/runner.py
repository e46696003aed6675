"""Uvicorn server runner with custom configuration."""

import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from equizz.app import App
from equizz.config import Config
from equizz.web.server import create_fastapi_app


def build_log_config(config: Config) -> dict[str, Any]:
    """Uvicorn logging config with the client address in access lines."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    level = "DEBUG" if config.debug else "INFO"
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log_config["loggers"][name]["level"] = level
    return log_config


def run_server(app: App, config: Config) -> None:
    """Run the Uvicorn server.

    Behind a reverse proxy listed in `forwarded_allow_ips`, the peer address
    uvicorn reports (and session device info records) is the forwarded client.
    """
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips=config.forwarded_allow_ips,
    )
