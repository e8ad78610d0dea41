"""Uvicorn runner."""

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from fitclub.app import App
from fitclub.config import Config
from fitclub.web.server import create_fastapi_app


def run_server(app: App, config: Config) -> None:
    """Serve the API behind an optional reverse proxy.

    Forwarded headers are trusted only from `forwarded_allow_ips`, so the
    client address recorded in password reset audit entries is the real one.
    """
    log_config = LOGGING_CONFIG.copy()
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"

    uvicorn.run(
        create_fastapi_app(app, config),
        host=config.host,
        port=config.port,
        log_config=log_config,
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips=config.forwarded_allow_ips,
    )
