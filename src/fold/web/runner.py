"""Uvicorn server runner with custom configuration."""

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from fold.app import App
from fold.config import Config
from fold.web.server import create_fastapi_app


def build_log_config(debug: bool) -> dict:
    log_config = LOGGING_CONFIG.copy()
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["loggers"]["uvicorn"]["level"] = "DEBUG" if debug else "INFO"
    return log_config


def run_server(app: App, config: Config) -> None:
    """Serve the API; client addresses are read from X-Forwarded-For behind a proxy."""
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config.debug),
        access_log=True,
        proxy_headers=True,
        server_header=False,
    )
