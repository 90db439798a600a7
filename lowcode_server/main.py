"""
Entry point of the low-code platform server.

Importing this module loads the configuration and builds the FastAPI
application: CORS middleware, exception handlers and every router. run()
serves it with uvicorn, over TLS when the api section names a key and
certificate.
"""

import copy
import os
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lowcode_server.config import config
from lowcode_server.startup.cors_config import get_cors_origins
from lowcode_server.startup.exception_handlers import register_exception_handlers
from lowcode_server.startup.lifecycle import lifespan
from lowcode_server.startup.logging_config import configure_logging
from lowcode_server.startup.route_registration import (
    register_app_routes,
    register_routes,
)
from lowcode_server.utils.verbosity_logger import get_logger

UVICORN_LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"

startup_logger = get_logger("lowcode_server.startup")
startup_logger.info(
    "Starting with Python %s in %s", sys.version.split()[0], os.getcwd()
)

app_config = config.get_config()
startup_logger.info("Configuration sections: %s", ", ".join(sorted(app_config)))

configure_logging()

app = FastAPI(title="Low-code platform server", lifespan=lifespan)

origins = get_cors_origins(app_config)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Authorization"],
)

# Handlers add CORS headers themselves since errors bypass the middleware
register_exception_handlers(app, origins)
register_routes(app)
register_app_routes(app)


def _ssl_options(api_config: dict) -> dict:
    """uvicorn TLS keyword arguments, empty when no certificate is configured."""
    key_file = api_config.get("keyFile")
    cert_file = api_config.get("certFile")
    if not (key_file and cert_file):
        return {}
    options = {"ssl_keyfile": key_file, "ssl_certfile": cert_file}
    if api_config.get("chainFile"):
        options["ssl_ca_certs"] = api_config["chainFile"]
    return options


def _uvicorn_log_config() -> dict:
    """uvicorn's logging config with our UTC formatter on its handlers."""
    log_config = copy.deepcopy(uvicorn.config.LOGGING_CONFIG)
    for formatter in ("access", "default"):
        log_config["formatters"][formatter] = {
            "()": "lowcode_server.utils.logging_formatter.UTCTimestampFormatter",
            "fmt": UVICORN_LOG_FORMAT,
        }
    return log_config


def run():
    """Serve the application on the configured host and port."""
    api_config = app_config["api"]
    ssl_options = _ssl_options(api_config)
    startup_logger.info(
        "Listening on %s:%s (%s)",
        api_config["host"],
        api_config["port"],
        "https" if ssl_options else "http",
    )
    try:
        uvicorn.run(
            app,
            host=api_config["host"],
            port=api_config["port"],
            log_config=_uvicorn_log_config(),
            **ssl_options,
        )
    except Exception as e:
        startup_logger.error("uvicorn failed: %s", e, exc_info=True)
        raise


if __name__ == "__main__":
    run()
