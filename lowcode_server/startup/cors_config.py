"""
CORS configuration module for the low-code platform server.
"""

from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.startup.cors")


def get_cors_origins(the_config: dict) -> list:
    """Build the allowed CORS origins from the webui/api config sections."""
    web_ui = the_config["webui"]
    api = the_config["api"]
    origins = []
    for host in ("localhost", "127.0.0.1", web_ui["host"], api["host"]):
        for port in (web_ui["port"], api["port"]):
            origin = f"http://{host}:{port}"
            if origin not in origins:
                origins.append(origin)

    additional = (the_config.get("cors") or {}).get("additional_origins") or []
    if additional:
        logger.info("Adding additional origins from config: %s", additional)
        origins.extend(additional)

    if api.get("certFile") and api.get("keyFile"):
        origins.extend([origin.replace("http://", "https://") for origin in origins])

    logger.info("Total CORS origins count: %d", len(origins))
    return origins
