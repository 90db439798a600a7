"""
Application lifecycle management module for the low-code platform server.

This module provides the FastAPI lifespan context manager that prepares the
database, the billing service and the code generation plugins on startup and
releases them on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from lowcode_server.billing.billing_service import billing_service
from lowcode_server.codegen.plugins import PluginRegistry
from lowcode_server.config import config
from lowcode_server.persistence import db
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.startup.lifecycle")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """
    Application lifespan manager to handle startup and shutdown events.
    """
    logger.info("=== FASTAPI LIFESPAN STARTUP BEGIN ===")

    try:
        db.create_all()
        logger.info("Database schema ready")

        await billing_service.initialize()

        registry = PluginRegistry()
        registry.load_from_config(config.get_codegen_config()["plugins"])
        fastapi_app.state.plugin_registry = registry
        logger.info("Code generation plugin registry ready")
    except Exception as e:
        logger.error("Exception in lifespan startup: %s", e, exc_info=True)
        raise

    logger.info("Server is ready to accept requests")
    yield
    logger.info("=== FASTAPI LIFESPAN SHUTDOWN BEGIN ===")

    fastapi_app.state.plugin_registry.clear()

    try:
        await billing_service.shutdown()
    except Exception as e:
        logger.error("Error stopping billing service: %s", e)

    logger.info("=== FASTAPI LIFESPAN SHUTDOWN COMPLETE ===")
