"""
Route registration module for the low-code platform server.

This module provides functions to register all API routes including both
authenticated and unauthenticated endpoints.
"""

from fastapi import FastAPI

from lowcode_server.api import auth, billing, catalog, codegen, publishing
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.startup.routes")


def register_routes(app: FastAPI):
    """
    Register all API routes with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    logger.info("=== REGISTERING ROUTES ===")

    # Unauthenticated routes
    app.include_router(auth.router, prefix="/api", tags=["auth"])

    # Authenticated routes
    app.include_router(billing.router, prefix="/api", tags=["billing"])
    app.include_router(catalog.router, prefix="/api", tags=["catalog"])
    app.include_router(publishing.router, prefix="/api", tags=["publishing"])
    app.include_router(codegen.router, prefix="/api", tags=["codegen"])

    logger.info("All routes registered")


def register_app_routes(app: FastAPI):
    """Register the basic application routes."""

    @app.get("/")
    async def root():
        return {"message": "Low-code platform server"}

    @app.get("/health")
    async def health():
        return {"status": "ok"}
