"""
Exception handlers module for the low-code platform server.

Domain errors raised by the services are turned into JSON error responses
here, so routes let them propagate.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lowcode_server.billing.errors import BillingLimitationError, BillingProviderError
from lowcode_server.codegen.events import InvalidEventParamsError
from lowcode_server.codegen.plugins import PluginError
from lowcode_server.publishing.commit_service import CommitError
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.startup.exceptions")


def _with_cors(request: Request, response: JSONResponse, origins: list) -> JSONResponse:
    request_origin = request.headers.get("origin")
    if request_origin and request_origin in origins:
        response.headers["Access-Control-Allow-Origin"] = request_origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Expose-Headers"] = "Authorization"
    return response


def register_exception_handlers(app: FastAPI, origins: list):
    """
    Register exception handlers for the FastAPI application.

    Args:
        app: The FastAPI application instance
        origins: List of allowed CORS origins
    """
    logger.info("=== REGISTERING EXCEPTION HANDLERS ===")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions and ensure CORS headers are included."""
        logger.warning(
            "HTTP Exception occurred - Status: %s, Detail: %s, Path: %s",
            exc.status_code,
            exc.detail,
            request.url.path,
        )
        response = JSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}
        )
        return _with_cors(request, response, origins)

    @app.exception_handler(BillingLimitationError)
    async def billing_limitation_handler(request: Request, exc: BillingLimitationError):
        """A plan limitation blocks the request."""
        logger.info("Billing limitation on %s: %s", request.url.path, exc.message)
        response = JSONResponse(
            status_code=403,
            content={
                "detail": {
                    "error": "billing_limitation",
                    "message": exc.message,
                    "feature": exc.billing_feature,
                }
            },
        )
        return _with_cors(request, response, origins)

    @app.exception_handler(BillingProviderError)
    async def billing_provider_handler(request: Request, exc: BillingProviderError):
        """The billing provider failed while serving the request."""
        logger.error(
            "Billing provider error on %s: %s (status %s)",
            request.url.path,
            exc,
            exc.status,
        )
        response = JSONResponse(
            status_code=502, content={"detail": "Billing provider unavailable"}
        )
        return _with_cors(request, response, origins)

    @app.exception_handler(CommitError)
    async def commit_error_handler(request: Request, exc: CommitError):
        """A commit request could not be applied."""
        logger.warning("Commit rejected on %s: %s", request.url.path, exc)
        response = JSONResponse(status_code=400, content={"detail": str(exc)})
        return _with_cors(request, response, origins)

    @app.exception_handler(InvalidEventParamsError)
    async def invalid_event_params_handler(
        request: Request, exc: InvalidEventParamsError
    ):
        """A plugin produced params that break an event's contract."""
        logger.warning("Invalid event params on %s: %s", request.url.path, exc)
        response = JSONResponse(
            status_code=422,
            content={"detail": {"event": exc.event.value, "errors": exc.errors}},
        )
        return _with_cors(request, response, origins)

    @app.exception_handler(PluginError)
    async def plugin_error_handler(request: Request, exc: PluginError):
        """A code generation plugin failed."""
        logger.error(
            "Plugin %s failed on %s: %s", exc.plugin_id, request.url.path, exc
        )
        response = JSONResponse(
            status_code=500,
            content={
                "detail": {
                    "error": "plugin_error",
                    "plugin": exc.plugin_id,
                    "message": str(exc),
                }
            },
        )
        return _with_cors(request, response, origins)

    @app.exception_handler(500)
    async def internal_server_error_handler(request: Request, exc: Exception):
        """Handle internal server errors and ensure CORS headers are included."""
        logger.error(
            "Internal Server Error occurred - Path: %s, Exception: %s",
            request.url.path,
            exc,
            exc_info=True,
        )
        response = JSONResponse(
            status_code=500, content={"detail": "Internal server error"}
        )
        return _with_cors(request, response, origins)

    logger.info("Exception handlers registered")
