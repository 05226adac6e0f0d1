"""Map storefront exceptions onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register Protean's handlers plus the storefront error taxonomy."""
    register_exception_handlers(app)

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed on an upstream gateway",
                path=request.url.path,
                error=type(exc).__name__,
                message=exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, **exc.to_dict()},
        )
