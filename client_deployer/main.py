"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from client_deployer import __version__
from client_deployer.actions.registry import get_action_registry
from client_deployer.api.middleware import RequestLoggingMiddleware
from client_deployer.api.v1.router import router as v1_router
from client_deployer.config import settings
from client_deployer.core.exceptions import ClientDeployerError, ConfigurationError
from client_deployer.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging()
    logger.info(
        "application.starting",
        version=__version__,
        environment=settings.app_env,
        commands=get_action_registry().list_commands(),
    )

    yield

    # Shutdown
    logger.info("application.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Client Deployer API",
        description="Deploys static-site client builds to S3 website buckets",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(RequestLoggingMiddleware)

    # ConfigurationError maps to 400, other application errors to 500
    @app.exception_handler(ClientDeployerError)
    async def client_deployer_error_handler(
        request: Request, exc: ClientDeployerError
    ) -> JSONResponse:
        """Handle application-specific errors."""
        status_code = (
            status.HTTP_400_BAD_REQUEST
            if isinstance(exc, ConfigurationError)
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "code": type(exc).__name__.upper(),
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        message = str(exc) if settings.is_development else "An unexpected error occurred"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": message}},
        )

    # Include routers
    app.include_router(v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "client_deployer.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
