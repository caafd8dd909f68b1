"""Main FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response

from elucidario.api.controller import error_response
from elucidario.api.routes import api_router
from elucidario.api.utils import endpoint_path
from elucidario.core.core import Core, create_core
from elucidario.core.errors import ElucidarioError
from elucidario.core.logging import configure_logging
from elucidario.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.
    Opens the graph pool and installs constraints before serving; closes the pool on shutdown.
    """
    core: Core = app.state.core
    settings = core.settings
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    await core.graph.connect(settings)
    _ = await core.graph.setup()

    yield

    logger.info("Shutting down application")
    await core.graph.close()


async def handle_error(_request: Request, exc: Exception) -> Response:
    return error_response(exc)


def create_app(settings: Settings | None = None, core: Core | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Collection management API over a graph store",
        lifespan=lifespan,
    )
    app.state.core = core or create_core(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ElucidarioError, handle_error)
    app.add_exception_handler(RequestValidationError, handle_error)
    app.add_exception_handler(Exception, handle_error)

    app.include_router(api_router(), prefix=endpoint_path(settings))

    @app.get("/health")
    async def health_check() -> dict[str, str]:  # pyright: ignore[reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "elucidario.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
    )
