"""FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from repo_nexus.api import insights, issues, status, trending
from repo_nexus.domain.exceptions import (
    ConfigurationError,
    GenerationError,
    InvalidRepositoryError,
    MissingTokenError,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="NEXUS",
        description="Discover, analyze and document open-source GitHub repositories",
        version="0.1.0",
    )

    app.include_router(trending.router)
    app.include_router(issues.router)
    app.include_router(insights.router)
    app.include_router(status.router)

    @app.exception_handler(InvalidRepositoryError)
    async def invalid_repository_handler(request: Request, exc: InvalidRepositoryError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(MissingTokenError)
    async def missing_token_handler(request: Request, exc: MissingTokenError):
        return JSONResponse({"error": str(exc)}, status_code=401)

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError):
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=503)

    @app.exception_handler(GenerationError)
    async def generation_handler(request: Request, exc: GenerationError):
        logger.exception(f"Generation failed on {request.url.path}")
        return JSONResponse({"error": str(exc)}, status_code=500)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
