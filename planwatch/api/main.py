"""
planwatch API entry point.

``create_application`` builds the FastAPI app; ``app`` is a module-level
instance configured from the environment for ``uvicorn planwatch.api.main:app``.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from planwatch.api.config import APIConfig
from planwatch.api.endpoints import api_router
from planwatch.api.middleware import RequestTimings, add_middleware
from planwatch.api.startup import lifespan
from planwatch.errors import (
    ConfigurationError,
    GitCommandError,
    InvalidStatusOverrideError,
    PlanNotConfiguredError,
    PlanwatchError,
    SessionNotFoundError,
    TaskNotFoundError,
)
from planwatch.logging import get_logger

logger = get_logger(__name__)


def _error_response(status_code: int, exc: PlanwatchError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.to_dict()},
    )


def create_application(config: Optional[APIConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration; read from the environment when
            omitted

    Returns:
        FastAPI: Configured application; services start with its lifespan
    """
    config = config or APIConfig()
    if config.paths.plan_dir is not None and config.paths.plan_dir.exists() and not config.paths.plan_dir.is_dir():
        raise ConfigurationError(
            f"Plan directory {config.paths.plan_dir} is not a directory",
            details={"plan_dir": str(config.paths.plan_dir)},
        )

    app = FastAPI(
        title=config.title,
        description=config.description,
        version=config.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.timings = RequestTimings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    add_middleware(app, app.state.timings)

    @app.exception_handler(TaskNotFoundError)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        """Handle TaskNotFoundError with a 404 response."""
        logger.info(f"TaskNotFoundError: {exc.message}")
        return _error_response(404, exc)

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(
        request: Request, exc: SessionNotFoundError
    ) -> JSONResponse:
        """Handle SessionNotFoundError with a 404 response."""
        logger.info(f"SessionNotFoundError: {exc.message}")
        return _error_response(404, exc)

    @app.exception_handler(PlanNotConfiguredError)
    async def plan_not_configured_handler(
        request: Request, exc: PlanNotConfiguredError
    ) -> JSONResponse:
        """Handle PlanNotConfiguredError with a 409 response."""
        logger.info(f"PlanNotConfiguredError: {exc.message}")
        return _error_response(409, exc)

    @app.exception_handler(InvalidStatusOverrideError)
    async def invalid_override_handler(
        request: Request, exc: InvalidStatusOverrideError
    ) -> JSONResponse:
        """Handle InvalidStatusOverrideError with a 422 response."""
        logger.info(f"InvalidStatusOverrideError: {exc.message}")
        return _error_response(422, exc)

    @app.exception_handler(GitCommandError)
    async def git_error_handler(request: Request, exc: GitCommandError) -> JSONResponse:
        """Handle GitCommandError with a 502 response."""
        logger.error(f"GitCommandError: {exc.message}")
        return _error_response(502, exc)

    @app.exception_handler(ConfigurationError)
    async def config_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        """Handle ConfigurationError with a 500 response."""
        logger.error(f"ConfigurationError: {exc.message}", exc_info=True)
        return _error_response(500, exc)

    @app.exception_handler(PlanwatchError)
    async def planwatch_error_handler(request: Request, exc: PlanwatchError) -> JSONResponse:
        """Handle any other PlanwatchError with a 400 response."""
        logger.error(f"PlanwatchError: {exc.message}", exc_info=True)
        return _error_response(400, exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions with a 500 response."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                    "details": {"type": type(exc).__name__},
                },
            },
        )

    app.include_router(api_router)
    return app


app = create_application()
