"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import accounts_router, quizzes_router, results_router
from src.config.settings import Settings, get_settings
from src.errors import QuizAppError
from src.storage.database import Database

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Install a root handler unless one is already configured (e.g. by the CLI)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database for the lifetime of the app."""
    settings: Settings = app.state.settings
    database = Database(settings.database_url)
    await database.create_all()
    app.state.database = database
    logger.info("Database ready (%s backend)", settings.provider_backend.value)
    try:
        yield
    finally:
        await database.dispose()
        logger.info("Database closed")


async def handle_app_error(request: Request, exc: QuizAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Missing or invalid request parameters.", "details": details},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "An internal error occurred"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the web application.

    Args:
        settings: Configuration to use; loaded from the environment if omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Quiz Genie",
        description="AI-generated quizzes with automatic grading",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(QuizAppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(accounts_router)
    app.include_router(quizzes_router)
    app.include_router(results_router)

    @app.get("/")
    async def root():
        """Health check."""
        return {"status": "ok"}

    return app
