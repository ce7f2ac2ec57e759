"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from insightvault.api.routes import auth, data, health, users
from insightvault.core.config import Settings, settings as default_settings
from insightvault.core.database import close_db, create_client, init_db
from insightvault.core.exceptions import AppError, InternalError, ValidationError
from insightvault.core.logging import get_logger, setup_logging
from insightvault.core.security import TokenCodec

logger = get_logger(__name__)

PARAM_SOURCES = ("body", "query", "path", "header", "cookie")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the MongoDB client on startup and close it on shutdown."""
    app_settings: Settings = app.state.settings
    logger.info("Starting InsightVault application", version=app_settings.app.version)

    client = create_client(app_settings.database)
    app.state.mongo_client = client
    app.state.database = client[app_settings.database.name]
    try:
        await init_db(app.state.database)
        logger.info("Application startup completed")
        yield
    except Exception as e:
        logger.error("Failed to start application", error=str(e))
        raise
    finally:
        logger.info("Shutting down InsightVault application")
        await close_db(client)
        logger.info("Application shutdown completed")


def format_validation_error(error: Dict[str, Any]) -> str:
    """Render one pydantic error as ``"field: message"``."""
    location = ".".join(str(part) for part in error.get("loc", ()) if part not in PARAM_SOURCES)
    message = str(error.get("msg", "Invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(details=[format_validation_error(e) for e in exc.errors()])
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are read once here; the token codec built from them is
    immutable for the life of the app.
    """
    app_settings = app_settings or default_settings
    setup_logging(app_settings)

    app = FastAPI(
        title=app_settings.app.name,
        version=app_settings.app.version,
        description="Personal data records with bearer-token authentication and per-record ownership",
        debug=app_settings.app.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.token_codec = TokenCodec.from_config(app_settings.security)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    if app_settings.is_development():
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.app.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/user", tags=["user"])
    app.include_router(data.router, prefix="/api/data", tags=["data"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, Any]:
        return {
            "message": "Welcome to InsightVault",
            "version": app_settings.app.version,
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


# Create the application instance
app = create_app()
