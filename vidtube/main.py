"""FastAPI application initialization."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.api.auth import router as auth_router
from vidtube.api.comments import router as comments_router
from vidtube.api.middleware import CorrelationIdMiddleware
from vidtube.api.routes import router
from vidtube.config import get_settings
from vidtube.database import close_database, init_database, run_migrations
from vidtube.exceptions import ApiError
from vidtube.services.logging_service import configure_logging, get_logger

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    startup_logger = get_logger("main")

    try:
        await init_database()
        await run_migrations()
        startup_logger.info("database_initialized")
    except Exception as e:
        startup_logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - user and comment endpoints will fail",
        )

    startup_logger.info("application_started", log_level=settings.log_level)

    yield

    await close_database()
    startup_logger.info("application_shutdown")


app = FastAPI(
    title="VidTube API",
    description="Accounts, token sessions, comments and media uploads for a video platform",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render ApiError subclasses as the error envelope."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    cause = exc.__cause__
    log(
        "api_error",
        path=request.url.path,
        status_code=exc.status_code,
        error_message=exc.message,
        detail=exc.detail,
        cause_type=type(cause).__name__ if cause else None,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as a 400 envelope with field errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", ["unknown"])),
            "message": error.get("msg", "Validation failed"),
        }
        for error in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, errors=errors)

    return JSONResponse(
        status_code=400,
        content={
            "statusCode": 400,
            "data": None,
            "message": errors[0]["message"] if errors else "Request validation failed",
            "success": False,
            "errors": errors,
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (404 route, 405 method, ...) in the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "statusCode": exc.status_code,
            "data": None,
            "message": str(exc.detail),
            "success": False,
            "errors": [],
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide unexpected failures behind a generic 500 envelope."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "statusCode": 500,
            "data": None,
            "message": "Internal server error",
            "success": False,
            "errors": [],
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(comments_router)
app.include_router(router)
