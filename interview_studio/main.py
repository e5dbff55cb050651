"""Interview Studio: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before other app imports bind loggers
# (structlog caches the processor chain on first use).
from interview_studio.core.logging import configure_structlog
from interview_studio.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_studio.api.routes import api_router
from interview_studio.core.config import get_settings
from interview_studio.core.exceptions import InterviewStudioError
from interview_studio.db import close_db, init_db
from interview_studio.middleware.correlation import get_correlation_id, setup_correlation_middleware
from interview_studio.schemas.common import ErrorResponse

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    yield

    logger.info("shutdown_begin")
    await close_db()
    logger.info("shutdown_complete")


def _error_response(status_code: int, code: str, message: str, details: list[str], debug_id: str) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, details=details, debug_id=debug_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def domain_exception_handler(request: Request, exc: InterviewStudioError) -> JSONResponse:
    """Render service errors as the structured failure envelope."""
    debug_id = str(uuid.uuid4())
    logger.warning(
        "domain_error",
        code=exc.code,
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=exc.message,
    )
    return _error_response(exc.status_code, exc.code, exc.message, exc.details, debug_id)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    logger.info("request_validation_failed", debug_id=debug_id, path=request.url.path, details=details)
    return _error_response(422, "validation_error", "Request body failed validation", details, debug_id)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return _error_response(exc.status_code, "http_error", str(exc.detail), [], debug_id)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled errors with traceback; return a generic 500 (no internals leaked)."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return _error_response(500, "internal_error", "Internal server error", [], debug_id)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="AI interview sessions and content generation",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    app.exception_handler(InterviewStudioError)(domain_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "interview_studio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
