"""
╔══════════════════════════════════════════════════╗
║      Rubrik Review Desk                            ║
║ Editorial article lifecycle and review ledger      ║
║                                                   ║
║    Built with: FastAPI + PostgreSQL + MinIO        ║
║    Version: 1.0.0                                 ║
╚══════════════════════════════════════════════════╝
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import engine, init_db
from app.core.logging import setup_logging, get_logger
from app.core.correlation import (
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    get_request_id,
)
from app.domain.articles.errors import ArticleWorkflowError
from app.schemas import HealthResponse

# Import routers
from app.api.routes.auth import router as auth_router
from app.api.routes.articles import router as articles_router
from app.api.routes.review import router as review_router
from app.api.envelope import error_envelope, workflow_error_envelope

settings = get_settings()
logger = get_logger("main")

APP_VERSION = "1.0.0"

# Track uptime
_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup & shutdown lifecycle."""

    # ── Startup ──
    setup_logging(debug=settings.app_debug)
    logger.info("app_starting", app=settings.app_name, env=settings.app_env)

    # Initialize database tables (development only)
    await init_db()
    logger.info("database_initialized")

    logger.info("app_ready", port=settings.app_port)

    yield

    # ── Shutdown ──
    await engine.dispose()
    logger.info("app_shutdown")


# ── Create FastAPI App ──

app = FastAPI(
    title=settings.app_name,
    description=(
        "Editorial article lifecycle for rubric-scoped review teams.\n\n"
        "Authors draft and submit, rubric editors review and request revisions, "
        "rubric admins publish or reject. Every step is recorded in an "
        "append-only review ledger."
    ),
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS Middleware ──

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Logging Middleware ──

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    request_id, correlation_id = bind_request_context(
        request.headers.get("x-request-id"),
        request.headers.get("x-correlation-id"),
    )
    start = time.time()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        elapsed = round((time.time() - start) * 1000, 2)
        if response is not None:
            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            status_code = response.status_code
        else:
            status_code = 500

        if request.url.path not in ["/health", "/docs", "/redoc", "/openapi.json"]:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                elapsed_ms=elapsed,
                request_id=get_request_id(),
                correlation_id=get_correlation_id(),
            )

        clear_request_context()


# ── Global Exception Handlers ──

@app.exception_handler(ArticleWorkflowError)
async def workflow_exception_handler(request: Request, exc: ArticleWorkflowError):
    logger.info(
        "workflow_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return workflow_error_envelope(exc, meta={"path": request.url.path})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=str(exc.detail),
    )
    return error_envelope(
        code="http_error",
        message="Request failed",
        status_code=exc.status_code,
        details=exc.detail,
        meta={"path": request.url.path},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("validation_error", path=request.url.path, errors=exc.errors())
    return error_envelope(
        code="validation_error",
        message="Validation failed",
        status_code=422,
        details=exc.errors(),
        meta={"path": request.url.path},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_envelope(
        code="internal_error",
        message="Internal server error",
        status_code=500,
        details=None,
        meta={"path": request.url.path},
    )


# ── Register Routers ──

app.include_router(auth_router, prefix="/api/v1")
app.include_router(articles_router, prefix="/api/v1")
app.include_router(review_router, prefix="/api/v1")


# ── Health Check ──

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """System health check endpoint."""
    uptime = round(time.time() - _start_time, 2)
    database = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("health_database_unavailable", error=str(exc))
        database = "unavailable"
    return HealthResponse(
        status="ok" if database == "connected" else "degraded",
        version=APP_VERSION,
        database=database,
        uptime_seconds=uptime,
    )


@app.get("/", tags=["System"])
async def root():
    """Welcome endpoint."""
    return {
        "name": settings.app_name,
        "version": APP_VERSION,
        "status": "operational",
        "docs": "/docs",
    }
