"""
JunkHub Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app) and by
       the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: RateLimit → RequestID → Logging → GZip → CORS│
    │                                                          │
    │  Routers:                                                │
    │    /api/auth  /api/users  /api/shops  /api/products      │
    │    /api/orders  /api/offers  /api/owner  /api/admin      │
    │    /api/chats  /api/owner/chats                          │
    │    /api/notifications  /api/owner/notifications          │
    │    /api/admin/notifications  /health                     │
    │                                                          │
    │  Exception handlers:                                     │
    │    MarketplaceError → its status │ pydantic → 400        │
    │    IntegrityError → 400 │ NoResultFound → 404            │
    │    SQLAlchemyError → 500 │ * → 500                       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate security settings, log readiness.
    Shutdown: dispose the database engine.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import DatabaseError, MarketplaceError, error_body
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import (
    admin,
    auth,
    chats,
    health,
    notifications,
    offers,
    orders,
    owner,
    products,
    shops,
    users,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: timestamp [LEVEL] logger.name: message
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("JunkHub Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if settings.is_production:
            raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("JunkHub Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}

_HTTP_CODES = {
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _field_path(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(parts) or "body"


def validation_error_body(errors: List[Dict[str, Any]], request_id: str) -> Dict[str, Any]:
    """
    Flattens pydantic errors into both shapes clients read:
    `errors: [{path, msg}]` and `details: [{field, message}]`.
    """
    flat = [(_field_path(err.get("loc", ())), err.get("msg", "Invalid value")) for err in errors]
    return {
        "error": "Validation failed",
        "code": "VALIDATION_FAILED",
        "request_id": request_id,
        "errors": [{"path": path, "msg": msg} for path, msg in flat],
        "details": [{"field": path, "message": msg} for path, msg in flat],
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

    Every body has `error`, `code` and `request_id`. Internal details
    (context dicts, SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(MarketplaceError)
    async def handle_marketplace_error(request: Request, exc: MarketplaceError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, exc.code, exc.message)

        headers = None
        retry_after = getattr(exc, "retry_after", None)
        if retry_after:
            headers = {"Retry-After": str(retry_after)}
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, rid), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Request validation failed: %d error(s)", rid, len(exc.errors()))
        return JSONResponse(status_code=400, content=validation_error_body(list(exc.errors()), rid))

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        rid = request_id_var.get("")
        logger.warning("[%s] Integrity error: %s", rid, exc.orig)
        return JSONResponse(
            status_code=400,
            content={
                "error": "A record with this value already exists",
                "code": "DUPLICATE_RECORD",
                "request_id": rid,
            },
        )

    @app.exception_handler(NoResultFound)
    async def handle_no_result(request: Request, exc: NoResultFound):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={"error": "Record not found", "code": "NOT_FOUND", "request_id": rid},
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=error_body(DatabaseError(), rid))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = request_id_var.get("")
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": message,
                "code": _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
                "request_id": rid,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "An unexpected error occurred. Please try again later.",
                "code": "INTERNAL_ERROR",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="JunkHub API",
        description=(
            "Marketplace for junk shops: customers buy items, sell scrap to shops "
            "through offers, and chat with shop owners about their orders."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(shops.router)
    app.include_router(products.router)
    app.include_router(orders.router)
    app.include_router(offers.router)
    # Owner and admin chat/notification prefixes sit under /api/owner and
    # /api/admin; their literal segments never collide with dashboard routes.
    app.include_router(owner.router)
    app.include_router(admin.router)
    app.include_router(chats.user_chats_router)
    app.include_router(chats.owner_chats_router)
    app.include_router(notifications.user_notifications_router)
    app.include_router(notifications.owner_notifications_router)
    app.include_router(notifications.admin_notifications_router)

    return app


# uvicorn expects `app.main:app`
app = create_app()
