"""
LeaveFlow - leave management API.

Middleware order (outermost first): CORS -> CorrelationId -> Logging.
Every failure is rendered as {"success": false, "error", "code", "field"?}.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

import leaveflow.models  # noqa: F401  registers models with SQLAlchemy
from leaveflow.core.config import settings
from leaveflow.core.exceptions import AppException
from leaveflow.core.init_system import init_system_data
from leaveflow.core.limiter import limiter
from leaveflow.core.logging import setup_logging
from leaveflow.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from leaveflow.database import SessionLocal, init_db
from leaveflow.routers.api_router import api_router

setup_logging()
logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "Service temporarily unavailable. Please try again later."
UNEXPECTED_ERROR = "An unexpected server error occurred."


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
        logger.info("Database initialized")
        init_system_data()
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("Gracefully shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Leave requests, approvals and supervisor assignments",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ============================================================================
# RATE LIMITER
# ============================================================================
app.state.limiter = limiter


# ============================================================================
# MIDDLEWARE STACK (last added runs first)
# ============================================================================
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time", "Content-Disposition"],
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================
def error_response(status_code: int, message: str, code: str, field: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "error": message, "code": code}
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400 naming the first offending field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [part for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = str(loc[-1]) if loc else None
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    logger.warning(f"Validation error: {message}")
    return error_response(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR", field)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"AppException: {exc.message}", extra={"code": exc.error_code})
    return error_response(exc.status_code, exc.message, exc.error_code, exc.field)


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, "HTTP_ERROR")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded: {exc.detail}", extra={"path": request.url.path})
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many attempts. Please try again later.",
        "RATE_LIMITED",
    )


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Database unavailable: {exc.orig}", extra={"path": request.url.path})
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, SERVICE_UNAVAILABLE, "SERVICE_UNAVAILABLE")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    # Runs outside the middleware stack, after the request id context has been reset
    request_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled server error", extra={"path": request.url.path, "request_id": request_id})
    response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR, "INTERNAL_ERROR")
    if request_id:
        response.headers[settings.request_id_header] = request_id
    return response


# ============================================================================
# ROUTERS
# ============================================================================
app.include_router(api_router, prefix=settings.api_prefix)


# ============================================================================
# OPERATIONAL ENDPOINTS (at root level)
# ============================================================================
@app.get("/", tags=["Health"])
def root():
    return {
        "message": f"{settings.app_name} API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    """Readiness probe - verifies database connectivity."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {
        "status": "ready",
        "components": {"database": "connected"},
    }
