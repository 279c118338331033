"""SmartProcure edge service - FastAPI application entrypoint."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import load_config, log_config_snapshot
from app.rate_limiter import FixedWindowRateLimiter, RateLimitMiddleware, set_rate_limiter
from app.routers import analyze
from app.routers import auth
from app.routers import billing
from app.routers import usage
from app.routers import web
from persistence.db import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load and validate configuration at startup
_config = load_config()
log_config_snapshot(_config)

# Export config value for middleware (validated)
MAX_REQUEST_SIZE_BYTES = _config.max_request_size_bytes

set_rate_limiter(
    FixedWindowRateLimiter(
        max_requests=_config.analyze_rate_limit,
        window_seconds=_config.analyze_rate_window_seconds,
    )
)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body exceeds the size limit."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                declared = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"error": "Invalid Content-Length header"},
                )
            if declared > MAX_REQUEST_SIZE_BYTES:
                return JSONResponse(
                    status_code=413,
                    content={"error": "Request entity too large"},
                )
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response


# Capture service start time for uptime reporting
_SERVICE_START_TIME = datetime.now(timezone.utc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, drop the connection on shutdown."""
    init_db()
    logger.info("Database initialized")
    yield
    close_db()
    logger.info("Shutting down")


app = FastAPI(
    title="SmartProcure",
    description="AI relay, billing webhooks and usage tracking for tender audits",
    version=_config.service_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware stack (added in reverse execution order)
# 1. SecurityHeaders: wraps everything, including 413 and 429 responses
# 2. RequestSizeLimit: rejects oversized requests before any body is read
# 3. RateLimit: counts /api/analyze calls per client
app.add_middleware(RateLimitMiddleware, path_prefix="/api/analyze")
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


# =============================================================================
# Error responses
# =============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """All API errors share the {error} body shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    logger.info(f"Rejected invalid body on {request.url.path}: {len(details)} error(s)")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "detail": details},
    )


@app.get("/health")
async def health():
    """Health check with service observability."""
    return {
        "status": "healthy",
        "service": _config.service_name,
        "version": _config.service_version,
        "environment": _config.environment,
        "started_at": _SERVICE_START_TIME.isoformat(),
    }


# API routers first; the SPA catch-all must stay last
app.include_router(analyze.router)
app.include_router(billing.router)
app.include_router(auth.router)
app.include_router(usage.router)
app.include_router(web.router)


def run():
    """Console entry point: serve on PORT."""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=_config.port)


if __name__ == "__main__":
    run()
