"""FastAPI application for the PersonaPass backend services.

Endpoints:
  GET    /health                              - Liveness + environment echo
  GET    /api/status                          - Capability/endpoint directory
  POST   /api/auth/login                      - Login (integration placeholder)
  POST   /api/auth/totp-setup                 - Generate a TOTP secret + QR code
  POST   /api/auth/create-account             - Create account after TOTP check
  GET    /api/blockchain/status               - Probe the PersonaChain validator
  GET    /api/blockchain/balance/{address}    - Balance (stub)
  POST   /api/blockchain/transaction          - Transaction (stub)
  POST   /api/identity/create-did             - Issue or return a DID
  POST   /api/identity/get-did                - Look up a DID by name
  GET    /api/identity/credentials/{address}  - Credentials (stub)
"""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

import personapass
from personapass.api.routes import auth, blockchain, identity
from personapass.chain.client import ChainClient
from personapass.config import Settings, settings
from personapass.core.models import utc_iso
from personapass.core.service import IdentityService
from personapass.exceptions import (
    InternalError,
    PersonaPassError,
    RateLimitError,
    ValidationError,
)
from personapass.logging_config import log_startup_info, setup_logging
from personapass.ratelimit import RateLimiter

logger = logging.getLogger("personapass")
_audit_logger = logging.getLogger("personapass.audit")

AVAILABLE_ENDPOINTS = [
    "GET /health",
    "GET /api/status",
    "POST /api/auth/login",
    "POST /api/auth/totp-setup",
    "POST /api/auth/create-account",
    "GET /api/blockchain/status",
    "GET /api/blockchain/balance/:address",
    "POST /api/blockchain/transaction",
    "POST /api/identity/create-did",
    "POST /api/identity/get-did",
    "GET /api/identity/credentials/:address",
]

# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------
limiter = RateLimiter(
    settings.rate_limit if settings.rate_limit_enabled else "100/minute",
    storage_uri=settings.rate_limit_storage,
    enabled=settings.rate_limit_enabled,
)

_STARTUP_TIME: float = time.monotonic()


def build_service(config: Settings = settings) -> IdentityService:
    """Create a fresh service with empty stores."""
    chain = ChainClient(
        rpc_url=config.chain_rpc_url,
        api_url=config.chain_api_url,
        chain_id=config.chain_id,
        timeout=config.chain_timeout,
    )
    return IdentityService(
        chain,
        issuer_name=config.issuer_name,
        session_endpoint=config.lambda_session_create_url,
    )


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _STARTUP_TIME
    _STARTUP_TIME = time.monotonic()
    setup_logging(settings.log_format, logging.getLevelName(settings.log_level))
    log_startup_info()
    yield
    logger.info("Shutting down gracefully")


app = FastAPI(
    title="PersonaPass Backend Services",
    description="TOTP authentication, DID issuance and PersonaChain status.",
    version=personapass.__version__,
    lifespan=lifespan,
)

app.state.service = build_service()
app.state.limiter = limiter

app.include_router(auth.router)
app.include_router(blockchain.router)
app.include_router(identity.router)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def _error_response(request: Request, exc: PersonaPassError, **extra) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error_type,
            "message": exc.message,
            "request_id": request_id,
            **extra,
        },
    )


@app.exception_handler(PersonaPassError)
async def persona_error_handler(request: Request, exc: PersonaPassError) -> JSONResponse:
    """Centralized handler for custom PersonaPass exceptions."""
    logger.warning(
        "%s %s failed: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.error_type,
        extra={"error_type": exc.error_type, "path": request.url.path},
    )
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies get the same 400 envelope as missing fields."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    error = ValidationError("Invalid request: " + "; ".join(problems))
    logger.warning(
        "%s %s rejected: %s",
        request.method,
        request.url.path,
        error.message,
        extra={"error_type": error.error_type, "path": request.url.path},
    )
    return _error_response(request, error)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths and methods answer 404 with the endpoint directory."""
    request_id = getattr(request.state, "request_id", "unknown")
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "not_found",
                "message": "Endpoint not found",
                "request_id": request_id,
                "available_endpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": "http_error",
            "message": str(exc.detail),
            "request_id": request_id,
        },
        headers=getattr(exc, "headers", None),
    )


def _internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Anything uncaught becomes a 500; details are hidden in production."""
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"error_type": InternalError.error_type, "path": request.url.path},
    )
    if settings.is_production:
        return _error_response(request, InternalError("Internal server error"))
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return _error_response(request, InternalError(str(exc) or exc.__class__.__name__), stack=stack)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for failures raised by the middleware stack itself."""
    return _internal_error_response(request, exc)


# ---------------------------------------------------------------------------
# Error middleware (innermost: its 500s still pass through every other layer)
# ---------------------------------------------------------------------------
@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:  # noqa: BLE001
        return _internal_error_response(request, exc)


# ---------------------------------------------------------------------------
# Rate limiting middleware (runs after CORS)
# ---------------------------------------------------------------------------
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next) -> Response:
    client_ip = get_remote_address(request)
    try:
        request.app.state.limiter.consume(client_ip)
    except RateLimitError as exc:
        _audit_logger.warning(
            "Rate limit exceeded: %s %s from %s",
            request.method,
            request.url.path,
            client_ip,
            extra={"client_ip": client_ip, "error_type": exc.error_type},
        )
        response = _error_response(request, exc, retryAfter=exc.retry_after)
        response.headers["Retry-After"] = str(exc.retry_after)
        return response
    return await call_next(request)


# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.cors_allow_all else settings.cors_origin_list,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# GZip compression for responses > 500 bytes
app.add_middleware(GZipMiddleware, minimum_size=500)


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------
_CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "script-src 'self'; "
    "img-src 'self' data:; "
    f"connect-src 'self' https://*.supabase.co {settings.chain_rpc_url} {settings.chain_api_url}; "
    "frame-ancestors 'none'"
)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    response.headers["Content-Security-Policy"] = _CONTENT_SECURITY_POLICY
    return response


# ---------------------------------------------------------------------------
# Request logging middleware (also sets request_id on state for error handler)
# ---------------------------------------------------------------------------
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    request_id = str(uuid4())[:8]
    request.state.request_id = request_id
    start = time.monotonic()
    response: Response = await call_next(request)
    elapsed_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(
        "%s %s %s %.1fms [%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
            "client_ip": get_remote_address(request),
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Health and directory
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"], summary="Health check")
async def health():
    return {
        "status": "operational",
        "service": "PersonaPass Backend Services",
        "version": personapass.__version__,
        "timestamp": utc_iso(),
        "uptime": round(time.monotonic() - _STARTUP_TIME, 1),
        "environment": settings.environment,
        "services": {
            "database": "operational",
            "blockchain": "checking...",
            "lambda_functions": "operational",
        },
    }


@app.get("/api/status", tags=["Health"], summary="API capability directory")
async def api_status():
    return {
        "success": True,
        "message": "PersonaPass Backend API is operational",
        "endpoints": {
            "health": "/health",
            "status": "/api/status",
            "auth": {
                "login": "POST /api/auth/login",
                "totp_setup": "POST /api/auth/totp-setup",
                "create_account": "POST /api/auth/create-account",
            },
            "identity": {
                "create_did": "POST /api/identity/create-did",
                "get_did": "POST /api/identity/get-did",
                "get_credentials": "GET /api/identity/credentials/:address",
            },
            "blockchain": {
                "status": "GET /api/blockchain/status",
                "balance": "GET /api/blockchain/balance/:address",
                "transaction": "POST /api/blockchain/transaction",
            },
        },
        "lambda_functions": {
            "totp_setup": settings.lambda_totp_setup_url or "configured",
            "totp_verify": settings.lambda_totp_verify_url or "configured",
            "session_create": settings.lambda_session_create_url or "configured",
        },
    }
