"""
main.py — Bid Tracker application entry point

Builds the FastAPI app: logging, middleware (request id, security headers,
/api/v1 rewrite), rate limiting, error handlers, routers and the follow-up
scheduler lifecycle.

Business Rules:
- Every response carries X-Request-ID (8 chars), X-API-Version: v1 and
  the OWASP security headers
- /api/v1/... is served by the same routes as /api/...
- AppError subclasses map to their status code; request validation → 400;
  anything unexpected → 500 with a generic message (traceback logged only)
- The scheduler starts with the app unless TESTING=1

Called by: uvicorn bidtracker.main:app
Depends on: config, logging_config, rate_limit, scheduler, routers/*
"""

import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import APP_VERSION, settings
from .errors import AppError
from .logging_config import setup_logging
from .rate_limit import limiter
from .schemas.errors import ErrorResponse

setup_logging()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    from .scheduler import configure_scheduler, scheduler

    testing = bool(os.environ.get("TESTING"))
    if not testing:
        configure_scheduler()
        scheduler.start()
        logger.info("Scheduler started")
    logger.info(f"Bid Tracker {APP_VERSION} ready (policy={settings.access_policy})")
    yield
    if not testing and scheduler.running:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Bid Tracker", version=APP_VERSION, lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Middleware ───────────────────────────────────────────────────────


@app.middleware("http")
async def api_version_middleware(request: Request, call_next):
    """Serve /api/v1/... from the /api/... routes."""
    path = request.scope["path"]
    if path.startswith("/api/v1/") or path == "/api/v1":
        request.scope["path"] = "/api" + path[len("/api/v1"):]
    return await call_next(request)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    start = time.perf_counter()
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.0f}ms)"
        )
    response.headers["X-Request-ID"] = request_id
    response.headers["X-API-Version"] = "v1"
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


# ── Error handlers ───────────────────────────────────────────────────


def _error_response(request: Request, status_code: int, error: str, detail=None) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        status_code=status_code,
        request_id=getattr(request.state, "request_id", ""),
        detail=detail,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = _error_response(request, exc.status_code, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = [
        {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return _error_response(request, 400, "Validation failed", detail)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(request, 500, "Internal server error")


# ── Routers ──────────────────────────────────────────────────────────

from .routers.auth import router as auth_router  # noqa: E402
from .routers.bids import router as bids_router  # noqa: E402
from .routers.charts import router as charts_router  # noqa: E402
from .routers.companies import router as companies_router  # noqa: E402
from .routers.contacts import router as contacts_router  # noqa: E402
from .routers.followups import router as followups_router  # noqa: E402
from .routers.imports import router as imports_router  # noqa: E402
from .routers.scopes import router as scopes_router  # noqa: E402
from .routers.users import router as users_router  # noqa: E402

for _router in (
    auth_router,
    users_router,
    bids_router,
    companies_router,
    contacts_router,
    scopes_router,
    charts_router,
    imports_router,
    followups_router,
):
    app.include_router(_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": APP_VERSION}
