# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import ContextualError
from .inference.providers import log_provider_status
from .routes import context, health, schema
from .schemas.error import ErrorResponse
from .services.dispatch import init_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    log_provider_status()
    init_pipeline(settings)
    yield


app = FastAPI(
    title="Contextual API",
    description="Context resolution and AI dispatch for content-managed sites",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Caller-Id", "X-Caller-Capabilities", "X-Request-ID"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", str(uuid.uuid4()))


def _problem(status_code: int, detail: str, request_id: str, code: str = "") -> JSONResponse:
    body = ErrorResponse(
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        code=code,
        detail=detail,
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(ContextualError)
async def contextual_error_handler(request: Request, exc: ContextualError):
    """Convert service errors to RFC 7807 Problem Details with their own status."""
    request_id = _request_id(request)
    logger.info(
        "%s on %s (request_id=%s): %s",
        type(exc).__name__,
        request.url.path,
        request_id,
        exc.detail,
    )
    return _problem(exc.status_code, exc.detail, request_id, exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    return _problem(exc.status_code, str(exc.detail), _request_id(request))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    return _problem(422, str(exc.errors()), _request_id(request), "validation_error")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = _request_id(request)
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    return _problem(500, "An unexpected error occurred.", request_id, "internal_error")


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(context.router, prefix="/api", tags=["context"])
app.include_router(schema.router, prefix="/api", tags=["schema"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "Contextual API"}
