"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from yt_referencer.api.routes import router
from yt_referencer.config import settings
from yt_referencer.db.connection import init_db

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------

_DEFAULT_ORIGINS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}


def _get_allowed_origins() -> set[str]:
    origins = set(_DEFAULT_ORIGINS)
    if settings.extension_origin:
        origins.add(settings.extension_origin)
    if settings.allowed_origins:
        origins.update(o.strip() for o in settings.allowed_origins.split(",") if o.strip())
    return origins


_ALLOWED_ORIGINS = _get_allowed_origins()


# ---------------------------------------------------------------------------
# Error rendering: every failure is {"error": message}
# ---------------------------------------------------------------------------


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    if loc:
        return f"{'.'.join(loc)}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request body")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _format_validation_error(exc)
    logger.info("request.invalid", path=request.url.path, error=message)
    return JSONResponse({"error": message}, status_code=400)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("request.failed", path=request.url.path, method=request.method)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle: create tables on startup."""
    logger.info("app.startup", allowed_origins=sorted(_ALLOWED_ORIGINS))
    init_db()
    yield
    logger.info("app.shutdown")


app = FastAPI(
    title="YT Referencer",
    description="Clip and tag store for saved YouTube time ranges",
    version="0.1.0",
    lifespan=lifespan,
)

# The extension calls with cookies, so origins are echoed rather than wildcarded
app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(_ALLOWED_ORIGINS),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
