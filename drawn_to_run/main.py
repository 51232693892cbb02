"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time
from prometheus_client import make_asgi_app
import uuid

from drawn_to_run.config import settings
from drawn_to_run.core.database import init_db, close_db
from drawn_to_run.core.redis import init_redis, close_redis
from drawn_to_run.core.logging import setup_logging, RequestLoggerAdapter
from drawn_to_run.core.exceptions import (
    BadRequestError,
    DrawnToRunException,
    RequestValidationFailed,
)
from drawn_to_run.core.metrics import record_request
from drawn_to_run.api.v1.api import api_router

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds to validation errors
LOCATION_PREFIXES = {"body", "query", "path", "header"}

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db()
    logger.info("Database connection established")

    await init_redis()

    yield

    logger.info("Shutting down application")

    await close_db()
    logger.info("Database connections closed")

    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    description="Running event discovery, registration and discussion",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    max_age=settings.CORS_MAX_AGE,
)


def _error_body(message: str, code: str, details=None) -> dict:
    return {
        "success": False,
        "error": {
            "message": message,
            "code": code,
            "details": details
        }
    }


def _endpoint_label(request: Request) -> str:
    # Route template, so ids in the path do not explode cardinality
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


@app.middleware("http")
async def track_requests(request: Request, call_next):
    """
    Track request metrics and add request ID
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception:
        # Rendered by internal_error_handler further out
        record_request(request.method, _endpoint_label(request), 500, time.time() - start_time)
        raise
    duration = time.time() - start_time

    record_request(request.method, _endpoint_label(request), response.status_code, duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(duration)

    return response


@app.exception_handler(DrawnToRunException)
async def app_exception_handler(request: Request, exc: DrawnToRunException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.code, exc.details)
    )


def _validation_field(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "request"


def _validation_message(error: dict) -> str:
    # Messages raised by our own validators come through ctx["error"]
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return error.get("msg", "Invalid value")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    if any(error.get("type") == "json_invalid" for error in errors):
        return await app_exception_handler(request, BadRequestError("Invalid JSON in request body"))

    details = [
        {"field": _validation_field(error.get("loc", ())), "message": _validation_message(error)}
        for error in errors
    ]
    return await app_exception_handler(request, RequestValidationFailed(details))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "The requested resource was not found"
    if exc.status_code == 405:
        # Wrong verb on a known route is reported as a bad request
        return JSONResponse(status_code=400, content=_error_body("Method not allowed", "BAD_REQUEST"))
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, code),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    request_logger = RequestLoggerAdapter(logger, {"request_id": request_id})
    request_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_error_body("An internal server error occurred", "INTERNAL_ERROR"),
        headers={"X-Request-ID": request_id} if request_id else None
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        "api_docs": "/docs" if settings.DEBUG else None
    }


app.include_router(api_router, prefix=settings.API_PREFIX)

if settings.PROMETHEUS_ENABLED:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "drawn_to_run.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
