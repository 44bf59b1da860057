"""Main FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from lesson_quiz.api.quiz import router as quiz_router
from lesson_quiz.domain.common.errors import (
    ConflictError,
    DomainError,
    GraderNotConfiguredError,
    InvalidQuestionDefinitionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from lesson_quiz.domain.common.store import StoreError
from lesson_quiz.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    if settings.store_backend == "sql":
        from lesson_quiz.infra.db.session import create_tables

        await create_tables()
        logger.info("SQL store ready at %s", settings.database_url.split("@")[-1])
    else:
        logger.info("REST store at %s", settings.store_rest_url)

    yield

    # Shutdown
    if settings.store_backend == "sql":
        from lesson_quiz.infra.db.session import dispose_engine

        await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info("[REQUEST] %s %s", request.method, request.url.path)
        if logger.isEnabledFor(logging.DEBUG):
            # Don't log authorization header fully
            headers = dict(request.headers)
            auth_header = headers.get("authorization", "")
            if auth_header.startswith("Bearer "):
                token = auth_header[7:]
                headers["authorization"] = f"Bearer {token[:8]}..." if len(token) > 8 else "Bearer ***"
            logger.debug("   Query params: %s", dict(request.query_params))
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "[RESPONSE] %s %s - %s (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )
        return response


app.add_middleware(LoggingMiddleware)


def _error_response(status_code: int, exc: Exception, code: str) -> JSONResponse:
    message = exc.message if isinstance(exc, (DomainError, StoreError)) else str(exc)
    return JSONResponse(status_code=status_code, content={"detail": message, "code": code})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request validation errors; keep FastAPI's 422 body."""
    errors = exc.errors()
    logger.error("[VALIDATION ERROR] %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


# Domain error handlers: map domain exceptions to correct HTTP status
@app.exception_handler(NotFoundError)
async def domain_not_found_handler(request: Request, exc: NotFoundError):
    """Return 404 when a resource is not found."""
    return _error_response(404, exc, exc.code)


@app.exception_handler(UnauthorizedError)
async def domain_unauthorized_handler(request: Request, exc: UnauthorizedError):
    """Return 401 when the learner cannot be identified."""
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message, "code": exc.code},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ValidationError)
async def domain_validation_handler(request: Request, exc: ValidationError):
    """Return 400 for rejected input."""
    return _error_response(400, exc, exc.code)


@app.exception_handler(ConflictError)
async def domain_conflict_handler(request: Request, exc: ConflictError):
    """Return 409 for conflict errors."""
    return _error_response(409, exc, exc.code)


@app.exception_handler(InvalidQuestionDefinitionError)
@app.exception_handler(GraderNotConfiguredError)
async def domain_server_error_handler(request: Request, exc: DomainError):
    """Return 500 for authoring and configuration defects."""
    logger.error("[SERVER ERROR] %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(500, exc, exc.code)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Return 502 when the backing store fails."""
    logger.error("[STORE ERROR] %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(502, exc, "store_error")


# Health check (root and under /v1)
@app.get("/health")
@app.get(f"{settings.api_v1_prefix}/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


# API v1 routes
app.include_router(quiz_router, prefix=settings.api_v1_prefix)
