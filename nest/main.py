"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from nest.api.v1 import auth, lists, tasks, goals, users
from nest.application.users import EnsureOwnerUseCase
from nest.config import get_settings
from nest.domain.errors import (
    NestError,
    ValidationError,
    AccessDeniedError,
    NotFoundError,
    ConflictError,
)
from nest.infrastructure.db.session import check_db_connection, get_session_factory, init_db
from nest.utils.clock import local_now

logger = logging.getLogger(__name__)

# Most specific first: NothingToUndoError is a NotFoundError, etc.
ERROR_STATUS = (
    (ValidationError, 400),
    (AccessDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not, logs it, answers 500"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse({"error": "Internal server error"}, status_code=500)


def nest_error_handler(request: Request, exc: NestError) -> JSONResponse:
    status_code = 400
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            status_code = code
            break
    body = {"error": exc.message}
    if exc.fields:
        body["fields"] = exc.fields
    return JSONResponse(body, status_code=status_code)


def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic errors -> 400 with the list of offending fields"""
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return JSONResponse(
        {
            "error": "Validation failed: " + ", ".join(fields),
            "fields": fields,
            "errors": [
                {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")}
                for e in exc.errors()
            ],
        },
        status_code=400,
    )


def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.is_sqlite():
        init_db()
    db = get_session_factory()()
    try:
        EnsureOwnerUseCase(db, settings).execute()
    finally:
        db.close()
    logger.info("The Nest started, local time %s (%s)", local_now(), settings.TIMEZONE)
    yield


def create_app() -> FastAPI:
    """
    Application factory - creates and configures the FastAPI application

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="The Nest",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    app.add_exception_handler(NestError, nest_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Routers
    app.include_router(auth.router)
    app.include_router(lists.router)
    app.include_router(tasks.router)
    app.include_router(goals.router)
    app.include_router(users.router)

    @app.get("/api/health", tags=["system"])
    def health():
        """Health check endpoint (checks the database)"""
        try:
            check_db_connection()
        except Exception:
            logger.exception("Database health check failed")
            return JSONResponse(
                {"status": "ERROR", "database": "DISCONNECTED"}, status_code=500
            )
        return {"status": "OK", "database": "CONNECTED"}

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nest.main:app",
        host="127.0.0.1",
        port=5000,
        reload=True,
    )
