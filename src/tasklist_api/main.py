from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Type

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    PersistenceError,
    TaskListError,
    TaskListNotFoundError,
)
from .logging_config import configure_logging
from .routers import task_lists as task_lists_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "task-lists",
        "description": "Task lists shared between an owner and connected users, with pagination.",
    },
]

_settings = get_settings()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on server startup. Importing this module does not touch logging."""
    settings = get_settings()
    configure_logging(level=settings.log_level, log_json=settings.log_json)
    logger.info("app.started", backend=settings.persistence_backend)
    yield


app = FastAPI(
    title="Task List Backend",
    description="Backend API service for managing task lists with user sharing.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_BY_ERROR: Dict[Type[TaskListError], int] = {
    InvalidArgumentError: 400,
    InvalidOperationError: 400,
    TaskListNotFoundError: 404,
    ForbiddenError: 403,
    PersistenceError: 500,
}


def _status_for(exc: TaskListError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(TaskListError)
async def task_list_exception_handler(request: Request, exc: TaskListError) -> JSONResponse:
    """
    Map domain errors to HTTP responses.

    Response format:
        {
            "error": "<error code, e.g. NotFound>",
            "message": "<human readable message>"
        }
    """
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(
            "request.failed",
            method=request.method,
            path=request.url.path,
            error=exc.error_code,
            exc_info=exc,
        )
    else:
        logger.warning(
            "request.rejected",
            method=request.method,
            path=request.url.path,
            error=exc.error_code,
            message=str(exc),
        )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.error_code, "message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            # ctx may carry exception instances that JSONResponse cannot serialize
            "detail": jsonable_encoder(exc.errors()),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(task_lists_router.router)
