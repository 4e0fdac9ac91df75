"""
FastAPI main application
REST API endpoints for X-Ray

Run locally:
    uvicorn xray.api.main:app --reload
"""

import logging
import os
import uuid
from functools import lru_cache
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.dependencies import TracerDependencies, build_dependencies
from ..core.exceptions import (
    BadInputError,
    ConflictError,
    ConflictingStateError,
    InternalError,
    NotFoundError,
    OperationCancelledError,
    XRayException,
)
from ..core.logging_config import clear_request_id, set_request_id, setup_logging
from ..core.query import ExecutionQueryService
from ..core.settings import Settings
from ..core.tracer import XRayTracer
from ..demo import CompetitorSelectionPipeline
from .schemas import DemoResponse, ErrorResponse, ExecutionResponse, MessageResponse

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

# JSON logs in production (JSON_LOGS=true), standard logs in development
setup_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
    log_file=os.getenv("LOG_FILE", None)
)

logger = logging.getLogger(__name__)

settings = Settings.from_env()

# ============================================================================
# FASTAPI APP CONFIGURATION
# ============================================================================

app = FastAPI(
    title="X-Ray API",
    description="""
# X-Ray Debugger

Records and serves execution traces of multi-step decision pipelines.

A trace is an **execution** with an ordered list of **steps**. Each step keeps
what it received (`input`), what it produced (`output`), why (`reasoning`)
and optional `metadata`.

## Endpoints

1. **GET /api/executions** - All executions, newest first, with their steps
2. **GET /api/executions/{id}** - One execution with its steps
3. **DELETE /api/executions/{id}** - Delete one execution
4. **DELETE /api/executions** - Delete everything
5. **POST /api/demo/run-competitor-selection** - Run the bundled example pipeline
    """,
    version=__version__,
    openapi_tags=[
        {
            "name": "health",
            "description": "Health checks and system status"
        },
        {
            "name": "executions",
            "description": "Recorded executions and their steps."
        },
        {
            "name": "demo",
            "description": "Example producer (competitor selection over mock data)."
        }
    ]
)

# ============================================================================
# MIDDLEWARE - CORS Configuration
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================================================
# DEPENDENCIES
# ============================================================================

@lru_cache(maxsize=1)
def get_dependencies() -> TracerDependencies:
    """Store, clock and helpers, built once from the environment. Overridden in tests."""
    return build_dependencies(settings)


def get_tracer(deps: TracerDependencies = Depends(get_dependencies)) -> XRayTracer:
    return XRayTracer(deps)


def get_query_service(deps: TracerDependencies = Depends(get_dependencies)) -> ExecutionQueryService:
    return ExecutionQueryService(deps)


# ============================================================================
# MIDDLEWARE - Request ID Tracking
# ============================================================================

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    - Uses incoming X-Request-ID or generates a UUID
    - Sets it in the logging context
    - Echoes it in the X-Request-ID response header
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    set_request_id(request_id)

    logger.info(
        f"{request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            f"Response {response.status_code}",
            extra={"status_code": response.status_code}
        )
        return response

    except Exception as e:
        logger.exception("Unhandled exception in request", extra={"error": str(e)})
        raise

    finally:
        clear_request_id()


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

_STATUS_CODES = [
    (NotFoundError, 404),
    (BadInputError, 400),
    (ConflictingStateError, 409),
    (ConflictError, 409),
    (OperationCancelledError, 503),
    (InternalError, 500),
]


def _status_code_for(exc: XRayException) -> int:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler for better error responses"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(XRayException)
async def xray_exception_handler(request, exc: XRayException):
    status_code = _status_code_for(exc)
    body = ErrorResponse(
        error=exc.message,
        status_code=status_code,
        correlation_id=exc.correlation_id if isinstance(exc, InternalError) else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ============================================================================
# ROOT & HEALTH
# ============================================================================

@app.get("/", tags=["health"], summary="API root")
def root():
    """Root endpoint - Returns API info"""
    return {
        "name": "X-Ray API",
        "version": __version__,
        "status": "healthy",
        "docs": "/docs",
    }


@app.get("/health", tags=["health"], summary="Health check")
def health_check(query: ExecutionQueryService = Depends(get_query_service)):
    """Confirms the API is alive and the database answers"""
    try:
        total = query.count_executions()
        database = "connected"
    except XRayException as e:
        total = None
        database = f"error: {e.message}"

    return {
        "status": "healthy" if total is not None else "degraded",
        "service": "X-Ray API",
        "version": __version__,
        "database": database,
        "executions": total,
    }


# ============================================================================
# EXECUTIONS
# ============================================================================

@app.get(
    "/api/executions",
    response_model=List[ExecutionResponse],
    tags=["executions"],
    summary="List executions",
    description="All executions sorted by startTime descending, each with its full step list. No pagination."
)
def list_executions(query: ExecutionQueryService = Depends(get_query_service)):
    return [ExecutionResponse.model_validate(execution) for execution in query.list_executions()]


@app.get(
    "/api/executions/{execution_id}",
    response_model=ExecutionResponse,
    tags=["executions"],
    responses={404: {"model": ErrorResponse, "description": "Execution not found"}},
    summary="Get execution",
    description="One execution with its steps in ascending timestamp order."
)
def get_execution(execution_id: str, query: ExecutionQueryService = Depends(get_query_service)):
    return ExecutionResponse.model_validate(query.get_execution(execution_id))


@app.delete(
    "/api/executions/{execution_id}",
    response_model=MessageResponse,
    tags=["executions"],
    responses={404: {"model": ErrorResponse, "description": "Execution not found"}},
    summary="Delete execution",
    description="Delete one execution and all of its steps."
)
def delete_execution(execution_id: str, query: ExecutionQueryService = Depends(get_query_service)):
    query.delete_execution(execution_id)
    return {"message": f"Execution {execution_id} deleted successfully"}


@app.delete(
    "/api/executions",
    response_model=MessageResponse,
    tags=["executions"],
    summary="Delete all executions",
    description="Delete every execution and step. Safe to repeat."
)
def delete_all_executions(query: ExecutionQueryService = Depends(get_query_service)):
    total = query.delete_all_executions()
    return {"message": f"Deleted {total} executions"}


# ============================================================================
# DEMO
# ============================================================================

@app.post(
    "/api/demo/run-competitor-selection",
    response_model=DemoResponse,
    tags=["demo"],
    summary="Run competitor selection demo",
    description="""
    Runs the bundled example pipeline and records its trace.

    Steps recorded: keyword_generation, candidate_search, apply_filters.
    On failure the execution is marked FAILED and the endpoint returns 500
    with success=false.
    """
)
def run_competitor_selection(tracer: XRayTracer = Depends(get_tracer)):
    logger.info("Running competitor selection demo")

    try:
        execution_id = CompetitorSelectionPipeline(tracer).run()
    except Exception as e:
        logger.exception("Demo execution failed")
        body = DemoResponse(execution_id=None, message=f"Demo failed: {e}", success=False)
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))

    return DemoResponse(
        execution_id=execution_id,
        message="Competitor selection completed successfully",
        success=True,
    )
