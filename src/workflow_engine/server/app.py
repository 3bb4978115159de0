"""FastAPI app factory.

Endpoints are thin wrappers over :class:`~workflow_engine.engine.WorkflowEngine`.
Each engine error family maps to one response category:

- not found                       -> 404
- invalid definition / transition -> 400
- store ID conflict               -> 409
- anything else                   -> 500, with the failure attached
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_engine import __version__
from workflow_engine.config import EngineSettings
from workflow_engine.engine import WorkflowEngine
from workflow_engine.errors import (
    DuplicateIdError,
    IllegalTransitionError,
    InvalidDefinitionError,
    NotFoundError,
)
from workflow_engine.server.models import ErrorResponse
from workflow_engine.server.router import router
from workflow_engine.store import InMemoryWorkflowStore, JsonFileWorkflowStore, WorkflowStore

logger = logging.getLogger(__name__)


def build_store(settings: EngineSettings) -> WorkflowStore:
    if settings.persistence_enabled:
        return JsonFileWorkflowStore(settings.data_dir)
    return InMemoryWorkflowStore()


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _not_found(_request: Request, exc: Exception) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, ErrorResponse(detail=str(exc)))


def _invalid_definition(_request: Request, exc: InvalidDefinitionError) -> JSONResponse:
    return _error(
        status.HTTP_400_BAD_REQUEST, ErrorResponse(detail=str(exc), violations=exc.violations)
    )


def _illegal_transition(_request: Request, exc: IllegalTransitionError) -> JSONResponse:
    return _error(
        status.HTTP_400_BAD_REQUEST, ErrorResponse(detail=str(exc), reason=exc.reason.value)
    )


def _conflict(_request: Request, exc: Exception) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, ErrorResponse(detail=str(exc)))


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", extra={"path": request.url.path}, exc_info=exc)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(detail="An internal error occurred", error=str(exc)),
    )


def create_app(
    settings: EngineSettings | None = None, store: WorkflowStore | None = None
) -> FastAPI:
    settings = settings or EngineSettings()

    app = FastAPI(
        title="Workflow Engine",
        version=__version__,
        description=(
            "Define workflows as state machines, start instances and execute "
            "state transitions."
        ),
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.engine = WorkflowEngine(store if store is not None else build_store(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidDefinitionError, _invalid_definition)
    app.add_exception_handler(IllegalTransitionError, _illegal_transition)
    app.add_exception_handler(DuplicateIdError, _conflict)
    app.add_exception_handler(Exception, _internal_error)

    app.include_router(router, prefix="/api")
    return app
