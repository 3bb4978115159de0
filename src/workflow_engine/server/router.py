"""Workflow REST API.

All routes are mounted under `/api`. Handlers only translate between HTTP and
:class:`~workflow_engine.engine.WorkflowEngine`; engine errors are mapped to
responses by the exception handlers registered in :mod:`.app`.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from workflow_engine import __version__
from workflow_engine.engine import WorkflowEngine
from workflow_engine.models import (
    Action,
    WorkflowDefinition,
    WorkflowDefinitionDraft,
    WorkflowInstance,
)
from workflow_engine.server.models import (
    ExecuteActionRequest,
    HealthResponse,
    StartInstanceRequest,
)

router = APIRouter()


def _engine(request: Request) -> WorkflowEngine:
    engine = getattr(request.app.state, "engine", None)
    if not isinstance(engine, WorkflowEngine):
        raise HTTPException(status_code=500, detail="Workflow engine not configured")
    return engine


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(version=__version__, timestamp=datetime.now(tz=UTC))


@router.post(
    "/workflow-definitions",
    response_model=WorkflowDefinition,
    status_code=status.HTTP_201_CREATED,
)
def create_definition(
    request: Request, response: Response, payload: WorkflowDefinitionDraft
) -> WorkflowDefinition:
    definition = _engine(request).create_definition(payload)
    response.headers["Location"] = str(
        request.url_for("get_definition", definition_id=definition.id)
    )
    return definition


@router.get("/workflow-definitions", response_model=list[WorkflowDefinition])
def list_definitions(request: Request) -> list[WorkflowDefinition]:
    return _engine(request).list_definitions()


@router.get("/workflow-definitions/{definition_id}", response_model=WorkflowDefinition)
def get_definition(request: Request, definition_id: str) -> WorkflowDefinition:
    return _engine(request).get_definition(definition_id)


@router.post(
    "/workflow-instances",
    response_model=WorkflowInstance,
    status_code=status.HTTP_201_CREATED,
)
def start_instance(
    request: Request, response: Response, payload: StartInstanceRequest
) -> WorkflowInstance:
    instance = _engine(request).start_instance(payload.definition_id, payload.metadata)
    response.headers["Location"] = str(request.url_for("get_instance", instance_id=instance.id))
    return instance


@router.get("/workflow-instances", response_model=list[WorkflowInstance])
def list_instances(
    request: Request,
    definition_id: str | None = Query(default=None, alias="definitionId"),
) -> list[WorkflowInstance]:
    return _engine(request).list_instances(definition_id)


@router.get(
    "/workflow-instances/by-definition/{definition_id}",
    response_model=list[WorkflowInstance],
)
def list_instances_by_definition(request: Request, definition_id: str) -> list[WorkflowInstance]:
    return _engine(request).list_instances(definition_id)


@router.get("/workflow-instances/{instance_id}", response_model=WorkflowInstance)
def get_instance(request: Request, instance_id: str) -> WorkflowInstance:
    return _engine(request).get_instance(instance_id)


@router.post("/workflow-instances/{instance_id}/execute", response_model=WorkflowInstance)
def execute_action(
    request: Request, instance_id: str, payload: ExecuteActionRequest
) -> WorkflowInstance:
    return _engine(request).execute_action(instance_id, payload.action_id, payload.notes)


@router.get("/workflow-instances/{instance_id}/available-actions", response_model=list[Action])
def available_actions(request: Request, instance_id: str) -> list[Action]:
    return _engine(request).available_actions(instance_id)
