"""Request and response bodies for the REST server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, JsonValue
from pydantic.alias_generators import to_camel


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartInstanceRequest(_Body):
    definition_id: str
    metadata: dict[str, JsonValue] | None = None


class ExecuteActionRequest(_Body):
    action_id: str
    notes: str | None = None


class HealthResponse(BaseModel):
    status: Literal["healthy"] = "healthy"
    version: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    detail: str
    reason: str | None = None
    violations: list[str] | None = None
    error: str | None = None
