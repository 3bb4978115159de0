"""Pydantic models for workflow definitions and instances.

Attributes are snake_case in Python and camelCase on the wire (REST bodies and
persisted JSON). Either spelling is accepted on input.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class State(_WireModel):
    """A single state of a workflow."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_initial: bool = False
    is_final: bool = False
    enabled: bool = True
    description: str | None = None


class Action(_WireModel):
    """A transition rule.

    One action may originate from several states but always ends in exactly one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    enabled: bool = True
    from_states: list[str] = Field(default_factory=list)
    to_state: str
    description: str | None = None


class WorkflowDefinitionDraft(_WireModel):
    """The caller-supplied part of a definition, before it is validated and stored."""

    name: str
    description: str | None = None
    version: str = "1.0"
    states: list[State] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)


class WorkflowDefinition(WorkflowDefinitionDraft):
    """A validated, stored definition. Never modified after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def find_state(self, state_id: str) -> State | None:
        for state in self.states:
            if state.id == state_id:
                return state
        return None

    def find_action(self, action_id: str) -> Action | None:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def initial_state(self) -> State | None:
        for state in self.states:
            if state.is_initial:
                return state
        return None


class HistoryEntry(_WireModel):
    """One executed transition. Entries are appended, never edited."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    from_state: str
    to_state: str
    timestamp: datetime = Field(default_factory=utc_now)
    notes: str | None = None


class WorkflowInstance(_WireModel):
    """A running execution of a definition.

    ``metadata`` is opaque to the engine and stored exactly as given.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    definition_id: str
    current_state: str
    history: list[HistoryEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    metadata: dict[str, JsonValue] | None = None
