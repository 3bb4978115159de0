"""Test configuration and fixtures."""

from __future__ import annotations

import pytest

from workflow_engine.engine import WorkflowEngine
from workflow_engine.models import Action, State, WorkflowDefinition, WorkflowDefinitionDraft
from workflow_engine.store import InMemoryWorkflowStore


@pytest.fixture
def store() -> InMemoryWorkflowStore:
    return InMemoryWorkflowStore()


@pytest.fixture
def engine(store: InMemoryWorkflowStore) -> WorkflowEngine:
    return WorkflowEngine(store)


@pytest.fixture
def review_draft() -> WorkflowDefinitionDraft:
    """A document review workflow.

    draft -> review -> approved | rejected, with `reject` allowed from both
    draft and review and a disabled `retract` action.
    """
    return WorkflowDefinitionDraft(
        name="Document review",
        states=[
            State(id="draft", name="Draft", is_initial=True),
            State(id="review", name="In review"),
            State(id="approved", name="Approved", is_final=True),
            State(id="rejected", name="Rejected", is_final=True),
        ],
        actions=[
            Action(id="submit", name="Submit", from_states=["draft"], to_state="review"),
            Action(id="approve", name="Approve", from_states=["review"], to_state="approved"),
            Action(
                id="reject", name="Reject", from_states=["draft", "review"], to_state="rejected"
            ),
            Action(
                id="retract",
                name="Retract",
                enabled=False,
                from_states=["review"],
                to_state="draft",
            ),
        ],
    )


@pytest.fixture
def review_definition(
    engine: WorkflowEngine, review_draft: WorkflowDefinitionDraft
) -> WorkflowDefinition:
    return engine.create_definition(review_draft)
