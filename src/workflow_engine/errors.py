"""Exception taxonomy for the validator and the execution engine.

Every failure the core detects is raised as a subclass of :class:`WorkflowError`.
The REST layer maps each family onto exactly one response category.
"""

from __future__ import annotations

from enum import Enum


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class InvalidDefinitionError(WorkflowError, ValueError):
    """A workflow definition failed structural validation."""

    def __init__(self, message: str, *, violations: list[str] | None = None) -> None:
        super().__init__(message)
        self.violations = violations if violations is not None else [message]


class NotFoundError(WorkflowError, LookupError):
    pass


class DefinitionNotFoundError(NotFoundError):
    def __init__(self, definition_id: str) -> None:
        super().__init__(f"Workflow definition with ID '{definition_id}' not found.")
        self.definition_id = definition_id


class InstanceNotFoundError(NotFoundError):
    def __init__(self, instance_id: str) -> None:
        super().__init__(f"Workflow instance with ID '{instance_id}' not found.")
        self.instance_id = instance_id


class DuplicateIdError(WorkflowError):
    """Raised by a store when an insert-if-absent finds the ID already taken."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} with ID '{entity_id}' already exists.")
        self.entity_id = entity_id


class TransitionRejection(str, Enum):
    CURRENT_STATE_NOT_FOUND = "current_state_not_found"
    FINAL_STATE = "final_state"
    ACTION_NOT_FOUND = "action_not_found"
    ACTION_DISABLED = "action_disabled"
    SOURCE_STATE_MISMATCH = "source_state_mismatch"
    TARGET_STATE_NOT_FOUND = "target_state_not_found"


class IllegalTransitionError(WorkflowError, ValueError):
    """A requested action cannot be applied to an instance.

    ``reason`` tells the individual cases apart without string matching.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: TransitionRejection = TransitionRejection.SOURCE_STATE_MISMATCH,
    ) -> None:
        super().__init__(message)
        self.reason = reason


class ActionNotFoundError(IllegalTransitionError):
    def __init__(
        self,
        message: str,
        *,
        reason: TransitionRejection = TransitionRejection.ACTION_NOT_FOUND,
    ) -> None:
        super().__init__(message, reason=reason)


class FinalStateError(IllegalTransitionError):
    def __init__(self, state_id: str) -> None:
        super().__init__(
            f"Cannot execute actions on final state '{state_id}'.",
            reason=TransitionRejection.FINAL_STATE,
        )
        self.state_id = state_id


class ActionDisabledError(IllegalTransitionError):
    def __init__(self, action_id: str) -> None:
        super().__init__(
            f"Action '{action_id}' is disabled.", reason=TransitionRejection.ACTION_DISABLED
        )
        self.action_id = action_id


class TargetStateNotFoundError(IllegalTransitionError):
    def __init__(self, state_id: str) -> None:
        super().__init__(
            f"Target state '{state_id}' not found in workflow definition.",
            reason=TransitionRejection.TARGET_STATE_NOT_FOUND,
        )
        self.state_id = state_id
