"""Workflow execution engine.

The engine owns the rules for creating definitions, starting instances and
moving instances between states. Storage is injected; the engine never keeps
entities of its own.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from pydantic import JsonValue

from workflow_engine.errors import (
    ActionDisabledError,
    ActionNotFoundError,
    DefinitionNotFoundError,
    FinalStateError,
    IllegalTransitionError,
    InstanceNotFoundError,
    InvalidDefinitionError,
    TargetStateNotFoundError,
    TransitionRejection,
)
from workflow_engine.models import (
    Action,
    HistoryEntry,
    WorkflowDefinition,
    WorkflowDefinitionDraft,
    WorkflowInstance,
    utc_now,
)
from workflow_engine.store import WorkflowStore
from workflow_engine.validation import validate_definition

logger = logging.getLogger(__name__)


class _KeyedLocks:
    """One lock per key, kept only while some thread holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


class WorkflowEngine:
    def __init__(self, store: WorkflowStore) -> None:
        self._store = store
        self._instance_locks = _KeyedLocks()

    # Definitions

    def create_definition(self, draft: WorkflowDefinitionDraft) -> WorkflowDefinition:
        try:
            validate_definition(draft)
        except InvalidDefinitionError as e:
            logger.warning(
                "Workflow definition rejected",
                extra={"definition_name": draft.name, "violations": e.violations},
            )
            raise

        now = utc_now()
        definition = WorkflowDefinition(
            id=str(uuid.uuid4()),
            name=draft.name,
            description=draft.description,
            version=draft.version,
            states=list(draft.states),
            actions=list(draft.actions),
            created_at=now,
            updated_at=now,
        )
        self._store.add_definition(definition)
        logger.info(
            "Workflow definition created",
            extra={"definition_id": definition.id, "definition_name": definition.name},
        )
        return definition

    def get_definition(self, definition_id: str) -> WorkflowDefinition:
        definition = self._store.get_definition(definition_id)
        if definition is None:
            raise DefinitionNotFoundError(definition_id)
        return definition

    def list_definitions(self) -> list[WorkflowDefinition]:
        return self._store.list_definitions()

    # Instances

    def start_instance(
        self, definition_id: str, metadata: Mapping[str, JsonValue] | None = None
    ) -> WorkflowInstance:
        definition = self.get_definition(definition_id)
        initial = definition.initial_state()
        if initial is None:
            raise InvalidDefinitionError(
                f"No initial state found for workflow definition '{definition_id}'."
            )

        now = utc_now()
        instance = WorkflowInstance(
            id=str(uuid.uuid4()),
            definition_id=definition.id,
            current_state=initial.id,
            history=[],
            created_at=now,
            updated_at=now,
            metadata=dict(metadata) if metadata is not None else None,
        )
        self._store.put_instance(instance)
        logger.info(
            "Workflow instance started",
            extra={
                "instance_id": instance.id,
                "definition_id": definition.id,
                "to_state": initial.id,
            },
        )
        return instance

    def get_instance(self, instance_id: str) -> WorkflowInstance:
        instance = self._store.get_instance(instance_id)
        if instance is None:
            raise InstanceNotFoundError(instance_id)
        return instance

    def list_instances(self, definition_id: str | None = None) -> list[WorkflowInstance]:
        if definition_id is None:
            return self._store.list_instances()
        return self._store.list_instances_by_definition(definition_id)

    # Transitions

    def available_actions(self, instance_id: str) -> list[Action]:
        """Enabled actions that can fire from the instance's current state.

        Empty when the current state is final, or missing from the definition.
        """

        instance = self.get_instance(instance_id)
        definition = self.get_definition(instance.definition_id)

        current = definition.find_state(instance.current_state)
        if current is None or current.is_final:
            return []

        return [
            a
            for a in definition.actions
            if a.enabled and instance.current_state in a.from_states
        ]

    def execute_action(
        self, instance_id: str, action_id: str, notes: str | None = None
    ) -> WorkflowInstance:
        """Apply ``action_id`` to the instance and return the updated instance.

        Checks run in a fixed order so the reported error is deterministic:
        current state lookup, final state, action lookup, enabled, source state
        membership, target state lookup.
        """

        # Unknown IDs never reach the lock registry.
        self.get_instance(instance_id)

        with self._instance_locks.hold(instance_id):
            instance = self.get_instance(instance_id)
            definition = self.get_definition(instance.definition_id)

            try:
                action = self._check_transition(definition, instance, action_id)
            except IllegalTransitionError as e:
                logger.warning(
                    str(e),
                    extra={
                        "instance_id": instance.id,
                        "action_id": action_id,
                        "reason": e.reason.value,
                    },
                )
                raise

            entry = HistoryEntry(
                action_id=action.id,
                from_state=instance.current_state,
                to_state=action.to_state,
                timestamp=utc_now(),
                notes=notes,
            )
            updated = instance.model_copy(
                update={
                    "current_state": action.to_state,
                    "history": [*instance.history, entry],
                    "updated_at": entry.timestamp,
                }
            )
            self._store.put_instance(updated)

        logger.info(
            "Action executed",
            extra={
                "instance_id": updated.id,
                "action_id": action.id,
                "from_state": entry.from_state,
                "to_state": entry.to_state,
            },
        )
        return updated

    @staticmethod
    def _check_transition(
        definition: WorkflowDefinition, instance: WorkflowInstance, action_id: str
    ) -> Action:
        current = definition.find_state(instance.current_state)
        if current is None:
            raise ActionNotFoundError(
                f"Current state '{instance.current_state}' not found in workflow definition.",
                reason=TransitionRejection.CURRENT_STATE_NOT_FOUND,
            )

        if current.is_final:
            raise FinalStateError(current.id)

        action = definition.find_action(action_id)
        if action is None:
            raise ActionNotFoundError(f"Action '{action_id}' not found in workflow definition.")

        if not action.enabled:
            raise ActionDisabledError(action.id)

        if instance.current_state not in action.from_states:
            raise IllegalTransitionError(
                f"Action '{action.id}' cannot be executed from state '{instance.current_state}'."
            )

        if definition.find_state(action.to_state) is None:
            raise TargetStateNotFoundError(action.to_state)

        return action
