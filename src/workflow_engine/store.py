"""Definition and instance storage.

The engine talks to storage only through :class:`WorkflowStore`. Two backings
ship with the package:

- :class:`InMemoryWorkflowStore` keeps everything in process memory.
- :class:`JsonFileWorkflowStore` does the same and additionally mirrors each
  collection to a JSON file so state survives restarts (best-effort).

Every store operation is atomic with respect to the others; serializing
read-modify-write sequences on one instance is the engine's job.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError

from workflow_engine.errors import DuplicateIdError
from workflow_engine.models import WorkflowDefinition, WorkflowInstance

logger = logging.getLogger(__name__)

DEFINITIONS_FILENAME = "workflow-definitions.json"
INSTANCES_FILENAME = "workflow-instances.json"


class WorkflowStore(Protocol):
    def put_definition(self, definition: WorkflowDefinition) -> None: ...

    def add_definition(self, definition: WorkflowDefinition) -> None:
        """Insert if absent; raise :class:`DuplicateIdError` otherwise."""
        ...

    def get_definition(self, definition_id: str) -> WorkflowDefinition | None: ...

    def list_definitions(self) -> list[WorkflowDefinition]: ...

    def put_instance(self, instance: WorkflowInstance) -> None: ...

    def get_instance(self, instance_id: str) -> WorkflowInstance | None: ...

    def list_instances(self) -> list[WorkflowInstance]: ...

    def list_instances_by_definition(self, definition_id: str) -> list[WorkflowInstance]: ...


class InMemoryWorkflowStore:
    """Dict-backed store. Listing preserves insertion order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._definitions: dict[str, WorkflowDefinition] = {}
        self._instances: dict[str, WorkflowInstance] = {}

    def put_definition(self, definition: WorkflowDefinition) -> None:
        with self._lock:
            self._definitions[definition.id] = definition
            self._definitions_changed()

    def add_definition(self, definition: WorkflowDefinition) -> None:
        with self._lock:
            if definition.id in self._definitions:
                raise DuplicateIdError("Workflow definition", definition.id)
            self._definitions[definition.id] = definition
            self._definitions_changed()

    def get_definition(self, definition_id: str) -> WorkflowDefinition | None:
        with self._lock:
            return self._definitions.get(definition_id)

    def list_definitions(self) -> list[WorkflowDefinition]:
        with self._lock:
            return list(self._definitions.values())

    def put_instance(self, instance: WorkflowInstance) -> None:
        with self._lock:
            self._instances[instance.id] = instance
            self._instances_changed()

    def get_instance(self, instance_id: str) -> WorkflowInstance | None:
        with self._lock:
            return self._instances.get(instance_id)

    def list_instances(self) -> list[WorkflowInstance]:
        with self._lock:
            return list(self._instances.values())

    def list_instances_by_definition(self, definition_id: str) -> list[WorkflowInstance]:
        with self._lock:
            return [i for i in self._instances.values() if i.definition_id == definition_id]

    # Hooks for subclasses; called with the lock held.
    def _definitions_changed(self) -> None:
        pass

    def _instances_changed(self) -> None:
        pass


def _load_json_list(path: Path) -> list[object]:
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning(
            "State file is not readable JSON; treating as empty", extra={"path": str(path)}
        )
        return []
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            "State file has unexpected shape; treating as empty", extra={"path": str(path)}
        )
        return []
    return raw


def _save_json_list(path: Path, items: Sequence[BaseModel]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [m.model_dump(mode="json", by_alias=True) for m in items]
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    # Write beside the target and swap it in, so a crash never leaves a truncated file.
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class JsonFileWorkflowStore(InMemoryWorkflowStore):
    """In-memory store mirrored to two JSON files under ``data_dir``.

    Memory is authoritative. A failed write is logged and does not fail the
    operation that triggered it.
    """

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self.data_dir = data_dir
        self.definitions_file = data_dir / DEFINITIONS_FILENAME
        self.instances_file = data_dir / INSTANCES_FILENAME
        self._load()

    def _load(self) -> None:
        for item in _load_json_list(self.definitions_file):
            try:
                definition = WorkflowDefinition.model_validate(item)
            except ValidationError:
                logger.warning(
                    "Skipping unreadable workflow definition",
                    extra={"path": str(self.definitions_file)},
                )
                continue
            self._definitions[definition.id] = definition

        for item in _load_json_list(self.instances_file):
            try:
                instance = WorkflowInstance.model_validate(item)
            except ValidationError:
                logger.warning(
                    "Skipping unreadable workflow instance",
                    extra={"path": str(self.instances_file)},
                )
                continue
            self._instances[instance.id] = instance

        logger.info(
            "Workflow state loaded",
            extra={
                "data_dir": str(self.data_dir),
                "definitions": len(self._definitions),
                "instances": len(self._instances),
            },
        )

    def _definitions_changed(self) -> None:
        self._flush(self.definitions_file, list(self._definitions.values()))

    def _instances_changed(self) -> None:
        self._flush(self.instances_file, list(self._instances.values()))

    def _flush(self, path: Path, items: Sequence[BaseModel]) -> None:
        try:
            _save_json_list(path, items)
        except OSError:
            logger.exception("Failed to persist workflow state", extra={"path": str(path)})
