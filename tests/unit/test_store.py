"""Unit tests for workflow storage.

These tests assert that stored state survives a restart and that unreadable
state files degrade to an empty store instead of failing startup.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from workflow_engine.engine import WorkflowEngine
from workflow_engine.errors import DuplicateIdError
from workflow_engine.models import WorkflowDefinition, WorkflowDefinitionDraft
from workflow_engine.store import (
    DEFINITIONS_FILENAME,
    INSTANCES_FILENAME,
    InMemoryWorkflowStore,
    JsonFileWorkflowStore,
)


def test_add_definition_rejects_existing_id(store: InMemoryWorkflowStore) -> None:
    definition = WorkflowDefinition(id="d1", name="one")
    store.add_definition(definition)

    with pytest.raises(DuplicateIdError):
        store.add_definition(WorkflowDefinition(id="d1", name="other"))
    assert store.get_definition("d1") == definition


def test_put_definition_replaces(store: InMemoryWorkflowStore) -> None:
    store.put_definition(WorkflowDefinition(id="d1", name="one"))
    store.put_definition(WorkflowDefinition(id="d1", name="renamed"))

    assert [d.name for d in store.list_definitions()] == ["renamed"]
    assert store.get_definition("missing") is None
    assert store.get_instance("missing") is None


def test_json_store_roundtrip(tmp_path: Path, review_draft: WorkflowDefinitionDraft) -> None:
    data_dir = tmp_path / "data"
    engine = WorkflowEngine(JsonFileWorkflowStore(data_dir))
    definition = engine.create_definition(review_draft)
    instance = engine.start_instance(definition.id, {"ticket": "OPS-12"})
    executed = engine.execute_action(instance.id, "submit", notes="first pass")

    reloaded = JsonFileWorkflowStore(data_dir)

    assert reloaded.get_definition(definition.id) == definition
    assert reloaded.get_instance(instance.id) == executed
    assert reloaded.list_instances_by_definition(definition.id) == [executed]


def test_json_store_writes_camel_case(
    tmp_path: Path, review_draft: WorkflowDefinitionDraft
) -> None:
    engine = WorkflowEngine(JsonFileWorkflowStore(tmp_path))
    definition = engine.create_definition(review_draft)
    engine.start_instance(definition.id)

    definitions = json.loads((tmp_path / DEFINITIONS_FILENAME).read_text(encoding="utf-8"))
    instances = json.loads((tmp_path / INSTANCES_FILENAME).read_text(encoding="utf-8"))

    assert definitions[0]["states"][0]["isInitial"] is True
    assert definitions[0]["actions"][0]["fromStates"] == ["draft"]
    assert instances[0]["definitionId"] == definition.id
    assert instances[0]["currentState"] == "draft"


def test_json_store_ignores_corrupt_files(tmp_path: Path) -> None:
    (tmp_path / DEFINITIONS_FILENAME).write_text("{not json", encoding="utf-8")
    (tmp_path / INSTANCES_FILENAME).write_text('{"unexpected": "shape"}', encoding="utf-8")

    store = JsonFileWorkflowStore(tmp_path)

    assert store.list_definitions() == []
    assert store.list_instances() == []


def test_json_store_skips_invalid_records(tmp_path: Path) -> None:
    (tmp_path / DEFINITIONS_FILENAME).write_text(
        json.dumps([{"id": "ok", "name": "fine"}, {"name": "no id"}]), encoding="utf-8"
    )

    store = JsonFileWorkflowStore(tmp_path)

    assert [d.id for d in store.list_definitions()] == ["ok"]


def test_json_store_write_failure_keeps_memory_state(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = JsonFileWorkflowStore(tmp_path)

    def fail(*_args: object, **_kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("workflow_engine.store._save_json_list", fail)
    store.put_definition(WorkflowDefinition(id="d1", name="one"))

    assert store.get_definition("d1") is not None
    assert not (tmp_path / DEFINITIONS_FILENAME).exists()


def test_json_store_failed_replace_keeps_previous_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = JsonFileWorkflowStore(tmp_path)
    store.put_definition(WorkflowDefinition(id="d1", name="one"))
    before = (tmp_path / DEFINITIONS_FILENAME).read_text(encoding="utf-8")

    def fail(*_args: object, **_kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("workflow_engine.store.os.replace", fail)
    store.put_definition(WorkflowDefinition(id="d2", name="two"))

    assert store.get_definition("d2") is not None
    assert (tmp_path / DEFINITIONS_FILENAME).read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == [DEFINITIONS_FILENAME]
