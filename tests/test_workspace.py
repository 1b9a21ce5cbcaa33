"""Tests for workspace.py — Workspace state holder and key-value stores.

All stores are in-process or under tmp_path; no network access.
"""
from __future__ import annotations

import json
import logging

import pytest

from focus_console.codec import serialize_chunks
from focus_console.errors import MalformedInputError
from focus_console.settings import ChunkingSettings
from focus_console.workspace import (
    IR_MD_STORAGE_KEY,
    IR_STORAGE_KEY,
    KCS_CHUNKS_KEY,
    KCS_STORAGE_KEY,
    TASKS_STORAGE_KEY,
    UPLOAD_FAILED_STATUS,
    InMemoryStore,
    JsonFileStore,
    Workspace,
)

FIXED_TIMESTAMP = "2026-01-02T03:04:05.678Z"


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def workspace(store, id_factory, fixed_clock) -> Workspace:
    return Workspace(store, id_factory=id_factory, clock=fixed_clock)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class TestStores:
    def test_in_memory_missing_key(self):
        assert InMemoryStore().load("absent") is None

    def test_in_memory_roundtrip(self):
        store = InMemoryStore()
        store.save("k", "v")
        assert store.load("k") == "v"

    def test_json_file_store_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "workspace.json"
        JsonFileStore(path).save("k", "värde")
        assert JsonFileStore(path).load("k") == "värde"
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "värde"}

    def test_json_file_store_missing_file(self, tmp_path):
        assert JsonFileStore(tmp_path / "none.json").load("k") is None

    @pytest.mark.parametrize("contents", ["{not json", '["a", "b"]'])
    def test_json_file_store_ignores_unreadable_file(self, tmp_path, contents):
        path = tmp_path / "workspace.json"
        path.write_text(contents, encoding="utf-8")
        assert JsonFileStore(path).load("k") is None

    def test_json_file_store_unwritable_value_keeps_file(self, tmp_path):
        path = tmp_path / "workspace.json"
        store = JsonFileStore(path)
        store.save("tasks", "[]")
        before = path.read_bytes()

        with pytest.raises(UnicodeEncodeError):
            store.save("kcs", "bad \ud800 char")

        assert path.read_bytes() == before
        assert store.load("tasks") == "[]"
        assert not (tmp_path / "workspace.json.tmp").exists()


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TestTasks:
    def test_blank_input_ignored(self, workspace, store):
        assert workspace.add_task("   ") is None
        assert workspace.tasks == []
        assert store.load(TASKS_STORAGE_KEY) is None

    def test_add_task_classifies_and_trims(self, workspace):
        task = workspace.add_task("  urgent client review  ")
        assert task.title == "urgent client review"
        assert (task.urgent, task.important) == (True, True)
        assert task.rationale.startswith("Flagged urgent via urgent")
        assert task.created_at == FIXED_TIMESTAMP
        assert task.completed is False

    def test_newest_task_first(self, workspace):
        workspace.add_task("first")
        workspace.add_task("second")
        assert [t.title for t in workspace.tasks] == ["second", "first"]

    def test_tasks_persisted(self, workspace, store):
        workspace.add_task("Draft roadmap")
        records = json.loads(store.load(TASKS_STORAGE_KEY))
        assert records[0]["title"] == "Draft roadmap"
        assert records[0]["createdAt"] == FIXED_TIMESTAMP

    def test_set_quadrant_overrides_classification(self, workspace):
        task = workspace.add_task("someday")
        workspace.set_quadrant(task.id, urgent=True, important=False)
        assert workspace.grouped_tasks()[(True, False)] == [task]

    def test_toggle_completed(self, workspace):
        task = workspace.add_task("water plants")
        assert workspace.toggle_completed(task.id).completed is True
        assert workspace.toggle_completed(task.id).completed is False

    def test_remove_task(self, workspace, store):
        task = workspace.add_task("water plants")
        workspace.remove_task(task.id)
        assert workspace.tasks == []
        assert json.loads(store.load(TASKS_STORAGE_KEY)) == []

    @pytest.mark.parametrize("action", ["toggle_completed", "remove_task"])
    def test_unknown_task_raises_key_error(self, workspace, action):
        with pytest.raises(KeyError):
            getattr(workspace, action)("missing")


# ---------------------------------------------------------------------------
# Ruleset
# ---------------------------------------------------------------------------


class TestRuleset:
    def test_set_ruleset_renders_and_persists(self, workspace, store):
        markdown = workspace.set_ruleset("Charter\n\nOwner: Ana")
        assert markdown == "# Charter\n\n**Owner**: Ana"
        assert store.load(IR_STORAGE_KEY) == "Charter\n\nOwner: Ana"
        assert store.load(IR_MD_STORAGE_KEY) == markdown

    def test_export_ruleset(self, workspace):
        workspace.set_ruleset("Charter")
        assert workspace.export_ruleset() == ("instructional-ruleset.md", "# Charter")

    def test_export_blank_ruleset(self, workspace):
        workspace.set_ruleset("   ")
        assert workspace.export_ruleset() is None


# ---------------------------------------------------------------------------
# Knowledge compendium
# ---------------------------------------------------------------------------


class TestCompendium:
    def test_generate_chunks_uses_settings(self, store, id_factory, fixed_clock):
        workspace = Workspace(
            store, chunking=ChunkingSettings(chunk_size=10, overlap=2), id_factory=id_factory, clock=fixed_clock
        )
        workspace.set_compendium_text("abcdefghijkl")
        chunks = workspace.generate_chunks()
        assert [c.content for c in chunks] == ["abcdefghij", "ijkl"]
        assert workspace.status == "Generated 2 knowledge chunks"

    def test_generate_chunks_persists(self, workspace, store):
        workspace.set_compendium_text("Alpha\n\nBeta")
        workspace.generate_chunks()
        assert store.load(KCS_STORAGE_KEY) == "Alpha\n\nBeta"
        assert json.loads(store.load(KCS_CHUNKS_KEY))[0]["content"] == "Alpha\n\nBeta"

    def test_import_replaces_text_and_chunks(self, workspace, sample_chunks):
        chunks = workspace.import_compendium(serialize_chunks(sample_chunks, "jsonl"))
        assert chunks == sample_chunks
        assert workspace.compendium_raw == "\n\n".join(c.content for c in sample_chunks)
        assert workspace.status == "Imported 3 knowledge chunks"

    def test_failed_import_keeps_prior_state(self, workspace, store):
        workspace.set_compendium_text("Alpha")
        before = workspace.generate_chunks()
        stored_before = store.load(KCS_CHUNKS_KEY)

        with pytest.raises(MalformedInputError):
            workspace.import_compendium('{"content": "ok"}\nnot json')

        assert workspace.chunks == before
        assert workspace.compendium_raw == "Alpha"
        assert store.load(KCS_CHUNKS_KEY) == stored_before
        assert workspace.status == UPLOAD_FAILED_STATUS

    def test_unencodable_import_keeps_stored_workspace(self, tmp_path, id_factory, fixed_clock):
        path = tmp_path / "workspace.json"
        workspace = Workspace(JsonFileStore(path), id_factory=id_factory, clock=fixed_clock)
        workspace.add_task("Draft roadmap")
        workspace.set_compendium_text("prior text")
        before = path.read_bytes()

        with pytest.raises(MalformedInputError):
            workspace.import_compendium('{"content": "bad \\ud800 char"}')

        assert path.read_bytes() == before
        assert workspace.compendium_raw == "prior text"
        assert workspace.chunks == []
        assert workspace.status == UPLOAD_FAILED_STATUS

    def test_export_without_chunks(self, workspace):
        assert workspace.export_compendium("json") is None

    def test_export_compendium(self, workspace, sample_chunks):
        workspace.import_compendium(serialize_chunks(sample_chunks))
        filename, payload = workspace.export_compendium("jsonl")
        assert filename == "knowledge-compendium.jsonl"
        assert payload == serialize_chunks(sample_chunks, "jsonl")


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------


class TestHydrate:
    def test_restores_everything(self, workspace, store, id_factory, fixed_clock):
        workspace.add_task("urgent client review")
        workspace.set_ruleset("Charter\n\nOwner: Ana")
        workspace.set_compendium_text("Alpha\n\nBeta")
        workspace.generate_chunks()

        restored = Workspace(store, id_factory=id_factory, clock=fixed_clock)
        restored.hydrate()
        assert restored.tasks == workspace.tasks
        assert restored.ruleset_raw == workspace.ruleset_raw
        assert restored.ruleset_markdown == workspace.ruleset_markdown
        assert restored.compendium_raw == workspace.compendium_raw
        assert restored.chunks == workspace.chunks

    def test_empty_store(self, workspace):
        workspace.hydrate()
        assert workspace.tasks == []
        assert workspace.chunks == []

    def test_corrupt_entries_logged_and_skipped(self, caplog):
        store = InMemoryStore({TASKS_STORAGE_KEY: "{broken", KCS_CHUNKS_KEY: "nope", IR_STORAGE_KEY: "Charter"})
        workspace = Workspace(store)
        logging.getLogger("focus_console.workspace").propagate = True
        try:
            with caplog.at_level(logging.WARNING, logger="focus_console.workspace"):
                workspace.hydrate()
        finally:
            logging.getLogger("focus_console.workspace").propagate = False
        assert workspace.tasks == []
        assert workspace.chunks == []
        assert workspace.ruleset_markdown == "# Charter"
        assert "Failed to hydrate tasks" in caplog.text

    def test_corrupt_store_file_hydrates_empty(self, tmp_path):
        path = tmp_path / "workspace.json"
        path.write_text("{not json", encoding="utf-8")
        workspace = Workspace(JsonFileStore(path))
        workspace.hydrate()
        assert workspace.tasks == []
        assert workspace.chunks == []
        assert workspace.compendium_raw == ""
