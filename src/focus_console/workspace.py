"""Caller-side state holder for the focus console.

The pure transformations in :mod:`classification`, :mod:`markdown`,
:mod:`chunking` and :mod:`codec` never read or write state.  ``Workspace``
owns the task list, the ruleset text and the knowledge compendium, calls
into the core per user action, and mirrors every change into an injected
key-value store.

Key operations:
  hydrate            - load every stored key once at startup
  add_task           - classify free text and prepend it as a task
  set_ruleset        - store ruleset text and its markdown rendering
  generate_chunks    - chunk the compendium text with configured settings
  import_compendium  - replace the chunk set from an upload (all-or-nothing)
  export_compendium  - serialize the chunk set for download
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

from opentelemetry import trace

from .chunking import Clock, IdFactory, build_chunks, format_timestamp, new_chunk_id, split_into_segments, utc_now
from .classification import classify_task, group_by_quadrant
from .codec import ExportFormat, export_filename, parse_chunks, serialize_chunks
from .errors import MalformedInputError
from .logger import get_logger
from .markdown import normalize_to_markdown
from .schema import Chunk, Task
from .settings import ChunkingSettings
from .tracing import traced_operation

logger = get_logger(__name__)

TASKS_STORAGE_KEY = "agentic-eisenhower-tasks"
IR_STORAGE_KEY = "agentic-ai-ir"
IR_MD_STORAGE_KEY = "agentic-ai-ir-md"
KCS_STORAGE_KEY = "agentic-ai-kcs"
KCS_CHUNKS_KEY = "agentic-ai-kcs-chunks"

RULESET_FILENAME = "instructional-ruleset.md"
UPLOAD_FAILED_STATUS = "Upload failed. Check file format."


class KeyValueStore(Protocol):
    """Persistence adapter used by the workspace."""

    def load(self, key: str) -> str | None: ...

    def save(self, key: str, value: str) -> None: ...


class InMemoryStore:
    """Dictionary-backed store, the default for tests and scripts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.values.get(key)

    def save(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileStore:
    """Store that keeps all keys in one JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as file_handle:
                values = json.load(file_handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable store file %s: %s", self.path, exc)
            return {}
        if not isinstance(values, dict):
            logger.warning("Ignoring store file %s: expected a JSON object", self.path)
            return {}
        return values

    def load(self, key: str) -> str | None:
        return self._read().get(key)

    def save(self, key: str, value: str) -> None:
        """Write ``key`` and replace the store file in one step.

        The payload is fully encoded before anything touches disk, so a value
        that cannot be written leaves the previous file intact.
        """
        values = self._read()
        values[key] = value
        data = json.dumps(values, ensure_ascii=False, indent=2).encode("utf-8")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, self.path)


class Workspace:
    """Task board, ruleset editor and knowledge compendium for one user.

    Usage
    -----
    workspace = Workspace(JsonFileStore("data/workspace.json"))
    workspace.hydrate()
    workspace.add_task("Prepare client review deck by tomorrow")
    workspace.set_compendium_text(notes)
    workspace.generate_chunks()
    filename, payload = workspace.export_compendium("jsonl")
    """

    def __init__(
        self,
        store: KeyValueStore,
        chunking: ChunkingSettings | None = None,
        id_factory: IdFactory | None = None,
        clock: Clock | None = None,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self.store = store
        self.chunking = chunking or ChunkingSettings()
        self._new_id = id_factory or new_chunk_id
        self._clock = clock or utc_now

        self.tasks: list[Task] = []
        self.ruleset_raw = ""
        self.ruleset_markdown = ""
        self.compendium_raw = ""
        self.chunks: list[Chunk] = []
        self.status = ""

        self._classify = classify_task
        self._normalize = normalize_to_markdown
        self._segment = split_into_segments
        self._parse = parse_chunks
        if tracer is not None:
            self._classify = traced_operation(classify_task, tracer, "task.classify")
            self._normalize = traced_operation(normalize_to_markdown, tracer, "ruleset.normalize")
            self._segment = traced_operation(split_into_segments, tracer, "compendium.chunk")
            self._parse = traced_operation(parse_chunks, tracer, "compendium.parse")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def hydrate(self) -> None:
        """Load every stored key. Unreadable entries are logged and skipped."""
        stored_tasks = self.store.load(TASKS_STORAGE_KEY)
        if stored_tasks:
            try:
                self.tasks = [Task.from_record(record) for record in json.loads(stored_tasks)]
            except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as exc:
                logger.warning("Failed to hydrate tasks: %s", exc)

        stored_ruleset = self.store.load(IR_STORAGE_KEY)
        if stored_ruleset:
            self.ruleset_raw = stored_ruleset
            self.ruleset_markdown = self._normalize(stored_ruleset)

        stored_compendium = self.store.load(KCS_STORAGE_KEY)
        if stored_compendium:
            self.compendium_raw = stored_compendium

        stored_chunks = self.store.load(KCS_CHUNKS_KEY)
        if stored_chunks:
            try:
                self.chunks = parse_chunks(stored_chunks, id_factory=self._new_id, clock=self._clock).chunks
            except MalformedInputError as exc:
                logger.warning("Failed to hydrate compendium chunks: %s", exc)

        logger.info("Hydrated workspace with %d tasks and %d chunks", len(self.tasks), len(self.chunks))

    def _save_tasks(self) -> None:
        self.store.save(TASKS_STORAGE_KEY, json.dumps([task.to_record() for task in self.tasks], ensure_ascii=False))

    def _save_ruleset(self) -> None:
        self.store.save(IR_STORAGE_KEY, self.ruleset_raw)
        self.store.save(IR_MD_STORAGE_KEY, self.ruleset_markdown)

    def _save_compendium(self) -> None:
        self.store.save(KCS_STORAGE_KEY, self.compendium_raw)
        self.store.save(KCS_CHUNKS_KEY, serialize_chunks(self.chunks, "json"))

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, text: str) -> Task | None:
        """Classify ``text`` and put it at the top of the board.

        Returns:
            The new task, or ``None`` when ``text`` is blank.
        """
        title = text.strip()
        if not title:
            return None

        result = self._classify(title)
        task = Task(
            id=self._new_id(),
            title=title,
            urgent=result.urgent,
            important=result.important,
            rationale=result.rationale,
            created_at=format_timestamp(self._clock()),
        )
        self.tasks.insert(0, task)
        self._save_tasks()
        return task

    def _find_task(self, task_id: str) -> Task:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(f"Task '{task_id}' not found.")

    def set_quadrant(self, task_id: str, urgent: bool, important: bool) -> Task:
        task = self._find_task(task_id)
        task.urgent = urgent
        task.important = important
        self._save_tasks()
        return task

    def toggle_completed(self, task_id: str) -> Task:
        task = self._find_task(task_id)
        task.completed = not task.completed
        self._save_tasks()
        return task

    def remove_task(self, task_id: str) -> None:
        task = self._find_task(task_id)
        self.tasks.remove(task)
        self._save_tasks()

    def grouped_tasks(self) -> dict[tuple[bool, bool], list[Task]]:
        return group_by_quadrant(self.tasks)

    # ------------------------------------------------------------------
    # Ruleset
    # ------------------------------------------------------------------

    def set_ruleset(self, text: str) -> str:
        self.ruleset_raw = text
        self.ruleset_markdown = self._normalize(text)
        self._save_ruleset()
        return self.ruleset_markdown

    def export_ruleset(self) -> tuple[str, str] | None:
        if not self.ruleset_markdown.strip():
            return None
        return RULESET_FILENAME, self.ruleset_markdown

    # ------------------------------------------------------------------
    # Knowledge compendium
    # ------------------------------------------------------------------

    def set_compendium_text(self, text: str) -> None:
        self.compendium_raw = text
        self._save_compendium()

    def generate_chunks(self) -> list[Chunk]:
        """Replace the chunk set by chunking the current compendium text."""
        segments = self._segment(self.compendium_raw, self.chunking)
        self.chunks = build_chunks(segments, id_factory=self._new_id, clock=self._clock)
        self.status = f"Generated {len(self.chunks)} knowledge chunks"
        logger.info(self.status)
        self._save_compendium()
        return self.chunks

    def import_compendium(self, raw: str) -> list[Chunk]:
        """Replace text and chunks from an uploaded payload.

        Raises:
            MalformedInputError: If the payload cannot be parsed. Text and
                chunks are left exactly as they were.
        """
        try:
            parsed = self._parse(raw, id_factory=self._new_id, clock=self._clock)
        except MalformedInputError:
            self.status = UPLOAD_FAILED_STATUS
            logger.exception("Failed to import compendium")
            raise

        self.compendium_raw = parsed.content
        self.chunks = parsed.chunks
        self.status = f"Imported {len(self.chunks)} knowledge chunks"
        logger.info(self.status)
        self._save_compendium()
        return self.chunks

    def export_compendium(self, fmt: ExportFormat = "json") -> tuple[str, str] | None:
        if not self.chunks:
            return None
        return export_filename(fmt), serialize_chunks(self.chunks, fmt)
