"""Workspace persistence backend."""

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import yaml

from pm_command_center.models import Doc, ProjectLinks, Task, coerce_task_fields
from pm_command_center.storage.seed import DEFAULT_DOCS, DEFAULT_TASKS, PROJECT_LINKS

logger = logging.getLogger(__name__)

TASKS_STORAGE_KEY = "pm_command_center_tasks_v1"
DOCS_STORAGE_KEY = "pm_command_center_docs_v1"

# Simulated backend latency in milliseconds
FETCH_TASKS_LATENCY_MS = 300
CREATE_TASK_LATENCY_MS = 200
UPDATE_TASK_LATENCY_MS = 0
BULK_UPDATE_LATENCY_MS = 400
FETCH_DOCS_LATENCY_MS = 300
SAVE_DOC_LATENCY_MS = 400
DELETE_DOC_LATENCY_MS = 200
FETCH_LINKS_LATENCY_MS = 100


class TaskRepository(Protocol):
    """Protocol for the persistence backend behind the task store."""

    async def fetch_tasks(self) -> list[Task]:
        """Return the full stored task collection."""
        ...

    async def create_task(self, task: Task) -> Task:
        """Append a task to the stored collection."""
        ...

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> bool:
        """Shallow-merge fields into one stored task."""
        ...

    async def bulk_update_tasks(self, task_ids: list[str], fields: dict[str, Any]) -> bool:
        """Shallow-merge fields into every stored task whose id is listed."""
        ...

    async def fetch_docs(self) -> list[Doc]:
        """Return the stored document collection."""
        ...

    async def save_doc(self, doc: Doc) -> bool:
        """Insert or replace a document."""
        ...

    async def delete_doc(self, doc_id: str) -> bool:
        """Remove a document by id."""
        ...

    async def fetch_project_links(self) -> ProjectLinks:
        """Return static links to external project resources."""
        ...


class YamlWorkspaceRepository:
    """Repository backed by a single YAML file of storage keys to collections.

    Every call reads and rewrites the whole file inside one worker thread, so
    writes never interleave at the file level.
    """

    def __init__(self, storage_path: str | Path, latency_scale: float = 1.0) -> None:
        """Initialize repository.

        Args:
            storage_path: YAML file holding the workspace collections
            latency_scale: Multiplier for simulated latency (0 disables it)
        """
        self._path = Path(storage_path)
        self._latency_scale = latency_scale
        self._io_lock = threading.Lock()

    async def fetch_tasks(self) -> list[Task]:
        """Return stored tasks, seeding defaults into empty storage."""
        await self._delay(FETCH_TASKS_LATENCY_MS)
        records = await asyncio.to_thread(
            self._read_or_seed, TASKS_STORAGE_KEY, [t.to_dict() for t in DEFAULT_TASKS]
        )
        tasks: list[Task] = []
        for record in records:
            try:
                tasks.append(Task.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Repository] Skipping invalid task record {record!r}: {e}")
        return tasks

    async def create_task(self, task: Task) -> Task:
        """Append a task to the stored collection."""
        await self._delay(CREATE_TASK_LATENCY_MS)

        def append(data: dict[str, Any]) -> None:
            data[TASKS_STORAGE_KEY] = [*self._tasks_of(data), task.to_dict()]

        await asyncio.to_thread(self._mutate, append)
        logger.debug(f"[Repository] Created task {task.id}")
        return task

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> bool:
        """Shallow-merge fields into the stored task with ``task_id``."""
        return await self.bulk_update_tasks([task_id], fields, latency_ms=UPDATE_TASK_LATENCY_MS)

    async def bulk_update_tasks(
        self,
        task_ids: list[str],
        fields: dict[str, Any],
        latency_ms: int = BULK_UPDATE_LATENCY_MS,
    ) -> bool:
        """Shallow-merge fields into every stored task whose id is listed."""
        await self._delay(latency_ms)
        changes = coerce_task_fields(fields)
        wanted = set(task_ids)

        def merge(data: dict[str, Any]) -> None:
            data[TASKS_STORAGE_KEY] = [
                {**record, **changes} if record.get("id") in wanted else record
                for record in self._tasks_of(data)
            ]

        await asyncio.to_thread(self._mutate, merge)
        logger.debug(f"[Repository] Updated {sorted(wanted)} with {sorted(changes)}")
        return True

    async def fetch_docs(self) -> list[Doc]:
        """Return stored documents, seeding defaults into empty storage."""
        await self._delay(FETCH_DOCS_LATENCY_MS)
        records = await asyncio.to_thread(
            self._read_or_seed, DOCS_STORAGE_KEY, [d.to_dict() for d in DEFAULT_DOCS]
        )
        docs: list[Doc] = []
        for record in records:
            try:
                docs.append(Doc.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Repository] Skipping invalid doc record {record!r}: {e}")
        return docs

    async def save_doc(self, doc: Doc) -> bool:
        """Replace the document with the same id, or insert it first."""
        await self._delay(SAVE_DOC_LATENCY_MS)

        def upsert(data: dict[str, Any]) -> None:
            docs = self._docs_of(data)
            if any(record.get("id") == doc.id for record in docs):
                data[DOCS_STORAGE_KEY] = [
                    doc.to_dict() if record.get("id") == doc.id else record for record in docs
                ]
            else:
                data[DOCS_STORAGE_KEY] = [doc.to_dict(), *docs]

        await asyncio.to_thread(self._mutate, upsert)
        return True

    async def delete_doc(self, doc_id: str) -> bool:
        """Remove the document with ``doc_id`` if present."""
        await self._delay(DELETE_DOC_LATENCY_MS)

        def remove(data: dict[str, Any]) -> None:
            data[DOCS_STORAGE_KEY] = [r for r in self._docs_of(data) if r.get("id") != doc_id]

        await asyncio.to_thread(self._mutate, remove)
        return True

    async def fetch_project_links(self) -> ProjectLinks:
        """Return static project links."""
        await self._delay(FETCH_LINKS_LATENCY_MS)
        return PROJECT_LINKS

    async def _delay(self, latency_ms: int) -> None:
        """Sleep for the scaled simulated latency."""
        seconds = latency_ms / 1000 * self._latency_scale
        if seconds > 0:
            await asyncio.sleep(seconds)

    def _tasks_of(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        records = data.get(TASKS_STORAGE_KEY)
        if records is None:
            return [t.to_dict() for t in DEFAULT_TASKS]
        return list(records)

    def _docs_of(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        records = data.get(DOCS_STORAGE_KEY)
        if records is None:
            return [d.to_dict() for d in DEFAULT_DOCS]
        return list(records)

    def _read_or_seed(self, key: str, defaults: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Return the collection under ``key``, writing ``defaults`` if it is missing."""
        with self._io_lock:
            data = self._load()
            records = data.get(key)
            if records is None:
                logger.info(f"[Repository] Seeding '{key}' with {len(defaults)} records")
                data[key] = defaults
                self._save(data)
                return defaults
            return list(records)

    def _mutate(self, apply: Callable[[dict[str, Any]], None]) -> None:
        """Read, modify and rewrite the storage file under the I/O lock."""
        with self._io_lock:
            data = self._load()
            apply(data)
            self._save(data)

    def _load(self) -> dict[str, Any]:
        """Load the storage file, treating missing or corrupt files as empty."""
        if not self._path.exists():
            return {}
        try:
            data = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"[Repository] Failed to load {self._path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
