"""In-memory task cache with optimistic writes."""

import asyncio
import logging
import random
import uuid
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pm_command_center.models import Task, TaskStatus, coerce_task_fields
from pm_command_center.storage.repository import TaskRepository

logger = logging.getLogger(__name__)

ChangeListener = Callable[[dict[str, Any]], None]


class TaskNotFoundError(KeyError):
    """Raised when a mutation targets a task id the store does not hold."""


TaskChange = Callable[[list[Task]], list[Task]]


def _merge_into(task_ids: list[str], changes: dict[str, Any]) -> TaskChange:
    """Return a function merging ``changes`` into the listed tasks of a collection."""
    wanted = set(task_ids)

    def apply(tasks: list[Task]) -> list[Task]:
        return [task.with_changes(changes) if task.id in wanted else task for task in tasks]

    return apply


def _append_missing(task: Task) -> TaskChange:
    """Return a function appending ``task`` to a collection that lacks its id."""

    def apply(tasks: list[Task]) -> list[Task]:
        if any(existing.id == task.id for existing in tasks):
            return tasks
        return [*tasks, task]

    return apply


class TaskStore:
    """In-memory cache of the task collection, reconciled with a repository.

    Every mutation is merged into memory synchronously and then forwarded to
    the repository in the background. Persistence writes touching the same
    task id run in issue order; a failed write is logged and never rolled back.
    Mutating methods must be called from a running event loop.
    """

    def __init__(self, repository: TaskRepository) -> None:
        """Initialize empty store over ``repository``."""
        self._repository = repository
        self._tasks: list[Task] = []
        self._listeners: list[ChangeListener] = []
        self._pending: set[asyncio.Task[None]] = set()
        self._tails: dict[str, asyncio.Task[None]] = {}
        # One journal per running refresh, replayed over the tasks it fetched
        self._journals: list[list[TaskChange]] = []

    async def init(self) -> None:
        """Hydrate the cache from the repository."""
        self._tasks = list(await self._repository.fetch_tasks())
        logger.info(f"[TaskStore] Loaded {len(self._tasks)} tasks")

    async def refresh(self) -> None:
        """Wait for pending writes, then reload the cache from the repository.

        Mutations made while the fetch is in flight are re-applied over the
        fetched tasks, so a refresh never undoes local state.
        """
        await self.flush()
        replay: list[TaskChange] = []
        self._journals.append(replay)
        try:
            tasks = list(await self._repository.fetch_tasks())
        finally:
            self._journals = [journal for journal in self._journals if journal is not replay]
        for apply in replay:
            tasks = apply(tasks)
        self._tasks = tasks
        logger.info(f"[TaskStore] Reloaded {len(tasks)} tasks, re-applied {len(replay)} changes")
        self._notify("tasks_synced", "Workspace synced successfully", task_ids=self.ids())

    async def flush(self) -> None:
        """Wait until every scheduled persistence write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        """Number of persistence writes not yet finished."""
        return len(self._pending)

    def get_all(self) -> list[Task]:
        """Return a snapshot of the current tasks in collection order."""
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        """Return the task with ``task_id`` or None."""
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def ids(self) -> list[str]:
        """Return all task ids in collection order."""
        return [task.id for task in self._tasks]

    def generate_id(self, prefix: str, rng: random.Random | None = None) -> str:
        """Generate a "<prefix>-<number>" id no task in the store holds."""
        rng = rng or random.Random()
        for _ in range(100):
            candidate = f"{prefix}-{rng.randint(0, 9998)}"
            if self.get(candidate) is None:
                return candidate
        # Numeric space is crowded, fall back to a random hex suffix
        while True:
            candidate = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"
            if self.get(candidate) is None:
                return candidate

    def search(self, query: str) -> list[Task]:
        """Filter tasks by case-insensitive substring of name, assignee, id or description."""
        needle = query.lower()
        return [
            task
            for task in self._tasks
            if needle in task.name.lower()
            or needle in task.assignee.lower()
            or needle in task.id.lower()
            or needle in task.description.lower()
        ]

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback receiving change notifications."""
        self._listeners.append(listener)

    def create(self, task: Task) -> Task:
        """Append ``task`` to the cache and persist it in the background.

        Raises:
            ValueError: If a task with the same id already exists
        """
        if self.get(task.id) is not None:
            raise ValueError(f"Task id already exists: {task.id}")

        self._tasks.append(task)
        self._record(_append_missing(task))
        self._schedule([task.id], lambda: self._persist_create(task))
        self._notify("task_created", f'Task "{task.name}" created', task_ids=[task.id])
        return task

    def update(self, task_id: str, fields: dict[str, Any]) -> Task:
        """Shallow-merge ``fields`` into one task (last write wins).

        Returns:
            The updated task

        Raises:
            TaskNotFoundError: If no task has ``task_id``
            ValueError: If ``fields`` is invalid
        """
        changes = coerce_task_fields(fields)
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                updated = task.with_changes(changes)
                self._tasks[index] = updated
                break
        else:
            raise TaskNotFoundError(task_id)

        self._record(_merge_into([task_id], changes))
        self._schedule(
            [task_id], lambda: self._persist(self._repository.update_task(task_id, changes))
        )
        if "status" in changes:
            message = f"Task updated to {updated.status.value}"
        else:
            message = f'Task "{updated.name}" updated'
        self._notify("task_updated", message, task_ids=[task_id])
        return updated

    def update_status(self, task_id: str, status: TaskStatus | str) -> Task:
        """Set the status of one task."""
        return self.update(task_id, {"status": TaskStatus(status)})

    def bulk_update(self, task_ids: Iterable[str], fields: dict[str, Any]) -> list[Task]:
        """Shallow-merge ``fields`` into every listed task; unknown ids are skipped.

        Returns:
            The updated tasks in collection order
        """
        changes = coerce_task_fields(fields)
        wanted = list(dict.fromkeys(task_ids))
        if not wanted:
            return []

        # Build every merged task before replacing any, so a bad value changes nothing
        merged = _merge_into(wanted, changes)(self._tasks)
        updated = [new for old, new in zip(self._tasks, merged) if old is not new]
        self._tasks = merged
        self._record(_merge_into(wanted, changes))

        self._schedule(
            wanted,
            lambda: self._persist(self._repository.bulk_update_tasks(wanted, changes)),
        )
        self._notify(
            "tasks_bulk_updated", f"Updated {len(wanted)} tasks", task_ids=[t.id for t in updated]
        )
        return updated

    def bulk_update_status(self, task_ids: Iterable[str], status: TaskStatus | str) -> list[Task]:
        """Set the status of every listed task."""
        return self.bulk_update(task_ids, {"status": TaskStatus(status)})

    def _record(self, change: TaskChange) -> None:
        for journal in self._journals:
            journal.append(change)

    def _schedule(self, task_ids: list[str], write: Callable[[], Awaitable[None]]) -> None:
        """Run ``write`` after every earlier write touching any of ``task_ids``."""
        predecessors = {self._tails[i] for i in task_ids if i in self._tails}

        async def run() -> None:
            if predecessors:
                await asyncio.gather(*predecessors, return_exceptions=True)
            await write()

        job = asyncio.create_task(run(), name=f"persist-{','.join(task_ids)}")
        self._pending.add(job)
        job.add_done_callback(self._pending.discard)
        for task_id in task_ids:
            self._tails[task_id] = job
        job.add_done_callback(lambda done: self._release(task_ids, done))

    def _release(self, task_ids: list[str], job: asyncio.Task[None]) -> None:
        for task_id in task_ids:
            if self._tails.get(task_id) is job:
                del self._tails[task_id]

    async def _persist_create(self, task: Task) -> None:
        try:
            await self._repository.create_task(task)
        except Exception as e:
            logger.error(f"[TaskStore] Failed to persist new task {task.id}: {e}", exc_info=True)

    async def _persist(self, call: Awaitable[bool]) -> None:
        """Await a repository write; failures are logged and the cache is kept."""
        try:
            ok = await call
        except Exception as e:
            logger.error(f"[TaskStore] Persistence write failed: {e}", exc_info=True)
            return
        if not ok:
            logger.warning("[TaskStore] Persistence write reported failure, keeping local state")

    def _notify(self, event_type: str, message: str, task_ids: list[str]) -> None:
        event = {"type": event_type, "message": message, "task_ids": task_ids}
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[TaskStore] Listener error: {e}", exc_info=True)
