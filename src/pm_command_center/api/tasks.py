"""Task API endpoints."""

import logging
from datetime import date

from fastapi import APIRouter, HTTPException

from pm_command_center.api.models import (
    BulkStatusRequest,
    BulkUpdateResponse,
    CreateTaskRequest,
    TaskResponse,
    UpdateFieldsRequest,
    UpdateStatusRequest,
)
from pm_command_center.factory import get_task_store
from pm_command_center.models import Task
from pm_command_center.task_store import TaskNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(q: str | None = None) -> list[TaskResponse]:
    """List current tasks.

    Args:
        q: Optional search text matched against name, assignee, id and description

    Returns:
        Tasks in collection order, reflecting unpersisted optimistic writes
    """
    store = get_task_store()
    tasks = store.search(q) if q else store.get_all()
    return [TaskResponse.from_task(task) for task in tasks]


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str) -> TaskResponse:
    """Get one task by id."""
    task = get_task_store().get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return TaskResponse.from_task(task)


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(request: CreateTaskRequest) -> TaskResponse:
    """Create a task; it is visible immediately and persisted in the background.

    Raises:
        HTTPException: 400 if the id is already taken
    """
    store = get_task_store()
    data = request.model_dump()
    data["id"] = request.id or store.generate_id("TSK")
    data["due_date"] = request.due_date or date.today()
    try:
        task = store.create(Task.from_dict(data))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info(f"Created task {task.id}")
    return TaskResponse.from_task(task)


@router.patch("/tasks/{task_id}/status", response_model=TaskResponse)
async def update_task_status(task_id: str, request: UpdateStatusRequest) -> TaskResponse:
    """Set a task's status.

    Raises:
        HTTPException: 404 if the task does not exist
    """
    try:
        task = get_task_store().update_status(task_id, request.status)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}") from e
    return TaskResponse.from_task(task)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task_fields(task_id: str, request: UpdateFieldsRequest) -> TaskResponse:
    """Apply a partial update to a task (last write wins).

    Raises:
        HTTPException: 404 if the task does not exist, 400 on invalid fields
    """
    try:
        task = get_task_store().update(task_id, request.changes())
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}") from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TaskResponse.from_task(task)


@router.post("/tasks/bulk-status", response_model=BulkUpdateResponse)
async def bulk_update_status(request: BulkStatusRequest) -> BulkUpdateResponse:
    """Set the status of several tasks; unknown ids are ignored."""
    updated = get_task_store().bulk_update_status(request.ids, request.status)
    return BulkUpdateResponse(updated=[TaskResponse.from_task(task) for task in updated])


@router.post("/sync", response_model=list[TaskResponse])
async def sync_tasks() -> list[TaskResponse]:
    """Drain pending writes and reload tasks from the persistence backend."""
    store = get_task_store()
    await store.refresh()
    return [TaskResponse.from_task(task) for task in store.get_all()]
