"""API models for PM Command Center."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from pm_command_center.models import Doc, DocStatus, RiskLevel, Task, TaskStatus


class PositionModel(BaseModel):
    """Layout position of a task node."""

    x: float
    y: float


class TaskResponse(BaseModel):
    """API response model for tasks."""

    id: str
    name: str
    assignee: str
    status: TaskStatus
    risk_level: RiskLevel
    due_date: date
    description: str
    is_critical_path: bool | None = None
    position: PositionModel | None = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(**task.to_dict())


class CreateTaskRequest(BaseModel):
    """Request model for creating a task from a view."""

    id: str | None = None  # Generated when omitted
    name: str = "New Task"
    assignee: str = "Unassigned"
    status: TaskStatus = TaskStatus.TODO
    risk_level: RiskLevel = RiskLevel.LOW
    due_date: date | None = None  # Defaults to today
    description: str = ""
    is_critical_path: bool | None = None
    position: PositionModel | None = None


class UpdateStatusRequest(BaseModel):
    """Request model for changing one task's status."""

    status: TaskStatus


class UpdateFieldsRequest(BaseModel):
    """Request model for a partial task update; only fields that are set are applied."""

    name: str | None = None
    assignee: str | None = None
    status: TaskStatus | None = None
    risk_level: RiskLevel | None = None
    due_date: date | None = None
    description: str | None = None
    is_critical_path: bool | None = None
    position: PositionModel | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields the client sent.

        Explicit nulls are kept for the optional task fields and dropped elsewhere.
        """
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in ("is_critical_path", "position")
        }


class BulkStatusRequest(BaseModel):
    """Request model for setting the status of several tasks."""

    ids: list[str]
    status: TaskStatus


class BulkUpdateResponse(BaseModel):
    """API response model for bulk updates."""

    updated: list[TaskResponse]


class SubmitCommandRequest(BaseModel):
    """Request model for an assistant command."""

    text: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """API response model for assistant messages."""

    role: str
    content: str
    kind: str
    payload: dict[str, Any] | None
    timestamp: datetime


class ConversationResponse(BaseModel):
    """API response model for the message log."""

    composing: bool
    messages: list[MessageResponse]


class DocResponse(BaseModel):
    """API response model for documents."""

    id: str
    title: str
    content: str
    last_modified: datetime
    owner: str
    status: DocStatus

    @classmethod
    def from_doc(cls, doc: Doc) -> "DocResponse":
        return cls(**doc.to_dict())


class SaveDocRequest(BaseModel):
    """Request model for saving a document."""

    title: str
    content: str = ""
    owner: str = ""
    status: DocStatus = DocStatus.DRAFT


class ProjectLinksResponse(BaseModel):
    """API response model for external project links."""

    scope_doc: str
    requirements_doc: str
    drive_folder: str
