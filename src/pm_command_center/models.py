"""Domain models for the PM Command Center workspace."""

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    """Workflow status of a task."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"
    BLOCKED = "Blocked"


class RiskLevel(str, Enum):
    """Delivery risk of a task."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class DocStatus(str, Enum):
    """Review state of a workspace document."""

    DRAFT = "Draft"
    FINAL = "Final"
    REVIEW = "Review"


@dataclass(frozen=True)
class Position:
    """Layout position of a task node on the flow canvas."""

    x: float
    y: float


@dataclass(frozen=True)
class Task:
    """Project task.

    Tasks are immutable values: every mutation produces a new Task via
    ``with_changes``, so snapshots handed out by the store never change.
    """

    id: str
    name: str
    assignee: str
    status: TaskStatus
    risk_level: RiskLevel
    due_date: date
    description: str
    is_critical_path: bool | None = None
    position: Position | None = None

    def with_changes(self, changes: dict[str, Any]) -> "Task":
        """Return a copy with ``changes`` shallow-merged over this task.

        Raises:
            ValueError: On unknown fields, an id change, or invalid enum values
        """
        return Task.from_dict({**self.to_dict(), **coerce_task_fields(changes)})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain builtins (enums as values, dates as ISO strings)."""
        data = asdict(self)
        data["status"] = self.status.value
        data["risk_level"] = self.risk_level.value
        data["due_date"] = self.due_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Build a Task from a plain mapping, validating enums and dates."""
        position = data.get("position")
        if isinstance(position, dict):
            position = Position(x=float(position["x"]), y=float(position["y"]))
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            assignee=str(data.get("assignee", "")),
            status=TaskStatus(data["status"]),
            risk_level=RiskLevel(data["risk_level"]),
            due_date=_to_date(data["due_date"]),
            description=str(data.get("description", "")),
            is_critical_path=data.get("is_critical_path"),
            position=position,
        )


TASK_FIELDS = frozenset(f.name for f in fields(Task))


def coerce_task_fields(changes: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial task update and normalize its values.

    Args:
        changes: Field name to new value (enum members or their string values)

    Returns:
        Normalized copy suitable for ``Task.from_dict``

    Raises:
        ValueError: If a field is unknown, targets ``id``, or holds an invalid value
    """
    unknown = set(changes) - TASK_FIELDS
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    if "id" in changes:
        raise ValueError("Task id is immutable")

    coerced = dict(changes)
    if "status" in coerced:
        coerced["status"] = TaskStatus(coerced["status"]).value
    if "risk_level" in coerced:
        coerced["risk_level"] = RiskLevel(coerced["risk_level"]).value
    if "due_date" in coerced:
        coerced["due_date"] = _to_date(coerced["due_date"]).isoformat()
    if coerced.get("position") is not None:
        coerced["position"] = _position_dict(coerced["position"])
    return coerced


def _position_dict(value: Any) -> dict[str, float]:
    """Normalize a Position or {"x", "y"} mapping, raising ValueError on other shapes."""
    if isinstance(value, Position):
        return asdict(value)
    if not isinstance(value, dict) or set(value) != {"x", "y"}:
        raise ValueError(f"Invalid position: {value!r}")
    try:
        return {"x": float(value["x"]), "y": float(value["y"])}
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid position: {value!r}") from e


@dataclass(frozen=True)
class Doc:
    """Workspace document (rich-text content is opaque HTML)."""

    id: str
    title: str
    content: str
    last_modified: datetime
    owner: str
    status: DocStatus

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain builtins."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "last_modified": self.last_modified.isoformat(),
            "owner": self.owner,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Doc":
        """Build a Doc from a plain mapping."""
        last_modified = data["last_modified"]
        if not isinstance(last_modified, datetime):
            last_modified = datetime.fromisoformat(str(last_modified))
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            content=str(data.get("content", "")),
            last_modified=last_modified,
            owner=str(data.get("owner", "")),
            status=DocStatus(data["status"]),
        )


@dataclass(frozen=True)
class ProjectLinks:
    """External project resources."""

    scope_doc: str
    requirements_doc: str
    drive_folder: str


def _to_date(value: Any) -> date:
    """Convert a date, datetime or ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))
