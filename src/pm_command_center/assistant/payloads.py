"""Structured payloads carried by assistant messages, one variant per kind."""

from dataclasses import asdict, dataclass
from typing import Any, Union

from pm_command_center.models import Task


@dataclass(frozen=True)
class ProjectMetrics:
    """Key-metric snapshot of the project (kind ``metrics``)."""

    total: int
    done: int
    blocked: int
    critical: int
    progress: int


@dataclass(frozen=True)
class WorkloadEntry:
    """Open task count for one assignee, labelled by first name."""

    name: str
    tasks: int


@dataclass(frozen=True)
class WorkloadChart:
    """Bar-chart series of open work per assignee (kind ``chart``)."""

    series: tuple[WorkloadEntry, ...]
    top: str


@dataclass(frozen=True)
class TaskList:
    """Tasks needing attention (kind ``task-list``)."""

    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class TaskCard:
    """Task affected by a successful action (kind ``success``)."""

    task: Task


@dataclass(frozen=True)
class FlowDiagram:
    """Mermaid description of a process pipeline (kind ``flow``)."""

    definition: str
    stages: tuple[str, ...]


Payload = Union[ProjectMetrics, WorkloadChart, TaskList, TaskCard, FlowDiagram]


def payload_to_dict(payload: Payload | None) -> dict[str, Any] | None:
    """Serialize a payload to JSON-compatible builtins."""
    if payload is None:
        return None
    if isinstance(payload, TaskList):
        return {"tasks": [task.to_dict() for task in payload.tasks]}
    if isinstance(payload, TaskCard):
        return {"task": payload.task.to_dict()}
    if isinstance(payload, WorkloadChart):
        return {"series": [asdict(entry) for entry in payload.series], "top": payload.top}
    if isinstance(payload, FlowDiagram):
        return {"definition": payload.definition, "stages": list(payload.stages)}
    return asdict(payload)
