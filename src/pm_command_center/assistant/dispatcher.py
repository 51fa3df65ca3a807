"""Execution of classified assistant intents against the task store."""

import logging
import math
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Union

from pm_command_center.assistant.intents import DEFAULT_TASK_NAME, Intent, IntentKind
from pm_command_center.assistant.payloads import (
    FlowDiagram,
    ProjectMetrics,
    WorkloadChart,
    WorkloadEntry,
)
from pm_command_center.assistant.resolver import EntityResolver
from pm_command_center.models import Position, RiskLevel, Task, TaskStatus
from pm_command_center.task_store import TaskStore

logger = logging.getLogger(__name__)

AGENT_ASSIGNEE = "AI Agent"
AGENT_DESCRIPTION = "Created automatically by AI Agent based on user command."
LAYOUT_EXTENT = 400
NO_ONE = "No one"

STATUS_TOKENS: dict[str, TaskStatus] = {
    "done": TaskStatus.DONE,
    "in progress": TaskStatus.IN_PROGRESS,
    "todo": TaskStatus.TODO,
    "blocked": TaskStatus.BLOCKED,
    "review": TaskStatus.REVIEW,
}

PIPELINE_STAGES = ("Start", "Planning", "Development", "Review", "Testing", "Deployment")
PIPELINE_DIAGRAM = FlowDiagram(
    definition=(
        "graph TD\n"
        "  Start[Start Project] --> Plan[Planning]\n"
        "  Plan --> Dev[Development]\n"
        "  Dev --> Review[Code Review]\n"
        "  Review --> QA[Testing]\n"
        "  QA --> Deploy[Deployment]"
    ),
    stages=PIPELINE_STAGES,
)


@dataclass(frozen=True)
class SummaryOutcome:
    metrics: ProjectMetrics


@dataclass(frozen=True)
class RiskOutcome:
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class WorkloadOutcome:
    chart: WorkloadChart


@dataclass(frozen=True)
class TaskCreatedOutcome:
    task: Task


@dataclass(frozen=True)
class StatusUpdatedOutcome:
    task: Task


@dataclass(frozen=True)
class TaskNotFoundOutcome:
    reference: str


@dataclass(frozen=True)
class FlowOutcome:
    diagram: FlowDiagram


@dataclass(frozen=True)
class UnrecognizedOutcome:
    pass


Outcome = Union[
    SummaryOutcome,
    RiskOutcome,
    WorkloadOutcome,
    TaskCreatedOutcome,
    StatusUpdatedOutcome,
    TaskNotFoundOutcome,
    FlowOutcome,
    UnrecognizedOutcome,
]


def compute_metrics(tasks: list[Task]) -> ProjectMetrics:
    """Count totals and compute completion percentage (0 for an empty collection)."""
    total = len(tasks)
    done = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    blocked = sum(1 for t in tasks if t.status == TaskStatus.BLOCKED)
    critical = sum(1 for t in tasks if t.risk_level == RiskLevel.CRITICAL)
    # Half-up rounding, not Python's banker's rounding
    progress = math.floor(done / total * 100 + 0.5) if total > 0 else 0
    return ProjectMetrics(
        total=total, done=done, blocked=blocked, critical=critical, progress=progress
    )


def risky_tasks(tasks: list[Task]) -> tuple[Task, ...]:
    """Return tasks with High or Critical risk in collection order."""
    return tuple(t for t in tasks if t.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL))


def compute_workload(tasks: list[Task]) -> WorkloadChart:
    """Count open (non-Done) tasks per assignee, busiest first."""
    counts: dict[str, int] = {}
    for task in tasks:
        if task.status != TaskStatus.DONE:
            counts[task.assignee] = counts.get(task.assignee, 0) + 1

    # Label by first name; sorted() is stable so ties keep first-seen order
    series = sorted(
        (WorkloadEntry(name=name.split(" ")[0], tasks=count) for name, count in counts.items()),
        key=lambda entry: entry.tasks,
        reverse=True,
    )
    top = series[0].name if series else NO_ONE
    return WorkloadChart(series=tuple(series), top=top)


class ActionDispatcher:
    """Executes exactly one action per intent.

    Mutations go through the store's optimistic write path; the dispatcher
    never waits for persistence.
    """

    def __init__(
        self,
        store: TaskStore,
        resolver: EntityResolver | None = None,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._resolver = resolver or EntityResolver()
        self._rng = rng or random.Random()
        self._today = today

    def dispatch(self, intent: Intent) -> Outcome:
        """Execute ``intent`` and return its outcome."""
        kind = intent.kind
        if kind == IntentKind.SUMMARIZE:
            return SummaryOutcome(compute_metrics(self._store.get_all()))
        if kind == IntentKind.RISK_QUERY:
            return RiskOutcome(risky_tasks(self._store.get_all()))
        if kind == IntentKind.WORKLOAD_QUERY:
            return WorkloadOutcome(compute_workload(self._store.get_all()))
        if kind == IntentKind.CREATE_TASK:
            return self._create_task(intent.task_name or DEFAULT_TASK_NAME)
        if kind == IntentKind.UPDATE_STATUS:
            return self._update_status(intent.task_ref or "", intent.status_token or "")
        if kind == IntentKind.GENERATE_FLOW:
            return FlowOutcome(PIPELINE_DIAGRAM)
        return UnrecognizedOutcome()

    def _create_task(self, name: str) -> TaskCreatedOutcome:
        task = Task(
            id=self._store.generate_id("AI", self._rng),
            name=name,
            assignee=AGENT_ASSIGNEE,
            status=TaskStatus.TODO,
            risk_level=RiskLevel.LOW,
            due_date=self._today(),
            description=AGENT_DESCRIPTION,
            position=Position(
                x=self._rng.random() * LAYOUT_EXTENT, y=self._rng.random() * LAYOUT_EXTENT
            ),
        )
        self._store.create(task)
        logger.info(f"[Dispatcher] Created task {task.id} '{task.name}'")
        return TaskCreatedOutcome(task)

    def _update_status(
        self, reference: str, token: str
    ) -> StatusUpdatedOutcome | TaskNotFoundOutcome:
        status = STATUS_TOKENS.get(token.lower())
        target = self._resolver.resolve(reference, self._store.get_all())
        if target is None or status is None:
            logger.info(f"[Dispatcher] No task matches '{reference}'")
            return TaskNotFoundOutcome(reference)

        updated = self._store.update_status(target.id, status)
        logger.info(f"[Dispatcher] Set {target.id} to {status.value}")
        return StatusUpdatedOutcome(updated)
