"""Assistant messages and response composition."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pm_command_center.assistant.dispatcher import (
    FlowOutcome,
    Outcome,
    RiskOutcome,
    StatusUpdatedOutcome,
    SummaryOutcome,
    TaskCreatedOutcome,
    TaskNotFoundOutcome,
    WorkloadOutcome,
)
from pm_command_center.assistant.payloads import (
    FlowDiagram,
    Payload,
    ProjectMetrics,
    TaskCard,
    TaskList,
    WorkloadChart,
    payload_to_dict,
)
from pm_command_center.models import RiskLevel, Task


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageKind(str, Enum):
    TEXT = "text"
    SUCCESS = "success"
    METRICS = "metrics"
    CHART = "chart"
    TASK_LIST = "task-list"
    FLOW = "flow"


# Payload type allowed for each message kind
PAYLOAD_TYPES: dict[MessageKind, type | None] = {
    MessageKind.TEXT: None,
    MessageKind.SUCCESS: TaskCard,
    MessageKind.METRICS: ProjectMetrics,
    MessageKind.CHART: WorkloadChart,
    MessageKind.TASK_LIST: TaskList,
    MessageKind.FLOW: FlowDiagram,
}

GREETING = (
    "Hello! I'm your PM Command Agent. I'm connected to your workspace live data.\n\n"
    "Ask me to:\n• Analyze project risks\n• Check team workload\n• Create or update tasks"
)
FALLBACK = (
    "I can help with project management tasks. "
    "Try asking for a 'Summary' or 'High risk tasks'."
)
FAILURE = "Something went wrong while handling that request. Please try again."


@dataclass(frozen=True)
class Message:
    """Immutable entry of a conversation log."""

    role: Role
    content: str
    kind: MessageKind = MessageKind.TEXT
    payload: Payload | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.kind]
        if self.payload is None:
            return
        if expected is None or not isinstance(self.payload, expected):
            raise ValueError(
                f"Payload {type(self.payload).__name__} does not match kind {self.kind.value}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "kind": self.kind.value,
            "payload": payload_to_dict(self.payload),
            "timestamp": self.timestamp.isoformat(),
        }


def user_message(text: str) -> Message:
    return Message(role=Role.USER, content=text)


def assistant_text(text: str) -> Message:
    return Message(role=Role.ASSISTANT, content=text)


class ResponseComposer:
    """Builds the assistant reply for a dispatcher outcome."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def compose(self, outcome: Outcome) -> Message:
        """Return a Message whose kind and payload match the outcome category."""
        if isinstance(outcome, SummaryOutcome):
            return self._reply(
                "Here is your real-time project snapshot:", MessageKind.METRICS, outcome.metrics
            )
        if isinstance(outcome, RiskOutcome):
            if not outcome.tasks:
                return self._reply("Great news! No high-risk items detected.", MessageKind.SUCCESS)
            return self._reply(
                f"I found {len(outcome.tasks)} tasks that require attention.",
                MessageKind.TASK_LIST,
                TaskList(outcome.tasks),
            )
        if isinstance(outcome, WorkloadOutcome):
            return self._reply(
                f"According to active tasks, **{outcome.chart.top}** has the highest workload.",
                MessageKind.CHART,
                outcome.chart,
            )
        if isinstance(outcome, TaskCreatedOutcome):
            return self._reply(
                f'Created task "{outcome.task.name}"', MessageKind.SUCCESS, TaskCard(outcome.task)
            )
        if isinstance(outcome, StatusUpdatedOutcome):
            task = outcome.task
            return self._reply(
                f'Updated "{task.name}" to {task.status.value}',
                MessageKind.SUCCESS,
                TaskCard(task),
            )
        if isinstance(outcome, TaskNotFoundOutcome):
            return self._reply(f'I couldn\'t find a task matching "{outcome.reference}".')
        if isinstance(outcome, FlowOutcome):
            return self._reply(
                "I've analyzed the critical path and generated this Mermaid flow:",
                MessageKind.FLOW,
                outcome.diagram,
            )
        return self._reply(FALLBACK)

    def failure(self) -> Message:
        """Reply used when handling a command raised unexpectedly."""
        return self._reply(FAILURE)

    def _reply(
        self, content: str, kind: MessageKind = MessageKind.TEXT, payload: Payload | None = None
    ) -> Message:
        return Message(
            role=Role.ASSISTANT,
            content=content,
            kind=kind,
            payload=payload,
            timestamp=self._clock(),
        )


def suggestions(tasks: list[Task]) -> list[str]:
    """Proactive prompts offered to the user for the current tasks."""
    prompts = []
    if any(task.risk_level == RiskLevel.HIGH for task in tasks):
        prompts.append("Show high risk tasks")
    prompts.extend(["Summarize project status", "Who has the most work?", "Generate process flow"])
    return prompts
