"""Rule-based intent classification for assistant commands."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class IntentKind(str, Enum):
    """Purpose of a user command."""

    SUMMARIZE = "summarize"
    RISK_QUERY = "risk_query"
    WORKLOAD_QUERY = "workload_query"
    CREATE_TASK = "create_task"
    UPDATE_STATUS = "update_status"
    GENERATE_FLOW = "generate_flow"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Intent:
    """Classified command with its extracted parameters."""

    kind: IntentKind
    task_ref: str | None = None  # UpdateStatus: free-text task reference
    status_token: str | None = None  # UpdateStatus: done, in progress, todo, blocked, review
    task_name: str | None = None  # CreateTask: case-adjusted task name


DEFAULT_TASK_NAME = "New Task"

SUMMARY_KEYWORDS = ("summary", "status", "overview")
RISK_KEYWORDS = ("risk", "critical", "attention")
WORKLOAD_KEYWORDS = ("workload", "who", "resource", "busy")
FLOW_KEYWORDS = ("flow", "diagram", "process")

_CREATE_TRIGGER = re.compile(r"^(?:create|add|new) task", re.IGNORECASE)
_CREATE_NAME = re.compile(
    r"^(?:create|add|new) task(?:\s+for\b)?\s*(.*?)(?: priority.*)?$",
    re.IGNORECASE | re.DOTALL,
)
_UPDATE_STATUS = re.compile(
    r"(?:mark|set|update) (.+) (?:as|to) (done|in progress|todo|blocked|review)",
    re.IGNORECASE,
)

Matcher = Callable[[str], Intent | None]


def _keywords(kind: IntentKind, keywords: tuple[str, ...]) -> Matcher:
    """Build a matcher firing when any keyword occurs as a substring."""

    def match(text: str) -> Intent | None:
        lowered = text.lower()
        if any(keyword in lowered for keyword in keywords):
            return Intent(kind)
        return None

    return match


def _create_task(text: str) -> Intent | None:
    if not _CREATE_TRIGGER.match(text):
        return None
    return Intent(IntentKind.CREATE_TASK, task_name=extract_task_name(text))


def _update_status(text: str) -> Intent | None:
    match = _UPDATE_STATUS.search(text)
    if not match:
        return None
    return Intent(
        IntentKind.UPDATE_STATUS,
        task_ref=match.group(1).strip(),
        status_token=match.group(2).lower(),
    )


# Order is significant: the first matching rule wins, even when a later rule
# describes the command more precisely.
RULES: tuple[tuple[IntentKind, Matcher], ...] = (
    (IntentKind.SUMMARIZE, _keywords(IntentKind.SUMMARIZE, SUMMARY_KEYWORDS)),
    (IntentKind.RISK_QUERY, _keywords(IntentKind.RISK_QUERY, RISK_KEYWORDS)),
    (IntentKind.WORKLOAD_QUERY, _keywords(IntentKind.WORKLOAD_QUERY, WORKLOAD_KEYWORDS)),
    (IntentKind.CREATE_TASK, _create_task),
    (IntentKind.UPDATE_STATUS, _update_status),
    (IntentKind.GENERATE_FLOW, _keywords(IntentKind.GENERATE_FLOW, FLOW_KEYWORDS)),
)


def extract_task_name(text: str) -> str:
    """Extract the task name from a create-task command.

    Takes everything after the trigger phrase (skipping a leading "for") up to
    the end or " priority", strips a leading "task " fragment and capitalizes
    the result. Falls back to "New Task" when nothing is left.
    """
    match = _CREATE_NAME.match(text.strip())
    if not match:
        return DEFAULT_TASK_NAME
    name = re.sub(r"^task ", "", match.group(1).strip(), flags=re.IGNORECASE).strip()
    if not name:
        return DEFAULT_TASK_NAME
    return name.capitalize()


class IntentClassifier:
    """Maps raw input to exactly one Intent through an ordered rule table."""

    def __init__(self, rules: tuple[tuple[IntentKind, Matcher], ...] = RULES) -> None:
        self._rules = rules

    def classify(self, text: str) -> Intent:
        """Classify ``text``; returns an Unrecognized intent when no rule matches."""
        stripped = text.strip()
        for kind, matcher in self._rules:
            intent = matcher(stripped)
            if intent is not None:
                logger.debug(f"[IntentClassifier] Rule {kind.value} matched {stripped!r}")
                return intent
        logger.debug(f"[IntentClassifier] No rule matched {stripped!r}")
        return Intent(IntentKind.UNRECOGNIZED)
