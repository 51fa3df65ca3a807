"""Tests for IntentClassifier."""

import logging

import pytest

from pm_command_center.assistant.intents import (
    DEFAULT_TASK_NAME,
    Intent,
    IntentClassifier,
    IntentKind,
    extract_task_name,
)


@pytest.fixture
def classifier() -> IntentClassifier:
    return IntentClassifier()


@pytest.mark.parametrize(
    "text",
    ["Summarize project status", "Give me an OVERVIEW", "project summary please"],
)
def test_summarize_keywords(classifier: IntentClassifier, text: str) -> None:
    """Test summary keywords classify as Summarize."""
    assert classifier.classify(text).kind == IntentKind.SUMMARIZE


@pytest.mark.parametrize(
    "text",
    ["Show high risk tasks", "anything CRITICAL?", "what needs attention"],
)
def test_risk_keywords(classifier: IntentClassifier, text: str) -> None:
    """Test risk keywords classify as RiskQuery."""
    assert classifier.classify(text).kind == IntentKind.RISK_QUERY


@pytest.mark.parametrize(
    "text",
    ["Who has the most work?", "team workload", "resource plan", "is anyone busy"],
)
def test_workload_keywords(classifier: IntentClassifier, text: str) -> None:
    """Test workload keywords classify as WorkloadQuery."""
    assert classifier.classify(text).kind == IntentKind.WORKLOAD_QUERY


@pytest.mark.parametrize("text", ["Generate process flow", "draw a diagram", "show the flow"])
def test_flow_keywords(classifier: IntentClassifier, text: str) -> None:
    """Test flow keywords classify as GenerateFlow."""
    assert classifier.classify(text).kind == IntentKind.GENERATE_FLOW


def test_unrecognized(classifier: IntentClassifier) -> None:
    """Test input without triggers falls back to Unrecognized."""
    assert classifier.classify("hello there") == Intent(IntentKind.UNRECOGNIZED)


def test_summary_beats_risk(classifier: IntentClassifier) -> None:
    """Test earlier rule wins when several trigger words are present."""
    assert classifier.classify("risk overview").kind == IntentKind.SUMMARIZE
    assert classifier.classify("critical status").kind == IntentKind.SUMMARIZE


def test_risk_beats_workload(classifier: IntentClassifier) -> None:
    """Test risk keywords win over workload keywords."""
    assert classifier.classify("who owns the risky items").kind == IntentKind.RISK_QUERY


def test_risk_beats_update(classifier: IntentClassifier) -> None:
    """Test a broad early rule wins over a later action rule."""
    intent = classifier.classify("update risk register to done")
    assert intent.kind == IntentKind.RISK_QUERY
    assert intent.task_ref is None


def test_summary_beats_create(classifier: IntentClassifier) -> None:
    """Test create command mentioning 'status' is a summary request."""
    assert classifier.classify("create task for status page").kind == IntentKind.SUMMARIZE


def test_workload_keyword_matches_inside_words(classifier: IntentClassifier) -> None:
    """Test keywords match as substrings, not whole words."""
    assert classifier.classify("mark the whole thing as done").kind == IntentKind.WORKLOAD_QUERY


def test_create_task(classifier: IntentClassifier) -> None:
    """Test create command extracts a case-adjusted name."""
    intent = classifier.classify("create task for Landing Page redesign")

    assert intent.kind == IntentKind.CREATE_TASK
    assert intent.task_name == "Landing page redesign"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("add task write release notes", "Write release notes"),
        ("New task Fix login priority high", "Fix login"),
        ("create task task cleanup backlog", "Cleanup backlog"),
        ("create task format docs", "Format docs"),
        ("create task", DEFAULT_TASK_NAME),
        ("new task for", DEFAULT_TASK_NAME),
    ],
)
def test_extract_task_name(text: str, expected: str) -> None:
    """Test task name extraction edge cases."""
    assert extract_task_name(text) == expected


def test_create_requires_leading_trigger(classifier: IntentClassifier) -> None:
    """Test 'create task' must start the input."""
    assert classifier.classify("please create task foo").kind == IntentKind.UNRECOGNIZED


def test_create_ignores_surrounding_whitespace(classifier: IntentClassifier) -> None:
    """Test leading whitespace does not prevent the create trigger."""
    intent = classifier.classify("   create task deploy docs  ")
    assert intent.kind == IntentKind.CREATE_TASK
    assert intent.task_name == "Deploy docs"


def test_update_status(classifier: IntentClassifier) -> None:
    """Test update command captures reference and status token."""
    intent = classifier.classify("mark TSK-003 as done")

    assert intent.kind == IntentKind.UPDATE_STATUS
    assert intent.task_ref == "TSK-003"
    assert intent.status_token == "done"


@pytest.mark.parametrize(
    ("text", "ref", "token"),
    [
        ("Set Frontend Development to In Progress", "Frontend Development", "in progress"),
        ("update backend api as blocked", "backend api", "blocked"),
        ("mark  Deployment  as review", "Deployment", "review"),
        ("set UAT to todo", "UAT", "todo"),
    ],
)
def test_update_status_variants(
    classifier: IntentClassifier, text: str, ref: str, token: str
) -> None:
    """Test verbs, connectors and status tokens of the update rule."""
    intent = classifier.classify(text)

    assert intent.kind == IntentKind.UPDATE_STATUS
    assert intent.task_ref == ref
    assert intent.status_token == token


def test_update_with_unknown_status_is_unrecognized(classifier: IntentClassifier) -> None:
    """Test unsupported status words do not match the update rule."""
    assert classifier.classify("mark TSK-001 as finished").kind == IntentKind.UNRECOGNIZED


def test_classification_is_pure(classifier: IntentClassifier) -> None:
    """Test classifying the same input twice gives equal intents."""
    assert classifier.classify("mark TSK-003 as done") == classifier.classify(
        "mark TSK-003 as done"
    )


def test_classify_logs_matching_rule(
    classifier: IntentClassifier, caplog: pytest.LogCaptureFixture
) -> None:
    """Test the winning rule is logged at debug level."""
    with caplog.at_level(logging.DEBUG, logger="pm_command_center.assistant.intents"):
        classifier.classify("risk overview")
        classifier.classify("hello there")

    assert "Rule summarize matched 'risk overview'" in caplog.text
    assert "No rule matched 'hello there'" in caplog.text
