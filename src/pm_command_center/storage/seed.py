"""Seed data written to empty workspace storage."""

from datetime import date, datetime

from pm_command_center.models import (
    Doc,
    DocStatus,
    Position,
    ProjectLinks,
    RiskLevel,
    Task,
    TaskStatus,
)

DEFAULT_TASKS: tuple[Task, ...] = (
    Task(
        id="TSK-001",
        name="Project Scope Definition",
        assignee="Alice PM",
        status=TaskStatus.DONE,
        risk_level=RiskLevel.LOW,
        due_date=date(2023, 10, 1),
        description="Finalize scope from Google Doc requirements.",
        is_critical_path=True,
        position=Position(x=250, y=50),
    ),
    Task(
        id="TSK-002",
        name="Architecture Design",
        assignee="Bob Arch",
        status=TaskStatus.DONE,
        risk_level=RiskLevel.MEDIUM,
        due_date=date(2023, 10, 5),
        description="Draft system architecture diagrams.",
        is_critical_path=True,
        position=Position(x=250, y=200),
    ),
    Task(
        id="TSK-003",
        name="Frontend Development",
        assignee="Charlie Dev",
        status=TaskStatus.IN_PROGRESS,
        risk_level=RiskLevel.HIGH,
        due_date=date(2023, 10, 20),
        description="Implement UI components using React.",
        is_critical_path=True,
        position=Position(x=100, y=350),
    ),
    Task(
        id="TSK-004",
        name="Backend API Setup",
        assignee="Dave Backend",
        status=TaskStatus.IN_PROGRESS,
        risk_level=RiskLevel.MEDIUM,
        due_date=date(2023, 10, 15),
        description="Setup Node.js Express server.",
        is_critical_path=True,
        position=Position(x=400, y=350),
    ),
    Task(
        id="TSK-005",
        name="User Acceptance Testing",
        assignee="Eve QA",
        status=TaskStatus.TODO,
        risk_level=RiskLevel.LOW,
        due_date=date(2023, 10, 25),
        description="Run UAT scenarios.",
        is_critical_path=False,
        position=Position(x=250, y=500),
    ),
    Task(
        id="TSK-006",
        name="Deployment to Prod",
        assignee="Frank DevOps",
        status=TaskStatus.BLOCKED,
        risk_level=RiskLevel.CRITICAL,
        due_date=date(2023, 10, 30),
        description="Deploy to AWS production environment.",
        is_critical_path=True,
        position=Position(x=250, y=650),
    ),
)

DEFAULT_DOCS: tuple[Doc, ...] = (
    Doc(
        id="doc-1",
        title="Project Requirements v2.0",
        content=(
            "<h1>Project Requirements</h1><p>This document outlines the core requirements "
            "for the PM Command Center.</p><h2>1. Overview</h2><p>The system must support "
            "two-way sync with Google Sheets...</p>"
        ),
        last_modified=datetime(2023, 10, 24, 10, 30),
        owner="John Doe",
        status=DocStatus.FINAL,
    ),
    Doc(
        id="doc-2",
        title="Sprint 1 Retrospective",
        content=(
            "<h1>Retrospective: Sprint 1</h1><p><strong>What went well:</strong></p>"
            "<ul><li>Frontend deployment was smooth</li><li>Team velocity increased</li></ul>"
        ),
        last_modified=datetime(2023, 10, 25, 14, 15),
        owner="Alice PM",
        status=DocStatus.DRAFT,
    ),
    Doc(
        id="doc-3",
        title="Deployment Guide",
        content=(
            "<h1>Deployment Guide</h1><p>Steps to deploy to AWS:</p>"
            "<ol><li>Build the React app</li><li>Configure S3 bucket</li></ol>"
        ),
        last_modified=datetime(2023, 10, 26, 9, 0),
        owner="Frank DevOps",
        status=DocStatus.REVIEW,
    ),
)

PROJECT_LINKS = ProjectLinks(
    scope_doc="https://docs.google.com/document/d/mock-scope",
    requirements_doc="https://docs.google.com/document/d/mock-reqs",
    drive_folder="https://drive.google.com/drive/folders/mock-folder",
)
