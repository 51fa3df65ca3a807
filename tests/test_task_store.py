"""Tests for TaskStore."""

import asyncio
import logging
import random
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from pm_command_center.models import Position, Task, TaskStatus
from pm_command_center.task_store import TaskNotFoundError, TaskStore

StoreFactory = Callable[[list[Task]], TaskStore]


@pytest.mark.asyncio
async def test_init_hydrates_from_repository(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test init loads the repository collection in order."""
    store = make_store(seed_tasks)

    assert store.get_all() == []
    await store.init()

    assert store.ids() == ["TSK-001", "TSK-002", "TSK-003", "TSK-004", "TSK-005", "TSK-006"]


@pytest.mark.asyncio
async def test_update_is_visible_before_persistence(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test optimistic updates apply before the repository write completes."""
    store = make_store(seed_tasks)
    await store.init()
    release = asyncio.Event()

    async def slow_update(task_id: str, fields: dict[str, Any]) -> bool:
        await release.wait()
        return True

    store._repository.update_task = AsyncMock(side_effect=slow_update)

    updated = store.update_status("TSK-005", TaskStatus.DONE)

    assert updated.status == TaskStatus.DONE
    assert store.get("TSK-005").status == TaskStatus.DONE
    assert store.pending_writes == 1

    release.set()
    await store.flush()
    assert store.pending_writes == 0
    store._repository.update_task.assert_awaited_once_with("TSK-005", {"status": "Done"})


@pytest.mark.asyncio
async def test_update_leaves_other_tasks_unchanged(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test a single update touches only the target task."""
    store = make_store(seed_tasks)
    await store.init()
    before = store.get_all()

    store.update("TSK-002", {"name": "Architecture Review", "assignee": "Zed"})

    after = store.get_all()
    assert after[1].name == "Architecture Review"
    assert after[1].assignee == "Zed"
    assert after[1].status == before[1].status
    assert [t for i, t in enumerate(after) if i != 1] == [
        t for i, t in enumerate(before) if i != 1
    ]
    await store.flush()


@pytest.mark.asyncio
async def test_writes_to_same_task_persist_in_order(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test a later write never reaches the repository before an earlier one."""
    store = make_store(seed_tasks)
    await store.init()
    finished: list[str] = []

    async def update(task_id: str, fields: dict[str, Any]) -> bool:
        # The first write is the slowest
        await asyncio.sleep(0.05 if fields["status"] == "In Progress" else 0)
        finished.append(fields["status"])
        return True

    store._repository.update_task = AsyncMock(side_effect=update)

    store.update_status("TSK-005", TaskStatus.IN_PROGRESS)
    store.update_status("TSK-005", TaskStatus.DONE)
    await store.flush()

    assert finished == ["In Progress", "Done"]
    assert store.get("TSK-005").status == TaskStatus.DONE


@pytest.mark.asyncio
async def test_bulk_write_waits_for_single_writes(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test a bulk write is ordered after earlier writes on any of its ids."""
    store = make_store(seed_tasks)
    await store.init()
    finished: list[str] = []

    async def update(task_id: str, fields: dict[str, Any]) -> bool:
        await asyncio.sleep(0.05)
        finished.append(f"single:{task_id}")
        return True

    async def bulk(task_ids: list[str], fields: dict[str, Any]) -> bool:
        finished.append(f"bulk:{','.join(task_ids)}")
        return True

    store._repository.update_task = AsyncMock(side_effect=update)
    store._repository.bulk_update_tasks = AsyncMock(side_effect=bulk)

    store.update_status("TSK-004", TaskStatus.REVIEW)
    store.bulk_update_status(["TSK-003", "TSK-004"], TaskStatus.DONE)
    await store.flush()

    assert finished == ["single:TSK-004", "bulk:TSK-003,TSK-004"]


@pytest.mark.asyncio
async def test_writes_to_different_tasks_run_concurrently(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test unrelated writes do not wait for each other."""
    store = make_store(seed_tasks)
    await store.init()
    finished: list[str] = []

    async def update(task_id: str, fields: dict[str, Any]) -> bool:
        await asyncio.sleep(0.05 if task_id == "TSK-001" else 0)
        finished.append(task_id)
        return True

    store._repository.update_task = AsyncMock(side_effect=update)

    store.update_status("TSK-001", TaskStatus.REVIEW)
    store.update_status("TSK-002", TaskStatus.REVIEW)
    await store.flush()

    assert finished == ["TSK-002", "TSK-001"]


@pytest.mark.asyncio
async def test_failed_write_is_not_rolled_back(
    make_store: StoreFactory, seed_tasks: list[Task], caplog: pytest.LogCaptureFixture
) -> None:
    """Test a write reporting failure keeps the optimistic state."""
    store = make_store(seed_tasks)
    await store.init()
    store._repository.update_task = AsyncMock(return_value=False)

    with caplog.at_level(logging.WARNING):
        store.update_status("TSK-006", TaskStatus.DONE)
        await store.flush()

    assert store.get("TSK-006").status == TaskStatus.DONE
    assert "keeping local state" in caplog.text


@pytest.mark.asyncio
async def test_raising_write_is_logged_not_raised(
    make_store: StoreFactory, seed_tasks: list[Task], caplog: pytest.LogCaptureFixture
) -> None:
    """Test repository exceptions never reach the caller."""
    store = make_store(seed_tasks)
    await store.init()
    store._repository.bulk_update_tasks = AsyncMock(side_effect=RuntimeError("backend down"))

    with caplog.at_level(logging.ERROR):
        store.bulk_update_status(["TSK-001", "TSK-002"], TaskStatus.BLOCKED)
        await store.flush()

    assert all(t.status == TaskStatus.BLOCKED for t in store.get_all()[:2])
    assert "backend down" in caplog.text


@pytest.mark.asyncio
async def test_update_unknown_task(make_store: StoreFactory, seed_tasks: list[Task]) -> None:
    """Test updating a missing id raises and schedules nothing."""
    store = make_store(seed_tasks)
    await store.init()

    with pytest.raises(TaskNotFoundError):
        store.update_status("TSK-999", TaskStatus.DONE)

    assert store.pending_writes == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [{"id": "TSK-100"}, {"status": "Finished"}, {"colour": "red"}, {"due_date": "soon"}],
)
async def test_update_rejects_invalid_fields(
    make_store: StoreFactory, seed_tasks: list[Task], fields: dict[str, Any]
) -> None:
    """Test invalid changes raise ValueError and leave the task intact."""
    store = make_store(seed_tasks)
    await store.init()
    before = store.get("TSK-001")

    with pytest.raises(ValueError):
        store.update("TSK-001", fields)

    assert store.get("TSK-001") == before
    assert store.pending_writes == 0


@pytest.mark.asyncio
async def test_create_appends_and_persists(
    make_store: StoreFactory, seed_tasks: list[Task], make_task: Callable[..., Task]
) -> None:
    """Test created tasks are appended at the end of the collection."""
    store = make_store(seed_tasks)
    await store.init()
    task = make_task("TSK-007", name="Retrospective")

    store.create(task)

    assert store.ids()[-1] == "TSK-007"
    await store.flush()
    store._repository.create_task.assert_awaited_once_with(task)


@pytest.mark.asyncio
async def test_create_duplicate_id(
    make_store: StoreFactory, seed_tasks: list[Task], make_task: Callable[..., Task]
) -> None:
    """Test ids stay unique."""
    store = make_store(seed_tasks)
    await store.init()

    with pytest.raises(ValueError, match="already exists"):
        store.create(make_task("TSK-001"))

    assert len(store.get_all()) == 6


@pytest.mark.asyncio
async def test_bulk_update_skips_unknown_ids(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test bulk updates touch only listed ids that exist."""
    store = make_store(seed_tasks)
    await store.init()

    updated = store.bulk_update_status(["TSK-005", "TSK-404", "TSK-005", "TSK-001"], "Review")

    assert [t.id for t in updated] == ["TSK-001", "TSK-005"]
    assert store.get("TSK-002").status == TaskStatus.DONE
    await store.flush()
    store._repository.bulk_update_tasks.assert_awaited_once_with(
        ["TSK-005", "TSK-404", "TSK-001"], {"status": "Review"}
    )


@pytest.mark.asyncio
async def test_bulk_update_empty(make_store: StoreFactory, seed_tasks: list[Task]) -> None:
    """Test an empty id list does nothing."""
    store = make_store(seed_tasks)
    await store.init()

    assert store.bulk_update_status([], TaskStatus.DONE) == []
    assert store.pending_writes == 0


@pytest.mark.asyncio
async def test_listeners_receive_change_events(
    make_store: StoreFactory, seed_tasks: list[Task], make_task: Callable[..., Task]
) -> None:
    """Test every mutation notifies listeners with a readable message."""
    store = make_store(seed_tasks)
    await store.init()
    events: list[dict[str, Any]] = []
    store.add_listener(events.append)

    store.create(make_task("TSK-007", name="Retrospective"))
    store.update_status("TSK-007", TaskStatus.DONE)
    store.update("TSK-007", {"assignee": "Bob Arch"})
    store.bulk_update_status(["TSK-001", "TSK-002"], TaskStatus.REVIEW)
    await store.refresh()

    assert [e["type"] for e in events] == [
        "task_created",
        "task_updated",
        "task_updated",
        "tasks_bulk_updated",
        "tasks_synced",
    ]
    assert events[0]["message"] == 'Task "Retrospective" created'
    assert events[1]["message"] == "Task updated to Done"
    assert events[3]["message"] == "Updated 2 tasks"
    assert events[4]["message"] == "Workspace synced successfully"


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_mutation(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test listener errors are contained."""
    store = make_store(seed_tasks)
    await store.init()

    def broken(event: dict[str, Any]) -> None:
        raise RuntimeError("listener failed")

    store.add_listener(broken)

    assert store.update_status("TSK-001", TaskStatus.REVIEW).status == TaskStatus.REVIEW
    await store.flush()


@pytest.mark.asyncio
async def test_refresh_waits_for_pending_writes(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test refresh reloads only after outstanding writes finish."""
    store = make_store(seed_tasks)
    await store.init()
    order: list[str] = []

    async def update(task_id: str, fields: dict[str, Any]) -> bool:
        await asyncio.sleep(0.02)
        order.append("write")
        return True

    async def fetch() -> list[Task]:
        order.append("fetch")
        return list(seed_tasks)

    store._repository.update_task = AsyncMock(side_effect=update)
    store._repository.fetch_tasks = AsyncMock(side_effect=fetch)

    store.update_status("TSK-005", TaskStatus.DONE)
    await store.refresh()

    assert order == ["write", "fetch"]
    # Mocked backend ignored the write, so the reload restores its state
    assert store.get("TSK-005").status == TaskStatus.TODO


@pytest.mark.asyncio
async def test_search(make_store: StoreFactory, seed_tasks: list[Task]) -> None:
    """Test search matches name, assignee, id and description."""
    store = make_store(seed_tasks)
    await store.init()

    assert [t.id for t in store.search("frontend")] == ["TSK-003"]
    assert [t.id for t in store.search("EVE")] == ["TSK-005"]
    assert [t.id for t in store.search("tsk-00")] == store.ids()
    assert [t.id for t in store.search("aws")] == ["TSK-006"]
    assert store.search("zzz") == []


@pytest.mark.asyncio
async def test_generate_id_avoids_existing(
    make_store: StoreFactory, make_task: Callable[..., Task]
) -> None:
    """Test generated ids skip ids already in the store."""
    taken = f"AI-{random.Random(3).randint(0, 9998)}"
    store = make_store([make_task(taken)])
    await store.init()

    generated = store.generate_id("AI", random.Random(3))

    assert generated.startswith("AI-")
    assert generated != taken


@pytest.mark.asyncio
async def test_refresh_keeps_changes_made_during_fetch(
    make_store: StoreFactory, seed_tasks: list[Task], make_task: Callable[..., Task]
) -> None:
    """Test mutations applied while the reload is in flight survive it."""
    store = make_store(seed_tasks)
    await store.init()
    fetching = asyncio.Event()
    release = asyncio.Event()

    async def slow_fetch() -> list[Task]:
        fetching.set()
        await release.wait()
        # Backend snapshot predates the writes below
        return list(seed_tasks)

    store._repository.fetch_tasks = AsyncMock(side_effect=slow_fetch)

    refresh = asyncio.create_task(store.refresh())
    await fetching.wait()
    store.bulk_update_status(["TSK-005"], TaskStatus.DONE)
    store.update("TSK-001", {"assignee": "Grace Ops"})
    store.create(make_task("TSK-007", name="Retrospective"))
    release.set()
    await refresh

    assert store.get("TSK-005").status == TaskStatus.DONE
    assert store.get("TSK-001").assignee == "Grace Ops"
    assert store.ids()[-1] == "TSK-007"
    assert len(store.get_all()) == 7
    await store.flush()


@pytest.mark.asyncio
async def test_refresh_replays_nothing_without_concurrent_changes(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test a later mutation is not replayed by an already finished refresh."""
    store = make_store(seed_tasks)
    await store.init()

    await store.refresh()
    store.update_status("TSK-005", TaskStatus.REVIEW)
    await store.refresh()

    # Mocked backend ignores writes, so the second reload restores its state
    assert store.get("TSK-005").status == TaskStatus.TODO


@pytest.mark.asyncio
@pytest.mark.parametrize("position", [{"x": 1}, {"x": "left", "y": 2}, [1, 2], "0,0"])
async def test_bulk_update_invalid_position_changes_nothing(
    make_store: StoreFactory, seed_tasks: list[Task], position: Any
) -> None:
    """Test a malformed position is rejected before any task is replaced."""
    store = make_store(seed_tasks)
    await store.init()
    before = store.get_all()

    with pytest.raises(ValueError, match="Invalid position"):
        store.bulk_update(["TSK-001", "TSK-002"], {"position": position})

    assert store.get_all() == before
    assert store.pending_writes == 0


@pytest.mark.asyncio
async def test_update_accepts_position_mapping(
    make_store: StoreFactory, seed_tasks: list[Task]
) -> None:
    """Test a well-formed position mapping is converted to a Position."""
    store = make_store(seed_tasks)
    await store.init()

    task = store.update("TSK-001", {"position": {"x": 5, "y": "7.5"}})

    assert task.position == Position(x=5.0, y=7.5)
    await store.flush()
