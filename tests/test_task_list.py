# tests/test_task_list.py

from __future__ import annotations

from dataclasses import replace

import pytest

from lumina_tasks.core.models import (
    AIInsights,
    Category,
    InvalidTaskTitle,
    ParsedTask,
    Priority,
    ReminderSuggestion,
)
from lumina_tasks.core.results import Success, Unavailable
from lumina_tasks.core.task_list import StateChange, TaskListManager

from .fakes import FakeGateway, make_task


def _seed(manager: TaskListManager, *titles: str) -> None:
    manager.state.tasks = [make_task(t) for t in titles]


# ---- add_task_from_text ----


@pytest.mark.asyncio
async def test_add_from_text_uses_parsed_fields(manager: TaskListManager, gateway: FakeGateway) -> None:
    gateway.parse_result = Success(
        ParsedTask(
            title="Draft marketing email",
            priority=Priority.HIGH,
            category=Category.WORK,
            deadline="2026-01-01T15:00:00Z",
            reminder="1 hour before",
        )
    )
    manager.state.pending_input = "Draft marketing email by 3pm high priority"

    task = await manager.add_task_from_text("Draft marketing email by 3pm high priority")

    assert task is not None
    assert manager.state.tasks == [task]
    assert task.title == "Draft marketing email"
    assert task.priority is Priority.HIGH
    assert task.category is Category.WORK
    assert task.deadline == "2026-01-01T15:00:00Z"
    assert task.reminder == "1 hour before"
    assert task.ai_suggested is True
    assert task.completed is False
    assert task.subtasks == ()
    assert task.created_at == "2026-01-01T00:00:00+00:00"
    assert manager.state.pending_input == ""
    assert manager.state.is_parsing is False


@pytest.mark.asyncio
async def test_add_from_text_falls_back_to_literal_title(manager: TaskListManager, gateway: FakeGateway) -> None:
    gateway.parse_result = Unavailable("network")
    manager.state.pending_input = "buy milk"

    task = await manager.add_task_from_text("buy milk")

    assert task is not None
    assert task.title == "buy milk"
    assert task.priority is Priority.MEDIUM
    assert task.category is Category.PERSONAL
    assert task.subtasks == ()
    assert task.ai_suggested is None
    assert manager.state.pending_input == ""


@pytest.mark.asyncio
async def test_add_from_text_prepends_and_keeps_prior_tasks(manager: TaskListManager) -> None:
    _seed(manager, "old one", "old two")
    before = list(manager.state.tasks)

    task = await manager.add_task_from_text("  new thing  ")

    assert len(manager.state.tasks) == len(before) + 1
    assert manager.state.tasks[0] is task
    assert manager.state.tasks[1:] == before
    assert task is not None and task.title == "new thing"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n"])
async def test_add_from_text_blank_is_noop(manager: TaskListManager, gateway: FakeGateway, text: str) -> None:
    assert await manager.add_task_from_text(text) is None
    assert manager.state.tasks == []
    assert gateway.calls == []


def test_add_task_rejects_blank_title(manager: TaskListManager) -> None:
    with pytest.raises(InvalidTaskTitle):
        manager.add_task("   ")
    assert manager.state.tasks == []


# ---- toggle / delete / reminder ----


def test_toggle_twice_restores_task(manager: TaskListManager) -> None:
    _seed(manager, "a", "b")
    original = manager.state.tasks[1]

    once = manager.toggle_task(original.id)
    assert once is not None and once.completed is True
    assert replace(once, completed=False) == original

    twice = manager.toggle_task(original.id)
    assert twice == original


def test_toggle_unknown_id_is_noop(manager: TaskListManager) -> None:
    _seed(manager, "a")
    before = list(manager.state.tasks)
    assert manager.toggle_task("nope") is None
    assert manager.state.tasks == before


def test_delete_existing_and_missing(manager: TaskListManager) -> None:
    _seed(manager, "a", "b", "c")
    target = manager.state.tasks[1].id

    assert manager.delete_task(target) is True
    assert len(manager.state.tasks) == 2
    assert all(t.id != target for t in manager.state.tasks)

    before = list(manager.state.tasks)
    assert manager.delete_task("missing") is False
    assert manager.state.tasks == before


def test_set_reminder_overwrites(manager: TaskListManager) -> None:
    _seed(manager, "a")
    tid = manager.state.tasks[0].id
    manager.set_reminder(tid, "1 hour before")
    updated = manager.set_reminder(tid, "9 AM day of")
    assert updated is not None and updated.reminder == "9 AM day of"


# ---- subtasks ----


def test_append_subtasks_appends_fresh_incomplete(manager: TaskListManager) -> None:
    _seed(manager, "plan trip")
    tid = manager.state.tasks[0].id
    first = manager.append_subtasks(tid, ["book flights"])
    assert first is not None
    manager.toggle_subtask(tid, first.subtasks[0].id)
    existing = manager.state.tasks[0].subtasks

    updated = manager.append_subtasks(tid, ["book hotel", "pack"])

    assert updated is not None
    assert len(updated.subtasks) == len(existing) + 2
    assert updated.subtasks[: len(existing)] == existing
    assert [s.title for s in updated.subtasks[len(existing) :]] == ["book hotel", "pack"]
    assert all(s.completed is False for s in updated.subtasks[len(existing) :])
    ids = [s.id for s in updated.subtasks]
    assert len(set(ids)) == len(ids)


def test_append_subtasks_ids_stay_unique_even_if_factory_repeats(state, gateway) -> None:
    ids = iter(["task-1", "dup", "dup", "dup", "other"])
    manager = TaskListManager(state, gateway, id_factory=lambda: next(ids))
    task = manager.add_task("x")
    updated = manager.append_subtasks(task.id, ["one", "two"])
    assert updated is not None
    assert [s.id for s in updated.subtasks] == ["dup", "other"]


def test_append_empty_subtasks_is_valid_noop(manager: TaskListManager) -> None:
    _seed(manager, "a")
    seen: list[StateChange] = []
    manager.subscribe(lambda change, _state: seen.append(change))
    tid = manager.state.tasks[0].id

    task = manager.append_subtasks(tid, [])

    assert task == manager.state.tasks[0]
    assert task is not None and task.subtasks == ()
    assert seen == []


def test_toggle_subtask_never_completes_parent(manager: TaskListManager) -> None:
    _seed(manager, "a")
    tid = manager.state.tasks[0].id
    task = manager.append_subtasks(tid, ["only step"])
    assert task is not None

    updated = manager.toggle_subtask(tid, task.subtasks[0].id)

    assert updated is not None
    assert updated.subtasks[0].completed is True
    assert updated.completed is False


def test_toggle_subtask_unknown_ids(manager: TaskListManager) -> None:
    _seed(manager, "a")
    tid = manager.state.tasks[0].id
    assert manager.toggle_subtask(tid, "nope") is None
    assert manager.toggle_subtask("nope", "nope") is None


@pytest.mark.asyncio
async def test_breakdown_appends_generated_subtasks(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "Launch website")
    tid = manager.state.tasks[0].id
    gateway.subtasks_result = Success(["Pick a domain", "Write copy", "Deploy"])

    added = await manager.breakdown_task(tid)

    assert added == 3
    assert [s.title for s in manager.state.tasks[0].subtasks] == ["Pick a domain", "Write copy", "Deploy"]
    assert gateway.calls == [("generate_subtasks", "Launch website")]
    assert manager.state.generating_subtasks == set()


@pytest.mark.asyncio
async def test_breakdown_unavailable_changes_nothing(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "Launch website")
    before = list(manager.state.tasks)

    assert await manager.breakdown_task(before[0].id) == 0
    assert manager.state.tasks == before


@pytest.mark.asyncio
async def test_breakdown_result_for_deleted_task_is_dropped(manager: TaskListManager) -> None:
    _seed(manager, "a", "b")
    tid = manager.state.tasks[0].id

    class DeletingGateway(FakeGateway):
        async def generate_subtasks(self, title: str):
            manager.delete_task(tid)
            return Success(["late result"])

    manager._gateway = DeletingGateway()

    assert await manager.breakdown_task(tid) == 0
    assert [t.title for t in manager.state.tasks] == ["b"]


# ---- reminder suggestions ----


@pytest.mark.asyncio
async def test_suggest_then_apply_reminder(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "Dentist")
    tid = manager.state.tasks[0].id
    gateway.reminder_result = Success(ReminderSuggestion(suggestion="Tomorrow at 9:00 AM"))

    result = await manager.suggest_reminder(tid)

    assert isinstance(result, Success)
    assert manager.state.reminder_suggestions[tid].suggestion == "Tomorrow at 9:00 AM"
    assert manager.state.tasks[0].reminder is None

    updated = manager.apply_reminder_suggestion(tid)
    assert updated is not None and updated.reminder == "Tomorrow at 9:00 AM"
    assert tid not in manager.state.reminder_suggestions


@pytest.mark.asyncio
async def test_dismiss_reminder_suggestion(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "Dentist")
    tid = manager.state.tasks[0].id
    gateway.reminder_result = Success(ReminderSuggestion(suggestion="later"))
    await manager.suggest_reminder(tid)

    assert manager.dismiss_reminder_suggestion(tid) is True
    assert manager.apply_reminder_suggestion(tid) is None
    assert manager.state.tasks[0].reminder is None


@pytest.mark.asyncio
async def test_suggest_reminder_unknown_task(manager: TaskListManager, gateway: FakeGateway) -> None:
    result = await manager.suggest_reminder("nope")
    assert isinstance(result, Unavailable)
    assert gateway.calls == []


# ---- insights ----


@pytest.mark.asyncio
async def test_refresh_insights_empty_is_noop_without_call(manager: TaskListManager, gateway: FakeGateway) -> None:
    previous = AIInsights(summary="old", tip="old tip", productivity_score=40)
    manager.state.insights = previous

    assert await manager.refresh_insights([]) is previous
    assert await manager.refresh_insights() is previous
    assert manager.state.insights is previous
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_refresh_insights_replaces_wholesale(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "a")
    manager.state.insights = AIInsights(summary="old", tip="old tip", productivity_score=40)
    fresh = AIInsights(summary="new", tip="new tip", productivity_score=90)
    gateway.insights_result = Success(fresh)

    assert await manager.refresh_insights() is fresh
    assert manager.state.insights is fresh
    assert manager.state.insights_loading is False


@pytest.mark.asyncio
async def test_refresh_insights_failure_keeps_stale_value(manager: TaskListManager, gateway: FakeGateway) -> None:
    _seed(manager, "a")
    previous = AIInsights(summary="old", tip="old tip", productivity_score=40)
    manager.state.insights = previous
    gateway.insights_result = Unavailable("quota")

    await manager.refresh_insights()

    assert manager.state.insights is previous
    assert gateway.names() == ["get_insights"]


# ---- observers ----


def test_listeners_notified_after_each_committed_mutation(manager: TaskListManager) -> None:
    seen: list[tuple[StateChange, int]] = []
    manager.subscribe(lambda change, state: seen.append((change, len(state.tasks))))

    task = manager.add_task("a")
    manager.toggle_task(task.id)
    manager.toggle_task("missing")
    manager.delete_task(task.id)

    assert seen == [(StateChange.TASKS, 1), (StateChange.TASKS, 1), (StateChange.TASKS, 0)]


def test_failing_listener_does_not_break_mutation(manager: TaskListManager) -> None:
    calls: list[StateChange] = []

    def broken(change, state):
        raise RuntimeError("boom")

    manager.subscribe(broken)
    manager.subscribe(lambda change, state: calls.append(change))

    task = manager.add_task("a")

    assert manager.state.tasks == [task]
    assert calls == [StateChange.TASKS]


def test_unsubscribe(manager: TaskListManager) -> None:
    calls: list[StateChange] = []
    unsubscribe = manager.subscribe(lambda change, state: calls.append(change))
    unsubscribe()
    manager.add_task("a")
    assert calls == []


# ---- session ----


@pytest.mark.asyncio
async def test_login_replaces_user_and_logout_clears(manager: TaskListManager) -> None:
    changes: list[StateChange] = []
    manager.subscribe(lambda change, state: changes.append(change))

    first = await manager.login("ann@example.com", "pw")
    assert first.name == "ann"
    assert manager.state.user is first

    second = await manager.login("bob@example.com", "pw", name="Bob B", sign_up=True)
    assert second.name == "Bob B"
    assert manager.state.user is second
    assert second.id != first.id

    manager.logout()
    assert manager.state.user is None
    assert changes == [StateChange.USER, StateChange.USER, StateChange.USER]


@pytest.mark.asyncio
async def test_login_requires_email(manager: TaskListManager) -> None:
    with pytest.raises(ValueError):
        await manager.login("  ", "pw")
    assert manager.state.user is None


# ---- view state ----


def test_set_filter_validates(manager: TaskListManager) -> None:
    assert manager.set_filter("work") == "WORK"
    assert manager.set_filter("") == "ALL"
    with pytest.raises(ValueError):
        manager.set_filter("hobbies")
    assert manager.state.filter_category == "ALL"
