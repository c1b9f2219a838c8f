# tests/test_models.py

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from lumina_tasks.core.models import (
    AIInsights,
    Category,
    InvalidTaskTitle,
    Priority,
    Subtask,
    Task,
    TaskStats,
    User,
    priority_weight,
)

from .fakes import make_task


@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
def test_task_rejects_blank_title(title: str) -> None:
    with pytest.raises(InvalidTaskTitle):
        Task(id="x", title=title, created_at="2026-01-01T00:00:00+00:00")


def test_invalid_task_title_is_a_value_error() -> None:
    assert issubclass(InvalidTaskTitle, ValueError)


def test_priority_weights_order_high_first() -> None:
    assert priority_weight(Priority.HIGH) == 3
    assert priority_weight(Priority.MEDIUM) == 2
    assert priority_weight(Priority.LOW) == 1


def test_enum_coercion_is_case_insensitive_with_defaults() -> None:
    assert Priority.coerce("high") is Priority.HIGH
    assert Priority.coerce(" Low ") is Priority.LOW
    assert Priority.coerce("urgent") is Priority.MEDIUM
    assert Priority.coerce(None) is Priority.MEDIUM

    assert Category.coerce("work") is Category.WORK
    assert Category.coerce("Health") is Category.HEALTH
    assert Category.coerce("hobby") is Category.PERSONAL
    assert Category.coerce(None) is Category.PERSONAL


def test_task_dict_uses_stored_wire_names() -> None:
    task = Task(
        id="t1",
        title="Pay rent",
        created_at="2026-01-01T00:00:00+00:00",
        priority=Priority.HIGH,
        category=Category.PERSONAL,
        subtasks=(Subtask(id="s1", title="Open bank app"),),
        deadline="2026-01-05T09:00:00Z",
        ai_suggested=True,
    )
    data = task.to_dict()

    assert data["createdAt"] == "2026-01-01T00:00:00+00:00"
    assert data["aiSuggested"] is True
    assert data["priority"] == "HIGH"
    assert data["subtasks"] == [{"id": "s1", "title": "Open bank app", "completed": False}]
    assert "reminder" not in data
    assert "description" not in data

    assert Task.from_dict(data) == task


def test_task_from_dict_keeps_missing_ai_flag_unset() -> None:
    task = Task.from_dict(
        {"id": "t1", "title": "buy milk", "priority": "MEDIUM", "category": "PERSONAL", "createdAt": "x"}
    )
    assert task.ai_suggested is None
    assert task.subtasks == ()
    assert task.completed is False


@pytest.mark.parametrize(
    "patch",
    [
        {"title": None},
        {"id": 7},
        {"completed": "false"},
        {"aiSuggested": 1},
        {"createdAt": None},
    ],
)
def test_task_from_dict_rejects_wrong_field_types(patch: dict) -> None:
    data = {"id": "t1", "title": "buy milk", "createdAt": "2026-01-01T00:00:00+00:00", **patch}
    with pytest.raises((TypeError, KeyError, ValueError)):
        Task.from_dict(data)


def test_task_rejects_repeated_subtask_ids() -> None:
    with pytest.raises(ValueError):
        Task(
            id="t1",
            title="pack",
            created_at="2026-01-01T00:00:00+00:00",
            subtasks=(Subtask(id="s", title="a"), Subtask(id="s", title="b")),
        )


def test_is_overdue() -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    past = Task(id="a", title="late", created_at="x", deadline="2026-02-28T12:00:00Z")
    future = Task(id="b", title="soon", created_at="x", deadline="2026-03-02T12:00:00+00:00")
    done = Task(id="c", title="done", created_at="x", deadline="2026-02-28T12:00:00Z", completed=True)
    garbage = Task(id="d", title="vague", created_at="x", deadline="next friday-ish")

    assert past.is_overdue(now) is True
    assert future.is_overdue(now) is False
    assert done.is_overdue(now) is False
    assert garbage.is_overdue(now) is False
    assert make_task("no deadline").is_overdue(now) is False


def test_task_stats() -> None:
    tasks = [
        make_task("a", completed=True),
        make_task("b"),
        make_task("c"),
    ]
    stats = TaskStats.of(tasks)
    assert (stats.total, stats.completed, stats.pending, stats.progress_percent) == (3, 1, 2, 33)
    assert TaskStats.of([]).progress_percent == 0


def test_insights_score_must_be_in_range() -> None:
    AIInsights(summary="s", tip="t", productivity_score=0)
    AIInsights(summary="s", tip="t", productivity_score=100)
    with pytest.raises(ValueError):
        AIInsights(summary="s", tip="t", productivity_score=101)


def test_user_display_name_falls_back() -> None:
    assert User(id="u", email="a@b.c").display_name == "User"
    assert User(id="u", email="a@b.c", name="Ann").display_name == "Ann"
