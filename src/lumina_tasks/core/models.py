# src/lumina_tasks/core/models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class InvalidTaskTitle(ValueError):
    """Raised when a task title is empty after trimming."""


class Priority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def coerce(cls, raw: Any, default: Priority | None = None) -> Priority:
        """Case-insensitive lookup; unknown or missing values map to `default` (MEDIUM)."""
        fallback = default if default is not None else cls.MEDIUM
        if raw is None:
            return fallback
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return fallback


class Category(StrEnum):
    WORK = "WORK"
    STUDY = "STUDY"
    HEALTH = "HEALTH"
    PERSONAL = "PERSONAL"
    OTHER = "OTHER"

    @classmethod
    def coerce(cls, raw: Any, default: Category | None = None) -> Category:
        """Case-insensitive lookup; unknown or missing values map to `default` (PERSONAL)."""
        fallback = default if default is not None else cls.PERSONAL
        if raw is None:
            return fallback
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return fallback


_PRIORITY_WEIGHT: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def priority_weight(priority: Priority) -> int:
    """Sort weight of a priority; higher sorts first."""
    return _PRIORITY_WEIGHT[priority]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _req_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _bool_field(data: dict[str, Any], key: str, default: bool | None) -> bool | None:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be a boolean, got {type(value).__name__}")
    return value


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


def parse_iso(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted). Naive values are taken as UTC."""
    if not raw:
        return None
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True, slots=True)
class User:
    id: str
    email: str
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or "User"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "email": self.email}
        if self.name is not None:
            out["name"] = self.name
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(id=_req_str(data, "id"), email=_req_str(data, "email"), name=_opt_str(data.get("name")))


@dataclass(frozen=True, slots=True)
class Subtask:
    id: str
    title: str
    completed: bool = False

    def toggled(self) -> Subtask:
        return replace(self, completed=not self.completed)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Subtask:
        if not isinstance(data, dict):
            raise TypeError("subtask is not an object")
        return cls(
            id=_req_str(data, "id"),
            title=_req_str(data, "title"),
            completed=bool(_bool_field(data, "completed", False)),
        )


@dataclass(frozen=True, slots=True)
class Task:
    """
    A single task.

    Tasks are immutable values: every mutation in the state manager builds a new
    Task via `dataclasses.replace`, so `id` and `created_at` never change after
    construction and callers holding an old value never observe an update.
    """

    id: str
    title: str
    created_at: str
    priority: Priority = Priority.MEDIUM
    category: Category = Category.PERSONAL
    completed: bool = False
    subtasks: tuple[Subtask, ...] = ()
    description: str | None = None
    deadline: str | None = None
    reminder: str | None = None
    ai_suggested: bool | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise InvalidTaskTitle("Task title must not be empty.")
        ids = [s.id for s in self.subtasks]
        if len(ids) != len(set(ids)):
            raise ValueError("subtask ids must be unique within a task")

    @property
    def completed_subtasks(self) -> int:
        return sum(1 for s in self.subtasks if s.completed)

    def deadline_at(self) -> datetime | None:
        return parse_iso(self.deadline)

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.completed:
            return False
        due = self.deadline_at()
        if due is None:
            return False
        return due < (now or datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the stored wire names (camelCase, optional keys omitted)."""
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "priority": self.priority.value,
            "category": self.category.value,
            "completed": self.completed,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "createdAt": self.created_at,
        }
        if self.description is not None:
            out["description"] = self.description
        if self.deadline is not None:
            out["deadline"] = self.deadline
        if self.reminder is not None:
            out["reminder"] = self.reminder
        if self.ai_suggested is not None:
            out["aiSuggested"] = self.ai_suggested
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Strict decode of a stored task: id, title and createdAt must be strings
        and flags real booleans. Subtasks repeating an earlier id are dropped.
        """
        raw_subtasks = data.get("subtasks") or []
        if not isinstance(raw_subtasks, list):
            raise ValueError("subtasks must be a list")

        subtasks: dict[str, Subtask] = {}
        for raw in raw_subtasks:
            sub = Subtask.from_dict(raw)
            subtasks.setdefault(sub.id, sub)

        return cls(
            id=_req_str(data, "id"),
            title=_req_str(data, "title"),
            created_at=_req_str(data, "createdAt"),
            priority=Priority.coerce(data.get("priority")),
            category=Category.coerce(data.get("category")),
            completed=bool(_bool_field(data, "completed", False)),
            subtasks=tuple(subtasks.values()),
            description=_opt_str(data.get("description")),
            deadline=_opt_str(data.get("deadline")),
            reminder=_opt_str(data.get("reminder")),
            ai_suggested=_bool_field(data, "aiSuggested", None),
        )


@dataclass(frozen=True, slots=True)
class AIInsights:
    summary: str
    tip: str
    productivity_score: int

    def __post_init__(self) -> None:
        if not 0 <= self.productivity_score <= 100:
            raise ValueError("productivity_score must be within [0, 100]")


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    progress_percent: int

    @classmethod
    def of(cls, tasks: list[Task] | tuple[Task, ...]) -> TaskStats:
        total = len(tasks)
        completed = sum(1 for t in tasks if t.completed)
        progress = 0 if total == 0 else round(completed / total * 100)
        return cls(total=total, completed=completed, pending=total - completed, progress_percent=progress)


@dataclass(frozen=True, slots=True)
class ParsedTask:
    """Structured fields extracted from free text by the enrichment service."""

    title: str
    priority: Priority = Priority.MEDIUM
    category: Category = Category.PERSONAL
    deadline: str | None = None
    reminder: str | None = None
    is_complex: bool | None = None


@dataclass(frozen=True, slots=True)
class ReminderSuggestion:
    suggestion: str
    reasoning: str | None = None
