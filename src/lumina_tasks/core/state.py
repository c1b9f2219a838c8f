# src/lumina_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .models import AIInsights, ReminderSuggestion, Task, User

FILTER_ALL = "ALL"


@dataclass
class AppState:
    """
    The single application-state struct.

    Owned by TaskListManager; everything else reads it and goes through the
    manager to change it.
    """

    settings: Any

    user: User | None = None
    # Newest first.
    tasks: list[Task] = field(default_factory=list)
    insights: AIInsights | None = None

    # View state
    pending_input: str = ""
    filter_category: str = FILTER_ALL
    search_term: str = ""

    # Busy flags (UI debounce only)
    is_parsing: bool = False
    insights_loading: bool = False
    generating_subtasks: set[str] = field(default_factory=set)

    # task_id -> suggestion waiting for apply/dismiss
    reminder_suggestions: dict[str, ReminderSuggestion] = field(default_factory=dict)

    def find_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None
