# src/lumina_tasks/core/task_list.py

from __future__ import annotations

"""
Task list state manager.

Owns the authoritative task collection and the current user (both live on
AppState). All mutations go through TaskListManager, which:
- replaces Task values instead of mutating them (tasks are frozen dataclasses),
- serializes writers with a re-entrant lock,
- notifies subscribers after every committed mutation (persistence is one of them).

Only the enrichment calls (and login) suspend. An enrichment result that
resolves after its target task was deleted is applied by id, which makes it a
no-op; there is no cancellation.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from enum import StrEnum

from .models import (
    AIInsights,
    Category,
    Priority,
    ReminderSuggestion,
    Subtask,
    Task,
    TaskStats,
    User,
    new_id,
    priority_weight,
    utc_now_iso,
)
from .ports import Enricher, StatePersistence
from .results import EnrichmentResult, Success, Unavailable, value_or
from .session import mock_authenticate
from .state import FILTER_ALL, AppState

logger = logging.getLogger(__name__)


class StateChange(StrEnum):
    TASKS = "tasks"
    USER = "user"


StateListener = Callable[[StateChange, AppState], None]


def task_sort_key(task: Task) -> tuple[int, int]:
    """
    Composite sort key: incomplete before completed, then priority weight descending.

    Used with Python's stable sort, so ties keep their prior relative order
    (newest first for the stored collection).
    """
    return (1 if task.completed else 0, -priority_weight(task.priority))


def derive_view(
    tasks: Sequence[Task],
    filter_category: str = FILTER_ALL,
    search_term: str = "",
) -> list[Task]:
    """
    Filtered + sorted projection of `tasks`. Pure: the input is never modified.

    - filter_category: "ALL" matches everything, otherwise exact category match
    - search_term: case-insensitive substring of the title only
    """
    category = filter_category or FILTER_ALL
    needle = (search_term or "").lower()

    matched = [
        t
        for t in tasks
        if (category == FILTER_ALL or t.category == category) and needle in t.title.lower()
    ]
    return sorted(matched, key=task_sort_key)


class TaskListManager:
    def __init__(
        self,
        state: AppState,
        gateway: Enricher,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.state = state
        self._gateway = gateway
        self._new_id = id_factory
        self._now = clock
        self._listeners: list[StateListener] = []
        self._lock = threading.RLock()

    # ---- lifecycle ----

    def load(self, persistence: StatePersistence) -> None:
        """Read the persisted user and task collection once, at startup."""
        user = persistence.load_user()
        tasks = persistence.load_tasks()
        with self._lock:
            self.state.user = user
            self.state.tasks = list(tasks)
        logger.info("State loaded: user=%s tasks=%d", "yes" if user else "no", len(tasks))

    def close(self, persistence: StatePersistence) -> None:
        """Final persist on shutdown."""
        with self._lock:
            persistence.save_user(self.state.user)
            persistence.save_tasks(list(self.state.tasks))
        logger.info("State persisted on shutdown (tasks=%d).", len(self.state.tasks))

    # ---- observers ----

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called after each committed mutation. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change, self.state)
            except Exception:
                logger.exception("State listener failed (change=%s).", change)

    def _commit_tasks(self, tasks: list[Task]) -> None:
        with self._lock:
            self.state.tasks = tasks
            self._notify(StateChange.TASKS)

    def _update_task(self, task_id: str, fn: Callable[[Task], Task]) -> Task | None:
        with self._lock:
            for i, t in enumerate(self.state.tasks):
                if t.id == task_id:
                    updated = fn(t)
                    tasks = list(self.state.tasks)
                    tasks[i] = updated
                    self._commit_tasks(tasks)
                    return updated
        logger.debug("No task with id=%s; ignoring.", task_id)
        return None

    # ---- task creation ----

    def add_task(
        self,
        title: str,
        *,
        priority: Priority = Priority.MEDIUM,
        category: Category = Category.PERSONAL,
        description: str | None = None,
        deadline: str | None = None,
        reminder: str | None = None,
        ai_suggested: bool | None = None,
    ) -> Task:
        """Create a task and prepend it. Raises InvalidTaskTitle for a blank title."""
        task = Task(
            id=self._new_id(),
            title=title,
            created_at=self._now(),
            priority=priority,
            category=category,
            description=description,
            deadline=deadline,
            reminder=reminder,
            ai_suggested=ai_suggested,
        )
        with self._lock:
            self._commit_tasks([task, *self.state.tasks])
        logger.info("Task added id=%s priority=%s category=%s ai=%s", task.id, priority, category, ai_suggested)
        return task

    async def add_task_from_text(self, text: str) -> Task | None:
        """
        Create a task from free text.

        The enrichment service parses the text; if it is unavailable the text
        itself becomes the title with MEDIUM priority and PERSONAL category.
        Blank input is a no-op.
        """
        if not text or not text.strip():
            return None

        self.state.is_parsing = True
        try:
            result = await self._gateway.parse_task(text)
        finally:
            self.state.is_parsing = False

        if isinstance(result, Success):
            parsed = result.value
            task = self.add_task(
                parsed.title,
                priority=parsed.priority,
                category=parsed.category,
                deadline=parsed.deadline,
                reminder=parsed.reminder,
                ai_suggested=True,
            )
        else:
            logger.info("Task parsing unavailable (%s); using literal title.", result.reason)
            task = self.add_task(text.strip())

        self.state.pending_input = ""
        return task

    # ---- task mutations ----

    def toggle_task(self, task_id: str) -> Task | None:
        return self._update_task(task_id, lambda t: replace(t, completed=not t.completed))

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            remaining = [t for t in self.state.tasks if t.id != task_id]
            if len(remaining) == len(self.state.tasks):
                logger.debug("No task with id=%s; nothing deleted.", task_id)
                return False
            self.state.reminder_suggestions.pop(task_id, None)
            self._commit_tasks(remaining)
        logger.info("Task deleted id=%s", task_id)
        return True

    def set_reminder(self, task_id: str, reminder_text: str) -> Task | None:
        return self._update_task(task_id, lambda t: replace(t, reminder=reminder_text))

    def append_subtasks(self, task_id: str, titles: Iterable[str]) -> Task | None:
        """Append one new incomplete subtask per title. Existing subtasks are kept as they are."""
        titles = list(titles)
        with self._lock:
            task = self.state.find_task(task_id)
            if task is None:
                logger.debug("No task with id=%s; subtasks dropped.", task_id)
                return None
            if not titles:
                return task

            used = {s.id for s in task.subtasks}
            added: list[Subtask] = []
            for title in titles:
                sid = self._new_id()
                while sid in used:
                    sid = self._new_id()
                used.add(sid)
                added.append(Subtask(id=sid, title=title, completed=False))

            return self._update_task(task_id, lambda t: replace(t, subtasks=(*t.subtasks, *added)))

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        """Flip one subtask. The parent's own `completed` flag is never touched."""
        with self._lock:
            task = self.state.find_task(task_id)
            if task is None or not any(s.id == subtask_id for s in task.subtasks):
                return None
            return self._update_task(
                task_id,
                lambda t: replace(
                    t,
                    subtasks=tuple(s.toggled() if s.id == subtask_id else s for s in t.subtasks),
                ),
            )

    # ---- enrichment-backed operations ----

    async def breakdown_task(self, task_id: str) -> int:
        """Ask for subtasks for the task's title and append them. Returns how many were added."""
        task = self.state.find_task(task_id)
        if task is None:
            return 0

        self.state.generating_subtasks.add(task_id)
        try:
            result = await self._gateway.generate_subtasks(task.title)
        finally:
            self.state.generating_subtasks.discard(task_id)

        titles = value_or(result, [])
        if not titles:
            return 0
        updated = self.append_subtasks(task_id, titles)
        return len(titles) if updated is not None else 0

    async def suggest_reminder(self, task_id: str) -> EnrichmentResult[ReminderSuggestion]:
        """Fetch a reminder suggestion and keep it pending until applied or dismissed."""
        task = self.state.find_task(task_id)
        if task is None:
            return Unavailable("unknown task")

        result = await self._gateway.suggest_reminder(task)
        if isinstance(result, Success) and self.state.find_task(task_id) is not None:
            self.state.reminder_suggestions[task_id] = result.value
        return result

    def apply_reminder_suggestion(self, task_id: str) -> Task | None:
        suggestion = self.state.reminder_suggestions.pop(task_id, None)
        if suggestion is None:
            return None
        return self.set_reminder(task_id, suggestion.suggestion)

    def dismiss_reminder_suggestion(self, task_id: str) -> bool:
        return self.state.reminder_suggestions.pop(task_id, None) is not None

    async def refresh_insights(self, tasks: Sequence[Task] | None = None) -> AIInsights | None:
        """
        Replace the insights wholesale on success.

        An empty collection is a no-op (no call is made); an unavailable
        result keeps the previous insights on display.
        """
        snapshot = list(self.state.tasks if tasks is None else tasks)
        if not snapshot:
            return self.state.insights

        self.state.insights_loading = True
        try:
            result = await self._gateway.get_insights(snapshot)
        finally:
            self.state.insights_loading = False

        if isinstance(result, Success):
            self.state.insights = result.value
        else:
            logger.info("Insights unavailable (%s); keeping previous value.", result.reason)
        return self.state.insights

    # ---- session ----

    async def login(
        self,
        email: str,
        password: str,
        *,
        name: str | None = None,
        sign_up: bool = False,
    ) -> User:
        delay = float(getattr(self.state.settings, "login_delay_seconds", 0.0) or 0.0)
        user = await mock_authenticate(email, password, name=name, sign_up=sign_up, delay_seconds=delay)
        with self._lock:
            self.state.user = user
            self._notify(StateChange.USER)
        return user

    def logout(self) -> None:
        with self._lock:
            self.state.user = None
            self._notify(StateChange.USER)
        logger.info("Signed out.")

    # ---- view state ----

    def set_filter(self, category: str) -> str:
        raw = (category or "").strip().upper() or FILTER_ALL
        if raw != FILTER_ALL and raw not in {c.value for c in Category}:
            raise ValueError(f"Unknown category: {category}")
        self.state.filter_category = raw
        return raw

    def set_search(self, term: str) -> None:
        self.state.search_term = term or ""

    def view(self) -> list[Task]:
        return derive_view(self.state.tasks, self.state.filter_category, self.state.search_term)

    def stats(self) -> TaskStats:
        return TaskStats.of(self.state.tasks)
