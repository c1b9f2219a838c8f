# src/lumina_tasks/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any, TypeVar, cast

from ..core.models import Task
from ..core.results import Success
from .bootstrap import AppContext

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppContext, list[str]], str]
CommandHandler3 = Callable[[AppContext, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def names(self) -> set[str]:
        return set(self._handlers)

    def handle(
        self,
        app: AppContext,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(app, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(app, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Anything that is not a command is added as a new task.")
        return "\n".join(lines)


registry = CommandRegistry()

# Commands usable while signed out.
PUBLIC_COMMANDS = {"help", "h", "?", "login", "signup", "status"}


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _say(emit: CommandEmitter | None, text: str) -> None:
    if emit is not None:
        emit(text)


def resolve_task(app: AppContext, ref: str) -> Task | None:
    """
    Resolve a task reference: a 1-based position in the current view,
    a full task id, or a unique id prefix.
    """
    ref = (ref or "").strip()
    if not ref:
        return None

    if ref.isdigit():
        view = app.manager.view()
        idx = int(ref) - 1
        return view[idx] if 0 <= idx < len(view) else None

    tasks = app.state.tasks
    exact = [t for t in tasks if t.id == ref]
    if exact:
        return exact[0]
    prefixed = [t for t in tasks if t.id.startswith(ref)]
    return prefixed[0] if len(prefixed) == 1 else None


def format_task(task: Task, index: int | None = None, *, now: datetime | None = None) -> str:
    box = "[x]" if task.completed else "[ ]"
    head = f"{index:>2}. " if index is not None else ""
    parts = [f"{head}{box} {task.title}", f"{task.priority.value}/{task.category.value}"]

    due = task.deadline_at()
    if due is not None:
        stamp = due.astimezone().strftime("%b %d %H:%M")
        parts.append(f"due {stamp}{' (overdue)' if task.is_overdue(now) else ''}")
    elif task.deadline:
        parts.append(f"due {task.deadline}")
    if task.reminder:
        parts.append(f"reminder: {task.reminder}")
    if task.subtasks:
        parts.append(f"{task.completed_subtasks}/{len(task.subtasks)} subtasks")
    if task.ai_suggested:
        parts.append("AI")

    lines = ["  ".join(parts)]
    for j, sub in enumerate(task.subtasks, start=1):
        lines.append(f"      {j}. {'[x]' if sub.completed else '[ ]'} {sub.title}")
    return "\n".join(lines)


def _usage_ref(cmd: str) -> str:
    return f"Usage: /{cmd} <n|id>  (n = position in /list)"


def cmd_help(app: AppContext, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(app: AppContext, args: list[str]) -> str:
    user = app.state.user
    who = f"{user.display_name} <{user.email}>" if user else "signed out"
    if app.offline:
        ai = "offline (deterministic local answers)"
    else:
        models = ", ".join(getattr(app.llm, "models", []) or [])
        ai = f"online (models: {models})"
    stats = app.manager.stats()
    return (
        "Status:\n"
        f"  User: {who}\n"
        f"  AI: {ai}\n"
        f"  Tasks: {stats.total} total, {stats.completed} done, {stats.pending} pending\n"
        f"  View: filter={app.state.filter_category} search={app.state.search_term!r}"
    )


def cmd_list(app: AppContext, args: list[str]) -> str:
    view = app.manager.view()
    header = f"Tasks (filter={app.state.filter_category}, search={app.state.search_term!r}):"
    if not view:
        return header + "\n  No tasks found. Type a task to add one."
    now = datetime.now(UTC)
    return "\n".join([header, *(format_task(t, i, now=now) for i, t in enumerate(view, start=1))])


def add_text_task(app: AppContext, text: str, emit: CommandEmitter | None = None) -> str:
    """Create a task from free text, kept exactly as typed apart from outer whitespace."""
    text = text.strip()
    if not text:
        return "Usage: /add <task description>"
    app.state.pending_input = text
    _say(emit, "Parsing task...")
    task = _run(app.manager.add_task_from_text(text))
    if task is None:
        return "Nothing to add."
    how = "AI-parsed" if task.ai_suggested else "added as typed"
    return f"Added ({how}):\n{format_task(task)}"


def cmd_add(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    return add_text_task(app, " ".join(args), emit)


def cmd_done(app: AppContext, args: list[str]) -> str:
    task = resolve_task(app, args[0]) if args else None
    if task is None:
        return _usage_ref("done")
    updated = app.manager.toggle_task(task.id)
    if updated is None:
        return "Task not found."
    return f"{'Completed' if updated.completed else 'Reopened'}: {updated.title}"


def cmd_delete(app: AppContext, args: list[str]) -> str:
    task = resolve_task(app, args[0]) if args else None
    if task is None:
        return _usage_ref("del")
    app.manager.delete_task(task.id)
    return f"Deleted: {task.title}"


def cmd_breakdown(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    task = resolve_task(app, args[0]) if args else None
    if task is None:
        return _usage_ref("sub")
    _say(emit, f"Breaking down '{task.title}'...")
    added = _run(app.manager.breakdown_task(task.id))
    if not added:
        return "No subtasks suggested right now. Try again later or add them with /subadd."
    updated = app.state.find_task(task.id)
    return f"Added {added} subtasks:\n{format_task(updated) if updated else task.title}"


def cmd_subadd(app: AppContext, args: list[str]) -> str:
    task = resolve_task(app, args[0]) if args else None
    title = " ".join(args[1:]).strip()
    if task is None or not title:
        return "Usage: /subadd <n|id> <subtask title>"
    updated = app.manager.append_subtasks(task.id, [title])
    if updated is None:
        return "Task not found."
    return format_task(updated)


def cmd_subdone(app: AppContext, args: list[str]) -> str:
    task = resolve_task(app, args[0]) if args else None
    if task is None or len(args) < 2 or not args[1].isdigit():
        return "Usage: /subdone <n|id> <subtask number>"
    idx = int(args[1]) - 1
    if not 0 <= idx < len(task.subtasks):
        return f"Task has {len(task.subtasks)} subtasks."
    updated = app.manager.toggle_subtask(task.id, task.subtasks[idx].id)
    return format_task(updated) if updated else "Task not found."


def cmd_remind(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /remind <n>              -> ask for a suggestion (kept pending)
    /remind <n> apply        -> apply the pending suggestion
    /remind <n> dismiss      -> drop the pending suggestion
    /remind <n> set <text>   -> set the reminder directly
    """
    task = resolve_task(app, args[0]) if args else None
    if task is None:
        return "Usage: /remind <n|id> [apply | dismiss | set <text>]"

    sub = args[1].lower() if len(args) > 1 else ""

    if sub == "apply":
        updated = app.manager.apply_reminder_suggestion(task.id)
        if updated is None:
            return "No pending suggestion. Use /remind <n> first."
        return f"Reminder set: {updated.reminder}"

    if sub == "dismiss":
        if app.manager.dismiss_reminder_suggestion(task.id):
            return "Suggestion dismissed."
        return "No pending suggestion."

    if sub == "set":
        text = " ".join(args[2:]).strip()
        if not text:
            return "Usage: /remind <n|id> set <text>"
        updated = app.manager.set_reminder(task.id, text)
        return f"Reminder set: {text}" if updated else "Task not found."

    if sub:
        return "Usage: /remind <n|id> [apply | dismiss | set <text>]"

    _say(emit, f"Thinking about a reminder for '{task.title}'...")
    result = _run(app.manager.suggest_reminder(task.id))
    if not isinstance(result, Success):
        return "No suggestion available right now."
    s = result.value
    why = f"\n  ({s.reasoning})" if s.reasoning else ""
    return f"Suggested reminder: {s.suggestion}{why}\nUse /remind {args[0]} apply or /remind {args[0]} dismiss."


def cmd_filter(app: AppContext, args: list[str]) -> str:
    try:
        value = app.manager.set_filter(args[0] if args else "ALL")
    except ValueError as e:
        return f"{e}. Use one of: ALL, WORK, STUDY, HEALTH, PERSONAL, OTHER."
    return f"Filter: {value}"


def cmd_search(app: AppContext, args: list[str]) -> str:
    term = " ".join(args)
    app.manager.set_search(term)
    return f"Search: {term!r}" if term else "Search cleared."


def cmd_insights(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not app.state.tasks:
        return "Add more tasks to get personalized productivity coaching."
    _say(emit, "Analyzing your tasks...")
    insights = _run(app.manager.refresh_insights())
    if insights is None:
        return "Insights unavailable right now. Try again later."
    return (
        f"Productivity score: {insights.productivity_score}/100\n"
        f"  {insights.summary}\n"
        f"  Tip: {insights.tip}"
    )


def cmd_stats(app: AppContext, args: list[str]) -> str:
    s = app.manager.stats()
    return f"Total: {s.total}  Done: {s.completed}  Pending: {s.pending}  Progress: {s.progress_percent}%"


def cmd_login(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return "Usage: /login <email> <password>"
    _say(emit, "Signing in...")
    try:
        user = _run(app.manager.login(args[0], args[1]))
    except ValueError as e:
        return f"Sign-in failed: {e}"
    return f"Hello, {user.display_name}!"


def cmd_signup(app: AppContext, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 3:
        return "Usage: /signup <email> <password> <name>"
    _say(emit, "Creating account...")
    try:
        user = _run(app.manager.login(args[0], args[1], name=" ".join(args[2:]), sign_up=True))
    except ValueError as e:
        return f"Sign-up failed: {e}"
    return f"Welcome, {user.display_name}!"


def cmd_logout(app: AppContext, args: list[str]) -> str:
    if app.state.user is None:
        return "Not signed in."
    app.manager.logout()
    return "Signed out."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, AI mode and task counts.")
registry.register("list", cmd_list, help_text="List tasks (filtered, sorted).", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task from free text: /add call mom tomorrow 6pm.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task and its subtasks: /del <n>.", aliases=["rm"])
registry.register("sub", cmd_breakdown, help_text="AI breakdown into subtasks: /sub <n>.")
registry.register("subadd", cmd_subadd, help_text="Add a subtask by hand: /subadd <n> <title>.")
registry.register("subdone", cmd_subdone, help_text="Toggle a subtask: /subdone <n> <m>.")
registry.register(
    "remind", cmd_remind, help_text="Reminders: /remind <n> | apply | dismiss | set <text>."
)
registry.register("filter", cmd_filter, help_text="Filter by category: /filter WORK | ALL.")
registry.register("search", cmd_search, help_text="Search titles: /search <term> (empty clears).")
registry.register("insights", cmd_insights, help_text="AI productivity insights.")
registry.register("stats", cmd_stats, help_text="Task counts and progress.")
registry.register("login", cmd_login, help_text="Sign in: /login <email> <password>.")
registry.register("signup", cmd_signup, help_text="Create an account: /signup <email> <password> <name>.")
registry.register("logout", cmd_logout, help_text="Sign out.")
