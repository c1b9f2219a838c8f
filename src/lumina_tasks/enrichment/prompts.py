# src/lumina_tasks/enrichment/prompts.py

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Final

from ..core.models import Task

_JSON_ONLY: Final[str] = (
    "Reply with JSON only: no prose, no markdown, no code fences."
)

PARSE_TASK_SYSTEM_PROMPT: Final[str] = f"""
You are the task parser of a personal task manager.
Extract task details from the user's free-text input.

Output schema (JSON object):
  {{"title": string, "deadline": string?, "priority": string, "category": string,
    "reminder": string?, "isComplex": boolean?}}

Rules:
- "title" is required: a short imperative title without the date/priority words.
- "deadline" must be in ISO-8601 format, resolved against the reference date/time.
- "priority" must be one of: LOW, MEDIUM, HIGH.
- "category" must be one of: WORK, STUDY, HEALTH, PERSONAL, OTHER.
- Suggest a logical "reminder" string (e.g. "1 hour before", "9 AM day of") if a deadline exists.
- Set "isComplex" to true when the task clearly needs several steps.
- Default to MEDIUM priority and PERSONAL category if unclear.

{_JSON_ONLY}
""".strip()

SUBTASKS_SYSTEM_PROMPT: Final[str] = f"""
You are the subtask planner of a personal task manager.
Break the given task down into 3-5 short, actionable subtasks, in the order they should be done.

Output schema: a JSON array of strings.

{_JSON_ONLY}
""".strip()

REMINDER_SYSTEM_PROMPT: Final[str] = f"""
You are the reminder planner of a personal task manager.
Suggest the most effective reminder time to make sure the task gets done.
Keep the suggestion short and friendly (e.g. "2 hours before", "Tomorrow morning at 9:00 AM").

Output schema (JSON object): {{"suggestion": string, "reasoning": string?}}

{_JSON_ONLY}
""".strip()

INSIGHTS_SYSTEM_PROMPT: Final[str] = f"""
You are the productivity analyst of a personal task manager.
Analyze the user's tasks and provide:
1. A short motivational summary.
2. One specific productivity tip based on the task mix.
3. A productivity score from 0 to 100.

Output schema (JSON object): {{"summary": string, "tip": string, "productivityScore": number}}

{_JSON_ONLY}
""".strip()


def _fmt_now(now: datetime) -> str:
    return now.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def build_parse_task_message(free_text: str, now: datetime) -> str:
    return f'Input: "{free_text}"\nReference Date/Time: {_fmt_now(now)}'


def build_subtasks_message(title: str) -> str:
    return f'Task: "{title}"'


def build_reminder_message(task: Task, now: datetime) -> str:
    return (
        f'Task Title: "{task.title}"\n'
        f'Deadline: "{task.deadline or "No deadline"}"\n'
        f'Priority: "{task.priority.value}"\n'
        f'Current Time: "{_fmt_now(now)}"'
    )


def build_insights_message(tasks: Sequence[Task]) -> str:
    summary = ", ".join(f"{t.title} ({'Done' if t.completed else 'Pending'})" for t in tasks)
    return f"Tasks: {summary}"
