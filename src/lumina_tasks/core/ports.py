# src/lumina_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the LLM provider and the local store swappable and makes testing easier.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from .models import AIInsights, ParsedTask, ReminderSuggestion, Task, User
from .results import EnrichmentResult

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class Enricher(Protocol):
    """
    Boundary to the natural-language service.

    Every operation is total: it returns Unavailable instead of raising.
    """

    async def parse_task(self, free_text: str) -> EnrichmentResult[ParsedTask]: ...

    async def generate_subtasks(self, title: str) -> EnrichmentResult[list[str]]: ...

    async def suggest_reminder(self, task: Task) -> EnrichmentResult[ReminderSuggestion]: ...

    async def get_insights(self, tasks: Sequence[Task]) -> EnrichmentResult[AIInsights]: ...


class KeyValueStore(Protocol):
    """Durable local string store (the browser's localStorage, on disk)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class StatePersistence(Protocol):
    """Mirror of the session user and the task collection. Never raises."""

    def load_user(self) -> User | None: ...

    def load_tasks(self) -> list[Task]: ...

    def save_user(self, user: User | None) -> None: ...

    def save_tasks(self, tasks: Sequence[Task]) -> None: ...
