# src/lumina_tasks/enrichment/gateway.py

from __future__ import annotations

"""
Enrichment gateway.

The single place where calls to the natural-language service can fail.
Each operation:
- builds a prompt,
- runs the (blocking, streaming) LLM call in a worker thread,
- extracts and normalizes the JSON payload,
- returns Success(value), or Unavailable(reason) on any transport, parse or
  schema error. Nothing is raised to the caller.
"""

import asyncio
import json
import logging
import math
import re
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from ..core.models import AIInsights, Category, ParsedTask, Priority, ReminderSuggestion, Task
from ..core.ports import LLMClient
from ..core.results import EnrichmentResult, Success, Unavailable
from . import prompts

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


class MalformedResponse(ValueError):
    """The service answered, but not with the expected shape."""


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _extract_json(raw: str) -> str:
    s = raw.strip()
    m = _FENCE_RE.match(s)
    if m:
        s = m.group(1).strip()
    if s.startswith(("{", "[")):
        return s

    starts = [i for i in (s.find("{"), s.find("[")) if i != -1]
    if not starts:
        return s
    first = min(starts)
    closer = "}" if s[first] == "{" else "]"
    last = s.rfind(closer)
    if last > first:
        return s[first : last + 1]
    return s


def _loads(raw: str) -> Any:
    if not raw or not raw.strip():
        raise MalformedResponse("empty response")
    try:
        return json.loads(_extract_json(raw))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"invalid JSON: {e.msg}") from e


def _opt_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _require_str(data: dict[str, Any], key: str) -> str:
    s = _opt_str(data.get(key))
    if s is None:
        raise MalformedResponse(f"missing {key}")
    return s


def _require_object(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedResponse(f"expected a JSON object, got {type(data).__name__}")
    return data


def normalize_parsed_task(data: Any) -> ParsedTask:
    obj = _require_object(data)
    is_complex = obj.get("isComplex")
    return ParsedTask(
        title=_require_str(obj, "title"),
        priority=Priority.coerce(obj.get("priority")),
        category=Category.coerce(obj.get("category")),
        deadline=_opt_str(obj.get("deadline")),
        reminder=_opt_str(obj.get("reminder")),
        is_complex=is_complex if isinstance(is_complex, bool) else None,
    )


def normalize_subtasks(data: Any) -> list[str]:
    if isinstance(data, dict):
        data = data.get("subtasks")
    if not isinstance(data, list):
        raise MalformedResponse("expected a JSON array of subtask titles")
    return [item.strip() for item in data if isinstance(item, str) and item.strip()]


def normalize_reminder(data: Any) -> ReminderSuggestion:
    obj = _require_object(data)
    return ReminderSuggestion(
        suggestion=_require_str(obj, "suggestion"),
        reasoning=_opt_str(obj.get("reasoning")),
    )


def normalize_insights(data: Any) -> AIInsights:
    obj = _require_object(data)
    raw_score = obj.get("productivityScore", obj.get("productivity_score"))
    if isinstance(raw_score, bool) or raw_score is None:
        raise MalformedResponse("missing productivityScore")
    try:
        score = float(raw_score)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"bad productivityScore: {raw_score!r}") from e
    if math.isnan(score):
        raise MalformedResponse("bad productivityScore: NaN")

    return AIInsights(
        summary=_require_str(obj, "summary"),
        tip=_require_str(obj, "tip"),
        productivity_score=int(round(max(0.0, min(100.0, score)))),
    )


class EnrichmentGateway:
    """Enricher backed by an LLMClient."""

    def __init__(self, llm: LLMClient, *, clock: Callable[[], datetime] = _local_now) -> None:
        self._llm = llm
        self._now = clock

    def _complete(self, system_prompt: str, user_message: str) -> str:
        raw = ""
        for piece in self._llm.stream_chat([{"role": "user", "content": user_message}], system_prompt):
            raw += piece
        return raw.strip()

    async def _call(
        self,
        op: str,
        system_prompt: str,
        user_message: str,
        normalize: Callable[[Any], T],
    ) -> EnrichmentResult[T]:
        try:
            raw = await asyncio.to_thread(self._complete, system_prompt, user_message)
        except Exception as e:
            logger.warning("Enrichment %s: LLM call failed (%s: %s).", op, e.__class__.__name__, e)
            logger.debug("Enrichment %s failure details.", op, exc_info=True)
            return Unavailable(f"llm error: {e.__class__.__name__}")

        try:
            value = normalize(_loads(raw))
        except Exception as e:
            logger.warning("Enrichment %s: unusable response (%s). Raw=%r", op, e, raw[:500])
            return Unavailable(f"malformed response: {e}")

        logger.debug("Enrichment %s: ok", op)
        return Success(value)

    async def parse_task(self, free_text: str) -> EnrichmentResult[ParsedTask]:
        text = (free_text or "").strip()
        if not text:
            return Unavailable("empty input")
        return await self._call(
            "parse_task",
            prompts.PARSE_TASK_SYSTEM_PROMPT,
            prompts.build_parse_task_message(text, self._now()),
            normalize_parsed_task,
        )

    async def generate_subtasks(self, title: str) -> EnrichmentResult[list[str]]:
        title = (title or "").strip()
        if not title:
            return Unavailable("empty title")
        return await self._call(
            "generate_subtasks",
            prompts.SUBTASKS_SYSTEM_PROMPT,
            prompts.build_subtasks_message(title),
            normalize_subtasks,
        )

    async def suggest_reminder(self, task: Task) -> EnrichmentResult[ReminderSuggestion]:
        return await self._call(
            "suggest_reminder",
            prompts.REMINDER_SYSTEM_PROMPT,
            prompts.build_reminder_message(task, self._now()),
            normalize_reminder,
        )

    async def get_insights(self, tasks: Sequence[Task]) -> EnrichmentResult[AIInsights]:
        if not tasks:
            return Unavailable("no tasks")
        return await self._call(
            "get_insights",
            prompts.INSIGHTS_SYSTEM_PROMPT,
            prompts.build_insights_message(tasks),
            normalize_insights,
        )
