# src/lumina_tasks/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_QUOTED_RE = re.compile(r'^(?P<label>[A-Za-z /]+):\s*"(?P<value>.*)"\s*$', re.MULTILINE)

_PRIORITY_WORDS: list[tuple[str, tuple[str, ...]]] = [
    ("HIGH", ("urgent", "asap", "high priority", "important", "critical")),
    ("LOW", ("low priority", "someday", "whenever", "eventually")),
]

_CATEGORY_WORDS: list[tuple[str, tuple[str, ...]]] = [
    ("WORK", ("meeting", "email", "report", "client", "deadline", "presentation", "invoice", "boss")),
    ("STUDY", ("study", "exam", "homework", "course", "lecture", "read chapter", "essay", "thesis")),
    ("HEALTH", ("gym", "doctor", "dentist", "workout", "run ", "meds", "yoga", "walk")),
]


def _quoted(text: str, label: str) -> str:
    for m in _QUOTED_RE.finditer(text):
        if m.group("label").strip().lower() == label.lower():
            return m.group("value")
    return ""


def _classify(text: str, table: list[tuple[str, tuple[str, ...]]], default: str) -> str:
    low = f" {text.lower()} "
    for value, words in table:
        if any(w in low for w in words):
            return value
    return default


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior (keyed on the enrichment system prompts):
    - task parser -> the input as title, keyword-based priority/category
    - subtask planner -> a generic plan for the task
    - reminder planner -> a fixed suggestion depending on the deadline
    - productivity analyst -> summary/score from done/pending counts
    - anything else -> "{}"
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        if "task parser" in sp:
            yield json.dumps(self._parse(user_text))
        elif "subtask planner" in sp:
            yield json.dumps(self._subtasks(user_text))
        elif "reminder planner" in sp:
            yield json.dumps(self._reminder(user_text))
        elif "productivity analyst" in sp:
            yield json.dumps(self._insights(user_text))
        else:
            yield "{}"

    @staticmethod
    def _parse(user_text: str) -> dict[str, object]:
        raw = _quoted(user_text, "Input") or user_text
        return {
            "title": raw.strip(),
            "priority": _classify(raw, _PRIORITY_WORDS, "MEDIUM"),
            "category": _classify(raw, _CATEGORY_WORDS, "PERSONAL"),
            "isComplex": len(raw.split()) > 8,
        }

    @staticmethod
    def _subtasks(user_text: str) -> list[str]:
        title = _quoted(user_text, "Task") or user_text.strip()
        return [
            f"Clarify what done looks like for: {title}",
            "Gather what you need",
            "Do the first concrete step",
            "Review and wrap up",
        ]

    @staticmethod
    def _reminder(user_text: str) -> dict[str, str]:
        deadline = _quoted(user_text, "Deadline")
        if deadline and deadline != "No deadline":
            return {"suggestion": "1 hour before", "reasoning": "Close enough to act, early enough to finish."}
        return {"suggestion": "Tomorrow morning at 9:00 AM", "reasoning": "No deadline, so start fresh."}

    @staticmethod
    def _insights(user_text: str) -> dict[str, object]:
        done = user_text.count("(Done)")
        pending = user_text.count("(Pending)")
        total = done + pending
        score = 0 if total == 0 else round(done / total * 100)
        return {
            "summary": f"Offline mode: {done} of {total} tasks done. Keep going!",
            "tip": "Pick the highest-priority pending task and do it first.",
            "productivityScore": score,
        }
