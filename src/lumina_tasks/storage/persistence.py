# src/lumina_tasks/storage/persistence.py

from __future__ import annotations

"""
Persistence adapter.

Mirrors two records into a KeyValueStore:
- USER_KEY  -> the signed-in user (absent when signed out)
- TASKS_KEY -> the full task collection, newest first

Records are read once at startup and rewritten in full after every change.
Nothing here ever raises: corrupt data is discarded (fail-open) and failed
writes are logged. There is no transaction tying a mutation to its write, so a
crash between the two loses that mutation.
"""

import json
import logging
from collections.abc import Sequence

from ..core.models import Task, User
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..core.task_list import StateChange

logger = logging.getLogger(__name__)

USER_KEY = "lumina_user"
TASKS_KEY = "lumina_tasks"


class PersistenceCorrupt(ValueError):
    """A stored record could not be decoded."""


def decode_user(raw: str) -> User:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceCorrupt(f"user record is not JSON: {e.msg}") from e
    except RecursionError as e:
        raise PersistenceCorrupt("user record is nested too deeply") from e
    if not isinstance(data, dict):
        raise PersistenceCorrupt("user record is not an object")
    try:
        return User.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceCorrupt(f"user record is malformed: {e}") from e


def decode_tasks(raw: str) -> list[Task]:
    """
    Decode the stored collection.

    A record that is not a JSON list is corrupt as a whole. Inside a list,
    entries that fail to decode are dropped (and logged); the rest are kept.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceCorrupt(f"task record is not JSON: {e.msg}") from e
    except RecursionError as e:
        raise PersistenceCorrupt("task record is nested too deeply") from e
    if not isinstance(data, list):
        raise PersistenceCorrupt("task record is not a list")

    tasks: list[Task] = []
    seen: set[str] = set()
    for i, item in enumerate(data):
        try:
            if not isinstance(item, dict):
                raise TypeError("entry is not an object")
            task = Task.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Dropping malformed stored task #%d: %s", i, e)
            continue
        if task.id in seen:
            logger.warning("Dropping duplicate stored task id=%s", task.id)
            continue
        seen.add(task.id)
        tasks.append(task)
    return tasks


def encode_tasks(tasks: Sequence[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def encode_user(user: User) -> str:
    return json.dumps(user.to_dict(), ensure_ascii=False)


class PersistenceAdapter:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _read(self, key: str) -> str | None:
        try:
            return self._store.get(key)
        except Exception:
            logger.exception("Failed to read %s from the local store.", key)
            return None

    def load_user(self) -> User | None:
        raw = self._read(USER_KEY)
        if raw is None:
            return None
        try:
            return decode_user(raw)
        except PersistenceCorrupt as e:
            logger.warning("Discarding stored user: %s", e)
            return None

    def load_tasks(self) -> list[Task]:
        raw = self._read(TASKS_KEY)
        if raw is None:
            return []
        try:
            tasks = decode_tasks(raw)
        except PersistenceCorrupt as e:
            logger.warning("Discarding stored tasks, starting empty: %s", e)
            return []
        logger.info("Loaded %d tasks from the local store.", len(tasks))
        return tasks

    def save_user(self, user: User | None) -> None:
        try:
            if user is None:
                self._store.delete(USER_KEY)
            else:
                self._store.set(USER_KEY, encode_user(user))
        except Exception:
            logger.exception("Failed to save the session user.")

    def save_tasks(self, tasks: Sequence[Task]) -> None:
        try:
            self._store.set(TASKS_KEY, encode_tasks(tasks))
            logger.debug("Saved %d tasks.", len(tasks))
        except Exception:
            logger.exception("Failed to save tasks.")

    def on_change(self, change: StateChange, state: AppState) -> None:
        """StateListener: rewrite the record that changed."""
        if change is StateChange.USER:
            self.save_user(state.user)
        elif change is StateChange.TASKS:
            self.save_tasks(list(state.tasks))
