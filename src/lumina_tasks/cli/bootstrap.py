# src/lumina_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (LLM client, gateway, local store) into the state manager,
- loads persisted state and subscribes persistence to future changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..core.task_list import TaskListManager
from ..enrichment.gateway import EnrichmentGateway
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..storage.kv_store import JsonFileStore
from ..storage.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Any
    state: AppState
    manager: TaskListManager
    persistence: PersistenceAdapter
    llm: LLMClient

    @property
    def offline(self) -> bool:
        return isinstance(self.llm, OfflineLLMClient)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_dir.mkdir(parents=True, exist_ok=True)


def build_llm_client(settings) -> LLMClient:
    if getattr(settings, "offline_mode", False):
        logger.info("Offline mode forced by settings.")
        return OfflineLLMClient()
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("AI service not configured (%s); using offline mode.", e)
        return OfflineLLMClient()


def create_app(*, settings=None, llm: LLMClient | None = None) -> AppContext:
    """
    Build the application from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client = llm if llm is not None else build_llm_client(settings)
    state = AppState(settings=settings)
    manager = TaskListManager(state, EnrichmentGateway(llm_client))
    persistence = PersistenceAdapter(JsonFileStore(settings.store_dir))

    manager.load(persistence)
    manager.subscribe(persistence.on_change)

    return AppContext(
        settings=settings,
        state=state,
        manager=manager,
        persistence=persistence,
        llm=llm_client,
    )
