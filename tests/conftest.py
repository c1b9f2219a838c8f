# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from lumina_tasks.cli.bootstrap import AppContext, create_app
from lumina_tasks.core.state import AppState
from lumina_tasks.core.task_list import TaskListManager
from lumina_tasks.llm.offline import OfflineLLMClient

from .fakes import FakeGateway, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="Lumina Tasks",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        store_dir=tmp_path / "data" / "store",
        log_dir=tmp_path / "data",
        offline_mode=True,
        llm_models=[],
        login_delay_seconds=0.0,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    return AppState(settings=settings)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def manager(state: AppState, gateway: FakeGateway) -> TaskListManager:
    """State manager wired to the scripted gateway, with predictable ids and timestamps."""
    return TaskListManager(
        state,
        gateway,
        id_factory=SequentialIds(),
        clock=lambda: "2026-01-01T00:00:00+00:00",
    )


@pytest.fixture()
def app(settings: SimpleNamespace) -> AppContext:
    """Full app wired with the offline LLM and a real on-disk store under tmp_path."""
    return create_app(settings=settings, llm=OfflineLLMClient())
