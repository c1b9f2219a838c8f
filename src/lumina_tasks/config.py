# src/lumina_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the app runs offline without an API key).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "LUMINA"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    offline_mode: bool

    # ---- LLM timeouts (seconds) ----
    llm_connect_timeout: float
    llm_read_timeout: float
    llm_first_token_timeout: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_dir: Path
    log_dir: Path

    # ---- Session ----
    login_delay_seconds: float

    @staticmethod
    def from_env() -> Settings:
        app_name = _first_env(_k("APP_NAME"), default="Lumina Tasks") or "Lumina Tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": _env(_k("APP_TITLE"), app_name),
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "google/gemini-2.0-flash-001",
                "openai/gpt-4o-mini",
            ],
        )
        offline_mode = _env_bool(_k("OFFLINE_MODE"), False)

        first_token = _env_float(_k("LLM_FIRST_TOKEN_TIMEOUT_SECONDS"), 20.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 25.0)
        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/lumina"))
        store_dir = _env_path(_k("STORE_DIR"), data_dir / "store")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)

        login_delay_seconds = max(0.0, _env_float(_k("LOGIN_DELAY_SECONDS"), 0.8))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            offline_mode=offline_mode,
            llm_connect_timeout=connect_timeout,
            # keep read >= first_token as a sane baseline
            llm_read_timeout=max(read_timeout, first_token),
            llm_first_token_timeout=first_token,
            data_dir=data_dir,
            store_dir=store_dir,
            log_dir=log_dir,
            login_delay_seconds=login_delay_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, built lazily on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
