# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "LUMINA_APP_NAME": "App display name (default: Lumina Tasks).",
    "LUMINA_LOG_LEVEL": "File log level (default: INFO).",
    # AI service (OpenRouter / any OpenAI-compatible endpoint)
    "LUMINA_OPENROUTER_API_KEY": "API key. Without it the app runs in offline mode.",
    "LUMINA_OPENROUTER_BASE_URL": "Base URL (default: https://openrouter.ai/api/v1).",
    "LUMINA_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "LUMINA_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "LUMINA_APP_TITLE": "Optional OpenRouter metadata header title.",
    "LUMINA_OFFLINE_MODE": "Force the deterministic offline AI stand-in (true/false).",
    "LUMINA_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "LUMINA_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 25, never below the first-token timeout).",
    "LUMINA_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model without content after this long (default: 20).",
    # Paths (gitignored)
    "LUMINA_DATA_DIR": "Local data directory (default: .local/lumina).",
    "LUMINA_STORE_DIR": "Key-value store directory (default: <data_dir>/store).",
    "LUMINA_LOG_DIR": "Log directory (default: <data_dir>).",
    # Session
    "LUMINA_LOGIN_DELAY_SECONDS": "Simulated sign-in delay (default: 0.8).",
}
