# mapchat/core/config.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Configuration
--------------------------------------
Central configuration for the chat server, including:

- app metadata
- API host/port and CORS
- completion provider (OpenAI-compatible endpoint or local Ollama)
- fixed decoding parameters
- session history limits

"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

# This file is: llm_server/mapchat/core/config.py
PACKAGE_DIR: Path = Path(__file__).resolve().parents[1]   # .../llm_server/mapchat
ROOT_DIR: Path = PACKAGE_DIR.parent                       # .../llm_server


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Global configuration for the chat server.

    This class is instantiated once at import time as `settings`.
    `create_app()` accepts another instance, which is how tests run
    against a different configuration.
    """

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App / server basics -----------------------------------------------
    app_name: str = "RealMap AI Chat Server"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False

    api_host: str = "0.0.0.0"
    api_port: int = 3001

    # Only applied outside production.
    cors_origins: list[str] = ["*"]

    # --- Completion provider ------------------------------------------------
    provider: Literal["openai", "ollama"] = "openai"

    # Any OpenAI-compatible chat completions endpoint (OpenAI, OpenRouter, ...)
    provider_base_url: str = "https://api.openai.com/v1/chat/completions"

    # ENV: PROVIDER_API_KEY=... or OPENAI_API_KEY=sk-...
    provider_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("provider_api_key", "openai_api_key"),
        description="API key for the completion provider.",
    )

    # Ollama chat endpoint, used when provider == "ollama"
    ollama_url: str = "http://localhost:11434/api/chat"

    model_name: str = "gpt-3.5-turbo"

    # Fixed decoding parameters: lively replies, short output.
    temperature: float = 0.9
    max_tokens: int = 500

    # Timeout (seconds) for a single provider HTTP call
    provider_timeout_s: float = 30.0

    # Timeout (seconds) for a whole /api/chat request
    chat_timeout_s: float = 60.0

    # --- Sessions -----------------------------------------------------------
    # 1 instruction turn + 10 user/assistant exchanges
    max_session_turns: int = Field(default=21, ge=3)
    default_session_id: str = "default"

    # Optional text file that replaces the built-in instruction preamble.
    system_prompt_path: Optional[Path] = None


# Single global settings instance used by the rest of the app.
settings = Settings()


if __name__ == "__main__":
    # Minimal self-test so you can quickly verify config loading.
    print("RealMap — Settings self-test")
    print(f"ROOT_DIR          : {ROOT_DIR}")
    print(f"Environment       : {settings.environment}")
    print(f"Provider          : {settings.provider}")
    print(f"Provider URL      : {settings.provider_base_url}")
    print(f"API key set       : {bool(settings.provider_api_key)}")
    print(f"Model             : {settings.model_name}")
    print(f"Decoding          : temperature={settings.temperature} max_tokens={settings.max_tokens}")
    print(f"Max session turns : {settings.max_session_turns}")
