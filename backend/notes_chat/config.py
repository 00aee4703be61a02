"""Runtime configuration.

Everything is read from the environment (optionally seeded from a ``.env``
file) into a frozen :class:`AppConfig`. The config is cached; tests call
:func:`reload_config` after changing env vars.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# repository_root/data (we are in backend/notes_chat/)
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"
DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_INFERENCE_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_CHAT_MODEL = "openai/gpt-4o-mini"


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    data_dir: Path
    app_base_url: str = DEFAULT_BASE_URL
    inference_api_key: Optional[str] = None
    inference_base_url: str = DEFAULT_INFERENCE_BASE_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    inference_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    log_level: str = "INFO"

    @field_validator("data_dir", mode="before")
    @classmethod
    def _normalize_data_dir(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()

    @field_validator("app_base_url", "inference_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key, default)
    if value is not None and not value.strip():
        return default
    return value


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    load_dotenv()
    timeout = _read_env("INFERENCE_TIMEOUT_SECONDS")
    return AppConfig(
        data_dir=_read_env("APP_DATA_DIR", str(DEFAULT_DATA_DIR)),
        app_base_url=_read_env("APP_BASE_URL", DEFAULT_BASE_URL),
        inference_api_key=_read_env("OPENROUTER_API_KEY"),
        inference_base_url=_read_env("OPENROUTER_BASE_URL", DEFAULT_INFERENCE_BASE_URL),
        chat_model=_read_env("CHAT_MODEL", DEFAULT_CHAT_MODEL),
        inference_timeout_seconds=float(timeout) if timeout else None,
        log_level=_read_env("LOG_LEVEL", "INFO").upper(),
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()
