from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

TRUTHY = {"1", "true", "yes", "on"}


def ensure_env_loaded() -> None:
    # repo-root .env first, then whatever python-dotenv finds from the cwd
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
    else:
        load_dotenv(override=False)


@dataclass(frozen=True)
class Settings:
    """Explicit configuration handed to every pipeline component."""

    openai_api_key: Optional[str] = None
    model: str = "gpt-4o"
    offline_mode: bool = False
    request_timeout: float = 30.0
    max_retries: int = 1

    evaluation_temperature: float = 0.3
    evaluation_max_tokens: int = 500
    report_temperature: float = 0.4
    report_max_tokens: int = 1500

    log_level: str = "INFO"
    log_format: str = "console"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        if load_env_file:
            ensure_env_loaded()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            offline_mode=os.getenv("MOCK_MODE", "0").strip().lower() in TRUTHY,
            request_timeout=float(os.getenv("LLM_TIMEOUT", "30")),
            max_retries=int(os.getenv("LLM_MAX_RETRIES", "1")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "console"),
        )
