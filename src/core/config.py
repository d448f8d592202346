"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseSettings):
    # ── LLM ──────────────────────────────────────────────
    llm_provider: str = "mock"  # mock | openai | azure | anthropic
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = ""
    azure_openai_api_version: str = "2024-06-01"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-haiku-20240307"

    llm_temperature: float = 0.1  # low for consistent JSON output
    llm_max_tokens: int = 1000
    llm_timeout_seconds: float = 30.0

    # ── Intent extraction ────────────────────────────────
    prompt_style: str = "embedded"  # embedded | system
    strict_dimension_validation: bool = True

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
