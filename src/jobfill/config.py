from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "development"
    log_level: str = "INFO"
    redact_log_pii: bool = True

    database_url: str = "sqlite:///./data/jobfill.db"
    data_dir: Path = Path("./data")
    resume_dir: Path = Path("./data/resumes")
    answers_policy_path: Path = Path("./answers-policy.yml")

    max_form_steps: int = 10
    require_known_platform: bool = False

    browser_headless: bool = False
    browser_nav_timeout_sec: int = 30
    browser_action_timeout_sec: int = 10

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_mapper: str = "gpt-5-mini"
    openai_model_writer: str = "gpt-5-mini"
    openai_timeout_sec: int = 60

    local_llm_enabled: bool = True
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_router_default: str = "local"
    llm_router_mapper_provider: str = "local"
    llm_router_writer_provider: str = "local"
    llm_json_retries: int = 1

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("max_form_steps")
    @classmethod
    def validate_max_form_steps(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_form_steps must be at least 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
