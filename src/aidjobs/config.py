from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "AidJobs"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8788
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/aidjobs.db"
    data_dir: Path = Path("./data")

    openai_api_key: str = ""
    openai_base_url: str = "https://openrouter.ai/api/v1"
    openai_model_writer: str = "deepseek/deepseek-chat-v3-0324"
    openai_timeout_sec: int = 30

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_router_default: str = "openai"
    llm_router_writer_provider: str = "openai"

    generation_temperature: float = 0.7
    generation_upload_temperature: float = 0.6
    generation_max_tokens: int = 4000
    generation_min_chars: int = 200

    classifier_min_brief_words: int = 10
    classifier_link_context_min_words: int = 5
    input_summary_max_chars: int = 500

    upload_text_max_chars: int = 5000
    upload_max_bytes: int = 10 * 1024 * 1024

    fetch_timeout_sec: int = 30
    org_context_max_words: int = 500
    job_posting_max_words: int = 1000

    cors_origins: str = "http://127.0.0.1:5173"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("classifier_min_brief_words", "classifier_link_context_min_words")
    @classmethod
    def validate_word_threshold(cls, value: int) -> int:
        if value < 1:
            raise ValueError("word thresholds must be at least 1")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
