from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import (
    DEFAULT_BRAND_NAME,
    MODEL_CLAUDE_HAIKU_4_5,
    MODEL_GEMINI_2_5_FLASH,
    MODEL_GPT_5,
)
from warroom_client.content_filter import brand_is_stable, filter_content

DEFAULT_BACKEND_URL = "https://saintsal-backend-0mv8.onrender.com/api"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    backend_url: str = Field(default=DEFAULT_BACKEND_URL, validation_alias="WARROOM_BACKEND_URL")
    timeout_seconds: int = Field(default=120, validation_alias="WARROOM_TIMEOUT_SECONDS")
    temperature: float = Field(default=0.7, validation_alias="WARROOM_TEMPERATURE")
    openai_model: str = Field(default=MODEL_GPT_5, validation_alias="WARROOM_OPENAI_MODEL")
    anthropic_model: str = Field(
        default=MODEL_CLAUDE_HAIKU_4_5, validation_alias="WARROOM_ANTHROPIC_MODEL"
    )
    gemini_model: str = Field(default=MODEL_GEMINI_2_5_FLASH, validation_alias="WARROOM_GEMINI_MODEL")
    brand_name: str = Field(default=DEFAULT_BRAND_NAME, validation_alias="WARROOM_BRAND_NAME")
    gemini_word_delay_seconds: float = Field(
        default=0.05, validation_alias="WARROOM_GEMINI_WORD_DELAY_SECONDS"
    )
    auth_token: str | None = Field(default=None, validation_alias="WARROOM_AUTH_TOKEN")
    supabase_url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, validation_alias="SUPABASE_ANON_KEY")

    @field_validator("backend_url", "supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("URL must not be empty")
        return value

    @field_validator("temperature")
    @classmethod
    def _temperature_range(cls, value: float) -> float:
        if not 0 <= value <= 2:
            raise ValueError("WARROOM_TEMPERATURE must be between 0 and 2")
        return value

    @field_validator("brand_name")
    @classmethod
    def _brand_survives_filter(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("WARROOM_BRAND_NAME must not be empty")
        if filter_content(value, brand=value) != value:
            raise ValueError("WARROOM_BRAND_NAME must not contain a filtered vendor term")
        if not brand_is_stable(value):
            raise ValueError("WARROOM_BRAND_NAME would make the filter rewrite its own output")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
