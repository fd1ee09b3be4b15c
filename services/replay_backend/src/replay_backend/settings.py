from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    auth_token: str | None = Field(default=None, validation_alias="REPLAY_AUTH_TOKEN")
    fail_marker: str = Field(default="[fail]", validation_alias="REPLAY_FAIL_MARKER")
    chunk_words: int = Field(default=2, validation_alias="REPLAY_CHUNK_WORDS")

    @field_validator("chunk_words")
    @classmethod
    def _positive_chunk_words(cls, value: int) -> int:
        if value < 1:
            raise ValueError("REPLAY_CHUNK_WORDS must be at least 1")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
