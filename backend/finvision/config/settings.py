from __future__ import annotations

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FINVISION_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FINVISION_GEMINI_API_KEY", "GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    # Local metal-json service; only used for silver when set.
    history_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FINVISION_HISTORY_BASE_URL", "HISTORY_BASE_URL"),
    )
    request_timeout_seconds: float | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FINVISION_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "FINVISION_LOG_LEVEL"),
    )
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
