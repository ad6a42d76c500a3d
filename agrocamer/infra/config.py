from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..ai.policy import DEFAULT_RETRYABLE_STATUSES
from ..ai.providers import ProviderSettings, sanitize_api_key


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gateway_api_key: Optional[str] = Field(
        default=None, validation_alias="LOVABLE_API_KEY"
    )
    gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        validation_alias="AI_GATEWAY_URL",
    )
    gateway_model: str = Field(
        default="google/gemini-2.5-flash", validation_alias="AI_GATEWAY_MODEL"
    )
    gateway_vision_model: str = Field(
        default="google/gemini-2.5-pro", validation_alias="AI_GATEWAY_VISION_MODEL"
    )
    gemini_api_key_1: Optional[str] = Field(
        default=None, validation_alias="GEMINI_API_KEY_1"
    )
    gemini_api_key_2: Optional[str] = Field(
        default=None, validation_alias="GEMINI_API_KEY_2"
    )
    gemini_api_key_3: Optional[str] = Field(
        default=None, validation_alias="GEMINI_API_KEY_3"
    )
    gemini_api_key_4: Optional[str] = Field(
        default=None, validation_alias="GEMINI_API_KEY_4"
    )
    gemini_api_key_5: Optional[str] = Field(
        default=None, validation_alias="GEMINI_API_KEY_5"
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias="GEMINI_API_BASE",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
    retryable_status_codes: str = Field(
        default=",".join(str(code) for code in sorted(DEFAULT_RETRYABLE_STATUSES)),
        validation_alias="AI_RETRYABLE_STATUS_CODES",
    )
    fallback_backoff_seconds: float = Field(
        default=0.0, validation_alias="AI_FALLBACK_BACKOFF_SECONDS"
    )
    fallback_backoff_max_seconds: float = Field(
        default=4.0, validation_alias="AI_FALLBACK_BACKOFF_MAX_SECONDS"
    )
    http_timeout_seconds: float = Field(
        default=60.0, validation_alias="HTTP_TIMEOUT_SECONDS"
    )
    reference_store: str = Field(default="memory", validation_alias="REFERENCE_STORE")
    reference_store_path: Optional[str] = Field(
        default=None, validation_alias="REFERENCE_STORE_PATH"
    )
    chat_store: str = Field(default="memory", validation_alias="CHAT_STORE")
    chat_store_path: Optional[str] = Field(
        default=None, validation_alias="CHAT_STORE_PATH"
    )
    chat_store_max_items: int = Field(
        default=2000, validation_alias="CHAT_STORE_MAX_ITEMS"
    )
    supabase_url: Optional[str] = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, validation_alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    weather_api_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        validation_alias="WEATHER_API_URL",
    )
    weather_timezone: str = Field(
        default="Africa/Douala", validation_alias="WEATHER_TIMEZONE"
    )
    default_region: str = Field(default="centre", validation_alias="DEFAULT_REGION")
    default_language: str = Field(default="fr", validation_alias="DEFAULT_LANGUAGE")
    log_path: Optional[str] = Field(default=None, validation_alias="LOG_PATH")
    fastapi_port: int = Field(default=8000, validation_alias="FASTAPI_PORT")

    @field_validator("reference_store", "chat_store", mode="after")
    @classmethod
    def normalize_store(cls, value: str) -> str:
        return value.lower() if value else value

    @field_validator("default_region", "default_language", mode="after")
    @classmethod
    def normalize_locale(cls, value: str) -> str:
        return value.strip().lower() if value else value

    def gemini_api_keys(self) -> list[Optional[str]]:
        return [
            self.gemini_api_key_1,
            self.gemini_api_key_2,
            self.gemini_api_key_3,
            self.gemini_api_key_4,
            self.gemini_api_key_5,
        ]

    def provider_settings(self) -> ProviderSettings:
        return ProviderSettings(
            gateway_api_key=sanitize_api_key(self.gateway_api_key),
            gateway_url=self.gateway_url,
            gateway_model=self.gateway_model,
            direct_api_keys=tuple(
                sanitize_api_key(key) for key in self.gemini_api_keys()
            ),
            direct_api_base=self.gemini_api_base,
            direct_model=self.gemini_model,
        )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig()
