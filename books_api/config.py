import os

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(".env")

LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _default_log_level() -> str:
    return os.getenv("LOG_LEVEL", "info")


class Settings(BaseSettings):
    app_name: str = "Books API"
    version: str = "1.0.0"
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default_factory=_default_log_level, validate_default=True)
    require_https: bool = False
    strict_security: bool = False
    cors_origins: str = ""
    otel_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4318"
    service_name: str = "books-api"

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    settings = Settings()
    if settings.strict_security:
        if settings.host not in LOOPBACK_HOSTS and not settings.require_https:
            raise RuntimeError("Refusing to bind a public address without APP_REQUIRE_HTTPS")
        if "*" in settings.allowed_origins:
            raise RuntimeError("Wildcard CORS origin is not allowed in strict mode")
    return settings
