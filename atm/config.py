from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """ATM service settings, read from ATM_* environment variables (PORT is unprefixed for PaaS hosts)."""

    model_config = SettingsConfigDict(env_prefix="ATM_", frozen=True, populate_by_name=True)

    env: str = "development"
    log_level: LogLevel = "INFO"
    log_dir: str | None = None
    disable_seed: bool = False
    api_version: str = "1.0.0"
    cors_origin: str = "*"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535, validation_alias="PORT")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("log_dir", mode="before")
    @classmethod
    def blank_log_dir(cls, v):
        return v or None

    @property
    def is_production(self) -> bool:
        return self.env == "production"
