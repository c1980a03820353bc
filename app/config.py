from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="InvoiceForge API")
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5000",
            "http://127.0.0.1:5000",
            "http://localhost:5173",
        ]
    )
    invoice_number_prefix: str = Field(
        default="INV-", min_length=1
    )
    invoice_number_width: int = Field(
        default=3, ge=1
    )
    log_level: str = Field(
        default="INFO"
    )
    seed_sample_data: bool = Field(
        default=False
    )

    model_config = SettingsConfigDict(env_prefix="INVOICEFORGE_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level", mode="before")
    def _normalize_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
