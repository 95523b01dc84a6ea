"""Environment configuration via Pydantic Settings."""

from functools import lru_cache
from typing import Annotated
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class EnvSettings(BaseSettings):
    """Values read from environment variables (or .env) before Django starts."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Django
    secret_key: str = Field(
        default="django-insecure-dev-only-change-me",
        validation_alias=AliasChoices("DJANGO_SECRET_KEY", "SECRET_KEY"),
    )
    debug: bool = Field(
        default=False,
        validation_alias=AliasChoices("DJANGO_DEBUG", "DEBUG"),
    )
    allowed_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        validation_alias=AliasChoices("DJANGO_ALLOWED_HOSTS", "ALLOWED_HOSTS"),
    )

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _parse_allowed_hosts(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["shop.example.com","localhost"]'
        - Comma-separated string: "shop.example.com,localhost"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []

    # Database (SQLite file path)
    sqlite_path: str = Field(
        default="db.sqlite3",
        validation_alias=AliasChoices("SQLITE_PATH"),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )

    # Variant matrix
    variant_sku_padding: int = Field(
        default=3,
        validation_alias=AliasChoices("VARIANT_SKU_PADDING"),
        ge=1,
        le=10,
        description="Digits of the sequential suffix in generated SKUs ({base}-V001).",
    )
    variant_matrix_max_combinations: int = Field(
        default=1000,
        validation_alias=AliasChoices("VARIANT_MATRIX_MAX_COMBINATIONS"),
        ge=1,
        description="Upper bound on combinations generated by a single selection.",
    )


@lru_cache
def get_env_settings() -> EnvSettings:
    """Get cached settings instance."""
    return EnvSettings()
