"""Application settings and configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AFFILIATE_ADMIN_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = "WARNING"
    log_format: Literal["console", "json"] = "console"

    # Database
    database_url: str = Field(
        default="sqlite:///./affiliates.db",
        description="Database connection URL",
    )
    sql_echo: bool = Field(
        default=False,
        description="Echo SQL statements (noisy, debugging only)",
    )

    # Multi-site hosting
    multisite: bool = Field(
        default=False,
        description="Accounts belong to several sites; enables network-wide deletion",
    )
    site_id: int = Field(
        default=1,
        description="Site the operator is acting on when multisite is enabled",
    )

    # Affiliate defaults
    require_approval: bool = Field(
        default=False,
        description="New affiliates start as 'pending' instead of 'active'",
    )
    default_list_number: int = 20


# Global settings instance
settings = Settings()
