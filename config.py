"""
Settings for the budget tracker API.

Values come from environment variables prefixed with BUDGET_ (or a .env
file next to the process).
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BUDGET_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./budget.db",
        description="SQLAlchemy database URL",
    )
    secret_key: str = Field(
        default="your-secret-key",
        description="Key used to sign access tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=30, ge=1)

    log_level: str = "INFO"
    rate_limit: str = Field(
        default="100/15minutes",
        description="Per-client request limit, in limits notation",
    )
    static_dir: str = Field(
        default="public",
        description="Directory served under /static",
    )

    host: str = "127.0.0.1"
    port: int = 3000


@lru_cache
def get_settings() -> Settings:
    return Settings()
