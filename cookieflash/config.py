"""Application settings using Pydantic."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = Field(default="cookieflash demo")
    env: str = Field(default="dev")
    debug: bool = Field(default=True)

    # Flash cookie
    cookie_name: str = Field(default="flash", min_length=1)
    auto_reflash: bool = Field(default=True)
    cookie_path: str = Field(default="/")
    cookie_domain: Optional[str] = Field(default=None)
    cookie_secure: bool = Field(default=False)
    cookie_httponly: bool = Field(default=True)
    cookie_samesite: Literal["lax", "strict", "none"] = Field(default="lax")

    # Largest form body kept so flash_inputs() can read it after the handler
    max_replay_size: Optional[int] = Field(default=1024 * 1024, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FLASH_",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
