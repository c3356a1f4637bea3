"""Application configuration.

Settings are read from ``FESTCART_*`` environment variables (or a local
``.env`` file). Import ``get_settings()`` rather than building ``Settings``
directly so the whole process shares one instance.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FESTCART_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    api_base_url: str = "http://localhost:4000"
    request_timeout: float = Field(10.0, gt=0)

    # "fake" records redirects in memory, "browser" opens the system browser
    payment_gateway: str = "fake"

    verify_max_attempts: int = Field(3, ge=1)
    verify_backoff_seconds: float = Field(1.0, ge=0)

    profile_redirect_delay: float = Field(10.0, ge=0)
    profile_path: str = "/profile"
    cart_path: str = "/cart"
    home_path: str = "/"

    # Where downloaded PDF receipts are saved
    receipt_dir: str = "."

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("payment_gateway")
    @classmethod
    def known_gateway(cls, value: str) -> str:
        value = value.lower()
        if value not in {"fake", "browser"}:
            raise ValueError(f"Unknown payment gateway adapter: {value}")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
