"""
Application configuration settings.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .constants import PlaidEnvironments, PlaidProducts


class Settings(BaseSettings):
    """Application settings."""

    # API Settings
    project_name: str = Field(default="Plaid Quickstart")
    version: str = Field(default="1.0.0")
    api_prefix: str = Field(default="/api")
    app_port: int = Field(default=8000)

    # Plaid credentials
    plaid_client_id: str = Field(default="")
    plaid_secret: str = Field(default="")
    plaid_env: str = Field(default=PlaidEnvironments.SANDBOX)
    plaid_products: str = Field(default=PlaidProducts.TRANSACTIONS)
    plaid_country_codes: str = Field(default="US")
    plaid_redirect_uri: Optional[str] = Field(default=None)

    # Asset report polling
    asset_report_max_attempts: int = Field(default=20, ge=1)
    asset_report_retry_delay: float = Field(default=1.0, ge=0)
    asset_report_days_requested: int = Field(default=10, ge=1)

    # CORS
    allowed_origins: str = Field(default="http://localhost:3000")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator("plaid_client_id", "plaid_secret")
    @classmethod
    def credential_must_be_set(cls, value: str, info) -> str:
        if not value or not value.strip():
            raise ValueError(
                f"{info.field_name.upper()} is not set. "
                "Did you copy .env.example to .env and fill it out?"
            )
        return value.strip()

    @field_validator("plaid_env")
    @classmethod
    def environment_must_be_known(cls, value: str) -> str:
        value = (value or PlaidEnvironments.SANDBOX).strip().lower()
        if value not in PlaidEnvironments.ALL:
            raise ValueError(
                f"PLAID_ENV must be one of {', '.join(PlaidEnvironments.ALL)}, got '{value}'"
            )
        return value

    @field_validator("plaid_redirect_uri")
    @classmethod
    def empty_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def products_list(self) -> list[str]:
        """Get configured Plaid products as a list."""
        products = [p.strip() for p in self.plaid_products.split(",") if p.strip()]
        return products or [PlaidProducts.TRANSACTIONS]

    @property
    def country_codes_list(self) -> list[str]:
        """Get configured country codes as a list."""
        codes = [
            code.strip().upper()
            for code in self.plaid_country_codes.split(",")
            if code.strip()
        ]
        return codes or ["US"]

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        validate_default = True


@lru_cache
def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
