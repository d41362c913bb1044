"""Application configuration using pydantic-settings.

Values come from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bridgelet.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/bridgelet.db",
        description="Database connection URL",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # Sweep Controller
    # ======================
    controller_id: str = Field(
        default="bridgelet-sweep-controller",
        description="Controller identity folded into every sweep digest",
    )
    sweep_lock_timeout_seconds: float = Field(
        default=30.0, description="Maximum wait for the per-controller sweep lock"
    )

    # ======================
    # Ledger clock
    # ======================
    ledger_close_time_seconds: int = Field(
        default=5, description="Seconds between ledger closes"
    )
    ledger_genesis_timestamp: int = Field(
        default=0, description="Unix timestamp of ledger sequence 0"
    )

    # ======================
    # Ephemeral accounts
    # ======================
    default_expiry_ledgers: int = Field(
        default=17280, description="Expiry window for new accounts (~1 day at 5s ledgers)"
    )
    max_assets_per_account: int = Field(
        default=10, description="Distinct assets a single ephemeral account accepts"
    )

    # ======================
    # Off-chain signer
    # ======================
    signer_private_key: Optional[str] = Field(
        default=None, description="Hex-encoded Ed25519 seed for the local sweep signer"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_signer(self) -> bool:
        """Check if a local signing key is configured."""
        return bool(self.signer_private_key)

    def ensure_valid(self) -> None:
        """Validate cross-field constraints.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.controller_id:
            raise ConfigurationError("controller_id is required")

        if self.ledger_close_time_seconds < 1:
            raise ConfigurationError("ledger_close_time_seconds must be at least 1")

        if self.default_expiry_ledgers < 1:
            raise ConfigurationError("default_expiry_ledgers must be at least 1")

        if self.max_assets_per_account < 1:
            raise ConfigurationError("max_assets_per_account must be at least 1")

        if self.sweep_lock_timeout_seconds < 0:
            raise ConfigurationError("sweep_lock_timeout_seconds cannot be negative")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "database_url": self._redact_url(self.database_url),
            "controller_id": self.controller_id,
            "ledger": {
                "close_time_seconds": self.ledger_close_time_seconds,
                "genesis_timestamp": self.ledger_genesis_timestamp,
            },
            "accounts": {
                "default_expiry_ledgers": self.default_expiry_ledgers,
                "max_assets_per_account": self.max_assets_per_account,
            },
            "signer_private_key": "***" if self.signer_private_key else "(not set)",
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
