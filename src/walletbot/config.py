"""Application configuration using pydantic-settings.

Custody API credentials are only ever read from the environment.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Telegram
    # ======================
    telegram_bot_token: str = Field(default="", description="Telegram bot token from BotFather")

    # ======================
    # Custody API
    # ======================
    okx_base_url: str = Field(
        default="https://www.okx.com", description="Wallet API base host"
    )
    okx_api_key: str = Field(default="", description="API key")
    okx_secret_key: str = Field(default="", description="HMAC signing secret")
    okx_passphrase: str = Field(default="", description="API passphrase")
    okx_project_id: str = Field(default="", description="Project id")
    api_timeout: Optional[float] = Field(
        default=30.0, description="HTTP timeout in seconds (None = transport default)"
    )

    # ======================
    # Chain
    # ======================
    chain_index: str = Field(default="1", description="Chain identifier used by the API")
    native_symbol: str = Field(default="ETH", description="Native coin symbol")
    native_decimals: int = Field(default=18, description="Native coin decimals")

    # ======================
    # Sessions
    # ======================
    session_lock_timeout: Optional[float] = Field(
        default=60.0, description="Seconds a step waits for the user's lock (None = wait forever)"
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def chain_id(self) -> int:
        """EVM chain id used when signing (the API's chain index is the chain id)."""
        return int(self.chain_index)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_api_credentials(self) -> bool:
        """Check if all custody API credentials are configured."""
        return all(
            (self.okx_api_key, self.okx_secret_key, self.okx_passphrase, self.okx_project_id)
        )

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "telegram_bot_token": "***" if self.telegram_bot_token else "(not set)",
            "api": {
                "base_url": self.okx_base_url,
                "api_key": "***" if self.okx_api_key else "(not set)",
                "secret_key": "***" if self.okx_secret_key else "(not set)",
                "passphrase": "***" if self.okx_passphrase else "(not set)",
                "project_id": self.okx_project_id or "(not set)",
                "timeout": self.api_timeout,
            },
            "chain": {
                "index": self.chain_index,
                "symbol": self.native_symbol,
                "decimals": self.native_decimals,
            },
            "session_lock_timeout": self.session_lock_timeout,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
