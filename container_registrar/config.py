from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .networks import DEFAULT_NETWORK


class Settings(BaseSettings):
    """Settings read from the environment and an optional `.env` file."""

    network: str = DEFAULT_NETWORK
    account_mnemonic: Optional[SecretStr] = None

    # Seconds to wait on any single websocket round trip
    rpc_timeout: float = 120.0
    ss58_format: int = 42

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    return Settings()
