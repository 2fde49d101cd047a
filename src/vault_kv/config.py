"""Configuration settings for the Vault key/value client."""

from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings

from .constants import DEFAULT_KV_MOUNT, DEFAULT_TIMEOUT, DEFAULT_VAULT_ADDR, KeyValueBackend


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    This uses Pydantic Settings for environment variable loading; field names
    double as the variable names (``VAULT_ADDR``, ``VAULT_TOKEN`` ...).
    """

    # Connection settings
    VAULT_ADDR: str = DEFAULT_VAULT_ADDR
    VAULT_TOKEN: Optional[SecretStr] = None
    VAULT_NAMESPACE: Optional[str] = None
    VAULT_TIMEOUT: float = DEFAULT_TIMEOUT
    VAULT_SKIP_VERIFY: bool = False

    # Engine settings
    VAULT_KV_MOUNT: str = DEFAULT_KV_MOUNT
    VAULT_KV_VERSION: KeyValueBackend = KeyValueBackend.KV_2

    # General settings
    VAULT_KV_VERBOSE: bool = False


# Create a singleton settings instance
settings = Settings()
