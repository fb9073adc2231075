"""Application configuration using pydantic-settings.

Network names, RPC endpoints, keys and receipt polling are read from the
environment (or a ``.env`` file).
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
    # Logging
    # ======================
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Networks
    # ======================
    zksync_network: str = Field(
        default="rinkeby", description="Layer-2 network name (mainnet, rinkeby, goerli, ...)"
    )
    zksync_rpc_url: Optional[str] = Field(
        default=None, description="Override for the layer-2 JSON-RPC endpoint"
    )
    eth_network: Optional[str] = Field(
        default=None, description="Base-chain network name (defaults to zksync_network)"
    )
    eth_rpc_url: Optional[str] = Field(
        default=None, description="Override for the base-chain RPC endpoint"
    )
    infura_api_key: str = Field(default="", description="Infura project ID")

    # ======================
    # Account
    # ======================
    eth_private_key: Optional[str] = Field(
        default=None, description="Base-chain private key used to bind the layer-2 account"
    )
    zksync_library_path: Optional[str] = Field(
        default=None, description="Path to the zks-crypto shared library"
    )

    # ======================
    # Timeouts
    # ======================
    http_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    receipt_timeout: float = Field(
        default=600.0, description="Maximum time to wait for a receipt in seconds"
    )
    receipt_poll_interval: float = Field(
        default=5.0, description="Delay between receipt status polls in seconds"
    )
    eth_receipt_timeout: float = Field(
        default=300.0, description="Maximum time to wait for a base-chain receipt"
    )

    @property
    def base_chain_network(self) -> str:
        """Base-chain network paired with the configured layer-2 network."""
        return self.eth_network or self.zksync_network

    @property
    def has_private_key(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.eth_private_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "debug": self.debug,
            "zksync": {
                "network": self.zksync_network,
                "rpc": self.zksync_rpc_url or "(default)",
            },
            "ethereum": {
                "network": self.base_chain_network,
                "rpc": self.eth_rpc_url or "(default)",
                "infura_api_key": "***" if self.infura_api_key else "(not set)",
            },
            "eth_private_key": "***" if self.eth_private_key else "(not set)",
            "receipt_timeout": self.receipt_timeout,
            "receipt_poll_interval": self.receipt_poll_interval,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
