"""
Configuration management for bulk transfer generation.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Conservative instruction ceilings per transaction
DEFAULT_TRANSFERS_PER_TX = 18
DEFAULT_CREATIONS_PER_TX = 12

# getMultipleAccounts accepts at most 100 keys per call
MAX_ACCOUNTS_PER_RPC_REQUEST = 100


class NetworkType(str, Enum):
    """Solana clusters."""
    MAINNET = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"
    LOCALNET = "localnet"


class Commitment(str, Enum):
    """Commitment levels accepted by the RPC node."""
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


class TransferSettings(BaseSettings):
    """
    Settings for bulk transfer generation.

    All settings can be configured via environment variables with the
    BULK_TRANSFER_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="BULK_TRANSFER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.DEVNET,
        description="Solana cluster to query"
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="Custom JSON-RPC endpoint (optional)"
    )
    commitment: Commitment = Field(
        default=Commitment.CONFIRMED,
        description="Commitment level for account existence queries"
    )

    # Batching parameters
    transfers_per_tx: int = Field(
        default=DEFAULT_TRANSFERS_PER_TX,
        ge=1,
        description="Maximum transfer instructions in one transaction"
    )
    creations_per_tx: int = Field(
        default=DEFAULT_CREATIONS_PER_TX,
        ge=1,
        description="Maximum account-creation instructions in one transaction"
    )

    # Existence query parameters
    query_batch_size: int = Field(
        default=MAX_ACCOUNTS_PER_RPC_REQUEST,
        ge=1,
        description="Addresses per concurrent existence sub-query"
    )
    rpc_max_accounts_per_request: int = Field(
        default=MAX_ACCOUNTS_PER_RPC_REQUEST,
        ge=1,
        le=MAX_ACCOUNTS_PER_RPC_REQUEST,
        description="Addresses per getMultipleAccounts call"
    )
    rpc_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for RPC calls"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def resolved_rpc_url(self) -> str:
        """Get the RPC endpoint for the configured cluster."""
        if self.rpc_url:
            return self.rpc_url

        network_urls = {
            NetworkType.MAINNET: "https://api.mainnet-beta.solana.com",
            NetworkType.DEVNET: "https://api.devnet.solana.com",
            NetworkType.TESTNET: "https://api.testnet.solana.com",
            NetworkType.LOCALNET: "http://127.0.0.1:8899",
        }
        return network_urls.get(self.network, "https://api.devnet.solana.com")


# Global settings instance
_settings: Optional[TransferSettings] = None


def get_settings() -> TransferSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = TransferSettings()
    return _settings


def set_settings(settings: Optional[TransferSettings]) -> None:
    """Set (or clear, with None) the global settings instance."""
    global _settings
    _settings = settings
