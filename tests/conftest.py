"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List, Optional, Set

import pytest
from solders.pubkey import Pubkey

from bulk_transfer.config import NetworkType, TransferSettings, set_settings
from bulk_transfer.errors import NetworkQueryError
from bulk_transfer.node.interface import NetworkQuery
from bulk_transfer.tx.instructions import TokenAsset, derive_receiving_account


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> TransferSettings:
    """Create test settings with the documented defaults."""
    return TransferSettings(
        network=NetworkType.LOCALNET,
        transfers_per_tx=18,
        creations_per_tx=12,
        query_batch_size=100,
        log_level="DEBUG",
    )


@pytest.fixture(autouse=True)
def reset_global_settings():
    """Keep the global settings instance from leaking between tests."""
    set_settings(None)
    yield
    set_settings(None)


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_address() -> str:
    """Generate a unique valid base58 address."""
    return str(Pubkey.new_unique())


def generate_test_addresses(count: int) -> List[str]:
    """Generate several unique addresses."""
    return [generate_test_address() for _ in range(count)]


@pytest.fixture
def sender() -> str:
    """Wallet paying out transfers."""
    return generate_test_address()


@pytest.fixture
def mint() -> str:
    """Token mint address."""
    return generate_test_address()


@pytest.fixture
def token_asset(mint) -> TokenAsset:
    """Classic SPL token asset."""
    return TokenAsset(mint=mint)


@pytest.fixture
def recipients() -> List[str]:
    """Five distinct recipient wallets."""
    return generate_test_addresses(5)


# ============================================================================
# Mock Network Query
# ============================================================================

class MockNetworkQuery(NetworkQuery):
    """Mock account lookup backed by an in-memory set."""

    def __init__(self, existing: Optional[Set[str]] = None, fail_on_call: Optional[int] = None):
        self.existing: Set[str] = set(existing or ())
        self.calls: List[List[str]] = []
        self.fail_on_call = fail_on_call
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def accounts_exist(self, addresses: List[str]) -> List[bool]:
        self.calls.append(list(addresses))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise NetworkQueryError("simulated RPC outage")
        return [address in self.existing for address in addresses]

    def add_account_for(self, owner: str, asset: TokenAsset) -> None:
        """Mark an owner's associated token account as existing."""
        self.existing.add(str(derive_receiving_account(owner, asset)))

    @property
    def queried_addresses(self) -> List[str]:
        return [address for call in self.calls for address in call]


@pytest.fixture
def mock_query() -> MockNetworkQuery:
    """Create a mock network query with no existing accounts."""
    return MockNetworkQuery()


@pytest.fixture
def make_addresses():
    """Factory fixture producing `count` unique addresses."""
    return generate_test_addresses
