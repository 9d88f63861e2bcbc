"""
Abstract interface for network account queries.

Defines the read-only contract the existence resolver depends on.
"""

from abc import ABC, abstractmethod
from typing import List


class NetworkQuery(ABC):
    """
    Abstract interface for account existence lookups.

    Implementations are injected into the existence resolver; the core never
    constructs its own network client.
    """

    async def connect(self) -> None:
        """Establish connection to the node/API."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the node/API."""
        pass

    @abstractmethod
    async def accounts_exist(self, addresses: List[str]) -> List[bool]:
        """
        Check whether each address holds an account.

        Args:
            addresses: Base58 account addresses

        Returns:
            One flag per address, in input order

        Raises:
            NetworkQueryError: If the lookup fails
        """
        pass

    async def __aenter__(self) -> "NetworkQuery":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
