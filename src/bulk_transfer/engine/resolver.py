"""
Existence Resolver - finds recipients that still need a token account.

Derives each recipient's associated token account and asks the network
which of them exist. Sub-batches are queried concurrently and joined in
order; any failure fails the whole resolution.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import structlog

from bulk_transfer.config import TransferSettings, get_settings
from bulk_transfer.engine.chunker import validate_limit
from bulk_transfer.errors import NetworkQueryError
from bulk_transfer.node.interface import NetworkQuery
from bulk_transfer.tx.instructions import TokenAsset, derive_receiving_account

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AccountExistence:
    """
    Existence of one recipient's receiving account.

    Attributes:
        recipient: Wallet address of the recipient
        receiving_account: Derived associated token account address
        exists: Whether the account is already on-chain
    """

    recipient: str
    receiving_account: str
    exists: bool


class ExistenceResolver:
    """
    Resolves receiving-account existence for a list of recipients.

    Holds no results between calls: every resolve() re-queries the network.
    """

    def __init__(
        self,
        query_batch_size: Optional[int] = None,
        settings: Optional[TransferSettings] = None,
    ):
        """
        Initialize the resolver.

        Args:
            query_batch_size: Addresses per concurrent sub-query
            settings: Transfer settings supplying the default batch size
        """
        settings = settings or get_settings()
        self.query_batch_size = validate_limit(
            query_batch_size if query_batch_size is not None else settings.query_batch_size,
            "query_batch_size",
        )

    async def resolve(
        self,
        network_query: NetworkQuery,
        asset: TokenAsset,
        recipients: Sequence[str],
    ) -> List[AccountExistence]:
        """
        Check each recipient's associated token account.

        Args:
            network_query: Collaborator answering accounts_exist
            asset: Token whose accounts are checked
            recipients: Recipient wallet addresses

        Returns:
            One AccountExistence per recipient, in input order

        Raises:
            InvalidAddressError: If a recipient address is malformed
            InvalidAssetError: If the mint is malformed
            NetworkQueryError: If any sub-query fails
        """
        if not recipients:
            return []

        accounts = [str(derive_receiving_account(r, asset)) for r in recipients]
        windows = [
            accounts[start:start + self.query_batch_size]
            for start in range(0, len(accounts), self.query_batch_size)
        ]

        logger.debug(
            "resolving_existence",
            recipient_count=len(recipients),
            sub_queries=len(windows),
        )

        tasks = [
            asyncio.ensure_future(self._query(network_query, window)) for window in windows
        ]
        try:
            replies = await asyncio.gather(*tasks)
        except Exception:
            # No sub-query may outlive a failed resolution
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        flags = [flag for reply in replies for flag in reply]
        existences = [
            AccountExistence(recipient=str(recipient), receiving_account=account, exists=bool(flag))
            for recipient, account, flag in zip(recipients, accounts, flags)
        ]

        logger.info(
            "existence_resolved",
            recipient_count=len(existences),
            missing=sum(1 for e in existences if not e.exists),
        )
        return existences

    async def _query(self, network_query: NetworkQuery, window: List[str]) -> List[bool]:
        """Run one sub-query, normalizing its failures."""
        try:
            reply = await network_query.accounts_exist(window)
        except NetworkQueryError:
            raise
        except Exception as e:
            raise NetworkQueryError(f"Account existence query failed: {e}") from e

        reply = list(reply)
        if len(reply) != len(window):
            raise NetworkQueryError(
                f"Existence query returned {len(reply)} flags for {len(window)} addresses"
            )
        return reply

    @staticmethod
    def partition(
        existences: Sequence[AccountExistence],
    ) -> Tuple[List[AccountExistence], List[AccountExistence]]:
        """
        Split resolutions into (missing, ready), each in input order.
        """
        missing = [e for e in existences if not e.exists]
        ready = [e for e in existences if e.exists]
        return missing, ready
