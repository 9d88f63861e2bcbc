"""
Bulk transfer generation - public entry points.

Coordinates normalization, instruction construction, existence resolution,
chunking and assembly into lists of unsigned transactions.

Usage:
    ```python
    txs = generate_bulk_native_transfers(NativeTransferConfig(
        sender="Sender111...",
        recipients=["A...", "B..."],
        fixed_amount=1_000_000,
        memo="airdrop",
    ))
    ```

Sequencing contract for token distributions: the account-creation
transactions returned by generate_complete_bulk_token_transfers must be
confirmed before any transfer transaction paying a recipient they create is
submitted. Nothing here enforces that ordering; it belongs to the caller
that signs and submits.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import structlog

from solders.instruction import Instruction

from bulk_transfer.config import TransferSettings, get_settings
from bulk_transfer.core.batch import UnsignedTransaction, assemble
from bulk_transfer.core.transfer import (
    TransferRecord,
    collect_recipients,
    distinct_recipients,
    normalize,
    transfer_set_from_options,
)
from bulk_transfer.engine.chunker import chunk, validate_limit
from bulk_transfer.engine.resolver import ExistenceResolver
from bulk_transfer.node.interface import NetworkQuery
from bulk_transfer.tx.instructions import (
    InstructionFactory,
    TokenAsset,
    TransferKind,
    parse_address,
)

logger = structlog.get_logger(__name__)


@dataclass
class NativeTransferConfig:
    """
    Options for a native SOL distribution.

    Exactly one of `transfers` or `recipients` + `fixed_amount` must be set.

    Attributes:
        sender: Wallet paying out the transfers
        transfers: Explicit transfer entries
        recipients: Recipients for a uniform distribution
        fixed_amount: Amount each recipient receives (uniform shape only)
        instructions_per_tx: Transfer instructions per transaction
            (settings default when None)
        memo: Memo text appended to every transaction
    """

    sender: str
    transfers: Optional[Sequence[Any]] = None
    recipients: Optional[Sequence[str]] = None
    fixed_amount: Optional[int] = None
    instructions_per_tx: Optional[int] = None
    memo: Optional[str] = None


@dataclass
class TokenTransferConfig(NativeTransferConfig):
    """
    Options for an SPL token distribution.

    Attributes:
        mint: Mint address of the token
        decimals: Mint decimals; enables TransferChecked when set
        token_program_id: Token program owning the mint (classic SPL Token if None)
        source_account: Sender token account to debit (sender's ATA if None)
        creations_per_tx: Account creations per transaction
            (settings default when None)
    """

    mint: str = ""
    decimals: Optional[int] = None
    token_program_id: Optional[str] = None
    source_account: Optional[str] = None
    creations_per_tx: Optional[int] = None

    @property
    def asset(self) -> TokenAsset:
        return TokenAsset(
            mint=self.mint,
            decimals=self.decimals,
            token_program_id=self.token_program_id,
            source_account=self.source_account,
        )


@dataclass
class CompleteTokenTransferPlan:
    """
    Two-phase result of a complete token distribution.

    Attributes:
        account_creation_txs: Transactions creating missing receiving accounts;
            submit and confirm these first
        transfer_txs: Transactions moving the tokens
    """

    account_creation_txs: List[UnsignedTransaction] = field(default_factory=list)
    transfer_txs: List[UnsignedTransaction] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.account_creation_txs) + len(self.transfer_txs)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "account_creation_txs": [tx.to_dict() for tx in self.account_creation_txs],
            "transfer_txs": [tx.to_dict() for tx in self.transfer_txs],
        }


_factory = InstructionFactory()


def _resolve_limit(value: Optional[int], default: int, name: str) -> int:
    return validate_limit(default if value is None else value, name)


def _canonical_transfers(config: NativeTransferConfig) -> List[TransferRecord]:
    transfer_set = transfer_set_from_options(
        transfers=config.transfers,
        recipients=config.recipients,
        fixed_amount=config.fixed_amount,
    )
    return normalize(transfer_set)


def _memo_instruction(signer: str, memo: Optional[str]) -> Optional[Instruction]:
    if memo is None:
        return None
    return _factory.build_memo(signer, memo)


def _build_transfer_txs(
    kind: TransferKind,
    config: NativeTransferConfig,
    records: List[TransferRecord],
    limit: int,
    asset: Optional[TokenAsset] = None,
) -> List[UnsignedTransaction]:
    memo = _memo_instruction(config.sender, config.memo)
    instructions: List[Instruction] = []
    for record in records:
        instructions.extend(_factory.build(kind, config.sender, record, asset))
    return assemble(chunk(instructions, limit, memo))


def generate_bulk_native_transfers(
    config: NativeTransferConfig,
    settings: Optional[TransferSettings] = None,
) -> List[UnsignedTransaction]:
    """
    Build unsigned native SOL transfer transactions.

    Args:
        config: Distribution options
        settings: Settings supplying default limits

    Returns:
        Unsigned transactions, in transfer order

    Raises:
        ConfigError: If the options are malformed or contradictory
        InvalidAddressError: If the sender or a recipient is malformed
    """
    settings = settings or get_settings()
    limit = _resolve_limit(config.instructions_per_tx, settings.transfers_per_tx, "instructions_per_tx")
    records = _canonical_transfers(config)
    parse_address(config.sender)

    transactions = _build_transfer_txs(TransferKind.NATIVE, config, records, limit)

    logger.info(
        "native_transfers_generated",
        transfer_count=len(records),
        transaction_count=len(transactions),
    )
    return transactions


def generate_bulk_token_transfers(
    config: TokenTransferConfig,
    settings: Optional[TransferSettings] = None,
) -> List[UnsignedTransaction]:
    """
    Build unsigned SPL token transfer transactions.

    Every receiving account is assumed to exist already. Use
    generate_complete_bulk_token_transfers to create missing ones.

    Raises:
        ConfigError: If the options are malformed or contradictory
        InvalidAddressError: If the sender or a recipient is malformed
        InvalidAssetError: If the mint is malformed
    """
    settings = settings or get_settings()
    limit = _resolve_limit(config.instructions_per_tx, settings.transfers_per_tx, "instructions_per_tx")
    records = _canonical_transfers(config)
    asset = config.asset
    asset.validate()
    parse_address(config.sender)

    transactions = _build_transfer_txs(TransferKind.TOKEN, config, records, limit, asset)

    logger.info(
        "token_transfers_generated",
        mint=str(asset.mint),
        transfer_count=len(records),
        transaction_count=len(transactions),
    )
    return transactions


def _build_creation_txs(
    asset: TokenAsset,
    payer: str,
    recipients: Sequence[str],
    limit: int,
    memo: Optional[str],
) -> List[UnsignedTransaction]:
    annotation = _memo_instruction(payer, memo)
    instructions = [_factory.build_account_creation(payer, r, asset) for r in recipients]
    return assemble(chunk(instructions, limit, annotation))


async def generate_receiving_account_creation_transfers(
    network_query: NetworkQuery,
    asset: TokenAsset,
    payer: str,
    recipients: Sequence[str],
    creation_limit: Optional[int] = None,
    memo: Optional[str] = None,
    settings: Optional[TransferSettings] = None,
) -> List[UnsignedTransaction]:
    """
    Build transactions creating the receiving accounts that do not exist yet.

    Duplicate recipients are checked and created once.

    Args:
        network_query: Collaborator answering account existence
        asset: Token whose accounts are created
        payer: Wallet funding the new accounts
        recipients: Recipient wallet addresses
        creation_limit: Creations per transaction (settings default when None)
        memo: Memo text appended to every transaction

    Returns:
        Unsigned creation transactions; empty when every account exists

    Raises:
        ConfigError: If the limit or memo is malformed
        InvalidAddressError: If the payer or a recipient is malformed
        InvalidAssetError: If the mint is malformed
        NetworkQueryError: If the existence lookup fails
    """
    settings = settings or get_settings()
    limit = _resolve_limit(creation_limit, settings.creations_per_tx, "creation_limit")
    asset.validate()
    parse_address(payer)
    # Resolves the memo's ConfigError before any network round-trip
    _memo_instruction(payer, memo)

    distinct = distinct_recipients(recipients)

    resolver = ExistenceResolver(settings=settings)
    missing, _ = resolver.partition(await resolver.resolve(network_query, asset, distinct))

    transactions = _build_creation_txs(
        asset, payer, [e.recipient for e in missing], limit, memo
    )

    logger.info(
        "account_creations_generated",
        mint=str(asset.mint),
        recipient_count=len(distinct),
        missing=len(missing),
        transaction_count=len(transactions),
    )
    return transactions


async def generate_complete_bulk_token_transfers(
    network_query: NetworkQuery,
    config: TokenTransferConfig,
    settings: Optional[TransferSettings] = None,
) -> CompleteTokenTransferPlan:
    """
    Build both phases of a token distribution.

    Recipients without an associated token account get a creation
    instruction; every transfer record gets a transfer instruction whether or
    not its account existed. Records with an explicit receiving account are
    not checked or created.

    The creation phase must be confirmed before the transfer phase is
    submitted; this function only plans the two phases.

    Returns:
        CompleteTokenTransferPlan with both transaction lists;
        account_creation_txs is empty when nothing is missing

    Raises:
        ConfigError: If the options are malformed or contradictory
        InvalidAddressError: If the sender or a recipient is malformed
        InvalidAssetError: If the mint is malformed
        NetworkQueryError: If the existence lookup fails
    """
    settings = settings or get_settings()
    transfer_limit = _resolve_limit(
        config.instructions_per_tx, settings.transfers_per_tx, "instructions_per_tx"
    )
    creation_limit = _resolve_limit(
        config.creations_per_tx, settings.creations_per_tx, "creations_per_tx"
    )
    records = _canonical_transfers(config)
    asset = config.asset
    asset.validate()
    parse_address(config.sender)

    # Build transfers before any network I/O so address errors surface first
    transfer_txs = _build_transfer_txs(
        TransferKind.TOKEN, config, records, transfer_limit, asset
    )

    resolver = ExistenceResolver(settings=settings)
    existences = await resolver.resolve(network_query, asset, collect_recipients(records))
    missing, ready = resolver.partition(existences)

    creation_txs = _build_creation_txs(
        asset,
        config.sender,
        [e.recipient for e in missing],
        creation_limit,
        config.memo,
    )

    logger.info(
        "complete_token_transfers_generated",
        mint=str(asset.mint),
        transfer_count=len(records),
        missing_accounts=len(missing),
        ready_accounts=len(ready),
        creation_transactions=len(creation_txs),
        transfer_transactions=len(transfer_txs),
    )

    return CompleteTokenTransferPlan(
        account_creation_txs=creation_txs,
        transfer_txs=transfer_txs,
    )
