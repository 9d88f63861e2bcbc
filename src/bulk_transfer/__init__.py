"""
Bulk Transfer Batcher

Builds unsigned Solana transactions that distribute SOL or SPL tokens to many
recipients, splitting transfers into batches that respect the per-transaction
instruction ceiling. Signing and submission are left to the caller.
"""

__version__ = "0.1.0"

from bulk_transfer.core.batch import UnsignedTransaction, assemble
from bulk_transfer.core.generator import (
    CompleteTokenTransferPlan,
    NativeTransferConfig,
    TokenTransferConfig,
    generate_bulk_native_transfers,
    generate_bulk_token_transfers,
    generate_complete_bulk_token_transfers,
    generate_receiving_account_creation_transfers,
)
from bulk_transfer.core.transfer import TransferRecord, normalize, transfer_set_from_options
from bulk_transfer.engine.chunker import chunk
from bulk_transfer.engine.resolver import AccountExistence, ExistenceResolver
from bulk_transfer.errors import (
    BulkTransferError,
    ConfigError,
    InvalidAddressError,
    InvalidAssetError,
    NetworkQueryError,
)
from bulk_transfer.node.interface import NetworkQuery
from bulk_transfer.tx.instructions import InstructionFactory, TokenAsset, TransferKind

__all__ = [
    "AccountExistence",
    "BulkTransferError",
    "CompleteTokenTransferPlan",
    "ConfigError",
    "ExistenceResolver",
    "InstructionFactory",
    "InvalidAddressError",
    "InvalidAssetError",
    "NativeTransferConfig",
    "NetworkQuery",
    "NetworkQueryError",
    "TokenAsset",
    "TokenTransferConfig",
    "TransferKind",
    "TransferRecord",
    "UnsignedTransaction",
    "assemble",
    "chunk",
    "generate_bulk_native_transfers",
    "generate_bulk_token_transfers",
    "generate_complete_bulk_token_transfers",
    "generate_receiving_account_creation_transfers",
    "normalize",
    "transfer_set_from_options",
]
