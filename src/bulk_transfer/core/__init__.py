"""
Core transfer components.

This module contains the transfer records, the unsigned transaction model and
the generation entry points.
"""

from bulk_transfer.core.transfer import TransferRecord, normalize
from bulk_transfer.core.batch import UnsignedTransaction, assemble
from bulk_transfer.core.generator import (
    CompleteTokenTransferPlan,
    NativeTransferConfig,
    TokenTransferConfig,
)

__all__ = [
    "TransferRecord",
    "normalize",
    "UnsignedTransaction",
    "assemble",
    "CompleteTokenTransferPlan",
    "NativeTransferConfig",
    "TokenTransferConfig",
]
