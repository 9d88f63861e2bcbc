"""
Network Query Layer.

Provides read-only account lookups against a Solana cluster.
"""

from bulk_transfer.node.interface import NetworkQuery
from bulk_transfer.node.rpc import SolanaRpcAdapter

__all__ = [
    "NetworkQuery",
    "SolanaRpcAdapter",
]
