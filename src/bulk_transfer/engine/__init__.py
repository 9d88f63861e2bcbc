"""
Batching engine.

Chunks instructions into transaction-sized groups and resolves which
receiving accounts already exist.
"""

from bulk_transfer.engine.chunker import chunk
from bulk_transfer.engine.resolver import AccountExistence, ExistenceResolver

__all__ = ["chunk", "AccountExistence", "ExistenceResolver"]
