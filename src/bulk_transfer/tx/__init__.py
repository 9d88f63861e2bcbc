"""
Instruction construction.

Builds transfer, account-creation and memo instructions.
"""

from bulk_transfer.tx.instructions import InstructionFactory, TokenAsset, TransferKind

__all__ = ["InstructionFactory", "TokenAsset", "TransferKind"]
