"""
Unsigned transaction model and the transaction assembler.

An UnsignedTransaction is an ordered list of instructions with no fee payer,
recent blockhash or signatures. Those are attached by whoever signs and
submits the transaction.
"""

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import structlog

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey

from bulk_transfer.errors import ConfigError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UnsignedTransaction:
    """
    Ordered instructions destined for one transaction.

    Attributes:
        instructions: Instructions in execution order
    """

    instructions: Tuple[Instruction, ...]

    @property
    def size(self) -> int:
        """Number of instructions, annotations included."""
        return len(self.instructions)

    @property
    def program_ids(self) -> List[str]:
        """Program id of each instruction, in order."""
        return [str(ix.program_id) for ix in self.instructions]

    def count_program(self, program_id: Pubkey) -> int:
        """Number of instructions addressed to program_id."""
        return sum(1 for ix in self.instructions if ix.program_id == program_id)

    def to_message(self, fee_payer: Pubkey, recent_blockhash: Hash) -> Message:
        """
        Compile into a legacy message ready for signing.

        Args:
            fee_payer: Account paying the transaction fee
            recent_blockhash: Current blockhash from the network
        """
        return Message.new_with_blockhash(
            list(self.instructions),
            fee_payer,
            recent_blockhash,
        )

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "instruction_count": self.size,
            "program_ids": self.program_ids,
        }


def assemble(groups: Sequence[Sequence[Instruction]]) -> List[UnsignedTransaction]:
    """
    Wrap each instruction group into an unsigned transaction.

    Group order and in-group order are preserved one-to-one.

    Raises:
        ConfigError: If a group or one of its instructions is None
    """
    transactions = []
    for index, group in enumerate(groups):
        if group is None:
            raise ConfigError(f"Instruction group {index} is None")
        if any(ix is None for ix in group):
            raise ConfigError(f"Instruction group {index} contains None")
        transactions.append(UnsignedTransaction(instructions=tuple(group)))

    logger.debug("transactions_assembled", transaction_count=len(transactions))
    return transactions
