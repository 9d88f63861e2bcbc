"""
Transfer records and the transfer-set normalizer.

A transfer set arrives in one of two mutually exclusive shapes: an explicit
list of per-recipient transfers, or a list of recipients that all receive the
same fixed amount. The shape is resolved once, here, into an ordered list of
TransferRecord objects that the rest of the pipeline consumes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from bulk_transfer.errors import ConfigError

logger = structlog.get_logger(__name__)

# Amounts are encoded as u64 on-chain
MAX_AMOUNT = 2**64 - 1


class TransferShape(str, Enum):
    """Input shapes accepted for a transfer set."""
    EXPLICIT = "explicit"         # One record per transfer
    UNIFORM = "uniform"           # Recipients sharing a fixed amount


@dataclass(frozen=True)
class TransferRecord:
    """
    A single (recipient, amount) transfer.

    Attributes:
        recipient: Base58 address of the wallet receiving the transfer
        amount: Amount in the smallest unit of the asset (lamports or raw token units)
        receiving_account: Token account to credit instead of the recipient's
            associated token account (token transfers only)
    """

    recipient: str
    amount: int
    receiving_account: Optional[str] = None

    @classmethod
    def coerce(cls, item: Any) -> "TransferRecord":
        """
        Build a record from a record, a mapping or a (recipient, amount) pair.

        Raises:
            ConfigError: If the item has none of the accepted forms
        """
        if isinstance(item, TransferRecord):
            return item

        if isinstance(item, Mapping):
            recipient = item.get("recipient", item.get("address"))
            if recipient is None or "amount" not in item:
                raise ConfigError(
                    f"Transfer entry needs 'recipient' and 'amount': {dict(item)!r}"
                )
            receiving_account = item.get("receiving_account")
            return cls(
                recipient=str(recipient),
                amount=item["amount"],
                receiving_account=str(receiving_account) if receiving_account else None,
            )

        if isinstance(item, (tuple, list)) and len(item) == 2:
            recipient, amount = item
            return cls(recipient=str(recipient), amount=amount)

        raise ConfigError(f"Unsupported transfer entry: {item!r}")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "recipient": self.recipient,
            "amount": self.amount,
            "receiving_account": self.receiving_account,
        }


@dataclass(frozen=True)
class ExplicitTransfers:
    """Transfer set given as an explicit list of records."""

    transfers: Tuple[TransferRecord, ...]

    @property
    def shape(self) -> TransferShape:
        return TransferShape.EXPLICIT


@dataclass(frozen=True)
class UniformTransfers:
    """Transfer set given as recipients plus one fixed amount."""

    recipients: Tuple[str, ...]
    fixed_amount: int

    @property
    def shape(self) -> TransferShape:
        return TransferShape.UNIFORM


TransferSet = Union[ExplicitTransfers, UniformTransfers]


def transfer_set_from_options(
    transfers: Optional[Iterable[Any]] = None,
    recipients: Optional[Iterable[Any]] = None,
    fixed_amount: Optional[int] = None,
) -> TransferSet:
    """
    Resolve loose keyword options into exactly one transfer-set shape.

    Args:
        transfers: Explicit transfer entries
        recipients: Recipient addresses for the uniform shape
        fixed_amount: Amount every recipient receives in the uniform shape

    Returns:
        ExplicitTransfers or UniformTransfers

    Raises:
        ConfigError: If both shapes, neither shape, or an incomplete
            uniform shape is supplied
    """
    if transfers is not None and recipients is not None:
        raise ConfigError("Provide either 'transfers' or 'recipients', not both")

    if transfers is not None:
        if fixed_amount is not None:
            raise ConfigError("'fixed_amount' is only valid together with 'recipients'")
        return ExplicitTransfers(
            transfers=tuple(TransferRecord.coerce(item) for item in transfers)
        )

    if recipients is not None:
        if fixed_amount is None:
            raise ConfigError("'recipients' requires 'fixed_amount'")
        return UniformTransfers(
            recipients=tuple(str(r) for r in recipients),
            fixed_amount=fixed_amount,
        )

    if fixed_amount is not None:
        raise ConfigError("'fixed_amount' is only valid together with 'recipients'")

    raise ConfigError("Provide either 'transfers' or 'recipients' with 'fixed_amount'")


def validate_amount(amount: Any, field_name: str = "amount") -> int:
    """
    Check that an amount is a positive integer that fits in a u64.

    Raises:
        ConfigError: If the amount is not integral, not positive or too large
    """
    # bool is an int subclass but never a meaningful amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ConfigError(f"{field_name} must be an integer, got {amount!r}")
    if amount <= 0:
        raise ConfigError(f"{field_name} must be positive, got {amount}")
    if amount > MAX_AMOUNT:
        raise ConfigError(f"{field_name} exceeds the u64 maximum: {amount}")
    return amount


def normalize(transfer_set: TransferSet) -> List[TransferRecord]:
    """
    Produce the canonical ordered list of transfer records.

    Input order is kept and duplicate recipients are preserved.

    Raises:
        ConfigError: If any amount is invalid
    """
    if isinstance(transfer_set, UniformTransfers):
        amount = validate_amount(transfer_set.fixed_amount, "fixed_amount")
        records = [
            TransferRecord(recipient=recipient, amount=amount)
            for recipient in transfer_set.recipients
        ]
    elif isinstance(transfer_set, ExplicitTransfers):
        for index, record in enumerate(transfer_set.transfers):
            validate_amount(record.amount, f"transfers[{index}].amount")
        records = list(transfer_set.transfers)
    else:
        raise ConfigError(f"Unknown transfer set: {transfer_set!r}")

    logger.debug(
        "transfers_normalized",
        shape=transfer_set.shape.value,
        count=len(records),
    )
    return records


def distinct_recipients(recipients: Iterable[Any]) -> List[str]:
    """Drop repeated recipients, keeping first occurrences in order."""
    seen = set()
    ordered = []
    for recipient in recipients:
        recipient = str(recipient)
        if recipient not in seen:
            seen.add(recipient)
            ordered.append(recipient)
    return ordered


def collect_recipients(records: Sequence[TransferRecord]) -> List[str]:
    """
    Distinct recipients that rely on a derived receiving account.

    Records carrying an explicit receiving account are skipped.
    """
    return distinct_recipients(
        record.recipient for record in records if record.receiving_account is None
    )
