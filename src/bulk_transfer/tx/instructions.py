"""
Instruction Factory - builds the elementary instructions of a bulk transfer.

Produces System Program transfers for native SOL, SPL Token transfers for
fungible tokens, Associated Token Account creations and SPL Memo annotations.
Construction is pure: nothing here touches the network.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import structlog

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams as SystemTransferParams
from solders.system_program import transfer as system_transfer
from spl.memo.constants import MEMO_PROGRAM_ID
from spl.memo.instructions import MemoParams, create_memo
from spl.token.constants import TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    TransferParams as TokenTransferParams,
    create_associated_token_account,
    get_associated_token_address,
    transfer as token_transfer,
    transfer_checked as token_transfer_checked,
)

from bulk_transfer.core.transfer import TransferRecord
from bulk_transfer.errors import ConfigError, InvalidAddressError, InvalidAssetError

logger = structlog.get_logger(__name__)

AddressLike = Union[str, Pubkey]

# Programs whose associated token accounts can be derived
SUPPORTED_TOKEN_PROGRAMS = (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID)


class TransferKind(str, Enum):
    """Asset kinds a transfer can move."""
    NATIVE = "native"             # Lamports via the System Program
    TOKEN = "token"               # SPL tokens between token accounts


def parse_address(address: AddressLike) -> Pubkey:
    """
    Parse a base58 address into a Pubkey.

    Raises:
        InvalidAddressError: If the address is not a valid 32-byte key
    """
    if isinstance(address, Pubkey):
        return address
    if not isinstance(address, str) or not address:
        raise InvalidAddressError(address, "expected a base58 string")
    try:
        return Pubkey.from_string(address)
    except ValueError as e:
        raise InvalidAddressError(address, str(e)) from e


@dataclass(frozen=True)
class TokenAsset:
    """
    Fungible token being distributed.

    Attributes:
        mint: Mint address of the token
        decimals: Mint decimals; when set, transfers are emitted as TransferChecked
        token_program_id: Owning token program (classic SPL Token or Token-2022)
        source_account: Sender token account to debit instead of the sender's
            associated token account
    """

    mint: str
    decimals: Optional[int] = None
    token_program_id: Optional[str] = None
    source_account: Optional[str] = None

    @property
    def mint_pubkey(self) -> Pubkey:
        """Parsed mint address."""
        if not isinstance(self.mint, (str, Pubkey)) or not self.mint:
            raise InvalidAssetError(self.mint, "expected a base58 mint address")
        try:
            return self.mint if isinstance(self.mint, Pubkey) else Pubkey.from_string(self.mint)
        except ValueError as e:
            raise InvalidAssetError(self.mint, str(e)) from e

    @property
    def program_id(self) -> Pubkey:
        """Parsed token program id."""
        if self.token_program_id is None:
            return TOKEN_PROGRAM_ID
        try:
            program_id = parse_address(self.token_program_id)
        except InvalidAddressError as e:
            raise InvalidAssetError(self.token_program_id, "bad token program id") from e
        if program_id not in SUPPORTED_TOKEN_PROGRAMS:
            raise InvalidAssetError(
                self.token_program_id, "expected the SPL Token or Token-2022 program"
            )
        return program_id

    def validate(self) -> None:
        """
        Check the mint, program id and decimals up front.

        Raises:
            InvalidAssetError: If any asset field is malformed
        """
        self.mint_pubkey
        self.program_id
        if self.decimals is not None:
            if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
                raise InvalidAssetError(self.decimals, "decimals must be an integer")
            if not 0 <= self.decimals <= 255:
                raise InvalidAssetError(self.decimals, "decimals must fit in a u8")


def derive_receiving_account(owner: AddressLike, asset: TokenAsset) -> Pubkey:
    """
    Deterministic associated token account of an owner for a mint.

    Raises:
        InvalidAddressError: If the owner address is malformed
        InvalidAssetError: If the mint is malformed
    """
    return get_associated_token_address(
        parse_address(owner),
        asset.mint_pubkey,
        token_program_id=asset.program_id,
    )


class InstructionFactory:
    """
    Builds instructions for transfer records.

    The factory holds no state; a shared instance is safe to reuse across
    concurrent calls.
    """

    def build(
        self,
        kind: TransferKind,
        sender: AddressLike,
        record: TransferRecord,
        asset: Optional[TokenAsset] = None,
    ) -> List[Instruction]:
        """
        Build the transfer instruction for one record.

        Args:
            kind: Native or token transfer
            sender: Wallet paying out the transfer
            record: Canonical transfer record
            asset: Token being moved (required for token transfers)

        Returns:
            List holding the single transfer instruction

        Raises:
            InvalidAddressError: If the sender or recipient is malformed
            InvalidAssetError: If the asset is malformed
            ConfigError: If a token transfer has no asset
        """
        if kind == TransferKind.NATIVE:
            return [self.native_transfer(sender, record)]
        if kind == TransferKind.TOKEN:
            if asset is None:
                raise ConfigError("Token transfers require an asset")
            return [self.token_transfer(sender, record, asset)]
        raise ConfigError(f"Unknown transfer kind: {kind!r}")

    def native_transfer(self, sender: AddressLike, record: TransferRecord) -> Instruction:
        """
        System Program transfer of record.amount lamports.

        Raises:
            ConfigError: If the record names a receiving token account
        """
        if record.receiving_account is not None:
            raise ConfigError(
                f"Native transfer to {record.recipient} cannot use a receiving account override"
            )
        return system_transfer(
            SystemTransferParams(
                from_pubkey=parse_address(sender),
                to_pubkey=parse_address(record.recipient),
                lamports=record.amount,
            )
        )

    def token_transfer(
        self,
        sender: AddressLike,
        record: TransferRecord,
        asset: TokenAsset,
    ) -> Instruction:
        """SPL Token transfer between the sender's and recipient's token accounts."""
        owner = parse_address(sender)
        mint = asset.mint_pubkey
        program_id = asset.program_id

        if asset.source_account is not None:
            source = parse_address(asset.source_account)
        else:
            source = get_associated_token_address(owner, mint, token_program_id=program_id)

        # Validate the wallet even when the token account is overridden
        recipient = parse_address(record.recipient)
        if record.receiving_account is not None:
            dest = parse_address(record.receiving_account)
        else:
            dest = get_associated_token_address(recipient, mint, token_program_id=program_id)

        if asset.decimals is not None:
            return token_transfer_checked(
                TransferCheckedParams(
                    program_id=program_id,
                    source=source,
                    mint=mint,
                    dest=dest,
                    owner=owner,
                    amount=record.amount,
                    decimals=asset.decimals,
                )
            )

        return token_transfer(
            TokenTransferParams(
                program_id=program_id,
                source=source,
                dest=dest,
                owner=owner,
                amount=record.amount,
            )
        )

    def build_account_creation(
        self,
        payer: AddressLike,
        recipient: AddressLike,
        asset: TokenAsset,
    ) -> Instruction:
        """
        Create the recipient's associated token account, funded by payer.

        Creating an account that already exists fails on-chain, so callers
        filter recipients through the existence resolver first.
        """
        return create_associated_token_account(
            payer=parse_address(payer),
            owner=parse_address(recipient),
            mint=asset.mint_pubkey,
            token_program_id=asset.program_id,
        )

    def build_memo(self, signer: AddressLike, text: str) -> Instruction:
        """
        SPL Memo instruction carrying text, signed by signer.

        Raises:
            ConfigError: If the memo text is empty
        """
        if not isinstance(text, str) or not text:
            raise ConfigError("Memo text must be a non-empty string")
        return create_memo(
            MemoParams(
                program_id=MEMO_PROGRAM_ID,
                signer=parse_address(signer),
                message=text.encode("utf-8"),
            )
        )
