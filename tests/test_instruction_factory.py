"""
Test suite for instruction construction.

Tests native transfers, token transfers, account creation and memos.
"""

from importlib.metadata import version

import pytest
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import decode_transfer as decode_system_transfer
from spl.memo.constants import MEMO_PROGRAM_ID
from spl.token.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from spl.token.instructions import (
    decode_transfer as decode_token_transfer,
    decode_transfer_checked,
    get_associated_token_address,
)

from bulk_transfer.core.transfer import TransferRecord
from bulk_transfer.errors import ConfigError, InvalidAddressError, InvalidAssetError
from bulk_transfer.tx.instructions import (
    InstructionFactory,
    TokenAsset,
    TransferKind,
    derive_receiving_account,
    parse_address,
)


@pytest.fixture
def factory() -> InstructionFactory:
    return InstructionFactory()


# ============================================================================
# Test Address Parsing
# ============================================================================

class TestParseAddress:
    """Tests for address parsing."""

    def test_valid_address(self, sender):
        """Test parsing a valid base58 address."""
        assert str(parse_address(sender)) == sender

    def test_pubkey_passthrough(self):
        """Test that Pubkey objects are accepted as-is."""
        key = Pubkey.new_unique()
        assert parse_address(key) is key

    @pytest.mark.parametrize("address", ["", "not-an-address", "0OIl", "1" * 60, None, 123])
    def test_invalid_address(self, address):
        """Test that malformed addresses raise InvalidAddressError."""
        with pytest.raises(InvalidAddressError):
            parse_address(address)


# ============================================================================
# Test Native Transfers
# ============================================================================

class TestNativeTransfer:
    """Tests for System Program transfers."""

    def test_build_native_transfer(self, factory, sender, make_addresses):
        """Test that one system transfer instruction is produced."""
        recipient = make_addresses(1)[0]
        instructions = factory.build(
            TransferKind.NATIVE, sender, TransferRecord(recipient, 1_500_000)
        )

        assert len(instructions) == 1
        ix = instructions[0]
        assert ix.program_id == SYSTEM_PROGRAM_ID

        params = decode_system_transfer(ix)
        assert str(params["from_pubkey"]) == sender
        assert str(params["to_pubkey"]) == recipient
        assert params["lamports"] == 1_500_000

    def test_invalid_recipient(self, factory, sender):
        """Test that a malformed recipient fails construction."""
        with pytest.raises(InvalidAddressError):
            factory.build(TransferKind.NATIVE, sender, TransferRecord("bogus", 1))

    def test_invalid_sender(self, factory, make_addresses):
        """Test that a malformed sender fails construction."""
        with pytest.raises(InvalidAddressError):
            factory.build(TransferKind.NATIVE, "bogus", TransferRecord(make_addresses(1)[0], 1))

    def test_receiving_account_override_rejected(self, factory, sender, make_addresses):
        """Test that native transfers refuse a token account override."""
        recipient, account = make_addresses(2)

        with pytest.raises(ConfigError, match="receiving account"):
            factory.build(
                TransferKind.NATIVE, sender, TransferRecord(recipient, 1, receiving_account=account)
            )

    def test_construction_is_deterministic(self, factory, sender, make_addresses):
        """Test that identical inputs yield identical instructions."""
        record = TransferRecord(make_addresses(1)[0], 42)
        first = factory.build(TransferKind.NATIVE, sender, record)
        second = factory.build(TransferKind.NATIVE, sender, record)
        assert first == second


# ============================================================================
# Test Token Transfers
# ============================================================================

class TestTokenTransfer:
    """Tests for SPL Token transfers."""

    def test_transfer_between_associated_accounts(self, factory, sender, token_asset, make_addresses):
        """Test that tokens move from the sender's ATA to the recipient's ATA."""
        recipient = make_addresses(1)[0]
        mint = Pubkey.from_string(token_asset.mint)

        [ix] = factory.build(
            TransferKind.TOKEN, sender, TransferRecord(recipient, 250), token_asset
        )

        assert ix.program_id == TOKEN_PROGRAM_ID
        params = decode_token_transfer(ix)
        assert params.source == get_associated_token_address(Pubkey.from_string(sender), mint)
        assert params.dest == get_associated_token_address(Pubkey.from_string(recipient), mint)
        assert str(params.owner) == sender
        assert params.amount == 250

    def test_receiving_account_override(self, factory, sender, token_asset, make_addresses):
        """Test that an explicit receiving account replaces the derived one."""
        recipient, override = make_addresses(2)

        [ix] = factory.build(
            TransferKind.TOKEN,
            sender,
            TransferRecord(recipient, 1, receiving_account=override),
            token_asset,
        )

        assert str(decode_token_transfer(ix).dest) == override

    def test_source_account_override(self, factory, sender, mint, make_addresses):
        """Test that an explicit source account replaces the sender's ATA."""
        recipient, source = make_addresses(2)
        asset = TokenAsset(mint=mint, source_account=source)

        [ix] = factory.build(TransferKind.TOKEN, sender, TransferRecord(recipient, 1), asset)

        assert str(decode_token_transfer(ix).source) == source

    def test_transfer_checked_with_decimals(self, factory, sender, mint, make_addresses):
        """Test that known decimals produce a TransferChecked instruction."""
        recipient = make_addresses(1)[0]
        asset = TokenAsset(mint=mint, decimals=6)

        [ix] = factory.build(TransferKind.TOKEN, sender, TransferRecord(recipient, 10), asset)

        params = decode_transfer_checked(ix)
        assert str(params.mint) == mint
        assert params.decimals == 6
        assert params.amount == 10

    def test_token_2022_program(self, factory, sender, mint, make_addresses):
        """Test that Token-2022 mints are transferred through Token-2022."""
        recipient = make_addresses(1)[0]
        asset = TokenAsset(mint=mint, token_program_id=str(TOKEN_2022_PROGRAM_ID))

        [ix] = factory.build(TransferKind.TOKEN, sender, TransferRecord(recipient, 1), asset)

        assert ix.program_id == TOKEN_2022_PROGRAM_ID
        assert derive_receiving_account(recipient, asset) != derive_receiving_account(
            recipient, TokenAsset(mint=mint)
        )
        assert ix.accounts[1].pubkey == derive_receiving_account(recipient, asset)

    def test_invalid_mint(self, factory, sender, make_addresses):
        """Test that a malformed mint raises InvalidAssetError."""
        with pytest.raises(InvalidAssetError):
            factory.build(
                TransferKind.TOKEN,
                sender,
                TransferRecord(make_addresses(1)[0], 1),
                TokenAsset(mint="not-a-mint"),
            )

    def test_invalid_recipient_with_override(self, factory, sender, token_asset, make_addresses):
        """Test that the recipient wallet is validated even when overridden."""
        with pytest.raises(InvalidAddressError):
            factory.build(
                TransferKind.TOKEN,
                sender,
                TransferRecord("bogus", 1, receiving_account=make_addresses(1)[0]),
                token_asset,
            )

    def test_token_transfer_requires_asset(self, factory, sender, make_addresses):
        """Test that token transfers without an asset are rejected."""
        with pytest.raises(ConfigError, match="asset"):
            factory.build(TransferKind.TOKEN, sender, TransferRecord(make_addresses(1)[0], 1))


# ============================================================================
# Test Asset Validation
# ============================================================================

class TestTokenAsset:
    """Tests for token asset validation."""

    def test_valid_asset(self, token_asset):
        """Test that a well-formed asset validates."""
        token_asset.validate()
        assert token_asset.program_id == TOKEN_PROGRAM_ID

    @pytest.mark.parametrize("decimals", [-1, 256, 2.5, True])
    def test_invalid_decimals(self, mint, decimals):
        """Test that decimals outside a u8 are rejected."""
        with pytest.raises(InvalidAssetError):
            TokenAsset(mint=mint, decimals=decimals).validate()

    def test_empty_mint(self):
        """Test that an empty mint is rejected."""
        with pytest.raises(InvalidAssetError):
            TokenAsset(mint="").validate()

    def test_invalid_program_id(self, mint):
        """Test that a malformed token program id is an asset error."""
        with pytest.raises(InvalidAssetError):
            TokenAsset(mint=mint, token_program_id="nope").validate()

    def test_unknown_token_program(self, mint):
        """Test that a well-formed key that is not a token program is rejected."""
        asset = TokenAsset(mint=mint, token_program_id=str(Pubkey.new_unique()))

        with pytest.raises(InvalidAssetError, match="Token-2022"):
            asset.validate()

    def test_unknown_token_program_on_derivation(self, mint, make_addresses):
        """Test that account derivation reports an unknown program as an asset error."""
        asset = TokenAsset(mint=mint, token_program_id=str(Pubkey.new_unique()))

        with pytest.raises(InvalidAssetError):
            derive_receiving_account(make_addresses(1)[0], asset)


# ============================================================================
# Test Account Creation and Memo
# ============================================================================

class TestAccountCreationAndMemo:
    """Tests for associated token account creation and memo instructions."""

    def test_account_creation(self, factory, sender, token_asset, make_addresses):
        """Test that one ATA creation instruction is paid by the sender."""
        recipient = make_addresses(1)[0]

        ix = factory.build_account_creation(sender, recipient, token_asset)

        assert ix.program_id == ASSOCIATED_TOKEN_PROGRAM_ID
        assert str(ix.accounts[0].pubkey) == sender
        assert ix.accounts[0].is_signer is True
        assert ix.accounts[1].pubkey == derive_receiving_account(recipient, token_asset)
        assert str(ix.accounts[2].pubkey) == recipient

    def test_account_creation_invalid_recipient(self, factory, sender, token_asset):
        """Test that a malformed recipient fails creation."""
        with pytest.raises(InvalidAddressError):
            factory.build_account_creation(sender, "bogus", token_asset)

    def test_memo(self, factory, sender):
        """Test that memo text is carried verbatim and signed by the sender."""
        ix = factory.build_memo(sender, "airdrop #1")

        assert ix.program_id == MEMO_PROGRAM_ID
        assert bytes(ix.data) == b"airdrop #1"
        assert str(ix.accounts[0].pubkey) == sender

    def test_empty_memo_rejected(self, factory, sender):
        """Test that empty memo text is a configuration error."""
        with pytest.raises(ConfigError, match="Memo"):
            factory.build_memo(sender, "")


# ============================================================================
# Test Library Support
# ============================================================================

class TestLibrarySupport:
    """Tests for the supported solana-py releases."""

    def test_solana_release_in_supported_range(self):
        """Test that the installed release keeps params in spl.*.instructions."""
        major, minor = (int(part) for part in version("solana").split(".")[:2])
        assert (0, 35) <= (major, minor) < (0, 40)
