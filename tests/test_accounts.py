"""
Tests for wallet account commands.
"""
import struct
from types import SimpleNamespace

import pytest
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from stakewallet.accounts import AccountCommand, AccountManager, decode_nonce_account
from stakewallet.exceptions import (
    AccountNotFoundError,
    DecodeError,
    DenyReason,
    OwnershipError,
    SubmissionRejected,
    ValidationDenied,
)
from stakewallet.rpc import AccountInfo
from stakewallet.stake_state import STAKE_PROGRAM_ID
from stakewallet.transactions import TransactionManager


@pytest.fixture
def accounts(ctx):
    return AccountManager(ctx, TransactionManager(ctx))


def _nonce_data(authority, nonce, fee):
    return struct.pack("<II", 1, 1) + bytes(authority) + bytes(nonce) + struct.pack("<Q", fee)


@pytest.mark.asyncio
class TestBalanceAndTransfer:
    """Balances and SOL transfers"""

    async def test_balance_defaults_to_wallet(self, accounts, fake_rpc, wallet):
        fake_rpc.get_balance.return_value = 123
        assert await accounts.get_balance() == 123
        fake_rpc.get_balance.assert_awaited_once_with(wallet)

    async def test_balance_of_other_address(self, accounts, fake_rpc, other):
        await accounts.get_balance(other)
        fake_rpc.get_balance.assert_awaited_once_with(other)

    async def test_transfer(self, accounts, fake_rpc, other):
        fake_rpc.get_balance.return_value = 5_000_000_000

        signature = await accounts.transfer(other, 1_000_000_000)

        assert signature == fake_rpc.send_and_confirm.return_value
        transaction = fake_rpc.send_and_confirm.await_args.args[0]
        assert other in transaction.message.account_keys

    async def test_transfer_more_than_balance(self, accounts, fake_rpc, other):
        fake_rpc.get_balance.return_value = 1_000

        with pytest.raises(ValidationDenied) as exc_info:
            await accounts.transfer(other, 1_001)

        assert exc_info.value.reason is DenyReason.INSUFFICIENT_BALANCE
        assert exc_info.value.details == {"available": 1_000, "requested": 1_001}
        fake_rpc.send_and_confirm.assert_not_awaited()

    async def test_transfer_zero(self, accounts, fake_rpc, other):
        with pytest.raises(ValidationDenied) as exc_info:
            await accounts.transfer(other, 0)
        assert exc_info.value.reason is DenyReason.INVALID_AMOUNT
        fake_rpc.get_balance.assert_not_awaited()


@pytest.mark.asyncio
class TestNodeCommands:
    """Airdrop, confirmation and largest accounts"""

    async def test_airdrop(self, accounts, fake_rpc, wallet):
        signature = await accounts.request_airdrop(2_000_000_000)
        assert signature == fake_rpc.request_airdrop.return_value
        fake_rpc.request_airdrop.assert_awaited_once_with(wallet, 2_000_000_000)

    async def test_airdrop_refused(self, accounts, fake_rpc):
        fake_rpc.request_airdrop.side_effect = SubmissionRejected("faucet has run dry")
        with pytest.raises(SubmissionRejected):
            await accounts.request_airdrop()

    async def test_confirm_transaction(self, accounts, fake_rpc):
        fake_rpc.get_signature_status.return_value = SimpleNamespace(
            err=None, confirmation_status="TransactionConfirmationStatus.Confirmed"
        )
        assert await accounts.confirm_transaction(Signature.new_unique()) == "confirmed"

    async def test_largest_accounts(self, accounts, fake_rpc):
        first, second = Pubkey.new_unique(), Pubkey.new_unique()
        fake_rpc.get_largest_accounts.return_value = [
            SimpleNamespace(address=first, lamports=900),
            SimpleNamespace(address=second, lamports=800),
        ]
        assert await accounts.largest_accounts() == [(first, 900), (second, 800)]


@pytest.mark.asyncio
class TestNonceAccount:
    """Nonce account inspection"""

    async def test_initialized_nonce(self, accounts, fake_rpc):
        address, authority, nonce = Pubkey.new_unique(), Pubkey.new_unique(), Hash.new_unique()
        fake_rpc.get_account.return_value = AccountInfo(
            address=address, owner=SYSTEM_PROGRAM_ID, lamports=1_447_680, data=_nonce_data(authority, nonce, 5000)
        )

        account = await accounts.inspect_nonce_account(address)

        assert account.initialized
        assert account.authority == authority
        assert account.durable_nonce == nonce
        assert account.lamports_per_signature == 5000
        assert account.lamports == 1_447_680

    async def test_missing(self, accounts):
        with pytest.raises(AccountNotFoundError):
            await accounts.inspect_nonce_account(Pubkey.new_unique())

    async def test_wrong_owner(self, accounts, fake_rpc):
        address = Pubkey.new_unique()
        fake_rpc.get_account.return_value = AccountInfo(
            address=address, owner=STAKE_PROGRAM_ID, lamports=1, data=bytes(80)
        )
        with pytest.raises(OwnershipError):
            await accounts.inspect_nonce_account(address)


class TestDecodeNonceAccount:
    """Raw nonce state decoding"""

    def test_uninitialized(self):
        account = decode_nonce_account(Pubkey.new_unique(), 1, bytes(80))
        assert not account.initialized
        assert account.authority is None

    def test_garbage(self):
        with pytest.raises(DecodeError):
            decode_nonce_account(Pubkey.new_unique(), 1, b"\x01")

    def test_unknown_state(self):
        with pytest.raises(DecodeError):
            decode_nonce_account(Pubkey.new_unique(), 1, struct.pack("<II", 1, 7) + bytes(72))


class TestAccountCommand:
    """Menu command metadata"""

    def test_descriptions(self):
        for command in AccountCommand:
            assert command.description
