"""
Tests for stake account decoding, activation status and the account reader.
"""
import struct

import pytest
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from stakewallet.exceptions import AccountNotFoundError, DecodeError, NetworkError, OwnershipError
from stakewallet.rpc import AccountInfo
from stakewallet.stake_state import (
    ACTIVE_STAKE_EPOCH_BOUND,
    STAKE_ACCOUNT_SIZE,
    STAKE_PROGRAM_ID,
    Authorized,
    Delegated,
    Delegation,
    Initialized,
    Lockup,
    Meta,
    RewardsPool,
    Uninitialized,
    activation_status,
    decode_stake_state,
    fetch_stake_account,
)

from conftest import encode_stake_state


def _meta_bytes(reserve, staker, withdrawer, unix_timestamp=0, epoch=0, custodian=None):
    custodian = custodian or Pubkey.default()
    return (
        struct.pack("<Q", reserve)
        + bytes(staker)
        + bytes(withdrawer)
        + struct.pack("<qQ", unix_timestamp, epoch)
        + bytes(custodian)
    )


class TestDecodeStakeState:
    """Decoding raw stake account data"""

    def test_uninitialized(self):
        assert decode_stake_state(bytes(STAKE_ACCOUNT_SIZE)) == Uninitialized()

    def test_initialized(self):
        staker, withdrawer = Pubkey.new_unique(), Pubkey.new_unique()
        data = struct.pack("<I", 1) + _meta_bytes(2_282_880, staker, withdrawer, epoch=7)
        state = decode_stake_state(data.ljust(STAKE_ACCOUNT_SIZE, b"\x00"))

        assert isinstance(state, Initialized)
        assert state.meta.rent_exempt_reserve == 2_282_880
        assert state.authorized_staker == staker
        assert state.authorized_withdrawer == withdrawer
        assert state.meta.lockup.epoch == 7

    def test_delegated(self):
        staker, voter = Pubkey.new_unique(), Pubkey.new_unique()
        data = (
            struct.pack("<I", 2)
            + _meta_bytes(2_282_880, staker, staker)
            + bytes(voter)
            + struct.pack("<QQQd", 5_000_000_000, 300, 410, 0.25)
            + struct.pack("<Q", 12345)
            + b"\x00"
        )
        state = decode_stake_state(data.ljust(STAKE_ACCOUNT_SIZE, b"\x00"))

        assert isinstance(state, Delegated)
        assert state.delegation.voter_pubkey == voter
        assert state.delegation.stake == 5_000_000_000
        assert state.activation_epoch == 300
        assert state.deactivation_epoch == 410
        assert state.credits_observed == 12345
        assert not state.is_active()

    def test_rewards_pool(self):
        data = struct.pack("<I", 3).ljust(STAKE_ACCOUNT_SIZE, b"\x00")
        assert decode_stake_state(data) == RewardsPool()

    def test_unknown_tag(self):
        data = struct.pack("<I", 9).ljust(STAKE_ACCOUNT_SIZE, b"\x00")
        with pytest.raises(DecodeError):
            decode_stake_state(data)

    def test_truncated_payload(self):
        data = struct.pack("<I", 2) + bytes(40)
        with pytest.raises(DecodeError):
            decode_stake_state(data)

    def test_empty_payload(self):
        with pytest.raises(DecodeError):
            decode_stake_state(b"")

    def test_encoded_state_decodes_back(self):
        staker = Pubkey.new_unique()
        state = Delegated(
            meta=Meta(
                rent_exempt_reserve=1,
                authorized=Authorized(staker=staker, withdrawer=Pubkey.new_unique()),
                lockup=Lockup(unix_timestamp=1_700_000_000, epoch=3, custodian=Pubkey.new_unique()),
            ),
            delegation=Delegation(voter_pubkey=Pubkey.new_unique(), stake=99, activation_epoch=10),
            credits_observed=4,
        )
        data = encode_stake_state(state)

        assert len(data) == STAKE_ACCOUNT_SIZE
        assert decode_stake_state(data) == state


class TestActivationStatus:
    """Lifecycle classification of a stake at a given epoch"""

    def _delegated(self, activation, deactivation=ACTIVE_STAKE_EPOCH_BOUND):
        meta = Meta(rent_exempt_reserve=1, authorized=Authorized(Pubkey.new_unique(), Pubkey.new_unique()))
        return Delegated(
            meta=meta,
            delegation=Delegation(
                voter_pubkey=Pubkey.new_unique(),
                stake=10,
                activation_epoch=activation,
                deactivation_epoch=deactivation,
            ),
        )

    def test_not_delegated_is_inactive(self):
        assert activation_status(Uninitialized(), 10) == "inactive"
        meta = Meta(rent_exempt_reserve=1, authorized=Authorized(Pubkey.new_unique(), Pubkey.new_unique()))
        assert activation_status(Initialized(meta), 10) == "inactive"

    def test_activating_in_activation_epoch(self):
        assert activation_status(self._delegated(10), 10) == "activating"

    def test_active_after_activation_epoch(self):
        assert activation_status(self._delegated(10), 11) == "active"

    def test_deactivating_until_deactivation_epoch_passes(self):
        state = self._delegated(10, 20)
        assert activation_status(state, 20) == "deactivating"
        assert activation_status(state, 21) == "deactivated"

    def test_deactivated_in_same_epoch_as_activation(self):
        assert activation_status(self._delegated(10, 10), 10) == "deactivated"


@pytest.mark.asyncio
class TestFetchStakeAccount:
    """Reading a stake account through the node client"""

    async def test_returns_decoded_account(self, fake_rpc, initialized, on_chain):
        account = on_chain(initialized(lamports=3_000_000_000))

        fetched = await fetch_stake_account(fake_rpc, account.address)

        assert fetched == account
        fake_rpc.get_account.assert_awaited_once_with(account.address)

    async def test_missing_account(self, fake_rpc):
        address = Pubkey.new_unique()
        with pytest.raises(AccountNotFoundError) as exc_info:
            await fetch_stake_account(fake_rpc, address)
        assert exc_info.value.address == address

    async def test_wrong_owner(self, fake_rpc, initialized, on_chain):
        account = on_chain(initialized(), owner=SYSTEM_PROGRAM_ID)

        with pytest.raises(OwnershipError) as exc_info:
            await fetch_stake_account(fake_rpc, account.address)
        assert exc_info.value.expected_owner == STAKE_PROGRAM_ID
        assert exc_info.value.actual_owner == SYSTEM_PROGRAM_ID

    async def test_undecodable_data(self, fake_rpc):
        address = Pubkey.new_unique()
        fake_rpc.get_account.return_value = AccountInfo(
            address=address, owner=STAKE_PROGRAM_ID, lamports=1, data=b"\x07\x00"
        )
        with pytest.raises(DecodeError):
            await fetch_stake_account(fake_rpc, address)

    async def test_network_error_propagates(self, fake_rpc):
        fake_rpc.get_account.side_effect = NetworkError("connection refused")
        with pytest.raises(NetworkError):
            await fetch_stake_account(fake_rpc, Pubkey.new_unique())
