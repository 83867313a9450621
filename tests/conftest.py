"""
Shared fixtures: a wallet keypair, a fake node client and stake account builders.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from stakewallet.config import WalletConfig
from stakewallet.context import WalletContext
from stakewallet.rpc import AccountInfo, EpochInfo
from stakewallet.stake_state import (
    ACTIVE_STAKE_EPOCH_BOUND,
    STAKE_ACCOUNT_SIZE,
    STAKE_PROGRAM_ID,
    STAKE_STATE_LAYOUT,
    STATE_INITIALIZED,
    STATE_REWARDS_POOL,
    STATE_STAKE,
    STATE_UNINITIALIZED,
    Authorized,
    Delegated,
    Delegation,
    Initialized,
    Meta,
    RewardsPool,
    StakeAccount,
    Uninitialized,
)

RENT_EXEMPT_RESERVE = 2_282_880
CURRENT_EPOCH = 500


def _meta_container(meta):
    return dict(
        rent_exempt_reserve=meta.rent_exempt_reserve,
        authorized=dict(
            staker=bytes(meta.authorized.staker),
            withdrawer=bytes(meta.authorized.withdrawer),
        ),
        lockup=dict(
            unix_timestamp=meta.lockup.unix_timestamp,
            epoch=meta.lockup.epoch,
            custodian=bytes(meta.lockup.custodian),
        ),
    )


def encode_stake_state(state):
    """Serialize a state variant into zero-padded stake account data, as the node would hold it."""
    if isinstance(state, Uninitialized):
        data = STAKE_STATE_LAYOUT.build(dict(state_type=STATE_UNINITIALIZED, state=None))
    elif isinstance(state, Initialized):
        data = STAKE_STATE_LAYOUT.build(dict(state_type=STATE_INITIALIZED, state=_meta_container(state.meta)))
    elif isinstance(state, Delegated):
        delegation = state.delegation
        data = STAKE_STATE_LAYOUT.build(dict(
            state_type=STATE_STAKE,
            state=dict(
                meta=_meta_container(state.meta),
                stake=dict(
                    delegation=dict(
                        voter_pubkey=bytes(delegation.voter_pubkey),
                        stake=delegation.stake,
                        activation_epoch=delegation.activation_epoch,
                        deactivation_epoch=delegation.deactivation_epoch,
                        warmup_cooldown_rate=delegation.warmup_cooldown_rate,
                    ),
                    credits_observed=state.credits_observed,
                ),
                stake_flags=state.stake_flags,
            ),
        ))
    elif isinstance(state, RewardsPool):
        data = STAKE_STATE_LAYOUT.build(dict(state_type=STATE_REWARDS_POOL, state=None))
    else:
        raise TypeError(f"Not a stake state: {state!r}")
    return data.ljust(STAKE_ACCOUNT_SIZE, b"\x00")


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def wallet(keypair):
    return keypair.pubkey()


@pytest.fixture
def other():
    """An address that is not the wallet."""
    return Pubkey.new_unique()


@pytest.fixture
def vote_account():
    return Pubkey.new_unique()


@pytest.fixture
def config():
    return WalletConfig(
        network='devnet',
        rpc_url='https://api.devnet.solana.com',
        commitment='confirmed',
        keypair_path='/tmp/id.json',
        explorer_url='https://explorer.solana.com/?cluster=devnet',
    )


@pytest.fixture
def fake_rpc():
    """Node client double with every call awaitable and a fixed epoch."""
    rpc = MagicMock()
    rpc.get_account = AsyncMock(return_value=None)
    rpc.get_latest_blockhash = AsyncMock(return_value=Hash.new_unique())
    rpc.get_epoch_info = AsyncMock(return_value=EpochInfo(epoch=CURRENT_EPOCH))
    rpc.send_and_confirm = AsyncMock(return_value=Signature.new_unique())
    rpc.get_signatures_for_address = AsyncMock(return_value=[])
    rpc.get_balance = AsyncMock(return_value=0)
    rpc.get_minimum_balance_for_rent_exemption = AsyncMock(return_value=RENT_EXEMPT_RESERVE)
    rpc.request_airdrop = AsyncMock(return_value=Signature.new_unique())
    rpc.get_signature_status = AsyncMock(return_value=None)
    rpc.get_largest_accounts = AsyncMock(return_value=[])
    rpc.get_slot = AsyncMock(return_value=0)
    rpc.get_block_height = AsyncMock(return_value=0)
    rpc.get_version = AsyncMock(return_value="1.18.0")
    rpc.get_vote_accounts = AsyncMock()
    rpc.close = AsyncMock()
    return rpc


@pytest.fixture
def ctx(fake_rpc, keypair, config):
    return WalletContext(rpc=fake_rpc, keypair=keypair, config=config)


@pytest.fixture
def make_meta(wallet):
    def _make(staker=None, withdrawer=None, reserve=RENT_EXEMPT_RESERVE):
        staker = staker or wallet
        return Meta(
            rent_exempt_reserve=reserve,
            authorized=Authorized(staker=staker, withdrawer=withdrawer or staker),
        )
    return _make


@pytest.fixture
def initialized(make_meta):
    """Build an Initialized stake account."""
    def _make(lamports=10 * 10**9, address=None, **meta_kwargs):
        return StakeAccount(
            address=address or Pubkey.new_unique(),
            state=Initialized(meta=make_meta(**meta_kwargs)),
            lamports=lamports,
        )
    return _make


@pytest.fixture
def delegated(make_meta, vote_account):
    """Build a Delegated stake account; active unless a deactivation epoch is given."""
    def _make(lamports=10 * 10**9, address=None, voter=None, activation_epoch=100,
              deactivation_epoch=ACTIVE_STAKE_EPOCH_BOUND, **meta_kwargs):
        meta = make_meta(**meta_kwargs)
        return StakeAccount(
            address=address or Pubkey.new_unique(),
            state=Delegated(
                meta=meta,
                delegation=Delegation(
                    voter_pubkey=voter or vote_account,
                    stake=lamports - meta.rent_exempt_reserve,
                    activation_epoch=activation_epoch,
                    deactivation_epoch=deactivation_epoch,
                ),
            ),
            lamports=lamports,
        )
    return _make


@pytest.fixture
def on_chain(fake_rpc):
    """Serve stake accounts from the fake node as raw stake-program-owned data."""
    accounts = {}

    async def get_account(address):
        return accounts.get(address)

    def _put(account, owner=STAKE_PROGRAM_ID):
        accounts[account.address] = AccountInfo(
            address=account.address,
            owner=owner,
            lamports=account.lamports,
            data=encode_stake_state(account.state),
        )
        return account

    fake_rpc.get_account.side_effect = get_account
    return _put
