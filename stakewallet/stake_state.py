"""Stake account state: binary layouts, decoded variants and the account reader."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from construct import Bytes, Float64l, Int8ul, Int32ul, Int64sl, Int64ul, Pass, Struct, Switch, this  # type: ignore
from construct import ConstructError  # type: ignore
from solders.pubkey import Pubkey

from .exceptions import AccountNotFoundError, DecodeError, OwnershipError
from .utils import U64_MAX

# Configure logger
logger = logging.getLogger("stake_wallet.stake_state")

STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")
"""Public key that identifies the Stake program."""

STAKE_CONFIG_ID = Pubkey.from_string("StakeConfig11111111111111111111111111111111")
"""Public key of the (deprecated but still required) stake config account."""

STAKE_ACCOUNT_SIZE: int = 200
"""Size of a stake account's data."""

ACTIVE_STAKE_EPOCH_BOUND: int = U64_MAX
"""Deactivation epoch of a stake that is not deactivating."""

PUBKEY_LAYOUT = Bytes(32)

AUTHORIZED_LAYOUT = Struct(
    "staker" / PUBKEY_LAYOUT,
    "withdrawer" / PUBKEY_LAYOUT,
)

LOCKUP_LAYOUT = Struct(
    "unix_timestamp" / Int64sl,
    "epoch" / Int64ul,
    "custodian" / PUBKEY_LAYOUT,
)

META_LAYOUT = Struct(
    "rent_exempt_reserve" / Int64ul,
    "authorized" / AUTHORIZED_LAYOUT,
    "lockup" / LOCKUP_LAYOUT,
)

DELEGATION_LAYOUT = Struct(
    "voter_pubkey" / PUBKEY_LAYOUT,
    "stake" / Int64ul,
    "activation_epoch" / Int64ul,
    "deactivation_epoch" / Int64ul,
    "warmup_cooldown_rate" / Float64l,
)

STAKE_LAYOUT = Struct(
    "delegation" / DELEGATION_LAYOUT,
    "credits_observed" / Int64ul,
)

STATE_UNINITIALIZED = 0
STATE_INITIALIZED = 1
STATE_STAKE = 2
STATE_REWARDS_POOL = 3

STAKE_STATE_LAYOUT = Struct(
    "state_type" / Int32ul,
    "state"
    / Switch(
        this.state_type,
        {
            STATE_UNINITIALIZED: Pass,
            STATE_INITIALIZED: META_LAYOUT,
            STATE_STAKE: Struct(
                "meta" / META_LAYOUT,
                "stake" / STAKE_LAYOUT,
                "stake_flags" / Int8ul,
            ),
            STATE_REWARDS_POOL: Pass,
        },
    ),
)


@dataclass(frozen=True)
class Authorized:
    staker: Pubkey
    withdrawer: Pubkey


@dataclass(frozen=True)
class Lockup:
    unix_timestamp: int = 0
    epoch: int = 0
    custodian: Pubkey = Pubkey.default()


@dataclass(frozen=True)
class Meta:
    rent_exempt_reserve: int
    authorized: Authorized
    lockup: Lockup = Lockup()


@dataclass(frozen=True)
class Delegation:
    voter_pubkey: Pubkey
    stake: int
    activation_epoch: int
    deactivation_epoch: int = ACTIVE_STAKE_EPOCH_BOUND
    warmup_cooldown_rate: float = 0.25


@dataclass(frozen=True)
class Uninitialized:
    pass


@dataclass(frozen=True)
class Initialized:
    meta: Meta

    @property
    def authorized_staker(self) -> Pubkey:
        return self.meta.authorized.staker

    @property
    def authorized_withdrawer(self) -> Pubkey:
        return self.meta.authorized.withdrawer


@dataclass(frozen=True)
class Delegated:
    meta: Meta
    delegation: Delegation
    credits_observed: int = 0
    stake_flags: int = 0

    @property
    def authorized_staker(self) -> Pubkey:
        return self.meta.authorized.staker

    @property
    def authorized_withdrawer(self) -> Pubkey:
        return self.meta.authorized.withdrawer

    @property
    def activation_epoch(self) -> int:
        return self.delegation.activation_epoch

    @property
    def deactivation_epoch(self) -> int:
        return self.delegation.deactivation_epoch

    def is_active(self) -> bool:
        """True while no deactivation has been requested."""
        return self.delegation.deactivation_epoch == ACTIVE_STAKE_EPOCH_BOUND


@dataclass(frozen=True)
class RewardsPool:
    pass


StakeState = Union[Uninitialized, Initialized, Delegated, RewardsPool]


@dataclass(frozen=True)
class StakeAccount:
    """A stake account as read from the node. Never reused across operations."""

    address: Pubkey
    state: StakeState
    lamports: int

    @property
    def meta(self) -> Optional[Meta]:
        if isinstance(self.state, (Initialized, Delegated)):
            return self.state.meta
        return None


def _decode_meta(parsed) -> Meta:
    return Meta(
        rent_exempt_reserve=parsed.rent_exempt_reserve,
        authorized=Authorized(
            staker=Pubkey.from_bytes(parsed.authorized.staker),
            withdrawer=Pubkey.from_bytes(parsed.authorized.withdrawer),
        ),
        lockup=Lockup(
            unix_timestamp=parsed.lockup.unix_timestamp,
            epoch=parsed.lockup.epoch,
            custodian=Pubkey.from_bytes(parsed.lockup.custodian),
        ),
    )


def decode_stake_state(data: bytes) -> StakeState:
    """
    Decode a stake account's data into its state variant.

    Raises:
        DecodeError: If the data matches no known stake state layout
    """
    try:
        parsed = STAKE_STATE_LAYOUT.parse(data)
    except ConstructError as e:
        raise DecodeError(f"Failed to deserialize stake account: {str(e)}") from e

    if parsed.state_type == STATE_UNINITIALIZED:
        return Uninitialized()
    if parsed.state_type == STATE_INITIALIZED:
        return Initialized(meta=_decode_meta(parsed.state))
    if parsed.state_type == STATE_STAKE:
        delegation = parsed.state.stake.delegation
        return Delegated(
            meta=_decode_meta(parsed.state.meta),
            delegation=Delegation(
                voter_pubkey=Pubkey.from_bytes(delegation.voter_pubkey),
                stake=delegation.stake,
                activation_epoch=delegation.activation_epoch,
                deactivation_epoch=delegation.deactivation_epoch,
                warmup_cooldown_rate=delegation.warmup_cooldown_rate,
            ),
            credits_observed=parsed.state.stake.credits_observed,
            stake_flags=parsed.state.stake_flags,
        )
    if parsed.state_type == STATE_REWARDS_POOL:
        return RewardsPool()
    raise DecodeError(f"Failed to deserialize stake account: unknown state tag {parsed.state_type}")


def activation_status(state: StakeState, current_epoch: int) -> str:
    """
    Classify a stake by where it is in its activation lifecycle.

    Returns one of 'inactive', 'activating', 'active', 'deactivating' or 'deactivated'.
    Warmup and cooldown are taken to complete in one epoch; the cluster-wide
    rate limit from the stake history sysvar is not applied.
    """
    if not isinstance(state, Delegated):
        return "inactive"
    delegation = state.delegation
    if delegation.deactivation_epoch == ACTIVE_STAKE_EPOCH_BOUND:
        # Bootstrap stakes carry the bound as activation epoch and are always active
        if delegation.activation_epoch == ACTIVE_STAKE_EPOCH_BOUND or current_epoch > delegation.activation_epoch:
            return "active"
        return "activating"
    if delegation.activation_epoch == delegation.deactivation_epoch:
        return "deactivated"
    if current_epoch <= delegation.deactivation_epoch:
        return "deactivating"
    return "deactivated"


async def fetch_stake_account(rpc, address: Pubkey) -> StakeAccount:
    """
    Read and decode a stake account from the node.

    Args:
        rpc: Node client used for the read
        address (Pubkey): The stake account address

    Returns:
        StakeAccount: The freshly decoded account

    Raises:
        AccountNotFoundError: If the address holds no account
        OwnershipError: If the account is not owned by the stake program
        DecodeError: If the data matches no stake state layout
        NetworkError: If the node could not be reached
    """
    account = await rpc.get_account(address)
    if account is None:
        raise AccountNotFoundError(address)
    if account.owner != STAKE_PROGRAM_ID:
        logger.warning(f"Account {address} is owned by {account.owner}, not the stake program")
        raise OwnershipError(address, STAKE_PROGRAM_ID, account.owner)

    state = decode_stake_state(account.data)
    logger.debug(f"Fetched stake account {address}: {type(state).__name__}, {account.lamports} lamports")
    return StakeAccount(address=address, state=state, lamports=account.lamports)
