"""
Stake transition rules.

Each ``validate_*`` function is pure: it looks only at the freshly read
account(s), the caller's public key and the current epoch, and either returns
the parameters needed to build the instruction(s) or raises
``ValidationDenied``. The checks are an optimistic pre-flight; the stake
program on the node remains the final authority.
"""
import logging
from dataclasses import dataclass
from typing import Union

from solders.pubkey import Pubkey

from .exceptions import DenyReason, ValidationDenied
from .stake_state import (
    Authorized,
    Delegated,
    Initialized,
    RewardsPool,
    StakeAccount,
    Uninitialized,
    activation_status,
)
from .utils import lamports_to_sol

# Configure logger
logger = logging.getLogger("stake_wallet.validator")


# Operation requests

@dataclass(frozen=True)
class CreateRequest:
    amount_lamports: int
    seed: str


@dataclass(frozen=True)
class DelegateRequest:
    target: Pubkey
    vote_account: Pubkey


@dataclass(frozen=True)
class DeactivateRequest:
    target: Pubkey


@dataclass(frozen=True)
class WithdrawRequest:
    target: Pubkey
    recipient: Pubkey
    amount_lamports: int


@dataclass(frozen=True)
class MergeRequest:
    target: Pubkey
    source: Pubkey


@dataclass(frozen=True)
class SplitRequest:
    target: Pubkey
    amount_lamports: int
    seed: str


OperationRequest = Union[CreateRequest, DelegateRequest, DeactivateRequest, WithdrawRequest, MergeRequest, SplitRequest]


# Approved actions

@dataclass(frozen=True)
class ApprovedCreate:
    funder: Pubkey
    stake: Pubkey
    seed: str
    lamports: int
    authorized: Authorized


@dataclass(frozen=True)
class ApprovedDelegate:
    stake: Pubkey
    authority: Pubkey
    vote_account: Pubkey


@dataclass(frozen=True)
class ApprovedDeactivate:
    stake: Pubkey
    authority: Pubkey


@dataclass(frozen=True)
class ApprovedWithdraw:
    stake: Pubkey
    withdrawer: Pubkey
    recipient: Pubkey
    lamports: int


@dataclass(frozen=True)
class ApprovedMerge:
    destination: Pubkey
    source: Pubkey
    authority: Pubkey


@dataclass(frozen=True)
class ApprovedSplit:
    stake: Pubkey
    authority: Pubkey
    lamports: int
    split_stake: Pubkey
    seed: str


ApprovedAction = Union[ApprovedCreate, ApprovedDelegate, ApprovedDeactivate, ApprovedWithdraw, ApprovedMerge, ApprovedSplit]


def _deny(reason: DenyReason, message: str, **details) -> ValidationDenied:
    logger.info(f"Denied ({reason.value}): {message}")
    return ValidationDenied(reason, message, details)


def _require_staker(account: StakeAccount, caller: Pubkey):
    staker = account.state.authorized_staker
    if staker != caller:
        raise _deny(
            DenyReason.NOT_AUTHORIZED,
            f"You are not the authorized staker of {account.address}. Authorized staker: {staker}",
            authorized_staker=staker, caller=caller,
        )


def _require_withdrawer(account: StakeAccount, caller: Pubkey):
    withdrawer = account.state.authorized_withdrawer
    if withdrawer != caller:
        raise _deny(
            DenyReason.NOT_AUTHORIZED,
            f"You are not the authorized withdrawer of {account.address}. Authorized withdrawer: {withdrawer}",
            authorized_withdrawer=withdrawer, caller=caller,
        )


def _deny_unusable(account: StakeAccount):
    """Refuse the two states no user operation can act on."""
    if isinstance(account.state, Uninitialized):
        raise _deny(DenyReason.UNINITIALIZED, f"Stake account {account.address} is uninitialized")
    if isinstance(account.state, RewardsPool):
        raise _deny(DenyReason.REWARDS_POOL, f"Stake account {account.address} is a rewards pool")


def _require_amount(amount_lamports: int):
    if amount_lamports <= 0:
        raise _deny(
            DenyReason.INVALID_AMOUNT,
            f"Amount must be greater than 0 lamports, got {amount_lamports}",
            requested=amount_lamports,
        )


def validate_deactivate(request: DeactivateRequest, account: StakeAccount, caller: Pubkey) -> ApprovedDeactivate:
    """Deactivation needs an active delegation and the staker's signature."""
    state = account.state
    if isinstance(state, Delegated):
        if not state.is_active():
            raise _deny(
                DenyReason.ALREADY_DEACTIVATING,
                f"Stake is already deactivating at epoch {state.deactivation_epoch}",
                deactivation_epoch=state.deactivation_epoch,
            )
        _require_staker(account, caller)
        return ApprovedDeactivate(stake=request.target, authority=caller)
    if isinstance(state, Initialized):
        raise _deny(DenyReason.WRONG_STATE, "Stake account is initialized but not delegated", state="initialized")
    raise _deny(
        DenyReason.WRONG_STATE,
        f"Stake account is not in a valid state for deactivation ({type(state).__name__})",
        state=type(state).__name__.lower(),
    )


def validate_withdraw(request: WithdrawRequest, account: StakeAccount, caller: Pubkey, current_epoch: int) -> ApprovedWithdraw:
    """Withdrawal needs the withdrawer, a fully cooled-down (or undelegated) stake and enough lamports."""
    _require_amount(request.amount_lamports)
    state = account.state
    _deny_unusable(account)
    _require_withdrawer(account, caller)

    if isinstance(state, Delegated):
        if state.is_active():
            raise _deny(
                DenyReason.STILL_ACTIVE,
                "Stake is still active. You must deactivate it first and wait for the cooldown period.",
                deactivation_epoch=state.deactivation_epoch,
            )
        if current_epoch <= state.deactivation_epoch:
            epochs_remaining = state.deactivation_epoch - current_epoch
            raise _deny(
                DenyReason.COOLING_DOWN,
                f"Stake is still cooling down. Current epoch: {current_epoch}, "
                f"deactivation epoch: {state.deactivation_epoch}, epochs remaining: {epochs_remaining}",
                current_epoch=current_epoch,
                deactivation_epoch=state.deactivation_epoch,
                epochs_remaining=epochs_remaining,
            )

    if request.amount_lamports > account.lamports:
        raise _deny(
            DenyReason.INSUFFICIENT_BALANCE,
            f"Insufficient balance. Have {lamports_to_sol(account.lamports):.6f} SOL, "
            f"trying to withdraw {lamports_to_sol(request.amount_lamports):.6f} SOL",
            available=account.lamports, requested=request.amount_lamports,
        )
    reserve = state.meta.rent_exempt_reserve
    remaining = account.lamports - request.amount_lamports
    if 0 < remaining < reserve:
        raise _deny(
            DenyReason.BELOW_RENT_EXEMPTION,
            f"Withdrawing {request.amount_lamports} lamports would leave {remaining} lamports, "
            f"below the rent-exempt reserve of {reserve} lamports. Withdraw the full balance or leave the reserve.",
            remaining=remaining, rent_exempt_reserve=reserve,
        )

    return ApprovedWithdraw(
        stake=request.target,
        withdrawer=caller,
        recipient=request.recipient,
        lamports=request.amount_lamports,
    )


def validate_delegate(request: DelegateRequest, account: StakeAccount, caller: Pubkey, current_epoch: int) -> ApprovedDelegate:
    """Delegation needs the staker and a stake that is not already delegated elsewhere."""
    state = account.state
    _deny_unusable(account)
    _require_staker(account, caller)

    if isinstance(state, Delegated):
        if state.is_active():
            raise _deny(
                DenyReason.ALREADY_DELEGATED,
                f"Stake is already delegated to {state.delegation.voter_pubkey}. Deactivate it first to redelegate.",
                voter=state.delegation.voter_pubkey,
            )
        if current_epoch <= state.deactivation_epoch and state.delegation.voter_pubkey != request.vote_account:
            # Only the original voter may be re-delegated to while cooling down (rescinds the deactivation)
            epochs_remaining = state.deactivation_epoch - current_epoch
            raise _deny(
                DenyReason.COOLING_DOWN,
                f"Stake delegated to {state.delegation.voter_pubkey} is still cooling down. "
                f"Current epoch: {current_epoch}, deactivation epoch: {state.deactivation_epoch}, "
                f"epochs remaining: {epochs_remaining}",
                current_epoch=current_epoch,
                deactivation_epoch=state.deactivation_epoch,
                epochs_remaining=epochs_remaining,
                voter=state.delegation.voter_pubkey,
            )

    delegatable = account.lamports - state.meta.rent_exempt_reserve
    if delegatable <= 0:
        raise _deny(
            DenyReason.INSUFFICIENT_BALANCE,
            f"Nothing to delegate. Balance {lamports_to_sol(account.lamports):.6f} SOL does not exceed "
            f"the rent-exempt reserve of {lamports_to_sol(state.meta.rent_exempt_reserve):.6f} SOL",
            available=account.lamports, rent_exempt_reserve=state.meta.rent_exempt_reserve,
        )

    return ApprovedDelegate(stake=request.target, authority=caller, vote_account=request.vote_account)


# (destination, source) merge kinds the stake program accepts
MERGEABLE_KINDS = {
    ("inactive", "inactive"),
    ("inactive", "activation_epoch"),
    ("activation_epoch", "inactive"),
    ("activation_epoch", "activation_epoch"),
    ("active", "active"),
}


def _merge_kind(account: StakeAccount, current_epoch: int) -> str:
    """
    Classify an account for merging.

    A delegation made in the current epoch has no effective stake yet and is
    its own kind. Deactivating stakes are transient and never mergeable.
    """
    state = account.state
    status = activation_status(state, current_epoch)
    if status in ("inactive", "deactivated"):
        return "inactive"
    if status == "activating" and state.activation_epoch == current_epoch:
        return "activation_epoch"
    if status == "active":
        return "active"
    raise _deny(
        DenyReason.INCOMPATIBLE_STATE,
        f"Stake account {account.address} is {status} at epoch {current_epoch} and cannot be merged",
        address=account.address, status=status, current_epoch=current_epoch,
    )


def validate_merge(request: MergeRequest, destination: StakeAccount, source: StakeAccount,
                   caller: Pubkey, current_epoch: int) -> ApprovedMerge:
    """Merging needs two distinct accounts with equal authorities in compatible activation states."""
    if request.target == request.source:
        raise _deny(DenyReason.SAME_ACCOUNT, f"Cannot merge stake account {request.target} into itself")

    for account in (destination, source):
        if not isinstance(account.state, (Initialized, Delegated)):
            raise _deny(
                DenyReason.WRONG_STATE,
                f"Stake account {account.address} is not in a valid state for merging ({type(account.state).__name__})",
                address=account.address, state=type(account.state).__name__.lower(),
            )
        _require_staker(account, caller)

    dest_meta, source_meta = destination.meta, source.meta
    if dest_meta.authorized != source_meta.authorized or dest_meta.lockup != source_meta.lockup:
        raise _deny(
            DenyReason.AUTHORITY_MISMATCH,
            f"Authorities or lockups differ. Destination staker/withdrawer: "
            f"{dest_meta.authorized.staker}/{dest_meta.authorized.withdrawer}, source: "
            f"{source_meta.authorized.staker}/{source_meta.authorized.withdrawer}",
            destination_authorized=dest_meta.authorized, source_authorized=source_meta.authorized,
        )

    dest_kind = _merge_kind(destination, current_epoch)
    source_kind = _merge_kind(source, current_epoch)
    if (dest_kind, source_kind) not in MERGEABLE_KINDS:
        raise _deny(
            DenyReason.INCOMPATIBLE_STATE,
            f"Cannot merge a {source_kind} stake into a {dest_kind} stake at epoch {current_epoch}",
            destination_status=dest_kind, source_status=source_kind, current_epoch=current_epoch,
        )
    if dest_kind == source_kind != "inactive":
        dest_voter = destination.state.delegation.voter_pubkey
        source_voter = source.state.delegation.voter_pubkey
        if dest_voter != source_voter:
            raise _deny(
                DenyReason.VOTER_MISMATCH,
                f"Stakes are delegated to different validators: {dest_voter} and {source_voter}",
                destination_voter=dest_voter, source_voter=source_voter,
            )

    return ApprovedMerge(destination=request.target, source=request.source, authority=caller)


def validate_split(request: SplitRequest, account: StakeAccount, caller: Pubkey, split_stake: Pubkey) -> ApprovedSplit:
    """Splitting needs the staker and must leave both accounts rent-exempt."""
    _require_amount(request.amount_lamports)
    _deny_unusable(account)
    _require_staker(account, caller)

    reserve = account.state.meta.rent_exempt_reserve
    if request.amount_lamports > account.lamports:
        raise _deny(
            DenyReason.INSUFFICIENT_BALANCE,
            f"Insufficient balance. Have {lamports_to_sol(account.lamports):.6f} SOL, "
            f"trying to split {lamports_to_sol(request.amount_lamports):.6f} SOL",
            available=account.lamports, requested=request.amount_lamports,
        )
    if request.amount_lamports < reserve:
        raise _deny(
            DenyReason.BELOW_RENT_EXEMPTION,
            f"Split amount {request.amount_lamports} lamports is below the rent-exempt reserve of {reserve} lamports",
            requested=request.amount_lamports, rent_exempt_reserve=reserve,
        )
    remaining = account.lamports - request.amount_lamports
    if 0 < remaining < reserve:
        raise _deny(
            DenyReason.BELOW_RENT_EXEMPTION,
            f"Splitting {request.amount_lamports} lamports would leave {remaining} lamports, "
            f"below the rent-exempt reserve of {reserve} lamports",
            remaining=remaining, rent_exempt_reserve=reserve,
        )

    return ApprovedSplit(
        stake=request.target,
        authority=caller,
        lamports=request.amount_lamports,
        split_stake=split_stake,
        seed=request.seed,
    )


def validate_create(request: CreateRequest, caller: Pubkey, stake: Pubkey,
                    wallet_balance: int, rent_exempt_minimum: int) -> ApprovedCreate:
    """Creation needs a rent-exempt deposit the caller can afford."""
    _require_amount(request.amount_lamports)
    if request.amount_lamports < rent_exempt_minimum:
        raise _deny(
            DenyReason.BELOW_RENT_EXEMPTION,
            f"Deposit of {request.amount_lamports} lamports is below the rent-exempt minimum "
            f"of {rent_exempt_minimum} lamports",
            requested=request.amount_lamports, rent_exempt_minimum=rent_exempt_minimum,
        )
    if request.amount_lamports > wallet_balance:
        raise _deny(
            DenyReason.INSUFFICIENT_BALANCE,
            f"Insufficient balance. Have {lamports_to_sol(wallet_balance):.6f} SOL, "
            f"trying to deposit {lamports_to_sol(request.amount_lamports):.6f} SOL",
            available=wallet_balance, requested=request.amount_lamports,
        )
    return ApprovedCreate(
        funder=caller,
        stake=stake,
        seed=request.seed,
        lamports=request.amount_lamports,
        authorized=Authorized(staker=caller, withdrawer=caller),
    )
