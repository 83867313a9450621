"""
Stake account operations.

Every mutating command runs the same pipeline: read the account(s) fresh,
validate the transition locally, build the instructions, then sign, submit
and confirm. Nothing is locked between the read and the write; if the
account changes in between, the stake program rejects the transaction and
the rejection is reported as-is.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from solders.pubkey import Pubkey
from solders.signature import Signature

from .config import HISTORY_LIMIT
from .exceptions import DenyReason, ValidationDenied, ValidationError
from .history import HistoryEntry, fetch_history
from .stake_instructions import (
    CreateWithSeedParams,
    create_account_with_seed_instructions,
    deactivate_stake,
    delegate_stake,
    merge,
    split_with_seed_instructions,
    stake_address_with_seed,
    withdraw,
)
from .stake_state import STAKE_ACCOUNT_SIZE, StakeAccount, activation_status, fetch_stake_account
from .validator import (
    ApprovedCreate,
    ApprovedDeactivate,
    ApprovedDelegate,
    ApprovedMerge,
    ApprovedSplit,
    ApprovedWithdraw,
    CreateRequest,
    DeactivateRequest,
    DelegateRequest,
    MergeRequest,
    OperationRequest,
    SplitRequest,
    WithdrawRequest,
    validate_create,
    validate_deactivate,
    validate_delegate,
    validate_merge,
    validate_split,
    validate_withdraw,
)

# Configure logger
logger = logging.getLogger("stake_wallet.stakes")

MAX_SEED_LEN = 32


class StakeCommand(Enum):
    """Commands related to staking operations"""

    CREATE = "Create"
    DELEGATE = "Delegate"
    DEACTIVATE = "Deactivate"
    WITHDRAW = "Withdraw"
    MERGE = "Merge"
    SPLIT = "Split"
    SHOW = "Show"
    HISTORY = "History"
    GO_BACK = "Go Back"

    @property
    def spinner_msg(self) -> str:
        return _SPINNER_MESSAGES[self]

    def __str__(self):
        return self.value


_SPINNER_MESSAGES = {
    StakeCommand.CREATE: "Creating new stake account…",
    StakeCommand.DELEGATE: "Delegating stake to validator…",
    StakeCommand.DEACTIVATE: "Deactivating stake (cooldown starting)…",
    StakeCommand.WITHDRAW: "Withdrawing SOL from deactivated stake…",
    StakeCommand.MERGE: "Merging stake accounts…",
    StakeCommand.SPLIT: "Splitting stake into multiple accounts…",
    StakeCommand.SHOW: "Fetching stake account details…",
    StakeCommand.HISTORY: "Fetching stake account history…",
    StakeCommand.GO_BACK: "Going back…",
}


@dataclass(frozen=True)
class TransactionOutcome:
    signature: Signature
    stake_account: Pubkey
    action: object


@dataclass(frozen=True)
class StakeAccountView:
    account: StakeAccount
    status: str
    current_epoch: int


def check_seed(seed: str) -> str:
    seed = (seed or "").strip()
    if not seed:
        raise ValidationError("Seed cannot be empty")
    if len(seed.encode()) > MAX_SEED_LEN:
        raise ValidationError(f"Seed must be at most {MAX_SEED_LEN} bytes, got {len(seed.encode())}")
    return seed


class StakeManager:
    def __init__(self, ctx, transaction_manager):
        self.ctx = ctx
        self.transaction_manager = transaction_manager

    async def _current_epoch(self) -> int:
        epoch_info = await self.ctx.rpc.get_epoch_info()
        return epoch_info.epoch

    async def _approve(self, request: OperationRequest):
        """Read fresh state and run the transition rules for a request"""
        caller = self.ctx.pubkey
        rpc = self.ctx.rpc

        if isinstance(request, DeactivateRequest):
            account = await fetch_stake_account(rpc, request.target)
            return validate_deactivate(request, account, caller)

        if isinstance(request, WithdrawRequest):
            account = await fetch_stake_account(rpc, request.target)
            return validate_withdraw(request, account, caller, await self._current_epoch())

        if isinstance(request, DelegateRequest):
            account = await fetch_stake_account(rpc, request.target)
            return validate_delegate(request, account, caller, await self._current_epoch())

        if isinstance(request, MergeRequest):
            destination = await fetch_stake_account(rpc, request.target)
            source = await fetch_stake_account(rpc, request.source)
            return validate_merge(request, destination, source, caller, await self._current_epoch())

        if isinstance(request, SplitRequest):
            request = replace(request, seed=check_seed(request.seed))
            account = await fetch_stake_account(rpc, request.target)
            split_stake = stake_address_with_seed(caller, request.seed)
            await self._require_unused(split_stake)
            return validate_split(request, account, caller, split_stake)

        if isinstance(request, CreateRequest):
            request = replace(request, seed=check_seed(request.seed))
            stake = stake_address_with_seed(caller, request.seed)
            await self._require_unused(stake)
            balance = await rpc.get_balance(caller)
            rent_exempt_minimum = await rpc.get_minimum_balance_for_rent_exemption(STAKE_ACCOUNT_SIZE)
            return validate_create(request, caller, stake, balance, rent_exempt_minimum)

        raise TypeError(f"Unknown stake operation: {request!r}")

    async def _require_unused(self, address: Pubkey):
        if await self.ctx.rpc.get_account(address) is not None:
            raise ValidationDenied(
                DenyReason.WRONG_STATE,
                f"Account {address} already exists. Choose a different seed.",
                {"address": address},
            )

    def build_instructions(self, action):
        """Turn an approved action into stake program instructions"""
        if isinstance(action, ApprovedDeactivate):
            return action.stake, [deactivate_stake(action.stake, action.authority)]
        if isinstance(action, ApprovedWithdraw):
            return action.stake, [withdraw(action.stake, action.withdrawer, action.recipient, action.lamports)]
        if isinstance(action, ApprovedDelegate):
            return action.stake, [delegate_stake(action.stake, action.authority, action.vote_account)]
        if isinstance(action, ApprovedMerge):
            return action.destination, [merge(action.destination, action.source, action.authority)]
        if isinstance(action, ApprovedSplit):
            return action.split_stake, split_with_seed_instructions(
                action.stake, action.authority, action.lamports, action.split_stake,
                base=action.authority, seed=action.seed,
            )
        if isinstance(action, ApprovedCreate):
            return action.stake, create_account_with_seed_instructions(
                CreateWithSeedParams(
                    from_pubkey=action.funder,
                    stake_pubkey=action.stake,
                    seed=action.seed,
                    lamports=action.lamports,
                    authorized=action.authorized,
                )
            )
        raise TypeError(f"Unknown approved action: {action!r}")

    async def execute(self, request: OperationRequest) -> TransactionOutcome:
        """Validate, build and submit one stake operation"""
        action = await self._approve(request)
        stake_account, instructions = self.build_instructions(action)
        logger.info(f"{type(request).__name__} approved for {stake_account}")
        signature = await self.transaction_manager.submit(instructions, [self.ctx.keypair])
        return TransactionOutcome(signature=signature, stake_account=stake_account, action=action)

    async def create_stake_account(self, amount_lamports: int, seed: str) -> TransactionOutcome:
        return await self.execute(CreateRequest(amount_lamports=amount_lamports, seed=seed))

    async def delegate_stake(self, stake: Pubkey, vote_account: Pubkey) -> TransactionOutcome:
        return await self.execute(DelegateRequest(target=stake, vote_account=vote_account))

    async def deactivate_stake(self, stake: Pubkey) -> TransactionOutcome:
        return await self.execute(DeactivateRequest(target=stake))

    async def withdraw_stake(self, stake: Pubkey, recipient: Pubkey, amount_lamports: int) -> TransactionOutcome:
        return await self.execute(WithdrawRequest(target=stake, recipient=recipient, amount_lamports=amount_lamports))

    async def merge_stakes(self, destination: Pubkey, source: Pubkey) -> TransactionOutcome:
        return await self.execute(MergeRequest(target=destination, source=source))

    async def split_stake(self, stake: Pubkey, amount_lamports: int, seed: str) -> TransactionOutcome:
        return await self.execute(SplitRequest(target=stake, amount_lamports=amount_lamports, seed=seed))

    async def show_stake_account(self, stake: Pubkey) -> StakeAccountView:
        account = await fetch_stake_account(self.ctx.rpc, stake)
        current_epoch = await self._current_epoch()
        return StakeAccountView(
            account=account,
            status=activation_status(account.state, current_epoch),
            current_epoch=current_epoch,
        )

    async def stake_history(self, stake: Pubkey, limit: Optional[int] = None) -> List[HistoryEntry]:
        # Only report history for real stake accounts
        await fetch_stake_account(self.ctx.rpc, stake)
        return await fetch_history(self.ctx.rpc, stake, limit or HISTORY_LIMIT)
