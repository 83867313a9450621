"""
Cluster and vote account queries.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

from solders.pubkey import Pubkey

from .exceptions import AccountNotFoundError
from .rpc import EpochInfo

# Configure logger
logger = logging.getLogger("stake_wallet.cluster")


class ClusterCommand(Enum):
    """Commands related to the cluster as a whole"""

    EPOCH_INFO = "Epoch Info"
    CURRENT_SLOT = "Current Slot"
    BLOCK_HEIGHT = "Block Height"
    CLUSTER_VERSION = "Cluster Version"
    VALIDATORS = "Validators"
    GO_BACK = "Go Back"

    def __str__(self):
        return self.value


class VoteCommand(Enum):
    """Commands related to vote accounts"""

    SHOW_VOTE_ACCOUNT = "Show Vote Account"
    GO_BACK = "Go Back"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ValidatorInfo:
    vote_pubkey: Pubkey
    node_pubkey: Pubkey
    activated_stake: int
    commission: int
    last_vote: int
    root_slot: int
    delinquent: bool


def _validator_info(entry, delinquent: bool) -> ValidatorInfo:
    return ValidatorInfo(
        vote_pubkey=Pubkey.from_string(str(entry.vote_pubkey)),
        node_pubkey=Pubkey.from_string(str(entry.node_pubkey)),
        activated_stake=entry.activated_stake,
        commission=entry.commission,
        last_vote=entry.last_vote,
        root_slot=entry.root_slot,
        delinquent=delinquent,
    )


class ClusterManager:
    def __init__(self, ctx):
        self.ctx = ctx

    async def epoch_info(self) -> EpochInfo:
        return await self.ctx.rpc.get_epoch_info()

    async def current_slot(self) -> int:
        return await self.ctx.rpc.get_slot()

    async def block_height(self) -> int:
        return await self.ctx.rpc.get_block_height()

    async def cluster_version(self) -> str:
        return await self.ctx.rpc.get_version()

    async def validators(self) -> List[ValidatorInfo]:
        """Current and delinquent validators, largest stake first"""
        vote_accounts = await self.ctx.rpc.get_vote_accounts()
        validators = [_validator_info(entry, False) for entry in vote_accounts.current]
        validators.extend(_validator_info(entry, True) for entry in vote_accounts.delinquent)
        validators.sort(key=lambda v: v.activated_stake, reverse=True)
        return validators

    async def vote_account(self, vote_pubkey: Pubkey) -> ValidatorInfo:
        for validator in await self.validators():
            if validator.vote_pubkey == vote_pubkey:
                return validator
        logger.info(f"Vote account {vote_pubkey} not among current or delinquent validators")
        raise AccountNotFoundError(vote_pubkey)
