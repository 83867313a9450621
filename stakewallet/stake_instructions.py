"""Stake program instructions."""

from enum import IntEnum
from typing import List, NamedTuple

from construct import Int32ul, Int64ul, Pass, Struct, Switch  # type: ignore
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import (
    AllocateWithSeedParams,
    CreateAccountWithSeedParams,
    allocate_with_seed,
    create_account_with_seed,
)
from solders.sysvar import CLOCK, RENT, STAKE_HISTORY

from .stake_state import AUTHORIZED_LAYOUT, LOCKUP_LAYOUT, STAKE_ACCOUNT_SIZE, STAKE_CONFIG_ID, STAKE_PROGRAM_ID
from .stake_state import Authorized, Lockup


class InstructionType(IntEnum):
    """Stake Instruction Types."""

    INITIALIZE = 0
    AUTHORIZE = 1
    DELEGATE_STAKE = 2
    SPLIT = 3
    WITHDRAW = 4
    DEACTIVATE = 5
    SET_LOCKUP = 6
    MERGE = 7


INITIALIZE_LAYOUT = Struct(
    "authorized" / AUTHORIZED_LAYOUT,
    "lockup" / LOCKUP_LAYOUT,
)

LAMPORTS_LAYOUT = Struct(
    "lamports" / Int64ul,
)

INSTRUCTIONS_LAYOUT = Struct(
    "instruction_type" / Int32ul,
    "args"
    / Switch(
        lambda this: this.instruction_type,
        {
            InstructionType.INITIALIZE: INITIALIZE_LAYOUT,
            InstructionType.DELEGATE_STAKE: Pass,
            InstructionType.SPLIT: LAMPORTS_LAYOUT,
            InstructionType.WITHDRAW: LAMPORTS_LAYOUT,
            InstructionType.DEACTIVATE: Pass,
            InstructionType.MERGE: Pass,
        },
    ),
)


class CreateWithSeedParams(NamedTuple):
    """Create-and-initialize stake account params."""

    from_pubkey: Pubkey
    """[s] Funding account, also the seed base."""
    stake_pubkey: Pubkey
    """[w] Seed-derived stake account to create."""
    seed: str
    lamports: int
    authorized: Authorized
    lockup: Lockup = Lockup()


def stake_address_with_seed(base: Pubkey, seed: str) -> Pubkey:
    """Derive the stake account address owned by the stake program for ``base`` and ``seed``."""
    return Pubkey.create_with_seed(base, seed, STAKE_PROGRAM_ID)


def initialize(stake_pubkey: Pubkey, authorized: Authorized, lockup: Lockup = Lockup()) -> Instruction:
    """Creates an instruction to initialize a stake account's authorities and lockup."""
    data = INSTRUCTIONS_LAYOUT.build(
        dict(
            instruction_type=InstructionType.INITIALIZE,
            args=dict(
                authorized=dict(staker=bytes(authorized.staker), withdrawer=bytes(authorized.withdrawer)),
                lockup=dict(
                    unix_timestamp=lockup.unix_timestamp,
                    epoch=lockup.epoch,
                    custodian=bytes(lockup.custodian),
                ),
            ),
        )
    )
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=data,
    )


def delegate_stake(stake_pubkey: Pubkey, authorized_pubkey: Pubkey, vote_pubkey: Pubkey) -> Instruction:
    """Creates an instruction to delegate a stake account to a vote account."""
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=vote_pubkey, is_signer=False, is_writable=False),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_CONFIG_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authorized_pubkey, is_signer=True, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=INSTRUCTIONS_LAYOUT.build(dict(instruction_type=InstructionType.DELEGATE_STAKE, args=None)),
    )


def split(stake_pubkey: Pubkey, authorized_pubkey: Pubkey, lamports: int, split_stake_pubkey: Pubkey) -> Instruction:
    """Creates an instruction to move ``lamports`` from a stake account into an allocated split account."""
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=split_stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=authorized_pubkey, is_signer=True, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=INSTRUCTIONS_LAYOUT.build(
            dict(instruction_type=InstructionType.SPLIT, args=dict(lamports=lamports))
        ),
    )


def withdraw(stake_pubkey: Pubkey, withdrawer_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
    """Creates an instruction to withdraw lamports from a stake account."""
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=to_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=withdrawer_pubkey, is_signer=True, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=INSTRUCTIONS_LAYOUT.build(
            dict(instruction_type=InstructionType.WITHDRAW, args=dict(lamports=lamports))
        ),
    )


def deactivate_stake(stake_pubkey: Pubkey, authorized_pubkey: Pubkey) -> Instruction:
    """Creates an instruction to start the cooldown of a delegated stake."""
    return Instruction(
        accounts=[
            AccountMeta(pubkey=stake_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authorized_pubkey, is_signer=True, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=INSTRUCTIONS_LAYOUT.build(dict(instruction_type=InstructionType.DEACTIVATE, args=None)),
    )


def merge(destination_pubkey: Pubkey, source_pubkey: Pubkey, authorized_pubkey: Pubkey) -> Instruction:
    """Creates an instruction to merge the source stake account into the destination."""
    return Instruction(
        accounts=[
            AccountMeta(pubkey=destination_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=source_pubkey, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authorized_pubkey, is_signer=True, is_writable=False),
        ],
        program_id=STAKE_PROGRAM_ID,
        data=INSTRUCTIONS_LAYOUT.build(dict(instruction_type=InstructionType.MERGE, args=None)),
    )


def create_account_with_seed_instructions(params: CreateWithSeedParams) -> List[Instruction]:
    """Creates the system + stake instructions that fund and initialize a seed-derived stake account."""
    return [
        create_account_with_seed(
            CreateAccountWithSeedParams(
                from_pubkey=params.from_pubkey,
                to_pubkey=params.stake_pubkey,
                base=params.from_pubkey,
                seed=params.seed,
                lamports=params.lamports,
                space=STAKE_ACCOUNT_SIZE,
                owner=STAKE_PROGRAM_ID,
            )
        ),
        initialize(params.stake_pubkey, params.authorized, params.lockup),
    ]


def split_with_seed_instructions(
    stake_pubkey: Pubkey,
    authorized_pubkey: Pubkey,
    lamports: int,
    split_stake_pubkey: Pubkey,
    base: Pubkey,
    seed: str,
) -> List[Instruction]:
    """Creates the allocate + split instructions for splitting into a seed-derived account."""
    return [
        allocate_with_seed(
            AllocateWithSeedParams(
                address=split_stake_pubkey,
                base=base,
                seed=seed,
                space=STAKE_ACCOUNT_SIZE,
                owner=STAKE_PROGRAM_ID,
            )
        ),
        split(stake_pubkey, authorized_pubkey, lamports, split_stake_pubkey),
    ]
