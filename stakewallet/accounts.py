"""
Wallet account commands: balances, transfers, airdrops and nonce accounts.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from construct import Bytes, Int32ul, Int64ul, Pass, Struct, Switch, this  # type: ignore
from construct import ConstructError  # type: ignore
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import TransferParams, transfer

from .config import AIRDROP_LAMPORTS
from .exceptions import AccountNotFoundError, DecodeError, DenyReason, OwnershipError, ValidationDenied
from .utils import lamports_to_sol

# Configure logger
logger = logging.getLogger("stake_wallet.accounts")

NONCE_STATE_LAYOUT = Struct(
    "version" / Int32ul,
    "state_type" / Int32ul,
    "data"
    / Switch(
        this.state_type,
        {
            0: Pass,
            1: Struct(
                "authority" / Bytes(32),
                "durable_nonce" / Bytes(32),
                "lamports_per_signature" / Int64ul,
            ),
        },
    ),
)


class AccountCommand(Enum):
    """Commands related to wallet or account management"""

    BALANCE = "Balance"
    TRANSFER = "Transfer"
    AIRDROP = "Airdrop"
    CONFIRM_TRANSACTION = "Confirm Transaction"
    LARGEST_ACCOUNTS = "Largest Accounts"
    NONCE_ACCOUNT = "Nonce Account"
    GO_BACK = "Go Back"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    def __str__(self):
        return self.value


_DESCRIPTIONS = {
    AccountCommand.BALANCE: "Get wallet balance",
    AccountCommand.TRANSFER: "Transfer SOL to another address",
    AccountCommand.AIRDROP: "Request SOL from faucet",
    AccountCommand.CONFIRM_TRANSACTION: "Confirm a pending transaction",
    AccountCommand.LARGEST_ACCOUNTS: "Fetch cluster's largest accounts",
    AccountCommand.NONCE_ACCOUNT: "Inspect a nonce account",
    AccountCommand.GO_BACK: "Going back…",
}


@dataclass(frozen=True)
class NonceAccount:
    address: Pubkey
    lamports: int
    version: int
    initialized: bool
    authority: Optional[Pubkey] = None
    durable_nonce: Optional[Hash] = None
    lamports_per_signature: int = 0


def decode_nonce_account(address: Pubkey, lamports: int, data: bytes) -> NonceAccount:
    try:
        parsed = NONCE_STATE_LAYOUT.parse(data)
    except ConstructError as e:
        raise DecodeError(f"Failed to deserialize nonce account {address}: {str(e)}") from e
    if parsed.state_type == 0:
        return NonceAccount(address=address, lamports=lamports, version=parsed.version, initialized=False)
    if parsed.state_type == 1:
        return NonceAccount(
            address=address,
            lamports=lamports,
            version=parsed.version,
            initialized=True,
            authority=Pubkey.from_bytes(parsed.data.authority),
            durable_nonce=Hash(parsed.data.durable_nonce),
            lamports_per_signature=parsed.data.lamports_per_signature,
        )
    raise DecodeError(f"Failed to deserialize nonce account {address}: unknown state {parsed.state_type}")


class AccountManager:
    def __init__(self, ctx, transaction_manager):
        self.ctx = ctx
        self.transaction_manager = transaction_manager

    async def get_balance(self, address: Optional[Pubkey] = None) -> int:
        """Balance in lamports of ``address`` (the wallet by default)"""
        return await self.ctx.rpc.get_balance(address or self.ctx.pubkey)

    async def transfer(self, recipient: Pubkey, amount_lamports: int) -> Signature:
        """Send SOL from the wallet to ``recipient``"""
        if amount_lamports <= 0:
            raise ValidationDenied(
                DenyReason.INVALID_AMOUNT,
                f"Amount must be greater than 0 lamports, got {amount_lamports}",
                {"requested": amount_lamports},
            )
        balance = await self.get_balance()
        if amount_lamports > balance:
            raise ValidationDenied(
                DenyReason.INSUFFICIENT_BALANCE,
                f"Insufficient balance. Have {lamports_to_sol(balance):.6f} SOL, "
                f"trying to send {lamports_to_sol(amount_lamports):.6f} SOL",
                {"available": balance, "requested": amount_lamports},
            )
        instruction = transfer(
            TransferParams(from_pubkey=self.ctx.pubkey, to_pubkey=recipient, lamports=amount_lamports)
        )
        logger.info(f"Transferring {amount_lamports} lamports to {recipient}")
        return await self.transaction_manager.submit([instruction])

    async def request_airdrop(self, lamports: int = AIRDROP_LAMPORTS) -> Signature:
        signature = await self.ctx.rpc.request_airdrop(self.ctx.pubkey, lamports)
        logger.info(f"Airdrop of {lamports} lamports requested: {signature}")
        return signature

    async def confirm_transaction(self, signature: Signature) -> str:
        return await self.transaction_manager.confirm_signature(signature)

    async def largest_accounts(self) -> List[Tuple[Pubkey, int]]:
        accounts = await self.ctx.rpc.get_largest_accounts()
        return [(entry.address, entry.lamports) for entry in accounts]

    async def inspect_nonce_account(self, address: Pubkey) -> NonceAccount:
        account = await self.ctx.rpc.get_account(address)
        if account is None:
            raise AccountNotFoundError(address)
        if account.owner != SYSTEM_PROGRAM_ID:
            raise OwnershipError(address, SYSTEM_PROGRAM_ID, account.owner)
        return decode_nonce_account(address, account.lamports, account.data)
