"""
Node RPC gateway for the Stake Wallet application.

``NodeClient`` is the only module that talks to solana-py. Every call is
treated as fallible: transport faults become ``NetworkError``, error replies
to reads become ``RPCError`` and refusals of a submitted transaction become
``SubmissionRejected`` with the node's reason kept verbatim.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from .config import RPC_TIMEOUT, CONFIRMATION_TIMEOUT
from .exceptions import NetworkError, RPCError, SubmissionRejected, ConfirmationError

# Configure logger
logger = logging.getLogger("stake_wallet.rpc")

_TRANSPORT_ERRORS = (SolanaRpcException, httpx.HTTPError, asyncio.TimeoutError, OSError)


@dataclass(frozen=True)
class AccountInfo:
    """Raw account as reported by the node."""

    address: Pubkey
    owner: Pubkey
    lamports: int
    data: bytes


@dataclass(frozen=True)
class EpochInfo:
    """Epoch position of the cluster, fetched fresh for every decision."""

    epoch: int
    slot_index: int = 0
    slots_in_epoch: int = 0
    absolute_slot: int = 0
    block_height: int = 0


class NodeClient:
    def __init__(self, rpc_url: str, commitment: str = 'confirmed',
                 timeout: float = RPC_TIMEOUT, confirmation_timeout: float = CONFIRMATION_TIMEOUT,
                 client: Optional[AsyncClient] = None):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self.timeout = timeout
        self.confirmation_timeout = confirmation_timeout
        self.client = client or AsyncClient(rpc_url, commitment=self.commitment, timeout=timeout)

    async def _call(self, description: str, request: Awaitable[Any]) -> Any:
        """Await an RPC request, mapping solana-py failures to wallet errors."""
        try:
            return await asyncio.wait_for(request, timeout=self.timeout)
        except RPCException as e:
            logger.error(f"RPC error during {description}: {str(e)}")
            raise RPCError(f"Node returned an error for {description}: {str(e)}") from e
        except _TRANSPORT_ERRORS as e:
            logger.error(f"Network error during {description}: {str(e)}")
            raise NetworkError(f"Network error during {description} ({self.rpc_url}): {str(e) or type(e).__name__}") from e

    async def get_account(self, address: Pubkey) -> Optional[AccountInfo]:
        """Fetch an account, or None if the address holds nothing."""
        resp = await self._call(
            f"getAccountInfo {address}",
            self.client.get_account_info(address, commitment=self.commitment),
        )
        account = resp.value
        if account is None:
            return None
        return AccountInfo(
            address=address,
            owner=account.owner,
            lamports=account.lamports,
            data=bytes(account.data),
        )

    async def get_latest_blockhash(self) -> Hash:
        resp = await self._call("getLatestBlockhash", self.client.get_latest_blockhash(self.commitment))
        return resp.value.blockhash

    async def get_epoch_info(self) -> EpochInfo:
        resp = await self._call("getEpochInfo", self.client.get_epoch_info(self.commitment))
        info = resp.value
        return EpochInfo(
            epoch=info.epoch,
            slot_index=info.slot_index,
            slots_in_epoch=info.slots_in_epoch,
            absolute_slot=info.absolute_slot,
            block_height=info.block_height,
        )

    async def get_signatures_for_address(self, address: Pubkey, limit: int) -> List[Any]:
        resp = await self._call(
            f"getSignaturesForAddress {address}",
            self.client.get_signatures_for_address(address, limit=limit, commitment=self.commitment),
        )
        return list(resp.value)

    async def get_balance(self, address: Pubkey) -> int:
        resp = await self._call(f"getBalance {address}", self.client.get_balance(address, self.commitment))
        return resp.value

    async def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        resp = await self._call(
            "getMinimumBalanceForRentExemption",
            self.client.get_minimum_balance_for_rent_exemption(size, self.commitment),
        )
        return resp.value

    async def request_airdrop(self, address: Pubkey, lamports: int) -> Signature:
        try:
            resp = await self._call(
                f"requestAirdrop {address}",
                self.client.request_airdrop(address, lamports, self.commitment),
            )
        except RPCError as e:
            # Faucets refuse with an RPC error; that is the node's answer, not a fault
            raise SubmissionRejected(str(e.__cause__ or e)) from e
        return resp.value

    async def get_signature_status(self, signature: Signature) -> Optional[Any]:
        resp = await self._call(
            f"getSignatureStatuses {signature}",
            self.client.get_signature_statuses([signature], search_transaction_history=True),
        )
        return resp.value[0] if resp.value else None

    async def get_largest_accounts(self) -> List[Any]:
        resp = await self._call("getLargestAccounts", self.client.get_largest_accounts(commitment=self.commitment))
        return list(resp.value)

    async def get_slot(self) -> int:
        resp = await self._call("getSlot", self.client.get_slot(self.commitment))
        return resp.value

    async def get_block_height(self) -> int:
        resp = await self._call("getBlockHeight", self.client.get_block_height(self.commitment))
        return resp.value

    async def get_version(self) -> str:
        resp = await self._call("getVersion", self.client.get_version())
        return resp.value.solana_core

    async def get_vote_accounts(self) -> Any:
        resp = await self._call("getVoteAccounts", self.client.get_vote_accounts(self.commitment))
        return resp.value

    async def send_and_confirm(self, transaction) -> Signature:
        """
        Submit a signed transaction and wait until the node reports confirmation.

        Args:
            transaction: A fully signed solders Transaction

        Returns:
            Signature: The transaction signature

        Raises:
            SubmissionRejected: The node refused the transaction or it failed on-chain
            NetworkError: The transaction could not be delivered
            ConfirmationError: The transaction was sent but its outcome is unknown
        """
        opts = TxOpts(skip_confirmation=True, preflight_commitment=self.commitment)
        try:
            resp = await asyncio.wait_for(self.client.send_transaction(transaction, opts=opts), timeout=self.timeout)
        except RPCException as e:
            logger.warning(f"Transaction rejected by node: {str(e)}")
            raise SubmissionRejected(str(e)) from e
        except _TRANSPORT_ERRORS as e:
            logger.error(f"Network error sending transaction: {str(e)}")
            raise NetworkError(f"Network error sending transaction ({self.rpc_url}): {str(e) or type(e).__name__}") from e

        signature = resp.value
        logger.info(f"Transaction submitted: {signature}")

        try:
            confirmation = await asyncio.wait_for(
                self.client.confirm_transaction(signature, self.commitment),
                timeout=self.confirmation_timeout,
            )
        except RPCException as e:
            raise SubmissionRejected(str(e), signature=signature) from e
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            logger.error(f"Transaction {signature} not confirmed: {str(e)}")
            raise ConfirmationError(signature, f"Transaction was not confirmed: {str(e)}") from e
        except _TRANSPORT_ERRORS as e:
            logger.error(f"Lost contact while confirming {signature}: {str(e)}")
            raise ConfirmationError(signature, f"Could not confirm transaction: {str(e) or type(e).__name__}") from e

        statuses = confirmation.value
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            logger.warning(f"Transaction {signature} failed on-chain: {status.err}")
            raise SubmissionRejected(str(status.err), signature=signature)

        logger.info(f"Transaction confirmed: {signature}")
        return signature

    async def close(self):
        await self.client.close()
