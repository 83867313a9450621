import logging
from typing import Optional, Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from .exceptions import SigningError

# Configure logger
logger = logging.getLogger("stake_wallet.transactions")


class TransactionManager:
    def __init__(self, ctx):
        self.ctx = ctx

    def build_transaction(self, instructions: Sequence[Instruction], signers, recent_blockhash: Hash) -> Transaction:
        """Assemble a transaction paid by the wallet and sign it with every signer"""
        if not instructions:
            raise ValueError("A transaction needs at least one instruction")
        message = Message.new_with_blockhash(list(instructions), self.ctx.pubkey, recent_blockhash)
        try:
            return Transaction(list(signers), message, recent_blockhash)
        except Exception as e:
            signer_keys = ", ".join(str(s.pubkey()) for s in signers)
            logger.error(f"Signing failed for signers [{signer_keys}]: {str(e)}")
            raise SigningError(f"Could not sign transaction with [{signer_keys}]: {str(e)}") from e

    async def submit(self, instructions: Sequence[Instruction], signers: Optional[Sequence] = None) -> Signature:
        """Sign, submit and wait for confirmation of a transaction.

        Node rejections are not retried here, and neither are network faults:
        retrying a whole operation is the caller's decision.
        """
        signers = list(signers) if signers else [self.ctx.keypair]
        recent_blockhash = await self.ctx.rpc.get_latest_blockhash()
        transaction = self.build_transaction(instructions, signers, recent_blockhash)

        logger.info(f"Submitting transaction with {len(instructions)} instruction(s) from {self.ctx.pubkey}")
        signature = await self.ctx.rpc.send_and_confirm(transaction)
        logger.info(f"Transaction confirmed: {signature}")
        return signature

    async def confirm_signature(self, signature: Signature) -> str:
        """Report the status of a previously submitted transaction"""
        status = await self.ctx.rpc.get_signature_status(signature)
        if status is None:
            return "not found"
        if status.err is not None:
            return f"failed: {status.err}"
        if status.confirmation_status is None:
            return "processed"
        # TransactionConfirmationStatus renders as e.g. "TransactionConfirmationStatus.Finalized"
        return str(status.confirmation_status).split(".")[-1].lower()
