"""
Wallet context: the node connection and signing identity shared by every operation.
"""
import os
import json
import logging
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config import WalletConfig
from .exceptions import KeypairError
from .rpc import NodeClient

# Configure logger
logger = logging.getLogger("stake_wallet.context")


def load_keypair(path: str) -> Keypair:
    """
    Read a Solana CLI keypair file (a JSON array of 64 byte values).

    Args:
        path (str): Path to the keypair file

    Returns:
        Keypair: The loaded keypair

    Raises:
        KeypairError: If the file is missing or does not hold a valid keypair
    """
    path = os.path.expanduser(path)
    try:
        with open(path, 'r') as f:
            raw = json.load(f)
        return Keypair.from_bytes(bytes(raw))
    except Exception as e:
        raise KeypairError(f"Failed to read keypair from {path}: {str(e)}") from e


@dataclass(frozen=True)
class WalletContext:
    """Long-lived, read-only handle passed explicitly to every operation."""

    rpc: NodeClient
    keypair: Keypair
    config: WalletConfig

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    @classmethod
    def from_config(cls, config: WalletConfig) -> "WalletContext":
        keypair = load_keypair(config.keypair_path)
        rpc = NodeClient(
            config.rpc_url,
            commitment=config.commitment,
            confirmation_timeout=config.confirmation_timeout,
        )
        logger.info(f"Wallet {keypair.pubkey()} connected to {config.rpc_url} ({config.commitment})")
        return cls(rpc=rpc, keypair=keypair, config=config)
