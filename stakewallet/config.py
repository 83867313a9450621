"""
Configuration settings for the Stake Wallet application.
"""
import os
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Configure logger
logger = logging.getLogger("stake_wallet.config")

# Network configurations - use environment variables if available
NETWORKS = {
    'mainnet-beta': {
        'name': 'Solana Mainnet Beta',
        'rpc': os.getenv('SOLANA_MAINNET_RPC', 'https://api.mainnet-beta.solana.com'),
        'explorer_url': os.getenv('SOLANA_MAINNET_EXPLORER_URL', 'https://explorer.solana.com')
    },
    'testnet': {
        'name': 'Solana Testnet',
        'rpc': os.getenv('SOLANA_TESTNET_RPC', 'https://api.testnet.solana.com'),
        'explorer_url': os.getenv('SOLANA_TESTNET_EXPLORER_URL', 'https://explorer.solana.com/?cluster=testnet')
    },
    'devnet': {
        'name': 'Solana Devnet',
        'rpc': os.getenv('SOLANA_DEVNET_RPC', 'https://api.devnet.solana.com'),
        'explorer_url': os.getenv('SOLANA_DEVNET_EXPLORER_URL', 'https://explorer.solana.com/?cluster=devnet')
    },
    'localnet': {
        'name': 'Local Validator',
        'rpc': os.getenv('SOLANA_LOCALNET_RPC', 'http://127.0.0.1:8899'),
        'explorer_url': os.getenv('SOLANA_LOCALNET_EXPLORER_URL', 'https://explorer.solana.com/?cluster=custom')
    }
}

COMMITMENT_LEVELS = ('processed', 'confirmed', 'finalized')

DEFAULT_NETWORK = os.getenv('STAKE_WALLET_NETWORK', 'mainnet-beta')
RPC_URL = os.getenv('STAKE_WALLET_RPC_URL')  # overrides the network's RPC when set
COMMITMENT = os.getenv('STAKE_WALLET_COMMITMENT', 'confirmed')
KEYPAIR_PATH = os.getenv('STAKE_WALLET_KEYPAIR', os.path.join('~', '.config', 'solana', 'id.json'))

# Request settings
RPC_TIMEOUT = float(os.getenv('STAKE_WALLET_RPC_TIMEOUT', '30'))  # seconds
CONFIRMATION_TIMEOUT = float(os.getenv('STAKE_WALLET_CONFIRMATION_TIMEOUT', '90'))  # seconds
HISTORY_LIMIT = int(os.getenv('STAKE_WALLET_HISTORY_LIMIT', '20'))
AIRDROP_LAMPORTS = int(os.getenv('STAKE_WALLET_AIRDROP_LAMPORTS', '1000000000'))

# Logging settings
LOG_FILE = os.getenv('STAKE_WALLET_LOG_FILE', 'stake_wallet.log')
LOG_LEVEL = os.getenv('STAKE_WALLET_LOG_LEVEL', 'WARNING')


def get_network_config(network: str) -> Dict[str, Any]:
    """
    Get configuration for a specific network.

    Args:
        network (str): Network name ('mainnet-beta', 'testnet', 'devnet' or 'localnet')

    Returns:
        dict: Network configuration
    """
    return NETWORKS.get(network, NETWORKS['mainnet-beta'])


@dataclass(frozen=True)
class WalletConfig:
    """Settings needed to build the wallet context."""

    network: str
    rpc_url: str
    commitment: str
    keypair_path: str
    explorer_url: str
    confirmation_timeout: float = CONFIRMATION_TIMEOUT

    @classmethod
    def load(cls, network: Optional[str] = None) -> "WalletConfig":
        """
        Assemble the configuration from environment settings.

        Args:
            network (str, optional): Network name, defaults to DEFAULT_NETWORK

        Returns:
            WalletConfig: The resolved configuration

        Raises:
            ConfigurationError: If the network or commitment level is unknown
        """
        network = network or DEFAULT_NETWORK
        if network not in NETWORKS:
            raise ConfigurationError(
                f"Unknown network '{network}'. Expected one of: {', '.join(NETWORKS)}"
            )
        commitment = COMMITMENT.strip().lower()
        if commitment not in COMMITMENT_LEVELS:
            raise ConfigurationError(
                f"Invalid commitment level '{COMMITMENT}'. Expected one of: {', '.join(COMMITMENT_LEVELS)}"
            )

        network_config = get_network_config(network)
        rpc_url = RPC_URL or network_config['rpc']
        if RPC_URL:
            logger.info(f"Using RPC override {RPC_URL} for {network}")

        return cls(
            network=network,
            rpc_url=rpc_url,
            commitment=commitment,
            keypair_path=os.path.expanduser(KEYPAIR_PATH),
            explorer_url=network_config['explorer_url'],
        )
