"""
Stake Wallet - An interactive CLI for managing Solana stake accounts.
"""
# Configuration
from .config import (
    NETWORKS, DEFAULT_NETWORK, COMMITMENT, KEYPAIR_PATH, RPC_TIMEOUT,
    CONFIRMATION_TIMEOUT, HISTORY_LIMIT, AIRDROP_LAMPORTS,
    WalletConfig, get_network_config
)

# Core components
from .rpc import NodeClient, AccountInfo, EpochInfo
from .context import WalletContext, load_keypair
from .stake_state import (
    STAKE_PROGRAM_ID, STAKE_ACCOUNT_SIZE, StakeAccount, Uninitialized, Initialized,
    Delegated, RewardsPool, decode_stake_state, fetch_stake_account, activation_status
)
from .validator import (
    CreateRequest, DelegateRequest, DeactivateRequest, WithdrawRequest, MergeRequest,
    SplitRequest
)
from .transactions import TransactionManager
from .stakes import StakeManager, StakeCommand
from .history import HistoryEntry, fetch_history
from .accounts import AccountManager, AccountCommand
from .cluster import ClusterManager, ClusterCommand, VoteCommand
from .menus import MenuManager
from .manager import StakeWalletApp

# Utilities
from .utils import (
    LAMPORTS_PER_SOL, sol_to_lamports, lamports_to_sol, SolAmount, OptionalSolAmount,
    parse_pubkey, validate_address
)

# Exceptions
from .exceptions import (
    StakeWalletError, ConfigurationError, KeypairError, ValidationError,
    AmountValidationError, AddressValidationError, NetworkError, RPCError,
    AccountNotFoundError, OwnershipError, DecodeError, DenyReason, ValidationDenied,
    TransactionError, SigningError, SubmissionRejected, ConfirmationError
)

__all__ = [
    # Configuration
    'NETWORKS',
    'DEFAULT_NETWORK',
    'COMMITMENT',
    'KEYPAIR_PATH',
    'RPC_TIMEOUT',
    'CONFIRMATION_TIMEOUT',
    'HISTORY_LIMIT',
    'AIRDROP_LAMPORTS',
    'WalletConfig',
    'get_network_config',

    # Core components
    'NodeClient',
    'AccountInfo',
    'EpochInfo',
    'WalletContext',
    'load_keypair',
    'STAKE_PROGRAM_ID',
    'STAKE_ACCOUNT_SIZE',
    'StakeAccount',
    'Uninitialized',
    'Initialized',
    'Delegated',
    'RewardsPool',
    'decode_stake_state',
    'fetch_stake_account',
    'activation_status',
    'CreateRequest',
    'DelegateRequest',
    'DeactivateRequest',
    'WithdrawRequest',
    'MergeRequest',
    'SplitRequest',
    'TransactionManager',
    'StakeManager',
    'StakeCommand',
    'HistoryEntry',
    'fetch_history',
    'AccountManager',
    'AccountCommand',
    'ClusterManager',
    'ClusterCommand',
    'VoteCommand',
    'MenuManager',
    'StakeWalletApp',

    # Utilities
    'LAMPORTS_PER_SOL',
    'sol_to_lamports',
    'lamports_to_sol',
    'SolAmount',
    'OptionalSolAmount',
    'parse_pubkey',
    'validate_address',

    # Exceptions
    'StakeWalletError',
    'ConfigurationError',
    'KeypairError',
    'ValidationError',
    'AmountValidationError',
    'AddressValidationError',
    'NetworkError',
    'RPCError',
    'AccountNotFoundError',
    'OwnershipError',
    'DecodeError',
    'DenyReason',
    'ValidationDenied',
    'TransactionError',
    'SigningError',
    'SubmissionRejected',
    'ConfirmationError'
]
