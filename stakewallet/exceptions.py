"""
Custom exceptions for the Stake Wallet application.
"""
from enum import Enum
from typing import Any, Dict, Optional


class StakeWalletError(Exception):
    """Base exception for all application errors."""
    pass

class ConfigurationError(StakeWalletError):
    """Exception raised for configuration errors."""
    pass

class KeypairError(ConfigurationError):
    """Exception raised when the signing keypair cannot be loaded."""
    pass

class ValidationError(StakeWalletError):
    """Exception raised for validation errors."""
    pass

class AddressValidationError(ValidationError):
    """Exception raised for address validation errors."""
    pass

class AmountValidationError(ValidationError):
    """Exception raised for amount validation errors."""
    pass

class NetworkError(StakeWalletError):
    """Exception raised for network-related errors."""
    pass

class RPCError(NetworkError):
    """Exception raised when the node answers a read with an error."""
    pass

class AccountError(StakeWalletError):
    """Base exception for on-chain account errors."""
    pass

class AccountNotFoundError(AccountError):
    """Exception raised when an address holds no account."""

    def __init__(self, address):
        self.address = address
        super().__init__(f"Account not found: {address}")

class OwnershipError(AccountError):
    """Exception raised when an account is owned by an unexpected program."""

    def __init__(self, address, expected_owner, actual_owner):
        self.address = address
        self.expected_owner = expected_owner
        self.actual_owner = actual_owner
        super().__init__(
            f"Account {address} is owned by {actual_owner}, expected {expected_owner}"
        )

class DecodeError(AccountError):
    """Exception raised when account data matches no known layout."""
    pass


class DenyReason(Enum):
    """Why a requested stake operation was refused locally."""

    WRONG_STATE = "wrong_state"
    ALREADY_DEACTIVATING = "already_deactivating"
    NOT_AUTHORIZED = "not_authorized"
    STILL_ACTIVE = "still_active"
    COOLING_DOWN = "cooling_down"
    UNINITIALIZED = "uninitialized"
    REWARDS_POOL = "rewards_pool"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    ALREADY_DELEGATED = "already_delegated"
    SAME_ACCOUNT = "same_account"
    AUTHORITY_MISMATCH = "authority_mismatch"
    INCOMPATIBLE_STATE = "incompatible_state"
    VOTER_MISMATCH = "voter_mismatch"
    BELOW_RENT_EXEMPTION = "below_rent_exemption"
    INVALID_AMOUNT = "invalid_amount"


class ValidationDenied(ValidationError):
    """Exception raised when a stake operation is not allowed in the account's current state.

    ``details`` carries the values behind the decision (epochs, authorities,
    balances) so the caller can explain it without another round-trip.
    """

    def __init__(self, reason: DenyReason, message: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(message)

class TransactionError(StakeWalletError):
    """Base exception for transaction-related errors."""
    pass

class SigningError(TransactionError):
    """Exception raised when a signer cannot sign the transaction."""
    pass

class SubmissionRejected(TransactionError):
    """Exception raised when the node refuses a transaction.

    The node's reason is kept verbatim in ``node_reason``.
    """

    def __init__(self, node_reason: str, signature=None):
        self.node_reason = node_reason
        self.signature = signature
        super().__init__(f"Transaction rejected by node: {node_reason}")

class ConfirmationError(TransactionError):
    """Exception raised when a submitted transaction could not be confirmed.

    The transaction may still land; its outcome is unknown.
    """

    def __init__(self, signature, message: str):
        self.signature = signature
        super().__init__(f"{message} (signature: {signature})")
