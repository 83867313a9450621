"""
Utility functions for the Stake Wallet application.
"""
import math
import logging
import datetime
from decimal import Decimal
from typing import Optional, Union

from solders.pubkey import Pubkey

from .config import LOG_FILE, LOG_LEVEL
from .exceptions import AddressValidationError, AmountValidationError

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.WARNING),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOG_FILE),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger("stake_wallet")

LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 2**64 - 1

# Smallest float that no longer fits in a u64 once scaled
_U64_LIMIT = float(2**64)


def _check_sol(sol: float) -> float:
    if not math.isfinite(sol):
        raise AmountValidationError("Amount must be a finite number")
    if sol <= 0:
        raise AmountValidationError(f"Amount must be greater than 0, got {sol}")
    if sol * LAMPORTS_PER_SOL >= _U64_LIMIT:
        raise AmountValidationError(f"Amount too large: {sol} SOL would overflow")
    return sol


def sol_to_lamports(sol: float) -> int:
    """
    Convert a SOL amount to lamports, truncating toward zero.

    Args:
        sol (float): Amount in SOL, strictly positive and finite

    Returns:
        int: Amount in lamports

    Raises:
        AmountValidationError: If the amount is not positive, not finite or overflows a u64
    """
    # Scale the shortest decimal form so 0.29 gives 290000000, not 289999999
    lamports = int(Decimal(repr(_check_sol(float(sol)))) * LAMPORTS_PER_SOL)
    if lamports > U64_MAX:
        raise AmountValidationError(f"Amount too large: {sol} SOL would overflow")
    return lamports


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL."""
    return lamports / LAMPORTS_PER_SOL


def _parse_number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise AmountValidationError(f"Invalid amount: {text}. Must be a valid number")


class SolAmount:
    """A strictly positive, finite SOL amount that fits in a u64 once converted."""

    def __init__(self, value: float):
        self._value = _check_sol(float(value))

    @classmethod
    def parse(cls, text: str) -> "SolAmount":
        trimmed = (text or "").strip()
        if not trimmed:
            raise AmountValidationError("Amount cannot be empty. Please enter a SOL amount")
        return cls(_parse_number(trimmed))

    @property
    def value(self) -> float:
        return self._value

    def to_lamports(self) -> int:
        return sol_to_lamports(self._value)

    def __repr__(self):
        return f"SolAmount({self._value})"


class OptionalSolAmount:
    """A SOL amount where empty input means "none given", not zero."""

    def __init__(self, value: Optional[float] = None):
        self._value = None if value is None else _check_sol(float(value))

    @classmethod
    def parse(cls, text: str) -> "OptionalSolAmount":
        trimmed = (text or "").strip()
        if not trimmed:
            return cls(None)
        return cls(_parse_number(trimmed))

    @property
    def value(self) -> Optional[float]:
        return self._value

    def is_empty(self) -> bool:
        return self._value is None

    def to_lamports(self) -> int:
        if self._value is None:
            return 0
        return sol_to_lamports(self._value)


def parse_pubkey(text: Union[str, Pubkey]) -> Pubkey:
    """
    Parse a base58 Solana address.

    Args:
        text (str): The address to parse

    Returns:
        Pubkey: The parsed public key

    Raises:
        AddressValidationError: If the address is not a valid 32-byte base58 key
    """
    if isinstance(text, Pubkey):
        return text
    trimmed = (text or "").strip()
    if not trimmed:
        raise AddressValidationError("Address cannot be empty")
    try:
        return Pubkey.from_string(trimmed)
    except Exception:
        raise AddressValidationError(f"Invalid address: {trimmed}")


def validate_address(address: str) -> bool:
    """
    Validate if an address is a valid Solana address.

    Args:
        address (str): The address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    try:
        parse_pubkey(address)
        return True
    except AddressValidationError:
        return False


def short_signature(signature) -> str:
    """Shorten a signature to its first and last 8 characters for display."""
    text = str(signature)
    if len(text) <= 16:
        return text
    return f"{text[:8]}...{text[-8:]}"


def format_timestamp(block_time: Optional[int]) -> str:
    """Render a unix block time as UTC, '~' when the node has none."""
    if block_time is None:
        return "~"
    try:
        moment = datetime.datetime.fromtimestamp(block_time, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "Invalid time"
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def format_sol(lamports: int) -> str:
    """Format lamports as a SOL string."""
    return f"{lamports_to_sol(lamports):.9f} SOL"
