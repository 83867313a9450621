"""
Transaction history lookups.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from solders.pubkey import Pubkey

from .config import HISTORY_LIMIT

# Configure logger
logger = logging.getLogger("stake_wallet.history")


@dataclass(frozen=True)
class HistoryEntry:
    slot: int
    signature: str
    succeeded: bool
    block_time: Optional[int]


async def fetch_history(rpc, address: Pubkey, limit: int = HISTORY_LIMIT) -> List[HistoryEntry]:
    """
    Fetch the most recent transaction signatures touching an address.

    Args:
        rpc: Node client used for the read
        address (Pubkey): The account to look up
        limit (int): Maximum number of entries

    Returns:
        list: HistoryEntry items, newest first as reported by the node (may be empty)
    """
    signatures = await rpc.get_signatures_for_address(address, limit)
    entries = [
        HistoryEntry(
            slot=info.slot,
            signature=str(info.signature),
            succeeded=info.err is None,
            block_time=info.block_time,
        )
        for info in signatures[:limit]
    ]
    logger.debug(f"Fetched {len(entries)} history entries for {address}")
    return entries
