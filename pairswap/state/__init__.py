"""
State records for the pairswap exchange
"""

from .balances import (
    LOCKED_SHARES_ADDRESS,
    NATIVE_ASSET,
    ZERO_ADDRESS,
    Address,
    Amount,
    AssetId,
    BalanceTable,
)
from .canonical import compute_pair_address, sort_assets
from .ledger import AssetLedger, InMemoryLedger
from .pairs import PairState

__all__ = [
    "LOCKED_SHARES_ADDRESS",
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
    "Address",
    "Amount",
    "AssetId",
    "BalanceTable",
    "compute_pair_address",
    "sort_assets",
    "AssetLedger",
    "InMemoryLedger",
    "PairState",
]
