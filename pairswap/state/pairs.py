"""
Reserve ledger record for an exchange pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .balances import Address, Amount, AssetId


@dataclass
class PairState:
    """
    Last-synchronized state of an exchange pair.

    Attributes:
        address: Pair address (also the asset id of its liquidity share)
        asset0: Lower asset identifier, None until initialized
        asset1: Higher asset identifier, None until initialized
        reserve0: Last-known balance of asset0
        reserve1: Last-known balance of asset1
        block_timestamp_last: Clock reading (mod 2**32) at the last resync
        price0_cumulative_last: UQ112x112 accumulator of reserve1/reserve0 over time
        price1_cumulative_last: UQ112x112 accumulator of reserve0/reserve1 over time
        k_last: reserve0 * reserve1 after the last liquidity event (protocol fee only)
    """
    address: Address
    asset0: Optional[AssetId] = None
    asset1: Optional[AssetId] = None
    reserve0: Amount = 0
    reserve1: Amount = 0
    block_timestamp_last: int = 0
    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0
    k_last: int = 0

    def __post_init__(self):
        if (self.asset0 is None) != (self.asset1 is None):
            raise ValueError("assets must be set together")
        if self.asset0 is not None and self.asset0 >= self.asset1:
            raise ValueError(
                f"Assets must be in canonical order: {self.asset0} < {self.asset1}"
            )
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve0}, {self.reserve1})"
            )

    @property
    def initialized(self) -> bool:
        return self.asset0 is not None

    def __repr__(self) -> str:
        return (
            f"PairState(address={self.address[:10]}..., "
            f"assets=({self.asset0}, {self.asset1}), "
            f"reserves=({self.reserve0}, {self.reserve1}))"
        )
