"""
Pricing engine: constant product quotes with deterministic rounding.

Algorithm Design:
- Type: Integer arithmetic, floor division everywhere
- Time Complexity: O(1) per hop, O(len(path)) per path quote
- Rounding: always in the pool's favour. `get_amount_out` floors the output and
  `get_amount_in` adds one unit on top of the floored input, so a quote that is
  actually executed never lets the trader extract value from the pool.

All amounts are non-negative ints.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Sequence, Tuple

from ..config import STANDARD_FEE, FeeRate
from ..errors import (
    InsufficientAmount,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientOutputAmount,
    InvalidPath,
    PairNotFound,
)
from ..state.balances import Amount, AssetId
from ..state.canonical import sort_assets

if TYPE_CHECKING:
    from .registry import PairRegistry


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def isqrt(n: int) -> int:
    """Floor integer square root."""
    _require_amount("n", n)
    return math.isqrt(n)


def quote(amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
    """
    Convert ``amount_a`` at the pair's current ratio, without fees.

        amount_b = floor(amount_a * reserve_b / reserve_a)
    """
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_amount(name, v)
    if amount_a == 0:
        raise InsufficientAmount("amount_a must be positive")
    if reserve_a == 0 or reserve_b == 0:
        raise InsufficientLiquidity("reserves must be positive")
    return (amount_a * reserve_b) // reserve_a


def get_amount_out(
    amount_in: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    fee: FeeRate = STANDARD_FEE,
) -> Amount:
    """
    Output received for an exact input.

        amount_out = floor(amount_in * N * reserve_out / (reserve_in * D + amount_in * N))

    where ``N / D`` is the fee factor (997/1000 by default).

    Raises:
        InsufficientInputAmount: If amount_in is zero
        InsufficientLiquidity: If either reserve is zero
    """
    for name, v in (("amount_in", amount_in), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_amount(name, v)
    if amount_in == 0:
        raise InsufficientInputAmount("amount_in must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("reserves must be positive")
    amount_in_with_fee = amount_in * fee.numerator
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * fee.denominator + amount_in_with_fee
    return numerator // denominator


def get_amount_in(
    amount_out: Amount,
    reserve_in: Amount,
    reserve_out: Amount,
    fee: FeeRate = STANDARD_FEE,
) -> Amount:
    """
    Minimum input that buys exactly ``amount_out``.

        amount_in = floor(reserve_in * amount_out * D / ((reserve_out - amount_out) * N)) + 1

    Raises:
        InsufficientOutputAmount: If amount_out is zero
        InsufficientLiquidity: If either reserve is zero or amount_out would drain the reserve
    """
    for name, v in (("amount_out", amount_out), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_amount(name, v)
    if amount_out == 0:
        raise InsufficientOutputAmount("amount_out must be positive")
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("reserves must be positive")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"amount_out ({amount_out}) must be below reserve_out ({reserve_out})"
        )
    numerator = reserve_in * amount_out * fee.denominator
    denominator = (reserve_out - amount_out) * fee.numerator
    return numerator // denominator + 1


def get_reserves(registry: "PairRegistry", asset_a: AssetId, asset_b: AssetId) -> Tuple[Amount, Amount]:
    """Live reserves of the (asset_a, asset_b) pair, in the caller's order."""
    asset0, _ = sort_assets(asset_a, asset_b)
    address = registry.get_pair(asset_a, asset_b)
    if address is None:
        raise PairNotFound(f"no pair for ({asset_a}, {asset_b})")
    reserve0, reserve1, _ = registry.pair(address).get_reserves()
    return (reserve0, reserve1) if asset_a == asset0 else (reserve1, reserve0)


def _check_path(path: Sequence[AssetId]) -> None:
    if len(path) < 2:
        raise InvalidPath(f"path needs at least two assets, got {len(path)}")


def get_amounts_out(registry: "PairRegistry", path: Sequence[AssetId], amount_in: Amount) -> List[Amount]:
    """
    Chain `get_amount_out` forward along ``path``.

    ``amounts[0] == amount_in``; ``amounts[i + 1]`` is what hop ``i`` pays out
    at that hop's own live reserves.
    """
    _check_path(path)
    fee = registry.config.fee
    amounts = [amount_in]
    for i in range(len(path) - 1):
        reserve_in, reserve_out = get_reserves(registry, path[i], path[i + 1])
        amounts.append(get_amount_out(amounts[i], reserve_in, reserve_out, fee))
    return amounts


def get_amounts_in(registry: "PairRegistry", path: Sequence[AssetId], amount_out: Amount) -> List[Amount]:
    """
    Chain `get_amount_in` backward along ``path``.

    ``amounts[-1] == amount_out``; entries are computed right to left.
    """
    _check_path(path)
    fee = registry.config.fee
    amounts = [0] * len(path)
    amounts[-1] = amount_out
    for i in range(len(path) - 1, 0, -1):
        reserve_in, reserve_out = get_reserves(registry, path[i - 1], path[i])
        amounts[i - 1] = get_amount_in(amounts[i], reserve_in, reserve_out, fee)
    return amounts
