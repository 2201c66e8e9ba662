"""
Cumulative price accumulators.

Prices are UQ112x112 fixed point numbers (112 integer bits, 112 fractional bits).
Each pair adds ``price * seconds_elapsed`` to its accumulators on every resync, so an
observer can derive a time-weighted average price from two readings:

    average = (cumulative_after - cumulative_before) / (t_after - t_before)

Accumulators and timestamps wrap; the subtraction above stays correct as long as the
observation window is shorter than one wrap period.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Q112 = 1 << 112
ACCUMULATOR_MODULUS = 1 << 256
TIMESTAMP_MODULUS = 1 << 32


def encode(value: int) -> int:
    """Encode an integer as UQ112x112."""
    if value < 0 or value >= Q112:
        raise ValueError(f"value must fit in 112 bits: {value}")
    return value * Q112


def uq_div(x: int, y: int) -> int:
    """Divide a UQ112x112 by an integer, returning UQ112x112."""
    if y <= 0:
        raise ValueError(f"divisor must be positive: {y}")
    return x // y


def block_timestamp(now: int) -> int:
    return now % TIMESTAMP_MODULUS


def time_elapsed(now_ts: int, last_ts: int) -> int:
    """Seconds between two 32-bit timestamps; wraps like the timestamps do."""
    return (now_ts - last_ts) % TIMESTAMP_MODULUS


def accumulate(
    price0_cumulative: int,
    price1_cumulative: int,
    reserve0: int,
    reserve1: int,
    elapsed: int,
) -> Tuple[int, int]:
    """
    Advance both accumulators by ``elapsed`` seconds at the given reserves.

    No-op while either reserve is zero or no time has passed.
    """
    if elapsed <= 0 or reserve0 == 0 or reserve1 == 0:
        return price0_cumulative, price1_cumulative
    p0 = (price0_cumulative + uq_div(encode(reserve1), reserve0) * elapsed) % ACCUMULATOR_MODULUS
    p1 = (price1_cumulative + uq_div(encode(reserve0), reserve1) * elapsed) % ACCUMULATOR_MODULUS
    return p0, p1


@dataclass(frozen=True)
class PriceObservation:
    price0_cumulative: int
    price1_cumulative: int
    timestamp: int


def average_prices(before: PriceObservation, after: PriceObservation) -> Tuple[int, int]:
    """
    Time-weighted average prices (UQ112x112) between two observations.

    Raises:
        ValueError: If both observations share the same timestamp
    """
    elapsed = time_elapsed(after.timestamp, before.timestamp)
    if elapsed == 0:
        raise ValueError("observations must be taken at different times")
    p0 = ((after.price0_cumulative - before.price0_cumulative) % ACCUMULATOR_MODULUS) // elapsed
    p1 = ((after.price1_cumulative - before.price1_cumulative) % ACCUMULATOR_MODULUS) // elapsed
    return p0, p1
