from __future__ import annotations

import pytest

from pairswap.core import oracle
from pairswap.core.oracle import ACCUMULATOR_MODULUS, Q112, TIMESTAMP_MODULUS, PriceObservation, average_prices
from pairswap.errors import Overflow

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
LP = "0x" + "1b" * 20
TRADER = "0x" + "7a" * 20


def test_accumulators_advance_by_price_times_elapsed(exchange) -> None:
    pair = exchange.seed(A, B, 100_000, 100_000, LP)
    before = pair.observe()
    assert before.price0_cumulative == 0

    exchange.clock.advance(10)
    pair.force_resync()
    assert pair.state.price0_cumulative_last == 10 * Q112
    assert pair.state.price1_cumulative_last == 10 * Q112

    exchange.clock.advance(5)
    after = pair.observe()
    assert after.price0_cumulative == 15 * Q112
    # observe does not write
    assert pair.state.price0_cumulative_last == 10 * Q112

    assert average_prices(before, after) == (Q112, Q112)


def test_average_price_reflects_reserve_ratio(exchange) -> None:
    pair = exchange.seed(A, B, 100_000, 200_000, LP)
    before = pair.observe()
    exchange.clock.advance(60)
    after = pair.observe()

    price0, price1 = average_prices(before, after)
    assert price0 == 2 * Q112
    assert price1 == Q112 // 2


def test_no_accumulation_within_the_same_second(exchange) -> None:
    pair = exchange.seed(A, B, 100_000, 100_000, LP)
    pair.force_resync()
    pair.force_resync()
    assert pair.state.price0_cumulative_last == 0


def test_widest_reserves_keep_trading_after_time_passes(exchange) -> None:
    pair = exchange.seed(A, B, 2**111, 2**111, LP)
    exchange.clock.advance(10)
    exchange.fund(TRADER, A, 10**6)
    exchange.runtime.transfer(A, TRADER, pair.address, 10**6)

    pair.swap(0, 10**5, TRADER, sender=TRADER)

    assert pair.get_reserves()[:2] == (2**111 + 10**6, 2**111 - 10**5)
    assert pair.state.price0_cumulative_last == 10 * Q112


def test_reserves_at_the_bit_limit_overflow_and_can_still_be_skimmed(exchange) -> None:
    top = 2**112 - 1
    pair = exchange.seed(A, B, top, top, LP)
    exchange.clock.advance(10)
    exchange.fund(TRADER, A, 1)
    exchange.runtime.transfer(A, TRADER, pair.address, 1)

    with pytest.raises(Overflow):
        pair.force_resync()

    assert pair.skim(TRADER, sender=TRADER) == (1, 0)
    pair.force_resync()
    assert pair.state.price0_cumulative_last == 10 * Q112


def test_timestamps_and_accumulators_wrap() -> None:
    assert oracle.block_timestamp(TIMESTAMP_MODULUS + 7) == 7
    assert oracle.time_elapsed(5, TIMESTAMP_MODULUS - 5) == 10

    before = PriceObservation(price0_cumulative=ACCUMULATOR_MODULUS - Q112, price1_cumulative=0, timestamp=TIMESTAMP_MODULUS - 1)
    after = PriceObservation(price0_cumulative=Q112, price1_cumulative=4, timestamp=1)
    assert average_prices(before, after) == (Q112, 2)


def test_average_prices_needs_distinct_timestamps() -> None:
    obs = PriceObservation(price0_cumulative=0, price1_cumulative=0, timestamp=42)
    with pytest.raises(ValueError):
        average_prices(obs, obs)


def test_encode_rejects_values_outside_112_bits() -> None:
    assert oracle.encode(3) == 3 * Q112
    with pytest.raises(ValueError):
        oracle.encode(Q112)
    with pytest.raises(ValueError):
        oracle.encode(-1)
