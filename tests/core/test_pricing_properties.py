"""Property tests for the pricing engine's rounding guarantees."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import assume, given, settings

from pairswap.config import STANDARD_FEE
from pairswap.core.pricing import get_amount_in, get_amount_out, isqrt, quote

reserves = st.integers(min_value=1, max_value=2**112 - 1)
amounts = st.integers(min_value=1, max_value=2**96)


@settings(max_examples=300)
@given(amount_in=amounts, reserve_in=reserves, reserve_out=reserves)
def test_amount_out_stays_below_reserve(amount_in: int, reserve_in: int, reserve_out: int) -> None:
    assert 0 <= get_amount_out(amount_in, reserve_in, reserve_out) < reserve_out


@settings(max_examples=300)
@given(amount_in=amounts, reserve_in=reserves, reserve_out=reserves)
def test_quoted_output_passes_the_fee_adjusted_product_check(
    amount_in: int, reserve_in: int, reserve_out: int
) -> None:
    out = get_amount_out(amount_in, reserve_in, reserve_out)
    n, d = STANDARD_FEE.numerator, STANDARD_FEE.denominator
    adjusted_in = (reserve_in + amount_in) * d - amount_in * (d - n)
    adjusted_out = (reserve_out - out) * d
    assert adjusted_in * adjusted_out >= reserve_in * reserve_out * d * d


@settings(max_examples=300)
@given(amount_in=amounts, reserve_in=reserves, reserve_out=reserves)
def test_inverse_of_a_forward_quote_overshoots_by_at_most_one(
    amount_in: int, reserve_in: int, reserve_out: int
) -> None:
    out = get_amount_out(amount_in, reserve_in, reserve_out)
    assume(out > 0)
    assert get_amount_in(out, reserve_in, reserve_out) <= amount_in + 1


@settings(max_examples=300)
@given(data=st.data(), reserve_in=reserves, reserve_out=st.integers(min_value=2, max_value=2**112 - 1))
def test_paying_the_inverse_quote_buys_at_least_the_target(
    data: st.DataObject, reserve_in: int, reserve_out: int
) -> None:
    amount_out = data.draw(st.integers(min_value=1, max_value=reserve_out - 1))
    amount_in = get_amount_in(amount_out, reserve_in, reserve_out)
    assert get_amount_out(amount_in, reserve_in, reserve_out) >= amount_out


@given(amount=amounts, reserve_a=reserves, reserve_b=reserves)
def test_quote_never_rounds_up(amount: int, reserve_a: int, reserve_b: int) -> None:
    assert quote(amount, reserve_a, reserve_b) * reserve_a <= amount * reserve_b


@given(n=st.integers(min_value=0, max_value=2**256))
def test_isqrt_brackets_the_root(n: int) -> None:
    r = isqrt(n)
    assert r * r <= n < (r + 1) * (r + 1)
