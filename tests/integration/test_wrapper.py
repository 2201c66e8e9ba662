from __future__ import annotations

import pytest

from pairswap.errors import TransferFailed, ZeroAddress
from pairswap.integration.wrapper import NativeWrapper
from pairswap.state.balances import NATIVE_ASSET, ZERO_ADDRESS

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20


def _backed(exchange) -> bool:
    wrapper = exchange.wrapper
    return exchange.ledger.total_supply(wrapper.asset) == exchange.balance(wrapper.address, NATIVE_ASSET)


def test_wrap_and_unwrap_keep_full_backing(exchange) -> None:
    wrapper = exchange.wrapper
    exchange.fund(ALICE, NATIVE_ASSET, 100)

    wrapper.wrap(60, sender=ALICE)
    assert wrapper.balance_of(ALICE) == 60
    assert exchange.balance(ALICE, NATIVE_ASSET) == 40
    assert _backed(exchange)

    wrapper.unwrap(20, sender=ALICE)
    assert wrapper.balance_of(ALICE) == 40
    assert exchange.balance(ALICE, NATIVE_ASSET) == 60
    assert _backed(exchange)


def test_wrapped_asset_is_transferable(exchange) -> None:
    wrapper = exchange.wrapper
    exchange.fund(ALICE, NATIVE_ASSET, 10)
    wrapper.wrap(10, sender=ALICE)

    wrapper.transfer(BOB, 4, sender=ALICE)
    wrapper.unwrap(4, sender=BOB)

    assert exchange.balance(BOB, NATIVE_ASSET) == 4
    assert _backed(exchange)


def test_wrap_and_unwrap_fail_without_balance(exchange) -> None:
    wrapper = exchange.wrapper
    exchange.fund(ALICE, NATIVE_ASSET, 10)

    with pytest.raises(TransferFailed):
        wrapper.wrap(11, sender=ALICE)
    assert wrapper.balance_of(ALICE) == 0

    wrapper.wrap(10, sender=ALICE)
    with pytest.raises(TransferFailed):
        wrapper.unwrap(11, sender=ALICE)
    assert wrapper.balance_of(ALICE) == 10
    assert _backed(exchange)


def test_wrapper_needs_an_address(exchange) -> None:
    with pytest.raises(ZeroAddress):
        NativeWrapper(exchange.runtime, ZERO_ADDRESS)
    assert exchange.wrapper.asset == exchange.wrapper.address
