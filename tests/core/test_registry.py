from __future__ import annotations

import pytest

from pairswap.core.events import PairCreated
from pairswap.core.registry import PairRegistry
from pairswap.errors import Forbidden, IdenticalAssets, PairExists, PairNotFound, ZeroAsset
from pairswap.state.balances import ZERO_ADDRESS
from pairswap.state.canonical import compute_pair_address

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
C = "0x" + "0c" * 20
OUTSIDER = "0x" + "0d" * 20


def test_create_pair_records_both_orders_and_emits_event(exchange) -> None:
    registry = exchange.registry
    address = registry.create_pair(B, A)

    assert registry.get_pair(A, B) == address
    assert registry.get_pair(B, A) == address
    assert registry.all_pairs_length() == 1
    assert registry.by_index(0) == address

    pair = registry.pair(address)
    assert (pair.asset0, pair.asset1) == (A, B)
    assert exchange.runtime.events.of_type(PairCreated) == [
        PairCreated(asset0=A, asset1=B, pair=address, index=0),
    ]


def test_pair_address_is_deterministic(exchange) -> None:
    registry = exchange.registry
    predicted = registry.pair_for(B, A)
    assert predicted == compute_pair_address(registry.address, A, B)
    assert registry.create_pair(A, B) == predicted


def test_index_follows_creation_order(exchange) -> None:
    registry = exchange.registry
    first = registry.create_pair(A, B)
    second = registry.create_pair(C, A)

    assert [registry.by_index(i) for i in range(registry.all_pairs_length())] == [first, second]
    assert [e.index for e in exchange.runtime.events.of_type(PairCreated)] == [0, 1]
    with pytest.raises(IndexError):
        registry.by_index(2)


def test_create_pair_errors(exchange) -> None:
    registry = exchange.registry
    with pytest.raises(IdenticalAssets):
        registry.create_pair(A, A)
    with pytest.raises(ZeroAsset):
        registry.create_pair(A, ZERO_ADDRESS)

    registry.create_pair(A, B)
    with pytest.raises(PairExists):
        registry.create_pair(B, A)
    assert registry.all_pairs_length() == 1


def test_unknown_pairs(exchange) -> None:
    registry = exchange.registry
    assert registry.get_pair(A, B) is None
    with pytest.raises(PairNotFound):
        registry.pair(registry.pair_for(A, B))


def test_fee_administration_is_restricted(exchange) -> None:
    registry = exchange.registry
    setter = registry.fee_to_setter
    assert registry.fee_to == ZERO_ADDRESS

    with pytest.raises(Forbidden):
        registry.set_fee_to(OUTSIDER, sender=OUTSIDER)
    with pytest.raises(Forbidden):
        registry.set_fee_to_setter(OUTSIDER, sender=OUTSIDER)

    registry.set_fee_to(OUTSIDER, sender=setter)
    assert registry.fee_to == OUTSIDER

    registry.set_fee_to_setter(OUTSIDER, sender=setter)
    assert registry.fee_to_setter == OUTSIDER
    with pytest.raises(Forbidden):
        registry.set_fee_to(ZERO_ADDRESS, sender=setter)


def test_registries_at_different_addresses_derive_different_pairs(exchange) -> None:
    other = PairRegistry(exchange.runtime, fee_to_setter=OUTSIDER, address="0x" + "00" * 19 + "f2")
    assert other.pair_for(A, B) != exchange.registry.pair_for(A, B)
