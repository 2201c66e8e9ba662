from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from pairswap.config import DEFAULT_CONFIG, ExchangeConfig
from pairswap.core.pair import ExchangePair
from pairswap.core.registry import PairRegistry
from pairswap.core.router import Router
from pairswap.core.runtime import ManualClock, Runtime
from pairswap.integration.wrapper import NativeWrapper
from pairswap.state.balances import Address, Amount, AssetId
from pairswap.state.ledger import AssetLedger, InMemoryLedger

FEE_SETTER = "0x" + "fe" * 20
START_TIME = 1_000_000


@dataclass
class Exchange:
    runtime: Runtime
    clock: ManualClock
    registry: PairRegistry
    wrapper: NativeWrapper
    router: Router

    @property
    def ledger(self) -> AssetLedger:
        return self.runtime.ledger

    def fund(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        self.ledger.mint(asset, holder, amount)

    def balance(self, holder: Address, asset: AssetId) -> Amount:
        return self.ledger.balance_of(asset, holder)

    def seed(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a: Amount,
        amount_b: Amount,
        provider: Address,
    ) -> ExchangePair:
        """Create the pair if needed and deposit directly, bypassing the router."""
        address = self.registry.get_pair(asset_a, asset_b) or self.registry.create_pair(asset_a, asset_b)
        self.fund(provider, asset_a, amount_a)
        self.fund(provider, asset_b, amount_b)
        self.runtime.transfer(asset_a, provider, address, amount_a)
        self.runtime.transfer(asset_b, provider, address, amount_b)
        pair = self.registry.pair(address)
        pair.deposit(provider, sender=provider)
        return pair


def make_exchange(
    ledger: Optional[AssetLedger] = None,
    config: ExchangeConfig = DEFAULT_CONFIG,
    now: int = START_TIME,
) -> Exchange:
    clock = ManualClock(now)
    runtime = Runtime(ledger=ledger if ledger is not None else InMemoryLedger(), clock=clock)
    registry = PairRegistry(runtime, fee_to_setter=FEE_SETTER, config=config)
    wrapper = NativeWrapper(runtime)
    router = Router(registry, wrapper)
    return Exchange(runtime=runtime, clock=clock, registry=registry, wrapper=wrapper, router=router)


@pytest.fixture
def exchange() -> Exchange:
    return make_exchange()


@pytest.fixture
def exchange_factory() -> Callable[..., Exchange]:
    return make_exchange
