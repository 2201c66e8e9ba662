"""
Pair registry: permissionless, deterministic creation of one pair per asset combination.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from structlog import get_logger

from ..config import DEFAULT_CONFIG, ExchangeConfig
from ..errors import Forbidden, PairExists, PairNotFound
from ..state.balances import ZERO_ADDRESS, Address, AssetId
from ..state.canonical import compute_pair_address, sort_assets
from .events import PairCreated
from .pair import ExchangePair

if TYPE_CHECKING:
    from .runtime import Runtime

logger = get_logger()

DEFAULT_REGISTRY_ADDRESS: Address = "0x" + "00" * 19 + "f1"


class PairRegistry:
    """
    Arena of exchange pairs keyed by their canonical asset pair.

    Lookups are order-insensitive; `by_index` enumerates pairs in creation order.
    The protocol fee recipient (`fee_to`) is administered here and read by every
    pair on each liquidity event.
    """

    def __init__(
        self,
        runtime: "Runtime",
        *,
        fee_to_setter: Address,
        address: Address = DEFAULT_REGISTRY_ADDRESS,
        config: ExchangeConfig = DEFAULT_CONFIG,
    ) -> None:
        self.runtime = runtime
        self.address = address
        self.config = config
        self.fee_to: Address = ZERO_ADDRESS
        self.fee_to_setter: Address = fee_to_setter
        self._by_assets: Dict[Tuple[AssetId, AssetId], Address] = {}
        self._pairs: Dict[Address, ExchangePair] = {}
        self._assets: Dict[Address, Tuple[AssetId, AssetId]] = {}
        self._all_pairs: List[Address] = []
        self.log = logger.new(registry=address)

    def snapshot(self) -> Tuple[int, Address, Address]:
        # pairs are only ever appended, so the count is enough to undo creations
        return len(self._all_pairs), self.fee_to, self.fee_to_setter

    def restore(self, state: Tuple[int, Address, Address]) -> None:
        count, self.fee_to, self.fee_to_setter = state
        for address in self._all_pairs[count:]:
            asset0, asset1 = self._assets.pop(address)
            self._pairs.pop(address, None)
            self._by_assets.pop((asset0, asset1), None)
            self._by_assets.pop((asset1, asset0), None)
        del self._all_pairs[count:]

    def pair_for(self, asset_a: AssetId, asset_b: AssetId) -> Address:
        """Address the (asset_a, asset_b) pair has, or will have once created."""
        return compute_pair_address(self.address, asset_a, asset_b)

    def get_pair(self, asset_a: AssetId, asset_b: AssetId) -> Optional[Address]:
        return self._by_assets.get((asset_a, asset_b))

    def pair(self, address: Address) -> ExchangePair:
        try:
            return self._pairs[address]
        except KeyError:
            raise PairNotFound(f"unknown pair {address}") from None

    def all_pairs_length(self) -> int:
        return len(self._all_pairs)

    def by_index(self, index: int) -> Address:
        return self._all_pairs[index]

    def create_pair(self, asset_a: AssetId, asset_b: AssetId) -> Address:
        """
        Create and initialize the pair for two assets.

        Raises:
            IdenticalAssets: If both assets are equal
            ZeroAsset: If either asset is the null identifier
            PairExists: If the pair was already created
        """
        asset0, asset1 = sort_assets(asset_a, asset_b)
        if (asset0, asset1) in self._by_assets:
            raise PairExists(f"pair ({asset0}, {asset1}) already exists")

        with self.runtime.atomic():
            self.runtime.enlist(self)
            address = self.pair_for(asset0, asset1)
            pair = ExchangePair(self.runtime, address, self, self.config)
            pair.initialize(asset0, asset1, sender=self.address)
            self._all_pairs.append(address)
            self._assets[address] = (asset0, asset1)
            self._pairs[address] = pair
            self._by_assets[(asset0, asset1)] = address
            self._by_assets[(asset1, asset0)] = address
            index = len(self._all_pairs) - 1
            self.runtime.events.append(PairCreated(asset0=asset0, asset1=asset1, pair=address, index=index))
        self.log.info('pair created', asset0=asset0, asset1=asset1, pair=address, index=index)
        return address

    def set_fee_to(self, fee_to: Address, *, sender: Address) -> None:
        if sender != self.fee_to_setter:
            raise Forbidden("only the fee setter can change fee_to")
        with self.runtime.atomic():
            self.runtime.enlist(self)
            self.fee_to = fee_to
        self.log.info('protocol fee recipient changed', fee_to=fee_to)

    def set_fee_to_setter(self, fee_to_setter: Address, *, sender: Address) -> None:
        if sender != self.fee_to_setter:
            raise Forbidden("only the fee setter can hand over the role")
        with self.runtime.atomic():
            self.runtime.enlist(self)
            self.fee_to_setter = fee_to_setter
        self.log.info('protocol fee setter changed', fee_to_setter=fee_to_setter)

    def __repr__(self) -> str:
        return f"PairRegistry({len(self._all_pairs)} pairs)"
