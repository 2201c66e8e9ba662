"""
Router: multi-hop swaps and liquidity management on top of the pair registry.

The router holds no state of its own. For a path ``[a0, a1, ..., an]`` it quotes the
whole chain first (`get_amounts_out` / `get_amounts_in`), moves the input straight
into the first pair and then swaps hop by hop, sending each hop's output directly
to the next pair. Only the last hop pays the recipient. Each intermediate output
equals the next hop's input by construction of the quote chain, so the pairs' own
invariant checks are the only validation needed along the way.

Native value variants wrap and unwrap through the `NativeWrapper`; the router holds
value only transiently inside one atomic operation and refunds what it does not use.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from structlog import get_logger

from ..errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAAmount,
    InsufficientBAmount,
    InsufficientOutputAmount,
    InvalidPath,
    PairNotFound,
    ZeroAddress,
)
from ..integration.wrapper import NativeWrapper
from ..state.balances import NATIVE_ASSET, ZERO_ADDRESS, Address, Amount, AssetId
from ..state.canonical import sort_assets
from . import pricing
from .pair import ExchangePair
from .registry import PairRegistry

logger = get_logger()

DEFAULT_ROUTER_ADDRESS: Address = "0x" + "00" * 19 + "a1"


class Router:
    def __init__(
        self,
        registry: Optional[PairRegistry],
        wrapper: Optional[NativeWrapper],
        address: Address = DEFAULT_ROUTER_ADDRESS,
    ) -> None:
        if registry is None:
            raise ZeroAddress("router needs a registry")
        if wrapper is None:
            raise ZeroAddress("router needs a wrapper")
        if address == ZERO_ADDRESS:
            raise ZeroAddress("router address must be set")
        self.registry = registry
        self.wrapper = wrapper
        self.address = address
        self.runtime = registry.runtime
        self.log = logger.new(router=address)

    # -- helpers --------------------------------------------------------------

    def _ensure(self, deadline: int) -> None:
        now = self.runtime.now()
        if now > deadline:
            raise Expired(f"deadline {deadline} passed (now {now})")

    @staticmethod
    def _require_recipient(to: Address) -> None:
        if to == ZERO_ADDRESS:
            raise ZeroAddress("recipient must be set")

    def _pair(self, asset_a: AssetId, asset_b: AssetId) -> ExchangePair:
        address = self.registry.get_pair(asset_a, asset_b)
        if address is None:
            raise PairNotFound(f"no pair for ({asset_a}, {asset_b})")
        return self.registry.pair(address)

    def _require_native_path(self, path: Sequence[AssetId], *, first: bool) -> None:
        if len(path) < 2:
            raise InvalidPath(f"path needs at least two assets, got {len(path)}")
        end = path[0] if first else path[-1]
        if end != self.wrapper.asset:
            where = "start" if first else "end"
            raise InvalidPath(f"path must {where} with the wrapped native asset")

    def _receive_native(self, sender: Address, value: Amount) -> None:
        self.runtime.transfer(NATIVE_ASSET, sender, self.address, value)

    def _send_native(self, to: Address, amount: Amount) -> None:
        if amount > 0:
            self.runtime.transfer(NATIVE_ASSET, self.address, to, amount)

    def _swap(self, amounts: Sequence[Amount], path: Sequence[AssetId], to: Address) -> None:
        """Run the hop chain; the first pair must already hold ``amounts[0]``."""
        for i in range(len(path) - 1):
            asset_in, asset_out = path[i], path[i + 1]
            asset0, _ = sort_assets(asset_in, asset_out)
            amount_out = amounts[i + 1]
            amount0_out, amount1_out = (0, amount_out) if asset_in == asset0 else (amount_out, 0)
            dest = self._pair(asset_out, path[i + 2]).address if i < len(path) - 2 else to
            self._pair(asset_in, asset_out).swap(amount0_out, amount1_out, dest, sender=self.address)

    def _swap_supporting_fee_on_transfer(self, path: Sequence[AssetId], to: Address) -> None:
        """Hop chain that measures each hop's input from the pair's balance."""
        fee = self.registry.config.fee
        ledger = self.runtime.ledger
        for i in range(len(path) - 1):
            asset_in, asset_out = path[i], path[i + 1]
            asset0, _ = sort_assets(asset_in, asset_out)
            pair = self._pair(asset_in, asset_out)
            reserve0, reserve1, _ = pair.get_reserves()
            reserve_in, reserve_out = (reserve0, reserve1) if asset_in == asset0 else (reserve1, reserve0)
            amount_in = ledger.balance_of(asset_in, pair.address) - reserve_in
            amount_out = pricing.get_amount_out(max(0, amount_in), reserve_in, reserve_out, fee)
            amount0_out, amount1_out = (0, amount_out) if asset_in == asset0 else (amount_out, 0)
            dest = self._pair(asset_out, path[i + 2]).address if i < len(path) - 2 else to
            pair.swap(amount0_out, amount1_out, dest, sender=self.address)

    # -- liquidity ------------------------------------------------------------

    def _add_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
    ) -> Tuple[Amount, Amount]:
        """Amounts to deposit so that they match the pair's current ratio."""
        if self.registry.get_pair(asset_a, asset_b) is None:
            self.registry.create_pair(asset_a, asset_b)
        reserve_a, reserve_b = pricing.get_reserves(self.registry, asset_a, asset_b)
        if reserve_a == 0 and reserve_b == 0:
            return amount_a_desired, amount_b_desired

        amount_b_optimal = pricing.quote(amount_a_desired, reserve_a, reserve_b)
        if amount_b_optimal <= amount_b_desired:
            if amount_b_optimal < amount_b_min:
                raise InsufficientBAmount(f"{amount_b_optimal} < minimum {amount_b_min}")
            return amount_a_desired, amount_b_optimal

        amount_a_optimal = pricing.quote(amount_b_desired, reserve_b, reserve_a)
        if amount_a_optimal > amount_a_desired or amount_a_optimal < amount_a_min:
            raise InsufficientAAmount(
                f"{amount_a_optimal} outside [{amount_a_min}, {amount_a_desired}]"
            )
        return amount_a_optimal, amount_b_desired

    def add_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        to: Address,
        deadline: int,
        *,
        sender: Address,
        amount_a_min: Amount = 0,
        amount_b_min: Amount = 0,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        Deposit both assets at the pair's ratio, creating the pair if needed.

        Returns:
            Tuple of (amount_a_used, amount_b_used, shares_minted)
        """
        self._ensure(deadline)
        self._require_recipient(to)
        with self.runtime.atomic():
            amount_a, amount_b = self._add_liquidity(
                asset_a, asset_b, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min,
            )
            pair = self._pair(asset_a, asset_b)
            self.runtime.transfer(asset_a, sender, pair.address, amount_a)
            self.runtime.transfer(asset_b, sender, pair.address, amount_b)
            liquidity = pair.deposit(to, sender=self.address)
        self.log.debug('add liquidity', sender=sender, pair=pair.address,
                       amount_a=amount_a, amount_b=amount_b, shares=liquidity)
        return amount_a, amount_b, liquidity

    def add_liquidity_native(
        self,
        asset: AssetId,
        amount_desired: Amount,
        to: Address,
        deadline: int,
        *,
        sender: Address,
        value: Amount,
        amount_min: Amount = 0,
        native_min: Amount = 0,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        `add_liquidity` against the wrapped native asset; ``value`` is the native
        amount offered, the unused part is refunded.

        Returns:
            Tuple of (amount_asset_used, amount_native_used, shares_minted)
        """
        self._ensure(deadline)
        self._require_recipient(to)
        wrapped = self.wrapper.asset
        with self.runtime.atomic():
            amount_asset, amount_native = self._add_liquidity(
                asset, wrapped, amount_desired, value, amount_min, native_min,
            )
            pair = self._pair(asset, wrapped)
            self.runtime.transfer(asset, sender, pair.address, amount_asset)
            self._receive_native(sender, value)
            self.wrapper.wrap(amount_native, sender=self.address)
            self.wrapper.transfer(pair.address, amount_native, sender=self.address)
            liquidity = pair.deposit(to, sender=self.address)
            self._send_native(sender, value - amount_native)
        return amount_asset, amount_native, liquidity

    def _remove_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        liquidity: Amount,
        to: Address,
        sender: Address,
        amount_a_min: Amount,
        amount_b_min: Amount,
    ) -> Tuple[Amount, Amount]:
        pair = self._pair(asset_a, asset_b)
        # shares are the ledger asset named by the pair address
        self.runtime.transfer(pair.address, sender, pair.address, liquidity)
        amount0, amount1 = pair.withdraw(to, sender=self.address)
        asset0, _ = sort_assets(asset_a, asset_b)
        amount_a, amount_b = (amount0, amount1) if asset_a == asset0 else (amount1, amount0)
        if amount_a < amount_a_min:
            raise InsufficientAAmount(f"{amount_a} < minimum {amount_a_min}")
        if amount_b < amount_b_min:
            raise InsufficientBAmount(f"{amount_b} < minimum {amount_b_min}")
        return amount_a, amount_b

    def remove_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        liquidity: Amount,
        to: Address,
        deadline: int,
        *,
        sender: Address,
        amount_a_min: Amount = 0,
        amount_b_min: Amount = 0,
    ) -> Tuple[Amount, Amount]:
        """
        Redeem ``liquidity`` shares for both assets, reported in the caller's order.
        """
        self._ensure(deadline)
        self._require_recipient(to)
        with self.runtime.atomic():
            amount_a, amount_b = self._remove_liquidity(
                asset_a, asset_b, liquidity, to, sender, amount_a_min, amount_b_min,
            )
        self.log.debug('remove liquidity', sender=sender, amount_a=amount_a, amount_b=amount_b, shares=liquidity)
        return amount_a, amount_b

    def remove_liquidity_native(
        self,
        asset: AssetId,
        liquidity: Amount,
        to: Address,
        deadline: int,
        *,
        sender: Address,
        amount_min: Amount = 0,
        native_min: Amount = 0,
    ) -> Tuple[Amount, Amount]:
        """Redeem shares of an (asset, wrapped native) pair, paying the native side unwrapped."""
        self._ensure(deadline)
        self._require_recipient(to)
        with self.runtime.atomic():
            amount_asset, amount_native = self._remove_liquidity(
                asset, self.wrapper.asset, liquidity, self.address, sender, amount_min, native_min,
            )
            self.runtime.transfer(asset, self.address, to, amount_asset)
            self.wrapper.unwrap(amount_native, sender=self.address)
            self._send_native(to, amount_native)
        return amount_asset, amount_native

    # -- swaps ----------------------------------------------------------------

    def swap_exact_in(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> List[Amount]:
        """Sell exactly ``amount_in`` of ``path[0]`` for at least ``amount_out_min`` of ``path[-1]``."""
        self._ensure(deadline)
        self._require_recipient(to)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_out(self.registry, path, amount_in)
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            self.runtime.transfer(path[0], sender, self._pair(path[0], path[1]).address, amounts[0])
            self._swap(amounts, path, to)
        self.log.debug('swap exact in', sender=sender, path=list(path), amounts=amounts, to=to)
        return amounts

    def swap_exact_out(
        self,
        amount_out: Amount,
        amount_in_max: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> List[Amount]:
        """Buy exactly ``amount_out`` of ``path[-1]`` for at most ``amount_in_max`` of ``path[0]``."""
        self._ensure(deadline)
        self._require_recipient(to)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_in(self.registry, path, amount_out)
            if amounts[0] > amount_in_max:
                raise ExcessiveInputAmount(f"{amounts[0]} > maximum {amount_in_max}")
            self.runtime.transfer(path[0], sender, self._pair(path[0], path[1]).address, amounts[0])
            self._swap(amounts, path, to)
        self.log.debug('swap exact out', sender=sender, path=list(path), amounts=amounts, to=to)
        return amounts

    def swap_exact_in_supporting_fee_on_transfer(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> Amount:
        """
        Exact-in swap for assets whose transfers deliver less than the amount sent.

        Returns:
            Amount of ``path[-1]`` actually received by ``to``
        """
        self._ensure(deadline)
        self._require_recipient(to)
        if len(path) < 2:
            raise InvalidPath(f"path needs at least two assets, got {len(path)}")
        ledger = self.runtime.ledger
        with self.runtime.atomic():
            self.runtime.transfer(path[0], sender, self._pair(path[0], path[1]).address, amount_in)
            balance_before = ledger.balance_of(path[-1], to)
            self._swap_supporting_fee_on_transfer(path, to)
            received = ledger.balance_of(path[-1], to) - balance_before
            if received < amount_out_min:
                raise InsufficientOutputAmount(f"{received} < minimum {amount_out_min}")
        return received

    def swap_exact_native_for_assets(
        self,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
        value: Amount,
    ) -> List[Amount]:
        """Sell exactly ``value`` native units along a path starting at the wrapped asset."""
        self._ensure(deadline)
        self._require_recipient(to)
        self._require_native_path(path, first=True)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_out(self.registry, path, value)
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            self._receive_native(sender, value)
            self.wrapper.wrap(amounts[0], sender=self.address)
            self.wrapper.transfer(self._pair(path[0], path[1]).address, amounts[0], sender=self.address)
            self._swap(amounts, path, to)
        return amounts

    def swap_native_for_exact_assets(
        self,
        amount_out: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
        value: Amount,
    ) -> List[Amount]:
        """Buy exactly ``amount_out`` paying with at most ``value`` native units; the rest is refunded."""
        self._ensure(deadline)
        self._require_recipient(to)
        self._require_native_path(path, first=True)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_in(self.registry, path, amount_out)
            if amounts[0] > value:
                raise ExcessiveInputAmount(f"{amounts[0]} > offered {value}")
            self._receive_native(sender, value)
            self.wrapper.wrap(amounts[0], sender=self.address)
            self.wrapper.transfer(self._pair(path[0], path[1]).address, amounts[0], sender=self.address)
            self._swap(amounts, path, to)
            self._send_native(sender, value - amounts[0])
        return amounts

    def swap_exact_assets_for_native(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> List[Amount]:
        """Sell exactly ``amount_in`` along a path ending at the wrapped asset; pay out native value."""
        self._ensure(deadline)
        self._require_recipient(to)
        self._require_native_path(path, first=False)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_out(self.registry, path, amount_in)
            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount(f"{amounts[-1]} < minimum {amount_out_min}")
            self.runtime.transfer(path[0], sender, self._pair(path[0], path[1]).address, amounts[0])
            self._swap(amounts, path, self.address)
            self.wrapper.unwrap(amounts[-1], sender=self.address)
            self._send_native(to, amounts[-1])
        return amounts

    def swap_assets_for_exact_native(
        self,
        amount_out: Amount,
        amount_in_max: Amount,
        path: Sequence[AssetId],
        to: Address,
        deadline: int,
        *,
        sender: Address,
    ) -> List[Amount]:
        """Buy exactly ``amount_out`` native units for at most ``amount_in_max`` of ``path[0]``."""
        self._ensure(deadline)
        self._require_recipient(to)
        self._require_native_path(path, first=False)
        with self.runtime.atomic():
            amounts = pricing.get_amounts_in(self.registry, path, amount_out)
            if amounts[0] > amount_in_max:
                raise ExcessiveInputAmount(f"{amounts[0]} > maximum {amount_in_max}")
            self.runtime.transfer(path[0], sender, self._pair(path[0], path[1]).address, amounts[0])
            self._swap(amounts, path, self.address)
            self.wrapper.unwrap(amounts[-1], sender=self.address)
            self._send_native(to, amounts[-1])
        return amounts

    # -- quotes ---------------------------------------------------------------

    def quote(self, amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
        return pricing.quote(amount_a, reserve_a, reserve_b)

    def get_amount_out(self, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return pricing.get_amount_out(amount_in, reserve_in, reserve_out, self.registry.config.fee)

    def get_amount_in(self, amount_out: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return pricing.get_amount_in(amount_out, reserve_in, reserve_out, self.registry.config.fee)

    def get_amounts_out(self, amount_in: Amount, path: Sequence[AssetId]) -> List[Amount]:
        return pricing.get_amounts_out(self.registry, path, amount_in)

    def get_amounts_in(self, amount_out: Amount, path: Sequence[AssetId]) -> List[Amount]:
        return pricing.get_amounts_in(self.registry, path, amount_out)
