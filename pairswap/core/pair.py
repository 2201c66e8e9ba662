"""
Exchange pair: reserve ledger and deposit/withdraw/swap state transitions.

The pair never trusts amounts passed in by callers. Value is moved into the pair's
ledger account first and the pair measures what arrived by comparing ledger
balances against its last-synchronized reserves:

- deposit:  amount_i = balance_i - reserve_i  -> mint shares
- withdraw: shares held by the pair itself     -> burn, pay out pro rata
- swap:     outputs are paid optimistically, then implied inputs are measured
            and the fee-adjusted constant product is checked:

                (b0*D - in0*(D-N)) * (b1*D - in1*(D-N)) >= r0 * r1 * D**2

Every mutating operation runs inside `Runtime.atomic()` and holds the pair's
exclusive lock, so a nested call back into the same pair fails with `Locked`.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Iterator, Tuple

from structlog import get_logger

from ..config import DEFAULT_CONFIG, ExchangeConfig
from ..errors import (
    AlreadyInitialized,
    Forbidden,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityBurnedAmounts,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InvalidRecipient,
    InvariantViolation,
    Locked,
    NotInitialized,
    Overflow,
)
from ..state.balances import LOCKED_SHARES_ADDRESS, ZERO_ADDRESS, Address, Amount, AssetId
from ..state.canonical import sort_assets
from ..state.pairs import PairState
from . import oracle
from .events import Deposit, Resync, Swap, Withdrawal
from .pricing import isqrt

if TYPE_CHECKING:
    from .registry import PairRegistry
    from .runtime import Runtime

logger = get_logger()


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


class ExchangePair:
    """
    One constant product pair between two assets.

    The pair's liquidity share is an ordinary ledger asset whose asset id is the
    pair's address.
    """

    def __init__(
        self,
        runtime: "Runtime",
        address: Address,
        registry: "PairRegistry",
        config: ExchangeConfig = DEFAULT_CONFIG,
    ) -> None:
        self.runtime = runtime
        self.address = address
        self.registry = registry
        self.config = config
        self.state = PairState(address=address)
        self._unlocked = True
        self.log = logger.new(pair=address)

    # -- read accessors -------------------------------------------------------

    @property
    def asset0(self) -> AssetId:
        return self._require_initialized().asset0

    @property
    def asset1(self) -> AssetId:
        return self._require_initialized().asset1

    @property
    def total_share_supply(self) -> Amount:
        return self.runtime.ledger.total_supply(self.address)

    def share_balance_of(self, holder: Address) -> Amount:
        return self.runtime.ledger.balance_of(self.address, holder)

    def get_reserves(self) -> Tuple[Amount, Amount, int]:
        """Return ``(reserve0, reserve1, block_timestamp_last)``."""
        s = self.state
        return s.reserve0, s.reserve1, s.block_timestamp_last

    def observe(self) -> oracle.PriceObservation:
        """
        Cumulative prices as of now, including the time since the last resync.

        Does not mutate the pair.
        """
        s = self.state
        now_ts = oracle.block_timestamp(self.runtime.now())
        p0, p1 = oracle.accumulate(
            s.price0_cumulative_last,
            s.price1_cumulative_last,
            s.reserve0,
            s.reserve1,
            oracle.time_elapsed(now_ts, s.block_timestamp_last),
        )
        return oracle.PriceObservation(price0_cumulative=p0, price1_cumulative=p1, timestamp=now_ts)

    # -- journaling -----------------------------------------------------------

    def snapshot(self) -> PairState:
        return replace(self.state)

    def restore(self, state: PairState) -> None:
        self.state = replace(state)

    # -- guards ---------------------------------------------------------------

    def _require_initialized(self) -> PairState:
        if not self.state.initialized:
            raise NotInitialized(f"pair {self.address} is not initialized")
        return self.state

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._unlocked:
            raise Locked(f"pair {self.address} is locked")
        self._unlocked = False
        try:
            yield
        finally:
            self._unlocked = True

    @contextmanager
    def _operation(self) -> Iterator[PairState]:
        self._require_initialized()
        with self.runtime.atomic(), self._exclusive():
            self.runtime.enlist(self)
            yield self.state

    def _balances(self) -> Tuple[Amount, Amount]:
        ledger = self.runtime.ledger
        s = self.state
        return ledger.balance_of(s.asset0, self.address), ledger.balance_of(s.asset1, self.address)

    # -- lifecycle ------------------------------------------------------------

    def initialize(self, asset_x: AssetId, asset_y: AssetId, *, sender: Address) -> None:
        """Set the pair's assets. Only the creating registry may call this, once."""
        if sender != self.registry.address:
            raise Forbidden("only the registry can initialize a pair")
        if self.state.initialized:
            raise AlreadyInitialized(f"pair {self.address} is already initialized")
        asset0, asset1 = sort_assets(asset_x, asset_y)
        with self.runtime.atomic():
            self.runtime.enlist(self)
            self.state = PairState(address=self.address, asset0=asset0, asset1=asset1)

    # -- internal state transitions -------------------------------------------

    def _update(self, balance0: Amount, balance1: Amount, reserve0: Amount, reserve1: Amount) -> None:
        """Resynchronize reserves to ledger balances and advance the price accumulators."""
        max_reserve = self.config.max_reserve
        if balance0 > max_reserve or balance1 > max_reserve:
            raise Overflow(f"balances ({balance0}, {balance1}) exceed {self.config.reserve_bits} bits")
        s = self.state
        now_ts = oracle.block_timestamp(self.runtime.now())
        elapsed = oracle.time_elapsed(now_ts, s.block_timestamp_last)
        s.price0_cumulative_last, s.price1_cumulative_last = oracle.accumulate(
            s.price0_cumulative_last, s.price1_cumulative_last, reserve0, reserve1, elapsed,
        )
        s.reserve0 = balance0
        s.reserve1 = balance1
        s.block_timestamp_last = now_ts
        self.runtime.events.append(Resync(pair=self.address, reserve0=balance0, reserve1=balance1))

    def _mint_fee(self, reserve0: Amount, reserve1: Amount) -> bool:
        """
        Mint the protocol's cut of fee growth since the last liquidity event.

        Returns whether the protocol fee is on.
        """
        fee_to = self.registry.fee_to
        fee_on = fee_to != ZERO_ADDRESS
        s = self.state
        if fee_on:
            if s.k_last != 0:
                root_k = isqrt(reserve0 * reserve1)
                root_k_last = isqrt(s.k_last)
                if root_k > root_k_last:
                    numerator = self.total_share_supply * (root_k - root_k_last)
                    denominator = root_k * (self.config.protocol_fee_denominator - 1) + root_k_last
                    liquidity = numerator // denominator
                    if liquidity > 0:
                        self.runtime.ledger.mint(self.address, fee_to, liquidity)
                        self.log.debug('protocol fee minted', fee_to=fee_to, shares=liquidity)
        elif s.k_last != 0:
            s.k_last = 0
        return fee_on

    # -- operations -----------------------------------------------------------

    def deposit(self, to: Address, *, sender: Address) -> Amount:
        """
        Mint shares for the assets transferred into the pair since the last resync.

        The first deposit locks `minimum_liquidity` shares in the sink forever.

        Returns:
            Shares minted to ``to``
        """
        with self._operation() as s:
            reserve0, reserve1 = s.reserve0, s.reserve1
            balance0, balance1 = self._balances()
            amount0 = balance0 - reserve0
            amount1 = balance1 - reserve1
            if amount0 <= 0 or amount1 <= 0:
                raise InsufficientInputAmount(f"nothing deposited: ({amount0}, {amount1})")

            fee_on = self._mint_fee(reserve0, reserve1)
            # read after _mint_fee, which can grow the supply
            supply = self.total_share_supply
            minimum = self.config.minimum_liquidity
            if supply == 0:
                liquidity = isqrt(amount0 * amount1)
                if liquidity <= minimum:
                    raise InsufficientLiquidityMinted(
                        f"initial liquidity {liquidity} does not exceed the locked minimum {minimum}"
                    )
                liquidity -= minimum
                self.runtime.ledger.mint(self.address, LOCKED_SHARES_ADDRESS, minimum)
            else:
                liquidity = min(amount0 * supply // reserve0, amount1 * supply // reserve1)
            if liquidity <= 0:
                raise InsufficientLiquidityMinted("deposit too small to mint a share")
            self.runtime.ledger.mint(self.address, to, liquidity)

            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                s.k_last = s.reserve0 * s.reserve1
            self.runtime.events.append(
                Deposit(pair=self.address, sender=sender, amount0=amount0, amount1=amount1, shares=liquidity)
            )
            self.log.debug('deposit', sender=sender, amount0=amount0, amount1=amount1, shares=liquidity)
            return liquidity

    def withdraw(self, to: Address, *, sender: Address) -> Tuple[Amount, Amount]:
        """
        Burn the shares held by the pair and pay out both assets pro rata.

        Payouts use ledger balances, not stored reserves, so assets sent to the pair
        directly are shared out too.
        """
        with self._operation() as s:
            reserve0, reserve1 = s.reserve0, s.reserve1
            balance0, balance1 = self._balances()
            liquidity = self.share_balance_of(self.address)
            if liquidity == 0:
                raise InsufficientLiquidityBurned("no shares to burn")

            fee_on = self._mint_fee(reserve0, reserve1)
            supply = self.total_share_supply
            amount0 = liquidity * balance0 // supply
            amount1 = liquidity * balance1 // supply
            if amount0 == 0 or amount1 == 0:
                raise InsufficientLiquidityBurnedAmounts(f"payout rounds to zero: ({amount0}, {amount1})")

            self.runtime.ledger.burn(self.address, self.address, liquidity)
            self.runtime.transfer(s.asset0, self.address, to, amount0)
            self.runtime.transfer(s.asset1, self.address, to, amount1)
            balance0, balance1 = self._balances()

            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                s.k_last = s.reserve0 * s.reserve1
            self.runtime.events.append(
                Withdrawal(pair=self.address, sender=sender, amount0=amount0, amount1=amount1, to=to)
            )
            self.log.debug('withdraw', sender=sender, amount0=amount0, amount1=amount1, shares=liquidity, to=to)
            return amount0, amount1

    def swap(
        self,
        amount0_out: Amount,
        amount1_out: Amount,
        to: Address,
        data: bytes = b"",
        *,
        sender: Address,
    ) -> None:
        """
        Pay out the requested amounts, then check that enough input arrived.

        Outputs are transferred before inputs are measured. With non-empty ``data``
        the flash-swap callee registered for ``to`` runs in between and may settle
        the input itself.
        """
        _require_amount("amount0_out", amount0_out)
        _require_amount("amount1_out", amount1_out)
        if amount0_out == 0 and amount1_out == 0:
            raise InsufficientOutputAmount("at least one output must be positive")

        with self._operation() as s:
            reserve0, reserve1 = s.reserve0, s.reserve1
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientLiquidity(
                    f"outputs ({amount0_out}, {amount1_out}) must be below reserves ({reserve0}, {reserve1})"
                )
            if to in (ZERO_ADDRESS, s.asset0, s.asset1):
                raise InvalidRecipient(f"invalid recipient: {to}")

            if amount0_out > 0:
                self.runtime.transfer(s.asset0, self.address, to, amount0_out)
            if amount1_out > 0:
                self.runtime.transfer(s.asset1, self.address, to, amount1_out)
            if data:
                self.runtime.callee(to)(sender, amount0_out, amount1_out, data)
            balance0, balance1 = self._balances()

            amount0_in = max(0, balance0 - (reserve0 - amount0_out))
            amount1_in = max(0, balance1 - (reserve1 - amount1_out))
            if amount0_in == 0 and amount1_in == 0:
                raise InsufficientInputAmount("no input received")

            fee = self.config.fee
            adjusted0 = balance0 * fee.denominator - amount0_in * fee.charged
            adjusted1 = balance1 * fee.denominator - amount1_in * fee.charged
            k_adjusted = adjusted0 * adjusted1
            k_required = reserve0 * reserve1 * fee.denominator ** 2
            if k_adjusted < k_required:
                raise InvariantViolation(k_adjusted, k_required)

            self._update(balance0, balance1, reserve0, reserve1)
            self.runtime.events.append(Swap(
                pair=self.address,
                sender=sender,
                amount0_in=amount0_in,
                amount1_in=amount1_in,
                amount0_out=amount0_out,
                amount1_out=amount1_out,
                to=to,
            ))
            self.log.debug('swap', sender=sender, amount0_in=amount0_in, amount1_in=amount1_in,
                           amount0_out=amount0_out, amount1_out=amount1_out, to=to)

    def skim(self, to: Address, *, sender: Address) -> Tuple[Amount, Amount]:
        """Send any balance above the reserves to ``to``; reserves are unchanged."""
        with self._operation() as s:
            balance0, balance1 = self._balances()
            excess0 = max(0, balance0 - s.reserve0)
            excess1 = max(0, balance1 - s.reserve1)
            if excess0 > 0:
                self.runtime.transfer(s.asset0, self.address, to, excess0)
            if excess1 > 0:
                self.runtime.transfer(s.asset1, self.address, to, excess1)
            self.log.debug('skim', sender=sender, amount0=excess0, amount1=excess1, to=to)
            return excess0, excess1

    def force_resync(self) -> None:
        """Set reserves to the current ledger balances. Callable by anyone."""
        with self._operation() as s:
            balance0, balance1 = self._balances()
            self._update(balance0, balance1, s.reserve0, s.reserve1)
            self.log.debug('resync', reserve0=balance0, reserve1=balance1)

    def __repr__(self) -> str:
        return f"ExchangePair({self.state!r})"
