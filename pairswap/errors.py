"""Exception types for the exchange.

Every failure aborts the whole in-flight operation (see ``Runtime.atomic``);
callers decide whether to resubmit with fresh parameters.
"""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for every exchange failure."""


class PreconditionError(ExchangeError):
    """The caller supplied arguments that can never succeed."""


class LiquidityError(ExchangeError):
    """Market conditions or a slippage bound rejected the operation."""


class StateError(ExchangeError):
    """The operation is not valid for the current object state or caller."""


class TransferFailed(ExchangeError):
    """The asset ledger refused to move value."""

    def __init__(self, asset: str, sender: str, to: str, amount: int) -> None:
        self.asset = asset
        self.sender = sender
        self.to = to
        self.amount = amount
        super().__init__(f"transfer of {amount} {asset} from {sender} to {to} failed")


# Preconditions

class Expired(PreconditionError):
    pass


class ZeroAddress(PreconditionError):
    pass


class ZeroAsset(PreconditionError):
    pass


class IdenticalAssets(PreconditionError):
    pass


class InvalidPath(PreconditionError):
    pass


class InvalidRecipient(PreconditionError):
    pass


class InsufficientAmount(PreconditionError):
    pass


class InsufficientInputAmount(PreconditionError):
    pass


class InsufficientOutputAmount(PreconditionError):
    pass


# Liquidity / invariant

class InsufficientLiquidity(LiquidityError):
    pass


class InsufficientLiquidityMinted(LiquidityError):
    pass


class InsufficientLiquidityBurned(LiquidityError):
    pass


class InsufficientLiquidityBurnedAmounts(LiquidityError):
    pass


class InsufficientAAmount(LiquidityError):
    pass


class InsufficientBAmount(LiquidityError):
    pass


class ExcessiveInputAmount(LiquidityError):
    pass


class InvariantViolation(LiquidityError):
    """Raised when fee-adjusted balances would shrink the constant product."""

    def __init__(self, k_adjusted: int, k_required: int) -> None:
        self.k_adjusted = k_adjusted
        self.k_required = k_required
        super().__init__(f"constant product violated: {k_adjusted} < {k_required}")


class Overflow(LiquidityError):
    pass


# State

class AlreadyInitialized(StateError):
    pass


class NotInitialized(StateError):
    pass


class Forbidden(StateError):
    pass


class PairExists(StateError):
    pass


class PairNotFound(StateError):
    pass


class Locked(StateError):
    pass


class CalleeNotFound(StateError):
    pass
