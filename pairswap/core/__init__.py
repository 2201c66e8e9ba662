"""
Core exchange algorithms
"""

from .events import Deposit, EventLog, PairCreated, Resync, Swap, Withdrawal
from .pair import ExchangePair
from .pricing import (
    get_amount_in,
    get_amount_out,
    get_amounts_in,
    get_amounts_out,
    get_reserves,
    isqrt,
    quote,
)
from .registry import PairRegistry
from .router import Router
from .runtime import ManualClock, Runtime, SystemClock

__all__ = [
    "Deposit",
    "EventLog",
    "PairCreated",
    "Resync",
    "Swap",
    "Withdrawal",
    "ExchangePair",
    "get_amount_in",
    "get_amount_out",
    "get_amounts_in",
    "get_amounts_out",
    "get_reserves",
    "isqrt",
    "quote",
    "PairRegistry",
    "Router",
    "ManualClock",
    "Runtime",
    "SystemClock",
]
