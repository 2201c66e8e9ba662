"""
Exchange events.

Events are appended to the runtime's `EventLog` as the operation runs; a failed
operation rolls them back together with every other effect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Type, TypeVar

from ..state.balances import Address, Amount, AssetId


@dataclass(frozen=True)
class PairCreated:
    asset0: AssetId
    asset1: AssetId
    pair: Address
    index: int


@dataclass(frozen=True)
class Deposit:
    pair: Address
    sender: Address
    amount0: Amount
    amount1: Amount
    # minted to the depositor, excluding the locked minimum
    shares: Amount


@dataclass(frozen=True)
class Withdrawal:
    pair: Address
    sender: Address
    amount0: Amount
    amount1: Amount
    to: Address


@dataclass(frozen=True)
class Swap:
    pair: Address
    sender: Address
    amount0_in: Amount
    amount1_in: Amount
    amount0_out: Amount
    amount1_out: Amount
    to: Address


@dataclass(frozen=True)
class Resync:
    pair: Address
    reserve0: Amount
    reserve1: Amount


Event = object
E = TypeVar("E")


class EventLog:
    """Append-only event list with snapshot/restore for rollback."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def append(self, event: Event) -> None:
        self._events.append(event)

    def of_type(self, kind: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, kind)]

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, state: int) -> None:
        del self._events[state:]

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> Event:
        return self._events[index]
