"""
Execution runtime shared by every pair, registry, router and wrapper.

Holds the asset ledger, the clock, the event log and the flash-swap callees, and
provides `atomic()`: every externally visible operation runs inside it so that a
failure anywhere rolls back all effects of the operation.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Protocol, Tuple

from structlog import get_logger

from ..errors import CalleeNotFound, TransferFailed
from ..state.balances import Address, Amount, AssetId
from ..state.ledger import AssetLedger, InMemoryLedger
from .events import EventLog

logger = get_logger()

Clock = Callable[[], int]
# (sender, amount0_out, amount1_out, data)
FlashSwapCallee = Callable[[Address, Amount, Amount, bytes], None]


class Journaled(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class SystemClock:
    """Wall clock in whole seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: int = 0) -> None:
        if now < 0:
            raise ValueError(f"now must be non-negative: {now}")
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards: {seconds}")
        self.now += seconds
        return self.now


class Runtime:
    def __init__(self, ledger: Optional[AssetLedger] = None, clock: Optional[Clock] = None) -> None:
        self.ledger: AssetLedger = ledger if ledger is not None else InMemoryLedger()
        self.clock: Clock = clock if clock is not None else SystemClock()
        self.events = EventLog()
        # id(obj) -> (obj, snapshot) for objects written in the open atomic() block
        self._enlisted: Dict[int, Tuple[Journaled, Any]] = {}
        self._callees: Dict[Address, FlashSwapCallee] = {}
        self._depth = 0
        self.log = logger.new()

    def now(self) -> int:
        return self.clock()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def enlist(self, obj: Journaled) -> None:
        """
        Snapshot ``obj`` into the open `atomic()` block before its first write.

        Enlisting the same object again in one block is a no-op, so callers enlist
        at the top of every mutating operation.
        """
        if self._depth == 0:
            raise RuntimeError("enlist() outside of an atomic() block")
        if id(obj) not in self._enlisted:
            self._enlisted[id(obj)] = (obj, obj.snapshot())

    def register_callee(self, address: Address, callee: FlashSwapCallee) -> None:
        self._callees[address] = callee

    def callee(self, address: Address) -> FlashSwapCallee:
        try:
            return self._callees[address]
        except KeyError:
            raise CalleeNotFound(f"no flash-swap callee registered for {address}") from None

    def transfer(self, asset: AssetId, sender: Address, to: Address, amount: Amount) -> None:
        """Move value through the ledger; a refusal aborts the enclosing operation."""
        if not self.ledger.transfer(asset, sender, to, amount):
            raise TransferFailed(asset, sender, to, amount)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block all-or-nothing.

        The outermost block opens a ledger savepoint and marks the event log; other
        objects are snapshotted when they `enlist`. If the block raises, everything
        is put back; nested blocks join the outer one.
        """
        if self._depth > 0:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        ledger_mark = self.ledger.snapshot()
        events_mark = self.events.snapshot()
        self._enlisted = {}
        self._depth = 1
        try:
            yield
        except BaseException as exc:
            for obj, state in reversed(list(self._enlisted.values())):
                obj.restore(state)
            self.events.restore(events_mark)
            self.ledger.restore(ledger_mark)
            self.log.debug('operation rolled back', error=type(exc).__name__)
            raise
        else:
            self.ledger.commit(ledger_mark)
        finally:
            self._enlisted = {}
            self._depth = 0
