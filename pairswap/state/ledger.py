"""
Asset ledger.

Pairs, the router and the wrapper move value only through this interface.
`InMemoryLedger` is the reference implementation used by the package itself and by
the test-suite; any object satisfying `AssetLedger` can stand in for it.

Rollback uses savepoints rather than copies:

    mark = ledger.snapshot()     # open a savepoint
    ...writes...                 # each write journals the value it replaces
    ledger.restore(mark)         # undo journaled writes back to the mark, or
    ledger.commit(mark)          # keep them

so rolling back costs time proportional to what changed, not to the ledger size.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple

from .balances import LOCKED_SHARES_ADDRESS, ZERO_ADDRESS, Address, Amount, AssetId, BalanceTable


class AssetLedger(Protocol):
    def balance_of(self, asset: AssetId, holder: Address) -> Amount: ...

    def total_supply(self, asset: AssetId) -> Amount: ...

    def transfer(self, asset: AssetId, sender: Address, to: Address, amount: Amount) -> bool: ...

    def mint(self, asset: AssetId, to: Address, amount: Amount) -> None: ...

    def burn(self, asset: AssetId, holder: Address, amount: Amount) -> None: ...

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...

    def commit(self, state: Any) -> None: ...


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


# (asset, holder, previous value); holder None marks a supply entry
_JournalEntry = Tuple[AssetId, Optional[Address], Amount]


class InMemoryLedger:
    """
    Balance + supply bookkeeping for every asset, liquidity shares included.

    `transfer` reports refusal with ``False`` (insufficient balance, a transfer out of
    the locked-shares sink, or a transfer to the null address); callers turn that into
    `TransferFailed`.
    """

    def __init__(self) -> None:
        self._balances = BalanceTable()
        self._supplies: Dict[AssetId, Amount] = {}
        self._journal: List[_JournalEntry] = []
        self._savepoints = 0

    def balance_of(self, asset: AssetId, holder: Address) -> Amount:
        return self._balances.get(holder, asset)

    def total_supply(self, asset: AssetId) -> Amount:
        return self._supplies.get(asset, 0)

    def transfer(self, asset: AssetId, sender: Address, to: Address, amount: Amount) -> bool:
        _require_amount("amount", amount)
        if sender == LOCKED_SHARES_ADDRESS or to == ZERO_ADDRESS:
            return False
        balance = self.balance_of(asset, sender)
        if balance < amount:
            return False
        if amount == 0 or sender == to:
            return True
        self._write_balance(sender, asset, balance - amount)
        self._write_balance(to, asset, self.balance_of(asset, to) + amount)
        return True

    def mint(self, asset: AssetId, to: Address, amount: Amount) -> None:
        _require_amount("amount", amount)
        if to == ZERO_ADDRESS:
            raise ValueError("cannot mint to the zero address")
        self._write_balance(to, asset, self.balance_of(asset, to) + amount)
        self._write_supply(asset, self.total_supply(asset) + amount)

    def burn(self, asset: AssetId, holder: Address, amount: Amount) -> None:
        _require_amount("amount", amount)
        balance = self.balance_of(asset, holder)
        if balance < amount:
            raise ValueError(f"Insufficient balance: {balance} < {amount}")
        self._write_balance(holder, asset, balance - amount)
        self._write_supply(asset, self.total_supply(asset) - amount)

    def holders(self, asset: AssetId) -> Dict[Address, Amount]:
        return self._balances.holders(asset)

    # -- savepoints -----------------------------------------------------------

    def snapshot(self) -> int:
        """Open a savepoint and return its mark."""
        self._savepoints += 1
        return len(self._journal)

    def restore(self, state: int) -> None:
        """Undo every write made since the savepoint ``state`` and close it."""
        while len(self._journal) > state:
            asset, holder, previous = self._journal.pop()
            if holder is None:
                self._set_supply(asset, previous)
            else:
                self._balances.set(holder, asset, previous)
        self._close_savepoint()

    def commit(self, state: int) -> None:
        """Close the savepoint ``state``, keeping its writes."""
        if state > len(self._journal):
            raise ValueError(f"unknown savepoint: {state}")
        self._close_savepoint()

    @property
    def pending_writes(self) -> int:
        """Writes journaled by the savepoints still open."""
        return len(self._journal)

    def _close_savepoint(self) -> None:
        if self._savepoints == 0:
            raise ValueError("no savepoint is open")
        self._savepoints -= 1
        if self._savepoints == 0:
            self._journal.clear()

    def _write_balance(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        previous = self._balances.set(holder, asset, amount)
        if self._savepoints:
            self._journal.append((asset, holder, previous))

    def _write_supply(self, asset: AssetId, amount: Amount) -> None:
        previous = self._set_supply(asset, amount)
        if self._savepoints:
            self._journal.append((asset, None, previous))

    def _set_supply(self, asset: AssetId, amount: Amount) -> Amount:
        previous = self._supplies.pop(asset, 0)
        if amount:
            self._supplies[asset] = amount
        return previous

    def __repr__(self) -> str:
        return f"InMemoryLedger({self._balances!r}, {len(self._supplies)} assets, {self.pending_writes} pending)"
