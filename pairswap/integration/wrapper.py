"""
Native value wrapper.

Pairs only trade ledger assets, so the native value unit (`NATIVE_ASSET`) is wrapped
1:1 into a tradeable asset whose asset id is the wrapper's address. The wrapper
keeps the native backing in its own ledger account:

    total_supply(wrapped) == balance_of(NATIVE_ASSET, wrapper)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structlog import get_logger

from ..errors import TransferFailed, ZeroAddress
from ..state.balances import NATIVE_ASSET, ZERO_ADDRESS, Address, Amount, AssetId

if TYPE_CHECKING:
    from ..core.runtime import Runtime

logger = get_logger()

DEFAULT_WRAPPER_ADDRESS: Address = "0x" + "00" * 19 + "e1"


class NativeWrapper:
    def __init__(self, runtime: "Runtime", address: Address = DEFAULT_WRAPPER_ADDRESS) -> None:
        if address == ZERO_ADDRESS:
            raise ZeroAddress("wrapper address must be set")
        self.runtime = runtime
        self.address = address
        self.log = logger.new(wrapper=address)

    @property
    def asset(self) -> AssetId:
        """Asset id of the wrapped representation."""
        return self.address

    def balance_of(self, holder: Address) -> Amount:
        return self.runtime.ledger.balance_of(self.asset, holder)

    def wrap(self, amount: Amount, *, sender: Address) -> None:
        """Lock ``amount`` native units from ``sender`` and credit the wrapped asset."""
        with self.runtime.atomic():
            self.runtime.transfer(NATIVE_ASSET, sender, self.address, amount)
            self.runtime.ledger.mint(self.asset, sender, amount)
        self.log.debug('wrap', sender=sender, amount=amount)

    def unwrap(self, amount: Amount, *, sender: Address) -> None:
        """Burn ``amount`` wrapped units of ``sender`` and release the native backing."""
        with self.runtime.atomic():
            if self.balance_of(sender) < amount:
                raise TransferFailed(self.asset, sender, self.address, amount)
            self.runtime.ledger.burn(self.asset, sender, amount)
            self.runtime.transfer(NATIVE_ASSET, self.address, sender, amount)
        self.log.debug('unwrap', sender=sender, amount=amount)

    def transfer(self, to: Address, amount: Amount, *, sender: Address) -> None:
        self.runtime.transfer(self.asset, sender, to, amount)
