"""
Multi-asset balance tracking.

Implements BalanceTable[AssetId][Address] -> Amount
"""

from typing import Dict


# Type aliases
Address = str  # 20-byte hex string (0x...)
AssetId = str  # asset identifier; liquidity shares use the pair address
Amount = int  # Non-negative integer (arbitrary precision)

# Null identifier: never a valid asset, account or recipient
ZERO_ADDRESS: Address = "0x" + "00" * 20

# Sink for permanently locked liquidity shares; nothing can leave it
LOCKED_SHARES_ADDRESS: Address = "0x" + "00" * 18 + "dead"

# Native value unit handled by the wrapper service
NATIVE_ASSET: AssetId = "0x" + "ee" * 20


class BalanceTable:
    """
    Balance table indexed asset -> holder -> amount.

    Zero balances are dropped so the table stays sparse and `holders` only walks
    accounts that actually hold the asset.
    """

    def __init__(self) -> None:
        self._by_asset: Dict[AssetId, Dict[Address, Amount]] = {}

    def get(self, holder: Address, asset: AssetId) -> Amount:
        """Get balance for (holder, asset). Returns 0 if not found."""
        return self._by_asset.get(asset, {}).get(holder, 0)

    def set(self, holder: Address, asset: AssetId, amount: Amount) -> Amount:
        """
        Set balance for (holder, asset).

        Args:
            holder: Account address
            asset: Asset identifier
            amount: Non-negative amount

        Returns:
            The balance being replaced

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        accounts = self._by_asset.setdefault(asset, {})
        previous = accounts.get(holder, 0)
        if amount == 0:
            accounts.pop(holder, None)
            if not accounts:
                del self._by_asset[asset]
        else:
            accounts[holder] = amount
        return previous

    def holders(self, asset: AssetId) -> Dict[Address, Amount]:
        """Return a copy of holder -> amount for one asset."""
        return dict(self._by_asset.get(asset, {}))

    def __len__(self) -> int:
        return sum(len(accounts) for accounts in self._by_asset.values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._by_asset)} assets, {len(self)} entries)"
