"""
Canonical asset ordering and deterministic pair addresses.

A pair is keyed by its two assets in ascending order, so each unordered asset
combination maps to exactly one pair and one address.
"""

from __future__ import annotations

import hashlib
from typing import Tuple

from ..errors import IdenticalAssets, ZeroAsset
from .balances import ZERO_ADDRESS, Address, AssetId


PAIR_ADDRESS_DOMAIN = b"pairswap.pair.v1"


def sort_assets(asset_a: AssetId, asset_b: AssetId) -> Tuple[AssetId, AssetId]:
    """
    Return ``(low, high)`` for two distinct, non-null assets.

    Raises:
        IdenticalAssets: if both identifiers are equal
        ZeroAsset: if either identifier is the null identifier
    """
    if asset_a == asset_b:
        raise IdenticalAssets(f"identical assets: {asset_a}")
    low, high = (asset_a, asset_b) if asset_a < asset_b else (asset_b, asset_a)
    if low == ZERO_ADDRESS or high == ZERO_ADDRESS:
        raise ZeroAsset("asset must not be the zero address")
    return low, high


def compute_pair_address(registry: Address, asset_a: AssetId, asset_b: AssetId) -> Address:
    """
    Derive the pair address from the registry address and the canonical assets.

        address = "0x" || sha256(domain || registry || low || high)[:20 bytes]

    Only depends on its inputs, so callers can compute a pair's address without
    consulting the registry.
    """
    low, high = sort_assets(asset_a, asset_b)
    data = (
        PAIR_ADDRESS_DOMAIN
        + b"\x00" + registry.encode("utf-8")
        + b"\x00" + low.encode("utf-8")
        + b"\x00" + high.encode("utf-8")
    )
    return "0x" + hashlib.sha256(data).hexdigest()[:40]
