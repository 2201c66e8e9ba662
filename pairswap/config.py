"""
Exchange configuration.

The fee rate is shared by the pricing functions and by the pair's swap check;
changing it changes both sides consistently.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class FeeRate:
    """
    Multiplicative fee factor applied to swap inputs.

    ``numerator / denominator`` is the share of the input that prices the trade;
    997/1000 charges 0.3%.
    """

    numerator: int = 997
    denominator: int = 1000

    def __post_init__(self) -> None:
        _require_int("numerator", self.numerator)
        _require_int("denominator", self.denominator)
        if self.denominator <= 0:
            raise ValueError(f"denominator must be positive: {self.denominator}")
        if not (0 < self.numerator <= self.denominator):
            raise ValueError(f"numerator must be in (0, {self.denominator}]: {self.numerator}")

    @property
    def charged(self) -> int:
        """Fee units charged per ``denominator`` units of input."""
        return self.denominator - self.numerator


STANDARD_FEE = FeeRate()
# Reserves are encoded as the integer half of a UQ112x112 price.
MAX_RESERVE_BITS = 112


@dataclass(frozen=True)
class ExchangeConfig:
    fee: FeeRate = field(default_factory=FeeRate)
    # Shares locked in the sink on the first deposit of every pair.
    minimum_liquidity: int = 1000
    # Bit width reserves must fit in.
    reserve_bits: int = MAX_RESERVE_BITS
    # Protocol takes 1/d of the fee growth when a fee recipient is set.
    protocol_fee_denominator: int = 6

    def __post_init__(self) -> None:
        if not isinstance(self.fee, FeeRate):
            raise TypeError("fee must be a FeeRate")
        for name in ("minimum_liquidity", "reserve_bits", "protocol_fee_denominator"):
            _require_int(name, getattr(self, name))
        if self.minimum_liquidity <= 0:
            raise ValueError(f"minimum_liquidity must be positive: {self.minimum_liquidity}")
        if not (8 <= self.reserve_bits <= MAX_RESERVE_BITS):
            raise ValueError(f"reserve_bits must be in [8, {MAX_RESERVE_BITS}]: {self.reserve_bits}")
        if self.protocol_fee_denominator < 2:
            raise ValueError(f"protocol_fee_denominator must be >= 2: {self.protocol_fee_denominator}")

    @property
    def max_reserve(self) -> int:
        return (1 << self.reserve_bits) - 1

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExchangeConfig":
        """Build a config from a plain mapping (e.g. parsed YAML); unknown keys fail."""
        if not isinstance(data, Mapping):
            raise ValueError("exchange config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown exchange config keys: {unknown}")

        kwargs = dict(data)
        fee = kwargs.get("fee")
        if fee is not None and not isinstance(fee, FeeRate):
            if not isinstance(fee, Mapping):
                raise ValueError("fee must be a mapping with numerator/denominator")
            extra = sorted(set(fee) - {"numerator", "denominator"})
            if extra:
                raise ValueError(f"unknown fee keys: {extra}")
            kwargs["fee"] = FeeRate(**fee)
        elif fee is None:
            kwargs.pop("fee", None)
        return cls(**kwargs)


DEFAULT_CONFIG = ExchangeConfig()


def load_config(path: Union[str, Path]) -> ExchangeConfig:
    """Load an ``ExchangeConfig`` from a YAML file. An empty file yields the defaults."""
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if data is None:
        return ExchangeConfig()
    return ExchangeConfig.from_mapping(data)
