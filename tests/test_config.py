from __future__ import annotations

from pathlib import Path

import pytest

from pairswap.config import DEFAULT_CONFIG, ExchangeConfig, FeeRate, load_config
from pairswap.core.pricing import get_amount_out

A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
LP = "0x" + "1b" * 20


def test_defaults() -> None:
    assert DEFAULT_CONFIG.fee == FeeRate(997, 1000)
    assert DEFAULT_CONFIG.fee.charged == 3
    assert DEFAULT_CONFIG.minimum_liquidity == 1000
    assert DEFAULT_CONFIG.max_reserve == 2**112 - 1
    assert DEFAULT_CONFIG.protocol_fee_denominator == 6


@pytest.mark.parametrize(
    "kwargs",
    [
        {"minimum_liquidity": 0},
        {"reserve_bits": 4},
        {"reserve_bits": 113},
        {"reserve_bits": 128},
        {"reserve_bits": 257},
        {"protocol_fee_denominator": 1},
    ],
)
def test_invalid_config_values(kwargs) -> None:
    with pytest.raises(ValueError):
        ExchangeConfig(**kwargs)


def test_invalid_fee_rates() -> None:
    with pytest.raises(ValueError):
        FeeRate(0, 1000)
    with pytest.raises(ValueError):
        FeeRate(1001, 1000)
    with pytest.raises(TypeError):
        FeeRate(99.7, 100)  # type: ignore[arg-type]


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "exchange.yaml"
    path.write_text(
        "fee:\n"
        "  numerator: 9975\n"
        "  denominator: 10000\n"
        "minimum_liquidity: 500\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.fee == FeeRate(9975, 10_000)
    assert config.minimum_liquidity == 500
    assert config.reserve_bits == 112


def test_empty_yaml_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "typo.yaml"
    path.write_text("minimum_liquidty: 10\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
    with pytest.raises(ValueError):
        ExchangeConfig.from_mapping({"fee": {"numerator": 1, "rate": 2}})
    with pytest.raises(ValueError):
        ExchangeConfig.from_mapping(["fee"])  # type: ignore[arg-type]


def test_configured_fee_drives_quotes_and_swap_check(exchange_factory) -> None:
    fee = FeeRate(990, 1000)
    exchange = exchange_factory(config=ExchangeConfig(fee=fee))
    pair = exchange.seed(A, B, 100_000, 100_000, LP)
    trader = "0x" + "7a" * 20

    out = exchange.router.get_amount_out(1000, 100_000, 100_000)
    assert out == get_amount_out(1000, 100_000, 100_000, fee)
    # the 0.3% quote is too generous under a 1% fee
    assert get_amount_out(1000, 100_000, 100_000) > out

    exchange.fund(trader, A, 1000)
    exchange.router.swap_exact_in(1000, out, [A, B], trader, exchange.runtime.now(), sender=trader)
    assert exchange.balance(trader, B) == out
    assert pair.get_reserves()[:2] == (101_000, 100_000 - out)


def test_configured_minimum_liquidity(exchange_factory) -> None:
    exchange = exchange_factory(config=ExchangeConfig(minimum_liquidity=10))
    pair = exchange.seed(A, B, 100, 100, LP)
    assert pair.share_balance_of(LP) == 90
