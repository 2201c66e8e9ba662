from __future__ import annotations

import logging
from typing import Iterator

import pytest
import structlog

from pairswap.log import LoggingOutput, setup_logging


@pytest.fixture
def reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def test_null_output_configures_structlog(reset_logging) -> None:
    setup_logging(LoggingOutput.NULL)

    assert structlog.is_configured()
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert all(isinstance(h, logging.NullHandler) for h in root.handlers)


def test_debug_lowers_the_root_level(reset_logging) -> None:
    setup_logging(LoggingOutput.JSON, debug=True)
    assert logging.getLogger().level == logging.DEBUG


def test_exchange_runs_with_logging_configured(reset_logging, exchange) -> None:
    setup_logging(LoggingOutput.NULL, debug=True)
    a, b = "0x" + "0a" * 20, "0x" + "0b" * 20
    pair = exchange.seed(a, b, 10_000, 10_000, "0x" + "1b" * 20)
    assert pair.total_share_supply == 10_000
