"""
pairswap: constant product exchange pairs, a pair registry and a multi-hop router.
"""

from .config import ExchangeConfig, FeeRate, load_config
from .core import ExchangePair, PairRegistry, Router, Runtime
from .integration import NativeWrapper

__version__ = "0.1.0"

__all__ = [
    "ExchangeConfig",
    "FeeRate",
    "load_config",
    "ExchangePair",
    "PairRegistry",
    "Router",
    "Runtime",
    "NativeWrapper",
    "__version__",
]
