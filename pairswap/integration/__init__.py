"""
Services the exchange integrates with.
"""

from .wrapper import NativeWrapper

__all__ = ["NativeWrapper"]
