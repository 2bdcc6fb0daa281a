"""
Cryptofolio - Crypto Portfolio Tracker

Public API for FIFO lot accounting over buy/sell transaction histories.
"""

from importlib.metadata import version

try:
    __version__ = version("cryptofolio")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
