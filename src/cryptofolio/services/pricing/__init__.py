"""Market price sources.

Key components:
- IPriceSource: Protocol interface
- CoinGeckoPriceSource: HTTP client for the CoinGecko simple-price API
- StaticPriceSource: Fixed prices (offline use, tests)
- PriceQuote: Price + 24h change
"""

from cryptofolio.services.pricing.coingecko import CoinGeckoPriceSource
from cryptofolio.services.pricing.interface import IPriceSource
from cryptofolio.services.pricing.models import PriceQuote
from cryptofolio.services.pricing.static import StaticPriceSource

__all__ = [
    "IPriceSource",
    "CoinGeckoPriceSource",
    "StaticPriceSource",
    "PriceQuote",
]
