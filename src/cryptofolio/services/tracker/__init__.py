"""Portfolio tracker: wires ledger, price source and engine together."""

from cryptofolio.services.tracker.models import PortfolioReport
from cryptofolio.services.tracker.service import PortfolioTracker

__all__ = [
    "PortfolioReport",
    "PortfolioTracker",
]
