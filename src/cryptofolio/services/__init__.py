"""Cryptofolio services package.

Each service is independently testable and communicates via Protocol
interfaces using dependency injection:
- portfolio: pure FIFO accounting engine
- ledger: transaction storage
- pricing: market price sources
- tracker: orchestration of the three
"""

from cryptofolio.services.ledger import LedgerService
from cryptofolio.services.portfolio import PortfolioEngine
from cryptofolio.services.tracker import PortfolioTracker

__all__: list[str] = [
    "LedgerService",
    "PortfolioEngine",
    "PortfolioTracker",
]
