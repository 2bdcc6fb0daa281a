"""Fixtures for portfolio engine tests."""

from decimal import Decimal

import pytest

from cryptofolio.services.portfolio.models import Transaction


@pytest.fixture
def timestamp() -> int:
    """Standard timestamp for tests (epoch ms)."""
    return 1_704_067_200_000


@pytest.fixture
def two_lot_history(timestamp: int) -> list[Transaction]:
    """Buy 2 @ $10 then 3 @ $20."""
    return [
        Transaction.buy(Decimal("2"), Decimal("10"), timestamp=timestamp),
        Transaction.buy(Decimal("3"), Decimal("20"), timestamp=timestamp + 1),
    ]
