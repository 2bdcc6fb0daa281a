"""Unit tests for LedgerService."""

import threading
from decimal import Decimal
from typing import Any

import pytest

from cryptofolio.exceptions import LedgerConflictError, LedgerUnavailableError
from cryptofolio.services.ledger.interface import StoredLedger
from cryptofolio.services.ledger.service import LedgerService
from cryptofolio.services.ledger.stores import InMemoryLedgerStore
from cryptofolio.services.portfolio.models import Transaction, TransactionKind


class FlakyStore(InMemoryLedgerStore):
    """Loses the first `conflicts` conditional writes."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.put_calls = 0

    def put(self, user_id: str, asset_id: str, transactions: list[dict[str, Any]], expected_version: int) -> bool:
        self.put_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            return False
        return super().put(user_id, asset_id, transactions, expected_version)


class BrokenStore:
    """Every operation fails."""

    def get(self, user_id: str, asset_id: str) -> StoredLedger:
        raise ConnectionError("store offline")

    def put(self, user_id: str, asset_id: str, transactions: list[dict[str, Any]], expected_version: int) -> bool:
        raise ConnectionError("store offline")

    def query(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        raise ConnectionError("store offline")


@pytest.fixture
def ledger() -> LedgerService:
    return LedgerService(InMemoryLedgerStore(), max_backoff_seconds=0)


class TestAppend:
    """Test appending transactions."""

    def test_append_then_read(self, ledger: LedgerService) -> None:
        ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal("100"), timestamp=5))

        result = ledger.read("alice")

        assert list(result) == ["bitcoin"]
        assert result["bitcoin"] == [Transaction.buy(Decimal("1"), Decimal("100"), timestamp=5)]

    def test_appends_preserve_order(self, ledger: LedgerService) -> None:
        first = Transaction.buy(Decimal("1"), Decimal("100"))
        second = Transaction.sell(Decimal("0.5"), Decimal("120"))
        third = Transaction.buy(Decimal("2"), Decimal("90"))

        for tx in (first, second, third):
            ledger.append("alice", "bitcoin", tx)

        assert ledger.history("alice", "bitcoin") == [first, second, third]

    def test_stored_as_strings(self, ledger: LedgerService) -> None:
        ledger.append("alice", "bitcoin", Transaction.buy(Decimal("0.1"), Decimal("42000.5")))

        stored = ledger.store.get("alice", "bitcoin")

        assert stored.transactions[0]["quantity"] == "0.1"
        assert stored.transactions[0]["price"] == "42000.5"

    def test_retries_lost_conditional_writes(self) -> None:
        store = FlakyStore(conflicts=2)
        ledger = LedgerService(store, max_attempts=3, max_backoff_seconds=0)

        ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal("1")))

        assert store.put_calls == 3
        assert len(ledger.history("alice", "bitcoin")) == 1

    def test_conflict_after_exhausted_attempts(self) -> None:
        store = FlakyStore(conflicts=10)
        ledger = LedgerService(store, max_attempts=3, max_backoff_seconds=0)

        with pytest.raises(LedgerConflictError) as exc_info:
            ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal("1")))

        assert exc_info.value.attempts == 3
        assert store.put_calls == 3
        assert ledger.history("alice", "bitcoin") == []

    def test_store_failure_is_unavailable(self) -> None:
        ledger = LedgerService(BrokenStore(), max_backoff_seconds=0)

        with pytest.raises(LedgerUnavailableError, match="store offline"):
            ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal("1")))

    def test_concurrent_appends_all_land(self) -> None:
        ledger = LedgerService(InMemoryLedgerStore(), max_attempts=50, max_backoff_seconds=0.001)
        writers = 8

        def write(n: int) -> None:
            ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal(n)))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        history = ledger.history("alice", "bitcoin")
        assert len(history) == writers
        assert sorted(tx.price for tx in history) == [Decimal(n) for n in range(writers)]

    def test_invalid_max_attempts(self) -> None:
        with pytest.raises(ValueError):
            LedgerService(InMemoryLedgerStore(), max_attempts=0)


class TestRead:
    """Test reading and normalizing stored records."""

    def test_unknown_user_is_empty(self, ledger: LedgerService) -> None:
        assert ledger.read("nobody") == {}
        assert ledger.history("nobody", "bitcoin") == []

    def test_malformed_records_dropped_or_zeroed(self) -> None:
        store = InMemoryLedgerStore(
            {
                "alice": {
                    "bitcoin": [
                        {"type": "buy", "quantity": 1, "price": 100, "timestamp": 1},
                        {"type": "stake", "quantity": 1, "price": 1},
                        {"type": "sell", "quantity": "oops", "price": 100},
                    ]
                }
            }
        )
        ledger = LedgerService(store)

        history = ledger.read("alice")["bitcoin"]

        assert [tx.kind for tx in history] == [TransactionKind.BUY, TransactionKind.SELL]
        assert history[1].quantity == Decimal("0")

    def test_read_failure_is_unavailable(self) -> None:
        ledger = LedgerService(BrokenStore())

        with pytest.raises(LedgerUnavailableError):
            ledger.read("alice")
        with pytest.raises(LedgerUnavailableError):
            ledger.history("alice", "bitcoin")
