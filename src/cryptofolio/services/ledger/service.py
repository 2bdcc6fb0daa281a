"""Ledger service - typed access to stored transaction histories.

Normalizes raw stored records into Transaction models on read and performs
appends as a read / conditional-write loop so concurrent writers for the
same (user, asset) never drop each other's transactions.
"""

from typing import Any

import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random

from cryptofolio.exceptions import LedgerConflictError, LedgerUnavailableError
from cryptofolio.services.ledger.interface import ILedgerStore
from cryptofolio.services.portfolio.models import Transaction

logger = structlog.get_logger(__name__)


class _VersionConflict(Exception):
    """Conditional write lost to a concurrent writer."""


class LedgerService:
    """
    Transaction ledger on top of an injected ILedgerStore.

    Example:
        >>> ledger = LedgerService(InMemoryLedgerStore())
        >>> ledger.append("alice", "bitcoin", Transaction.buy(Decimal("1"), Decimal("100")))
        >>> ledger.read("alice")
        {'bitcoin': [Transaction(kind=<TransactionKind.BUY: 'buy'>, ...)]}
    """

    def __init__(
        self,
        store: ILedgerStore,
        max_attempts: int = 5,
        max_backoff_seconds: float = 0.05,
    ) -> None:
        """
        Initialize ledger service.

        Args:
            store: Storage backend
            max_attempts: Conditional-write attempts before giving up
            max_backoff_seconds: Upper bound of the random wait between attempts
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._store = store
        self._max_attempts = max_attempts
        self._max_backoff_seconds = max_backoff_seconds

    @property
    def store(self) -> ILedgerStore:
        """Underlying storage backend."""
        return self._store

    @staticmethod
    def _normalize(user_id: str, asset_id: str, records: list[dict[str, Any]]) -> list[Transaction]:
        transactions: list[Transaction] = []
        for index, record in enumerate(records):
            tx = Transaction.from_record(record)
            if tx is None:
                logger.warning(
                    "ledger.record_dropped",
                    user_id=user_id,
                    asset_id=asset_id,
                    index=index,
                )
                continue
            transactions.append(tx)
        return transactions

    def read(self, user_id: str) -> dict[str, list[Transaction]]:
        """
        Read all transaction histories of a user.

        Args:
            user_id: User identity

        Returns:
            asset_id -> transactions in insertion order (empty dict if none)

        Raises:
            LedgerUnavailableError: If the store cannot be read
        """
        try:
            raw = self._store.query(user_id)
        except Exception as e:
            logger.error("ledger.read_failed", user_id=user_id, error=str(e))
            raise LedgerUnavailableError(f"Failed to read ledger for {user_id}: {e}") from e

        ledger = {asset_id: self._normalize(user_id, asset_id, records) for asset_id, records in raw.items()}
        logger.debug("ledger.read", user_id=user_id, assets=len(ledger))
        return ledger

    def history(self, user_id: str, asset_id: str) -> list[Transaction]:
        """
        Read one asset's transaction history.

        Args:
            user_id: User identity
            asset_id: Asset identifier

        Returns:
            Transactions in insertion order

        Raises:
            LedgerUnavailableError: If the store cannot be read
        """
        try:
            stored = self._store.get(user_id, asset_id)
        except Exception as e:
            logger.error("ledger.read_failed", user_id=user_id, asset_id=asset_id, error=str(e))
            raise LedgerUnavailableError(f"Failed to read ledger for {user_id}/{asset_id}: {e}") from e
        return self._normalize(user_id, asset_id, stored.transactions)

    def _try_append(self, user_id: str, asset_id: str, record: dict[str, Any]) -> int:
        stored = self._store.get(user_id, asset_id)
        updated = [*stored.transactions, record]
        if not self._store.put(user_id, asset_id, updated, expected_version=stored.version):
            logger.debug("ledger.append_conflict", user_id=user_id, asset_id=asset_id, version=stored.version)
            raise _VersionConflict()
        return len(updated)

    def append(self, user_id: str, asset_id: str, transaction: Transaction) -> None:
        """
        Append one transaction to the end of an asset's history.

        Args:
            user_id: User identity
            asset_id: Asset identifier
            transaction: Transaction to record

        Raises:
            LedgerConflictError: If every conditional write lost to another writer
            LedgerUnavailableError: If the store cannot be read or written
        """
        record = transaction.to_record()
        try:
            for attempt in Retrying(
                retry=retry_if_exception_type(_VersionConflict),
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_random(0, self._max_backoff_seconds),
                reraise=True,
            ):
                with attempt:
                    length = self._try_append(user_id, asset_id, record)
        except _VersionConflict as e:
            logger.error(
                "ledger.append_conflict_exhausted",
                user_id=user_id,
                asset_id=asset_id,
                attempts=self._max_attempts,
            )
            raise LedgerConflictError(user_id, asset_id, self._max_attempts) from e
        except Exception as e:
            logger.error("ledger.append_failed", user_id=user_id, asset_id=asset_id, error=str(e))
            raise LedgerUnavailableError(f"Failed to save transaction for {user_id}/{asset_id}: {e}") from e

        logger.info(
            "ledger.transaction_appended",
            user_id=user_id,
            asset_id=asset_id,
            kind=transaction.kind.value,
            quantity=str(transaction.quantity),
            price=str(transaction.price),
            length=length,
        )
