"""Ledger storage interface (Protocol).

A ledger store is a key-value store of transaction lists keyed by
(user_id, asset_id). Appends go through a conditional write so two writers
for the same asset cannot silently overwrite each other.
"""

from typing import Any, Protocol

from pydantic import BaseModel, Field


class StoredLedger(BaseModel):
    """
    One (user, asset) record as held by a store.

    Attributes:
        transactions: Raw transaction records in insertion order
        version: Incremented on every successful write (0 = never written)
    """

    transactions: list[dict[str, Any]] = Field(default_factory=list)
    version: int = 0


class ILedgerStore(Protocol):
    """
    Storage backend for transaction ledgers.

    Examples:
        >>> store: ILedgerStore = InMemoryLedgerStore()
        >>> current = store.get("alice", "bitcoin")
        >>> store.put("alice", "bitcoin", current.transactions + [record], expected_version=current.version)
        True
    """

    def get(self, user_id: str, asset_id: str) -> StoredLedger:
        """
        Read one asset's record.

        Args:
            user_id: User identity
            asset_id: Asset identifier

        Returns:
            StoredLedger (empty with version 0 if absent)
        """
        ...

    def put(
        self,
        user_id: str,
        asset_id: str,
        transactions: list[dict[str, Any]],
        expected_version: int,
    ) -> bool:
        """
        Replace one asset's transaction list if the version still matches.

        Args:
            user_id: User identity
            asset_id: Asset identifier
            transactions: Full new transaction list
            expected_version: Version read before modifying

        Returns:
            True if written, False if another writer got there first
        """
        ...

    def query(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        """
        Read every asset record of a user.

        Args:
            user_id: User identity

        Returns:
            asset_id -> raw transaction records (empty dict if none)
        """
        ...
