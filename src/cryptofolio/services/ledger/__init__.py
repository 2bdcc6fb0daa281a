"""Transaction ledger: per-(user, asset) transaction histories.

Key components:
- LedgerService: Typed read / atomic append
- ILedgerStore: Storage protocol (get / put / query)
- InMemoryLedgerStore, JsonFileLedgerStore: Store implementations
"""

from cryptofolio.services.ledger.interface import ILedgerStore, StoredLedger
from cryptofolio.services.ledger.service import LedgerService
from cryptofolio.services.ledger.stores import InMemoryLedgerStore, JsonFileLedgerStore

__all__ = [
    "ILedgerStore",
    "StoredLedger",
    "LedgerService",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
]
