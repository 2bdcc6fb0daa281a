"""Ledger store implementations.

- InMemoryLedgerStore: dict-backed, for tests and ephemeral sessions
- JsonFileLedgerStore: single JSON document on disk
"""

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import structlog

from cryptofolio.services.ledger.interface import StoredLedger

logger = structlog.get_logger(__name__)

_PATH_LOCKS: dict[Path, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    """One lock per resolved file path, shared by every store instance."""
    key = path.resolve()
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(key, threading.Lock())


class InMemoryLedgerStore:
    """
    Dict-backed ledger store.

    Records are deep-copied on the way in and out so callers never alias
    stored state.
    """

    def __init__(self, initial: dict[str, dict[str, list[dict[str, Any]]]] | None = None) -> None:
        """
        Initialize store.

        Args:
            initial: Optional seed data, user_id -> asset_id -> records
        """
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, StoredLedger]] = {}
        for user_id, assets in (initial or {}).items():
            for asset_id, records in assets.items():
                self._data.setdefault(user_id, {})[asset_id] = StoredLedger(
                    transactions=copy.deepcopy(records), version=1
                )

    def get(self, user_id: str, asset_id: str) -> StoredLedger:
        with self._lock:
            stored = self._data.get(user_id, {}).get(asset_id)
            if stored is None:
                return StoredLedger()
            return stored.model_copy(deep=True)

    def put(
        self,
        user_id: str,
        asset_id: str,
        transactions: list[dict[str, Any]],
        expected_version: int,
    ) -> bool:
        with self._lock:
            user_data = self._data.setdefault(user_id, {})
            current = user_data.get(asset_id)
            current_version = current.version if current is not None else 0
            if current_version != expected_version:
                return False
            user_data[asset_id] = StoredLedger(
                transactions=copy.deepcopy(transactions),
                version=current_version + 1,
            )
            return True

    def query(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        with self._lock:
            return {
                asset_id: copy.deepcopy(stored.transactions)
                for asset_id, stored in self._data.get(user_id, {}).items()
            }


class JsonFileLedgerStore:
    """
    Ledger store persisted as one JSON document.

    Layout:
        {"<user_id>": {"<asset_id>": {"version": 3, "transactions": [...]}}}

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash never leaves a half-written document.
    The conditional write is atomic within one process, across all instances
    opened on the same path. Separate processes must not share a file.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize store.

        Args:
            path: JSON file location (created on first write)
        """
        self._path = Path(path)
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        """Location of the JSON document."""
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        with open(self._path, encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Ledger file {self._path} must contain a JSON object")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".ledger-", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _entry(data: dict[str, Any], user_id: str, asset_id: str) -> StoredLedger:
        raw = data.get(user_id, {}).get(asset_id)
        if not isinstance(raw, dict):
            return StoredLedger()
        transactions = raw.get("transactions")
        return StoredLedger(
            transactions=[t for t in transactions if isinstance(t, dict)] if isinstance(transactions, list) else [],
            version=int(raw.get("version", 0)),
        )

    def get(self, user_id: str, asset_id: str) -> StoredLedger:
        with self._lock:
            return self._entry(self._load(), user_id, asset_id)

    def put(
        self,
        user_id: str,
        asset_id: str,
        transactions: list[dict[str, Any]],
        expected_version: int,
    ) -> bool:
        with self._lock:
            data = self._load()
            current = self._entry(data, user_id, asset_id)
            if current.version != expected_version:
                return False
            data.setdefault(user_id, {})[asset_id] = {
                "version": current.version + 1,
                "transactions": transactions,
            }
            self._save(data)
            logger.debug(
                "ledger_store.written",
                path=str(self._path),
                user_id=user_id,
                asset_id=asset_id,
                version=current.version + 1,
            )
            return True

    def query(self, user_id: str) -> dict[str, list[dict[str, Any]]]:
        with self._lock:
            data = self._load()
            return {asset_id: self._entry(data, user_id, asset_id).transactions for asset_id in data.get(user_id, {})}
