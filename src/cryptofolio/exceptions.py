"""Exception hierarchy for cryptofolio.

The accounting engine never raises these: it is a pure fold over its inputs.
They are raised at the boundaries (ledger storage, price source) and by the
caller-side policies in the tracker service.
"""


class CryptofolioError(Exception):
    """Base exception for all cryptofolio errors."""


class LedgerError(CryptofolioError):
    """Transaction ledger failure."""


class LedgerUnavailableError(LedgerError):
    """Ledger storage could not be read or written."""


class LedgerConflictError(LedgerError):
    """Conditional append lost the race too many times."""

    def __init__(self, user_id: str, asset_id: str, attempts: int) -> None:
        self.user_id = user_id
        self.asset_id = asset_id
        self.attempts = attempts
        super().__init__(f"Concurrent writes to {user_id}/{asset_id}: append failed after {attempts} attempts")


class PriceSourceError(CryptofolioError):
    """Price source unreachable or returned an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"Price source error {status_code}: {message}")
        else:
            super().__init__(f"Price source error: {message}")


class InvalidTransactionError(CryptofolioError, ValueError):
    """Transaction rejected before reaching the ledger."""


class OversellError(InvalidTransactionError):
    """Sell quantity exceeds the currently open quantity."""

    def __init__(self, asset_id: str, requested: object, available: object) -> None:
        self.asset_id = asset_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient {asset_id} quantity: need {requested}, have {available}")
