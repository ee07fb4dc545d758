"""
Core utilities: error codes and exceptions shared by storage, ledger and API layers.
"""

from backend_walletdesk.core.exceptions import (
    ErrorCode,
    LedgerRequestError,
    NotInitializedError,
    StorageError,
    TransactionFailedError,
    WalletDeskError,
)

__all__ = [
    "ErrorCode",
    "LedgerRequestError",
    "NotInitializedError",
    "StorageError",
    "TransactionFailedError",
    "WalletDeskError",
]
