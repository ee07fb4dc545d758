"""
Document storage: JSON documents on local disk or in a blob store.

The backend is picked once from Settings; callers only see DocumentStore.
"""

from backend_walletdesk.storage.backends import (
    BlobStore,
    DocumentStore,
    LocalFileStore,
    get_document_store,
)
from backend_walletdesk.storage.documents import (
    IDEMPOTENCY_DOCUMENT,
    WALLET_ROLES,
    WALLETS_DOCUMENT,
    IssuerFlagsConfig,
    IssuerFlagValues,
    TrustLineResultRecord,
    TrustLinesConfig,
    WalletConfiguration,
    WalletDocument,
    WalletRecord,
    load_wallet_document,
    save_wallet_document,
    update_wallet_configuration,
    utc_now_iso,
)

__all__ = [
    "BlobStore",
    "DocumentStore",
    "IDEMPOTENCY_DOCUMENT",
    "IssuerFlagValues",
    "IssuerFlagsConfig",
    "LocalFileStore",
    "TrustLineResultRecord",
    "TrustLinesConfig",
    "WALLETS_DOCUMENT",
    "WALLET_ROLES",
    "WalletConfiguration",
    "WalletDocument",
    "WalletRecord",
    "get_document_store",
    "load_wallet_document",
    "save_wallet_document",
    "update_wallet_configuration",
    "utc_now_iso",
]
