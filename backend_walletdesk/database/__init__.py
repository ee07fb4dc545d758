"""
Embedded event store: NFT operation log and issued-token transaction log.

SQLAlchemy-backed; SQLite by default, any SQLAlchemy URL via EVENT_LOG_DB_URL.
"""

from backend_walletdesk.database.event_log import (
    NFT_LOG_KINDS,
    TX_LOG_KINDS,
    add_nft_log_entry,
    find_nft_log_entry,
    find_transaction_hash,
    init_db,
    log_transaction,
    read_nft_log,
    reset_engine,
)

__all__ = [
    "NFT_LOG_KINDS",
    "TX_LOG_KINDS",
    "add_nft_log_entry",
    "find_nft_log_entry",
    "find_transaction_hash",
    "init_db",
    "log_transaction",
    "read_nft_log",
    "reset_engine",
]
