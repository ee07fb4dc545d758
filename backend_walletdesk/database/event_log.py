"""
Ledger event log: SQLAlchemy-backed NFT log and transaction idempotency log.

Each logged operation is one appended row; nothing is rewritten. The NFT log
records mint / offer / burn results keyed by the caller's idempotency key, the
transaction log records issued-token payments (issue / distribute). Duplicate
keys are not rejected; lookups return the earliest matching row.

Uses the URL passed to init_db() (Settings.resolved_event_log_url); SQLite by
default, any SQLAlchemy URL works.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import Boolean, Column, Integer, String, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.storage.documents import utc_now_iso

logger = get_logger(__name__)

Base = declarative_base()

NFT_LOG_KINDS: tuple[str, ...] = ("mint", "offer_create", "offer_accept", "offer_cancel", "burn")
TX_LOG_KINDS: tuple[str, ...] = ("issue", "distribute")

DEFAULT_DATABASE_URL = "sqlite:///data/events.db"

# -----------------------------------------------------------------------------
# SQLAlchemy models
# -----------------------------------------------------------------------------


class NftLogEntry(Base):
    """One NFT operation result (append-only)."""

    __tablename__ = "nft_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False, index=True)
    key = Column(String(128), nullable=False, index=True)
    nftoken_id = Column(String(64), nullable=True)
    tx_hash = Column(String(64), nullable=True)
    uri = Column(String(512), nullable=True)
    transferable = Column(Boolean, nullable=True)
    offer_index = Column(String(64), nullable=True)
    amount = Column(String(64), nullable=True)  # decimal string; avoids float precision loss
    at = Column(String(32), nullable=False)  # ISO 8601 UTC

    def to_dict(self) -> dict[str, Any]:
        """camelCase record with unset optional fields omitted."""
        record: dict[str, Any] = {
            "kind": self.kind,
            "key": self.key,
            "nftokenId": self.nftoken_id,
            "txHash": self.tx_hash,
            "uri": self.uri,
            "transferable": self.transferable,
            "offerIndex": self.offer_index,
            "amount": self.amount,
            "at": self.at,
        }
        return {k: v for k, v in record.items() if v is not None}


class TxLogEntry(Base):
    """One issued-token payment keyed by idempotency key (append-only)."""

    __tablename__ = "tx_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False, index=True)
    key = Column(String(128), nullable=False, index=True)
    tx_hash = Column(String(64), nullable=False)
    at = Column(String(32), nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "key": self.key, "txHash": self.tx_hash, "at": self.at}


# -----------------------------------------------------------------------------
# Engine and session
# -----------------------------------------------------------------------------

_database_url: str | None = None
_engine = None
_SessionLocal: sessionmaker | None = None


def _get_database_url() -> str:
    return _database_url or DEFAULT_DATABASE_URL


def _get_engine():
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = _get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            database = make_url(url).database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("event_log_engine", url=url.split("?")[0].split("//")[-1])
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Single session. Commits on success, rolls back on error."""
    factory = _get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(database_url: str | None = None) -> None:
    """
    Point the event log at `database_url` (when given) and create tables if missing.
    Safe to call on every startup.
    """
    global _database_url
    if database_url and database_url != _database_url:
        reset_engine()
        _database_url = database_url
    try:
        Base.metadata.create_all(bind=_get_engine())
        logger.info("event_log_init_db", url=_get_database_url().split("?")[0].split("//")[-1])
    except Exception as e:
        logger.exception("event_log_init_db_failed", error=str(e))
        raise


# -----------------------------------------------------------------------------
# NFT log
# -----------------------------------------------------------------------------


def add_nft_log_entry(
    kind: str,
    key: str,
    *,
    nftoken_id: str | None = None,
    tx_hash: str | None = None,
    uri: str | None = None,
    transferable: bool | None = None,
    offer_index: str | None = None,
    amount: str | None = None,
) -> dict[str, Any]:
    """Append one NFT log entry stamped with the current time. Returns the stored record."""
    if kind not in NFT_LOG_KINDS:
        raise ValueError(f"Unknown NFT log kind: {kind}")
    key = (key or "").strip()
    if not key:
        raise ValueError("key must be non-empty")
    try:
        with _session_scope() as session:
            row = NftLogEntry(
                kind=kind,
                key=key,
                nftoken_id=nftoken_id,
                tx_hash=tx_hash,
                uri=uri,
                transferable=transferable,
                offer_index=offer_index,
                amount=amount,
                at=utc_now_iso(),
            )
            session.add(row)
            session.flush()
            record = row.to_dict()
        logger.info("nft_log_appended", kind=kind, key=key, tx_hash=tx_hash)
        return record
    except Exception as e:
        logger.exception("nft_log_append_failed", kind=kind, key=key, error=str(e))
        raise


def find_nft_log_entry(kind: str, key: str) -> dict[str, Any] | None:
    """Return the first entry with this kind and key, or None."""
    with _session_scope() as session:
        row = (
            session.query(NftLogEntry)
            .filter(NftLogEntry.kind == kind, NftLogEntry.key == key)
            .order_by(NftLogEntry.id)
            .first()
        )
        return row.to_dict() if row else None


def read_nft_log(kind: str | None = None, *, limit: int | None = None) -> list[dict[str, Any]]:
    """Return log entries in append order, optionally filtered by kind."""
    with _session_scope() as session:
        q = session.query(NftLogEntry)
        if kind:
            q = q.filter(NftLogEntry.kind == kind)
        q = q.order_by(NftLogEntry.id)
        if limit is not None:
            q = q.limit(limit)
        return [r.to_dict() for r in q.all()]


# -----------------------------------------------------------------------------
# Transaction log (issue / distribute idempotency)
# -----------------------------------------------------------------------------


def log_transaction(kind: str, key: str, tx_hash: str) -> dict[str, Any]:
    if kind not in TX_LOG_KINDS:
        raise ValueError(f"Unknown transaction log kind: {kind}")
    with _session_scope() as session:
        row = TxLogEntry(kind=kind, key=key, tx_hash=tx_hash, at=utc_now_iso())
        session.add(row)
        session.flush()
        record = row.to_dict()
    logger.info("tx_log_appended", kind=kind, key=key, tx_hash=tx_hash)
    return record


def find_transaction_hash(kind: str, key: str) -> str | None:
    """Hash of the first logged transaction for (kind, key), or None."""
    with _session_scope() as session:
        row = (
            session.query(TxLogEntry)
            .filter(TxLogEntry.kind == kind, TxLogEntry.key == key)
            .order_by(TxLogEntry.id)
            .first()
        )
        return row.tx_hash if row else None


def reset_engine() -> None:
    """Dispose and clear the cached engine and session factory."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
