"""Offline wallet generation and conversion between stored records and signing wallets."""

from __future__ import annotations

from xrpl.wallet import Wallet

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import ErrorCode, WalletDeskError
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.storage.documents import WALLET_ROLES, WalletDocument, WalletRecord

logger = get_logger(__name__)


def generate_wallet_record(role: str) -> WalletRecord:
    wallet = Wallet.create()
    return WalletRecord(
        role=role,
        address=wallet.address,
        public_key=wallet.public_key,
        private_key=wallet.private_key,
        seed=wallet.seed,
    )


def generate_wallet_document(settings: Settings) -> WalletDocument:
    """Fresh document with one new keypair per role. Nothing touches the ledger."""
    document = WalletDocument(
        network=settings.network,
        source_tag=settings.source_tag,
        wallets=[generate_wallet_record(role) for role in WALLET_ROLES],
    )
    logger.info(
        "wallets_generated",
        network=document.network,
        addresses={w.role: w.address for w in document.wallets},
    )
    return document


def to_signing_wallet(record: WalletRecord) -> Wallet:
    if not record.seed:
        raise WalletDeskError(f"{record.role} wallet has no stored seed", code=ErrorCode.WALLET_NOT_FOUND)
    return Wallet.from_seed(record.seed)


def require_wallet(document: WalletDocument, role: str) -> WalletRecord:
    """Stored record for `role`; raises WALLET_NOT_FOUND when the document lacks it."""
    record = document.find(role)
    if record is None:
        raise WalletDeskError(f"{role} wallet not found", code=ErrorCode.WALLET_NOT_FOUND)
    return record
