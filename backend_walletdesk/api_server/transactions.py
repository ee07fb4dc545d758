"""GET /transactions/source-tag: source-tagged ledger activity of the desk's wallets."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend_walletdesk.api_server.deps import get_ledger, get_settings, get_wallet_document
from backend_walletdesk.api_server.responses import ok_response, to_api_error
from backend_walletdesk.config.settings import Settings
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway
from backend_walletdesk.ledger.transactions import fetch_source_tag_transactions
from backend_walletdesk.storage import WalletDocument

logger = get_logger(__name__)

router = APIRouter(prefix="/transactions")


@router.get("/source-tag")
def source_tag_transactions(
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """Uses the configured XRPL_SOURCE_TAG, else the tag the wallets were created with."""
    source_tag = settings.source_tag if settings.source_tag is not None else document.source_tag
    try:
        stats = fetch_source_tag_transactions(ledger, document.wallets, settings.currency_code, source_tag)
    except Exception as e:
        logger.exception("source_tag_transactions_failed", error=str(e))
        raise to_api_error(e) from e
    return ok_response({"sourceTag": source_tag, "currency": settings.currency_code, **stats})
