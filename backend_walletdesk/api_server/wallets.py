"""
Wallet endpoints: initialize, read (public view), configuration, balances.

Secrets stored in wallets.json (seed, private key) never appear in a response.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend_walletdesk.api_server.deps import get_ledger, get_settings, get_store, get_wallet_document
from backend_walletdesk.api_server.responses import ApiError, ok_response, to_api_error
from backend_walletdesk.config.settings import Settings, validate_wallet_environment
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway
from backend_walletdesk.ledger.payments import wallet_balances
from backend_walletdesk.ledger.wallets import generate_wallet_document
from backend_walletdesk.storage import (
    DocumentStore,
    WalletDocument,
    load_wallet_document,
    save_wallet_document,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/wallets")

INIT_FAILED = "Failed to initialize wallets"


@router.post("/init")
def init_wallets(
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
):
    """
    Create the four desk wallets (issuer, hot, seller, buyer) offline.

    An existing document for the configured network is returned as is
    (created=false); a document for another network is replaced.
    """
    env_error = validate_wallet_environment(settings)
    if env_error:
        logger.warning("wallets_init_env_invalid", error=env_error)
        raise ApiError(500, env_error)
    try:
        existing = load_wallet_document(store)
        if existing is not None and existing.network == settings.network:
            logger.info("wallets_init_existing", network=existing.network)
            return ok_response(existing.public_view(), created=False)
        if existing is not None:
            logger.warning(
                "wallets_init_network_changed",
                stored_network=existing.network,
                network=settings.network,
            )
        document = generate_wallet_document(settings)
        save_wallet_document(store, document)
        return ok_response(document.public_view(), created=True)
    except Exception as e:
        logger.exception("wallets_init_failed", error=str(e))
        raise ApiError(500, INIT_FAILED) from e


@router.get("/read")
def read_wallets(document: WalletDocument = Depends(get_wallet_document)):
    return ok_response(document.public_view())


@router.get("/configuration")
def read_configuration(document: WalletDocument = Depends(get_wallet_document)):
    """Stored issuer flag / trust line configuration; data is omitted when nothing was configured yet."""
    configuration = document.configuration.to_document() if document.configuration else None
    return ok_response(configuration)


@router.get("/balances")
def read_balances(
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    try:
        balances = wallet_balances(ledger, document.wallets, settings.currency_code)
    except Exception as e:
        logger.exception("wallet_balances_failed", error=str(e))
        raise to_api_error(e) from e
    return ok_response(
        {
            "network": document.network,
            "sourceTag": document.source_tag,
            "currency": settings.currency_code,
            "balances": balances,
        }
    )
