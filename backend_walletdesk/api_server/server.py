"""
FastAPI server for the wallet desk.

create_app() resolves settings once, builds the document store, event log and
ledger gateway from them and mounts all routers under /api. Every response
uses the {ok, data?, error?, created?, details?} envelope.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException

from backend_walletdesk import __version__
from backend_walletdesk.api_server.config_api import router as config_router
from backend_walletdesk.api_server.idempotency import router as idempotency_router
from backend_walletdesk.api_server.middleware import install_request_logging
from backend_walletdesk.api_server.nft import router as nft_router
from backend_walletdesk.api_server.responses import ApiError, error_response, ok_response, to_api_error
from backend_walletdesk.api_server.transactions import router as transactions_router
from backend_walletdesk.api_server.wallets import router as wallets_router
from backend_walletdesk.api_server.xrpl_ops import router as xrpl_router
from backend_walletdesk.config.settings import Settings, get_settings
from backend_walletdesk.core.exceptions import ErrorCode, WalletDeskError
from backend_walletdesk.database import init_db
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway
from backend_walletdesk.storage import DocumentStore, get_document_store

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "api_started",
        network=settings.network,
        storage_backend=settings.storage_backend,
        ledger_url=app.state.ledger.url,
    )
    yield
    logger.info("api_stopped")


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_response(exc.status_code, exc.error, exc.details)

    @app.exception_handler(WalletDeskError)
    async def desk_error_handler(request: Request, exc: WalletDeskError):
        logger.warning("request_failed_desk_error", path=request.url.path, error=str(exc))
        api_error = to_api_error(exc)
        return error_response(api_error.status_code, api_error.error, api_error.details)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.info("request_invalid", path=request.url.path, errors=len(details))
        return error_response(400, ErrorCode.INVALID_REQUEST, details)


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    ledger: LedgerGateway | None = None,
) -> FastAPI:
    """
    Build the ASGI app. Anything not passed in is built from settings
    (settings themselves default to the environment).
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="XRPL Wallet Desk API",
        description="Wallet setup, issued-token payments and NFT operations on the XRP Ledger.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or get_document_store(settings)
    app.state.ledger = ledger or LedgerGateway.from_settings(settings)
    init_db(settings.resolved_event_log_url)

    install_request_logging(app)
    _install_exception_handlers(app)

    app.include_router(config_router, prefix="/api", tags=["Config"])
    app.include_router(wallets_router, prefix="/api", tags=["Wallets"])
    app.include_router(xrpl_router, prefix="/api", tags=["XRPL"])
    app.include_router(idempotency_router, prefix="/api", tags=["Idempotency"])
    app.include_router(nft_router, prefix="/api", tags=["NFT"])
    app.include_router(transactions_router, prefix="/api", tags=["Transactions"])

    @app.get("/health")
    def health():
        """Liveness probe."""
        return ok_response({"status": "ok", "version": __version__})

    return app
