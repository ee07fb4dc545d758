"""
FastAPI dependencies.

Settings, document store and ledger gateway are built once by create_app() and
kept on app.state; handlers receive them through Depends().
"""

from __future__ import annotations

from fastapi import Depends, Request

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import NotInitializedError
from backend_walletdesk.ledger.client import LedgerGateway
from backend_walletdesk.storage import DocumentStore, WalletDocument, load_wallet_document


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_ledger(request: Request) -> LedgerGateway:
    return request.app.state.ledger


def get_wallet_document(store: DocumentStore = Depends(get_store)) -> WalletDocument:
    """The stored wallet document; 404 NOT_INITIALIZED when wallets were never created."""
    document = load_wallet_document(store)
    if document is None:
        raise NotInitializedError()
    return document

