"""
Pytest fixtures for wallet desk tests.

Temporary data directory and SQLite event log per test, a fake ledger gateway
(no network), and a FastAPI TestClient wired through create_app().
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from backend_walletdesk.core.exceptions import LedgerRequestError

SOURCE_TAG = 12345


class FakeLedger:
    """
    Stand-in for LedgerGateway.

    Read requests are answered by handlers keyed by RPC method name
    ("account_info", "account_lines", ...); a handler is a dict, an exception,
    or a callable taking the request model. Submitted transactions are recorded
    and answered from `submit_results` (default: validated tesSUCCESS).
    """

    url = "fake://ledger"

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.requests: list[Any] = []
        self.submitted: list[Any] = []
        self.submit_results: list[Any] = []
        self.funded: list[str] = []

    def on(self, method: str, handler: Any) -> "FakeLedger":
        self.handlers[method] = handler
        return self

    def request(self, req: Any) -> dict[str, Any]:
        self.requests.append(req)
        method = req.method.value
        handler = self.handlers.get(method)
        if handler is None:
            raise LedgerRequestError(f"{method} not stubbed")
        result = handler(req) if callable(handler) else handler
        if isinstance(result, Exception):
            raise result
        return result

    def submit(self, transaction: Any, wallet: Any) -> dict[str, Any]:
        self.submitted.append(transaction)
        if self.submit_results:
            outcome = self.submit_results.pop(0)
        else:
            outcome = validated(f"{len(self.submitted):064X}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fund_wallet(self, wallet: Any) -> None:
        self.funded.append(wallet.address)

    def requested(self, method: str) -> list[Any]:
        return [r for r in self.requests if r.method.value == method]


def validated(tx_hash: str, **meta: Any) -> dict[str, Any]:
    """A submit_and_wait result with tesSUCCESS metadata."""
    return {"hash": tx_hash, "validated": True, "meta": {"TransactionResult": "tesSUCCESS", **meta}}


def account_info(balance_drops: str = "100000000", flags: int = 0) -> dict[str, Any]:
    return {"account_data": {"Balance": balance_drops, "Flags": flags}}


def trust_lines_by_account(lines: dict[str, list[dict[str, Any]]]) -> Callable[[Any], dict[str, Any]]:
    """account_lines handler answering per requesting account."""

    def handler(req: Any) -> dict[str, Any]:
        return {"account": req.account, "lines": lines.get(req.account, [])}

    return handler


@pytest.fixture
def settings(tmp_path):
    from backend_walletdesk.config.settings import Settings

    return Settings(
        network="TESTNET",
        source_tag_raw=str(SOURCE_TAG),
        data_dir=tmp_path / "data",
        event_log_url=f"sqlite:///{tmp_path / 'events.db'}",
    )


@pytest.fixture
def store(settings):
    from backend_walletdesk.storage import LocalFileStore

    return LocalFileStore(settings.data_dir)


@pytest.fixture
def event_log(settings):
    """Event log pointed at a fresh temporary SQLite DB."""
    import backend_walletdesk.database.event_log as event_log_module

    event_log_module.init_db(settings.resolved_event_log_url)
    yield event_log_module
    event_log_module.reset_engine()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def wallet_document(settings, store):
    """Four freshly generated wallets saved to the store."""
    from backend_walletdesk.ledger.wallets import generate_wallet_document
    from backend_walletdesk.storage import save_wallet_document

    document = generate_wallet_document(settings)
    save_wallet_document(store, document)
    return document


@pytest.fixture
def make_client(settings, store, ledger, event_log):
    """Build a TestClient; pass overrides (e.g. settings=...) to vary the app."""
    from fastapi.testclient import TestClient

    from backend_walletdesk.api_server.server import create_app

    def _make(**overrides: Any) -> TestClient:
        app = create_app(
            overrides.get("settings", settings),
            overrides.get("store", store),
            overrides.get("ledger", ledger),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
