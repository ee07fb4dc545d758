"""
API test for GET /api/transactions/source-tag.
"""

from __future__ import annotations

from dataclasses import replace

from backend_walletdesk.ledger.transactions import ripple_time_to_iso
from conftest import SOURCE_TAG


def _account_tx(history):
    def handler(req):
        return {"account": req.account, "transactions": history.get(req.account, [])}

    return handler


def test_source_tag_transactions(client, ledger, wallet_document):
    issuer = wallet_document.find("issuer").address
    hot = wallet_document.find("hot").address
    tx = {
        "TransactionType": "Payment",
        "Account": issuer,
        "Destination": hot,
        "Amount": {"currency": "SBR", "issuer": issuer, "value": "1000"},
        "SourceTag": SOURCE_TAG,
        "Fee": "10",
        "date": 800000000,
    }
    entry = {"hash": "F" * 64, "tx_json": tx, "meta": {"TransactionResult": "tesSUCCESS"}, "validated": True}
    ledger.on("account_tx", _account_tx({issuer: [entry], hot: [entry]}))

    r = client.get("/api/transactions/source-tag")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["sourceTag"] == SOURCE_TAG
    assert data["currency"] == "SBR"
    assert data["totalTransactions"] == 1
    assert data["totalVolume"] == "1000"
    assert data["transactions"] == [
        {
            "hash": "F" * 64,
            "wallet": issuer,
            "walletRole": "issuer",
            "type": "Payment",
            "tokenAmount": "1000",
            "date": ripple_time_to_iso(800000000),
            "fee": "0.000010",
            "destination": hot,
        }
    ]


def test_falls_back_to_document_source_tag(make_client, settings, ledger, wallet_document):
    client = make_client(settings=replace(settings, source_tag_raw=""))
    ledger.on("account_tx", _account_tx({}))
    data = client.get("/api/transactions/source-tag").json()["data"]
    assert data["sourceTag"] == wallet_document.source_tag
    assert data == {
        "sourceTag": SOURCE_TAG,
        "currency": "SBR",
        "totalTransactions": 0,
        "totalVolume": "0",
        "transactions": [],
    }


def test_requires_wallets(client):
    r = client.get("/api/transactions/source-tag")
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_INITIALIZED"
