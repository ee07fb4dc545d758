"""
Source-tagged transaction history across the desk's wallets.

Reads account_tx for each wallet and keeps successful transactions carrying
the configured source tag. Handles both API v1 (`tx`) and v2 (`tx_json`,
top-level `hash`, DeliverMax) entries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from xrpl.models.requests import AccountTx

from backend_walletdesk.core.exceptions import LedgerRequestError
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import TES_SUCCESS, LedgerGateway
from backend_walletdesk.ledger.funding import DROPS_PER_XRP
from backend_walletdesk.storage.documents import WalletRecord

logger = get_logger(__name__)

RIPPLE_EPOCH_OFFSET = 946684800
ACCOUNT_TX_LIMIT = 100


def ripple_time_to_iso(ripple_time: int | None) -> str | None:
    if ripple_time is None:
        return None
    moment = datetime.fromtimestamp(int(ripple_time) + RIPPLE_EPOCH_OFFSET, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def fee_to_xrp(fee_drops: Any) -> str:
    return f"{Decimal(str(fee_drops or 0)) / DROPS_PER_XRP:.6f}"


def _issued_value(amount: Any, currency_code: str) -> str | None:
    if isinstance(amount, dict) and amount.get("currency") == currency_code:
        return amount.get("value")
    return None


def token_amount(tx: dict[str, Any], meta: dict[str, Any], currency_code: str) -> str | None:
    """
    Issued-token amount moved by a transaction: Payment Amount/DeliverMax, the
    price of the sell offer consumed by an NFTokenAcceptOffer, else any
    issued Amount field.
    """
    if tx.get("TransactionType") == "Payment":
        value = _issued_value(tx.get("Amount") or tx.get("DeliverMax"), currency_code)
        if value is not None:
            return value
    if tx.get("TransactionType") == "NFTokenAcceptOffer":
        for node in meta.get("AffectedNodes") or []:
            deleted = node.get("DeletedNode") or {}
            value = _issued_value((deleted.get("FinalFields") or {}).get("Amount"), currency_code)
            if value is not None:
                return value
    return _issued_value(tx.get("Amount"), currency_code)


def _split_entry(entry: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any], str | None]:
    tx = entry.get("tx_json") or entry.get("tx") or {}
    meta = entry.get("meta") if isinstance(entry.get("meta"), dict) else {}
    tx_hash = entry.get("hash") or tx.get("hash")
    return tx, meta, tx_hash


def fetch_source_tag_transactions(
    ledger: LedgerGateway,
    wallets: Iterable[WalletRecord],
    currency_code: str,
    source_tag: int,
) -> dict[str, Any]:
    """
    Successful source-tagged transactions of all wallets, deduplicated by hash,
    newest first, with the total issued-token volume.

    A wallet whose history cannot be read is skipped with a warning.
    """
    wallets = list(wallets)
    roles = {w.address: w.role for w in wallets}
    seen: set[str] = set()
    transactions: list[dict[str, Any]] = []
    volume = Decimal(0)

    for wallet in wallets:
        try:
            result = ledger.request(
                AccountTx(
                    account=wallet.address,
                    ledger_index_min=-1,
                    ledger_index_max=-1,
                    limit=ACCOUNT_TX_LIMIT,
                    forward=False,
                )
            )
        except LedgerRequestError as e:
            logger.warning("account_tx_failed", address=wallet.address, error=str(e))
            continue

        for entry in result.get("transactions") or []:
            tx, meta, tx_hash = _split_entry(entry)
            if tx.get("SourceTag") != source_tag or meta.get("TransactionResult") != TES_SUCCESS:
                continue
            if not tx_hash or tx_hash in seen:
                continue
            seen.add(tx_hash)

            amount = token_amount(tx, meta, currency_code)
            if amount is not None:
                volume += Decimal(amount)
            record: dict[str, Any] = {
                "hash": tx_hash,
                "wallet": tx.get("Account"),
                "walletRole": roles.get(tx.get("Account"), "unknown"),
                "type": tx.get("TransactionType"),
                "tokenAmount": amount,
                "date": ripple_time_to_iso(tx.get("date")) or entry.get("close_time_iso"),
                "fee": fee_to_xrp(tx.get("Fee")),
                "destination": tx.get("Destination"),
            }
            transactions.append({k: v for k, v in record.items() if v is not None})

    transactions.sort(key=lambda t: t.get("date") or "", reverse=True)
    logger.info("source_tag_transactions", count=len(transactions), source_tag=source_tag)
    return {
        "totalTransactions": len(transactions),
        "totalVolume": str(volume),
        "transactions": transactions,
    }
