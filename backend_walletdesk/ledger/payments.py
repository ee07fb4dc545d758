"""Issued-currency payments and per-wallet balances."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from xrpl.models.amounts import IssuedCurrencyAmount
from xrpl.models.requests import AccountInfo, AccountLines
from xrpl.models.transactions import Payment
from xrpl.wallet import Wallet

from backend_walletdesk.core.exceptions import LedgerRequestError
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway, transaction_hash
from backend_walletdesk.ledger.funding import drops_to_xrp
from backend_walletdesk.storage.documents import WalletRecord

logger = get_logger(__name__)


def token_line(
    ledger: LedgerGateway, address: str, issuer_address: str, currency_code: str
) -> dict[str, Any] | None:
    result = ledger.request(AccountLines(account=address, peer=issuer_address, ledger_index="validated"))
    for line in result.get("lines") or []:
        if line.get("account") == issuer_address and line.get("currency") == currency_code:
            return line
    return None


def send_issued_payment(
    ledger: LedgerGateway,
    sender: Wallet,
    destination: str,
    issuer_address: str,
    currency_code: str,
    amount: str,
    source_tag: int,
) -> str | None:
    """Pay `amount` of the issued currency; returns the validated tx hash."""
    result = ledger.submit(
        Payment(
            account=sender.address,
            destination=destination,
            amount=IssuedCurrencyAmount(currency=currency_code, issuer=issuer_address, value=amount),
            source_tag=source_tag,
        ),
        sender,
    )
    tx_hash = transaction_hash(result)
    logger.info(
        "issued_payment_sent",
        sender=sender.address,
        destination=destination,
        currency=currency_code,
        amount=amount,
        tx_hash=tx_hash,
    )
    return tx_hash


def wallet_balances(
    ledger: LedgerGateway, wallets: Iterable[WalletRecord], currency_code: str
) -> list[dict[str, Any]]:
    """
    XRP and issued-token balance for each wallet. Accounts that cannot be read
    (not yet funded, node errors) report zero balances.
    """
    wallets = list(wallets)
    issuer = next((w.address for w in wallets if w.role == "issuer"), None)
    balances: list[dict[str, Any]] = []
    for wallet in wallets:
        try:
            info = ledger.request(AccountInfo(account=wallet.address, ledger_index="validated"))
        except LedgerRequestError as e:
            logger.info("balance_unavailable", address=wallet.address, error=str(e))
            balances.append(_zero_balance(wallet))
            continue
        drops = str(info["account_data"]["Balance"])
        token_balance = "0"
        if issuer:
            try:
                line = token_line(ledger, wallet.address, issuer, currency_code)
            except LedgerRequestError as e:
                logger.info("token_balance_unavailable", address=wallet.address, error=str(e))
                line = None
            if line is not None:
                token_balance = line.get("balance") or "0"
        balances.append(
            {
                "role": wallet.role,
                "address": wallet.address,
                "balanceXrp": float(drops_to_xrp(drops).quantize(Decimal("0.000001"))),
                "balanceDrops": drops,
                "balanceToken": token_balance,
            }
        )
    return balances


def _zero_balance(wallet: WalletRecord) -> dict[str, Any]:
    return {
        "role": wallet.role,
        "address": wallet.address,
        "balanceXrp": 0,
        "balanceDrops": "0",
        "balanceToken": "0",
    }
