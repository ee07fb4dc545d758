"""
Issuer trust-line authorization (RequireAuth issuers).

ensure_issuer_authorization() checks the holder's trust line to the issuer
and, when it exists but is not yet authorized, submits exactly one TrustSet
with tfSetAuth from the issuer. Never raises: the outcome is an
IssuerAuthResult.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Literal

from xrpl.models.amounts import IssuedCurrencyAmount
from xrpl.models.requests import AccountLines
from xrpl.models.transactions import TrustSet, TrustSetFlag
from xrpl.wallet import Wallet

from backend_walletdesk.core.exceptions import ErrorCode, TransactionFailedError
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway, transaction_hash

logger = get_logger(__name__)

AuthStatus = Literal["ok", "authorized", "error"]


@dataclass(frozen=True)
class IssuerAuthResult:
    status: AuthStatus
    error_code: str | None = None
    tx_hash: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "error"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status}
        if self.error_code:
            out["errorCode"] = self.error_code
        if self.tx_hash:
            out["txHash"] = self.tx_hash
        return out


def find_trust_line(
    ledger: LedgerGateway, holder_address: str, issuer_address: str, currency_code: str
) -> dict[str, Any] | None:
    """Holder's trust line to `issuer_address` for `currency_code` (validated ledger), or None."""
    result = ledger.request(
        AccountLines(account=holder_address, peer=issuer_address, ledger_index="validated")
    )
    for line in result.get("lines") or []:
        if line.get("account") == issuer_address and line.get("currency") == currency_code:
            return line
    return None


def is_issuer_authorized(line: dict[str, Any]) -> bool:
    # account_lines is queried on the holder, so the issuer side is the peer.
    return line.get("peer_authorized") is True or line.get("authorized") is True


def ensure_issuer_authorization(
    ledger: LedgerGateway,
    issuer_wallet: Wallet,
    holder_address: str,
    currency_code: str,
    source_tag: int,
    known_addresses: Collection[str] | None = None,
) -> IssuerAuthResult:
    """
    Make sure the issuer has authorized the holder's trust line.

    - holder not in `known_addresses` (when given): ok, nothing queried
    - no trust line to the issuer for the currency: MISSING_TRUSTLINE, nothing submitted
    - line already authorized: ok, nothing submitted
    - otherwise one TrustSet(tfSetAuth, limit 0): authorized with hash, or AUTHORIZATION_FAILED
    - ledger request failure: XRPL_REQUEST_FAILED
    """
    if known_addresses is not None and holder_address not in known_addresses:
        logger.info("issuer_auth_skipped_unknown_address", holder=holder_address)
        return IssuerAuthResult(status="ok")

    issuer_address = issuer_wallet.address
    try:
        line = find_trust_line(ledger, holder_address, issuer_address, currency_code)
        if line is None:
            logger.info("issuer_auth_missing_trustline", holder=holder_address, currency=currency_code)
            return IssuerAuthResult(status="error", error_code=ErrorCode.MISSING_TRUSTLINE.value)
        if is_issuer_authorized(line):
            return IssuerAuthResult(status="ok")

        logger.info("issuer_auth_submitting", holder=holder_address, issuer=issuer_address, currency=currency_code)
        tx = TrustSet(
            account=issuer_address,
            limit_amount=IssuedCurrencyAmount(currency=currency_code, issuer=holder_address, value="0"),
            flags=TrustSetFlag.TF_SET_AUTH,
            source_tag=source_tag,
        )
        try:
            result = ledger.submit(tx, issuer_wallet)
        except TransactionFailedError as e:
            logger.warning("issuer_auth_failed", holder=holder_address, engine_result=e.engine_result)
            return IssuerAuthResult(status="error", error_code=ErrorCode.AUTHORIZATION_FAILED.value)
        tx_hash = transaction_hash(result)
        logger.info("issuer_auth_authorized", holder=holder_address, tx_hash=tx_hash)
        return IssuerAuthResult(status="authorized", tx_hash=tx_hash)
    except Exception as e:
        logger.exception("issuer_auth_request_failed", holder=holder_address, error=str(e))
        return IssuerAuthResult(status="error", error_code=ErrorCode.XRPL_REQUEST_FAILED.value)
