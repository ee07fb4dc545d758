"""
XRP funding check with optional testnet faucet.

ensure_funded() never raises; callers inspect FundingResult.status.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Literal

from xrpl.models.requests import AccountInfo
from xrpl.wallet import Wallet

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import ErrorCode, LedgerRequestError
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway

logger = get_logger(__name__)

DROPS_PER_XRP = Decimal(1_000_000)
FAUCET_RECHECK_ATTEMPTS = 3
FAUCET_RECHECK_DELAY_SEC = 1.0

FundingStatus = Literal["ok", "funded", "error"]


@dataclass(frozen=True)
class FundingResult:
    status: FundingStatus
    address: str
    balance_xrp: float | None = None
    error_code: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "error"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status, "address": self.address}
        if self.balance_xrp is not None:
            out["balanceXrp"] = self.balance_xrp
        if self.error_code:
            out["errorCode"] = self.error_code
        return out


def drops_to_xrp(drops: Any) -> Decimal:
    return Decimal(str(drops)) / DROPS_PER_XRP


def get_xrp_balance(ledger: LedgerGateway, address: str) -> float:
    """Validated XRP balance of `address`. Raises LedgerRequestError (actNotFound for new accounts)."""
    result = ledger.request(AccountInfo(account=address, ledger_index="validated"))
    return float(drops_to_xrp(result["account_data"]["Balance"]))


def ensure_funded(
    ledger: LedgerGateway,
    wallet: Wallet,
    min_xrp: float,
    settings: Settings,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> FundingResult:
    """
    Check that `wallet` holds at least `min_xrp`.

    An account that does not exist yet is created from the faucet when the
    network has one and auto-faucet is on, then re-checked up to
    FAUCET_RECHECK_ATTEMPTS times with a growing delay. The faucet cannot top up
    an existing account, so a low balance on an existing account is an error.
    """
    address = wallet.address
    insufficient = FundingResult(status="error", address=address, error_code=ErrorCode.INSUFFICIENT_BALANCE.value)
    try:
        balance = get_xrp_balance(ledger, address)
    except LedgerRequestError as e:
        if e.ledger_error != "actNotFound":
            logger.warning("funding_check_failed", address=address, error=str(e))
            return insufficient
        if not settings.faucet_enabled:
            logger.info("funding_account_missing", address=address, network=settings.network)
            return insufficient
        return _fund_from_faucet(ledger, wallet, min_xrp, sleep, insufficient)

    if balance >= min_xrp:
        return FundingResult(status="ok", address=address, balance_xrp=balance)
    logger.info("funding_insufficient", address=address, balance_xrp=balance, min_xrp=min_xrp)
    return insufficient


def _fund_from_faucet(
    ledger: LedgerGateway,
    wallet: Wallet,
    min_xrp: float,
    sleep: Callable[[float], None],
    insufficient: FundingResult,
) -> FundingResult:
    address = wallet.address
    try:
        ledger.fund_wallet(wallet)
    except LedgerRequestError as e:
        logger.warning("faucet_failed", address=address, error=str(e))
        return insufficient

    for attempt in range(1, FAUCET_RECHECK_ATTEMPTS + 1):
        sleep(FAUCET_RECHECK_DELAY_SEC * attempt)
        try:
            balance = get_xrp_balance(ledger, address)
        except LedgerRequestError as e:
            logger.info("faucet_recheck_pending", address=address, attempt=attempt, error=str(e))
            continue
        logger.info("faucet_recheck", address=address, attempt=attempt, balance_xrp=balance)
        if balance >= min_xrp:
            return FundingResult(status="funded", address=address, balance_xrp=balance)
    return insufficient
