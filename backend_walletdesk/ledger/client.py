"""
Thin gateway over xrpl-py.

All ledger traffic goes through LedgerGateway so handlers and helpers depend
on three calls: request (read-only queries), submit (autofill + sign +
submit-and-wait) and fund_wallet (testnet faucet). Errors come back as
LedgerRequestError / TransactionFailedError.
"""

from __future__ import annotations

from typing import Any

from xrpl.clients import JsonRpcClient, XRPLRequestFailureException
from xrpl.models.requests.request import Request
from xrpl.models.transactions.transaction import Transaction
from xrpl.transaction import XRPLReliableSubmissionException, autofill, sign, submit_and_wait
from xrpl.wallet import Wallet, generate_faucet_wallet

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import LedgerRequestError, TransactionFailedError
from backend_walletdesk.desk_logging import get_logger

logger = get_logger(__name__)

TES_SUCCESS = "tesSUCCESS"


def transaction_result(result: dict[str, Any]) -> str | None:
    """TransactionResult from validated metadata (meta may be absent on odd responses)."""
    meta = result.get("meta")
    if isinstance(meta, dict):
        return meta.get("TransactionResult")
    return None


def tx_succeeded(result: dict[str, Any]) -> bool:
    return transaction_result(result) == TES_SUCCESS


def transaction_hash(result: dict[str, Any]) -> str | None:
    """Hash from a submit_and_wait / tx result (API v1 and v2 layouts)."""
    return (
        result.get("hash")
        or (result.get("tx_json") or {}).get("hash")
        or (result.get("transaction") or {}).get("hash")
    )


class LedgerGateway:
    """JSON-RPC access to one XRPL network."""

    def __init__(self, url: str, *, client: JsonRpcClient | None = None) -> None:
        self.url = url
        self.client = client or JsonRpcClient(url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerGateway":
        logger.info("ledger_gateway_configured", network=settings.network, url=settings.ledger_url)
        return cls(settings.ledger_url)

    def request(self, req: Request) -> dict[str, Any]:
        """
        Send a read request and return its result dict.

        Raises LedgerRequestError on transport failure or an error result;
        `ledger_error` carries rippled's error token (e.g. actNotFound).
        """
        method = getattr(req.method, "value", str(req.method))
        try:
            response = self.client.request(req)
        except (XRPLRequestFailureException, OSError) as e:
            logger.warning("ledger_request_failed", method=method, error=str(e))
            raise LedgerRequestError(f"{method} failed: {e}") from e
        result = response.result or {}
        if not response.is_successful():
            error = result.get("error")
            logger.info("ledger_request_error", method=method, ledger_error=error)
            raise LedgerRequestError(
                f"{method} returned {error}: {result.get('error_message', '')}".strip(),
                ledger_error=error,
            )
        return result

    def submit(self, transaction: Transaction, wallet: Wallet) -> dict[str, Any]:
        """
        Autofill, sign with `wallet`, submit and wait for validation.

        Returns the validated tx result (hash, meta, ...). A rejected or
        non-tesSUCCESS transaction raises TransactionFailedError.
        """
        tx_type = getattr(transaction.transaction_type, "value", str(transaction.transaction_type))
        try:
            prepared = autofill(transaction, self.client)
            signed = sign(prepared, wallet)
            response = submit_and_wait(signed, self.client)
        except XRPLReliableSubmissionException as e:
            logger.warning("ledger_submit_rejected", tx_type=tx_type, account=transaction.account, error=str(e))
            raise TransactionFailedError(str(e), engine_result=_engine_result_from_message(str(e))) from e
        except (XRPLRequestFailureException, OSError) as e:
            logger.warning("ledger_submit_failed", tx_type=tx_type, account=transaction.account, error=str(e))
            raise LedgerRequestError(f"{tx_type} submission failed: {e}") from e
        result = response.result or {}
        engine_result = transaction_result(result)
        if not tx_succeeded(result):
            logger.warning("ledger_submit_failed", tx_type=tx_type, engine_result=engine_result)
            raise TransactionFailedError(engine_result=engine_result)
        logger.info("ledger_submit_validated", tx_type=tx_type, tx_hash=transaction_hash(result))
        return result

    def fund_wallet(self, wallet: Wallet) -> None:
        """Fund (and create) `wallet` from the testnet faucet."""
        try:
            generate_faucet_wallet(self.client, wallet=wallet)
        except Exception as e:
            logger.warning("faucet_funding_failed", address=wallet.address, error=str(e))
            raise LedgerRequestError(f"faucet funding failed: {e}") from e
        logger.info("faucet_funded", address=wallet.address)


def _engine_result_from_message(message: str) -> str | None:
    """Pull the tec/tem/tef/ter code out of an xrpl-py reliable-submission message."""
    for token in message.replace(",", " ").replace(":", " ").split():
        if token[:3] in ("tec", "tef", "tel", "tem", "ter", "tes"):
            return token
    return None
