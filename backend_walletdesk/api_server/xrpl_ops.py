"""
Issued-currency setup and payments.

POST /xrpl/issuer/flags   DefaultRipple (+ RequireAuth / NoFreeze) on the issuer
POST /xrpl/trustlines     hot / seller / buyer trust lines to the issuer
POST /xrpl/issue          issuer -> hot payment
POST /xrpl/distribute     hot -> buyer payment

Payments replay from the transaction log when an idempotency key was seen before.
"""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends

from backend_walletdesk.api_server.deps import get_ledger, get_settings, get_store, get_wallet_document
from backend_walletdesk.api_server.responses import ApiError, ok_response, to_api_error
from backend_walletdesk.api_server.schemas import TransferRequest
from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import ErrorCode, TransactionFailedError
from backend_walletdesk.database import find_transaction_hash, log_transaction
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.account_setup import (
    HOLDER_ROLES,
    configure_issuer_flags,
    ensure_trust_line,
    is_valid_currency_code,
    parse_positive_amount,
)
from backend_walletdesk.ledger.client import LedgerGateway
from backend_walletdesk.ledger.funding import FundingResult, ensure_funded
from backend_walletdesk.ledger.issuer_auth import ensure_issuer_authorization
from backend_walletdesk.ledger.payments import send_issued_payment, token_line
from backend_walletdesk.ledger.wallets import require_wallet, to_signing_wallet
from backend_walletdesk.storage import (
    DocumentStore,
    IssuerFlagsConfig,
    TrustLineResultRecord,
    TrustLinesConfig,
    WalletDocument,
    update_wallet_configuration,
    utc_now_iso,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/xrpl")


# -----------------------------------------------------------------------------
# Issuer flags
# -----------------------------------------------------------------------------


@router.post("/issuer/flags")
def set_issuer_flags(
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
    ledger: LedgerGateway = Depends(get_ledger),
):
    try:
        issuer_record = require_wallet(document, "issuer")
        issuer = to_signing_wallet(issuer_record)
        funding = ensure_funded(ledger, issuer, settings.min_xrp, settings)
        if funding.failed:
            raise ApiError(500, ErrorCode.INSUFFICIENT_BALANCE, {"address": funding.address})

        outcome = configure_issuer_flags(
            ledger,
            issuer,
            require_auth=settings.require_auth,
            no_freeze=settings.no_freeze,
            source_tag=document.source_tag,
        )
        update_wallet_configuration(
            store,
            issuer_flags=IssuerFlagsConfig(configured=True, configured_at=utc_now_iso(), flags=outcome.flags),
        )
        logger.info("issuer_flags_configured", address=issuer.address, changed=outcome.changed)
        return ok_response(
            {
                "issuer": {"address": issuer.address, "flags": outcome.flags.to_document()},
                "changed": outcome.changed,
                "funding": funding.to_dict(),
            }
        )
    except ApiError:
        raise
    except Exception as e:
        logger.exception("issuer_flags_failed", error=str(e))
        raise to_api_error(e) from e


# -----------------------------------------------------------------------------
# Trust lines
# -----------------------------------------------------------------------------


@router.post("/trustlines")
def set_trust_lines(
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """
    Create or raise each holder's trust line to the issuer. Holders that are
    not funded are reported together as INSUFFICIENT_BALANCE and nothing is
    persisted.
    """
    currency = settings.currency_code
    limit = settings.trust_limit
    if not is_valid_currency_code(currency):
        raise ApiError(500, ErrorCode.INVALID_CURRENCY_CODE)
    if parse_positive_amount(limit) is None:
        raise ApiError(500, ErrorCode.INVALID_TRUST_LIMIT)
    try:
        issuer_address = require_wallet(document, "issuer").address
        holders = [require_wallet(document, role) for role in HOLDER_ROLES]

        results: list[dict] = []
        for record in holders:
            wallet = to_signing_wallet(record)
            funding = ensure_funded(ledger, wallet, settings.min_xrp, settings)
            result = {"role": record.role, "address": record.address, "created": False}
            if not funding.failed:
                try:
                    created, tx_hash = ensure_trust_line(
                        ledger, wallet, issuer_address, currency, limit, document.source_tag
                    )
                except Exception as e:
                    logger.warning("trust_line_failed", role=record.role, address=record.address, error=str(e))
                    funding = FundingResult(status="error", address=record.address)
                else:
                    result["created"] = created
                    if tx_hash:
                        result["txHash"] = tx_hash
            result["funding"] = funding.to_dict()
            results.append(result)

        failed = [{"address": r["address"]} for r in results if r["funding"]["status"] == "error"]
        if failed:
            raise ApiError(500, ErrorCode.INSUFFICIENT_BALANCE, failed)

        update_wallet_configuration(
            store,
            trust_lines=TrustLinesConfig(
                configured=True,
                configured_at=utc_now_iso(),
                currency=currency,
                limit=limit,
                results=[
                    TrustLineResultRecord(
                        role=r["role"], address=r["address"], created=r["created"], tx_hash=r.get("txHash")
                    )
                    for r in results
                ],
            ),
        )
        return ok_response({"currency": currency, "limit": limit, "results": results})
    except ApiError:
        raise
    except Exception as e:
        logger.exception("trust_lines_failed", error=str(e))
        raise to_api_error(e) from e


# -----------------------------------------------------------------------------
# Payments
# -----------------------------------------------------------------------------


def _transfer(
    kind: str,
    body: TransferRequest,
    document: WalletDocument,
    settings: Settings,
    ledger: LedgerGateway,
    *,
    sender_role: str,
    receiver_role: str,
    default_amount: str,
) -> dict:
    amount = (body.amount or "").strip() or default_amount
    if parse_positive_amount(amount) is None:
        raise ApiError(400, ErrorCode.INVALID_AMOUNT)

    currency = settings.currency_code
    issuer_record = require_wallet(document, "issuer")
    sender_record = require_wallet(document, sender_role)
    receiver_record = require_wallet(document, receiver_role)
    data = {
        "amount": amount,
        "currency": currency,
        "from": sender_record.address,
        "to": receiver_record.address,
    }

    key = (body.idempotency_key or "").strip()
    if key:
        existing = find_transaction_hash(kind, key)
        if existing:
            logger.info("transfer_replayed", kind=kind, key=key, tx_hash=existing)
            return {"txHash": existing, **data}

    sender = to_signing_wallet(sender_record)
    funding = ensure_funded(ledger, sender, settings.min_xrp, settings)
    if funding.failed:
        raise ApiError(400, ErrorCode.INSUFFICIENT_BALANCE, {"address": funding.address})

    receiver_line = token_line(ledger, receiver_record.address, issuer_record.address, currency)
    if receiver_line is None:
        raise ApiError(400, ErrorCode.MISSING_TRUSTLINE)

    if settings.require_auth:
        auth = ensure_issuer_authorization(
            ledger,
            to_signing_wallet(issuer_record),
            receiver_record.address,
            currency,
            document.source_tag,
            known_addresses=document.addresses,
        )
        if auth.failed:
            raise ApiError(400, auth.error_code or ErrorCode.NOT_AUTHORIZED)

    if sender_role != "issuer":
        sender_line = token_line(ledger, sender_record.address, issuer_record.address, currency)
        balance = Decimal(str((sender_line or {}).get("balance") or "0"))
        if sender_line is None or balance < Decimal(amount):
            raise ApiError(
                400,
                ErrorCode.INSUFFICIENT_TOKEN_BALANCE,
                {"balance": str(balance), "required": amount},
            )

    try:
        tx_hash = send_issued_payment(
            ledger, sender, receiver_record.address, issuer_record.address, currency, amount, document.source_tag
        )
    except TransactionFailedError as e:
        logger.warning("transfer_failed", kind=kind, engine_result=e.engine_result)
        raise ApiError(500, ErrorCode.PAYMENT_FAILED, e.engine_result) from e

    if key and tx_hash:
        try:
            log_transaction(kind, key, tx_hash)
        except Exception as e:
            # Payment is validated; report it even though the key was not recorded.
            logger.exception("tx_log_append_failed", kind=kind, key=key, tx_hash=tx_hash, error=str(e))
    return {"txHash": tx_hash, **data}


@router.post("/issue")
def issue_tokens(
    body: TransferRequest | None = None,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """Pay the issued currency from the issuer to the hot wallet."""
    try:
        data = _transfer(
            "issue",
            body or TransferRequest(),
            document,
            settings,
            ledger,
            sender_role="issuer",
            receiver_role="hot",
            default_amount=settings.default_issue,
        )
        return ok_response(data)
    except ApiError:
        raise
    except Exception as e:
        logger.exception("issue_failed", error=str(e))
        raise to_api_error(e) from e


@router.post("/distribute")
def distribute_tokens(
    body: TransferRequest | None = None,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """Pay the issued currency from the hot wallet to the buyer."""
    try:
        data = _transfer(
            "distribute",
            body or TransferRequest(),
            document,
            settings,
            ledger,
            sender_role="hot",
            receiver_role="buyer",
            default_amount=settings.default_distribute,
        )
        return ok_response(data)
    except ApiError:
        raise
    except Exception as e:
        logger.exception("distribute_failed", error=str(e))
        raise to_api_error(e) from e
