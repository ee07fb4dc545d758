"""
NFT endpoints: list, event log, mint, burn and sell offers.

Mutating endpoints accept an optional idempotencyKey. A key already present in
the NFT log for the same operation returns the logged result without touching
the ledger; a successful operation with a key is appended to the log.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from xrpl.models.amounts import IssuedCurrencyAmount
from xrpl.models.transactions import (
    NFTokenAcceptOffer,
    NFTokenBurn,
    NFTokenCancelOffer,
    NFTokenCreateOffer,
    NFTokenCreateOfferFlag,
    NFTokenMint,
    NFTokenMintFlag,
)
from xrpl.models.transactions.transaction import Transaction
from xrpl.wallet import Wallet

from backend_walletdesk.api_server.deps import get_ledger, get_settings, get_wallet_document
from backend_walletdesk.api_server.responses import ApiError, ok_response, to_api_error
from backend_walletdesk.api_server.schemas import BurnRequest, MintRequest, OfferCreateRequest, OfferIndexRequest
from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import ErrorCode, TransactionFailedError
from backend_walletdesk.database import NFT_LOG_KINDS, add_nft_log_entry, find_nft_log_entry, read_nft_log
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.account_setup import parse_positive_amount
from backend_walletdesk.ledger.client import LedgerGateway, transaction_hash
from backend_walletdesk.ledger.funding import ensure_funded
from backend_walletdesk.ledger.issuer_auth import ensure_issuer_authorization
from backend_walletdesk.ledger.nft import (
    MAX_TAXON,
    URI_SCHEMES,
    describe_nft,
    encode_uri,
    extract_accepted_offer,
    extract_nftoken_id,
    extract_offer_index,
    list_account_nfts,
)
from backend_walletdesk.ledger.payments import token_line
from backend_walletdesk.ledger.wallets import require_wallet, to_signing_wallet
from backend_walletdesk.storage import WalletDocument, WalletRecord

logger = get_logger(__name__)

router = APIRouter(prefix="/nft")

NFT_HOLDER_ROLES = ("seller", "buyer")


# -----------------------------------------------------------------------------
# Shared steps
# -----------------------------------------------------------------------------


def _idempotency_key(raw: str | None) -> str:
    return (raw or "").strip()


def _require_reserve(ledger: LedgerGateway, wallet: Wallet, settings: Settings) -> None:
    funding = ensure_funded(ledger, wallet, settings.min_xrp, settings)
    if funding.failed:
        raise ApiError(400, ErrorCode.INSUFFICIENT_XRP_RESERVE, funding.error_code)


def _require_token_access(
    ledger: LedgerGateway,
    document: WalletDocument,
    holder: WalletRecord,
    issuer: WalletRecord,
    settings: Settings,
) -> None:
    """Holder needs a trust line to the issuer, and issuer authorization when RequireAuth is on."""
    if token_line(ledger, holder.address, issuer.address, settings.currency_code) is None:
        raise ApiError(400, ErrorCode.MISSING_TRUSTLINE)
    if settings.require_auth:
        auth = ensure_issuer_authorization(
            ledger,
            to_signing_wallet(issuer),
            holder.address,
            settings.currency_code,
            document.source_tag,
            known_addresses=document.addresses,
        )
        if auth.failed:
            raise ApiError(400, ErrorCode.NOT_AUTHORIZED, auth.error_code)


def _record(kind: str, key: str, **fields: Any) -> None:
    """Append to the NFT log; the transaction is already validated, so a failed write is only logged."""
    try:
        add_nft_log_entry(kind, key, **fields)
    except Exception as e:
        logger.exception("nft_log_record_failed", kind=kind, key=key, tx_hash=fields.get("tx_hash"), error=str(e))


def _submit(ledger: LedgerGateway, tx: Transaction, wallet: Wallet) -> dict[str, Any]:
    try:
        return ledger.submit(tx, wallet)
    except TransactionFailedError as e:
        raise ApiError(400, ErrorCode.XRPL_REQUEST_FAILED, e.engine_result or str(e)) from e


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------


@router.get("/list")
def list_nfts(
    role: str | None = Query(None),
    document: WalletDocument = Depends(get_wallet_document),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """NFTs held by the seller or buyer wallet, URIs decoded from hex."""
    if role not in NFT_HOLDER_ROLES:
        raise ApiError(400, ErrorCode.INVALID_ROLE)
    try:
        record = require_wallet(document, role)
        nfts = [describe_nft(nft) for nft in list_account_nfts(ledger, record.address)]
        return ok_response({"role": role, "address": record.address, "nfts": nfts})
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_list_failed", role=role, error=str(e))
        raise to_api_error(e) from e


@router.get("/log")
def nft_log(kind: str | None = Query(None), limit: int | None = Query(None, ge=1, le=1000)):
    if kind is not None and kind not in NFT_LOG_KINDS:
        raise ApiError(400, ErrorCode.INVALID_REQUEST, f"kind must be one of {', '.join(NFT_LOG_KINDS)}")
    try:
        entries = read_nft_log(kind, limit=limit)
    except Exception as e:
        logger.exception("nft_log_read_failed", kind=kind, error=str(e))
        raise to_api_error(e) from e
    return ok_response({"entries": entries})


# -----------------------------------------------------------------------------
# Mint / burn
# -----------------------------------------------------------------------------


@router.post("/mint")
def mint_nft(
    body: MintRequest,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    uri = (body.uri or "").strip()
    if not uri:
        raise ApiError(400, ErrorCode.INVALID_URI)
    if body.taxon < 0 or body.taxon > MAX_TAXON:
        raise ApiError(400, ErrorCode.INVALID_TAXON, f"Taxon must be a number between 0 and {MAX_TAXON}")
    if not uri.startswith(URI_SCHEMES):
        raise ApiError(400, ErrorCode.INVALID_URI_FORMAT)

    key = _idempotency_key(body.idempotency_key)
    if key:
        existing = find_nft_log_entry("mint", key)
        if existing:
            logger.info("nft_mint_replayed", key=key)
            return ok_response(
                {
                    "nftokenId": existing.get("nftokenId"),
                    "txHash": existing.get("txHash"),
                    "uri": existing.get("uri"),
                    "transferable": existing.get("transferable"),
                }
            )

    try:
        seller = to_signing_wallet(require_wallet(document, "seller"))
        _require_reserve(ledger, seller, settings)
        result = _submit(
            ledger,
            NFTokenMint(
                account=seller.address,
                uri=encode_uri(uri),
                nftoken_taxon=body.taxon,
                flags=NFTokenMintFlag.TF_TRANSFERABLE if body.transferable else 0,
                source_tag=document.source_tag,
            ),
            seller,
        )
        tx_hash = transaction_hash(result)
        nftoken_id = extract_nftoken_id(result)
        if not nftoken_id:
            logger.error("nft_mint_id_missing", tx_hash=tx_hash)
            raise ApiError(
                400,
                ErrorCode.NFT_MINT_FAILED,
                {"message": "Could not extract NFTokenID from transaction metadata", "txHash": tx_hash},
            )
        if key:
            _record(
                "mint", key, nftoken_id=nftoken_id, tx_hash=tx_hash, uri=uri, transferable=body.transferable
            )
        logger.info("nft_minted", nftoken_id=nftoken_id, tx_hash=tx_hash)
        return ok_response(
            {"nftokenId": nftoken_id, "txHash": tx_hash, "uri": uri, "transferable": body.transferable}
        )
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_mint_failed", error=str(e))
        raise to_api_error(e) from e


@router.post("/burn")
def burn_nft(
    body: BurnRequest,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    nftoken_id = (body.nftoken_id or "").strip()
    if not nftoken_id:
        raise ApiError(400, ErrorCode.INVALID_NFTOKEN_ID, "NFTokenID cannot be empty")
    if body.role not in NFT_HOLDER_ROLES:
        raise ApiError(400, ErrorCode.INVALID_ROLE, "Role must be either seller or buyer")

    key = _idempotency_key(body.idempotency_key)
    if key:
        existing = find_nft_log_entry("burn", key)
        if existing:
            return ok_response({"nftokenId": existing.get("nftokenId"), "txHash": existing.get("txHash")})

    try:
        owner = to_signing_wallet(require_wallet(document, body.role))
        _require_reserve(ledger, owner, settings)
        owned = {nft.get("NFTokenID") for nft in list_account_nfts(ledger, owner.address)}
        if nftoken_id not in owned:
            raise ApiError(400, ErrorCode.NFT_NOT_FOUND, f"NFT not found in {body.role} account")
        result = _submit(
            ledger,
            NFTokenBurn(account=owner.address, nftoken_id=nftoken_id, source_tag=document.source_tag),
            owner,
        )
        tx_hash = transaction_hash(result)
        if key:
            _record("burn", key, nftoken_id=nftoken_id, tx_hash=tx_hash)
        logger.info("nft_burned", nftoken_id=nftoken_id, role=body.role, tx_hash=tx_hash)
        return ok_response({"nftokenId": nftoken_id, "txHash": tx_hash})
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_burn_failed", error=str(e))
        raise to_api_error(e) from e


# -----------------------------------------------------------------------------
# Offers
# -----------------------------------------------------------------------------


@router.post("/offer/create")
def create_sell_offer(
    body: OfferCreateRequest,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """Seller offers an NFT for sale, priced in the issued currency."""
    nftoken_id = (body.nftoken_id or "").strip()
    if not nftoken_id:
        raise ApiError(400, ErrorCode.INVALID_NFTOKEN_ID)
    amount = (body.amount or "").strip()
    if parse_positive_amount(amount) is None:
        raise ApiError(400, ErrorCode.INVALID_AMOUNT)

    key = _idempotency_key(body.idempotency_key)
    if key:
        existing = find_nft_log_entry("offer_create", key)
        if existing:
            return ok_response(
                {
                    "offerIndex": existing.get("offerIndex"),
                    "nftokenId": existing.get("nftokenId"),
                    "amount": existing.get("amount"),
                }
            )

    try:
        seller_record = require_wallet(document, "seller")
        issuer_record = require_wallet(document, "issuer")
        seller = to_signing_wallet(seller_record)
        _require_reserve(ledger, seller, settings)
        _require_token_access(ledger, document, seller_record, issuer_record, settings)

        result = _submit(
            ledger,
            NFTokenCreateOffer(
                account=seller.address,
                nftoken_id=nftoken_id,
                amount=IssuedCurrencyAmount(
                    currency=settings.currency_code, issuer=issuer_record.address, value=amount
                ),
                flags=NFTokenCreateOfferFlag.TF_SELL_NFTOKEN,
                source_tag=document.source_tag,
            ),
            seller,
        )
        tx_hash = transaction_hash(result)
        offer_index = extract_offer_index(result)
        if not offer_index:
            raise ApiError(
                400,
                ErrorCode.OFFER_CREATE_FAILED,
                {"message": "Could not extract offer index from transaction metadata", "txHash": tx_hash},
            )
        if key:
            _record(
                "offer_create", key, nftoken_id=nftoken_id, tx_hash=tx_hash, offer_index=offer_index, amount=amount
            )
        logger.info("nft_offer_created", nftoken_id=nftoken_id, offer_index=offer_index, amount=amount)
        return ok_response({"offerIndex": offer_index, "nftokenId": nftoken_id, "amount": amount, "txHash": tx_hash})
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_offer_create_failed", error=str(e))
        raise to_api_error(e) from e


def _accept_data(tx_hash: str | None, offer_index: str | None, nftoken_id: str | None, price: str | None) -> dict:
    data: dict[str, Any] = {"txHash": tx_hash, "offerIndex": offer_index}
    if nftoken_id:
        data["nftokenId"] = nftoken_id
    if price:
        data["price"] = price
    return data


@router.post("/offer/accept")
def accept_sell_offer(
    body: OfferIndexRequest,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    """Buyer accepts a sell offer."""
    offer_index = (body.offer_index or "").strip()
    if not offer_index:
        raise ApiError(400, ErrorCode.INVALID_OFFER_INDEX)

    key = _idempotency_key(body.idempotency_key)
    if key:
        existing = find_nft_log_entry("offer_accept", key)
        if existing:
            return ok_response(
                _accept_data(
                    existing.get("txHash"), existing.get("offerIndex"), existing.get("nftokenId"), existing.get("amount")
                )
            )

    try:
        buyer_record = require_wallet(document, "buyer")
        issuer_record = require_wallet(document, "issuer")
        buyer = to_signing_wallet(buyer_record)
        _require_reserve(ledger, buyer, settings)
        _require_token_access(ledger, document, buyer_record, issuer_record, settings)

        result = _submit(
            ledger,
            NFTokenAcceptOffer(
                account=buyer.address, nftoken_sell_offer=offer_index, source_tag=document.source_tag
            ),
            buyer,
        )
        tx_hash = transaction_hash(result)
        nftoken_id, price = extract_accepted_offer(result, offer_index)
        if key:
            _record(
                "offer_accept", key, tx_hash=tx_hash, offer_index=offer_index, nftoken_id=nftoken_id, amount=price
            )
        logger.info("nft_offer_accepted", offer_index=offer_index, nftoken_id=nftoken_id, tx_hash=tx_hash)
        return ok_response(_accept_data(tx_hash, offer_index, nftoken_id, price))
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_offer_accept_failed", error=str(e))
        raise to_api_error(e) from e


@router.post("/offer/cancel")
def cancel_sell_offer(
    body: OfferIndexRequest,
    document: WalletDocument = Depends(get_wallet_document),
    settings: Settings = Depends(get_settings),
    ledger: LedgerGateway = Depends(get_ledger),
):
    offer_index = (body.offer_index or "").strip()
    if not offer_index:
        raise ApiError(400, ErrorCode.INVALID_OFFER_INDEX, "Offer Index cannot be empty")

    key = _idempotency_key(body.idempotency_key)
    if key:
        existing = find_nft_log_entry("offer_cancel", key)
        if existing:
            return ok_response({"txHash": existing.get("txHash"), "offerIndex": existing.get("offerIndex")})

    try:
        seller = to_signing_wallet(require_wallet(document, "seller"))
        _require_reserve(ledger, seller, settings)
        result = _submit(
            ledger,
            NFTokenCancelOffer(account=seller.address, nftoken_offers=[offer_index], source_tag=document.source_tag),
            seller,
        )
        tx_hash = transaction_hash(result)
        if key:
            _record("offer_cancel", key, tx_hash=tx_hash, offer_index=offer_index)
        logger.info("nft_offer_cancelled", offer_index=offer_index, tx_hash=tx_hash)
        return ok_response({"txHash": tx_hash, "offerIndex": offer_index})
    except ApiError:
        raise
    except Exception as e:
        logger.exception("nft_offer_cancel_failed", error=str(e))
        raise to_api_error(e) from e
