"""NFT metadata helpers: ids from validated transaction metadata, hex URIs."""

from __future__ import annotations

from typing import Any

from xrpl.models.requests import AccountNFTs
from xrpl.utils import hex_to_str, str_to_hex

from backend_walletdesk.ledger.client import LedgerGateway

MAX_TAXON = 4294967295
URI_SCHEMES = ("ipfs://", "https://")


def _created_node(meta: dict[str, Any], entry_type: str) -> dict[str, Any] | None:
    for node in meta.get("AffectedNodes") or []:
        created = node.get("CreatedNode")
        if created and created.get("LedgerEntryType") == entry_type:
            return created
    return None


def extract_nftoken_id(result: dict[str, Any]) -> str | None:
    """NFTokenID of a mint: meta.nftoken_id, else a created NFToken node."""
    meta = result.get("meta") or {}
    if meta.get("nftoken_id"):
        return meta["nftoken_id"]
    created = _created_node(meta, "NFToken")
    if created:
        return (created.get("NewFields") or {}).get("NFTokenID")
    return None


def extract_offer_index(result: dict[str, Any]) -> str | None:
    """Ledger index of a created NFTokenOffer: meta.offer_id, else the created node."""
    meta = result.get("meta") or {}
    if meta.get("offer_id"):
        return meta["offer_id"]
    created = _created_node(meta, "NFTokenOffer")
    if created:
        return created.get("LedgerIndex")
    return None


def extract_accepted_offer(result: dict[str, Any], offer_index: str | None = None) -> tuple[str | None, str | None]:
    """
    NFTokenID and price of an accepted offer, read from the NFTokenOffer node
    the acceptance deleted. Issued-currency prices come back as the value only.
    """
    meta = result.get("meta") or {}
    for node in meta.get("AffectedNodes") or []:
        deleted = node.get("DeletedNode")
        if not deleted or deleted.get("LedgerEntryType") != "NFTokenOffer":
            continue
        if offer_index and deleted.get("LedgerIndex") not in (None, offer_index):
            continue
        fields = deleted.get("FinalFields") or {}
        amount = fields.get("Amount")
        price = amount.get("value") if isinstance(amount, dict) else amount
        return fields.get("NFTokenID"), (str(price) if price is not None else None)
    return None, None


def encode_uri(uri: str) -> str:
    return str_to_hex(uri).upper()


def decode_uri(hex_uri: str | None) -> str | None:
    if not hex_uri:
        return None
    try:
        return hex_to_str(hex_uri)
    except (ValueError, UnicodeDecodeError):
        return None


def list_account_nfts(ledger: LedgerGateway, address: str) -> list[dict[str, Any]]:
    """Raw account_nfts entries for `address` (validated ledger)."""
    result = ledger.request(AccountNFTs(account=address, ledger_index="validated"))
    return list(result.get("account_nfts") or [])


def describe_nft(nft: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {"nftokenId": nft.get("NFTokenID"), "taxon": nft.get("NFTokenTaxon") or 0}
    uri = decode_uri(nft.get("URI"))
    if uri is not None:
        out["uri"] = uri
    return out
