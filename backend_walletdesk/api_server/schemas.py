"""
Request bodies (camelCase on the wire).

Fields are optional where the handler reports a specific error code for a
missing value (INVALID_URI, INVALID_OFFER_INDEX, ...) instead of the generic
INVALID_REQUEST produced by body validation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


class TransferRequest(RequestModel):
    """POST /xrpl/issue and /xrpl/distribute."""

    amount: str | None = Field(None, description="Decimal amount; defaults to the configured issue/distribute amount")
    idempotency_key: str | None = None


class IdempotencyRequest(RequestModel):
    prefix: str | None = None


class MintRequest(RequestModel):
    uri: str | None = Field(None, description="ipfs:// or https:// metadata URI")
    transferable: bool = True
    taxon: int = Field(0, description="NFT collection taxon (0..4294967295)")
    idempotency_key: str | None = None


class BurnRequest(RequestModel):
    nftoken_id: str | None = None
    role: str = "seller"
    idempotency_key: str | None = None


class OfferCreateRequest(RequestModel):
    nftoken_id: str | None = None
    amount: str | None = Field(None, description="Price in the issued currency")
    idempotency_key: str | None = None


class OfferIndexRequest(RequestModel):
    """POST /nft/offer/accept and /nft/offer/cancel."""

    offer_index: str | None = None
    idempotency_key: str | None = None
