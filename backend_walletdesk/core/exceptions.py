"""
Application-level exceptions and the string error codes returned to API callers.

Codes are plain strings on the wire ({"ok": false, "error": "<CODE>"}); there is
no distinction between retryable and permanent failures.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    NOT_INITIALIZED = "NOT_INITIALIZED"
    MISSING_TRUSTLINE = "MISSING_TRUSTLINE"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    XRPL_REQUEST_FAILED = "XRPL_REQUEST_FAILED"

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_ROLE = "INVALID_ROLE"
    INVALID_PREFIX = "INVALID_PREFIX"
    INVALID_URI = "INVALID_URI"
    INVALID_URI_FORMAT = "INVALID_URI_FORMAT"
    INVALID_TAXON = "INVALID_TAXON"
    INVALID_NFTOKEN_ID = "INVALID_NFTOKEN_ID"
    INVALID_OFFER_INDEX = "INVALID_OFFER_INDEX"
    INVALID_CURRENCY_CODE = "INVALID_CURRENCY_CODE"
    INVALID_TRUST_LIMIT = "INVALID_TRUST_LIMIT"

    WALLET_NOT_FOUND = "WALLET_NOT_FOUND"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_XRP_RESERVE = "INSUFFICIENT_XRP_RESERVE"
    INSUFFICIENT_TOKEN_BALANCE = "INSUFFICIENT_TOKEN_BALANCE"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    NFT_MINT_FAILED = "NFT_MINT_FAILED"
    NFT_NOT_FOUND = "NFT_NOT_FOUND"
    OFFER_CREATE_FAILED = "OFFER_CREATE_FAILED"

    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

    def __str__(self) -> str:
        return self.value


class WalletDeskError(Exception):
    """Base class; `code` is the string surfaced to API callers."""

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "", *, code: ErrorCode | None = None) -> None:
        super().__init__(message or str(code or self.code))
        if code is not None:
            self.code = code


class NotInitializedError(WalletDeskError):
    """A backing document (e.g. wallets.json) does not exist yet."""

    code = ErrorCode.NOT_INITIALIZED


class StorageError(WalletDeskError):
    """Document could not be read, decoded or written by a storage backend."""


class LedgerRequestError(WalletDeskError):
    """
    A ledger request failed or returned an error result.

    `ledger_error` holds the rippled error token when one was returned
    (e.g. "actNotFound"), else None.
    """

    code = ErrorCode.XRPL_REQUEST_FAILED

    def __init__(self, message: str = "", *, ledger_error: str | None = None) -> None:
        super().__init__(message or (ledger_error or "ledger request failed"))
        self.ledger_error = ledger_error


class TransactionFailedError(LedgerRequestError):
    """A submitted transaction was rejected or validated with a non-tesSUCCESS result."""

    def __init__(self, message: str = "", *, engine_result: str | None = None) -> None:
        super().__init__(message or (engine_result or "transaction failed"), ledger_error=engine_result)
        self.engine_result = engine_result
