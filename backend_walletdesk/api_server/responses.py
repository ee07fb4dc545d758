"""
Response envelope shared by every endpoint.

Success: {"ok": true, "data": ..., "created"?: bool}
Failure: {"ok": false, "error": "<CODE or message>", "details"?: ...}
Keys whose value is None are left out.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from backend_walletdesk.core.exceptions import ErrorCode, LedgerRequestError, StorageError, WalletDeskError


class ApiError(Exception):
    """Raised by handlers; rendered as a failure envelope with `status_code`."""

    def __init__(self, status_code: int, error: ErrorCode | str, details: Any = None) -> None:
        self.status_code = status_code
        self.error = str(error)
        self.details = details
        super().__init__(self.error)


def envelope(ok: bool, **fields: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"ok": ok}
    body.update({k: v for k, v in fields.items() if v is not None})
    return body


def ok_response(data: Any = None, *, created: bool | None = None) -> dict[str, Any]:
    return envelope(True, data=data, created=created)


def error_response(status_code: int, error: ErrorCode | str, details: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(False, error=str(error), details=details))


def to_api_error(exc: Exception) -> ApiError:
    """Map a failure escaping a handler to the envelope error it is reported as."""
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, LedgerRequestError):
        return ApiError(500, ErrorCode.XRPL_REQUEST_FAILED, str(exc))
    if isinstance(exc, StorageError):
        return ApiError(500, ErrorCode.INTERNAL_SERVER_ERROR, str(exc))
    if isinstance(exc, WalletDeskError):
        status = 404 if exc.code == ErrorCode.NOT_INITIALIZED else 400
        return ApiError(status, exc.code, str(exc) if str(exc) != str(exc.code) else None)
    return ApiError(500, ErrorCode.INTERNAL_SERVER_ERROR)
