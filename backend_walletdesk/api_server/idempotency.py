"""POST /idempotency/generate: per-prefix counters for client idempotency keys."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from backend_walletdesk.api_server.deps import get_store
from backend_walletdesk.api_server.responses import ApiError, ok_response, to_api_error
from backend_walletdesk.api_server.schemas import IdempotencyRequest
from backend_walletdesk.core.exceptions import ErrorCode
from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.storage import IDEMPOTENCY_DOCUMENT, DocumentStore, utc_now_iso

logger = get_logger(__name__)

router = APIRouter(prefix="/idempotency")


def format_key(prefix: str, counter: int) -> str:
    return f"{prefix}-{counter:03d}"


def next_key_id(store: DocumentStore, prefix: str) -> int:
    """Increment and persist the counter for `prefix`; first call returns 1."""
    issued: dict[str, int] = {}

    def bump(raw: Any) -> dict[str, Any]:
        data = raw if isinstance(raw, dict) else {}
        entries = list(data.get("entries") or [])
        entry = next((e for e in entries if e.get("prefix") == prefix), None)
        if entry is None:
            entry = {"prefix": prefix, "lastId": 0}
            entries.append(entry)
        entry["lastId"] = int(entry.get("lastId") or 0) + 1
        entry["at"] = utc_now_iso()
        issued["id"] = entry["lastId"]
        return {**data, "entries": entries}

    store.update(IDEMPOTENCY_DOCUMENT, bump)
    return issued["id"]


@router.post("/generate")
def generate_key(body: IdempotencyRequest, store: DocumentStore = Depends(get_store)):
    prefix = (body.prefix or "").strip()
    if not prefix:
        raise ApiError(400, ErrorCode.INVALID_PREFIX, "Prefix is required")
    try:
        key_id = next_key_id(store, prefix)
    except Exception as e:
        logger.exception("idempotency_generate_failed", prefix=prefix, error=str(e))
        raise to_api_error(e) from e
    key = format_key(prefix, key_id)
    logger.info("idempotency_key_generated", key=key)
    return ok_response({"key": key, "prefix": prefix, "id": key_id})
