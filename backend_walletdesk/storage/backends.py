"""
JSON document storage: local filesystem or Vercel Blob.

Both backends implement the same contract (save / load / delete / list) and
are interchangeable; the backend is chosen once from Settings.storage_backend
by get_document_store(). Documents are addressed by a flat name such as
"wallets.json".

Read-modify-write callers use DocumentStore.update(), which serializes updates
of the same document name within this process. There is no cross-process
locking; the last writer wins across processes.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable

import httpx

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import StorageError
from backend_walletdesk.desk_logging import get_logger

logger = get_logger(__name__)

BLOB_API_VERSION = "7"
BLOB_TIMEOUT_SEC = 15.0


def _encode(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class DocumentStore(ABC):
    """Abstract interface for JSON document persistence."""

    def __init__(self) -> None:
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @abstractmethod
    def save(self, name: str, document: Any) -> None:
        """Write `document` under `name`, replacing any previous value."""
        ...

    @abstractmethod
    def load(self, name: str) -> Any | None:
        """Return the decoded document, or None if it does not exist."""
        ...

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the document. Missing documents are ignored."""
        ...

    @abstractmethod
    def list(self) -> list[str]:
        """Return stored document names, sorted."""
        ...

    @staticmethod
    def check_name(name: str) -> str:
        """Document names are flat: no path separators, not empty."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise StorageError(f"Invalid document name: {name!r}")
        return name

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[name]

    def update(self, name: str, mutate: Callable[[Any | None], Any]) -> Any:
        """
        Load `name`, pass it to `mutate` (None when absent) and save the returned value.

        Concurrent update() calls on the same name in this process run one at a time.
        Returns the saved document.
        """
        with self._lock_for(name):
            current = self.load(name)
            updated = mutate(current)
            self.save(name, updated)
            return updated


# -----------------------------------------------------------------------------
# Local filesystem
# -----------------------------------------------------------------------------


class LocalFileStore(DocumentStore):
    """Documents as pretty-printed JSON files under a data directory."""

    def __init__(self, data_dir: Path | str) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    def _path(self, name: str) -> Path:
        return self.data_dir / self.check_name(name)

    def save(self, name: str, document: Any) -> None:
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = _encode(document)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {name}: {e}") from e
        logger.debug("document_saved", backend="local", name=name)

    def load(self, name: str) -> Any | None:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("document_load_failed", backend="local", name=name, error=str(e))
            raise StorageError(f"Failed to read {name}: {e}") from e

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)
        logger.debug("document_deleted", backend="local", name=name)

    def list(self) -> list[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.name for p in self.data_dir.iterdir() if p.is_file() and p.suffix == ".json")


# -----------------------------------------------------------------------------
# Vercel Blob (REST API over httpx)
# -----------------------------------------------------------------------------


class BlobStore(DocumentStore):
    """
    Documents as public blobs in a Vercel Blob store.

    Writes use PUT <api>/<name> without a random suffix and with overwrite
    allowed, so each name maps to exactly one blob. Reads list by prefix and
    fetch the blob URL.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://blob.vercel-storage.com",
        *,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__()
        if not token:
            raise StorageError("BLOB_READ_WRITE_TOKEN is required for the blob backend")
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.Client(timeout=BLOB_TIMEOUT_SEC)
        self._headers = {
            "authorization": f"Bearer {token}",
            "x-api-version": BLOB_API_VERSION,
        }

    def _request(self, method: str, url: str, *, authorized: bool = True, **kwargs: Any) -> httpx.Response:
        headers = {**(self._headers if authorized else {}), **kwargs.pop("headers", {})}
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("blob_request_failed", method=method, url=url.split("?")[0], error=str(e))
            raise StorageError(f"Blob {method} failed: {e}") from e
        return response

    def _list_blobs(self, prefix: str | None = None) -> list[dict[str, Any]]:
        blobs: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"limit": 1000}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor
            body = self._request("GET", self.api_url, params=params).json()
            blobs.extend(body.get("blobs") or [])
            cursor = body.get("cursor")
            if not body.get("hasMore") or not cursor:
                return blobs

    def _find(self, name: str) -> dict[str, Any] | None:
        self.check_name(name)
        for blob in self._list_blobs(prefix=name):
            if blob.get("pathname") == name:
                return blob
        return None

    def save(self, name: str, document: Any) -> None:
        self._request(
            "PUT",
            f"{self.api_url}/{self.check_name(name)}",
            content=_encode(document).encode("utf-8"),
            headers={
                "x-content-type": "application/json",
                "x-add-random-suffix": "0",
                "x-allow-overwrite": "1",
            },
        )
        logger.debug("document_saved", backend="blob", name=name)

    def load(self, name: str) -> Any | None:
        blob = self._find(name)
        if blob is None:
            logger.info("blob_not_found", name=name)
            return None
        response = self._request("GET", blob["url"], authorized=False)
        try:
            return json.loads(response.text)
        except ValueError as e:
            logger.error("document_load_failed", backend="blob", name=name, error=str(e))
            raise StorageError(f"Failed to decode {name}: {e}") from e

    def delete(self, name: str) -> None:
        blob = self._find(name)
        if blob is None:
            return
        self._request("POST", f"{self.api_url}/delete", json={"urls": [blob["url"]]})
        logger.debug("document_deleted", backend="blob", name=name)

    def list(self) -> list[str]:
        return sorted(
            b["pathname"] for b in self._list_blobs() if str(b.get("pathname") or "").endswith(".json")
        )


def get_document_store(settings: Settings) -> DocumentStore:
    """Build the storage backend named by settings.storage_backend."""
    if settings.storage_backend == "blob":
        logger.info("document_store_selected", backend="blob", api_url=settings.blob_api_url)
        return BlobStore(settings.blob_token, settings.blob_api_url)
    logger.info("document_store_selected", backend="local", data_dir=str(settings.data_dir))
    return LocalFileStore(settings.data_dir)
