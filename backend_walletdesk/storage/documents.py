"""
Typed shapes of the stored JSON documents.

Documents keep the camelCase keys the front-end has always read
(publicKey, sourceTag, configuredAt, ...). Models accept either the alias or
the field name and always dump by alias with None values dropped.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from backend_walletdesk.core.exceptions import StorageError
from backend_walletdesk.storage.backends import DocumentStore

WALLETS_DOCUMENT = "wallets.json"
IDEMPOTENCY_DOCUMENT = "idempotency.json"

WALLET_DOCUMENT_VERSION = 1

WalletRole = Literal["issuer", "hot", "seller", "buyer"]
Network = Literal["TESTNET", "MAINNET"]

WALLET_ROLES: tuple[str, ...] = ("issuer", "hot", "seller", "buyer")


def utc_now_iso() -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class WalletRecord(DocumentModel):
    role: WalletRole
    address: str
    # Secrets may be absent from documents written elsewhere; such records are read-only.
    public_key: str | None = None
    private_key: str | None = None
    seed: str | None = None

    def public_view(self) -> dict[str, str]:
        """Role and address only; secrets never leave the storage layer."""
        return {"role": self.role, "address": self.address}


class IssuerFlagValues(DocumentModel):
    default_ripple: bool = False
    require_auth: bool = False
    no_freeze: bool = False


class IssuerFlagsConfig(DocumentModel):
    configured: bool = False
    configured_at: str | None = None
    flags: IssuerFlagValues = Field(default_factory=IssuerFlagValues)


class TrustLineResultRecord(DocumentModel):
    role: WalletRole
    address: str
    created: bool
    tx_hash: str | None = None


class TrustLinesConfig(DocumentModel):
    configured: bool = False
    configured_at: str | None = None
    currency: str
    limit: str
    results: list[TrustLineResultRecord] = Field(default_factory=list)


class WalletConfiguration(DocumentModel):
    issuer_flags: IssuerFlagsConfig | None = None
    trust_lines: TrustLinesConfig | None = None


class WalletDocument(DocumentModel):
    version: int = WALLET_DOCUMENT_VERSION
    created_at: str = Field(default_factory=utc_now_iso)
    network: Network
    source_tag: int
    wallets: list[WalletRecord] = Field(default_factory=list)
    configuration: WalletConfiguration | None = None

    def find(self, role: str) -> WalletRecord | None:
        for wallet in self.wallets:
            if wallet.role == role:
                return wallet
        return None

    @property
    def addresses(self) -> set[str]:
        return {w.address for w in self.wallets}

    def public_view(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "sourceTag": self.source_tag,
            "wallets": [w.public_view() for w in self.wallets],
        }


def load_wallet_document(store: DocumentStore) -> WalletDocument | None:
    """Return the stored wallet document, or None when wallets were never initialized."""
    raw = store.load(WALLETS_DOCUMENT)
    if raw is None:
        return None
    try:
        return WalletDocument.model_validate(raw)
    except ValidationError as e:
        raise StorageError(f"{WALLETS_DOCUMENT} has an unexpected shape: {e.error_count()} errors") from e


def save_wallet_document(store: DocumentStore, document: WalletDocument) -> None:
    store.save(WALLETS_DOCUMENT, document.to_document())


def update_wallet_configuration(
    store: DocumentStore,
    *,
    issuer_flags: IssuerFlagsConfig | None = None,
    trust_lines: TrustLinesConfig | None = None,
) -> WalletDocument:
    """
    Merge issuer flag and/or trust line sections into the stored configuration.

    Runs under the store's per-document update lock; other sections are kept.
    """
    def mutate(raw: Any) -> dict[str, Any]:
        if raw is None:
            raise ValueError("wallets document disappeared during update")
        document = WalletDocument.model_validate(raw)
        configuration = document.configuration or WalletConfiguration()
        if issuer_flags is not None:
            configuration.issuer_flags = issuer_flags
        if trust_lines is not None:
            configuration.trust_lines = trust_lines
        document.configuration = configuration
        return document.to_document()

    return WalletDocument.model_validate(store.update(WALLETS_DOCUMENT, mutate))
