"""XRPL access: gateway over xrpl-py plus the desk's ledger operations."""

from backend_walletdesk.ledger.client import (
    LedgerGateway,
    transaction_hash,
    transaction_result,
    tx_succeeded,
)
from backend_walletdesk.ledger.funding import FundingResult, ensure_funded
from backend_walletdesk.ledger.issuer_auth import IssuerAuthResult, ensure_issuer_authorization

__all__ = [
    "FundingResult",
    "IssuerAuthResult",
    "LedgerGateway",
    "ensure_funded",
    "ensure_issuer_authorization",
    "transaction_hash",
    "transaction_result",
    "tx_succeeded",
]
