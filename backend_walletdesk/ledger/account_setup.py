"""
Issuer account flags and holder trust lines.

Both operations read the current ledger state first and submit only what is
missing, so repeating them is harmless.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from xrpl.models.amounts import IssuedCurrencyAmount
from xrpl.models.requests import AccountInfo, AccountLines
from xrpl.models.transactions import AccountSet, AccountSetAsfFlag, TrustSet
from xrpl.wallet import Wallet

from backend_walletdesk.desk_logging import get_logger
from backend_walletdesk.ledger.client import LedgerGateway, transaction_hash
from backend_walletdesk.storage.documents import IssuerFlagValues

logger = get_logger(__name__)

# AccountRoot ledger flags (lsf*), distinct from the AccountSet asf* values.
LSF_DEFAULT_RIPPLE = 0x00800000
LSF_REQUIRE_AUTH = 0x00040000
LSF_NO_FREEZE = 0x00200000

CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$|^[A-F0-9]{40}$")
AMOUNT_RE = re.compile(r"^\d+(\.\d+)?$")
HOLDER_ROLES: tuple[str, ...] = ("hot", "seller", "buyer")


def is_valid_currency_code(code: str) -> bool:
    return bool(code and CURRENCY_CODE_RE.match(code))


def parse_positive_amount(value: Any) -> Decimal | None:
    """Decimal value of a plain positive decimal string such as "100" or "2.5", or None."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not AMOUNT_RE.match(text):
        return None
    amount = Decimal(text)
    if amount <= 0:
        return None
    return amount


def read_issuer_flags(ledger: LedgerGateway, address: str) -> IssuerFlagValues:
    result = ledger.request(AccountInfo(account=address, ledger_index="validated"))
    flags = int(result["account_data"].get("Flags") or 0)
    return IssuerFlagValues(
        default_ripple=bool(flags & LSF_DEFAULT_RIPPLE),
        require_auth=bool(flags & LSF_REQUIRE_AUTH),
        no_freeze=bool(flags & LSF_NO_FREEZE),
    )


@dataclass
class IssuerFlagsOutcome:
    flags: IssuerFlagValues
    changed: bool
    tx_hashes: list[str] = field(default_factory=list)


def configure_issuer_flags(
    ledger: LedgerGateway,
    issuer: Wallet,
    *,
    require_auth: bool,
    no_freeze: bool,
    source_tag: int,
) -> IssuerFlagsOutcome:
    """
    Set DefaultRipple, and RequireAuth / NoFreeze when requested, on the issuer.
    Flags already set are left alone. Submission failures propagate.
    """
    current = read_issuer_flags(ledger, issuer.address)
    wanted: list[tuple[str, AccountSetAsfFlag]] = []
    if not current.default_ripple:
        wanted.append(("default_ripple", AccountSetAsfFlag.ASF_DEFAULT_RIPPLE))
    if require_auth and not current.require_auth:
        wanted.append(("require_auth", AccountSetAsfFlag.ASF_REQUIRE_AUTH))
    if no_freeze and not current.no_freeze:
        wanted.append(("no_freeze", AccountSetAsfFlag.ASF_NO_FREEZE))

    flags = current.model_copy()
    hashes: list[str] = []
    for name, asf in wanted:
        result = ledger.submit(
            AccountSet(account=issuer.address, set_flag=asf, source_tag=source_tag),
            issuer,
        )
        setattr(flags, name, True)
        tx_hash = transaction_hash(result)
        if tx_hash:
            hashes.append(tx_hash)
        logger.info("issuer_flag_set", flag=name, address=issuer.address, tx_hash=tx_hash)
    return IssuerFlagsOutcome(flags=flags, changed=bool(wanted), tx_hashes=hashes)


def trust_line_needs_update(line: dict[str, Any] | None, limit: Decimal) -> bool:
    """Missing, below `limit`, or frozen on either side."""
    if line is None:
        return True
    try:
        current = Decimal(str(line.get("limit") or "0"))
    except InvalidOperation:
        return True
    return current < limit or bool(line.get("freeze")) or bool(line.get("freeze_peer"))


def ensure_trust_line(
    ledger: LedgerGateway,
    holder: Wallet,
    issuer_address: str,
    currency_code: str,
    limit: str,
    source_tag: int,
) -> tuple[bool, str | None]:
    """
    Create or raise the holder's trust line to the issuer.

    Returns (submitted, tx_hash); (False, None) when the line already satisfies `limit`.
    """
    result = ledger.request(
        AccountLines(account=holder.address, peer=issuer_address, ledger_index="validated")
    )
    line = next((ln for ln in result.get("lines") or [] if ln.get("currency") == currency_code), None)
    if not trust_line_needs_update(line, Decimal(limit)):
        return False, None

    submitted = ledger.submit(
        TrustSet(
            account=holder.address,
            limit_amount=IssuedCurrencyAmount(currency=currency_code, issuer=issuer_address, value=limit),
            source_tag=source_tag,
        ),
        holder,
    )
    tx_hash = transaction_hash(submitted)
    logger.info("trust_line_set", holder=holder.address, currency=currency_code, limit=limit, tx_hash=tx_hash)
    return True, tx_hash
