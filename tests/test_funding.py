"""
Tests for ensure_funded (XRP balance check with the testnet faucet).
"""

from __future__ import annotations

import pytest
from xrpl.wallet import Wallet

from backend_walletdesk.config.settings import Settings
from backend_walletdesk.core.exceptions import LedgerRequestError
from backend_walletdesk.ledger.funding import FAUCET_RECHECK_ATTEMPTS, drops_to_xrp, ensure_funded
from conftest import FakeLedger, account_info


@pytest.fixture
def wallet():
    return Wallet.create()


def _not_found():
    return LedgerRequestError("account_info returned actNotFound", ledger_error="actNotFound")


def test_drops_to_xrp():
    assert str(drops_to_xrp("12345678")) == "12.345678"


def test_enough_balance_is_ok(ledger: FakeLedger, wallet):
    ledger.on("account_info", account_info("25000000"))
    result = ensure_funded(ledger, wallet, 10, Settings())
    assert result.status == "ok"
    assert result.balance_xrp == 25.0
    assert result.to_dict() == {"status": "ok", "address": wallet.address, "balanceXrp": 25.0}
    assert ledger.funded == []


def test_low_balance_on_existing_account_is_error(ledger: FakeLedger, wallet):
    ledger.on("account_info", account_info("5000000"))
    settings = Settings(network="TESTNET", auto_faucet=True)
    result = ensure_funded(ledger, wallet, 10, settings, sleep=lambda s: None)
    assert result.failed
    assert result.error_code == "INSUFFICIENT_BALANCE"
    # the faucet is only used to create missing accounts
    assert ledger.funded == []


def test_missing_account_is_funded_from_faucet(ledger: FakeLedger, wallet):
    answers = [_not_found(), _not_found(), account_info("1000000000")]
    ledger.on("account_info", lambda req: answers.pop(0))
    delays = []

    result = ensure_funded(ledger, wallet, 10, Settings(network="TESTNET", auto_faucet=True), sleep=delays.append)

    assert result.status == "funded"
    assert result.balance_xrp == 1000.0
    assert ledger.funded == [wallet.address]
    assert delays == [1.0, 2.0]


def test_faucet_gives_up_after_rechecks(ledger: FakeLedger, wallet):
    ledger.on("account_info", lambda req: _not_found())
    delays = []
    result = ensure_funded(ledger, wallet, 10, Settings(network="TESTNET", auto_faucet=True), sleep=delays.append)
    assert result.error_code == "INSUFFICIENT_BALANCE"
    assert len(delays) == FAUCET_RECHECK_ATTEMPTS


@pytest.mark.parametrize(
    "settings",
    [Settings(network="MAINNET", auto_faucet=True), Settings(network="TESTNET", auto_faucet=False)],
)
def test_missing_account_without_faucet(ledger: FakeLedger, wallet, settings):
    ledger.on("account_info", _not_found())
    result = ensure_funded(ledger, wallet, 10, settings)
    assert result.error_code == "INSUFFICIENT_BALANCE"
    assert ledger.funded == []


def test_other_ledger_errors_are_insufficient(ledger: FakeLedger, wallet):
    ledger.on("account_info", LedgerRequestError("timeout"))
    result = ensure_funded(ledger, wallet, 10, Settings(network="TESTNET", auto_faucet=True))
    assert result.error_code == "INSUFFICIENT_BALANCE"
    assert ledger.funded == []
