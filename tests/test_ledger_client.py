"""
Tests for LedgerGateway error mapping. The xrpl-py client and transaction
helpers are patched; nothing touches the network.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from xrpl.clients import XRPLRequestFailureException
from xrpl.models.requests import AccountInfo
from xrpl.models.response import Response, ResponseStatus
from xrpl.models.transactions import AccountSet
from xrpl.transaction import XRPLReliableSubmissionException
from xrpl.wallet import Wallet

from backend_walletdesk.core.exceptions import LedgerRequestError, TransactionFailedError
from backend_walletdesk.ledger.client import LedgerGateway, transaction_hash, tx_succeeded

CLIENT_MODULE = "backend_walletdesk.ledger.client"


@pytest.fixture
def rpc():
    return MagicMock()


@pytest.fixture
def gateway(rpc):
    return LedgerGateway("http://rpc.test", client=rpc)


@pytest.fixture
def wallet():
    return Wallet.create()


def test_request_returns_result(gateway, rpc, wallet):
    rpc.request.return_value = Response(status=ResponseStatus.SUCCESS, result={"account_data": {"Balance": "1"}})
    assert gateway.request(AccountInfo(account=wallet.address)) == {"account_data": {"Balance": "1"}}


def test_request_error_carries_ledger_error(gateway, rpc, wallet):
    rpc.request.return_value = Response(
        status=ResponseStatus.ERROR, result={"error": "actNotFound", "error_message": "Account not found."}
    )
    with pytest.raises(LedgerRequestError) as exc:
        gateway.request(AccountInfo(account=wallet.address))
    assert exc.value.ledger_error == "actNotFound"


def test_request_transport_failure(gateway, rpc, wallet):
    rpc.request.side_effect = OSError("connection refused")
    with pytest.raises(LedgerRequestError) as exc:
        gateway.request(AccountInfo(account=wallet.address))
    assert exc.value.ledger_error is None


def _account_set(wallet):
    return AccountSet(account=wallet.address, source_tag=1)


def test_submit_success(gateway, wallet):
    result = {"hash": "AB" * 32, "meta": {"TransactionResult": "tesSUCCESS"}, "validated": True}
    with patch(f"{CLIENT_MODULE}.autofill", side_effect=lambda tx, client: tx), patch(
        f"{CLIENT_MODULE}.sign", side_effect=lambda tx, w: tx
    ), patch(f"{CLIENT_MODULE}.submit_and_wait", return_value=Response(status=ResponseStatus.SUCCESS, result=result)):
        assert gateway.submit(_account_set(wallet), wallet) == result


def test_submit_non_success_result(gateway, wallet):
    result = {"hash": "CD" * 32, "meta": {"TransactionResult": "tecNO_PERMISSION"}}
    with patch(f"{CLIENT_MODULE}.autofill", side_effect=lambda tx, client: tx), patch(
        f"{CLIENT_MODULE}.sign", side_effect=lambda tx, w: tx
    ), patch(f"{CLIENT_MODULE}.submit_and_wait", return_value=Response(status=ResponseStatus.SUCCESS, result=result)):
        with pytest.raises(TransactionFailedError) as exc:
            gateway.submit(_account_set(wallet), wallet)
    assert exc.value.engine_result == "tecNO_PERMISSION"


def test_submit_rejected(gateway, wallet):
    with patch(f"{CLIENT_MODULE}.autofill", side_effect=lambda tx, client: tx), patch(
        f"{CLIENT_MODULE}.sign", side_effect=lambda tx, w: tx
    ), patch(
        f"{CLIENT_MODULE}.submit_and_wait",
        side_effect=XRPLReliableSubmissionException("Transaction failed: temBAD_FEE"),
    ):
        with pytest.raises(TransactionFailedError) as exc:
            gateway.submit(_account_set(wallet), wallet)
    assert exc.value.engine_result == "temBAD_FEE"


def test_submit_transport_failure_is_not_transaction_failure(gateway, wallet):
    with patch(f"{CLIENT_MODULE}.autofill", side_effect=XRPLRequestFailureException({"error": "noNetwork"})):
        with pytest.raises(LedgerRequestError) as exc:
            gateway.submit(_account_set(wallet), wallet)
    assert not isinstance(exc.value, TransactionFailedError)


def test_fund_wallet_wraps_faucet_errors(gateway, wallet):
    with patch(f"{CLIENT_MODULE}.generate_faucet_wallet", side_effect=RuntimeError("faucet down")):
        with pytest.raises(LedgerRequestError):
            gateway.fund_wallet(wallet)


def test_result_helpers():
    assert transaction_hash({"tx_json": {"hash": "H"}}) == "H"
    assert transaction_hash({}) is None
    assert tx_succeeded({"meta": {"TransactionResult": "tesSUCCESS"}})
    assert not tx_succeeded({"meta": "00"})
