"""
Tests for Settings, environment validation and the static network table.
"""

from __future__ import annotations

import pytest

from backend_walletdesk.config.networks import NETWORK_CONFIGS, get_network_config, get_network_info
from backend_walletdesk.config.settings import MAX_SOURCE_TAG, Settings, validate_wallet_environment


@pytest.mark.parametrize(
    "network,source_tag,expected",
    [
        ("TESTNET", "12345", None),
        ("MAINNET", "0", None),
        ("MAINNET", str(MAX_SOURCE_TAG), None),
        ("DEVNET", "1", "XRPL_NETWORK must be either TESTNET or MAINNET"),
        ("TESTNET", "", "XRPL_SOURCE_TAG environment variable is required"),
        ("TESTNET", "-1", "XRPL_SOURCE_TAG must be a valid integer between 0 and 4294967295"),
        ("TESTNET", "4294967296", "XRPL_SOURCE_TAG must be a valid integer between 0 and 4294967295"),
        ("TESTNET", "abc", "XRPL_SOURCE_TAG must be a valid integer between 0 and 4294967295"),
    ],
)
def test_validate_wallet_environment(network, source_tag, expected):
    settings = Settings(network=network, source_tag_raw=source_tag)
    assert validate_wallet_environment(settings) == expected


def test_source_tag_parsing():
    assert Settings(source_tag_raw="42").source_tag == 42
    assert Settings(source_tag_raw="").source_tag is None
    assert Settings(source_tag_raw="1.5").source_tag is None


def test_ledger_url_follows_network_unless_overridden():
    assert Settings(network="TESTNET").ledger_url == NETWORK_CONFIGS["TESTNET"].http_url
    assert Settings(network="MAINNET").ledger_url == NETWORK_CONFIGS["MAINNET"].http_url
    assert Settings(network="MAINNET", rpc_url="http://localhost:5005").ledger_url == "http://localhost:5005"


def test_faucet_only_on_testnet_with_auto_faucet():
    assert Settings(network="TESTNET", auto_faucet=True).faucet_enabled is True
    assert Settings(network="TESTNET", auto_faucet=False).faucet_enabled is False
    assert Settings(network="MAINNET", auto_faucet=True).faucet_enabled is False


def test_event_log_url_defaults_under_data_dir(tmp_path):
    settings = Settings(data_dir=tmp_path)
    assert settings.resolved_event_log_url == f"sqlite:///{tmp_path / 'events.db'}"
    assert Settings(event_log_url="sqlite:///:memory:").resolved_event_log_url == "sqlite:///:memory:"


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("XRPL_NETWORK", "mainnet")
    monkeypatch.setenv("XRPL_SOURCE_TAG", "777")
    monkeypatch.setenv("XRPL_REQUIRE_AUTH", "true")
    monkeypatch.setenv("XRPL_NO_FREEZE", "0")
    monkeypatch.setenv("XRPL_MIN_XRP", "25")
    monkeypatch.setenv("STORAGE_BACKEND", "nonsense")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    settings = Settings.from_env()
    assert settings.network == "MAINNET"
    assert settings.source_tag == 777
    assert settings.require_auth is True
    assert settings.no_freeze is False
    assert settings.min_xrp == 25.0
    assert settings.storage_backend == "local"
    assert settings.data_dir == tmp_path


def test_network_table():
    testnet = get_network_config("TESTNET")
    assert testnet.ws_url == "wss://s.altnet.rippletest.net:51233"
    assert testnet.has_faucet is True
    assert get_network_config("MAINNET").has_faucet is False
    assert get_network_config("UNKNOWN") is testnet

    info = get_network_info("MAINNET")
    assert info == {
        "network": "MAINNET",
        "name": "Mainnet",
        "description": "XRPL main network",
        "hasFaucet": False,
        "minReserve": 10,
        "recommendedMin": 20,
    }
