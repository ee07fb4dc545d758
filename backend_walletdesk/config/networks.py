"""
Static XRPL network table.

Each network has a fixed WebSocket / JSON-RPC endpoint pair plus display and
reserve data. Not mutated at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NetworkConfig:
    ws_url: str
    http_url: str
    name: str
    description: str
    has_faucet: bool
    min_reserve: float
    """Minimum XRP for the account reserve."""
    recommended_min: float
    """Recommended XRP balance before submitting transactions."""


NETWORK_CONFIGS: dict[str, NetworkConfig] = {
    "TESTNET": NetworkConfig(
        ws_url="wss://s.altnet.rippletest.net:51233",
        http_url="https://testnet.xrpl-labs.com",
        name="Testnet",
        description="XRPL test network",
        has_faucet=True,
        min_reserve=10,
        recommended_min=20,
    ),
    "MAINNET": NetworkConfig(
        ws_url="wss://xrplcluster.com",
        http_url="https://xrplcluster.com",
        name="Mainnet",
        description="XRPL main network",
        has_faucet=False,
        min_reserve=10,
        recommended_min=20,
    ),
}


def get_network_config(network: str) -> NetworkConfig:
    """Return the config for `network`; unknown ids fall back to TESTNET."""
    return NETWORK_CONFIGS.get(network, NETWORK_CONFIGS["TESTNET"])


def get_network_info(network: str) -> dict[str, Any]:
    """Display info for the current network (camelCase keys, as served to the front-end)."""
    config = get_network_config(network)
    return {
        "network": network,
        "name": config.name,
        "description": config.description,
        "hasFaucet": config.has_faucet,
        "minReserve": config.min_reserve,
        "recommendedMin": config.recommended_min,
    }
