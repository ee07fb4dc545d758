"""
Configuration management for the Wallet Desk backend.

Loads settings from environment variables and an optional .env file once at
startup. Exposes a single Settings object plus the static XRPL network table.
"""

from backend_walletdesk.config.networks import (  # noqa: F401
    NETWORK_CONFIGS,
    NetworkConfig,
    get_network_config,
    get_network_info,
)
from backend_walletdesk.config.settings import (  # noqa: F401
    Settings,
    get_settings,
    validate_wallet_environment,
)

__all__ = [
    "NETWORK_CONFIGS",
    "NetworkConfig",
    "Settings",
    "get_network_config",
    "get_network_info",
    "get_settings",
    "validate_wallet_environment",
]
