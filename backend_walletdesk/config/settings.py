"""
Application settings.

Settings are read from the environment once (Settings.from_env) and handed to
the app factory, which builds the storage backend, event log and ledger
gateway from them. Handlers never read os.environ directly.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path

from backend_walletdesk.config.env import (
    NETWORKS,
    env_flag,
    env_float,
    env_str,
    get_storage_backend,
    get_xrpl_network,
    load_desk_env,
)
from backend_walletdesk.config.networks import NetworkConfig, get_network_config

MAX_SOURCE_TAG = 4294967295
DEFAULT_BLOB_API_URL = "https://blob.vercel-storage.com"


@dataclass(frozen=True)
class Settings:
    """Typed view over the environment. Construct directly in tests."""

    network: str = "TESTNET"
    source_tag_raw: str = ""
    currency_code: str = "SBR"
    trust_limit: str = "1000000000"
    min_xrp: float = 10.0
    require_auth: bool = False
    no_freeze: bool = False
    auto_faucet: bool = False
    default_issue: str = "1000000"
    default_distribute: str = "100"
    rpc_url: str = ""
    storage_backend: str = "local"
    data_dir: Path = field(default_factory=lambda: Path("data"))
    blob_token: str = ""
    blob_api_url: str = DEFAULT_BLOB_API_URL
    event_log_url: str = ""
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        load_desk_env()
        data_dir = Path(env_str("DATA_DIR", "data") or "data")
        return cls(
            network=get_xrpl_network(),
            source_tag_raw=env_str("XRPL_SOURCE_TAG"),
            currency_code=env_str("XRPL_CURRENCY_CODE", "SBR") or "SBR",
            trust_limit=env_str("XRPL_TRUST_LIMIT", "1000000000") or "1000000000",
            min_xrp=env_float("XRPL_MIN_XRP", 10.0),
            require_auth=env_flag("XRPL_REQUIRE_AUTH"),
            no_freeze=env_flag("XRPL_NO_FREEZE"),
            auto_faucet=env_flag("XRPL_AUTO_FAUCET"),
            default_issue=env_str("XRPL_DEFAULT_ISSUE", "1000000") or "1000000",
            default_distribute=env_str("XRPL_DEFAULT_DISTRIBUTE", "100") or "100",
            rpc_url=env_str("XRPL_RPC_URL"),
            storage_backend=get_storage_backend(),
            data_dir=data_dir,
            blob_token=env_str("BLOB_READ_WRITE_TOKEN"),
            blob_api_url=env_str("BLOB_API_URL", DEFAULT_BLOB_API_URL) or DEFAULT_BLOB_API_URL,
            event_log_url=env_str("EVENT_LOG_DB_URL"),
            api_host=env_str("API_HOST", "0.0.0.0") or "0.0.0.0",
            api_port=int(env_float("API_PORT", 8000)),
        )

    @property
    def source_tag(self) -> int | None:
        """Parsed source tag, or None when missing or out of range."""
        try:
            value = int(self.source_tag_raw, 10)
        except (TypeError, ValueError):
            return None
        if value < 0 or value > MAX_SOURCE_TAG:
            return None
        return value

    @property
    def network_config(self) -> NetworkConfig:
        return get_network_config(self.network)

    @property
    def ledger_url(self) -> str:
        """JSON-RPC endpoint: XRPL_RPC_URL override, else the network's fixed HTTP URL."""
        return self.rpc_url or self.network_config.http_url

    @property
    def faucet_enabled(self) -> bool:
        return self.auto_faucet and self.network_config.has_faucet

    @property
    def resolved_event_log_url(self) -> str:
        return self.event_log_url or f"sqlite:///{self.data_dir / 'events.db'}"


def validate_wallet_environment(settings: Settings) -> str | None:
    """Return an error message when wallets cannot be initialized, else None."""
    if settings.network not in NETWORKS:
        return "XRPL_NETWORK must be either TESTNET or MAINNET"
    if not settings.source_tag_raw:
        return "XRPL_SOURCE_TAG environment variable is required"
    if settings.source_tag is None:
        return f"XRPL_SOURCE_TAG must be a valid integer between 0 and {MAX_SOURCE_TAG}"
    return None


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment on first call."""
    return Settings.from_env()
