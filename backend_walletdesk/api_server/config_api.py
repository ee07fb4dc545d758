"""GET /config: public, non-secret configuration for the front-end."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend_walletdesk.api_server.deps import get_settings
from backend_walletdesk.api_server.responses import ok_response
from backend_walletdesk.config.networks import get_network_info
from backend_walletdesk.config.settings import Settings

router = APIRouter()


@router.get("/config")
def read_config(settings: Settings = Depends(get_settings)):
    info = get_network_info(settings.network)
    return ok_response(
        {
            "minXrp": settings.min_xrp,
            "network": settings.network,
            "currencyCode": settings.currency_code,
            "trustLimit": settings.trust_limit,
            "requireAuth": settings.require_auth,
            "noFreeze": settings.no_freeze,
            "autoFaucet": settings.faucet_enabled,
            "sourceTag": settings.source_tag,
            "defaultIssue": settings.default_issue,
            "defaultDistribute": settings.default_distribute,
            "networkInfo": {
                "name": info["name"],
                "description": info["description"],
                "hasFaucet": info["hasFaucet"],
                "minReserve": info["minReserve"],
            },
        }
    )
