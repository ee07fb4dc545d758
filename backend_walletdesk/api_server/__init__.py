"""HTTP API: FastAPI app factory and routers."""

from backend_walletdesk.api_server.server import create_app

__all__ = ["create_app"]
