"""
ASGI application entrypoint.

Run with: uvicorn backend_walletdesk.api_server.app:app --host 0.0.0.0 --port 8000
"""

from backend_walletdesk.api_server.server import create_app

app = create_app()

__all__ = ["app"]
