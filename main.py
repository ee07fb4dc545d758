"""
Main entrypoint: FastAPI wallet desk API served by uvicorn.

Settings come from the environment (.env at the project root is loaded first):
XRPL_NETWORK, XRPL_SOURCE_TAG, STORAGE_BACKEND, DATA_DIR, API_HOST, API_PORT, etc.

Equivalent: uvicorn backend_walletdesk.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_walletdesk.desk_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from environment settings and run it in the main thread."""
    from backend_walletdesk.api_server.server import create_app
    from backend_walletdesk.config.settings import get_settings, validate_wallet_environment
    import uvicorn

    settings = get_settings()
    env_error = validate_wallet_environment(settings)
    if env_error:
        # /wallets/init reports the same error; the rest of the API still works.
        logger.warning("main_config_warning", message=env_error)

    app = create_app(settings)
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        network=settings.network,
        storage_backend=settings.storage_backend,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
