"""
Structured logging for Backend Wallet Desk.

JSON logs with timestamp, event_type and request context.
Use get_logger() in all modules.
"""

from backend_walletdesk.desk_logging.logger import bind_request, get_logger

__all__ = ["bind_request", "get_logger"]
