"""
Structured logging for the AlphIQ backend.

JSON logs with timestamp, event_type and request context.
"""

from alphiq_backend.alphiq_logging.logger import (
    bind_address,
    bind_request_context,
    clear_request_context,
    get_logger,
)

__all__ = ["bind_address", "bind_request_context", "clear_request_context", "get_logger"]
