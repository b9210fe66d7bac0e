"""
Structured logging for TFUEL Rewards.

Use get_logger() in all modules for JSON, aggregation-friendly output.
"""

from tfuel_rewards.rewards_logging.logger import (
    bind_address,
    bind_request_context,
    clear_request_context,
    get_logger,
    shorten_address,
)

__all__ = [
    "bind_address",
    "bind_request_context",
    "clear_request_context",
    "get_logger",
    "shorten_address",
]
