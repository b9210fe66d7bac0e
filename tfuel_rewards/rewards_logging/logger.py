"""
structlog setup for the rewards service and CLI.

Every line carries event_type, level, an ISO UTC timestamp and the logger
name. Lines emitted while serving an HTTP request also carry request_id
(bound by the API middleware through bind_request_context). Wallet
addresses are shortened to "0x12345678..." so per-address events stay
greppable without logging full addresses.

No tfuel_rewards imports here; every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json (default) or console
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

REQUEST_ID_KEY = "request_id"
ADDRESS_PREFIX_LEN = 10
_ADDRESS_KEYS = ("address", "addresses")


def shorten_address(address: str) -> str:
    if len(address) <= ADDRESS_PREFIX_LEN:
        return address
    return address[:ADDRESS_PREFIX_LEN] + "..."


def _shorten_addresses(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in _ADDRESS_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = shorten_address(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = [shorten_address(v) if isinstance(v, str) else v for v in value]
    return event_dict


def _rename_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's 'event' becomes event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def build_processors(log_format: str = LOG_FORMAT) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _shorten_addresses,
    ]
    if log_format == "json":
        processors += [_rename_event, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_structlog() -> None:
    structlog.configure(
        processors=build_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        # stderr keeps CLI stdout clean for JSON output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("earned_computed", address=addr, pages_fetched=3)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str) -> structlog.BoundLogger:
    return get_logger("tfuel_rewards").bind(address=address)


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def bind_request_context(request_id: str | None = None, **fields: Any) -> str:
    """
    Start a fresh per-request log context and return its request id.

    Anything bound by an earlier request on the same task is dropped first.
    """
    request_id = request_id or new_request_id()
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{REQUEST_ID_KEY: request_id}, **fields)
    return request_id


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
