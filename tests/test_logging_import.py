"""
Test that rewards_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from rewards_logging and use the logger."""
    from tfuel_rewards.rewards_logging import bind_address, get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")
    bind_address("0x" + "a" * 40).info("test_bound")


def test_json_chain_shortens_addresses_and_renames_event():
    import json

    from tfuel_rewards.rewards_logging.logger import build_processors

    processors = build_processors("json")
    event = {"event": "earned_computed", "address": "0x" + "a" * 40, "addresses": ["0x" + "b" * 40, None]}
    for processor in processors:
        event = processor(None, "info", event)

    line = json.loads(event)
    assert line["event_type"] == "earned_computed"
    assert line["address"] == "0xaaaaaaaa..."
    assert line["addresses"] == ["0xbbbbbbbb...", None]
    assert line["level"] == "info"
    assert line["timestamp"].startswith("20")


def test_request_context_binds_and_clears():
    import structlog

    from tfuel_rewards.rewards_logging import bind_request_context, clear_request_context

    structlog.contextvars.bind_contextvars(stale="left over")
    assert bind_request_context("req-1") == "req-1"
    assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

    generated = bind_request_context()
    assert len(generated) == 12
    assert structlog.contextvars.get_contextvars() == {"request_id": generated}

    clear_request_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_caller_request_id_is_echoed(client):
    r = client.get("/health", headers={"x-request-id": "trace-42"})
    assert r.headers["x-request-id"] == "trace-42"
