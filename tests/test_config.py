"""Tests for environment-driven settings."""

from __future__ import annotations

from tfuel_rewards.config.settings import Settings, load_settings


def test_defaults_match_service_limits():
    s = Settings()
    assert s.rewards_cache_ttl_sec == 45
    assert s.earned_cache_ttl_sec == 120
    assert s.tx_page_limit == 50
    assert s.rewards_max_pages == 25
    assert s.earned_max_pages == 40
    assert s.token_decimals == 18


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("EXPLORER_API_URL", "https://explorer.example/api/")
    monkeypatch.setenv("REWARDS_MAX_PAGES", "5")
    monkeypatch.setenv("EARNED_CACHE_TTL_SEC", "not-a-number")
    monkeypatch.setenv("TRACKED_ADDRESSES", " 0xabc , ,0xdef ")

    s = load_settings()

    assert s.explorer_api_url == "https://explorer.example/api"
    assert s.rewards_max_pages == 5
    assert s.earned_cache_ttl_sec == 120
    assert s.tracked_addresses == ("0xabc", "0xdef")
