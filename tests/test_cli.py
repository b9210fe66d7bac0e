"""
CLI tests for commands that only touch local tracking state.
"""

from __future__ import annotations

import json

import pytest

from tfuel_rewards import cli
from tfuel_rewards.config import get_settings


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TRACKING_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.delenv("TRACKED_ADDRESSES", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def test_alert_set_and_show(cli_env, capsys):
    assert cli.main(["alert", "set", "--enable", "--threshold", "50"]) == 0
    capsys.readouterr()

    assert cli.main(["alert", "show"]) == 0
    config = json.loads(capsys.readouterr().out)
    assert config == {"enabled": True, "thresholdUsd": 50.0, "notify": False, "armed": True}


def test_track_status_when_idle(cli_env, capsys):
    assert cli.main(["track", "status"]) == 0
    assert "idle" in capsys.readouterr().out


def test_lifetime_show_when_not_started(cli_env, capsys):
    assert cli.main(["lifetime", "show"]) == 0
    assert "not started" in capsys.readouterr().out


def test_rewards_without_addresses_fails(cli_env, capsys):
    assert cli.main(["rewards"]) == 1
    assert "TRACKED_ADDRESSES" in capsys.readouterr().err


def test_parser_rejects_unknown_track_action():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["track", "pause"])
