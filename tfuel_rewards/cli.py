"""
Command-line entry point.

    tfuel-rewards serve [--host H] [--port P]
    tfuel-rewards rewards [ADDR ...]
    tfuel-rewards earned --since UNIX_SEC [ADDR ...]
    tfuel-rewards price SYMBOL
    tfuel-rewards track start|stop|refresh|status [ADDR ...]
    tfuel-rewards lifetime show|reset [ADDR ...]
    tfuel-rewards alert show|set [--enable|--disable] [--threshold USD] [--notify|--no-notify]
    tfuel-rewards prices show|backfill

Addresses default to TRACKED_ADDRESSES. Client commands talk to the running
service at DASHBOARD_API_URL; tracking state lives in TRACKING_DB_PATH.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

import requests

from tfuel_rewards.config import Settings, get_settings
from tfuel_rewards.core.exceptions import RewardsError
from tfuel_rewards.dashboard.client import DashboardClient
from tfuel_rewards.dashboard.formatting import format_money, format_timestamp_sec, format_token
from tfuel_rewards.dashboard.session import DashboardSession
from tfuel_rewards.rewards_logging import get_logger
from tfuel_rewards.tracking.alerts import UsdAlert
from tfuel_rewards.tracking.price_history import PriceHistoryRecorder
from tfuel_rewards.tracking.store import KeyValueStore, SqlStore, sqlite_url
from tfuel_rewards.tracking.tracker import IncrementalTracker, lifetime_earned_total

logger = get_logger(__name__)


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, indent=2))


def _addresses(args: argparse.Namespace, settings: Settings) -> list[str]:
    addresses = list(getattr(args, "addresses", None) or settings.tracked_addresses)
    if not addresses:
        raise RewardsError("No addresses: pass them as arguments or set TRACKED_ADDRESSES")
    return addresses


def _print_rewards_table(results: Sequence[dict[str, Any]]) -> None:
    for r in results:
        print(r.get("address"))
        print(f"  balance     {format_token(r.get('tfuelBalance'))}")
        print(f"  staked      {format_token(r.get('stakedTheta'), 'THETA')}")
        print(f"  rewards 7d  {format_token(r.get('rewards7d'))}")
        print(f"  rewards 30d {format_token(r.get('rewards30d'))}")
        print(f"  last reward {format_timestamp_sec(r.get('lastRewardAt'))}")


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    host = args.host or settings.api_host
    port = args.port or settings.api_port
    logger.info("server_starting", host=host, port=port)
    uvicorn.run("tfuel_rewards.api_server.app:app", host=host, port=port)
    return 0


def cmd_rewards(args: argparse.Namespace, settings: Settings, client: DashboardClient) -> int:
    payload = client.rewards(_addresses(args, settings))
    if args.json:
        _print_json(payload)
    else:
        _print_rewards_table(payload.get("results") or [])
    return 0


def cmd_earned(args: argparse.Namespace, settings: Settings, client: DashboardClient) -> int:
    payload = client.earned(_addresses(args, settings), args.since)
    if args.json:
        _print_json(payload)
        return 0
    for r in payload.get("results") or []:
        print(f"{r.get('address')}  {format_token(r.get('earned'))}  pages={r.get('pagesFetched')}")
    print(f"total  {format_token(lifetime_earned_total(payload.get('results') or []))}")
    return 0


def cmd_price(args: argparse.Namespace, settings: Settings, client: DashboardClient) -> int:
    payload = client.price(args.symbol)
    if args.json:
        _print_json(payload)
    else:
        print(f"{payload.get('symbol')}  {format_money(payload.get('usd'))}  ({payload.get('source')})")
    return 0


def cmd_track(args: argparse.Namespace, settings: Settings, client: DashboardClient, store: KeyValueStore) -> int:
    tracker = IncrementalTracker(store)
    if args.action == "stop":
        tracker.stop()
        print("tracking stopped")
        return 0
    if args.action == "status":
        state = tracker.state
        if state is None:
            print("tracking: idle")
            return 0
        chart = tracker.chart()
        print(f"tracking since {format_timestamp_sec(state.started_at / 1000)} ({tracker.days_tracked()} days)")
        print(f"earned today     {format_token(tracker.earned_today())}")
        print(f"earned yesterday {format_token(tracker.earned_yesterday())}")
        for key, value in zip(chart.keys, chart.values):
            print(f"  {key}  {format_token(value)}")
        return 0

    addresses = _addresses(args, settings)
    if args.action == "start":
        payload = client.rewards(addresses)
        tracker.start(payload.get("results") or [])
        print(f"tracking started for {len(addresses)} address(es)")
        return 0

    session = DashboardSession(
        client,
        addresses,
        tracker,
        prices=PriceHistoryRecorder(store),
        alert=UsdAlert(store),
    )
    snap = session.refresh()
    _print_rewards_table(snap.results)
    print(f"earned since start {format_token(snap.earned_since_start)} ({format_money(snap.earned_usd)})")
    if snap.earned is not None:
        print(f"lifetime earned    {format_token(snap.lifetime_earned)}")
    if snap.alert_message:
        print(snap.alert_message)
    return 0


def cmd_lifetime(args: argparse.Namespace, settings: Settings, client: DashboardClient, store: KeyValueStore) -> int:
    lifetime = IncrementalTracker(store).lifetime
    if args.action == "reset":
        lifetime.reset()
        print("lifetime start cleared")
        return 0
    since = lifetime.since_sec()
    if since is None:
        print("lifetime: not started")
        return 0
    payload = client.earned(_addresses(args, settings), since)
    print(f"since {format_timestamp_sec(since)}")
    print(f"lifetime earned {format_token(lifetime_earned_total(payload.get('results') or []))}")
    return 0


def cmd_alert(args: argparse.Namespace, store: KeyValueStore) -> int:
    alert = UsdAlert(store)
    if args.action == "set":
        alert.configure(enabled=args.enabled, threshold_usd=args.threshold, notify=args.notify)
    _print_json(alert.config.to_json())
    return 0


def cmd_prices(args: argparse.Namespace, client: DashboardClient, store: KeyValueStore) -> int:
    recorder = PriceHistoryRecorder(store)
    if args.action == "backfill":
        session = DashboardSession(client, [], IncrementalTracker(store), prices=recorder)
        applied = session.backfill_prices(args.days)
        print("backfill applied" if applied else "backfill skipped")
    h = recorder.history
    print(f"tfuel points={len(h.tfuel)} theta points={len(h.theta)}")
    if h.tfuel:
        print(f"latest tfuel {format_money(h.tfuel[-1].price)}")
    if h.theta:
        print(f"latest theta {format_money(h.theta[-1].price)}")
    return 0


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfuel-rewards",
        description="Theta staking rewards service and dashboard client.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    p = sub.add_parser("rewards", help="Balances, stake and 7d/30d rewards")
    p.add_argument("addresses", nargs="*")
    p.add_argument("--json", action="store_true", help="Print the raw response")

    p = sub.add_parser("earned", help="Rewards since a UNIX timestamp")
    p.add_argument("addresses", nargs="*")
    p.add_argument("--since", type=int, required=True, help="UNIX seconds")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("price", help="USD price for a token")
    p.add_argument("symbol")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("track", help="Local earnings tracker")
    p.add_argument("action", choices=("start", "stop", "refresh", "status"))
    p.add_argument("addresses", nargs="*")

    p = sub.add_parser("lifetime", help="Lifetime earnings since tracking first started")
    p.add_argument("action", choices=("show", "reset"))
    p.add_argument("addresses", nargs="*")

    p = sub.add_parser("alert", help="USD threshold alert")
    p.add_argument("action", choices=("show", "set"))
    p.add_argument("--enable", dest="enabled", action="store_true", default=None)
    p.add_argument("--disable", dest="enabled", action="store_false")
    p.add_argument("--threshold", type=float, default=None, help="USD")
    p.add_argument("--notify", dest="notify", action="store_true", default=None)
    p.add_argument("--no-notify", dest="notify", action="store_false")

    p = sub.add_parser("prices", help="Local price history")
    p.add_argument("action", choices=("show", "backfill"))
    p.add_argument("--days", type=int, default=30)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.command == "serve":
        return cmd_serve(args, settings)

    store = SqlStore(sqlite_url(settings.tracking_db_path))
    client = DashboardClient(settings.dashboard_api_url, timeout=settings.request_timeout_sec)
    try:
        if args.command == "rewards":
            return cmd_rewards(args, settings, client)
        if args.command == "earned":
            return cmd_earned(args, settings, client)
        if args.command == "price":
            return cmd_price(args, settings, client)
        if args.command == "track":
            return cmd_track(args, settings, client, store)
        if args.command == "lifetime":
            return cmd_lifetime(args, settings, client, store)
        if args.command == "alert":
            return cmd_alert(args, store)
        return cmd_prices(args, client, store)
    except (RewardsError, requests.RequestException) as e:
        logger.warning("cli_command_failed", command=args.command, error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1
    finally:
        client.close()
        store.dispose()


if __name__ == "__main__":
    sys.exit(main())
