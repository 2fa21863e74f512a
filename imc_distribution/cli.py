"""CLI entry point for imc-distribution.

Usage:
    imc-distribute distribute --event EVENT.json [--channels facebook,press]
    imc-distribute status
    imc-distribute log [--channel facebook]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from imc_distribution.actions import handle_action
from imc_distribution.config import DistributionConfig, load_config
from imc_distribution.delivery_log import DeliveryLog
from imc_distribution.errors import DistributionError
from imc_distribution.factory import build_distributor


def cmd_distribute(cfg: DistributionConfig, request_path: Path, channels: str | None) -> int:
    request = json.loads(request_path.read_text(encoding="utf-8"))
    request = {**request, "action": "distribute-all"}
    if channels:
        request["channels"] = [c.strip() for c in channels.split(",") if c.strip()]

    dist = build_distributor(cfg)
    try:
        response = handle_action(dist, request)
    except DistributionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for r in response["results"]:
        label = "OK" if r["success"] else "FAILED"
        fallback = " (fallback)" if r["usedFallback"] else ""
        detail = r.get("url") or r.get("id") or r.get("error") or "N/A"
        print(f"  [{label}] {r['channel']}{fallback}: {detail}")
    print(f"{response['succeeded']}/{response['total']} channels succeeded")
    return 0 if response["success"] else 1


def cmd_status(cfg: DistributionConfig) -> int:
    print(f"Live mode: {cfg.live_mode}")
    response = handle_action(build_distributor(cfg), {"action": "check-status"})
    for name, status in response["channels"].items():
        state = "ready" if status["ready"] else "not configured"
        missing = f" (missing {', '.join(status['missing'])})" if status.get("missing") else ""
        print(f"  {name:<11} {state}{missing}  [{status['provider']}]")
    return 0


def cmd_log(cfg: DistributionConfig, channel: str | None) -> int:
    log_path = Path(cfg.delivery_log_path) if cfg.delivery_log_path else None
    log = DeliveryLog(log_path)
    records = log.get_by_channel(channel) if channel else log.all_records
    print(f"{'Records for ' + channel if channel else 'All records'}: {len(records)}")
    for r in records:
        print(f"  {r.timestamp} {r.channel} / {r.title}: {r.url or r.external_id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="imc-distribute", description="Event distribution CLI")
    parser.add_argument("--config", type=Path, default=None, help="Config YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    dist_p = sub.add_parser("distribute", help="Distribute an event to channels")
    dist_p.add_argument("--event", type=Path, required=True,
                        help="JSON file with event, venue, content and images")
    dist_p.add_argument("--channels", default=None,
                        help="Comma-separated channel list (default: all ready channels)")

    sub.add_parser("status", help="Show channel readiness")

    log_p = sub.add_parser("log", help="View delivery log")
    log_p.add_argument("--channel", default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.command:
        parser.print_help()
        return 0

    cfg = load_config(args.config)

    if args.command == "distribute":
        return cmd_distribute(cfg, args.event, args.channels)
    if args.command == "status":
        return cmd_status(cfg)
    return cmd_log(cfg, args.channel)


if __name__ == "__main__":
    sys.exit(main())
