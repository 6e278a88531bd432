#!/usr/bin/env python3
"""
CLI tool for the analytics relay.

Usage:
    python -m analytics_relay.cli track levelStart=level:3 rewardReceived=coins:100
    python -m analytics_relay.cli --config relay.yaml pending
    python -m analytics_relay.cli collector --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from colorama import Fore, Style, init as colorama_init

from .config import Config, ConfigError
from .persistence.file import JsonFilePersistence
from .service import EventService


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def parse_event(spec: str) -> tuple[str, str]:
    """Split ``type=data`` (data optional)."""
    event_type, _, data = spec.partition("=")
    return event_type, data


def load_config(args) -> Config:
    config = Config.from_yaml(args.config) if args.config else Config()
    if args.server_url:
        config.relay.server_url = args.server_url
    if args.persistence_path:
        config.persistence.path = args.persistence_path
    return config


def configure_logging(config: Config, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )


async def cmd_track(args, config: Config) -> int:
    """Track events, send them right away and shut down."""
    if args.no_bootstrap:
        config.relay.initial_events_count = 0

    async with EventService(config) as service:
        for spec in args.events:
            event_type, data = parse_event(spec)
            if not service.track_event(event_type, data):
                print(colorize(f"Skipped invalid event: {spec!r}", Fore.YELLOW), file=sys.stderr)

        service.force_send()
        settled = await service.wait_until_idle(timeout=args.timeout)
        pending = service.pending_count

    if not settled:
        print(colorize(f"Timed out after {args.timeout}s", Fore.RED), file=sys.stderr)
    if pending:
        print(colorize(f"{pending} events not delivered, saved to {config.persistence.path}", Fore.YELLOW))
        return 1

    print(colorize("All events delivered.", Fore.GREEN))
    return 0


def cmd_pending(args, config: Config) -> int:
    """Show the persisted buffer."""
    batch = JsonFilePersistence(path=config.persistence.path).load()

    print(colorize("\nPersisted events:", Style.BRIGHT), config.persistence.path)
    if not batch:
        print(colorize("  (none)", Style.DIM))
        return 0

    if args.json:
        print(json.dumps(batch.to_dict(), indent=2))
        return 0

    for event in batch:
        print(f"  {colorize(event.type, Fore.CYAN)} {event.data}")
    print(colorize(f"\n{len(batch)} events", Style.DIM))
    return 0


def cmd_collector(args) -> int:
    """Run the development collector."""
    from .collector import run

    run(host=args.host, port=args.port)
    return 0


def main():
    colorama_init()

    parser = argparse.ArgumentParser(
        description="CLI tool for the analytics relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--server-url", help="Collector URL (overrides config)")
    parser.add_argument("--persistence-path", help="Persisted buffer file (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # track command
    track_parser = subparsers.add_parser("track", help="Track events and deliver them")
    track_parser.add_argument("events", nargs="+", help="Events as TYPE or TYPE=DATA")
    track_parser.add_argument("--timeout", type=float, default=120.0, help="Seconds to wait for delivery")
    track_parser.add_argument("--no-bootstrap", action="store_true", help="Skip startup appStart events")

    # pending command
    pending_parser = subparsers.add_parser("pending", help="Show persisted undelivered events")
    pending_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    # collector command
    collector_parser = subparsers.add_parser("collector", help="Run the development collector")
    collector_parser.add_argument("--host", default="127.0.0.1")
    collector_parser.add_argument("--port", type=int, default=8080)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "collector":
        return cmd_collector(args)

    try:
        config = load_config(args)
    except (ConfigError, OSError) as e:
        print(colorize(f"Error: {e}", Fore.RED), file=sys.stderr)
        return 2
    configure_logging(config, args.verbose)

    if args.command == "track":
        return asyncio.run(cmd_track(args, config))
    elif args.command == "pending":
        return cmd_pending(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
