"""
CLI entry point for tiersource.

Usage:
    python main.py demo
    python main.py read memory disk network clear memory
    python main.py resolve --times 3 [--clear-between]
"""

import argparse
import logging
import sys

from tiersource.config import get_settings
from tiersource.exceptions import TierSourceException
from tiersource.resolver import TieredSourceResolver


def _show(record):
    """Print the value a read returned."""
    print(f"  -> {record.payload if record is not None else '<absent>'}")


def cmd_demo(args):
    """Walk the canonical memory/disk/network scenario on a fresh resolver."""
    resolver = TieredSourceResolver()
    steps = [
        resolver.read_memory,
        resolver.read_disk,
        resolver.read_network,
        resolver.clear_memory,
        resolver.read_memory,
        resolver.read_disk,
        resolver.read_memory,
    ]
    for step in steps:
        result = step()
        if step != resolver.clear_memory:
            _show(result)


def cmd_read(args):
    """Run the named reads in order on one resolver."""
    resolver = TieredSourceResolver()
    for step in args.steps:
        if step == "clear":
            resolver.clear_memory()
        else:
            _show(resolver.read(step))


def cmd_resolve(args):
    """Run the memory -> disk -> network fallback several times."""
    resolver = TieredSourceResolver()
    for i in range(args.times):
        if args.clear_between and i > 0:
            resolver.clear_memory()
        _show(resolver.resolve())
    print(f"\nNetwork requests made: {resolver.request_count}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="tiersource - memory / disk / network fallback demo"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("demo", help="Run the canonical fallback scenario")

    p_read = subparsers.add_parser("read", help="Read tiers in the given order")
    p_read.add_argument(
        "steps",
        nargs="+",
        choices=["memory", "disk", "network", "clear"],
        help="Tier to read, or 'clear' to wipe memory",
    )

    p_resolve = subparsers.add_parser("resolve", help="Fallback through all tiers")
    p_resolve.add_argument("--times", type=int, default=1)
    p_resolve.add_argument(
        "--clear-between", action="store_true", help="Wipe memory between resolves"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        settings = get_settings()
    except TierSourceException as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    logging.basicConfig(level=settings.logging.level, format=settings.logging.format)

    commands = {
        "demo": cmd_demo,
        "read": cmd_read,
        "resolve": cmd_resolve,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
