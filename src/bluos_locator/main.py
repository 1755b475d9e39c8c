"""
BluOS Player Locator - Main Entry Point
Prints the resolved player address (or candidates / health) for a menu-bar plugin
"""

import sys
import asyncio
import argparse
import logging
from typing import List, Optional

from .config_loader import find_config_path
from .errors import BluOSLocatorError
from .services.player_locator import PlayerLocator

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bluos-locator",
        description="Find a BluOS player on the local network",
    )
    parser.add_argument("--config", help="YAML configuration file (default: $CONFIG_FILE or config/config.yaml)")
    parser.add_argument(
        "command",
        nargs="?",
        default="resolve",
        choices=["resolve", "discover", "check"],
        help="resolve: print the player URL; discover: list candidates; check: report player health",
    )
    return parser.parse_args(argv)


async def run(command: str, locator: PlayerLocator) -> int:
    if command == "discover":
        for device in await locator.discover():
            print(device.base_url)
        return 0

    if command == "check":
        health = await locator.check()
        line = f"{health.status} {health.url}"
        if health.state:
            line += f" {health.state}"
        print(line)
        return 0 if health.status == "online" else 1

    result = await locator.resolve()
    print(result.url)
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    try:
        config_path = find_config_path(args.config)
        locator = PlayerLocator(config_path=config_path)
        return await run(args.command, locator)
    except BluOSLocatorError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
