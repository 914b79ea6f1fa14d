"""
Willow Finder - Main Entry Point

This script provides a command-line interface for the world feed. It can run
the feed against a simulated world and subscribe to a running feed.
"""

import argparse
import threading
import time
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .client import SnapshotClient
from .config import ConfigError, WillowFinderConfig, load_config
from .demo import DemoDriver, build_demo_world
from .logging_utils import configure_logging
from .models import ENTITY_SECTIONS
from .plugin import WillowFinderPlugin


def run_demo(config: WillowFinderConfig, logger, ticks: int = 0, tick_interval: float = 0.6,
             seed: Optional[int] = None) -> int:
    """Drive the plugin with the simulated world.

    Args:
        config: Feed configuration
        logger: The logger instance
        ticks: Number of ticks to run, 0 to run until interrupted
        tick_interval: Seconds between ticks
        seed: Seed for the simulation's random choices

    Returns:
        int: Process exit code
    """
    world = build_demo_world()
    driver = DemoDriver(world, seed=seed)
    plugin = WillowFinderPlugin(config, world)
    plugin.start_up()

    count = 0
    try:
        while ticks <= 0 or count < ticks:
            for sender, message in driver.advance():
                plugin.on_chat_message(sender, message)
            plugin.on_game_tick()
            count += 1
            if count % 10 == 0:
                scan = plugin.current_scan
                logger.info(
                    f"Tick {count}: {len(scan)} entities, "
                    f"{len(plugin.overlay_labels())} labels on screen, "
                    f"{plugin.server.subscriber_count if plugin.server else 0} subscribers")
            time.sleep(tick_interval)
    except KeyboardInterrupt:
        logger.info("Demo interrupted by user")
    finally:
        plugin.shut_down()
    return 0


def render_snapshot(data: Dict[str, Any]) -> Table:
    player = data.get("player", {})
    table = Table(title=f"Snapshot @ {data.get('timestamp', 0)}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Position", f"{player.get('x')}, {player.get('y')}, {player.get('plane')}")
    table.add_row("Activity", str(player.get("activity")))
    table.add_row("Health", f"{player.get('health')}/{player.get('max_health')}")
    table.add_row("Run energy", str(player.get("run_energy")))
    for _, list_key, count_key in ENTITY_SECTIONS:
        records = data.get(list_key, [])
        nearest = min((record["distance"] for record in records), default=None)
        suffix = f" (nearest {nearest} tiles)" if nearest is not None else ""
        table.add_row(list_key, f"{data.get(count_key, 0)}{suffix}")
    table.add_row("Inventory", f"{data.get('inventory_count', 0)}{' (full)' if data.get('inventory_full') else ''}")
    for line in data.get("chat_messages", [])[-3:]:
        table.add_row("Chat", line)
    return table


def run_watch(url: str, logger, count: int = 0, timeout: float = 10.0) -> int:
    """Subscribe to a running feed and print each snapshot."""
    console = Console()
    received = threading.Semaphore(0)

    def show(data: Dict[str, Any]) -> None:
        console.print(render_snapshot(data))
        received.release()

    client = SnapshotClient(url, on_snapshot=show)
    if not client.wait_for_connection(timeout=timeout):
        logger.error(f"Failed to connect to {url} within {timeout} seconds")
        logger.error("Is the feed running with the WebSocket enabled?")
        client.close()
        return 1

    seen = 0
    try:
        while count <= 0 or seen < count:
            if not received.acquire(timeout=1.0):
                if not client.connected:
                    logger.warning("Feed closed the connection")
                    break
                continue
            seen += 1
    except KeyboardInterrupt:
        logger.info("Watch interrupted by user")
    finally:
        client.close()
    return 0


def setup_arg_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description="Willow Finder world feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        dest="command", help="Command to execute", required=True)

    common_args = {
        "--debug": {
            "action": "store_true",
            "help": "Enable debug logging"
        },
        "--verbose": {
            "action": "store_true",
            "help": "Enable verbose output"
        },
    }

    demo_parser = subparsers.add_parser(
        "demo", help="Run the feed against a simulated world")
    for arg, kwargs in common_args.items():
        demo_parser.add_argument(arg, **kwargs)
    demo_parser.add_argument("--host", type=str, default=None, help="Interface to bind")
    demo_parser.add_argument("--port", type=int, default=None, help="WebSocket port")
    demo_parser.add_argument(
        "--no-websocket", action="store_true", help="Scan without starting the WebSocket server")
    demo_parser.add_argument(
        "--ticks", type=int, default=0, help="Number of ticks to run (0 runs until interrupted)")
    demo_parser.add_argument(
        "--tick-interval", type=float, default=0.6, help="Seconds between ticks")
    demo_parser.add_argument("--seed", type=int, default=None, help="Random seed for the simulation")

    watch_parser = subparsers.add_parser(
        "watch", help="Subscribe to a running feed and print snapshots")
    for arg, kwargs in common_args.items():
        watch_parser.add_argument(arg, **kwargs)
    watch_parser.add_argument("--url", type=str, default=None, help="Feed URL (defaults to the configured host/port)")
    watch_parser.add_argument(
        "--count", type=int, default=0, help="Number of snapshots to print (0 runs until interrupted)")

    return parser


def main(argv=None) -> int:
    """Main entry point for the application."""
    load_dotenv()
    parser = setup_arg_parser()
    args = parser.parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.command == "demo":
        overrides = {"host": args.host, "port": args.port}
        if args.no_websocket:
            overrides["enable_websocket"] = False
    try:
        config = load_config(overrides, use_dotenv=False)
    except ConfigError as e:
        parser.error(str(e))

    logger = configure_logging(debug=args.debug, verbose=args.verbose, log_dir=config.log_dir)

    logger.info("=====================================")
    logger.info("        Willow Finder world feed     ")
    logger.info("=====================================")
    logger.info(f"Debug mode: {args.debug}")
    logger.info(f"Verbose logging: {args.verbose}")

    if args.command == "demo":
        logger.info("Running the feed against the simulated world")
        return run_demo(config, logger, ticks=args.ticks, tick_interval=args.tick_interval, seed=args.seed)
    if args.command == "watch":
        url = args.url or config.websocket_url
        logger.info(f"Watching {url}")
        return run_watch(url, logger, count=args.count)

    logger.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
