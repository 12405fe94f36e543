"""Command-line entry point for the game server log monitor.

Polls one or more server log files and prints derived status as JSON.
With ``--once`` a single poll is made; otherwise the monitoring service runs
until interrupted.
"""

import argparse
import asyncio
import json
import logging
import sys

from .config import VALID_LOG_LEVELS, ConfigError, load_config
from .monitoring_service import MonitoringService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="server-monitor",
        description="Tail game server logs and report server status",
    )
    parser.add_argument("log_paths", nargs="*", help="Log files to monitor")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--once", action="store_true", help="Poll once, print status and exit")
    parser.add_argument("--interval", type=float, help="Seconds between polls")
    parser.add_argument("--status-dir", help="Directory to write latest status snapshots to")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    return parser


async def run_service(service: MonitoringService) -> None:
    """Run the service until cancelled, printing status after each interval."""
    await service.start()
    try:
        while service.is_running():
            await asyncio.sleep(service.poll_interval)
            print(json.dumps(service.get_all_latest()), flush=True)
    finally:
        await service.stop()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.log_paths:
        config.log_paths = list(args.log_paths)
    if args.interval is not None:
        if args.interval <= 0:
            print("Configuration error: --interval must be positive", file=sys.stderr)
            return 2
        config.poll_interval_seconds = args.interval
    if args.status_dir:
        config.status_dir = args.status_dir
    if args.log_level:
        log_level = args.log_level.upper()
        if log_level not in VALID_LOG_LEVELS:
            print(
                f"Configuration error: invalid --log-level '{args.log_level}'. "
                f"Allowed levels: {', '.join(VALID_LOG_LEVELS)}",
                file=sys.stderr,
            )
            return 2
        config.log_level = log_level

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    if not config.log_paths:
        print("No log paths given (pass paths or set log_paths in the config)", file=sys.stderr)
        return 2

    service = MonitoringService(config)

    if args.once:
        results = service.poll_once()
        print(json.dumps({path: snap.to_dict() for path, snap in results.items()}, indent=2))
        return 0

    try:
        asyncio.run(run_service(service))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
