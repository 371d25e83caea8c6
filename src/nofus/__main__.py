"""Command-line entry point for the mount monitor."""
from __future__ import annotations

import argparse
import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from .actions import CommandDispatcher
from .config import default_config_path, load_config, write_default_config
from .errors import ConfigError, NofusError
from .monitor import MountMonitor
from .mounts import MountProber
from .watches import InotifyWatchSource

logger = logging.getLogger("nofus")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nofus", description="A reliable NFS mount monitor")
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to the YAML configuration file "
        "(default: ~/.config/nofus/config.yml, or /etc/nofus/config.yml without HOME)",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Report the commands that would run without executing them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging (overrides --log-level)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, args.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    config_path = Path(args.config) if args.config else default_config_path()
    logger.debug("Using config file at: %s", config_path)

    try:
        if not config_path.exists():
            write_default_config(config_path)
            logger.warning("Created a default config file at %s, you'll want to edit it.", config_path)
            return 1
        app_config = load_config(config_path)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    dispatcher = CommandDispatcher(app_config, dry_run=args.dry_run)
    try:
        with InotifyWatchSource() as watch_source:
            monitor = MountMonitor(app_config, MountProber(), watch_source, dispatcher)
            monitor.run()
    except NofusError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Unable to initialise watch notifications: %s", exc)
        return 1
    return 0


def _package_version() -> str:
    try:
        return version("nofus")
    except PackageNotFoundError:
        return "unknown"


if __name__ == "__main__":
    raise SystemExit(main())
