#!/usr/bin/env python3
"""
backup-drive - copy this host's files to the mounted backup volume.

Workflow:
1. Find /media/<user>/<volume>/.backup (or use --config)
2. Load the YAML marker and select the entry for this hostname
3. Discover files under $HOME matching includes and not excludes
4. Copy files whose destination copy is missing or different

Usage:
    backup-drive              # Print each file copied
    backup-drive --quiet      # Silent unless an error occurs
    backup-drive --config /media/me/USB/.backup --hostname laptop
"""

from __future__ import annotations

import argparse
import socket
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from backup.src.config.host_config import load_configuration
from backup.src.config.volume import DEFAULT_MEDIA_ROOT, find_configuration_file
from backup.src.sync import orchestrator
from backup.src.sync.models import CopyReport
from config.exceptions import BackupError, ConfigError
from config.logging import configure_from_env

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="backup-drive",
        description="Incremental backup of home directory files to a removable drive",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Don't print files to copy",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Marker/configuration file (default: probe /media/<user>/*/.backup)",
    )
    parser.add_argument(
        "--media-root",
        type=Path,
        default=Path(DEFAULT_MEDIA_ROOT),
        help=f"Directory holding per-user mount points (default: {DEFAULT_MEDIA_ROOT})",
    )
    parser.add_argument(
        "--hostname",
        default=None,
        help="Configuration entry to use (default: this machine's hostname)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: $LOG_LEVEL or WARNING)",
    )
    return parser.parse_args(argv)


def current_hostname() -> str:
    """Return this machine's hostname."""
    try:
        hostname = socket.gethostname()
    except OSError as e:
        raise ConfigError(f"getting hostname: {e}") from e
    if not hostname:
        raise ConfigError("getting hostname: empty hostname")
    return hostname


def run(args: argparse.Namespace) -> CopyReport:
    """
    Locate configuration, then back up.

    Raises:
        BackupError: Any configuration, discovery or copy failure
    """
    config_file = args.config or find_configuration_file(media_root=args.media_root)
    destination = Path(config_file).resolve().parent

    configuration = load_configuration(config_file)
    hostname = args.hostname or current_hostname()
    pattern_set = configuration.for_host(hostname)

    structlog.contextvars.bind_contextvars(hostname=hostname)
    return orchestrator.run(pattern_set, destination, quiet=args.quiet)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        Exit status: 0 on success, 1 on error
    """
    args = parse_args(argv)
    configure_from_env(level=args.log_level)

    try:
        run(args)
    except BackupError as e:
        logger.error("backup_failed", error=str(e), error_type=type(e).__name__)
        print("ERROR", e, file=sys.stderr)
        return 1
    finally:
        structlog.contextvars.clear_contextvars()

    return 0


if __name__ == "__main__":
    sys.exit(main())
