"""
Backup volume lookup.

Removable drives are mounted as /media/<user>/<volume>. A volume is a valid
backup target when it holds a `.backup` marker file at its root; the marker
also carries the YAML configuration.
"""

from __future__ import annotations

import getpass
import os
from pathlib import Path
from typing import Optional, Union

import structlog

from config.exceptions import ConfigError

logger = structlog.get_logger(__name__)

DEFAULT_MEDIA_ROOT = "/media"
MARKER_FILENAME = ".backup"


def current_username() -> str:
    """
    Return the login name of the current user.

    Raises:
        ConfigError: Username cannot be determined
    """
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        raise ConfigError(f"getting current user: {e}") from e


def find_configuration_file(
    media_root: Union[str, Path] = DEFAULT_MEDIA_ROOT,
    username: Optional[str] = None,
) -> Path:
    """
    Find the marker file on the first mounted volume that has one.

    Volumes are probed in name order: /media/<user>/<volume>/.backup

    Returns:
        Marker file path (its parent is the destination root)

    Raises:
        ConfigError: Media directory unreadable or no marker found
    """
    user_media = Path(media_root) / (username or current_username())

    try:
        entries = sorted(os.listdir(user_media))
    except OSError as e:
        raise ConfigError(f"reading directory '{user_media}': {e}") from e

    for entry in entries:
        marker = user_media / entry / MARKER_FILENAME
        if marker.exists() and not marker.is_dir():
            logger.info("backup_marker_found", marker=str(marker))
            return marker

    raise ConfigError(f"no {MARKER_FILENAME} file found in {user_media} subdirectory")
