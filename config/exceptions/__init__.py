"""
backup-drive - Canonical exception hierarchy.

Source of truth for all backup-drive exceptions. Low-level OSError instances
are wrapped into these types (``raise ... from exc``) at the point where the
failing operation and path are known.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class BackupError(Exception):
    """Base exception backup-drive."""


class ConfigError(BackupError):
    """Home directory, marker file, YAML or host entry cannot be resolved."""


class DiscoveryError(BackupError):
    """Root directory cannot be enumerated."""


class BackupIOError(BackupError):
    """
    Filesystem failure (open/read/write/stat/chmod) on a named path.

    Attributes:
        path: Offending path
        operation: Short description of what was attempted
    """

    def __init__(
        self,
        operation: str,
        path: Union[str, Path],
        reason: Optional[BaseException | str] = None,
    ):
        self.operation = operation
        self.path = str(path)
        self.reason = reason
        message = f"{operation} '{self.path}'"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


class HashError(BackupIOError):
    """Read failure while computing a file fingerprint."""
