"""
Change detection: does the destination copy need refreshing?

Checks, in order:
1. Destination missing -> copy (first backup of the file)
2. Source missing/unreadable -> BackupIOError
3. Sizes differ -> copy, without reading content
4. Otherwise compare SHA256 fingerprints
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

import structlog

from backup.src.sync import hashing
from backup.src.sync.models import CopyDecision, DecisionReason
from config.exceptions import BackupIOError

logger = structlog.get_logger(__name__)


def should_copy(source: Union[str, Path], dest: Union[str, Path]) -> CopyDecision:
    """
    Decide whether `source` must be copied over `dest`.

    Args:
        source: Absolute source path
        dest: Absolute destination path

    Returns:
        CopyDecision (truthy when a copy is required)

    Raises:
        BackupIOError: Source vanished or cannot be stat'ed
        HashError: Either file unreadable while comparing content
    """
    source = Path(source)
    dest = Path(dest)

    try:
        dest_stat = os.stat(dest)
    except OSError:
        return CopyDecision(
            should_copy=True,
            source=source,
            dest=dest,
            reason=DecisionReason.missing_destination,
        )

    try:
        source_stat = os.stat(source)
    except OSError as e:
        raise BackupIOError("getting status of source file", source, e) from e

    if source_stat.st_size != dest_stat.st_size:
        return CopyDecision(
            should_copy=True,
            source=source,
            dest=dest,
            reason=DecisionReason.size_mismatch,
        )

    if hashing.files_equal(source, dest):
        return CopyDecision(
            should_copy=False,
            source=source,
            dest=dest,
            reason=DecisionReason.identical,
        )

    logger.debug("backup_content_changed", source=str(source), size=source_stat.st_size)
    return CopyDecision(
        should_copy=True,
        source=source,
        dest=dest,
        reason=DecisionReason.content_changed,
    )
