"""
Backup run: discovery -> change detection -> selective copy.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, TextIO, Union

import structlog

from backup.src.sync.copier import SelectiveCopier
from backup.src.sync.discovery import discover, resolve_home
from backup.src.sync.models import CopyReport, PatternSet

logger = structlog.get_logger(__name__)


def run(
    pattern_set: PatternSet,
    dest_root: Union[str, Path],
    quiet: bool = False,
    home: Optional[Union[str, Path]] = None,
    progress_stream: Optional[TextIO] = None,
) -> CopyReport:
    """
    Back up the files selected by `pattern_set` into `dest_root`.

    Args:
        pattern_set: Include/exclude globs for this host
        dest_root: Destination root (directory holding the marker file)
        quiet: Suppress the per-file progress lines
        home: Source root (default: the user's home directory)
        progress_stream: Progress output (default: stdout)

    Returns:
        CopyReport of the copy pass

    Raises:
        BackupError: Any discovery or copy failure, unchanged
    """
    start = time.monotonic()
    home = resolve_home() if home is None else Path(home)

    logger.info(
        "backup_run_started",
        home=str(home),
        dest_root=str(dest_root),
        includes=len(pattern_set.includes),
        excludes=len(pattern_set.excludes),
    )

    files = discover(home, pattern_set.includes, pattern_set.excludes)
    copier = SelectiveCopier(quiet=quiet, progress_stream=progress_stream)
    report = copier.copy_all(files, dest_root, source_root=home)

    logger.info(
        "backup_run_completed",
        files=len(files),
        copied=len(report.copied),
        skipped=len(report.skipped),
        elapsed_seconds=round(time.monotonic() - start, 3),
    )
    return report
