"""
Selective copy of out-of-date files to the destination volume.

For each file:
1. Ask the change detector; skip with no I/O when up to date
2. Announce the file on the progress stream (unless quiet)
3. Create missing parent directories (0o755)
4. Stream bytes, flush + fsync the destination
5. Preserve permission bits and timestamps (POSIX only)

Fail-fast: the first error aborts the pass. Files copied before the failure
stay in place; a truncated destination is re-copied on the next run.
"""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO, Union

import structlog

from backup.src.sync.detector import should_copy
from backup.src.sync.discovery import resolve_home
from backup.src.sync.models import CopyDecision, CopyReport
from config.exceptions import BackupIOError

logger = structlog.get_logger(__name__)

DEFAULT_DIR_MODE = 0o755
CHUNK_SIZE = 65536

PathLike = Union[str, Path]


class SelectiveCopier:
    """
    Copy files whose destination copy is missing or stale.

    Attributes:
        quiet: When False, print "- <path>" before each copied file
        progress_stream: Line-oriented progress output (default: stdout)
        preserve_mode: Apply source permission bits to destination
    """

    def __init__(
        self,
        quiet: bool = False,
        progress_stream: Optional[TextIO] = None,
        detector: Callable[[PathLike, PathLike], CopyDecision] = should_copy,
        chunk_size: int = CHUNK_SIZE,
        dir_mode: int = DEFAULT_DIR_MODE,
        preserve_mode: Optional[bool] = None,
    ):
        """
        Initialize copier.

        Args:
            quiet: Suppress the progress stream
            progress_stream: Where progress lines are written (default: sys.stdout)
            detector: Change detector returning a CopyDecision
            chunk_size: Copy buffer size in bytes
            dir_mode: Mode for created directories (umask applies)
            preserve_mode: Force mode preservation on/off (default: POSIX only)
        """
        self.quiet = quiet
        self.progress_stream = progress_stream
        self.detector = detector
        self.chunk_size = chunk_size
        self.dir_mode = dir_mode
        self.preserve_mode = os.name == "posix" if preserve_mode is None else preserve_mode

    def copy_all(
        self,
        files: Iterable[str],
        dest_root: PathLike,
        source_root: Optional[PathLike] = None,
    ) -> CopyReport:
        """
        Copy every out-of-date file of `files` under `dest_root`.

        Args:
            files: Relative paths (as returned by discover)
            dest_root: Destination root directory
            source_root: Directory the relative paths refer to (default: home)

        Returns:
            CopyReport with copied / skipped paths

        Raises:
            BackupIOError: First failure, unchanged
        """
        source_root = resolve_home() if source_root is None else Path(source_root)
        dest_root = Path(dest_root)
        report = CopyReport()

        for relative in files:
            source = source_root / relative
            dest = dest_root / relative.lstrip("/")
            copied_bytes = self._copy(source, dest, display_name=relative)
            if copied_bytes is not None:
                report.copied.append(relative)
                report.bytes_copied += copied_bytes
            else:
                report.skipped.append(relative)

        logger.info(
            "backup_copy_completed",
            dest_root=str(dest_root),
            total=report.total,
            copied=len(report.copied),
            skipped=len(report.skipped),
            bytes_copied=report.bytes_copied,
        )
        return report

    def copy_one(
        self,
        source: PathLike,
        dest: PathLike,
        display_name: Optional[str] = None,
    ) -> bool:
        """
        Copy `source` to `dest` if the detector says so.

        Returns:
            True if bytes were written, False if the file was up to date

        Raises:
            BackupIOError: Unreadable source, unwritable destination, sync/chmod failure
        """
        return self._copy(Path(source), Path(dest), display_name) is not None

    def _copy(self, source: Path, dest: Path, display_name: Optional[str]) -> Optional[int]:
        """Copy if needed; returns bytes written, or None when skipped."""
        decision = self.detector(source, dest)
        if not decision:
            logger.debug("backup_file_up_to_date", source=str(source))
            return None

        if not self.quiet:
            stream = self.progress_stream or sys.stdout
            print(f"- {display_name or source}", file=stream, flush=True)

        self._ensure_parent(dest)

        try:
            src = open(source, "rb")
        except OSError as e:
            raise BackupIOError("opening source file", source, e) from e

        with src:
            try:
                source_stat = os.fstat(src.fileno())
            except OSError as e:
                raise BackupIOError("getting mode of source file", source, e) from e

            self._ensure_writable(dest)
            try:
                dst = open(dest, "wb")
            except OSError as e:
                raise BackupIOError("creating destination file", dest, e) from e

            with dst:
                copied_bytes = self._stream(src, dst, source, dest)
                try:
                    dst.flush()
                    os.fsync(dst.fileno())
                except OSError as e:
                    raise BackupIOError("syncing destination file", dest, e) from e

        if self.preserve_mode:
            self._preserve_attributes(source_stat, dest)

        logger.info(
            "backup_file_copied",
            source=str(source),
            dest=str(dest),
            reason=decision.reason.value,
            size_bytes=copied_bytes,
        )
        return copied_bytes

    def _ensure_parent(self, dest: Path) -> None:
        """Create missing destination directories."""
        parent = dest.parent
        if parent.is_dir():
            return
        try:
            parent.mkdir(mode=self.dir_mode, parents=True, exist_ok=True)
        except OSError as e:
            raise BackupIOError("making destination directory", parent, e) from e

    def _ensure_writable(self, dest: Path) -> None:
        """Give the owner write permission on an existing read-only copy."""
        try:
            dest_stat = os.stat(dest)
        except OSError:
            return
        if not stat.S_ISREG(dest_stat.st_mode) or dest_stat.st_mode & stat.S_IWUSR:
            return
        try:
            os.chmod(dest, stat.S_IMODE(dest_stat.st_mode) | stat.S_IWUSR)
        except OSError as e:
            raise BackupIOError("changing mode of destination file", dest, e) from e

    def _stream(self, src, dst, source: Path, dest: Path) -> int:
        """Chunked byte copy; read and write failures name their own file."""
        total = 0
        while True:
            try:
                chunk = src.read(self.chunk_size)
            except OSError as e:
                raise BackupIOError("reading source file", source, e) from e
            if not chunk:
                return total
            try:
                dst.write(chunk)
            except OSError as e:
                raise BackupIOError("writing destination file", dest, e) from e
            total += len(chunk)

    def _preserve_attributes(self, source_stat: os.stat_result, dest: Path) -> None:
        """Apply source permission bits and access/modification times."""
        try:
            os.chmod(dest, stat.S_IMODE(source_stat.st_mode))
        except OSError as e:
            raise BackupIOError("changing mode of destination file", dest, e) from e
        try:
            os.utime(dest, ns=(source_stat.st_atime_ns, source_stat.st_mtime_ns))
        except OSError as e:
            raise BackupIOError("setting times of destination file", dest, e) from e
