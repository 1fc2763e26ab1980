"""
File discovery: include globs expanded under the home directory.

Features:
- Recursive glob expansion (``**``), hidden files included
- Regular files only (directories, symlinks to directories, devices dropped)
- Exclude globs matched against the same relative POSIX path
- Fail-closed excludes: a pattern that cannot be compiled excludes everything
- Sorted, deduplicated result for reproducible runs
"""

from __future__ import annotations

import glob
import os
import re
import stat
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog

from backup.src.sync.models import CandidateFile, FileList
from config.exceptions import ConfigError, DiscoveryError

logger = structlog.get_logger(__name__)


def resolve_home() -> Path:
    """
    Return the user's home directory.

    Raises:
        ConfigError: Home cannot be determined
    """
    try:
        home = Path.home()
    except (RuntimeError, KeyError, OSError) as e:
        raise ConfigError(f"getting user home: {e}") from e
    if not str(home) or str(home) == "~":
        raise ConfigError("getting user home: home directory is not set")
    return home


def _translate(pattern: str) -> str:
    """
    Translate a glob into a regex over '/'-separated relative paths.

    ``**`` spans directories, ``*``/``?``/``[...]`` stay within one segment.

    Raises:
        ValueError: Unterminated character class or trailing escape
    """
    out = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                i += 2
                if i < n and pattern[i] == "/":
                    # "**/" also matches zero directories
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            start = i + 1
            negate = start < n and pattern[start] in "!^"
            if negate:
                start += 1
            # "]" right after "[" or "[!" is a literal member
            if start < n and pattern[start] == "]":
                start += 1
            end = pattern.find("]", start)
            if end == -1:
                raise ValueError(f"unterminated character class in pattern {pattern!r}")
            body = pattern[i + 2 if negate else i + 1 : end]
            body = re.sub(r"([\\\[\]&~|^])", r"\\\1", body)
            out.append(f"[^/{body}]" if negate else f"[{body}]")
            i = end
        elif c == "\\":
            if i + 1 >= n:
                raise ValueError(f"trailing escape in pattern {pattern!r}")
            i += 1
            out.append(re.escape(pattern[i]))
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regex."""
    normalized = pattern
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return re.compile(rf"(?s:{_translate(normalized)})\Z")


def matches(pattern: str, relative_path: str) -> bool:
    """Match a relative POSIX path against a glob. Raises on malformed pattern."""
    return compile_pattern(pattern).match(relative_path) is not None


def _expand(root: Path, pattern: str) -> list[str]:
    """Expand one include pattern; failures are logged and yield nothing."""
    try:
        return glob.glob(pattern, root_dir=root, recursive=True, include_hidden=True)
    except (OSError, ValueError, re.error) as e:
        logger.warning("backup_include_expansion_failed", pattern=pattern, error=str(e))
        return []


def _candidate(root: Path, match: str) -> Optional[CandidateFile]:
    """Stat a glob result; None if it is not a regular file under root."""
    absolute = os.path.normpath(os.path.join(root, match))
    relative = os.path.relpath(absolute, root)
    if relative == os.curdir or relative == os.pardir or relative.startswith(os.pardir + os.sep):
        logger.warning("backup_candidate_outside_root", path=absolute, root=str(root))
        return None

    try:
        st = os.stat(absolute)
    except OSError as e:
        logger.debug("backup_candidate_stat_failed", path=absolute, error=str(e))
        return None

    if not stat.S_ISREG(st.st_mode):
        return None

    return CandidateFile(
        relative_path=Path(relative).as_posix(),
        size=st.st_size,
        is_regular=True,
        mode=stat.S_IMODE(st.st_mode),
    )


def _is_excluded(relative_path: str, excludes: list[tuple[str, Optional[re.Pattern[str]]]]) -> bool:
    """Exclude check; an uncompilable pattern (None) counts as a match."""
    for _pattern, regex in excludes:
        if regex is None or regex.match(relative_path):
            return True
    return False


def discover(
    root: Optional[Union[str, Path]],
    includes: Iterable[str],
    excludes: Iterable[str] = (),
) -> FileList:
    """
    Find files to back up.

    Args:
        root: Directory patterns are relative to (None = home directory)
        includes: Include globs, expanded in order
        excludes: Exclude globs, applied after expansion

    Returns:
        Sorted, deduplicated relative paths (POSIX separators)

    Raises:
        ConfigError: Root cannot be determined or entered
        DiscoveryError: Root cannot be listed
    """
    root = resolve_home() if root is None else Path(root)

    if not root.is_dir():
        raise ConfigError(f"changing to home directory: '{root}' is not a directory")
    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise DiscoveryError(f"reading directory '{root}': {e}") from e

    candidates: dict[str, CandidateFile] = {}
    for pattern in includes:
        matched = _expand(root, pattern)
        if not matched:
            logger.debug("backup_include_matched_nothing", pattern=pattern)
        for match in matched:
            candidate = _candidate(root, match)
            if candidate is not None:
                candidates.setdefault(candidate.relative_path, candidate)

    compiled: list[tuple[str, Optional[re.Pattern[str]]]] = []
    for pattern in excludes:
        try:
            compiled.append((pattern, compile_pattern(pattern)))
        except (ValueError, re.error) as e:
            # Fail closed: ambiguous exclude drops every candidate
            logger.warning("backup_exclude_pattern_invalid", pattern=pattern, error=str(e))
            compiled.append((pattern, None))

    if compiled:
        files = [rel for rel in candidates if not _is_excluded(rel, compiled)]
    else:
        files = list(candidates)

    files.sort()

    logger.info(
        "backup_discovery_completed",
        root=str(root),
        candidates=len(candidates),
        excluded=len(candidates) - len(files),
        files=len(files),
    )
    return files
