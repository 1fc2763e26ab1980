"""
Content fingerprints for change detection.

Whole-file SHA256 streamed in 65536-byte chunks. Two files are considered
equal only when their digests are byte-identical.
"""

from __future__ import annotations

import hashlib
import hmac
from pathlib import Path
from typing import Union

import structlog

from config.exceptions import HashError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 65536
DIGEST_SIZE = hashlib.sha256().digest_size

PathLike = Union[str, Path]


def fingerprint(path: PathLike, chunk_size: int = CHUNK_SIZE) -> bytes:
    """
    Compute the SHA256 digest of a file (chunked for memory efficiency).

    Args:
        path: File to hash
        chunk_size: Read size in bytes

    Returns:
        Raw digest (32 bytes)

    Raises:
        HashError: File cannot be opened or read (permissions, removed mid-read)
    """
    sha256 = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            while chunk := f.read(chunk_size):
                sha256.update(chunk)
    except OSError as e:
        raise HashError("getting sha256 for file", path, e) from e
    return sha256.digest()


def files_equal(path_a: PathLike, path_b: PathLike, chunk_size: int = CHUNK_SIZE) -> bool:
    """
    Compare two files by content fingerprint.

    The first HashError encountered (path_a first) propagates unchanged.
    """
    digest_a = fingerprint(path_a, chunk_size)
    digest_b = fingerprint(path_b, chunk_size)

    if len(digest_a) != len(digest_b):
        logger.warning(
            "backup_digest_length_mismatch",
            path_a=str(path_a),
            path_b=str(path_b),
        )
        return False

    return hmac.compare_digest(digest_a, digest_b)
