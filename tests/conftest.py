"""
Shared pytest fixtures for backup-drive tests.

This file provides:
- PYTHONPATH setup (repo root importable)
- structlog configured on stderr (stdout is the progress stream)
- Fake home / destination trees under tmp_path
"""

import sys
from pathlib import Path
from typing import Callable

import pytest

# ==========================================
# PYTHONPATH Setup
# ==========================================

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from config.logging import configure_logging  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def configure_test_logging():
    """Human-readable DEBUG logs on stderr for every test session."""
    configure_logging(level="DEBUG", json_format=False)
    yield


# ==========================================
# Filesystem Helpers
# ==========================================


@pytest.fixture
def home(tmp_path) -> Path:
    """Empty fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def dest(tmp_path) -> Path:
    """Empty fake destination volume root."""
    path = tmp_path / "volume"
    path.mkdir()
    return path


@pytest.fixture
def make_file() -> Callable[..., Path]:
    """
    Factory writing a file (parents created).

    Usage:
        >>> make_file(home, "docs/a.txt", b"content", mode=0o640)
    """

    def _make(root: Path, relative: str, content: bytes = b"content", mode: int | None = None) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if mode is not None:
            path.chmod(mode)
        return path

    return _make
