"""
Pydantic models for the backup sync engine.

Models:
- PatternSet: Include/exclude globs for one host (immutable per run)
- CandidateFile: Discovered file with cached metadata
- CopyDecision: Copy/skip verdict for a (source, destination) pair
- CopyReport: Outcome of a copy pass
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Ordered, deduplicated, lexicographically sorted relative paths
FileList = list[str]


class DecisionReason(str, Enum):
    """Why a file is (or is not) copied."""

    missing_destination = "missing_destination"
    size_mismatch = "size_mismatch"
    content_changed = "content_changed"
    identical = "identical"


class PatternSet(BaseModel):
    """Include and exclude globs, relative to the home directory."""

    model_config = ConfigDict(frozen=True)

    includes: tuple[str, ...] = Field(
        default=(),
        description="Globs selecting files to back up (supports **)",
    )
    excludes: tuple[str, ...] = Field(
        default=(),
        description="Globs removing files from the included set",
    )

    @field_validator("includes", "excludes", mode="before")
    @classmethod
    def drop_blank_patterns(cls, v):
        """Strip whitespace and drop empty patterns, keeping order."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        return tuple(p.strip() for p in v if isinstance(p, str) and p.strip())


class CandidateFile(BaseModel):
    """File found by an include pattern, before exclude filtering."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    size: int = 0
    is_regular: bool = False
    mode: int = 0


class CopyDecision(BaseModel):
    """Copy/skip verdict computed once per file per run."""

    model_config = ConfigDict(frozen=True)

    should_copy: bool
    source: Path
    dest: Path
    reason: DecisionReason

    def __bool__(self) -> bool:
        return self.should_copy


class CopyReport(BaseModel):
    """Result of a copy pass (files copied vs skipped as up to date)."""

    copied: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    bytes_copied: int = 0

    @property
    def total(self) -> int:
        return len(self.copied) + len(self.skipped)
