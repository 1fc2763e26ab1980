"""
Backup sync engine.

Modules:
- discovery: include/exclude glob expansion under the home directory
- hashing: SHA256 content fingerprints
- detector: copy/skip decision per file
- copier: selective copy with mode preservation
- orchestrator: full run (discover + copy)
- models: Pydantic data models
"""

from backup.src.sync.models import (
    CandidateFile,
    CopyDecision,
    CopyReport,
    DecisionReason,
    FileList,
    PatternSet,
)

__all__ = [
    "CandidateFile",
    "CopyDecision",
    "CopyReport",
    "DecisionReason",
    "FileList",
    "PatternSet",
]
