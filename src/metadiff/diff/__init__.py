"""Structural diff package.

Public API re-exports for the diff subpackage.
"""

from metadiff.diff.batch import diff_directories, discover_modules, summarize
from metadiff.diff.members import diff_members
from metadiff.diff.models import (
    BatchResult,
    BatchSummary,
    ChangeKind,
    ChangeRecord,
    ChangeSet,
    MemberChange,
    PairResult,
    TypeChange,
)
from metadiff.diff.modules import diff_modules, try_diff_modules
from metadiff.diff.types import diff_types

__all__ = [
    "BatchResult",
    "BatchSummary",
    "ChangeKind",
    "ChangeRecord",
    "ChangeSet",
    "MemberChange",
    "PairResult",
    "TypeChange",
    "diff_directories",
    "diff_members",
    "diff_modules",
    "diff_types",
    "discover_modules",
    "summarize",
    "try_diff_modules",
]
