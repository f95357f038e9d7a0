"""Module diff: load two modules and diff their symbol models."""

from __future__ import annotations

from pathlib import Path

import structlog

from metadiff.core.errors import DuplicateKeyError, LoadError
from metadiff.diff.models import ChangeSet, DuplicatePolicy, PairResult
from metadiff.diff.types import diff_types
from metadiff.symbols.readers import load_module

log = structlog.get_logger(__name__)


def diff_modules(
    original_path: Path,
    changed_path: Path,
    *,
    duplicate_policy: DuplicatePolicy = "suffix",
) -> ChangeSet:
    """Diff two module files.

    Each file's own directory is the root for resolving its references.

    Raises:
        LoadError: Either file cannot be loaded as a module.
        DuplicateKeyError: Colliding record keys under the ``"error"`` policy.
    """
    original = load_module(original_path, [original_path.parent])
    changed = load_module(changed_path, [changed_path.parent])
    change_set = diff_types(original, changed, duplicate_policy=duplicate_policy)
    log.info(
        "module_diffed",
        original=str(original_path),
        changed=str(changed_path),
        records=len(change_set),
    )
    return change_set


def try_diff_modules(
    relative_path: str,
    original_path: Path,
    changed_path: Path,
    *,
    duplicate_policy: DuplicatePolicy = "suffix",
) -> PairResult:
    """Like :func:`diff_modules`, but return failures as a tagged result."""
    try:
        change_set = diff_modules(original_path, changed_path, duplicate_policy=duplicate_policy)
    except (LoadError, DuplicateKeyError) as e:
        log.warning("pair_failed", path=relative_path, error=e.error_name, message=e.message)
        return PairResult(relative_path, error=e)
    return PairResult(relative_path, change_set=change_set)
