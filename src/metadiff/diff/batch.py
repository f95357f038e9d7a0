"""Batch orchestration: diff every module pair across two directory trees.

Module files are matched by path relative to each root. Files present on
only one side become warnings; pairs that fail to load become failures.
Neither aborts the batch.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import structlog

from metadiff.core.formatting import normalize_extension
from metadiff.diff.models import BatchResult, BatchSummary, DuplicatePolicy, PairResult
from metadiff.diff.modules import try_diff_modules

log = structlog.get_logger(__name__)


def discover_modules(
    root: Path,
    extensions: Iterable[str],
    *,
    recursive: bool = False,
) -> list[str]:
    """List module files under ``root`` as sorted relative POSIX paths.

    Suffixes match case-insensitively. Only the top level of ``root`` is
    searched unless ``recursive``.
    """
    suffixes = {"." + normalize_extension(ext) for ext in extensions}
    candidates = root.rglob("*") if recursive else root.glob("*")
    return sorted(
        path.relative_to(root).as_posix()
        for path in candidates
        if path.is_file() and path.suffix.lower() in suffixes
    )


def summarize(results: Iterable[PairResult], warnings: Iterable[str] = ()) -> BatchSummary:
    """Fold per-pair results into aggregate counts."""
    summary = BatchSummary(warnings=list(dict.fromkeys(warnings)))
    failures: list[str] = []
    for result in results:
        if result.change_set is not None:
            summary.add(result.change_set.counts())
        else:
            summary.files_failed += 1
            failures.append(f"{result.relative_path} could not be loaded: {result.error}")
    summary.failures = list(dict.fromkeys(failures))
    return summary


def _missing_warnings(original: Sequence[str], changed: Sequence[str]) -> list[str]:
    changed_set = set(changed)
    original_set = set(original)
    warnings = [
        f"{rel} is missing from the changed set" for rel in original if rel not in changed_set
    ]
    warnings.extend(
        f"{rel} is missing from the original set" for rel in changed if rel not in original_set
    )
    return list(dict.fromkeys(warnings))


def diff_directories(
    original_dir: Path,
    changed_dir: Path,
    *,
    extensions: Iterable[str] = ("dll",),
    recursive: bool = False,
    max_workers: int = 1,
    duplicate_policy: DuplicatePolicy = "suffix",
    on_result: Callable[[PairResult], None] | None = None,
) -> BatchResult:
    """Diff all module pairs found under two directories.

    Args:
        original_dir: Root of the original build.
        changed_dir: Root of the changed build.
        extensions: Module file extensions to pick up.
        recursive: Descend into subdirectories.
        max_workers: Pairs diffed concurrently. Results are still delivered
            in discovery order.
        duplicate_policy: How colliding record keys are handled.
        on_result: Called once per pair, in discovery order, as soon as that
            pair and every pair before it are done.

    Returns:
        BatchResult with per-pair results and the aggregate summary.
    """
    extensions = list(extensions)
    original_files = discover_modules(original_dir, extensions, recursive=recursive)
    changed_files = discover_modules(changed_dir, extensions, recursive=recursive)
    changed_set = set(changed_files)
    matched = [rel for rel in original_files if rel in changed_set]

    log.info(
        "batch_started",
        original=str(original_dir),
        changed=str(changed_dir),
        pairs=len(matched),
        max_workers=max_workers,
    )

    def run(rel: str) -> PairResult:
        return try_diff_modules(
            rel,
            original_dir / rel,
            changed_dir / rel,
            duplicate_policy=duplicate_policy,
        )

    results: list[PairResult] = []
    if max_workers <= 1:
        for rel in matched:
            result = run(rel)
            results.append(result)
            if on_result is not None:
                on_result(result)
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="metadiff") as pool:
            futures = [pool.submit(run, rel) for rel in matched]
            for future in futures:
                result = future.result()
                results.append(result)
                if on_result is not None:
                    on_result(result)

    summary = summarize(results, _missing_warnings(original_files, changed_files))
    log.info(
        "batch_complete",
        processed=summary.files_processed,
        failed=summary.files_failed,
        warnings=len(summary.warnings),
        changes=summary.total_changes,
    )
    return BatchResult(results=results, summary=summary)
