"""Data models for structural module diffs.

A ChangeSet keeps two related maps: type-level changes keyed by type full
name, and the member changes nested under each modified type. The flat,
prefixed-key record list the reporter prints is derived from those maps
and is guaranteed to have unique keys.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

import structlog

from metadiff.core.errors import DuplicateKeyError, MetadiffError
from metadiff.symbols.models import MemberKind

log = structlog.get_logger(__name__)

DuplicatePolicy = Literal["suffix", "error"]


class ChangeKind(Enum):
    ADDED_TYPE = "added_type"
    MODIFIED_TYPE = "modified_type"
    REMOVED_TYPE = "removed_type"
    ADDED_MEMBER = "added_member"
    REMOVED_MEMBER = "removed_member"

    @property
    def is_type_level(self) -> bool:
        return self in (ChangeKind.ADDED_TYPE, ChangeKind.MODIFIED_TYPE, ChangeKind.REMOVED_TYPE)


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One rendered line of a change set: a unique key and its change kind."""

    key: str
    kind: ChangeKind


@dataclass(frozen=True, slots=True)
class MemberChange:
    """A member added to or removed from a type present in both modules."""

    member_kind: MemberKind
    full_name: str
    change: ChangeKind  # ADDED_MEMBER | REMOVED_MEMBER

    @property
    def key(self) -> str:
        return self.member_kind.prefix + self.full_name


@dataclass(frozen=True, slots=True)
class TypeChange:
    """Type-level change; ``members`` is non-empty iff MODIFIED_TYPE."""

    full_name: str
    change: ChangeKind
    members: tuple[MemberChange, ...] = ()


class ChangeSet:
    """Uniquely-keyed differences between two versions of one module."""

    def __init__(self, module: str, *, duplicate_policy: DuplicatePolicy = "suffix") -> None:
        self.module = module
        self.duplicate_policy = duplicate_policy
        self._types: dict[str, TypeChange] = {}
        self._records: list[ChangeRecord] = []
        self._keys: set[str] = set()

    def add(self, change: TypeChange) -> None:
        """Record a type change and its nested member changes."""
        if change.full_name in self._types:
            raise DuplicateKeyError.duplicate_type(self.module, change.full_name)
        self._types[change.full_name] = change
        self._emit(change.full_name, change.change, change.full_name)
        for member in change.members:
            self._emit(member.key, member.change, change.full_name)

    def _emit(self, key: str, kind: ChangeKind, type_name: str) -> None:
        if key in self._keys:
            if self.duplicate_policy == "error":
                raise DuplicateKeyError.duplicate_record(key, type_name)
            ordinal = 2
            while f"{key} #{ordinal}" in self._keys:
                ordinal += 1
            log.warning("duplicate_change_key", key=key, type=type_name, ordinal=ordinal)
            key = f"{key} #{ordinal}"
        self._keys.add(key)
        self._records.append(ChangeRecord(key, kind))

    @property
    def types(self) -> list[TypeChange]:
        return list(self._types.values())

    def get(self, full_name: str) -> TypeChange | None:
        return self._types.get(full_name)

    def records(self) -> list[ChangeRecord]:
        """Flat view: each type record followed by its member records."""
        return list(self._records)

    def counts(self) -> Counter[ChangeKind]:
        return Counter(record.kind for record in self._records)

    def names(self, kind: ChangeKind) -> list[str]:
        """Full names of types with the given type-level change."""
        return [t.full_name for t in self._types.values() if t.change is kind]

    @property
    def is_empty(self) -> bool:
        return not self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ChangeRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"ChangeSet(module={self.module!r}, records={len(self._records)})"


@dataclass(frozen=True, slots=True)
class PairResult:
    """Tagged outcome of diffing one module pair: a change set or an error."""

    relative_path: str
    change_set: ChangeSet | None = None
    error: MetadiffError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchSummary:
    """Aggregate counts over all successfully diffed module pairs."""

    files_processed: int = 0
    files_failed: int = 0
    added_types: int = 0
    modified_types: int = 0
    removed_types: int = 0
    added_members: int = 0
    removed_members: int = 0
    warnings: list[str] = field(default_factory=list)  # files present on one side only
    failures: list[str] = field(default_factory=list)  # pairs that failed to load

    def add(self, counts: Counter[ChangeKind]) -> None:
        self.files_processed += 1
        self.added_types += counts[ChangeKind.ADDED_TYPE]
        self.modified_types += counts[ChangeKind.MODIFIED_TYPE]
        self.removed_types += counts[ChangeKind.REMOVED_TYPE]
        self.added_members += counts[ChangeKind.ADDED_MEMBER]
        self.removed_members += counts[ChangeKind.REMOVED_MEMBER]

    @property
    def total_changes(self) -> int:
        return (
            self.added_types
            + self.modified_types
            + self.removed_types
            + self.added_members
            + self.removed_members
        )


@dataclass
class BatchResult:
    results: list[PairResult]
    summary: BatchSummary

    @property
    def change_sets(self) -> list[ChangeSet]:
        return [r.change_set for r in self.results if r.change_set is not None]
