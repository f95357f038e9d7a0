"""Type-level diff engine.

Matches types of two symbol models by full name and classifies each one:

- unchanged: present in both, no member differences (not reported)
- modified: present in both, at least one member added or removed
- removed: present only in the original model
- added: present only in the changed model

Purely functional over the two models.
"""

from __future__ import annotations

import structlog

from metadiff.diff.members import diff_members
from metadiff.diff.models import ChangeKind, ChangeSet, DuplicatePolicy, MemberChange, TypeChange
from metadiff.symbols.models import MemberKind, SymbolModel, TypeEntity

log = structlog.get_logger(__name__)

# Members are diffed in this order
MEMBER_KIND_ORDER = (MemberKind.METHOD, MemberKind.FIELD, MemberKind.PROPERTY, MemberKind.EVENT)


def diff_type_members(original: TypeEntity, changed: TypeEntity) -> list[MemberChange]:
    """Nested member diff of one matched type over all four member kinds."""
    changes: list[MemberChange] = []
    for kind in MEMBER_KIND_ORDER:
        changes.extend(diff_members(original.members(kind), changed.members(kind), kind))
    return changes


def diff_types(
    original: SymbolModel,
    changed: SymbolModel,
    *,
    duplicate_policy: DuplicatePolicy = "suffix",
) -> ChangeSet:
    """Diff two symbol models.

    Records from the original model (modified and removed types) come first,
    in original order; added types follow in changed order.

    Raises:
        DuplicateKeyError: Two records render to the same key and
            ``duplicate_policy`` is ``"error"``.
    """
    change_set = ChangeSet(original.name, duplicate_policy=duplicate_policy)

    for original_type in original.types:
        changed_type = changed.find(original_type.full_name)
        if changed_type is None:
            change_set.add(TypeChange(original_type.full_name, ChangeKind.REMOVED_TYPE))
            continue

        members = diff_type_members(original_type, changed_type)
        if members:
            log.debug("type_modified", type=original_type.full_name, members=len(members))
            change_set.add(
                TypeChange(original_type.full_name, ChangeKind.MODIFIED_TYPE, tuple(members))
            )

    for changed_type in changed.types:
        if original.find(changed_type.full_name) is None:
            change_set.add(TypeChange(changed_type.full_name, ChangeKind.ADDED_TYPE))

    return change_set
