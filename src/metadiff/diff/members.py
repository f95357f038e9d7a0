"""Member-level diff: added/removed members of one kind within one type."""

from __future__ import annotations

from collections.abc import Sequence

from metadiff.diff.models import ChangeKind, MemberChange
from metadiff.symbols.identity import MemberKey, member_key
from metadiff.symbols.models import MemberEntity, MemberKind


def _difference(
    left: Sequence[MemberEntity],
    right: Sequence[MemberEntity],
) -> list[MemberEntity]:
    """Members of ``left`` with no structural match in ``right``, in ``left`` order.

    Repeated identities in ``left`` are reported once.
    """
    right_keys = {member_key(m) for m in right}
    seen: set[MemberKey] = set()
    missing: list[MemberEntity] = []
    for member in left:
        key = member_key(member)
        if key in right_keys or key in seen:
            continue
        seen.add(key)
        missing.append(member)
    return missing


def diff_members(
    original: Sequence[MemberEntity],
    changed: Sequence[MemberEntity],
    kind: MemberKind,
) -> list[MemberChange]:
    """Compute removals (original order) followed by additions (changed order)."""
    removed = [
        MemberChange(kind, m.full_name, ChangeKind.REMOVED_MEMBER)
        for m in _difference(original, changed)
    ]
    added = [
        MemberChange(kind, m.full_name, ChangeKind.ADDED_MEMBER)
        for m in _difference(changed, original)
    ]
    return removed + added
