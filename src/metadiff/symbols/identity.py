"""Structural identity of types and members across two symbol models.

A member's identity is the composite key
``(declaring_type, kind, signature, accessors)``. Because the declaring type
is part of the key, a member moved to another type never matches its old
self. Types are identified by full name only.
"""

from __future__ import annotations

from metadiff.symbols.models import MemberEntity, MemberKind, TypeEntity

# (declaring_type, kind, signature, accessors)
MemberKey = tuple[str, MemberKind, str, frozenset[str]]


def member_key(member: MemberEntity) -> MemberKey:
    return (member.declaring_type, member.kind, member.signature, member.accessors)


def members_equal(a: MemberEntity, b: MemberEntity) -> bool:
    """Signature equality including declaring-type identity."""
    return member_key(a) == member_key(b)


def types_equal(a: TypeEntity, b: TypeEntity) -> bool:
    """Types are equal iff their full names match exactly."""
    return a.full_name == b.full_name
