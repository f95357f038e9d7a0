"""Symbol model, identity comparer and module readers."""

from metadiff.symbols.identity import member_key, members_equal, types_equal
from metadiff.symbols.models import MemberEntity, MemberKind, SymbolModel, TypeEntity
from metadiff.symbols.readers import load_module, register_reader

__all__ = [
    "MemberEntity",
    "MemberKind",
    "SymbolModel",
    "TypeEntity",
    "load_module",
    "member_key",
    "members_equal",
    "register_reader",
    "types_equal",
]
