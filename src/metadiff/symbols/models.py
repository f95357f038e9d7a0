"""Symbol model: the in-memory view of one module's declared types.

All models are frozen dataclasses over tuples. A model is built once per
module by a reader and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from metadiff.core.errors import DuplicateKeyError


class MemberKind(Enum):
    """The four member kinds, in the order they are diffed."""

    METHOD = "M:"
    FIELD = "F:"
    PROPERTY = "P:"
    EVENT = "E:"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class MemberEntity:
    """A method, field, property or event declared by a type.

    ``type_name`` is the return type for methods and the value type for the
    other kinds. ``parameters`` applies to methods and indexed properties.
    ``accessors`` lists the accessor methods present (``get``/``set`` for
    properties, ``add``/``remove``/``raise`` for events).
    ``calling_convention`` holds the ILAsm keywords of a method or property
    signature (``instance``, ``instance explicit``, ``vararg``); it is empty
    for static default-convention members. It takes part in identity but
    not in ``full_name``.
    """

    kind: MemberKind
    declaring_type: str
    name: str
    type_name: str
    parameters: tuple[str, ...] = ()
    generic_arity: int = 0
    accessors: frozenset[str] = frozenset()
    calling_convention: str = ""

    def _name_part(self) -> str:
        if self.kind is MemberKind.METHOD:
            arity = f"<{self.generic_arity}>" if self.generic_arity else ""
            return f"{self.name}{arity}({','.join(self.parameters)})"
        if self.kind is MemberKind.PROPERTY:
            return f"{self.name}({','.join(self.parameters)})"
        return self.name

    @property
    def signature(self) -> str:
        """Kind-specific signature text without the declaring type."""
        text = f"{self.type_name} {self._name_part()}"
        return f"{self.calling_convention} {text}" if self.calling_convention else text

    @property
    def full_name(self) -> str:
        """Declaring-type-qualified name, e.g. ``System.Void Ns.Foo::Bar(System.Int32)``."""
        return f"{self.type_name} {self.declaring_type}::{self._name_part()}"


@dataclass(frozen=True, slots=True)
class TypeEntity:
    """A declared type and the members it owns."""

    full_name: str
    methods: tuple[MemberEntity, ...] = ()
    fields: tuple[MemberEntity, ...] = ()
    properties: tuple[MemberEntity, ...] = ()
    events: tuple[MemberEntity, ...] = ()

    def members(self, kind: MemberKind) -> tuple[MemberEntity, ...]:
        if kind is MemberKind.METHOD:
            return self.methods
        if kind is MemberKind.FIELD:
            return self.fields
        if kind is MemberKind.PROPERTY:
            return self.properties
        return self.events


@dataclass(frozen=True, slots=True)
class SymbolModel:
    """Ordered types of one module. Type full names are unique."""

    name: str
    types: tuple[TypeEntity, ...] = ()
    path: str | None = None
    _by_name: dict[str, TypeEntity] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_name: dict[str, TypeEntity] = {}
        for type_ in self.types:
            if type_.full_name in by_name:
                raise DuplicateKeyError.duplicate_type(self.name, type_.full_name)
            by_name[type_.full_name] = type_
        object.__setattr__(self, "_by_name", by_name)

    def find(self, full_name: str) -> TypeEntity | None:
        """Look up a type by its exact full name."""
        return self._by_name.get(full_name)

    @property
    def type_names(self) -> list[str]:
        return [t.full_name for t in self.types]
