"""CLR assembly reader built on dnfile.

Walks the TypeDef table of a .NET module and builds one TypeEntity per
type (nested types as ``Outer/Inner``), with members taken from the
MethodList, FieldList, PropertyMap and EventMap of each type. Signature
blobs are decoded by :mod:`metadiff.symbols.readers.signatures`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import dnfile
import pefile
import structlog

from metadiff.core.errors import DuplicateKeyError, LoadError
from metadiff.symbols.models import MemberEntity, MemberKind, SymbolModel, TypeEntity
from metadiff.symbols.readers.signatures import (
    SignatureError,
    decode_field,
    decode_method,
    decode_property,
    decode_type,
)

log = structlog.get_logger(__name__)

# ClrMethodSemanticsAttr flag -> accessor kind
_SEMANTICS_ATTRS = {
    "msSetter": "set",
    "msGetter": "get",
    "msAddOn": "add",
    "msRemoveOn": "remove",
    "msFire": "raise",
}


def _text(value: Any) -> str:
    """Unwrap a dnfile heap string (or plain str) into text."""
    raw = getattr(value, "value", value)
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def _blob(value: Any) -> bytes:
    raw = getattr(value, "value", value)
    return bytes(raw) if raw is not None else b""


def _rows(table: Any) -> list[Any]:
    return list(table.rows) if table is not None else []


def _semantics(value: Any) -> set[str]:
    return {name for attr, name in _SEMANTICS_ATTRS.items() if getattr(value, attr, False)}


class _Metadata:
    """Name resolution over the metadata tables of one module."""

    def __init__(self, tables: Any) -> None:
        self.type_defs = _rows(tables.TypeDef)
        self.type_refs = _rows(tables.TypeRef)
        self.type_specs = _rows(getattr(tables, "TypeSpec", None))
        self._enclosing: dict[int, int] = {
            row.NestedClass.row_index: row.EnclosingClass.row_index
            for row in _rows(getattr(tables, "NestedClass", None))
        }
        self._def_names: dict[int, str] = {}

    def type_def_name(self, index: int) -> str:
        if index in self._def_names:
            return self._def_names[index]
        row = self.type_defs[index - 1]
        name = _text(row.TypeName)
        if index in self._enclosing:
            full = f"{self.type_def_name(self._enclosing[index])}/{name}"
        else:
            namespace = _text(row.TypeNamespace)
            full = f"{namespace}.{name}" if namespace else name
        self._def_names[index] = full
        return full

    def type_ref_name(self, index: int) -> str:
        row = self.type_refs[index - 1]
        name = _text(row.TypeName)
        scope = row.ResolutionScope
        if scope is not None and getattr(scope.table, "name", None) == "TypeRef":
            return f"{self.type_ref_name(scope.row_index)}/{name}"
        namespace = _text(row.TypeNamespace)
        return f"{namespace}.{name}" if namespace else name

    def resolve(self, tag: int, index: int) -> str:
        """Resolve a TypeDefOrRefOrSpec coded token."""
        if tag == 0:
            return self.type_def_name(index)
        if tag == 1:
            return self.type_ref_name(index)
        if tag == 2:
            spec = self.type_specs[index - 1]
            return decode_type(_blob(spec.Signature), self.resolve)
        raise SignatureError(f"bad TypeDefOrRef tag {tag}")

    def resolve_coded(self, coded: Any) -> str:
        table = getattr(coded.table, "name", None)
        tag = {"TypeDef": 0, "TypeRef": 1, "TypeSpec": 2}.get(table)
        if tag is None:
            raise SignatureError(f"unexpected table {table} in type reference")
        return self.resolve(tag, coded.row_index)


def _accessor_map(tables: Any) -> dict[tuple[str, int], set[str]]:
    """Map (association table, row) to the accessor kinds attached to it."""
    accessors: dict[tuple[str, int], set[str]] = {}
    for row in _rows(getattr(tables, "MethodSemantics", None)):
        association = row.Association
        key = (getattr(association.table, "name", ""), association.row_index)
        accessors.setdefault(key, set()).update(_semantics(row.Semantics))
    return accessors


def _owned(table: Any, parent_attr: str, list_attr: str) -> dict[int, list[Any]]:
    """Group PropertyMap/EventMap entries by owning TypeDef row."""
    owned: dict[int, list[Any]] = {}
    for row in _rows(table):
        members = getattr(row, list_attr) or []
        owned.setdefault(getattr(row, parent_attr).row_index, []).extend(members)
    return owned


def _build_types(tables: Any) -> list[TypeEntity]:
    meta = _Metadata(tables)
    accessors = _accessor_map(tables)
    properties_by_type = _owned(getattr(tables, "PropertyMap", None), "Parent", "PropertyList")
    events_by_type = _owned(getattr(tables, "EventMap", None), "Parent", "EventList")

    types: list[TypeEntity] = []
    for index, row in enumerate(meta.type_defs, start=1):
        owner = meta.type_def_name(index)

        methods = []
        for ref in row.MethodList or []:
            sig = decode_method(_blob(ref.row.Signature), meta.resolve)
            methods.append(
                MemberEntity(
                    MemberKind.METHOD,
                    owner,
                    _text(ref.row.Name),
                    sig.return_type,
                    sig.parameters,
                    generic_arity=sig.generic_arity,
                    calling_convention=sig.calling_convention,
                )
            )

        fields = [
            MemberEntity(
                MemberKind.FIELD,
                owner,
                _text(ref.row.Name),
                decode_field(_blob(ref.row.Signature), meta.resolve),
            )
            for ref in row.FieldList or []
        ]

        properties = []
        for ref in properties_by_type.get(index, []):
            sig = decode_property(_blob(ref.row.Type), meta.resolve)
            properties.append(
                MemberEntity(
                    MemberKind.PROPERTY,
                    owner,
                    _text(ref.row.Name),
                    sig.return_type,
                    sig.parameters,
                    accessors=frozenset(accessors.get(("Property", ref.row_index), ())),
                    calling_convention=sig.calling_convention,
                )
            )

        events = [
            MemberEntity(
                MemberKind.EVENT,
                owner,
                _text(ref.row.Name),
                meta.resolve_coded(ref.row.EventType),
                accessors=frozenset(accessors.get(("Event", ref.row_index), ())),
            )
            for ref in events_by_type.get(index, [])
        ]

        types.append(
            TypeEntity(
                full_name=owner,
                methods=tuple(methods),
                fields=tuple(fields),
                properties=tuple(properties),
                events=tuple(events),
            )
        )
    return types


def read_assembly(path: Path, resolution_roots: Sequence[Path]) -> SymbolModel:
    """Load a .NET module into a SymbolModel.

    Member signatures only name referenced types; assemblies in
    ``resolution_roots`` are never opened.

    Raises:
        LoadError: unreadable file, not a PE image, no CLR header, or
            malformed metadata/signatures.
    """
    try:
        pe = dnfile.dnPE(str(path))
    except OSError as e:
        raise LoadError.unreadable(str(path), str(e)) from e
    except pefile.PEFormatError as e:
        raise LoadError.invalid_module(str(path), str(e)) from e

    try:
        if pe.net is None or pe.net.mdtables is None or pe.net.mdtables.TypeDef is None:
            raise LoadError.invalid_module(str(path), "no CLR metadata")
        try:
            types = _build_types(pe.net.mdtables)
        except (SignatureError, IndexError, AttributeError) as e:
            raise LoadError.invalid_module(str(path), f"malformed metadata: {e}") from e
    finally:
        pe.close()

    try:
        model = SymbolModel(name=path.name, types=tuple(types), path=str(path))
    except DuplicateKeyError as e:
        raise LoadError.invalid_module(str(path), e.message) from e

    log.debug(
        "assembly_loaded",
        path=str(path),
        types=len(model.types),
        roots=[str(root) for root in resolution_roots],
    )
    return model
