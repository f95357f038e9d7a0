"""Symbol-model snapshots written as YAML or JSON.

A manifest describes a module's API surface without a binary::

    module: Contoso.Core.dll
    references: [Contoso.Abstractions.dll]
    types:
      - full_name: Contoso.Core.Widget
        methods:
          - {name: Render, return_type: System.Void, parameters: [System.Int32]}
          - {name: Create, return_type: Contoso.Core.Widget, static: true}
        fields:
          - {name: count, type: System.Int32}
        properties:
          - {name: Title, type: System.String, accessors: [get, set]}
        events:
          - {name: Changed, type: System.EventHandler}

Every entry of ``references`` must exist as a file in one of the
resolution roots.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from metadiff.core.errors import DuplicateKeyError, LoadError
from metadiff.symbols.models import MemberEntity, MemberKind, SymbolModel, TypeEntity

log = structlog.get_logger(__name__)


class _Spec(BaseModel):
    model_config = ConfigDict(extra="forbid")


class MethodSpec(_Spec):
    name: str
    return_type: str = "System.Void"
    parameters: list[str] = Field(default_factory=list)
    generic_arity: int = Field(default=0, ge=0)
    static: bool = False
    vararg: bool = False


class FieldSpec(_Spec):
    name: str
    type: str


class PropertySpec(_Spec):
    name: str
    type: str
    parameters: list[str] = Field(default_factory=list)
    accessors: list[Literal["get", "set"]] = Field(default_factory=lambda: ["get"])
    static: bool = False


class EventSpec(_Spec):
    name: str
    type: str
    accessors: list[Literal["add", "remove", "raise"]] = Field(
        default_factory=lambda: ["add", "remove"]
    )


def _convention(static: bool, vararg: bool = False) -> str:
    words = [] if static else ["instance"]
    if vararg:
        words.append("vararg")
    return " ".join(words)


class TypeSpec(_Spec):
    full_name: str
    methods: list[MethodSpec] = Field(default_factory=list)
    fields: list[FieldSpec] = Field(default_factory=list)
    properties: list[PropertySpec] = Field(default_factory=list)
    events: list[EventSpec] = Field(default_factory=list)

    def to_entity(self) -> TypeEntity:
        owner = self.full_name
        return TypeEntity(
            full_name=owner,
            methods=tuple(
                MemberEntity(
                    MemberKind.METHOD,
                    owner,
                    m.name,
                    m.return_type,
                    tuple(m.parameters),
                    generic_arity=m.generic_arity,
                    calling_convention=_convention(m.static, m.vararg),
                )
                for m in self.methods
            ),
            fields=tuple(
                MemberEntity(MemberKind.FIELD, owner, f.name, f.type) for f in self.fields
            ),
            properties=tuple(
                MemberEntity(
                    MemberKind.PROPERTY,
                    owner,
                    p.name,
                    p.type,
                    tuple(p.parameters),
                    accessors=frozenset(p.accessors),
                    calling_convention=_convention(p.static),
                )
                for p in self.properties
            ),
            events=tuple(
                MemberEntity(
                    MemberKind.EVENT, owner, e.name, e.type, accessors=frozenset(e.accessors)
                )
                for e in self.events
            ),
        )


class ModuleManifest(_Spec):
    module: str | None = None
    references: list[str] = Field(default_factory=list)
    types: list[TypeSpec] = Field(default_factory=list)


def _parse(path: Path, text: str) -> Any:
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def read_manifest(path: Path, resolution_roots: Sequence[Path]) -> SymbolModel:
    """Load a YAML/JSON manifest into a SymbolModel.

    Raises:
        LoadError: unreadable file, malformed document, schema violation,
            duplicate type names, or a reference missing from every root.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError.unreadable(str(path), str(e)) from e

    try:
        raw = _parse(path, text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError.invalid_module(str(path), str(e)) from e

    try:
        manifest = ModuleManifest.model_validate(raw or {})
    except ValidationError as e:
        err = e.errors()[0]
        where = ".".join(str(loc) for loc in err["loc"]) or "<root>"
        raise LoadError.invalid_module(str(path), f"{where}: {err['msg']}") from e

    for reference in manifest.references:
        if not any((root / reference).is_file() for root in resolution_roots):
            raise LoadError.unresolved_reference(
                str(path), reference, [str(root) for root in resolution_roots]
            )

    try:
        model = SymbolModel(
            name=manifest.module or path.name,
            types=tuple(t.to_entity() for t in manifest.types),
            path=str(path),
        )
    except DuplicateKeyError as e:
        raise LoadError.invalid_module(str(path), e.message) from e

    log.debug("manifest_loaded", path=str(path), types=len(model.types))
    return model
