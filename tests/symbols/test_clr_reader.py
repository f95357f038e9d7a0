"""Tests for the CLR reader's walk over dnfile metadata tables.

The tables are stand-ins shaped like dnfile's: each table has ``rows``,
table indexes carry ``row_index`` and ``row``, coded indexes also carry
``table.name``.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from metadiff.core.errors import ErrorCode, LoadError
from metadiff.diff.models import ChangeKind
from metadiff.diff.types import diff_types
from metadiff.symbols.readers import clr
from metadiff.symbols.readers.clr import _build_types, read_assembly
from metadiff.symbols.readers.signatures import SignatureError

# =============================================================================
# Helpers
# =============================================================================


def _table(*rows: Any) -> SimpleNamespace:
    return SimpleNamespace(rows=list(rows))


def _ref(table: str, row_index: int, row: Any = None) -> SimpleNamespace:
    return SimpleNamespace(table=SimpleNamespace(name=table), row_index=row_index, row=row)


def _token(tag: int, index: int) -> int:
    return (index << 2) | tag


def _type_def(name: str, namespace: str = "", methods=(), fields=()) -> SimpleNamespace:
    return SimpleNamespace(
        TypeName=name, TypeNamespace=namespace, MethodList=list(methods), FieldList=list(fields)
    )


def _method(index: int, name: str, signature: bytes) -> SimpleNamespace:
    return _ref("MethodDef", index, SimpleNamespace(Name=name, Signature=signature))


def _field(index: int, name: str, signature: bytes) -> SimpleNamespace:
    return _ref("Field", index, SimpleNamespace(Name=name, Signature=signature))


def _semantics(association: SimpleNamespace, **flags: bool) -> SimpleNamespace:
    return SimpleNamespace(Semantics=SimpleNamespace(**flags), Association=association)


def _widget_tables(bar_callconv: int = 0x20) -> SimpleNamespace:
    """A module with a type, a nested type two levels deep, a property and two events."""
    title = _ref("Property", 1, SimpleNamespace(Name="Title", Type=bytes([0x28, 0x00, 0x0E])))
    changed = _ref("Event", 1, SimpleNamespace(Name="Changed", EventType=_ref("TypeRef", 2)))
    updated = _ref("Event", 2, SimpleNamespace(Name="Updated", EventType=_ref("TypeSpec", 1)))

    widget = _type_def(
        "Widget",
        "Contoso",
        methods=[
            _method(1, ".ctor", bytes([0x20, 0x00, 0x01])),
            _method(2, "Create", bytes([0x00, 0x00, 0x12, _token(0, 2)])),
            _method(3, "get_Title", bytes([0x20, 0x00, 0x0E])),
            _method(4, "set_Title", bytes([0x20, 0x01, 0x01, 0x0E])),
            _method(5, "Locate", bytes([0x20, 0x01, 0x01, 0x11, _token(1, 5)])),
            _method(6, "Bar", bytes([bar_callconv, 0x01, 0x01, 0x08])),
        ],
        fields=[_field(1, "count", bytes([0x06, 0x08]))],
    )

    return SimpleNamespace(
        TypeDef=_table(
            _type_def("<Module>"),
            widget,
            _type_def("Entry", fields=[_field(2, "key", bytes([0x06, 0x0E]))]),
            _type_def("Slot"),
        ),
        TypeRef=_table(
            SimpleNamespace(
                TypeName="Object", TypeNamespace="System", ResolutionScope=_ref("AssemblyRef", 1)
            ),
            SimpleNamespace(
                TypeName="EventHandler",
                TypeNamespace="System",
                ResolutionScope=_ref("AssemblyRef", 1),
            ),
            SimpleNamespace(
                TypeName="EventHandler`1",
                TypeNamespace="System",
                ResolutionScope=_ref("AssemblyRef", 1),
            ),
            SimpleNamespace(
                TypeName="Environment",
                TypeNamespace="System",
                ResolutionScope=_ref("AssemblyRef", 1),
            ),
            SimpleNamespace(
                TypeName="SpecialFolder", TypeNamespace="", ResolutionScope=_ref("TypeRef", 4)
            ),
        ),
        TypeSpec=_table(
            # System.EventHandler`1<System.String>
            SimpleNamespace(Signature=bytes([0x15, 0x12, _token(1, 3), 0x01, 0x0E])),
        ),
        NestedClass=_table(
            SimpleNamespace(NestedClass=_ref("TypeDef", 3), EnclosingClass=_ref("TypeDef", 2)),
            SimpleNamespace(NestedClass=_ref("TypeDef", 4), EnclosingClass=_ref("TypeDef", 3)),
        ),
        PropertyMap=_table(SimpleNamespace(Parent=_ref("TypeDef", 2), PropertyList=[title])),
        EventMap=_table(SimpleNamespace(Parent=_ref("TypeDef", 2), EventList=[changed, updated])),
        MethodSemantics=_table(
            _semantics(_ref("Property", 1), msGetter=True),
            _semantics(_ref("Property", 1), msSetter=True),
            _semantics(_ref("Event", 1), msAddOn=True),
            _semantics(_ref("Event", 1), msRemoveOn=True),
            _semantics(_ref("Event", 2), msAddOn=True),
        ),
    )


class _FakePE:
    def __init__(self, tables: Any) -> None:
        self.net = SimpleNamespace(mdtables=tables) if tables is not None else None
        self.closed = False

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_assemblies(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Serve metadata tables by file name instead of parsing PE files."""
    assemblies = SimpleNamespace(tables={}, opened=[])

    def fake_dnpe(path: str) -> _FakePE:
        pe = _FakePE(assemblies.tables[Path(path).name])
        assemblies.opened.append(pe)
        return pe

    monkeypatch.setattr(clr.dnfile, "dnPE", fake_dnpe)
    return assemblies


# =============================================================================
# Table walk
# =============================================================================


class TestBuildTypes:
    def test_type_names_include_nested_types(self) -> None:
        types = _build_types(_widget_tables())
        assert [t.full_name for t in types] == [
            "<Module>",
            "Contoso.Widget",
            "Contoso.Widget/Entry",
            "Contoso.Widget/Entry/Slot",
        ]

    def test_methods_resolve_local_and_nested_references(self) -> None:
        widget = _build_types(_widget_tables())[1]
        assert [m.full_name for m in widget.methods] == [
            "System.Void Contoso.Widget::.ctor()",
            "Contoso.Widget Contoso.Widget::Create()",
            "System.String Contoso.Widget::get_Title()",
            "System.Void Contoso.Widget::set_Title(System.String)",
            "System.Void Contoso.Widget::Locate(System.Environment/SpecialFolder)",
            "System.Void Contoso.Widget::Bar(System.Int32)",
        ]

    def test_methods_carry_calling_convention(self) -> None:
        widget = _build_types(_widget_tables())[1]
        assert [m.calling_convention for m in widget.methods] == [
            "instance",
            "",
            "instance",
            "instance",
            "instance",
            "instance",
        ]

    def test_fields_belong_to_their_type(self) -> None:
        types = _build_types(_widget_tables())
        assert [f.full_name for f in types[1].fields] == ["System.Int32 Contoso.Widget::count"]
        assert [f.full_name for f in types[2].fields] == [
            "System.String Contoso.Widget/Entry::key"
        ]

    def test_property_accessors_from_method_semantics(self) -> None:
        (title,) = _build_types(_widget_tables())[1].properties
        assert title.full_name == "System.String Contoso.Widget::Title()"
        assert title.accessors == frozenset({"get", "set"})
        assert title.calling_convention == "instance"

    def test_events_resolve_typeref_and_typespec(self) -> None:
        events = _build_types(_widget_tables())[1].events
        assert [(e.full_name, e.accessors) for e in events] == [
            ("System.EventHandler Contoso.Widget::Changed", frozenset({"add", "remove"})),
            (
                "System.EventHandler`1<System.String> Contoso.Widget::Updated",
                frozenset({"add"}),
            ),
        ]

    def test_types_without_maps_have_no_properties_or_events(self) -> None:
        slot = _build_types(_widget_tables())[3]
        assert slot.methods == slot.fields == slot.properties == slot.events == ()

    def test_truncated_signature_raises(self) -> None:
        tables = _widget_tables()
        tables.TypeDef.rows[0].MethodList.append(_method(9, "Broken", bytes([0x20, 0x01])))
        with pytest.raises(SignatureError):
            _build_types(tables)


# =============================================================================
# read_assembly
# =============================================================================


class TestReadAssembly:
    def test_builds_model_and_closes_file(self, tmp_path: Path, fake_assemblies) -> None:
        fake_assemblies.tables["Lib.dll"] = _widget_tables()

        model = read_assembly(tmp_path / "Lib.dll", [tmp_path])

        assert model.name == "Lib.dll"
        assert model.find("Contoso.Widget/Entry") is not None
        assert all(pe.closed for pe in fake_assemblies.opened)

    def test_module_without_clr_header_is_invalid(self, tmp_path: Path, fake_assemblies) -> None:
        fake_assemblies.tables["native.dll"] = None

        with pytest.raises(LoadError) as exc_info:
            read_assembly(tmp_path / "native.dll", [tmp_path])

        assert exc_info.value.code == ErrorCode.LOAD_INVALID_MODULE

    def test_malformed_signature_is_invalid(self, tmp_path: Path, fake_assemblies) -> None:
        tables = _widget_tables()
        tables.TypeDef.rows[0].FieldList.append(_field(9, "bad", bytes([0x20, 0x00, 0x01])))
        fake_assemblies.tables["bad.dll"] = tables

        with pytest.raises(LoadError) as exc_info:
            read_assembly(tmp_path / "bad.dll", [tmp_path])

        assert exc_info.value.code == ErrorCode.LOAD_INVALID_MODULE
        assert "malformed metadata" in exc_info.value.message

    def test_instance_method_made_static_is_a_change(
        self, tmp_path: Path, fake_assemblies
    ) -> None:
        # Given: Bar(int) loses HASTHIS between versions
        fake_assemblies.tables["v1.dll"] = _widget_tables(bar_callconv=0x20)
        fake_assemblies.tables["v2.dll"] = _widget_tables(bar_callconv=0x00)
        original = read_assembly(tmp_path / "v1.dll", [tmp_path])
        changed = read_assembly(tmp_path / "v2.dll", [tmp_path])

        # When
        change_set = diff_types(original, changed)

        # Then
        assert [(r.key, r.kind) for r in change_set.records()] == [
            ("Contoso.Widget", ChangeKind.MODIFIED_TYPE),
            ("M:System.Void Contoso.Widget::Bar(System.Int32)", ChangeKind.REMOVED_MEMBER),
            ("M:System.Void Contoso.Widget::Bar(System.Int32) #2", ChangeKind.ADDED_MEMBER),
        ]
