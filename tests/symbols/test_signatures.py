"""Unit tests for ECMA-335 signature blob decoding."""

from __future__ import annotations

import pytest

from metadiff.symbols.readers.signatures import (
    SignatureDecoder,
    SignatureError,
    decode_field,
    decode_method,
    decode_property,
    decode_type,
)

_NAMES = {
    (0, 1): "<Module>",
    (0, 2): "Ns.Widget",
    (1, 1): "System.Collections.Generic.List`1",
    (1, 2): "System.EventHandler",
    (1, 3): "System.Guid",
}


def _resolve(tag: int, index: int) -> str:
    return _NAMES[(tag, index)]


def _token(tag: int, index: int) -> int:
    return (index << 2) | tag


class TestCompressedInts:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b"\x03", 0x03),
            (b"\x7f", 0x7F),
            (b"\x80\x80", 0x80),
            (b"\xae\x57", 0x2E57),
            (b"\xbf\xff", 0x3FFF),
            (b"\xc0\x00\x40\x00", 0x4000),
            (b"\xdf\xff\xff\xff", 0x1FFFFFFF),
        ],
    )
    def test_decodes_ecma_examples(self, data: bytes, expected: int) -> None:
        assert SignatureDecoder(data, _resolve).compressed_uint() == expected

    def test_truncated_input_raises(self) -> None:
        with pytest.raises(SignatureError):
            SignatureDecoder(b"\x80", _resolve).compressed_uint()


class TestMethodSignatures:
    def test_void_no_params(self) -> None:
        sig = decode_method(bytes([0x20, 0x00, 0x01]), _resolve)
        assert sig.return_type == "System.Void"
        assert sig.parameters == ()
        assert sig.generic_arity == 0

    def test_primitive_params(self) -> None:
        sig = decode_method(bytes([0x20, 0x02, 0x08, 0x0E, 0x02]), _resolve)
        assert sig.return_type == "System.Int32"
        assert sig.parameters == ("System.String", "System.Boolean")

    def test_class_and_valuetype_params(self) -> None:
        data = bytes([0x00, 0x02, 0x01, 0x12, _token(1, 2), 0x11, _token(1, 3)])
        sig = decode_method(data, _resolve)
        assert sig.parameters == ("System.EventHandler", "System.Guid")

    def test_generic_method(self) -> None:
        # generic, 1 type param, 1 param: !!0 M(!!0)
        sig = decode_method(bytes([0x30, 0x01, 0x01, 0x1E, 0x00, 0x1E, 0x00]), _resolve)
        assert sig.generic_arity == 1
        assert sig.return_type == "!!0"
        assert sig.parameters == ("!!0",)

    def test_byref_pointer_and_arrays(self) -> None:
        data = bytes([0x00, 0x03, 0x01, 0x10, 0x08, 0x0F, 0x05, 0x1D, 0x0E])
        sig = decode_method(data, _resolve)
        assert sig.parameters == ("System.Int32&", "System.Byte*", "System.String[]")

    def test_multidimensional_array(self) -> None:
        # int32[,] with no sizes and no lower bounds
        sig = decode_method(bytes([0x00, 0x01, 0x01, 0x14, 0x08, 0x02, 0x00, 0x00]), _resolve)
        assert sig.parameters == ("System.Int32[,]",)

    def test_generic_instantiation(self) -> None:
        data = bytes([0x00, 0x00, 0x15, 0x12, _token(1, 1), 0x01, 0x0E])
        sig = decode_method(data, _resolve)
        assert sig.return_type == "System.Collections.Generic.List`1<System.String>"

    def test_custom_modifiers_are_skipped(self) -> None:
        data = bytes([0x00, 0x01, 0x01, 0x1F, _token(1, 3), 0x08])
        sig = decode_method(data, _resolve)
        assert sig.parameters == ("System.Int32",)

    def test_typedef_token_resolves_local_type(self) -> None:
        sig = decode_method(bytes([0x00, 0x00, 0x12, _token(0, 2)]), _resolve)
        assert sig.return_type == "Ns.Widget"

    def test_unknown_element_type_raises(self) -> None:
        with pytest.raises(SignatureError):
            decode_method(bytes([0x00, 0x00, 0x7A]), _resolve)


class TestCallingConventions:
    """Instance, static and vararg methods decode to distinct conventions."""

    def test_instance_and_static_differ(self) -> None:
        # void Bar(int32) with and without HASTHIS
        instance = decode_method(bytes([0x20, 0x01, 0x01, 0x08]), _resolve)
        static = decode_method(bytes([0x00, 0x01, 0x01, 0x08]), _resolve)
        assert instance.calling_convention == "instance"
        assert static.calling_convention == ""
        assert instance != static

    def test_explicit_this(self) -> None:
        sig = decode_method(bytes([0x60, 0x00, 0x01]), _resolve)
        assert sig.calling_convention == "instance explicit"

    def test_vararg(self) -> None:
        sig = decode_method(bytes([0x25, 0x00, 0x01]), _resolve)
        assert sig.calling_convention == "instance vararg"

    def test_generic_instance_method(self) -> None:
        sig = decode_method(bytes([0x30, 0x01, 0x00, 0x01]), _resolve)
        assert sig.calling_convention == "instance"
        assert sig.generic_arity == 1

    def test_static_property(self) -> None:
        assert decode_property(bytes([0x08, 0x00, 0x0E]), _resolve).calling_convention == ""
        assert (
            decode_property(bytes([0x28, 0x00, 0x0E]), _resolve).calling_convention == "instance"
        )

    def test_unknown_convention_raises(self) -> None:
        with pytest.raises(SignatureError):
            decode_method(bytes([0x07, 0x00, 0x01]), _resolve)


class TestFieldAndPropertySignatures:
    def test_field_signature(self) -> None:
        assert decode_field(bytes([0x06, 0x0D]), _resolve) == "System.Double"

    def test_field_generic_type_parameter(self) -> None:
        assert decode_field(bytes([0x06, 0x13, 0x00]), _resolve) == "!0"

    def test_field_rejects_method_blob(self) -> None:
        with pytest.raises(SignatureError):
            decode_field(bytes([0x20, 0x00, 0x01]), _resolve)

    def test_property_signature(self) -> None:
        sig = decode_property(bytes([0x28, 0x00, 0x0E]), _resolve)
        assert sig.return_type == "System.String"
        assert sig.parameters == ()

    def test_indexed_property(self) -> None:
        sig = decode_property(bytes([0x28, 0x01, 0x0E, 0x08]), _resolve)
        assert sig.parameters == ("System.Int32",)

    def test_property_rejects_field_blob(self) -> None:
        with pytest.raises(SignatureError):
            decode_property(bytes([0x06, 0x08]), _resolve)

    def test_standalone_type(self) -> None:
        assert decode_type(bytes([0x1D, 0x1C]), _resolve) == "System.Object[]"
