"""ECMA-335 signature blob decoding.

Turns the raw ``#Blob`` signatures of methods, fields and properties into
the type-name strings used in member full names (``System.Int32``,
``System.Collections.Generic.List`1<System.String>``, ``!0``, ``!!0``,
``System.Byte[]``, ``System.Int32&``). Type tokens embedded in a blob are
handed to a resolver callback so this module has no metadata-table access.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

# (tag, row_index) -> type name; tag 0 = TypeDef, 1 = TypeRef, 2 = TypeSpec
TypeResolver = Callable[[int, int], str]

_PRIMITIVES = {
    0x01: "System.Void",
    0x02: "System.Boolean",
    0x03: "System.Char",
    0x04: "System.SByte",
    0x05: "System.Byte",
    0x06: "System.Int16",
    0x07: "System.UInt16",
    0x08: "System.Int32",
    0x09: "System.UInt32",
    0x0A: "System.Int64",
    0x0B: "System.UInt64",
    0x0C: "System.Single",
    0x0D: "System.Double",
    0x0E: "System.String",
    0x16: "System.TypedReference",
    0x18: "System.IntPtr",
    0x19: "System.UIntPtr",
    0x1C: "System.Object",
}

ELEMENT_PTR = 0x0F
ELEMENT_BYREF = 0x10
ELEMENT_VALUETYPE = 0x11
ELEMENT_CLASS = 0x12
ELEMENT_VAR = 0x13
ELEMENT_ARRAY = 0x14
ELEMENT_GENERICINST = 0x15
ELEMENT_FNPTR = 0x1B
ELEMENT_SZARRAY = 0x1D
ELEMENT_MVAR = 0x1E
ELEMENT_CMOD_REQD = 0x1F
ELEMENT_CMOD_OPT = 0x20
ELEMENT_SENTINEL = 0x41
ELEMENT_PINNED = 0x45

CALLCONV_FIELD = 0x06
CALLCONV_PROPERTY = 0x08
CALLCONV_GENERIC = 0x10
CALLCONV_HASTHIS = 0x20
CALLCONV_EXPLICITTHIS = 0x40
CALLCONV_MASK = 0x0F

# ILAsm keywords for the low nibble of a method calling convention
_CALL_KINDS = {
    0x00: "",
    0x01: "unmanaged cdecl",
    0x02: "unmanaged stdcall",
    0x03: "unmanaged thiscall",
    0x04: "unmanaged fastcall",
    0x05: "vararg",
    0x08: "",
}


class SignatureError(ValueError):
    """A signature blob is truncated or uses an unknown element type."""


def calling_convention(callconv: int) -> str:
    """Render a calling-convention byte as ILAsm keywords.

    ``0x20`` (instance) gives ``"instance"``, ``0x60`` gives
    ``"instance explicit"``, ``0x25`` gives ``"instance vararg"``. A static
    default-convention member renders as ``""``.
    """
    kind = callconv & CALLCONV_MASK
    if kind not in _CALL_KINDS:
        raise SignatureError(f"unknown calling convention 0x{callconv:02x}")
    words = []
    if callconv & CALLCONV_HASTHIS:
        words.append("instance")
        if callconv & CALLCONV_EXPLICITTHIS:
            words.append("explicit")
    if _CALL_KINDS[kind]:
        words.append(_CALL_KINDS[kind])
    return " ".join(words)


@dataclass(frozen=True, slots=True)
class MethodSignature:
    return_type: str
    parameters: tuple[str, ...]
    generic_arity: int = 0
    calling_convention: str = ""


class SignatureDecoder:
    """Cursor over one signature blob."""

    def __init__(self, data: bytes, resolve: TypeResolver) -> None:
        self._data = data
        self._pos = 0
        self._resolve = resolve

    def _byte(self) -> int:
        if self._pos >= len(self._data):
            raise SignatureError(f"signature truncated at offset {self._pos}")
        value = self._data[self._pos]
        self._pos += 1
        return value

    def _peek(self) -> int:
        if self._pos >= len(self._data):
            raise SignatureError(f"signature truncated at offset {self._pos}")
        return self._data[self._pos]

    def compressed_uint(self) -> int:
        first = self._byte()
        if first & 0x80 == 0:
            return first
        if first & 0xC0 == 0x80:
            return ((first & 0x3F) << 8) | self._byte()
        if first & 0xE0 == 0xC0:
            b1, b2, b3 = self._byte(), self._byte(), self._byte()
            return ((first & 0x1F) << 24) | (b1 << 16) | (b2 << 8) | b3
        raise SignatureError(f"bad compressed integer lead byte 0x{first:02x}")

    def _type_token(self) -> str:
        coded = self.compressed_uint()
        return self._resolve(coded & 0x3, coded >> 2)

    def _skip_custom_mods(self) -> None:
        while self._pos < len(self._data) and self._peek() in (
            ELEMENT_CMOD_REQD,
            ELEMENT_CMOD_OPT,
        ):
            self._byte()
            self.compressed_uint()

    def read_type(self) -> str:
        self._skip_custom_mods()
        element = self._byte()

        if element in _PRIMITIVES:
            return _PRIMITIVES[element]
        if element in (ELEMENT_CLASS, ELEMENT_VALUETYPE):
            return self._type_token()
        if element == ELEMENT_PTR:
            return self.read_type() + "*"
        if element == ELEMENT_BYREF:
            return self.read_type() + "&"
        if element == ELEMENT_SZARRAY:
            return self.read_type() + "[]"
        if element == ELEMENT_VAR:
            return f"!{self.compressed_uint()}"
        if element == ELEMENT_MVAR:
            return f"!!{self.compressed_uint()}"
        if element == ELEMENT_GENERICINST:
            self._byte()  # CLASS or VALUETYPE
            generic = self._type_token()
            args = [self.read_type() for _ in range(self.compressed_uint())]
            return f"{generic}<{','.join(args)}>"
        if element == ELEMENT_ARRAY:
            return self._array()
        if element == ELEMENT_FNPTR:
            sig = self.read_method()
            return f"method {sig.return_type} *({','.join(sig.parameters)})"
        if element == ELEMENT_PINNED:
            return self.read_type()
        raise SignatureError(f"unknown element type 0x{element:02x} at offset {self._pos - 1}")

    def _array(self) -> str:
        element = self.read_type()
        rank = self.compressed_uint()
        for _ in range(self.compressed_uint()):  # sizes
            self.compressed_uint()
        for _ in range(self.compressed_uint()):  # lower bounds
            self.compressed_uint()
        if rank <= 1:
            return f"{element}[*]"
        return f"{element}[{',' * (rank - 1)}]"

    def _param(self) -> str:
        self._skip_custom_mods()
        if self._peek() == ELEMENT_SENTINEL:
            self._byte()
            return "...," + self.read_type()
        return self.read_type()

    def read_method(self) -> MethodSignature:
        callconv = self._byte()
        arity = self.compressed_uint() if callconv & CALLCONV_GENERIC else 0
        count = self.compressed_uint()
        return_type = self.read_type()
        params = tuple(self._param() for _ in range(count))
        return MethodSignature(return_type, params, arity, calling_convention(callconv))

    def read_field(self) -> str:
        callconv = self._byte()
        if callconv & CALLCONV_MASK != CALLCONV_FIELD:
            raise SignatureError(f"not a field signature (0x{callconv:02x})")
        return self.read_type()

    def read_property(self) -> MethodSignature:
        callconv = self._byte()
        if callconv & CALLCONV_MASK != CALLCONV_PROPERTY:
            raise SignatureError(f"not a property signature (0x{callconv:02x})")
        count = self.compressed_uint()
        prop_type = self.read_type()
        params = tuple(self._param() for _ in range(count))
        return MethodSignature(prop_type, params, calling_convention=calling_convention(callconv))


def decode_method(data: bytes, resolve: TypeResolver) -> MethodSignature:
    return SignatureDecoder(data, resolve).read_method()


def decode_field(data: bytes, resolve: TypeResolver) -> str:
    return SignatureDecoder(data, resolve).read_field()


def decode_property(data: bytes, resolve: TypeResolver) -> MethodSignature:
    return SignatureDecoder(data, resolve).read_property()


def decode_type(data: bytes, resolve: TypeResolver) -> str:
    """Decode a standalone type signature (a TypeSpec blob)."""
    return SignatureDecoder(data, resolve).read_type()
